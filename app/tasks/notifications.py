"""
Celery tasks for OTP delivery (DISPATCH_BACKEND=celery)
"""
import logging
from typing import Optional
from celery import shared_task
from celery.signals import worker_process_init, worker_process_shutdown
from app.core.container import Container, build_container
from app.models import NotificationEnvelope

logger = logging.getLogger(__name__)

# Each worker process owns one breaker registry and one provider sender
_container: Optional[Container] = None


@worker_process_init.connect
def init_worker_container(**kwargs):
    global _container
    from app.core.logging_config import setup_logging
    setup_logging()
    _container = build_container()
    logger.info("Dispatch worker ready")


@worker_process_shutdown.connect
def shutdown_worker_container(**kwargs):
    if _container is not None:
        _container.shutdown()


def get_worker_container() -> Container:
    global _container
    if _container is None:
        _container = build_container()
    return _container


@shared_task(queue='notifications', ignore_result=True)
def deliver_notification(envelope: dict):
    """
    Process one envelope: a single guarded provider call, no retry
    """
    container = get_worker_container()
    status = container.processor.process(NotificationEnvelope.from_dict(envelope))
    return status.value
