"""
Celery Configuration
"""
from celery import Celery
from app.core.config import settings

# Create Celery app
celery_app = Celery(
    "otp_relay",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

# Import tasks to register them
from app import tasks  # noqa: F401,E402

# Configure Celery
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=True,

    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=settings.DISPATCH_MAX_WORKERS,

    # Single attempt per envelope: ack on receipt so a crashed worker
    # does not cause the message to be delivered again
    task_acks_late=False,

    # Status lives in the status sink, not in Celery results
    task_ignore_result=True,

    # Task routing
    task_routes={
        'app.tasks.notifications.*': {'queue': 'notifications'},
    },
)
