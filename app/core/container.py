"""
Composition root: builds every long-lived service once per process
"""
import logging
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

import redis
from fastapi import Request

from app.core.config import Settings, settings as default_settings
from app.services.auth_token import ProviderTokenClient
from app.services.circuit_breaker import CircuitBreaker, CircuitBreakerConfig, CircuitBreakerRegistry
from app.services.code_store import CodeStore
from app.services.dispatcher import NotificationDispatcher, NotificationProcessor
from app.services.otp_service import OtpService
from app.services.self_test import SelfTestService
from app.services.sender import DownstreamSender, ProviderSender, SimulatedSender
from app.services.status_sink import DatabaseStatusSink, InMemoryStatusSink, StatusSink

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    store: CodeStore
    breakers: CircuitBreakerRegistry
    breaker: CircuitBreaker
    sender: DownstreamSender
    status_sink: StatusSink
    processor: NotificationProcessor
    dispatcher: NotificationDispatcher
    otp_service: OtpService
    self_test: SelfTestService

    @property
    def delivers_in_process(self) -> bool:
        """False when Celery workers own the breaker and sender"""
        return self.settings.DISPATCH_BACKEND != "celery"

    def shutdown(self) -> None:
        self.dispatcher.shutdown(wait=True)


def build_status_sink(settings: Settings, clock: Callable[[], float] = time.time) -> StatusSink:
    if settings.NOTIFICATION_STATUS_BACKEND == "database":
        from app.core.database import build_session_factory
        return DatabaseStatusSink(build_session_factory(settings.DATABASE_URL))
    return InMemoryStatusSink(
        retention_seconds=settings.NOTIFICATION_STATUS_RETENTION_SECONDS,
        max_entries=settings.NOTIFICATION_STATUS_MAX_ENTRIES,
        clock=clock,
    )


def build_sender(settings: Settings) -> DownstreamSender:
    if settings.SIMULATION_ENABLED:
        logger.info("Notification provider: simulated")
        return SimulatedSender.from_settings(settings)
    logger.info(f"Notification provider: {settings.PROVIDER_ENDPOINT}")
    return ProviderSender.from_settings(settings, ProviderTokenClient.from_settings(settings))


def build_container(settings: Settings = default_settings,
                    redis_client: Optional[redis.Redis] = None,
                    sender: Optional[DownstreamSender] = None,
                    status_sink: Optional[StatusSink] = None,
                    executor: Optional[Executor] = None,
                    clock: Callable[[], float] = time.time,
                    monotonic: Callable[[], float] = time.monotonic) -> Container:
    """Any collaborator passed in replaces the one built from settings"""
    if redis_client is None:
        redis_client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
    store = CodeStore(redis_client, clock=clock)

    breakers = CircuitBreakerRegistry(CircuitBreakerConfig.from_settings(settings), clock=monotonic)
    breaker = breakers.circuit_breaker(settings.CB_NAME)

    sender = sender or build_sender(settings)
    if status_sink is None:
        status_sink = build_status_sink(settings, clock=clock)
    processor = NotificationProcessor(breaker, sender, status_sink)

    if executor is None and settings.DISPATCH_BACKEND != "celery":
        executor = ThreadPoolExecutor(
            max_workers=settings.DISPATCH_MAX_WORKERS,
            thread_name_prefix="otp-dispatch",
        )
    dispatcher = NotificationDispatcher(processor, settings, executor=executor)

    otp_service = OtpService(store, dispatcher, settings, clock=clock)

    return Container(
        settings=settings,
        store=store,
        breakers=breakers,
        breaker=breaker,
        sender=sender,
        status_sink=status_sink,
        processor=processor,
        dispatcher=dispatcher,
        otp_service=otp_service,
        self_test=SelfTestService(otp_service, store),
    )


def get_container(request: Request) -> Container:
    """Dependency for route handlers"""
    return request.app.state.container
