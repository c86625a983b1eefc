"""
Fire-and-forget OTP delivery.

dispatch() builds an envelope, records CREATED and hands it to a worker.
The worker (NotificationProcessor.process) records PROCESSING, makes one
guarded call to the provider and records SENT or FAILED. Nothing is retried;
a user whose code never arrives asks for a new one.
"""
import logging
from concurrent.futures import Executor
from typing import Optional

from app.core.config import Settings
from app.core.exceptions import DownstreamFailureError, OtpError, ServiceUnavailableError
from app.models import NotificationEnvelope, NotificationStatus, RecipientInfo
from app.services.circuit_breaker import CallNotPermittedError, CircuitBreaker
from app.services.sender import DownstreamSender
from app.services.status_sink import StatusSink

logger = logging.getLogger(__name__)


class NotificationProcessor:
    """Runs on a dispatch worker, once per envelope"""

    def __init__(self, breaker: CircuitBreaker, sender: DownstreamSender, status_sink: StatusSink):
        self.breaker = breaker
        self.sender = sender
        self.status_sink = status_sink

    def process(self, envelope: NotificationEnvelope) -> NotificationStatus:
        correlation_id = envelope.correlation_id
        logger.info(f"[Dispatch] Processing notification {correlation_id}")
        self.record_status(envelope, NotificationStatus.PROCESSING)

        try:
            self.breaker.guard(self.sender.send, envelope, fallback=self._fallback(envelope))
        except OtpError as e:
            logger.error(f"[Dispatch] Failed to send OTP ({e.code}): {e.message}")
            logger.error(f"   Correlation ID: {correlation_id} - user should request a new OTP")
            self.record_status(envelope, NotificationStatus.FAILED, detail=f"{e.code}: {e.message}")
            return envelope.status

        self.record_status(envelope, NotificationStatus.SENT)
        logger.info(f"[Dispatch] OTP sent successfully ({correlation_id})")
        return envelope.status

    def _fallback(self, envelope: NotificationEnvelope):
        def fallback(exc: Exception):
            if isinstance(exc, CallNotPermittedError):
                logger.error(
                    f"[Dispatch] Circuit breaker '{exc.name}' is {exc.state.value}, "
                    f"provider not attempted ({envelope.correlation_id})"
                )
                raise ServiceUnavailableError(
                    "Notification provider is temporarily unavailable. Please try again later."
                ) from exc
            if isinstance(exc, DownstreamFailureError):
                raise exc
            raise DownstreamFailureError(f"Failed to send OTP notification: {exc}") from exc
        return fallback

    def record_status(self, envelope: NotificationEnvelope, status: NotificationStatus,
                      detail: Optional[str] = None) -> None:
        envelope.status = status
        try:
            self.status_sink.update(envelope.correlation_id, status, detail)
        except Exception as e:
            # Delivery outcome stands even if it cannot be recorded
            logger.error(f"Could not record status {status.value} for {envelope.correlation_id}: {e}")


class NotificationDispatcher:
    def __init__(self, processor: NotificationProcessor,
                 settings: Settings, executor: Optional[Executor] = None):
        self.processor = processor
        self.settings = settings
        self.backend = settings.DISPATCH_BACKEND
        self._executor = executor
        if self.backend != "celery" and executor is None:
            raise ValueError("An executor is required for the thread dispatch backend")

    def build_envelope(self, identifier: str, otp: str, recipient: RecipientInfo) -> NotificationEnvelope:
        return NotificationEnvelope(
            channel=recipient.channel,
            identifier=identifier,
            otp=otp,
            first_name=recipient.first_name,
            last_name=recipient.last_name,
            locale=recipient.locale or self.settings.OTP_DEFAULT_LOCALE,
            orig_system=self.settings.OTP_ORIG_SYSTEM,
        )

    def dispatch(self, identifier: str, otp: str, recipient: RecipientInfo) -> str:
        """Schedule delivery and return the correlation id without waiting"""
        envelope = self.build_envelope(identifier, otp, recipient)
        logger.info(f"[Dispatch] Preparing OTP notification - Correlation ID: {envelope.correlation_id}")
        self.processor.record_status(envelope, NotificationStatus.CREATED)

        try:
            self._schedule(envelope)
        except Exception as e:
            logger.error(f"[Dispatch] Could not schedule {envelope.correlation_id}: {e}")
            self.processor.record_status(envelope, NotificationStatus.FAILED, detail=f"DOWNSTREAM_FAILURE: {e}")
        return envelope.correlation_id

    def _schedule(self, envelope: NotificationEnvelope) -> None:
        if self.backend == "celery":
            from app.core.celery_app import celery_app  # noqa: F401
            from app.tasks.notifications import deliver_notification
            deliver_notification.delay(envelope.to_dict())
        else:
            self._executor.submit(self.processor.process, envelope)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
