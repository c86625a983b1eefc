"""
OTP lifecycle: generate / verify / resend

Per identifier: NONE -> ISSUED -> VERIFIED | SUPERSEDED | EXPIRED.
A new generate always overwrites the current code, whatever its state.
"""
import logging
import math
import time
from typing import Callable

from app.core.config import Settings
from app.core.exceptions import CooldownActiveError, InvalidOtpError, OtpNotFoundError
from app.models import RecipientInfo
from app.services.code_store import CodeStore
from app.services.dispatcher import NotificationDispatcher
from app.utils.otp import generate_otp, hash_otp, otp_matches

logger = logging.getLogger(__name__)


class OtpService:
    def __init__(self, store: CodeStore, dispatcher: NotificationDispatcher, settings: Settings,
                 clock: Callable[[], float] = time.time):
        self.store = store
        self.dispatcher = dispatcher
        self.settings = settings
        self._clock = clock

    def _hash(self, code: str) -> str:
        return hash_otp(code, self.settings.OTP_HASH_ALGORITHM, self.settings.OTP_USE_HASHING)

    def generate(self, identifier: str, recipient: RecipientInfo) -> str:
        """
        Issue a new code, store its hash and hand delivery to the dispatcher.

        Returns the plaintext code; delivery is not awaited.
        """
        code = generate_otp(self.settings.OTP_LENGTH)
        self.store.put(
            identifier,
            self._hash(code),
            ttl=self.settings.OTP_EXPIRY,
            cooldown=self.settings.OTP_RESEND_COOLDOWN,
        )
        logger.info(f"OTP generated for identifier: {identifier} (valid for {self.settings.OTP_EXPIRY} seconds)")
        if self.settings.DEV_MODE:
            logger.debug(f"OTP for {identifier}: {code}")

        correlation_id = self.dispatcher.dispatch(identifier, code, recipient)
        logger.info(f"OTP notification queued for {identifier} - Correlation ID: {correlation_id}")
        return code

    def verify(self, identifier: str, code: str) -> bool:
        stored = self.store.get(identifier)
        if stored is None:
            raise OtpNotFoundError(f"OTP expired or not found for: {identifier}")

        if not otp_matches(stored, self._hash(code)):
            # Record stays; the user may try again
            raise InvalidOtpError(f"Invalid OTP for: {identifier}")

        self.store.delete(identifier)
        logger.info(f"OTP verified and deleted for: {identifier}")
        return True

    def resend(self, identifier: str, recipient: RecipientInfo) -> str:
        """New code after the cooldown; the previous code stops working at once"""
        cooldown_until = self.store.get_cooldown_until(identifier)
        if cooldown_until is not None:
            now = self._clock()
            if now < cooldown_until:
                remaining = max(1, math.ceil(cooldown_until - now))
                raise CooldownActiveError(remaining)

        code = self.generate(identifier, recipient)
        logger.info(f"New OTP generated for: {identifier} (old OTP invalidated)")
        return code
