"""
Redis-backed storage for the current code and resend cooldown of each identifier
"""
import logging
import time
from typing import Callable, Optional

import redis

from app.core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

OTP_KEY_PREFIX = "OTP:"
RESEND_KEY_PREFIX = "RESEND:"


def otp_key(identifier: str) -> str:
    return f"{OTP_KEY_PREFIX}{identifier}"


def resend_key(identifier: str) -> str:
    return f"{RESEND_KEY_PREFIX}{identifier}"


class CodeStore:
    """
    Two TTL keys per identifier: the hashed code and the cooldown-until
    timestamp (epoch milliseconds). Both expire with the code.

    Writes are not atomic across the two keys; concurrent issuance for the
    same identifier is last-write-wins.
    """

    def __init__(self, client: redis.Redis, clock: Callable[[], float] = time.time):
        self._redis = client
        self._clock = clock

    def put(self, identifier: str, code_hash: str, ttl: int, cooldown: int) -> None:
        cooldown_until_ms = int((self._clock() + cooldown) * 1000)
        try:
            self._redis.set(otp_key(identifier), code_hash, ex=ttl)
            self._redis.set(resend_key(identifier), str(cooldown_until_ms), ex=ttl)
        except redis.RedisError as e:
            logger.error(f"Code store write failed for {identifier}: {e}")
            raise StoreUnavailableError("Code store is unavailable") from e

    def get(self, identifier: str) -> Optional[str]:
        try:
            return self._redis.get(otp_key(identifier))
        except redis.RedisError as e:
            logger.error(f"Code store read failed for {identifier}: {e}")
            raise StoreUnavailableError("Code store is unavailable") from e

    def get_cooldown_until(self, identifier: str) -> Optional[float]:
        """Epoch seconds before which a resend is refused, or None"""
        try:
            raw = self._redis.get(resend_key(identifier))
        except redis.RedisError as e:
            logger.error(f"Code store read failed for {identifier}: {e}")
            raise StoreUnavailableError("Code store is unavailable") from e
        if raw is None:
            return None
        return int(raw) / 1000.0

    def delete(self, identifier: str) -> None:
        """Remove code and cooldown; no error when already gone"""
        try:
            self._redis.delete(otp_key(identifier), resend_key(identifier))
        except redis.RedisError as e:
            logger.error(f"Code store delete failed for {identifier}: {e}")
            raise StoreUnavailableError("Code store is unavailable") from e

    def ping(self) -> bool:
        try:
            return bool(self._redis.ping())
        except redis.RedisError:
            return False
