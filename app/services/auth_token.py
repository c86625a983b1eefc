"""
Bearer token acquisition for the notification provider
"""
import logging
import threading
import time
from typing import Callable, Optional

import requests

from app.core.config import Settings
from app.core.exceptions import DownstreamFailureError

logger = logging.getLogger(__name__)


class ProviderTokenClient:
    """
    Caches one access token per process.
    A new token is requested only when fewer than `safety_margin` seconds
    remain before the cached one expires.
    """

    def __init__(self, token_url: str, client_id: str, client_secret: str,
                 grant_type: str = "client_credentials", safety_margin: int = 60,
                 timeout: float = 10, clock: Callable[[], float] = time.time):
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.grant_type = grant_type
        self.safety_margin = safety_margin
        self.timeout = timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._expires_at: float = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderTokenClient":
        return cls(
            token_url=settings.PROVIDER_TOKEN_URL,
            client_id=settings.PROVIDER_CLIENT_ID,
            client_secret=settings.PROVIDER_CLIENT_SECRET,
            grant_type=settings.PROVIDER_GRANT_TYPE,
            safety_margin=settings.PROVIDER_TOKEN_SAFETY_MARGIN,
            timeout=settings.PROVIDER_TIMEOUT,
        )

    def get_access_token(self) -> str:
        with self._lock:
            if self._token and self._clock() < self._expires_at - self.safety_margin:
                logger.debug("Using cached provider access token")
                return self._token
            logger.info("Requesting new provider access token")
            return self._request_new_token()

    def invalidate(self) -> None:
        with self._lock:
            logger.info("Invalidating cached provider access token")
            self._token = None
            self._expires_at = 0.0

    def _request_new_token(self) -> str:
        # Caller holds the lock
        try:
            response = requests.post(self.token_url, json={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": self.grant_type,
            }, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to obtain provider access token: {e}")
            raise DownstreamFailureError("Provider authentication failed") from e

        token = data.get("access_token")
        if not token:
            raise DownstreamFailureError("Provider authentication returned no access token")

        self._token = token
        self._expires_at = self._clock() + int(data.get("expires_in", 0) or 0)
        logger.info("Provider access token obtained")
        return token
