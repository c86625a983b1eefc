"""
Downstream senders: one call to the notification provider per envelope.

send(envelope) returns None on success and raises DownstreamFailureError
(or DownstreamTimeoutError) otherwise.
"""
import logging
import random
import time
from typing import Callable, Optional

import requests

from app.core.config import Settings
from app.core.exceptions import DownstreamFailureError, DownstreamTimeoutError
from app.models import Channel, NotificationEnvelope
from app.services.auth_token import ProviderTokenClient

logger = logging.getLogger(__name__)


class DownstreamSender:
    def send(self, envelope: NotificationEnvelope) -> None:
        raise NotImplementedError


class ProviderSender(DownstreamSender):
    """Real provider over HTTPS"""

    def __init__(self, endpoint: str, token_client: ProviderTokenClient,
                 sms_api_key: str, email_api_key: str, timeout: float = 10):
        self.endpoint = endpoint
        self.token_client = token_client
        self.sms_api_key = sms_api_key
        self.email_api_key = email_api_key
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings, token_client: ProviderTokenClient) -> "ProviderSender":
        return cls(
            endpoint=settings.PROVIDER_ENDPOINT,
            token_client=token_client,
            sms_api_key=settings.PROVIDER_SMS_API_KEY,
            email_api_key=settings.PROVIDER_EMAIL_API_KEY,
            timeout=settings.PROVIDER_TIMEOUT,
        )

    @staticmethod
    def build_payload(envelope: NotificationEnvelope) -> dict:
        is_sms = envelope.channel == Channel.SMS
        return {
            "ApplicationMobileNumber": envelope.identifier if is_sms else None,
            "ApplicationEmailAddress": None if is_sms else envelope.identifier,
            "ApplicantFirstName": envelope.first_name,
            "ApplicantLastName": envelope.last_name,
            "Locale": envelope.locale,
            "OTP": envelope.otp,
            "OrigSystem": envelope.orig_system,
        }

    def send(self, envelope: NotificationEnvelope) -> None:
        token = self.token_client.get_access_token()
        api_key = self.sms_api_key if envelope.channel == Channel.SMS else self.email_api_key
        headers = {
            "Authorization": f"Bearer {token}",
            "X-API-Key": api_key,
            "Content-Type": "application/json",
        }

        logger.debug(f"Sending {envelope.channel.value} OTP to provider: {self.endpoint}")
        try:
            response = requests.post(
                self.endpoint,
                json=self.build_payload(envelope),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise DownstreamTimeoutError("Provider call timed out") from e
        except requests.RequestException as e:
            raise DownstreamFailureError(f"Provider call failed: {e}") from e

        if response.status_code == 401:
            # Next attempt (a new envelope) fetches a fresh token
            logger.warning("Provider rejected the access token, invalidating it")
            self.token_client.invalidate()

        if not 200 <= response.status_code < 300:
            logger.error(f"Provider returned {response.status_code}: {response.text[:200]}")
            raise DownstreamFailureError(f"Provider returned non-success status: {response.status_code}")

        logger.info(
            f"Provider accepted OTP - Channel: {envelope.channel.value} | "
            f"Identifier: {envelope.identifier} | Correlation: {envelope.correlation_id}"
        )


class SimulatedSender(DownstreamSender):
    """
    Stand-in provider: waits `delay_ms`, then fails at `failure_rate`,
    then times out when the delay exceeds `timeout_ms`.
    """

    def __init__(self, failure_rate: float = 0.0, delay_ms: int = 100, timeout_ms: int = 3000,
                 rng: Optional[random.Random] = None, sleep: Callable[[float], None] = time.sleep):
        self.failure_rate = failure_rate
        self.delay_ms = delay_ms
        self.timeout_ms = timeout_ms
        self._rng = rng or random.Random()
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings) -> "SimulatedSender":
        return cls(
            failure_rate=settings.SIMULATION_FAILURE_RATE,
            delay_ms=settings.SIMULATION_DELAY_MS,
            timeout_ms=settings.SIMULATION_TIMEOUT_MS,
        )

    def set_failure_rate(self, rate: float) -> None:
        if not 0.0 <= rate <= 1.0:
            raise ValueError("Failure rate must be between 0.0 and 1.0")
        self.failure_rate = rate
        logger.info(f"[Simulation] failure rate set to {rate * 100:.0f}%")

    def settings(self) -> dict:
        return {
            "failure_rate": self.failure_rate,
            "delay_ms": self.delay_ms,
            "timeout_ms": self.timeout_ms,
        }

    def send(self, envelope: NotificationEnvelope) -> None:
        logger.debug(f"[Simulation] network delay: {self.delay_ms}ms")
        self._sleep(self.delay_ms / 1000.0)

        if self._rng.random() < self.failure_rate:
            logger.warning(f"[Simulation] forcing failure (rate: {self.failure_rate * 100:.0f}%)")
            raise DownstreamFailureError("Simulated provider failure")

        if self.delay_ms > self.timeout_ms:
            logger.warning("[Simulation] timeout detected")
            raise DownstreamTimeoutError("Simulated provider timeout")

        logger.info(
            f"[Simulation] OTP sent - Channel: {envelope.channel.value} | "
            f"Identifier: {envelope.identifier} | Name: {envelope.first_name} {envelope.last_name}"
        )
