"""
Error taxonomy for the OTP lifecycle and the dispatch path
"""
from typing import Optional


class OtpError(Exception):
    """Base class for every error the service raises on purpose"""

    code = "OTP_ERROR"
    status_code = 500

    def __init__(self, message: str = "", data: Optional[dict] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.data = data


class OtpNotFoundError(OtpError):
    code = "NOT_FOUND"
    status_code = 404


class InvalidOtpError(OtpError):
    code = "INVALID"
    status_code = 400


class CooldownActiveError(OtpError):
    code = "COOLDOWN_ACTIVE"
    status_code = 429

    def __init__(self, remaining_seconds: int, message: str = "Please wait before requesting a new OTP"):
        super().__init__(message, data={"remaining_seconds": remaining_seconds})
        self.remaining_seconds = remaining_seconds


class ServiceUnavailableError(OtpError):
    """Circuit breaker is OPEN, the provider was not called"""

    code = "SERVICE_UNAVAILABLE"
    status_code = 503


class DownstreamFailureError(OtpError):
    code = "DOWNSTREAM_FAILURE"
    status_code = 502


class DownstreamTimeoutError(DownstreamFailureError):
    pass


class StoreUnavailableError(OtpError):
    code = "STORE_UNAVAILABLE"
    status_code = 503


class ValidationError(OtpError):
    code = "VALIDATION_ERROR"
    status_code = 400
