"""
Tests for configuration
"""
from app.core.config import settings, Settings


def test_settings_loaded():
    """Test that settings are loaded"""
    assert settings.APP_NAME is not None


def test_otp_defaults():
    """OTP settings exist with sane values"""
    assert settings.OTP_LENGTH > 0
    assert settings.OTP_EXPIRY > 0
    assert settings.OTP_RESEND_COOLDOWN >= 0
    assert settings.OTP_HASH_ALGORITHM


def test_redis_config():
    """Test Redis configuration exists"""
    assert hasattr(settings, 'REDIS_URL')


def test_circuit_breaker_config():
    """Test circuit breaker configuration exists"""
    assert settings.CB_MINIMUM_CALLS > 0
    assert 0 < settings.CB_FAILURE_RATE_THRESHOLD <= 100
    assert settings.CB_PERMITTED_CALLS_IN_HALF_OPEN > 0


def test_settings_override():
    """Explicit values win over environment defaults"""
    custom = Settings(OTP_LENGTH=8, DISPATCH_BACKEND="celery")
    assert custom.OTP_LENGTH == 8
    assert custom.DISPATCH_BACKEND == "celery"
