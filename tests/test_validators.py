"""
Tests for request validation utilities
"""
import pytest
from app.core.config import Settings
from app.core.exceptions import ValidationError
from app.models import Channel
from app.utils.validators import (
    sanitize,
    validate_channel,
    validate_email,
    validate_identifier,
    validate_name,
    validate_otp_format,
    validate_phone,
)

settings = Settings(OTP_LENGTH=6)


def test_valid_phone_international_format():
    """Test valid phone with leading +"""
    is_valid, formatted = validate_phone("+15550001111", settings)
    assert is_valid == True
    assert formatted == "+15550001111"


def test_phone_whitespace_removed():
    is_valid, formatted = validate_phone(" +1 555 000 1111 ", settings)
    assert is_valid == True
    assert formatted == "+15550001111"


def test_invalid_phone_short():
    """Test invalid short phone"""
    is_valid, formatted = validate_phone("0912345", settings)
    assert is_valid == False


def test_invalid_phone_letters():
    is_valid, formatted = validate_phone("+1555abc1111", settings)
    assert is_valid == False


def test_valid_email_lowercased():
    is_valid, formatted = validate_email("  Ada@Example.COM ", settings)
    assert is_valid == True
    assert formatted == "ada@example.com"


def test_invalid_email():
    is_valid, _ = validate_email("not-an-email", settings)
    assert is_valid == False


def test_channel_case_insensitive():
    assert validate_channel(" sms ") == Channel.SMS
    assert validate_channel("Email") == Channel.EMAIL


def test_channel_rejected():
    with pytest.raises(ValidationError):
        validate_channel("FAX")
    with pytest.raises(ValidationError):
        validate_channel(None)


def test_identifier_by_channel():
    assert validate_identifier(Channel.SMS, "+15550001111", settings) == "+15550001111"
    assert validate_identifier(Channel.EMAIL, "ADA@example.com", settings) == "ada@example.com"
    with pytest.raises(ValidationError):
        validate_identifier(Channel.SMS, "ada@example.com", settings)
    with pytest.raises(ValidationError):
        validate_identifier(Channel.EMAIL, "", settings)


def test_sanitize_strips_markup():
    assert sanitize("<b>Ada</b>", settings) == "Ada"
    assert sanitize("Ada\x00\x07", settings) == "Ada"


def test_name_validation():
    assert validate_name(" Ada ", "First name", settings) == "Ada"
    with pytest.raises(ValidationError):
        validate_name("", "First name", settings)
    with pytest.raises(ValidationError):
        validate_name("R2D2", "Last name", settings)


def test_otp_format():
    assert validate_otp_format(" 012345 ", settings) == "012345"
    with pytest.raises(ValidationError):
        validate_otp_format("12345", settings)
    with pytest.raises(ValidationError):
        validate_otp_format("12a456", settings)
    with pytest.raises(ValidationError):
        validate_otp_format(None, settings)
