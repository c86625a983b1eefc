"""
Input validation and sanitization for OTP requests
"""
import re
from typing import Optional
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import ValidationError
from app.models import Channel

ERROR_INVALID_EMAIL = "Invalid email format"
ERROR_INVALID_PHONE = "Invalid phone number format"
ERROR_INVALID_NAME = "Name contains invalid characters"
ERROR_INVALID_CHANNEL = "Channel must be SMS or EMAIL"
ERROR_MISSING_IDENTIFIER = "Identifier is required based on channel"

_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize(value: Optional[str], settings: Settings = default_settings) -> str:
    """Strip tags, configured dangerous characters and control characters"""
    if value is None:
        return ""
    cleaned = _TAG_RE.sub("", value.strip())
    if settings.DANGEROUS_CHARS_REGEX:
        cleaned = re.sub(settings.DANGEROUS_CHARS_REGEX, "", cleaned)
    return _CONTROL_RE.sub("", cleaned).strip()


def validate_channel(channel: Optional[str]) -> Channel:
    if not channel or not channel.strip():
        raise ValidationError(ERROR_INVALID_CHANNEL)
    try:
        return Channel(channel.strip().upper())
    except ValueError:
        raise ValidationError(ERROR_INVALID_CHANNEL)


def validate_phone(phone: Optional[str], settings: Settings = default_settings) -> tuple[bool, str]:
    """
    Validate mobile number

    Returns: (is_valid, formatted_number) with whitespace removed
    """
    if not phone:
        return False, ""
    formatted = re.sub(r"\s+", "", sanitize(phone, settings))
    if len(formatted) < settings.PHONE_MIN_LENGTH or len(formatted) > settings.PHONE_MAX_LENGTH:
        return False, ""
    if not re.match(settings.PHONE_REGEX, formatted):
        return False, ""
    return True, formatted


def validate_email(email: Optional[str], settings: Settings = default_settings) -> tuple[bool, str]:
    """
    Validate email address

    Returns: (is_valid, lowercased_address)
    """
    if not email:
        return False, ""
    formatted = sanitize(email, settings).lower()
    if len(formatted) > settings.EMAIL_MAX_LENGTH:
        return False, ""
    if not re.match(settings.EMAIL_REGEX, formatted):
        return False, ""
    return True, formatted


def validate_name(name: Optional[str], field: str, settings: Settings = default_settings) -> str:
    if not name or not name.strip():
        raise ValidationError(f"{field} is required")
    cleaned = sanitize(name, settings)
    if not re.match(settings.NAME_REGEX, cleaned):
        raise ValidationError(f"{ERROR_INVALID_NAME} ({field})")
    return cleaned


def validate_identifier(channel: Channel, identifier: Optional[str],
                        settings: Settings = default_settings) -> str:
    """Phone for SMS, email for EMAIL; raises ValidationError"""
    if not identifier or not identifier.strip():
        if channel == Channel.SMS:
            raise ValidationError("Phone number is required for SMS channel")
        raise ValidationError("Email address is required for EMAIL channel")

    if channel == Channel.SMS:
        is_valid, formatted = validate_phone(identifier, settings)
        if not is_valid:
            raise ValidationError(ERROR_INVALID_PHONE)
    else:
        is_valid, formatted = validate_email(identifier, settings)
        if not is_valid:
            raise ValidationError(ERROR_INVALID_EMAIL)
    return formatted


def validate_otp_format(otp: Optional[str], settings: Settings = default_settings) -> str:
    if not otp or not otp.strip():
        raise ValidationError("OTP is required")
    cleaned = otp.strip()
    if len(cleaned) != settings.OTP_LENGTH or not re.fullmatch(r"[0-9]+", cleaned):
        raise ValidationError(f"OTP must be exactly {settings.OTP_LENGTH} digits")
    return cleaned
