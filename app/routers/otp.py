"""
OTP endpoints
"""
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from app.core.container import Container, get_container
from app.models import Channel, RecipientInfo
from app.utils.responses import api_response, error_response
from app.utils.validators import (
    validate_channel,
    validate_identifier,
    validate_name,
    validate_otp_format,
    sanitize,
)

router = APIRouter(prefix="/api/otp", tags=["otp"])


class OtpRequestBody(BaseModel):
    channel: Optional[str] = None
    application_mobile_number: Optional[str] = None
    application_email_address: Optional[str] = None
    applicant_first_name: Optional[str] = None
    applicant_last_name: Optional[str] = None
    locale: Optional[str] = None


class OtpVerifyBody(BaseModel):
    channel: Optional[str] = None
    identifier: Optional[str] = None
    otp: Optional[str] = None


def _recipient_from_request(body: OtpRequestBody, container: Container) -> tuple[str, RecipientInfo]:
    settings = container.settings
    channel = validate_channel(body.channel)
    raw_identifier = body.application_mobile_number if channel == Channel.SMS else body.application_email_address
    identifier = validate_identifier(channel, raw_identifier, settings)
    recipient = RecipientInfo(
        channel=channel,
        first_name=validate_name(body.applicant_first_name, "First name", settings),
        last_name=validate_name(body.applicant_last_name, "Last name", settings),
        locale=sanitize(body.locale, settings) or None,
    )
    return identifier, recipient


def _issued(message: str, identifier: str, code: str, container: Container) -> dict:
    data = {"identifier": identifier, "expires_in": container.settings.OTP_EXPIRY}
    if container.settings.OTP_RETURN_CODE:
        data["otp"] = code
    return api_response(message, data)


@router.post("/generate")
def generate_otp(body: OtpRequestBody, container: Container = Depends(get_container)):
    """
    Issue a new OTP and queue its delivery
    """
    identifier, recipient = _recipient_from_request(body, container)
    code = container.otp_service.generate(identifier, recipient)
    return _issued("OTP sent successfully", identifier, code, container)


@router.post("/verify")
def verify_otp(body: OtpVerifyBody, container: Container = Depends(get_container)):
    """
    Verify a submitted OTP; a verified code cannot be used again
    """
    channel = validate_channel(body.channel)
    identifier = validate_identifier(channel, body.identifier, container.settings)
    otp = validate_otp_format(body.otp, container.settings)
    container.otp_service.verify(identifier, otp)
    return api_response("OTP verified successfully", {"identifier": identifier})


@router.post("/resend")
def resend_otp(body: OtpRequestBody, container: Container = Depends(get_container)):
    """
    Issue a replacement OTP once the resend cooldown has passed
    """
    identifier, recipient = _recipient_from_request(body, container)
    code = container.otp_service.resend(identifier, recipient)
    return _issued("OTP resent successfully", identifier, code, container)


@router.post("/test")
def run_self_test(container: Container = Depends(get_container)):
    """
    Store connection, generation, verification and resend against the live store
    """
    result = container.self_test.run_all()
    if result["failed_test"]:
        return JSONResponse(
            status_code=500,
            content=error_response(f"OTP service test failed: {result['failed_test']}", result),
        )
    return api_response("All OTP service tests passed successfully", result)
