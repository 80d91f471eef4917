"""
Email API Routes
Transactional email endpoints (verification, password reset, friend invitation)
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from lumi.core.config import EmailSettings, get_email_settings
from lumi.services.mailer import (
    EmailDeliveryError,
    OutgoingEmail,
    build_friend_invitation_email,
    build_password_reset_email,
    build_verification_email,
    is_header_safe,
    is_valid_address,
    send_email,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Email"])


# ==================== REQUEST MODELS ====================

class AccountEmailRequest(BaseModel):
    """Body for verification and password reset emails"""
    email: Optional[str] = None
    name: Optional[str] = None
    token: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "email": "ada@example.com",
                "name": "Ada",
                "token": "b7c1d2e3"
            }
        }


class FriendInvitationRequest(BaseModel):
    email: Optional[str] = None
    inviter_name: Optional[str] = Field(default=None, alias="inviterName")
    token: Optional[str] = None

    class Config:
        populate_by_name = True


class TestEmailRequest(BaseModel):
    email: Optional[str] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _rejected_fields(email: str, *header_values: Optional[str]) -> Optional[JSONResponse]:
    """400 response for values that cannot go into message headers, else None"""
    if not is_valid_address(email):
        return _error(400, "Invalid email address")
    if not all(is_header_safe(v) for v in header_values):
        return _error(400, "Invalid field value")
    return None


async def _deliver(settings: EmailSettings, message: OutgoingEmail, label: str):
    """Send and map the outcome to the endpoint response"""
    try:
        await send_email(settings, message)
    except EmailDeliveryError as e:
        logger.error(f"❌ Send {label} error: {e}")
        return _error(500, f"Failed to send {label}")

    return {"success": True, "message": f"{label[0].upper()}{label[1:]} sent successfully"}


# ==================== ENDPOINTS ====================

@router.post("/send-verification", summary="Send verification email")
async def send_verification(
    payload: Optional[AccountEmailRequest] = Body(default=None),
    settings: EmailSettings = Depends(get_email_settings)
):
    if not payload or not (payload.email and payload.name and payload.token):
        return _error(400, "Missing required fields")
    rejected = _rejected_fields(payload.email, payload.name)
    if rejected:
        return rejected

    message = build_verification_email(settings, payload.email, payload.name, payload.token)
    return await _deliver(settings, message, "verification email")


@router.post("/send-password-reset", summary="Send password reset email")
async def send_password_reset(
    payload: Optional[AccountEmailRequest] = Body(default=None),
    settings: EmailSettings = Depends(get_email_settings)
):
    if not payload or not (payload.email and payload.name and payload.token):
        return _error(400, "Missing required fields")
    rejected = _rejected_fields(payload.email, payload.name)
    if rejected:
        return rejected

    message = build_password_reset_email(settings, payload.email, payload.name, payload.token)
    return await _deliver(settings, message, "password reset email")


@router.post("/send-friend-invitation", summary="Send friend invitation email")
async def send_friend_invitation(
    payload: Optional[FriendInvitationRequest] = Body(default=None),
    settings: EmailSettings = Depends(get_email_settings)
):
    if not payload or not (payload.email and payload.inviter_name and payload.token):
        return _error(400, "Missing required fields")
    rejected = _rejected_fields(payload.email, payload.inviter_name)
    if rejected:
        return rejected

    message = build_friend_invitation_email(
        settings, payload.email, payload.inviter_name, payload.token
    )
    return await _deliver(settings, message, "friend invitation")


@router.post("/test-email", summary="Send a test email")
async def send_test_email(
    payload: Optional[TestEmailRequest] = Body(default=None),
    settings: EmailSettings = Depends(get_email_settings)
):
    """Sends the verification template addressed to "Test User" """
    if not payload or not payload.email:
        return _error(400, "Email is required")
    rejected = _rejected_fields(payload.email)
    if rejected:
        return rejected

    message = build_verification_email(
        settings,
        payload.email,
        "Test User",
        "test-token",
        subject=f"Test Email - {settings.app_name}",
        sender_name=f"{settings.app_name} Test",
    )
    return await _deliver(settings, message, "test email")


@router.get("/health", summary="Email service health")
async def email_health(settings: EmailSettings = Depends(get_email_settings)):
    return {
        "status": "OK",
        "service": "Email Service",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "port": settings.email_server_port,
    }
