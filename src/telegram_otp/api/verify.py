"""OTP verification endpoint — redeems a code issued by the bot.

Endpoints
---------
POST /api/verify-otp   → exchange a 6-digit code for the Telegram identity
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from telegram_otp.api.dependencies import get_otp_service
from telegram_otp.models.records import TelegramUser
from telegram_otp.services.otp import FailureReason, OTPService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["otp"])

GENERIC_FAILURE = "Invalid or expired code"


# ── Response models ──────────────────────────────────────

class VerifyOTPResponse(BaseModel):
    success: bool
    user: TelegramUser | None = None
    message: str | None = None


def _failure(status_code: int, message: str) -> JSONResponse:
    body = VerifyOTPResponse(success=False, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# ── Endpoints ────────────────────────────────────────────

@router.post("/verify-otp", response_model=VerifyOTPResponse, response_model_exclude_none=True)
async def verify_otp(request: Request, otp_service: OTPService = Depends(get_otp_service)):
    """Validate and consume an OTP code.

    Not-found, expired and internal failures share one message so callers
    cannot tell them apart.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _failure(400, "Invalid JSON in request body")

    code = body.get("code") if isinstance(body, dict) else None
    if not code or not isinstance(code, str):
        return _failure(400, "OTP code is required")

    result = await otp_service.verify(code)

    if result.ok:
        return VerifyOTPResponse(success=True, user=result.user)
    if result.reason is FailureReason.INVALID_FORMAT:
        return _failure(400, "Invalid OTP format. Must be 6 digits.")
    if result.reason is FailureReason.INTERNAL_ERROR:
        return _failure(500, GENERIC_FAILURE)
    return _failure(400, GENERIC_FAILURE)
