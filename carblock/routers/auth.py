# carblock/routers/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carblock.database import get_db
from carblock.dependencies import get_encryption, get_otp_store
from carblock.schemas.auth import (
    AuthStartRequest, AuthStartResponse, AuthVerifyRequest, RefreshTokenRequest, TokenResponse,
)
from carblock.services import auth_service
from carblock.services.otp_store import OtpStore
from carblock.utils.encryption import Encryption

router = APIRouter(prefix="/auth")


@router.post("/start", response_model=AuthStartResponse, summary="Send a login code to a phone")
async def start(body: AuthStartRequest, otp_store: OtpStore = Depends(get_otp_store)):
    return await auth_service.start_auth(body.phone, otp_store)


@router.post("/verify", response_model=TokenResponse, summary="Exchange phone + code for a token")
async def verify(
    body: AuthVerifyRequest,
    db: Session = Depends(get_db),
    otp_store: OtpStore = Depends(get_otp_store),
    encryption: Encryption = Depends(get_encryption),
):
    """Creates the account on first login."""
    return await auth_service.verify_auth(db, body.phone, body.code, otp_store, encryption)


@router.post("/refresh", response_model=TokenResponse, summary="Re-issue a token")
async def refresh(body: RefreshTokenRequest):
    return await auth_service.refresh(body.token)
