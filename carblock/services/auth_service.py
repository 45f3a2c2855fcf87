# carblock/services/auth_service.py
"""
Phone + one-time code login.

start_auth   → store a fresh code, SMS it (best-effort), echo it back in dev mode
verify_auth  → check the code, find-or-create the user, reconcile plates, issue a token
refresh      → re-issue a token inside the grace window
"""

import secrets

from sqlalchemy.orm import Session

from carblock.config import settings
from carblock.errors import AuthError, DeliveryError
from carblock.schemas.auth import AuthStartResponse, TokenResponse
from carblock.services import token_service, user_store
from carblock.services.otp_store import OtpStore
from carblock.services.plate_reconciliation import reconcile_user_plate
from carblock.services.sms_service import send_sms
from carblock.services.validation_service import validate_phone
from carblock.utils.encryption import Encryption, phone_hash
from carblock.utils.logger import get_logger, mask_phone

logger = get_logger(__name__)


def generate_code(length: int) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


async def start_auth(phone: str, otp_store: OtpStore) -> AuthStartResponse:
    normalized = validate_phone(phone)
    code = generate_code(settings.SMS_CODE_LENGTH)
    ttl = settings.SMS_CODE_TTL_SECONDS
    otp_store.put(normalized, code, ttl)

    try:
        await send_sms(normalized, code)
    except DeliveryError as e:
        logger.error(f"[AUTH] SMS to {mask_phone(normalized)} failed: {e}")

    logger.info(f"[AUTH] Code issued for {mask_phone(normalized)}")
    echoed = code if settings.RETURN_SMS_CODE_IN_RESPONSE else ""
    return AuthStartResponse(code=echoed, expires_in=ttl)


async def verify_auth(db: Session, phone: str, code: str, otp_store: OtpStore,
                      encryption: Encryption) -> TokenResponse:
    normalized = validate_phone(phone)
    if not otp_store.check(normalized, code.strip()):
        logger.warning(f"[AUTH] Wrong or expired code for {mask_phone(normalized)}")
        raise AuthError("Invalid or expired code")

    hashed = phone_hash(normalized)
    user = user_store.find_by_phone_hash(db, hashed)
    if user is None:
        user = user_store.create_user(db, encryption.encrypt(normalized), hashed)
        logger.info(f"[AUTH] First login for {mask_phone(normalized)} → user {user.id}")

    reconcile_user_plate(db, user)
    otp_store.remove(normalized)

    return TokenResponse(token=token_service.issue_token(user.id), user_id=user.id)


async def refresh(token: str) -> TokenResponse:
    new_token, user_id = token_service.refresh_token(token)
    return TokenResponse(token=new_token, user_id=user_id)
