# carblock/dependencies.py
"""Shared FastAPI dependency providers: crypto, OTP store, current user."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from carblock.config import settings
from carblock.errors import AuthError
from carblock.services.otp_store import InMemoryOtpStore, OtpStore
from carblock.services.token_service import verify_token
from carblock.utils.encryption import Encryption

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_encryption() -> Encryption:
    return Encryption(settings.ENCRYPTION_KEY)


@lru_cache
def get_otp_store() -> OtpStore:
    return InMemoryOtpStore()


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthError("Missing token")
    return verify_token(credentials.credentials)
