# carblock/services/token_service.py
"""
Session tokens — HS256 JWTs carrying sub (user id), iat and exp.
refresh_token() accepts an expired token as long as it is not older than
its lifetime plus JWT_REFRESH_GRACE_MINUTES.
"""

import time

import jwt

from carblock.config import settings
from carblock.errors import AuthError
from carblock.utils.logger import get_logger

logger = get_logger(__name__)

ALGORITHM = "HS256"


def issue_token(user_id: str) -> str:
    now = int(time.time())
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + settings.JWT_EXPIRATION_MINUTES * 60,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGORITHM)


def _decode(token: str, verify_exp: bool = True) -> dict:
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[ALGORITHM],
        options={"verify_exp": verify_exp, "require": ["sub", "iat", "exp"]},
    )


def verify_token(token: str) -> str:
    """Returns the user id, or raises AuthError."""
    if not token:
        raise AuthError("Missing token")
    try:
        claims = _decode(token)
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"[AUTH] Rejected token: {e}")
        raise AuthError("Invalid token")
    return claims["sub"]


def refresh_token(token: str) -> tuple[str, str]:
    """Re-issue a token that is valid or expired within the grace window. Returns (token, user_id)."""
    if not token:
        raise AuthError("Missing token")
    try:
        claims = _decode(token, verify_exp=False)
    except jwt.InvalidTokenError as e:
        logger.debug(f"[AUTH] Rejected refresh token: {e}")
        raise AuthError("Invalid token")

    max_age = (settings.JWT_EXPIRATION_MINUTES + settings.JWT_REFRESH_GRACE_MINUTES) * 60
    if time.time() - claims["iat"] > max_age:
        raise AuthError("Token too old to refresh, please log in again")

    user_id = claims["sub"]
    logger.info(f"[AUTH] Refreshed token for user {user_id}")
    return issue_token(user_id), user_id
