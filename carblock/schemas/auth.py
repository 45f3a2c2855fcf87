# carblock/schemas/auth.py
from pydantic import BaseModel


class AuthStartRequest(BaseModel):
    phone: str


class AuthStartResponse(BaseModel):
    code: str            # empty unless RETURN_SMS_CODE_IN_RESPONSE is on
    expires_in: int      # seconds


class AuthVerifyRequest(BaseModel):
    phone: str
    code: str


class TokenResponse(BaseModel):
    token: str
    user_id: str


class RefreshTokenRequest(BaseModel):
    token: str
