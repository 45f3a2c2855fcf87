# carblock/schemas/user.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Any


class PublicUserInfo(BaseModel):
    """What other users may see. phone/telegram are None unless show_contacts is on."""
    id: str
    name: Optional[str] = None
    plate: str = ""
    phone: Optional[str] = None
    telegram: Optional[str] = None
    departure_time: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    name: Optional[str] = None
    phone: Optional[str] = None
    telegram: Optional[str] = None
    plate: str = ""
    show_contacts: bool
    owner_type: Optional[str] = None
    owner_info: Optional[Any] = None
    departure_time: Optional[str] = None
    push_token: Optional[str] = None
    created_at: datetime


class UpdateUserRequest(BaseModel):
    """Omitted fields are left untouched; "" clears name/telegram/departure_time."""
    name: Optional[str] = None
    phone: Optional[str] = None
    telegram: Optional[str] = None
    plate: Optional[str] = None
    show_contacts: Optional[bool] = None
    owner_type: Optional[str] = None
    owner_info: Optional[Any] = None
    departure_time: Optional[str] = None
    push_token: Optional[str] = None


class PushTokenRequest(BaseModel):
    push_token: str
