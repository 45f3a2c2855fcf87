# carblock/schemas/block.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Literal, Any

from carblock.schemas.user import PublicUserInfo


class CreateBlockRequest(BaseModel):
    blocked_plate: str
    notify_owner: bool = False                  # place a phone call to the owner
    departure_time: Optional[str] = None        # "HH:MM", attached to blocker's primary plate
    notification_method: Optional[Literal["android_push", "telegram"]] = None


class BlockOut(BaseModel):
    id: str
    blocker_id: str
    blocker_plate: str
    blocked_plate: str
    created_at: datetime

    class Config:
        from_attributes = True


class BlockWithBlockerInfo(BaseModel):
    id: str
    blocked_plate: str
    created_at: datetime
    blocker: PublicUserInfo
    blocker_owner_type: Optional[str] = None
    blocker_owner_info: Optional[Any] = None


class CheckBlockResponse(BaseModel):
    is_blocked: bool
    block: Optional[BlockWithBlockerInfo] = None
