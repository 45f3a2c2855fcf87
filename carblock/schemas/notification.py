# carblock/schemas/notification.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Any


class NotificationOut(BaseModel):
    id: str
    type: str
    title: str
    message: str
    data: Optional[Any]
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True
