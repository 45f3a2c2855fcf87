# carblock/schemas/user_plate.py
from pydantic import BaseModel, field_serializer
from datetime import datetime, time
from typing import Optional


class CreateUserPlateRequest(BaseModel):
    plate: str
    is_primary: bool = False
    departure_time: Optional[str] = None     # "HH:MM"


class UpdateUserPlateRequest(BaseModel):
    departure_time: Optional[str] = None     # "HH:MM"; null clears it


class UserPlateOut(BaseModel):
    id: str
    user_id: str
    plate: str
    is_primary: bool
    departure_time: Optional[time]
    created_at: datetime
    updated_at: datetime

    @field_serializer("departure_time")
    def _hh_mm(self, value: Optional[time]) -> Optional[str]:
        return value.strftime("%H:%M") if value else None

    class Config:
        from_attributes = True
