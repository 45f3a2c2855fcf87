# carblock/models/user.py
"""
Users table — identity anchor.
Phone is stored encrypted; phone_hash is the unique lookup key.
`plate` and `departure_time` are legacy single-vehicle fields kept in sync
with the primary row in user_plates (see plate_reconciliation).
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Boolean, Time, Text, JSON, Index
from carblock.database import Base


def _uuid_str():
    return str(uuid.uuid4())


def _now():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    phone_encrypted = Column(Text)
    phone_hash = Column(String(64))
    name = Column(String(100))
    telegram = Column(String(64))
    plate = Column(String(20))                  # legacy, mirrors primary user_plate
    show_contacts = Column(Boolean, default=True, nullable=False)
    owner_type = Column(String(20), default="renter")   # owner | renter
    owner_info = Column(JSON)                   # actual vehicle owner, renters only
    departure_time = Column(Time)
    push_token = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    __table_args__ = (
        Index(
            "idx_users_phone_hash_unique", "phone_hash", unique=True,
            postgresql_where=phone_hash.isnot(None),
            sqlite_where=phone_hash.isnot(None),
        ),
    )

    def __repr__(self):
        return f"<User {self.id} plate={self.plate}>"
