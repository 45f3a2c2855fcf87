# carblock/models/user_plate.py
"""
User plates table — every vehicle a user owns or drives.
Source of truth for "who owns plate P now". A plate string may appear
under several users (shared cars); each user has at most one primary row,
enforced by a partial unique index.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Time, ForeignKey, Index, UniqueConstraint
from carblock.database import Base
from carblock.models.user import _uuid_str, _now


class UserPlate(Base):
    __tablename__ = "user_plates"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plate = Column(String(20), nullable=False, index=True)
    is_primary = Column(Boolean, default=False, nullable=False)
    departure_time = Column(Time)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "plate", name="uq_user_plates_user_plate"),
        Index(
            "uq_user_plates_one_primary", "user_id", unique=True,
            postgresql_where=is_primary.is_(True),
            sqlite_where=is_primary.is_(True),
        ),
    )

    def __repr__(self):
        return f"<UserPlate {self.plate} user={self.user_id} primary={self.is_primary}>"
