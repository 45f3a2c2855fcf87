# carblock/models/notification.py
"""
Notifications table — in-app inbox.
Written by the notification dispatcher on block / unblock; only the
`read` flag is ever mutated afterwards.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Text, JSON, ForeignKey, Index
from carblock.database import Base
from carblock.models.user import _uuid_str, _now


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(50), nullable=False)        # block | unblock
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)

    __table_args__ = (
        Index("idx_notifications_user_read", "user_id", "read", "created_at"),
    )

    def __repr__(self):
        return f"<Notification {self.id} type={self.type} read={self.read}>"
