# carblock/services/notification_service.py
"""
In-app notification inbox.
create_notification() is used by the dispatcher; the rest back the
/notifications endpoints. Always commits immediately.
"""

from typing import Optional

from sqlalchemy.orm import Session

from carblock.errors import NotFoundError
from carblock.models.notification import Notification
from carblock.utils.logger import get_logger

logger = get_logger(__name__)

INBOX_LIMIT = 100


def create_notification(db: Session, user_id: str, type: str, title: str, message: str,
                        data: Optional[dict] = None) -> Notification:
    notification = Notification(user_id=user_id, type=type, title=title,
                                message=message, data=data, read=False)
    db.add(notification)
    db.commit()
    db.refresh(notification)
    logger.info(f"[NOTIFY][{type.upper()}] user={user_id} {message}")
    return notification


def list_notifications(db: Session, user_id: str, unread_only: bool = False) -> list[Notification]:
    q = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        q = q.filter(Notification.read.is_(False))
    return q.order_by(Notification.created_at.desc()).limit(INBOX_LIMIT).all()


def mark_as_read(db: Session, notification_id: str, user_id: str):
    updated = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .update({Notification.read: True}, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        raise NotFoundError("Notification not found")
    db.commit()


def mark_all_as_read(db: Session, user_id: str) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    return updated
