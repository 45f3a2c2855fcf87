# carblock/routers/notifications.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carblock.database import get_db
from carblock.dependencies import get_current_user_id
from carblock.schemas.notification import NotificationOut
from carblock.services import notification_service

router = APIRouter(prefix="/notifications")


@router.get("", response_model=list[NotificationOut], summary="My notifications, newest first")
def list_notifications(
    unread_only: bool = False,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return notification_service.list_notifications(db, user_id, unread_only)


@router.put("/read-all", summary="Mark all notifications read")
def mark_all_read(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    updated = notification_service.mark_all_as_read(db, user_id)
    return {"success": True, "updated": updated}


@router.put("/{notification_id}/read", summary="Mark one notification read")
def mark_read(notification_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    notification_service.mark_as_read(db, notification_id, user_id)
    return {"success": True}
