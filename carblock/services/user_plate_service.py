# carblock/services/user_plate_service.py
"""
Plate ownership store — the user_plates table.
Answers "which plates does user U have" and "who owns plate P right now".
Every write commits immediately. Primary reassignment happens inside a
single transaction with the user's rows locked, so readers never see zero
or two primaries; the partial unique index is the last line of enforcement.
"""

from datetime import time
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from carblock.errors import NotFoundError, ValidationError
from carblock.models.user import _now
from carblock.models.user_plate import UserPlate
from carblock.utils.logger import get_logger

logger = get_logger(__name__)


def _clear_primary(db: Session, user_id: str, except_id: Optional[str] = None):
    stmt = (
        update(UserPlate)
        .where(UserPlate.user_id == user_id, UserPlate.is_primary.is_(True))
        .values(is_primary=False, updated_at=_now())
    )
    if except_id is not None:
        stmt = stmt.where(UserPlate.id != except_id)
    db.execute(stmt)


def create_user_plate(db: Session, user_id: str, plate: str, is_primary: bool = False,
                      departure_time: Optional[time] = None) -> UserPlate:
    """
    Insert a plate for the user, or update the existing (user, plate) row.
    departure_time is merged only when a new value is given.
    `plate` must already be normalized and validated.
    """
    try:
        # Serialise against concurrent primary changes for the same user
        db.query(UserPlate).filter(UserPlate.user_id == user_id).with_for_update().all()

        row = (
            db.query(UserPlate)
            .filter(UserPlate.user_id == user_id, UserPlate.plate == plate)
            .first()
        )
        if is_primary:
            _clear_primary(db, user_id, except_id=row.id if row else None)
            db.flush()

        if row:
            row.is_primary = is_primary
            if departure_time is not None:
                row.departure_time = departure_time
            row.updated_at = _now()
        else:
            row = UserPlate(user_id=user_id, plate=plate, is_primary=is_primary,
                            departure_time=departure_time)
            db.add(row)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"[PLATES] Conflict adding {plate} for user {user_id}: {e.orig}")
        raise ValidationError("This plate could not be saved, please retry")

    db.refresh(row)
    logger.info(f"[PLATES] user={user_id} plate={plate} primary={row.is_primary}")
    return row


def find_by_user(db: Session, user_id: str) -> list[UserPlate]:
    """Primary first, then newest."""
    return (
        db.query(UserPlate)
        .filter(UserPlate.user_id == user_id)
        .order_by(UserPlate.is_primary.desc(), UserPlate.created_at.desc())
        .all()
    )


def find_primary_by_user(db: Session, user_id: str) -> Optional[UserPlate]:
    return (
        db.query(UserPlate)
        .filter(UserPlate.user_id == user_id, UserPlate.is_primary.is_(True))
        .first()
    )


def find_by_plate(db: Session, plate: str) -> list[UserPlate]:
    """All current owners of a plate, matched case/whitespace-insensitively."""
    return (
        db.query(UserPlate)
        .filter(func.upper(func.trim(UserPlate.plate)) == plate.strip().upper())
        .order_by(UserPlate.created_at.asc())
        .all()
    )


def find_by_id(db: Session, plate_id: str) -> Optional[UserPlate]:
    return db.query(UserPlate).filter(UserPlate.id == plate_id).first()


def set_primary(db: Session, plate_id: str, user_id: str) -> UserPlate:
    """Make plate_id the user's only primary plate, atomically."""
    try:
        rows = (
            db.query(UserPlate)
            .filter(UserPlate.user_id == user_id)
            .with_for_update()
            .all()
        )
        target = next((r for r in rows if r.id == plate_id), None)
        if target is None:
            db.rollback()
            raise NotFoundError("User plate not found")

        _clear_primary(db, user_id, except_id=plate_id)
        db.flush()
        db.execute(
            update(UserPlate)
            .where(UserPlate.id == plate_id)
            .values(is_primary=True, updated_at=_now())
        )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"[PLATES] Concurrent primary change for user {user_id}: {e.orig}")
        raise ValidationError("Primary plate is being changed concurrently, please retry")

    db.refresh(target)
    logger.info(f"[PLATES] user={user_id} primary -> {target.plate}")
    return target


def update_departure_time(db: Session, plate_id: str, user_id: str,
                          departure_time: Optional[time]) -> UserPlate:
    row = (
        db.query(UserPlate)
        .filter(UserPlate.id == plate_id, UserPlate.user_id == user_id)
        .first()
    )
    if not row:
        raise NotFoundError("User plate not found")
    row.departure_time = departure_time
    row.updated_at = _now()
    db.commit()
    db.refresh(row)
    return row


def delete_user_plate(db: Session, plate_id: str, user_id: str):
    deleted = (
        db.query(UserPlate)
        .filter(UserPlate.id == plate_id, UserPlate.user_id == user_id)
        .delete(synchronize_session=False)
    )
    if deleted == 0:
        db.rollback()
        raise NotFoundError("User plate not found or you don't have permission to delete it")
    db.commit()
    logger.info(f"[PLATES] user={user_id} deleted plate {plate_id}")
