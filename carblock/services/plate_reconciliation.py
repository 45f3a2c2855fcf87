# carblock/services/plate_reconciliation.py
"""
Keeps the legacy users.plate column and the user_plates table in step.
user_plates is the source of truth; the legacy column mirrors its primary.
Runs on login and on profile read. Idempotent; failures never abort the caller.
"""

from sqlalchemy.exc import SQLAlchemyError

from carblock.errors import AppError
from carblock.models.user import User, _now
from carblock.services import user_plate_service
from carblock.utils.logger import get_logger
from carblock.utils.plate import normalize_plate, validate_plate

logger = get_logger(__name__)


def reconcile_user_plate(db, user: User) -> User:
    try:
        primary = user_plate_service.find_primary_by_user(db, user.id)
        if primary is not None:
            if primary.plate != user.plate:
                logger.info(f"[RECONCILE] user={user.id} plate {user.plate!r} -> {primary.plate}")
                user.plate = primary.plate
                user.updated_at = _now()
                db.commit()
                db.refresh(user)
            return user

        legacy = normalize_plate(user.plate or "")
        if legacy and validate_plate(legacy):
            logger.info(f"[RECONCILE] user={user.id} migrating legacy plate {legacy}")
            user_plate_service.create_user_plate(
                db, user.id, legacy, is_primary=True, departure_time=user.departure_time
            )
    except (SQLAlchemyError, AppError) as e:
        db.rollback()
        logger.warning(f"[RECONCILE] Failed for user {user.id}: {e}")
    return user
