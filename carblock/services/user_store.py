# carblock/services/user_store.py
"""
User store — lookups by id and by phone hash, creation on first login,
field updates. Merge rules for profile edits live in user_service.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from carblock.errors import InternalError, ValidationError
from carblock.models.user import User, _now
from carblock.utils.logger import get_logger

logger = get_logger(__name__)

PHONE_TAKEN_MESSAGE = "This phone number is already used by another account"

_UPDATABLE = {
    "name", "phone_encrypted", "phone_hash", "telegram", "plate", "show_contacts",
    "owner_type", "owner_info", "departure_time", "push_token",
}


def find_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def find_by_phone_hash(db: Session, phone_hash: str) -> Optional[User]:
    return db.query(User).filter(User.phone_hash == phone_hash).first()


def create_user(db: Session, phone_encrypted: str, phone_hash: str) -> User:
    """New users start without a plate, as renters, with contacts visible."""
    user = User(phone_encrypted=phone_encrypted, phone_hash=phone_hash,
                plate=None, show_contacts=True, owner_type="renter")
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Two first-logins for the same phone raced; the other one won
        db.rollback()
        existing = find_by_phone_hash(db, phone_hash)
        if existing is None:
            raise InternalError("User insert rejected but no user holds the phone hash")
        return existing
    db.refresh(user)
    logger.info(f"[USERS] Created user {user.id}")
    return user


def update_user(db: Session, user: User, **changes) -> User:
    unknown = set(changes) - _UPDATABLE
    if unknown:
        raise ValueError(f"Unknown user fields: {sorted(unknown)}")
    for field, value in changes.items():
        setattr(user, field, value)
    user.updated_at = _now()
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"[USERS] Update rejected for {user.id}: {e.orig}")
        raise ValidationError(PHONE_TAKEN_MESSAGE)
    db.refresh(user)
    return user
