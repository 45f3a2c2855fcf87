# carblock/services/user_service.py
"""
Profile read/update, public lookup by plate, push token registration.
Also builds the public view of a user that other people (blockers,
blocked owners, anonymous plate checks) are allowed to see.
"""

from typing import Optional

from sqlalchemy.orm import Session

from carblock.errors import NotFoundError, ValidationError
from carblock.models.user import User
from carblock.schemas.user import PublicUserInfo, UpdateUserRequest, UserResponse
from carblock.services import user_plate_service, user_store
from carblock.services.plate_reconciliation import reconcile_user_plate
from carblock.services.validation_service import (
    format_time, parse_departure_time, validate_phone, validate_plate,
)
from carblock.utils.encryption import Encryption, phone_hash
from carblock.utils.logger import get_logger

logger = get_logger(__name__)

NAME_MAX_LENGTH = 20
TELEGRAM_MAX_LENGTH = 32
OWNER_TYPES = ("owner", "renter")


def get_user_or_404(db: Session, user_id: str) -> User:
    user = user_store.find_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def _decrypt_phone(user: User, encryption: Encryption) -> Optional[str]:
    phone = encryption.try_decrypt(user.phone_encrypted)
    if user.phone_encrypted and phone is None:
        logger.warning(f"[USERS] Could not decrypt phone for user {user.id}")
    return phone


def to_public_info(db: Session, user: User, encryption: Encryption) -> PublicUserInfo:
    """Contacts (phone, telegram) are included only when the user opted in."""
    primary = user_plate_service.find_primary_by_user(db, user.id)
    plate = primary.plate if primary else (user.plate or "")
    departure = primary.departure_time if primary and primary.departure_time else user.departure_time

    info = PublicUserInfo(
        id=user.id,
        name=user.name,
        plate=plate,
        departure_time=format_time(departure),
    )
    if user.show_contacts:
        info.phone = _decrypt_phone(user, encryption)
        info.telegram = user.telegram
    return info


def to_user_response(user: User, encryption: Encryption) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        phone=_decrypt_phone(user, encryption),
        telegram=user.telegram,
        plate=user.plate or "",
        show_contacts=user.show_contacts,
        owner_type=user.owner_type,
        owner_info=user.owner_info,
        departure_time=format_time(user.departure_time),
        push_token=user.push_token,
        created_at=user.created_at,
    )


async def get_profile(db: Session, user_id: str, encryption: Encryption) -> UserResponse:
    user = get_user_or_404(db, user_id)
    user = reconcile_user_plate(db, user)
    return to_user_response(user, encryption)


async def update_profile(db: Session, user_id: str, req: UpdateUserRequest,
                         encryption: Encryption) -> UserResponse:
    """
    Apply only the fields present in the request.
    - name: 1-20 chars, "" clears
    - phone: normalized, re-encrypted and re-hashed, "" is ignored
    - telegram: leading @ dropped, lowercased, at most 32 chars, "" clears
    - plate: becomes the primary user_plates row, "" is ignored
    - owner_type: owner | renter; owner_info is dropped for owners
    - departure_time: HH:MM, "" clears; mirrored onto the primary plate
    """
    user = get_user_or_404(db, user_id)
    fields = req.model_dump(exclude_unset=True)
    changes = {}

    if "name" in fields and fields["name"] is not None:
        name = fields["name"].strip()
        if len(name) > NAME_MAX_LENGTH:
            raise ValidationError(f"Name must be at most {NAME_MAX_LENGTH} characters")
        changes["name"] = name or None

    if fields.get("phone"):
        phone = validate_phone(fields["phone"])
        hashed = phone_hash(phone)
        holder = user_store.find_by_phone_hash(db, hashed)
        if holder is not None and holder.id != user.id:
            raise ValidationError(user_store.PHONE_TAKEN_MESSAGE)
        changes["phone_encrypted"] = encryption.encrypt(phone)
        changes["phone_hash"] = hashed

    if "telegram" in fields and fields["telegram"] is not None:
        telegram = fields["telegram"].strip().lstrip("@").lower()
        if len(telegram) > TELEGRAM_MAX_LENGTH:
            raise ValidationError(f"Telegram username must be at most {TELEGRAM_MAX_LENGTH} characters")
        changes["telegram"] = telegram or None

    new_plate = None
    if fields.get("plate"):
        new_plate = validate_plate(fields["plate"])
        changes["plate"] = new_plate

    if fields.get("show_contacts") is not None:
        changes["show_contacts"] = fields["show_contacts"]

    owner_type = fields.get("owner_type")
    if owner_type is not None:
        if owner_type not in OWNER_TYPES:
            raise ValidationError("owner_type must be 'owner' or 'renter'")
        changes["owner_type"] = owner_type
    if "owner_info" in fields:
        changes["owner_info"] = fields["owner_info"]
    if changes.get("owner_type", user.owner_type) == "owner":
        changes["owner_info"] = None

    departure_set = "departure_time" in fields
    departure = parse_departure_time(fields.get("departure_time")) if departure_set else None
    if departure_set:
        changes["departure_time"] = departure

    if fields.get("push_token"):
        changes["push_token"] = fields["push_token"]

    # Validation is complete, only writes from here on
    if new_plate:
        row = user_plate_service.create_user_plate(
            db, user.id, new_plate, is_primary=True, departure_time=departure
        )
        if departure_set and departure is None:
            user_plate_service.update_departure_time(db, row.id, user.id, None)
    elif departure_set:
        primary = user_plate_service.find_primary_by_user(db, user.id)
        if primary:
            user_plate_service.update_departure_time(db, primary.id, user.id, departure)

    user = user_store.update_user(db, user, **changes)
    logger.info(f"[USERS] Updated profile {user.id}: {sorted(changes)}")
    return to_user_response(user, encryption)


async def get_user_by_plate(db: Session, plate: str, encryption: Encryption) -> PublicUserInfo:
    normalized = validate_plate(plate)
    owners = user_plate_service.find_by_plate(db, normalized)
    for owner_plate in owners:
        user = user_store.find_by_id(db, owner_plate.user_id)
        if user:
            return to_public_info(db, user, encryption)
    raise NotFoundError("No user found with this plate")


async def register_push_token(db: Session, user_id: str, push_token: str):
    if not push_token or not push_token.strip():
        raise ValidationError("Push token must not be empty")
    user = get_user_or_404(db, user_id)
    user_store.update_user(db, user, push_token=push_token.strip())
    logger.info(f"[USERS] Push token registered for {user_id}")
