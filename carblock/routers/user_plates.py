# carblock/routers/user_plates.py
"""A user's vehicles. At most one is primary; it is mirrored into users.plate."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carblock.database import get_db
from carblock.dependencies import get_current_user_id
from carblock.models.user import _now
from carblock.schemas.user_plate import CreateUserPlateRequest, UpdateUserPlateRequest, UserPlateOut
from carblock.services import user_plate_service, user_store
from carblock.services.validation_service import parse_departure_time, validate_plate

router = APIRouter(prefix="/user-plates")


def _mirror_primary(db: Session, user_id: str, plate: Optional[str]):
    user = user_store.find_by_id(db, user_id)
    if user and user.plate != plate:
        user.plate = plate
        user.updated_at = _now()
        db.commit()


@router.get("", response_model=list[UserPlateOut], summary="List my plates (primary first)")
def list_plates(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return user_plate_service.find_by_user(db, user_id)


@router.post("", response_model=UserPlateOut, summary="Add a plate")
def add_plate(
    body: CreateUserPlateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    plate = validate_plate(body.plate)
    departure = parse_departure_time(body.departure_time)
    row = user_plate_service.create_user_plate(db, user_id, plate, body.is_primary, departure)
    if row.is_primary:
        _mirror_primary(db, user_id, row.plate)
    return row


@router.post("/{plate_id}/primary", response_model=UserPlateOut, summary="Make a plate primary")
def set_primary(plate_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    row = user_plate_service.set_primary(db, plate_id, user_id)
    _mirror_primary(db, user_id, row.plate)
    return row


@router.post("/{plate_id}", response_model=UserPlateOut, summary="Update a plate's departure time")
def update_plate(
    plate_id: str,
    body: UpdateUserPlateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    departure = parse_departure_time(body.departure_time)
    return user_plate_service.update_departure_time(db, plate_id, user_id, departure)


@router.delete("/{plate_id}", summary="Remove a plate")
def delete_plate(plate_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Removing the primary promotes the next plate, or clears users.plate when none is left."""
    row = user_plate_service.find_by_id(db, plate_id)
    was_primary = bool(row and row.user_id == user_id and row.is_primary)

    user_plate_service.delete_user_plate(db, plate_id, user_id)

    if was_primary:
        remaining = user_plate_service.find_by_user(db, user_id)
        if remaining:
            row = user_plate_service.set_primary(db, remaining[0].id, user_id)
            _mirror_primary(db, user_id, row.plate)
        else:
            _mirror_primary(db, user_id, None)
    return {"success": True}
