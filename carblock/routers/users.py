# carblock/routers/users.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carblock.database import get_db
from carblock.dependencies import get_current_user_id, get_encryption
from carblock.schemas.user import PublicUserInfo, PushTokenRequest, UpdateUserRequest, UserResponse
from carblock.services import user_service
from carblock.utils.encryption import Encryption

router = APIRouter(prefix="/users")


@router.get("/me", response_model=UserResponse, summary="Current user's profile")
async def get_me(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    encryption: Encryption = Depends(get_encryption),
):
    return await user_service.get_profile(db, user_id, encryption)


@router.put("/me", response_model=UserResponse, summary="Update profile")
async def update_me(
    body: UpdateUserRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    encryption: Encryption = Depends(get_encryption),
):
    return await user_service.update_profile(db, user_id, body, encryption)


@router.post("/push-token", summary="Register the device push token")
async def register_push_token(
    body: PushTokenRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    await user_service.register_push_token(db, user_id, body.push_token)
    return {"success": True}


@router.get("/by-plate", response_model=PublicUserInfo, summary="Public info of a plate's owner")
async def get_by_plate(
    plate: str,
    _: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    encryption: Encryption = Depends(get_encryption),
):
    return await user_service.get_user_by_plate(db, plate, encryption)
