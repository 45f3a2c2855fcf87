# carblock/routers/blocks.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carblock.database import get_db
from carblock.dependencies import get_current_user_id, get_encryption
from carblock.schemas.block import BlockOut, BlockWithBlockerInfo, CheckBlockResponse, CreateBlockRequest
from carblock.services import block_service
from carblock.utils.encryption import Encryption

router = APIRouter(prefix="/blocks")


@router.post("", response_model=BlockOut, summary="Report that my car blocks another one")
async def create_block(
    body: CreateBlockRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    encryption: Encryption = Depends(get_encryption),
):
    """Owners of the blocked plate are notified in the background."""
    return await block_service.create_block(db, user_id, body, encryption)


@router.get("", response_model=list[BlockOut], summary="Blocks created by me or by my plates")
async def get_my_blocks(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return await block_service.get_my_blocks(db, user_id)


@router.get("/my", response_model=list[BlockWithBlockerInfo], summary="Who is blocking my car")
async def get_blocks_for_my_plate(
    my_plate: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    encryption: Encryption = Depends(get_encryption),
):
    return await block_service.get_blocks_for_my_plate(db, user_id, encryption, my_plate)


@router.get("/check", response_model=CheckBlockResponse, summary="Is this plate blocked? (no login)")
async def check_block(
    plate: str,
    db: Session = Depends(get_db),
    encryption: Encryption = Depends(get_encryption),
):
    return await block_service.check_block(db, plate, encryption)


@router.post("/{block_id}/warn-owner", summary="Call the blocked car's owner")
async def warn_owner(
    block_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    encryption: Encryption = Depends(get_encryption),
):
    called = await block_service.warn_owner(db, block_id, user_id, encryption)
    return {"success": True, "call_scheduled": called}


@router.delete("/{block_id}", summary="Remove my block")
async def delete_block(block_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    await block_service.delete_block(db, block_id, user_id)
    return {"success": True}
