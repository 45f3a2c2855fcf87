# carblock/services/block_store.py
"""
Block store — the blocks table.
The unique index on (blocker_plate, blocked_plate) is the authority on
duplicates; exists() is only a fast pre-check for a friendly message.
"""

from typing import Optional

from sqlalchemy import exists as sql_exists, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from carblock.errors import NotFoundError, ValidationError
from carblock.models.block import Block
from carblock.utils.logger import get_logger

logger = get_logger(__name__)

DUPLICATE_BLOCK_MESSAGE = "This block already exists"


def _norm(column):
    return func.upper(func.trim(column))


def create_block(db: Session, blocker_id: str, blocker_plate: str, blocked_plate: str) -> Block:
    block = Block(blocker_id=blocker_id, blocker_plate=blocker_plate, blocked_plate=blocked_plate)
    db.add(block)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(
            f"[BLOCK] Unique constraint rejected {blocker_plate} -> {blocked_plate}: {e.orig}"
        )
        raise ValidationError(DUPLICATE_BLOCK_MESSAGE)
    db.refresh(block)
    return block


def find_by_blocker_id(db: Session, blocker_id: str) -> list[Block]:
    return (
        db.query(Block)
        .filter(Block.blocker_id == blocker_id)
        .order_by(Block.created_at.desc())
        .all()
    )


def find_by_blocker_plates(db: Session, plates: list[str]) -> list[Block]:
    """Blocks created from any of the given plates (shared-car owners see each other's blocks)."""
    if not plates:
        return []
    normalized = [p.strip().upper() for p in plates]
    return (
        db.query(Block)
        .filter(_norm(Block.blocker_plate).in_(normalized))
        .order_by(Block.created_at.desc())
        .all()
    )


def find_by_blocked_plate(db: Session, blocked_plate: str) -> list[Block]:
    return (
        db.query(Block)
        .filter(_norm(Block.blocked_plate) == blocked_plate.strip().upper())
        .order_by(Block.created_at.desc())
        .all()
    )


def find_by_id(db: Session, block_id: str) -> Optional[Block]:
    return db.query(Block).filter(Block.id == block_id).first()


def delete_block(db: Session, block_id: str, blocker_id: str):
    deleted = (
        db.query(Block)
        .filter(Block.id == block_id, Block.blocker_id == blocker_id)
        .delete(synchronize_session=False)
    )
    if deleted == 0:
        db.rollback()
        raise NotFoundError("Block not found or you don't have permission to delete it")
    db.commit()


def exists(db: Session, blocker_plate: str, blocked_plate: str) -> bool:
    return db.query(
        sql_exists().where(
            _norm(Block.blocker_plate) == blocker_plate.strip().upper(),
            _norm(Block.blocked_plate) == blocked_plate.strip().upper(),
        )
    ).scalar()
