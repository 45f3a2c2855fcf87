# carblock/services/block_service.py
"""
Block lifecycle: none → created → deleted.

Each transition is one synchronous store write. Owner notification and
external delivery happen afterwards (see notification_dispatcher) and can
never fail or undo the write.

create_block steps, in order:
  validate target plate → resolve blocker plate → self-block check →
  duplicate pre-check → persist → departure time → fan-out
"""

from typing import Optional

from sqlalchemy.orm import Session

from carblock.errors import AuthError, NotFoundError, ValidationError
from carblock.models.block import Block
from carblock.schemas.block import BlockWithBlockerInfo, CheckBlockResponse, CreateBlockRequest
from carblock.services import block_store, user_plate_service, user_store
from carblock.services.notification_dispatcher import (
    UNKNOWN_BLOCKER, BlockEvent, notify_block_created, notify_block_deleted,
    resolve_owners, schedule_call,
)
from carblock.services.user_service import get_user_or_404, to_public_info
from carblock.services.validation_service import parse_departure_time, validate_plate
from carblock.utils.encryption import Encryption
from carblock.utils.logger import get_logger

logger = get_logger(__name__)


def _resolve_blocker_plate(db: Session, user_id: str):
    """Primary plate, else the newest one. None if the user has no vehicle."""
    primary = user_plate_service.find_primary_by_user(db, user_id)
    if primary:
        return primary
    plates = user_plate_service.find_by_user(db, user_id)
    return plates[0] if plates else None


def _blocker_name(db: Session, blocker_id: str) -> str:
    blocker = user_store.find_by_id(db, blocker_id)
    return (blocker.name if blocker and blocker.name else None) or UNKNOWN_BLOCKER


def _event(block: Block, blocker_name: str) -> BlockEvent:
    return BlockEvent(
        block_id=block.id,
        blocker_id=block.blocker_id,
        blocker_name=blocker_name,
        blocked_plate=block.blocked_plate,
    )


def _enrich(db: Session, block: Block, encryption: Encryption) -> Optional[BlockWithBlockerInfo]:
    blocker = user_store.find_by_id(db, block.blocker_id)
    if not blocker:
        logger.warning(f"[BLOCK] Block {block.id} refers to missing blocker {block.blocker_id}")
        return None
    return BlockWithBlockerInfo(
        id=block.id,
        blocked_plate=block.blocked_plate,
        created_at=block.created_at,
        blocker=to_public_info(db, blocker, encryption),
        blocker_owner_type=blocker.owner_type,
        blocker_owner_info=blocker.owner_info,
    )


def _merge_newest_first(*groups: list[Block]) -> list[Block]:
    by_id = {}
    for group in groups:
        for block in group:
            by_id.setdefault(block.id, block)
    return sorted(by_id.values(), key=lambda b: b.created_at, reverse=True)


def _authorize(db: Session, block_id: str, requester_id: str, action: str) -> Block:
    block = block_store.find_by_id(db, block_id)
    if not block:
        raise NotFoundError("Block not found")
    if block.blocker_id != requester_id:
        logger.warning(f"[BLOCK] User {requester_id} tried to {action} block {block_id} owned by {block.blocker_id}")
        raise AuthError(f"You can only {action} your own blocks")
    return block


# ── Create / delete ──────────────────────────────────────────────────────────

async def create_block(db: Session, blocker_id: str, req: CreateBlockRequest,
                       encryption: Encryption) -> Block:
    blocked_plate = validate_plate(req.blocked_plate)

    blocker_plate_row = _resolve_blocker_plate(db, blocker_id)
    if blocker_plate_row is None:
        raise ValidationError("Add your vehicle first")
    blocker_plate = blocker_plate_row.plate

    if blocker_plate.strip().upper() == blocked_plate:
        raise ValidationError("You cannot block your own vehicle")

    if block_store.exists(db, blocker_plate, blocked_plate):
        raise ValidationError(block_store.DUPLICATE_BLOCK_MESSAGE)

    block = block_store.create_block(db, blocker_id, blocker_plate, blocked_plate)
    logger.info(f"[BLOCK] {blocker_plate} blocks {blocked_plate} (block={block.id}, user={blocker_id})")

    if req.departure_time:
        try:
            departure = parse_departure_time(req.departure_time)
            user_plate_service.update_departure_time(db, blocker_plate_row.id, blocker_id, departure)
        except (ValidationError, NotFoundError) as e:
            logger.warning(f"[BLOCK] Ignoring departure time {req.departure_time!r}: {e.message}")

    notify_block_created(
        db, _event(block, _blocker_name(db, blocker_id)), encryption,
        notification_method=req.notification_method,
        notify_owner=req.notify_owner,
    )
    return block


async def delete_block(db: Session, block_id: str, requester_id: str):
    block = _authorize(db, block_id, requester_id, "delete")
    # Row attributes are unavailable once the bulk delete runs
    event = _event(block, _blocker_name(db, requester_id))

    block_store.delete_block(db, block_id, requester_id)
    logger.info(f"[BLOCK] Block {block_id} deleted ({event.blocked_plate} unblocked)")

    notify_block_deleted(db, event)


# ── Queries ──────────────────────────────────────────────────────────────────

async def get_my_blocks(db: Session, user_id: str) -> list[Block]:
    """Blocks I created plus blocks created from any plate I own (shared cars)."""
    own = block_store.find_by_blocker_id(db, user_id)
    plates = [p.plate for p in user_plate_service.find_by_user(db, user_id)]
    shared = block_store.find_by_blocker_plates(db, plates)
    return _merge_newest_first(own, shared)


async def get_blocks_for_my_plate(db: Session, user_id: str, encryption: Encryption,
                                  my_plate: Optional[str] = None) -> list[BlockWithBlockerInfo]:
    """Who is blocking me: against one given plate, or across all my plates."""
    if my_plate:
        plates = [validate_plate(my_plate)]
    else:
        plates = [p.plate for p in user_plate_service.find_by_user(db, user_id)]
        if not plates:
            legacy = get_user_or_404(db, user_id).plate
            plates = [legacy] if legacy else []

    blocks = _merge_newest_first(*(block_store.find_by_blocked_plate(db, p) for p in plates))
    result = []
    for block in blocks:
        enriched = _enrich(db, block, encryption)
        if enriched:
            result.append(enriched)
    return result


async def check_block(db: Session, plate: str, encryption: Encryption) -> CheckBlockResponse:
    normalized = validate_plate(plate)
    blocks = block_store.find_by_blocked_plate(db, normalized)
    if not blocks:
        return CheckBlockResponse(is_blocked=False)

    latest = max(blocks, key=lambda b: b.created_at)
    return CheckBlockResponse(is_blocked=True, block=_enrich(db, latest, encryption))


async def warn_owner(db: Session, block_id: str, requester_id: str, encryption: Encryption) -> bool:
    """Call the first owner of the blocked plate that has a usable phone. True if a call was queued."""
    block = _authorize(db, block_id, requester_id, "warn about")
    event = _event(block, _blocker_name(db, requester_id))

    for owner in resolve_owners(db, block.blocked_plate, requester_id):
        if schedule_call(owner, event, encryption):
            return True

    logger.warning(f"[CALL] No callable owner for {block.blocked_plate} (block={block_id})")
    return False
