# carblock/services/notification_dispatcher.py
"""
Notification fan-out for block / unblock events.

For every current owner of the affected plate (except the blocker, once per user):
  1. persist an in-app Notification row (synchronously, so the inbox is
     consistent with the response the blocker gets)
  2. send exactly one external alert on a detached task:
       telegram requested + owner has a handle → Telegram
       otherwise owner has a push token       → push
  3. on create only: place a phone call when the blocker asked for one

Nothing here ever raises into the caller. Detached tasks outlive the
request that spawned them; their failures are logged and not retried.
"""

import asyncio
from dataclasses import dataclass
from typing import Coroutine, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from carblock.models.user import User
from carblock.services import user_plate_service, user_store
from carblock.services.notification_service import create_notification
from carblock.services.push_service import send_push
from carblock.services.telegram_service import send_block_notification
from carblock.services.telephony_service import call_owner, format_block_call_message
from carblock.utils.encryption import Encryption
from carblock.utils.logger import get_logger, mask_phone

logger = get_logger(__name__)

UNKNOWN_BLOCKER = "Unknown"

_pending: set[asyncio.Task] = set()


@dataclass
class BlockEvent:
    """Snapshot of a block taken before fan-out; survives deletion of the row."""
    block_id: str
    blocker_id: str
    blocker_name: str
    blocked_plate: str


# ── Detached task plumbing ───────────────────────────────────────────────────

async def _guarded(coro: Coroutine, description: str):
    try:
        await coro
    except Exception as e:
        logger.warning(f"[FANOUT] {description} failed: {e}", exc_info=True)


def spawn(coro: Coroutine, description: str) -> asyncio.Task:
    """Fire-and-forget: schedule coro, keep a strong ref until it finishes, log failures."""
    task = asyncio.create_task(_guarded(coro, description), name=f"fanout-{description}")
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


async def wait_for_pending(timeout: Optional[float] = None):
    """Let in-flight deliveries finish (used on shutdown and in tests)."""
    if not _pending:
        return
    await asyncio.wait(set(_pending), timeout=timeout)


# ── Owner resolution ─────────────────────────────────────────────────────────

def resolve_owners(db: Session, plate: str, exclude_user_id: str) -> list[User]:
    """Current owners of `plate`, deduplicated by user id, blocker excluded."""
    owners, seen = [], set()
    for user_plate in user_plate_service.find_by_plate(db, plate):
        user_id = user_plate.user_id
        if user_id == exclude_user_id or user_id in seen:
            continue
        seen.add(user_id)
        owner = user_store.find_by_id(db, user_id)
        if owner is None:
            logger.warning(f"[FANOUT] Plate {plate} points at missing user {user_id}")
            continue
        owners.append(owner)
    return owners


def _persist(db: Session, user_id: str, **fields) -> bool:
    try:
        create_notification(db, user_id=user_id, **fields)
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[FANOUT] Failed to store {fields.get('type')} notification for {user_id}: {e}")
        return False


# ── Events ───────────────────────────────────────────────────────────────────

def notify_block_created(db: Session, event: BlockEvent, encryption: Encryption,
                         notification_method: Optional[str] = None,
                         notify_owner: bool = False) -> list[str]:
    """Returns the ids of the owners that were notified."""
    notified = []
    try:
        owners = resolve_owners(db, event.blocked_plate, event.blocker_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[FANOUT] Owner lookup for {event.blocked_plate} failed: {e}")
        return notified

    for owner in owners:
        notified.append(owner.id)
        _persist(
            db, owner.id,
            type="block",
            title="Your car is blocked",
            message=f"Car {event.blocked_plate} is blocked by {event.blocker_name}",
            data={
                "block_id": event.block_id,
                "blocked_plate": event.blocked_plate,
                "blocker_id": event.blocker_id,
                "blocker_name": event.blocker_name,
            },
        )

        if notification_method == "telegram" and owner.telegram:
            spawn(
                send_block_notification(owner.telegram, event.blocked_plate, event.blocker_name),
                f"telegram-{owner.id}",
            )
        elif owner.push_token:
            spawn(
                send_push(
                    owner.push_token,
                    "Your car is blocked",
                    f"{event.blocker_name} blocked {event.blocked_plate}.",
                    {
                        "block_id": event.block_id,
                        "blocked_plate": event.blocked_plate,
                        "blocker_name": event.blocker_name,
                    },
                ),
                f"push-{owner.id}",
            )
        else:
            logger.info(f"[FANOUT] Owner {owner.id} has no external channel, in-app only")

        if notify_owner:
            schedule_call(owner, event, encryption)

    logger.info(f"[FANOUT] block {event.block_id}: {len(notified)} owner(s) notified")
    return notified


def notify_block_deleted(db: Session, event: BlockEvent) -> list[str]:
    notified = []
    try:
        owners = resolve_owners(db, event.blocked_plate, event.blocker_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[FANOUT] Owner lookup for {event.blocked_plate} failed: {e}")
        return notified

    for owner in owners:
        notified.append(owner.id)
        data = {
            "block_id": event.block_id,
            "blocked_plate": event.blocked_plate,
            "blocker_id": event.blocker_id,
            "blocker_name": event.blocker_name,
            "status": "unblocked",
        }
        _persist(
            db, owner.id,
            type="unblock",
            title="Your car is unblocked",
            message=f"Car {event.blocked_plate} was unblocked by {event.blocker_name}",
            data=data,
        )
        if owner.push_token:
            spawn(
                send_push(
                    owner.push_token,
                    "Your car is unblocked",
                    f"{event.blocker_name} no longer blocks {event.blocked_plate}.",
                    {k: v for k, v in data.items() if k != "blocker_id"},
                ),
                f"push-unblock-{owner.id}",
            )

    logger.info(f"[FANOUT] unblock {event.block_id}: {len(notified)} owner(s) notified")
    return notified


def schedule_call(owner: User, event: BlockEvent, encryption: Encryption) -> bool:
    """Queue a call to the owner. False when the owner has no decryptable phone."""
    if not owner.phone_encrypted:
        logger.warning(f"[CALL] User {owner.id} has no phone number for a call")
        return False
    phone = encryption.try_decrypt(owner.phone_encrypted)
    if phone is None:
        logger.warning(f"[CALL] Failed to decrypt phone for user {owner.id}")
        return False

    message = format_block_call_message(event.blocked_plate, event.blocker_name)
    spawn(call_owner(phone, message), f"call-{owner.id}")
    logger.info(f"[CALL] Calling {mask_phone(phone)} about {event.blocked_plate}")
    return True
