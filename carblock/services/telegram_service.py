# carblock/services/telegram_service.py
"""
Telegram Bot API sender.
Messages are addressed by @username, which only works once the user has
started a chat with the bot; a non-200 reply is therefore logged, not raised.
"""

import httpx
from carblock.config import settings
from carblock.errors import DeliveryError
from carblock.utils.logger import get_logger
from carblock.utils.plate import format_plate

logger = get_logger(__name__)


def format_block_message(blocked_plate: str, blocker_name: str) -> str:
    return (
        f"🚗 Your car {format_plate(blocked_plate)} is blocked\n\n"
        f"👤 Blocked by: {blocker_name}\n\n"
        f"📱 Open the app for details"
    )


async def send_block_notification(telegram_username: str, blocked_plate: str, blocker_name: str):
    token = settings.TELEGRAM_BOT_TOKEN
    if not token:
        logger.warning("[TELEGRAM] TELEGRAM_BOT_TOKEN not configured — message skipped")
        return

    username = telegram_username.lstrip("@")
    url = f"{settings.TELEGRAM_API_URL}/bot{token}/sendMessage"
    try:
        async with httpx.AsyncClient(timeout=settings.SENDER_TIMEOUT_SECONDS) as client:
            response = await client.post(url, json={
                "chat_id": f"@{username}",
                "text": format_block_message(blocked_plate, blocker_name),
            })
    except httpx.HTTPError as e:
        raise DeliveryError(f"Telegram API request failed: {e}")

    if response.status_code == 200:
        logger.info(f"[TELEGRAM] Sent block notice to @{username}")
    else:
        logger.warning(f"[TELEGRAM] @{username} → HTTP {response.status_code}: {response.text}")
