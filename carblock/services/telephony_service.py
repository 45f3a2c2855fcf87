# carblock/services/telephony_service.py
"""
Outbound text-to-speech call through a generic telephony HTTP API.
Without TELEPHONY_API_URL/KEY the call is only logged (dev mode).
"""

import httpx
from carblock.config import settings
from carblock.errors import DeliveryError
from carblock.utils.logger import get_logger, mask_phone
from carblock.utils.plate import format_plate

logger = get_logger(__name__)


def format_block_call_message(blocked_plate: str, blocker_name: str) -> str:
    return (
        f"Hello! Your car {format_plate(blocked_plate)} is blocked by {blocker_name}. "
        f"Please check the app."
    )


async def call_owner(phone: str, message: str):
    url, key = settings.TELEPHONY_API_URL, settings.TELEPHONY_API_KEY
    if not url or not key:
        logger.info(f"[CALL][DEV] Would call {mask_phone(phone)}: {message}")
        return

    try:
        async with httpx.AsyncClient(timeout=settings.SENDER_TIMEOUT_SECONDS) as client:
            response = await client.post(
                url,
                json={"phone": phone, "message": message, "type": "call"},
                headers={"Authorization": f"Bearer {key}"},
            )
    except httpx.HTTPError as e:
        raise DeliveryError(f"Telephony API request failed: {e}")

    if not response.is_success:
        raise DeliveryError(f"Telephony API returned HTTP {response.status_code}")
    logger.info(f"[CALL] Call initiated to {mask_phone(phone)}")
