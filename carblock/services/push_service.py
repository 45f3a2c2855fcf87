# carblock/services/push_service.py
"""
Android push via the FCM legacy HTTP endpoint.
No FCM_SERVER_KEY → silently skipped (dev installs run without push).
"""

import httpx
from carblock.config import settings
from carblock.errors import DeliveryError
from carblock.utils.logger import get_logger

logger = get_logger(__name__)


async def send_push(token: str, title: str, body: str, data: dict):
    key = settings.FCM_SERVER_KEY
    if not key:
        logger.debug("[PUSH] FCM_SERVER_KEY not configured — push skipped")
        return

    payload = {
        "to": token,
        "notification": {"title": title, "body": body},
        "data": data,
    }
    try:
        async with httpx.AsyncClient(timeout=settings.SENDER_TIMEOUT_SECONDS) as client:
            response = await client.post(
                settings.FCM_URL,
                json=payload,
                headers={"Authorization": f"key={key}"},
            )
    except httpx.HTTPError as e:
        raise DeliveryError(f"FCM request failed: {e}")

    if response.status_code != 200:
        raise DeliveryError(f"FCM error: HTTP {response.status_code}")
    logger.info(f"[PUSH] Delivered '{title}'")
