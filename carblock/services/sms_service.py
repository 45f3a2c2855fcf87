# carblock/services/sms_service.py
"""SMS sender for login codes."""

import httpx
from carblock.config import settings
from carblock.errors import DeliveryError
from carblock.utils.logger import get_logger, mask_phone

logger = get_logger(__name__)


async def send_sms(phone: str, code: str):
    url, key = settings.SMS_API_URL, settings.SMS_API_KEY
    if not url or not key:
        if settings.RETURN_SMS_CODE_IN_RESPONSE:
            logger.info(f"[SMS][DEV] Provider not configured, code for {mask_phone(phone)} returned in response")
            return
        raise DeliveryError("SMS provider not configured. Set SMS_API_URL and SMS_API_KEY")

    try:
        async with httpx.AsyncClient(timeout=settings.SENDER_TIMEOUT_SECONDS) as client:
            response = await client.post(
                url,
                json={"phone": phone, "message": f"Your confirmation code: {code}"},
                headers={"Authorization": f"Bearer {key}"},
            )
    except httpx.HTTPError as e:
        raise DeliveryError(f"SMS API request failed: {e}")

    if not response.is_success:
        raise DeliveryError(f"SMS API returned HTTP {response.status_code}")
    logger.info(f"[SMS] Code sent to {mask_phone(phone)}")
