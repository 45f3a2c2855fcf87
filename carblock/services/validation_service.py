# carblock/services/validation_service.py
"""
Normalize-then-validate contract used by every service that accepts
user-supplied plates, phones, or departure times.
Returns the canonical value or raises ValidationError with a readable reason.
"""

from datetime import datetime, time
from typing import Optional

from carblock.errors import ValidationError
from carblock.utils.plate import normalize_plate, validate_plate as is_valid_plate
from carblock.utils.phone import normalize_phone, validate_phone as is_valid_phone

PLATE_FORMAT_HINT = "expected 1 letter, 3 digits, 2 letters, 2-3 digits (e.g. A123BC777)"


def validate_plate(raw: str) -> str:
    normalized = normalize_plate(raw or "")
    if not is_valid_plate(normalized):
        raise ValidationError(f"Invalid plate number format: {PLATE_FORMAT_HINT}")
    return normalized


def validate_phone(raw: str) -> str:
    normalized = normalize_phone(raw or "")
    if not is_valid_phone(normalized):
        raise ValidationError("Invalid phone number format")
    return normalized


def parse_departure_time(value: Optional[str]) -> Optional[time]:
    """'HH:MM' (24h) → time. None/"" → None. Seconds or timezones are rejected."""
    if not value:
        return None
    try:
        parsed = datetime.strptime(value.strip(), "%H:%M")
    except ValueError:
        raise ValidationError("Invalid departure time, use HH:MM (e.g. 18:30)")
    return parsed.time()


def format_time(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value else None
