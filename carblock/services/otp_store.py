# carblock/services/otp_store.py
"""
One-time login codes keyed by normalized phone.
OtpStore is the seam: auth_service only talks to the protocol, so the
in-process map can be swapped for a shared cache without touching it.
"""

import threading
import time
from dataclasses import dataclass
from typing import Optional, Protocol

from carblock.utils.logger import get_logger, mask_phone

logger = get_logger(__name__)


class OtpStore(Protocol):
    def put(self, phone: str, code: str, ttl_seconds: int) -> None: ...

    def check(self, phone: str, code: str) -> bool: ...

    def remove(self, phone: str) -> None: ...


@dataclass
class _Entry:
    code: str
    expires_at: float


class InMemoryOtpStore:
    """Thread-safe dict of phone → (code, expiry). Expired entries are dropped lazily."""

    def __init__(self, clock=time.monotonic):
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def put(self, phone: str, code: str, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[phone] = _Entry(code=code, expires_at=self._clock() + ttl_seconds)
        logger.debug(f"[OTP] Stored code for {mask_phone(phone)} (ttl={ttl_seconds}s)")

    def check(self, phone: str, code: str) -> bool:
        with self._lock:
            entry: Optional[_Entry] = self._entries.get(phone)
            if entry is None:
                return False
            if self._clock() > entry.expires_at:
                del self._entries[phone]
                logger.debug(f"[OTP] Code for {mask_phone(phone)} expired")
                return False
            return entry.code == code

    def remove(self, phone: str) -> None:
        with self._lock:
            self._entries.pop(phone, None)
