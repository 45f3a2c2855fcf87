# carblock/utils/encryption.py
"""
Phone numbers at rest: AES-256-GCM with a fresh 12-byte nonce per call.
Stored blob = base64(nonce || ciphertext+tag).
Lookups never decrypt — they go through phone_hash(), a stable SHA-256 hex digest.
"""

import base64
import binascii
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from carblock.errors import EncryptionError

NONCE_SIZE = 12


class Encryption:
    def __init__(self, key_hex: str):
        try:
            key = bytes.fromhex(key_hex)
        except ValueError as e:
            raise EncryptionError(f"Encryption key is not valid hex: {e}")
        if len(key) != 32:
            raise EncryptionError("Encryption key must be 32 bytes (64 hex characters)")
        self._cipher = AESGCM(key)

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._cipher.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + ciphertext).decode("ascii")

    def decrypt(self, blob: str) -> str:
        try:
            combined = base64.b64decode(blob, validate=True)
        except (binascii.Error, ValueError) as e:
            raise EncryptionError(f"Base64 decode failed: {e}")

        if len(combined) <= NONCE_SIZE:
            raise EncryptionError("Invalid ciphertext length")

        nonce, ciphertext = combined[:NONCE_SIZE], combined[NONCE_SIZE:]
        try:
            plaintext = self._cipher.decrypt(nonce, ciphertext, None)
        except InvalidTag:
            raise EncryptionError("Decryption failed: authentication tag mismatch")

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncryptionError(f"Decrypted payload is not UTF-8: {e}")

    def try_decrypt(self, blob: str | None) -> str | None:
        """Decrypt or return None — for read paths where a missing phone is acceptable."""
        if not blob:
            return None
        try:
            return self.decrypt(blob)
        except EncryptionError:
            return None


def phone_hash(phone: str) -> str:
    """Unsalted SHA-256 of the normalized phone. Persisted as the unique lookup key."""
    return hashlib.sha256(phone.encode("utf-8")).hexdigest()
