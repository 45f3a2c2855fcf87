# tests/test_encryption.py
"""Unit tests for phone encryption at rest."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import base64
import pytest
from carblock.errors import EncryptionError
from carblock.utils.encryption import Encryption, phone_hash

KEY = "ab" * 32


class TestEncryption:
    def test_decrypts_what_it_encrypts(self):
        enc = Encryption(KEY)
        assert enc.decrypt(enc.encrypt("+79001234567")) == "+79001234567"

    def test_fresh_nonce_each_call(self):
        enc = Encryption(KEY)
        assert enc.encrypt("+79001234567") != enc.encrypt("+79001234567")

    def test_wrong_key_fails(self):
        blob = Encryption(KEY).encrypt("+79001234567")
        with pytest.raises(EncryptionError):
            Encryption("cd" * 32).decrypt(blob)

    def test_tampered_ciphertext_fails(self):
        enc = Encryption(KEY)
        raw = bytearray(base64.b64decode(enc.encrypt("+79001234567")))
        raw[-1] ^= 0x01
        with pytest.raises(EncryptionError):
            enc.decrypt(base64.b64encode(bytes(raw)).decode())

    @pytest.mark.parametrize("blob", ["not base64!!", base64.b64encode(b"short").decode()])
    def test_malformed_input_fails(self, blob):
        with pytest.raises(EncryptionError):
            Encryption(KEY).decrypt(blob)

    def test_try_decrypt_returns_none(self):
        enc = Encryption(KEY)
        assert enc.try_decrypt(None) is None
        assert enc.try_decrypt("garbage") is None

    @pytest.mark.parametrize("key", ["zz" * 32, "ab" * 16])
    def test_bad_key_rejected(self, key):
        with pytest.raises(EncryptionError):
            Encryption(key)


def test_phone_hash_is_stable_hex():
    digest = phone_hash("+79001234567")
    assert digest == phone_hash("+79001234567")
    assert len(digest) == 64
    assert digest != phone_hash("+79007654321")
