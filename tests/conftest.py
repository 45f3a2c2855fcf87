# tests/conftest.py
"""Shared fixtures: in-memory SQLite schema, sessions, an API client, user factories."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Settings are read at import time, so the test environment goes in first
TEST_ENCRYPTION_KEY = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENCRYPTION_KEY"] = TEST_ENCRYPTION_KEY
os.environ["JWT_SECRET"] = "test-secret"
os.environ["RETURN_SMS_CODE_IN_RESPONSE"] = "true"
for _sender_key in ("SMS_API_URL", "SMS_API_KEY", "FCM_SERVER_KEY", "TELEGRAM_BOT_TOKEN",
                    "TELEPHONY_API_URL", "TELEPHONY_API_KEY"):
    os.environ[_sender_key] = ""

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from carblock.database import create_tables, get_db
from carblock.dependencies import get_encryption, get_otp_store
from carblock.main import app
from carblock.services import user_plate_service, user_store
from carblock.services.otp_store import InMemoryOtpStore
from carblock.utils.encryption import Encryption, phone_hash


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def encryption():
    return Encryption(TEST_ENCRYPTION_KEY)


@pytest.fixture
def spawned():
    """Replaces detached delivery with a recorder. Yields the list of task descriptions."""
    calls = []

    def fake_spawn(coro, description):
        calls.append(description)
        coro.close()

    with patch("carblock.services.notification_dispatcher.spawn", side_effect=fake_spawn):
        yield calls


@pytest.fixture
def otp_store():
    return InMemoryOtpStore()


@pytest.fixture
def client(session_factory, otp_store, encryption, spawned):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_otp_store] = lambda: otp_store
    app.dependency_overrides[get_encryption] = lambda: encryption
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db, encryption):
    """make_user("+79001234567", plate="A123BC777", name="Ivan", ...) → User"""
    def _make(phone, plate=None, **fields):
        user = user_store.create_user(db, encryption.encrypt(phone), phone_hash(phone))
        if fields:
            user = user_store.update_user(db, user, **fields)
        if plate:
            user_plate_service.create_user_plate(db, user.id, plate, is_primary=True)
            user = user_store.update_user(db, user, plate=plate)
        return user
    return _make
