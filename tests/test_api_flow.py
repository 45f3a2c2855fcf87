# tests/test_api_flow.py
"""End-to-end flows through the HTTP API (external delivery stubbed)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from carblock.errors import InternalError
from carblock.main import app

OWNER_PHONE, BLOCKER_PHONE = "+79001234567", "+79007654321"


def login(client, phone):
    resp = client.post("/api/auth/start", json={"phone": phone})
    assert resp.status_code == 200
    code = resp.json()["code"]
    resp = client.post("/api/auth/verify", json={"phone": phone, "code": code})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}, resp.json()["user_id"]


def add_plate(client, headers, plate, primary=True):
    resp = client.post("/api/user-plates", json={"plate": plate, "is_primary": primary}, headers=headers)
    assert resp.status_code == 200, resp.json()
    return resp.json()


class TestBlockFlow:
    def test_block_then_unblock(self, client):
        owner, owner_id = login(client, OWNER_PHONE)
        add_plate(client, owner, "A123BC777")
        blocker, blocker_id = login(client, BLOCKER_PHONE)
        add_plate(client, blocker, "B456CD777")

        resp = client.post("/api/blocks", json={"blocked_plate": "A123BC777", "notify_owner": True},
                           headers=blocker)
        assert resp.status_code == 200
        block = resp.json()
        assert block["blocker_plate"] == "B456CD777"
        assert block["blocked_plate"] == "A123BC777"
        assert block["blocker_id"] == blocker_id

        inbox = client.get("/api/notifications", headers=owner).json()
        assert len(inbox) == 1
        assert inbox[0]["type"] == "block"
        assert inbox[0]["read"] is False
        assert inbox[0]["data"]["block_id"] == block["id"]

        resp = client.get("/api/blocks/my", headers=owner)
        assert [b["id"] for b in resp.json()] == [block["id"]]

        resp = client.delete(f"/api/blocks/{block['id']}", headers=blocker)
        assert resp.status_code == 200
        assert client.get("/api/blocks", headers=blocker).json() == []

        inbox = client.get("/api/notifications", headers=owner).json()
        assert [n["type"] for n in inbox].count("unblock") == 1

    def test_duplicate_and_self_block(self, client):
        blocker, _ = login(client, BLOCKER_PHONE)
        add_plate(client, blocker, "B456CD777")

        first = client.post("/api/blocks", json={"blocked_plate": "A123BC777"}, headers=blocker)
        assert first.status_code == 200
        second = client.post("/api/blocks", json={"blocked_plate": "a 123 bc 777"}, headers=blocker)
        assert second.status_code == 400
        assert second.json()["error"] == "This block already exists"

        own = client.post("/api/blocks", json={"blocked_plate": "B456CD777"}, headers=blocker)
        assert own.status_code == 400

    def test_only_blocker_can_delete(self, client):
        owner, _ = login(client, OWNER_PHONE)
        add_plate(client, owner, "A123BC777")
        blocker, _ = login(client, BLOCKER_PHONE)
        add_plate(client, blocker, "B456CD777")
        block = client.post("/api/blocks", json={"blocked_plate": "A123BC777"}, headers=blocker).json()

        resp = client.delete(f"/api/blocks/{block['id']}", headers=owner)
        assert resp.status_code == 401
        assert [b["id"] for b in client.get("/api/blocks", headers=blocker).json()] == [block["id"]]

    def test_check_is_public(self, client):
        blocker, _ = login(client, BLOCKER_PHONE)
        add_plate(client, blocker, "B456CD777")
        client.post("/api/blocks", json={"blocked_plate": "A123BC777"}, headers=blocker)

        resp = client.get("/api/blocks/check", params={"plate": "A123BC777"})
        assert resp.status_code == 200
        assert resp.json()["is_blocked"] is True
        assert resp.json()["block"]["blocker"]["plate"] == "B456CD777"

        resp = client.get("/api/blocks/check", params={"plate": "C789EE77"})
        assert resp.json() == {"is_blocked": False, "block": None}


class TestPlatesAndProfile:
    def test_primary_switch(self, client):
        headers, _ = login(client, OWNER_PHONE)
        add_plate(client, headers, "A123BC777")
        second = add_plate(client, headers, "B456CD777", primary=False)

        resp = client.post(f"/api/user-plates/{second['id']}/primary", headers=headers)
        assert resp.status_code == 200

        plates = client.get("/api/user-plates", headers=headers).json()
        assert [p["plate"] for p in plates if p["is_primary"]] == ["B456CD777"]
        assert client.get("/api/users/me", headers=headers).json()["plate"] == "B456CD777"

    def test_departure_time_wire_format(self, client):
        headers, _ = login(client, OWNER_PHONE)
        plate = add_plate(client, headers, "A123BC777")
        resp = client.post(f"/api/user-plates/{plate['id']}", json={"departure_time": "18:30"}, headers=headers)
        assert resp.json()["departure_time"] == "18:30"

    def test_profile_update(self, client):
        headers, _ = login(client, OWNER_PHONE)
        resp = client.put("/api/users/me", json={"name": "Ivan", "plate": "A123BC777"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["name"] == "Ivan"
        assert resp.json()["phone"] == OWNER_PHONE

    def test_notifications_mark_read(self, client):
        owner, _ = login(client, OWNER_PHONE)
        add_plate(client, owner, "A123BC777")
        blocker, _ = login(client, BLOCKER_PHONE)
        add_plate(client, blocker, "B456CD777")
        client.post("/api/blocks", json={"blocked_plate": "A123BC777"}, headers=blocker)

        [note] = client.get("/api/notifications", headers=owner).json()
        assert client.put(f"/api/notifications/{note['id']}/read", headers=owner).status_code == 200
        assert client.get("/api/notifications", params={"unread_only": True}, headers=owner).json() == []
        assert client.put(f"/api/notifications/{note['id']}/read", headers=blocker).status_code == 404


class TestDeletePrimaryPlate:
    def test_last_plate_stays_deleted(self, client):
        headers, _ = login(client, OWNER_PHONE)
        plate = add_plate(client, headers, "A123BC777")

        assert client.delete(f"/api/user-plates/{plate['id']}", headers=headers).status_code == 200

        me = client.get("/api/users/me", headers=headers).json()
        assert me["plate"] == ""
        assert client.get("/api/user-plates", headers=headers).json() == []

    def test_next_plate_promoted(self, client):
        headers, _ = login(client, OWNER_PHONE)
        first = add_plate(client, headers, "A123BC777")
        add_plate(client, headers, "B456CD777", primary=False)

        client.delete(f"/api/user-plates/{first['id']}", headers=headers)

        assert client.get("/api/users/me", headers=headers).json()["plate"] == "B456CD777"
        plates = client.get("/api/user-plates", headers=headers).json()
        assert [(p["plate"], p["is_primary"]) for p in plates] == [("B456CD777", True)]

    def test_deleting_secondary_keeps_primary(self, client):
        headers, _ = login(client, OWNER_PHONE)
        add_plate(client, headers, "A123BC777")
        second = add_plate(client, headers, "B456CD777", primary=False)

        client.delete(f"/api/user-plates/{second['id']}", headers=headers)

        assert client.get("/api/users/me", headers=headers).json()["plate"] == "A123BC777"
        assert [p["plate"] for p in client.get("/api/user-plates", headers=headers).json()] == ["A123BC777"]


class TestErrors:
    def test_missing_token(self, client):
        resp = client.get("/api/users/me")
        assert resp.status_code == 401
        assert set(resp.json()) == {"error", "details"}

    def test_wrong_code(self, client):
        client.post("/api/auth/start", json={"phone": OWNER_PHONE})
        resp = client.post("/api/auth/verify", json={"phone": OWNER_PHONE, "code": "not-it"})
        assert resp.status_code == 401

    def test_health(self, client):
        assert client.get("/api/health").json()["database"] == "ok"

    def test_internal_error_hides_cause(self, client):
        with patch("carblock.routers.blocks.block_service.check_block",
                   new_callable=AsyncMock, side_effect=InternalError("connection pool exhausted")):
            resp = client.get("/api/blocks/check", params={"plate": "A123BC777"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal server error", "details": "Internal server error"}

    def test_unhandled_exception_rendered_as_internal_error(self, client):
        safe_client = TestClient(app, raise_server_exceptions=False)
        with patch("carblock.routers.blocks.block_service.check_block",
                   new_callable=AsyncMock, side_effect=RuntimeError("boom")):
            resp = safe_client.get("/api/blocks/check", params={"plate": "A123BC777"})
        assert resp.status_code == 500
        assert resp.json() == InternalError().to_response()
