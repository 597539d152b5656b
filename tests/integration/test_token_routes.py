"""Integration tests for POST/GET /api/tokens."""

import re
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import AppSettings, AuthSettings
from errors import StorageUnavailableError
from infrastructure.store.memory_store import InMemoryExpiringStore

API_KEY = "test-api-key"
HEADERS = {"x-api-key": API_KEY}


def _settings(api_key: str = API_KEY) -> AppSettings:
    return AppSettings(auth=AuthSettings(api_key=api_key))


@pytest.fixture
def memory_store():
    return InMemoryExpiringStore()


@pytest.fixture
def client(memory_store):
    app = create_app(_settings(), store=memory_store)
    with TestClient(app) as c:
        yield c


def _create(client, user_id="123", scopes=("read", "write"), minutes=60):
    return client.post(
        "/api/tokens",
        json={"userId": user_id, "scopes": list(scopes), "expiresInMinutes": minutes},
        headers=HEADERS,
    )


def _parse(ts: str) -> datetime:
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


# ── Auth ──────────────────────────────────────────────────────────────────────


class TestApiKey:
    @pytest.mark.parametrize(
        "headers", [{}, {"x-api-key": "wrong"}], ids=["missing", "wrong"]
    )
    def test_rejects_bad_key(self, client, headers):
        for resp in (
            client.get("/api/tokens", params={"userId": "u"}, headers=headers),
            client.post(
                "/api/tokens",
                json={"userId": "u", "scopes": ["a"], "expiresInMinutes": 1},
                headers=headers,
            ),
        ):
            assert resp.status_code == 401
            assert resp.json() == {
                "error": "Invalid or missing API key",
                "code": "authentication_error",
            }

    def test_unconfigured_key_denies_everything(self, memory_store):
        app = create_app(_settings(api_key=""), store=memory_store)
        with TestClient(app) as c:
            resp = c.get("/api/tokens", params={"userId": "u"}, headers={"x-api-key": ""})
        assert resp.status_code == 401


# ── POST /api/tokens ──────────────────────────────────────────────────────────


class TestCreateTokenEndpoint:
    def test_creates_token(self, client):
        resp = _create(client)
        assert resp.status_code == 201
        body = resp.json()
        assert set(body) == {"id", "userId", "scopes", "createdAt", "expiresAt", "token"}
        assert body["userId"] == "123"
        assert body["scopes"] == ["read", "write"]
        assert re.fullmatch(r"token_[0-9a-f]{16}", body["id"])
        assert re.fullmatch(r"[0-9a-f]{64}", body["token"])
        assert body["createdAt"].endswith("Z")
        assert _parse(body["expiresAt"]) - _parse(body["createdAt"]) == timedelta(
            minutes=60
        )

    @pytest.mark.parametrize(
        "payload, field",
        [
            ({"userId": "", "scopes": ["read"], "expiresInMinutes": 5}, "userId"),
            ({"userId": "u", "scopes": [], "expiresInMinutes": 5}, "scopes"),
            ({"userId": "u", "scopes": ["read"], "expiresInMinutes": 0}, "expiresInMinutes"),
            ({"userId": "u", "scopes": ["read"], "expiresInMinutes": 2.5}, "expiresInMinutes"),
            ({"scopes": ["read"], "expiresInMinutes": 5}, "userId"),
        ],
        ids=["empty_user", "empty_scopes", "zero_lifetime", "float_lifetime", "missing_user"],
    )
    def test_validation_errors(self, client, payload, field):
        resp = client.post("/api/tokens", json=payload, headers=HEADERS)
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Validation failed"
        assert body["code"] == "validation_error"
        assert field in body["details"]

    def test_validation_message_is_readable(self, client):
        resp = client.post(
            "/api/tokens",
            json={"userId": "u", "scopes": [], "expiresInMinutes": 5},
            headers=HEADERS,
        )
        assert resp.json()["details"]["scopes"] == ["scopes must be a non-empty array"]

    def test_storage_failure_is_503(self):
        store = AsyncMock()
        store.set_with_absolute_expiry.side_effect = StorageUnavailableError(
            "redis set failed"
        )
        app = create_app(_settings(), store=store)
        with TestClient(app) as c:
            resp = _create(c)
        assert resp.status_code == 503
        assert resp.json()["code"] == "storage_unavailable"


# ── GET /api/tokens ───────────────────────────────────────────────────────────


class TestListTokensEndpoint:
    def test_empty_list(self, client):
        resp = client.get("/api/tokens", params={"userId": "nobody"}, headers=HEADERS)
        assert resp.status_code == 200
        assert resp.json() == []

    def test_lists_created_tokens(self, client):
        a = _create(client, user_id="U").json()
        b = _create(client, user_id="U").json()
        _create(client, user_id="other")

        resp = client.get("/api/tokens", params={"userId": "U"}, headers=HEADERS)

        assert resp.status_code == 200
        listed = {t["id"]: t for t in resp.json()}
        assert set(listed) == {a["id"], b["id"]}
        assert listed[a["id"]] == a

    def test_stale_entry_pruned(self, client, memory_store):
        gone = _create(client, user_id="U").json()
        memory_store.delete(f"token:{gone['id']}")

        resp = client.get("/api/tokens", params={"userId": "U"}, headers=HEADERS)

        assert resp.json() == []
        assert "user_tokens:U" not in memory_store._sets

    @pytest.mark.parametrize("params", [{}, {"userId": ""}], ids=["missing", "empty"])
    def test_requires_user_id(self, client, params):
        resp = client.get("/api/tokens", params=params, headers=HEADERS)
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "validation_error"
        assert body["details"] == {"userId": ["userId is required"]}
