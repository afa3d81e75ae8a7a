from __future__ import annotations

import hashlib
import hmac
import json
import time
from urllib.parse import urlencode

import pytest

from saturway.core import security
from saturway.core.errors import AuthenticationError

BOT_TOKEN = "123456:TEST-TOKEN"


def _sign(fields: dict, bot_token: str = BOT_TOKEN) -> str:
    check_string = "\n".join(f"{key}={fields[key]}" for key in sorted(fields))
    secret = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    digest = hmac.new(secret, check_string.encode(), hashlib.sha256).hexdigest()
    return urlencode({**fields, "hash": digest})


def _init_data(user: dict | None = None, auth_date: int | None = None) -> str:
    fields = {
        "query_id": "AAF1",
        "auth_date": str(auth_date if auth_date is not None else int(time.time())),
        "user": json.dumps(user or {"id": 4242, "first_name": "Ada", "username": "ada"}),
    }
    return _sign(fields)


@pytest.fixture()
def bot_token(monkeypatch):
    monkeypatch.setattr(security.settings, "telegram_bot_token", BOT_TOKEN)
    return BOT_TOKEN


def test_validate_init_data_accepts_signed_payload():
    assert security.validate_init_data(_init_data(), BOT_TOKEN) is True


def test_validate_init_data_rejects_tampering():
    tampered = _init_data().replace("Ada", "Eve")
    assert security.validate_init_data(tampered, BOT_TOKEN) is False
    assert security.validate_init_data(_init_data(), "other:token") is False
    assert security.validate_init_data("auth_date=1", BOT_TOKEN) is False


def test_parse_init_data_rejects_stale_auth_date():
    with pytest.raises(AuthenticationError) as excinfo:
        security.parse_init_data(_init_data(auth_date=1000), max_age_s=60, now=5000)
    assert excinfo.value.message == "Auth data is too old"


def test_parse_init_data_returns_user():
    parsed = security.parse_init_data(_init_data(auth_date=1000), max_age_s=60, now=1030)
    assert parsed.user["id"] == 4242
    assert parsed.query_id == "AAF1"


def test_access_token_round_trip(make_user):
    user_id = make_user()
    token = security.create_access_token(user_id, 4242)
    assert security.decode_access_token(token) == user_id


def test_auth_creates_user_and_returns_token(client, bot_token):
    resp = client.post("/api/auth", json={"initData": _init_data()})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    assert body["user"]["telegramId"] == 4242
    assert body["user"]["firstName"] == "Ada"

    me = client.get("/api/user/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["data"]["id"] == body["user"]["id"]


def test_auth_is_idempotent_per_telegram_user(client, bot_token):
    first = client.post("/api/auth", json={"initData": _init_data()}).json()
    second = client.post(
        "/api/auth",
        json={"initData": _init_data(user={"id": 4242, "first_name": "Ada L."})},
    ).json()

    assert first["user"]["id"] == second["user"]["id"]
    assert second["user"]["firstName"] == "Ada L."


def test_auth_rejects_bad_signature(client, bot_token):
    resp = client.post("/api/auth", json={"initData": _init_data().replace("4242", "1")})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid Telegram WebApp data"


def test_auth_requires_init_data(client, bot_token):
    resp = client.post("/api/auth", json={})
    assert resp.status_code == 400
