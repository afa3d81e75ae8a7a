"""Telegram WebApp initData validation and bearer-token handling."""
from __future__ import annotations

import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from saturway.core.config import settings
from saturway.core.context import user_id_ctx_var
from saturway.core.errors import AuthenticationError
from saturway.core.time_utils import utcnow

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class TelegramInitData:
    user: Dict[str, Any]
    auth_date: int
    hash: str
    query_id: Optional[str] = None
    chat_instance: Optional[str] = None
    start_param: Optional[str] = None


def _data_check_string(pairs: Dict[str, str]) -> str:
    return "\n".join(f"{key}={pairs[key]}" for key in sorted(pairs))


def validate_init_data(init_data: str, bot_token: str) -> bool:
    """Check the initData HMAC signature as described by the Telegram WebApp docs."""
    pairs = dict(parse_qsl(init_data, keep_blank_values=True))
    received_hash = pairs.pop("hash", None)
    if not received_hash or not bot_token:
        return False

    secret_key = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    expected = hmac.new(secret_key, _data_check_string(pairs).encode(), hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, received_hash)


def parse_init_data(init_data: str, *, max_age_s: int, now: float | None = None) -> TelegramInitData:
    pairs = dict(parse_qsl(init_data, keep_blank_values=True))
    raw_user = pairs.get("user")
    if not raw_user:
        raise AuthenticationError("No user data in initData")
    try:
        user = json.loads(raw_user)
    except ValueError as exc:
        raise AuthenticationError("Malformed user data in initData") from exc
    if not isinstance(user, dict) or "id" not in user:
        raise AuthenticationError("No user data in initData")

    try:
        auth_date = int(pairs.get("auth_date") or 0)
    except ValueError as exc:
        raise AuthenticationError("Malformed auth_date in initData") from exc
    current = time.time() if now is None else now
    if current - auth_date > max_age_s:
        raise AuthenticationError("Auth data is too old")

    return TelegramInitData(
        user=user,
        auth_date=auth_date,
        hash=pairs.get("hash", ""),
        query_id=pairs.get("query_id") or None,
        chat_instance=pairs.get("chat_instance") or None,
        start_param=pairs.get("start_param") or None,
    )


def validate_and_parse_init_data(init_data: str) -> Dict[str, Any]:
    """Return the Telegram user payload from signed, fresh initData."""
    if not validate_init_data(init_data, settings.telegram_bot_token):
        raise AuthenticationError("Invalid Telegram WebApp data")
    return parse_init_data(init_data, max_age_s=settings.telegram_auth_max_age_s).user


def create_access_token(user_id: UUID, telegram_id: int, expires_delta: timedelta | None = None) -> str:
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expires_minutes))
    claims = {"sub": str(user_id), "telegram_id": str(telegram_id), "exp": expire}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired token") from exc
    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError("Invalid or expired token")
    try:
        return UUID(subject)
    except ValueError as exc:
        raise AuthenticationError("Invalid or expired token") from exc


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UUID:
    """FastAPI dependency resolving the authenticated user id from the bearer token."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("User not authenticated")
    user_id = decode_access_token(credentials.credentials)
    user_id_ctx_var.set(str(user_id))
    return user_id
