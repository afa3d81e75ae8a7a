"""Telegram initData exchange for a bearer token."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from saturway.api.schemas.auth import AuthRequest, AuthResponse
from saturway.api.schemas.user import UserOut
from saturway.core.security import create_access_token, validate_and_parse_init_data
from saturway.db.deps import get_db
from saturway.observability.metrics import log_metric
from saturway.observability.tracing import trace
from saturway.services import user_service

router = APIRouter()


@router.post("/auth", response_model=AuthResponse, tags=["auth"])
def authenticate(payload: AuthRequest, http_request: Request, db: Session = Depends(get_db)) -> AuthResponse:
    """Validate Telegram WebApp initData, upsert the user and issue a JWT."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("auth.telegram", metadata={"route": "/auth"}, request_id=request_id):
        telegram_user = validate_and_parse_init_data(payload.init_data)
        user = user_service.upsert_from_telegram(db, telegram_user)
        token = create_access_token(user.id, user.telegram_id)

    log_metric("auth.telegram.success", 1, metadata={"user_id": str(user.id)})
    return AuthResponse(token=token, user=UserOut.model_validate(user))
