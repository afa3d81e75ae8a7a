"""Current-user profile and statistics."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from saturway.api.schemas.common import Envelope
from saturway.api.schemas.user import UserOut, UserStatsOut, UserUpdateRequest
from saturway.core.security import get_current_user_id
from saturway.db.deps import get_db
from saturway.observability.metrics import log_metric
from saturway.observability.tracing import trace
from saturway.services import user_service

router = APIRouter()


@router.get("/user/me", response_model=Envelope[UserOut], tags=["user"])
def get_me(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[UserOut]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("user.get", metadata={"route": "/user/me"}, user_id=str(user_id), request_id=request_id):
        user = user_service.get_user(db, user_id)
    return Envelope(data=UserOut.model_validate(user))


@router.patch("/user/me", response_model=Envelope[UserOut], tags=["user"])
def update_me(
    payload: UserUpdateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[UserOut]:
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/user/me", "fields": sorted(payload.model_fields_set)}
    with trace("user.update", metadata=metadata, user_id=str(user_id), request_id=request_id):
        user = user_service.update_user(
            db,
            user_id,
            first_name=payload.first_name,
            last_name=payload.last_name,
            settings=payload.settings,
        )
    log_metric("user.update.success", 1, metadata={"user_id": str(user_id)})
    return Envelope(data=UserOut.model_validate(user))


@router.get("/user/stats", response_model=Envelope[UserStatsOut], tags=["user"])
def get_stats(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[UserStatsOut]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("user.stats", metadata={"route": "/user/stats"}, user_id=str(user_id), request_id=request_id):
        stats = user_service.user_stats(db, user_id)
    return Envelope(data=UserStatsOut(**stats))
