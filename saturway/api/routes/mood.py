"""Mood logging API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from saturway.api.schemas.mood import (
    MoodLogOut,
    MoodLogRequest,
    MoodLogResponse,
    MoodLogsResponse,
    MoodStatsOut,
    MoodStatsResponse,
)
from saturway.core.security import get_current_user_id
from saturway.db.deps import get_db
from saturway.observability.metrics import log_metric
from saturway.observability.tracing import trace
from saturway.services import mood_service

router = APIRouter()


@router.post("/mood/log", response_model=MoodLogResponse, status_code=status.HTTP_201_CREATED, tags=["mood"])
def log_mood(
    payload: MoodLogRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> MoodLogResponse:
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/mood/log", "source": payload.source}
    with trace("mood.log", metadata=metadata, user_id=str(user_id), request_id=request_id):
        entry = mood_service.log_mood(
            db,
            user_id,
            energy_level=payload.energy_level,
            focus_level=payload.focus_level,
            notes=payload.notes,
            source=payload.source,
        )
    log_metric("mood.log.success", 1, metadata={"user_id": str(user_id)})
    return MoodLogResponse(log=MoodLogOut.model_validate(entry))


@router.get("/mood/logs", response_model=MoodLogsResponse, tags=["mood"])
def list_mood_logs(
    http_request: Request,
    days: int = Query(default=7, ge=1, le=365),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> MoodLogsResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("mood.list", metadata={"days": days}, user_id=str(user_id), request_id=request_id):
        logs = mood_service.recent_logs(db, user_id, days)
    return MoodLogsResponse(logs=[MoodLogOut.model_validate(log) for log in logs], total=len(logs))


@router.get("/mood/stats", response_model=MoodStatsResponse, tags=["mood"])
def get_mood_stats(
    http_request: Request,
    days: int = Query(default=7, ge=1, le=365),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> MoodStatsResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("mood.stats", metadata={"days": days}, user_id=str(user_id), request_id=request_id):
        stats = mood_service.mood_stats(db, user_id, days)
    return MoodStatsResponse(stats=MoodStatsOut(**stats))
