"""Habit challenge API routes."""
from __future__ import annotations

from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from saturway.api.schemas.common import Envelope
from saturway.api.schemas.habit import (
    HabitCreateRequest,
    HabitLogOut,
    HabitOut,
    HabitStatsOut,
    HabitUpdateRequest,
    HabitWithLogs,
)
from saturway.core.security import get_current_user_id
from saturway.db.deps import get_db
from saturway.observability.metrics import log_metric
from saturway.observability.tracing import trace
from saturway.services import habit_service

router = APIRouter()


def _serialize(snapshot: Dict[str, Any]) -> HabitWithLogs:
    habit = snapshot.get("habit")
    stats = snapshot.get("stats")
    return HabitWithLogs(
        habit=HabitOut.model_validate(habit) if habit is not None else None,
        logs=[HabitLogOut.model_validate(log) for log in snapshot.get("logs") or []],
        stats=HabitStatsOut(**stats) if stats is not None else None,
    )


@router.get("/habit", response_model=Envelope[HabitWithLogs], tags=["habit"])
def get_habit(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[HabitWithLogs]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("habit.get", metadata={"route": "/habit"}, user_id=str(user_id), request_id=request_id):
        snapshot = habit_service.get_habit(db, user_id)
    return Envelope(data=_serialize(snapshot))


@router.post("/habit", response_model=Envelope[HabitWithLogs], status_code=status.HTTP_201_CREATED, tags=["habit"])
def create_habit(
    payload: HabitCreateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[HabitWithLogs]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("habit.create", metadata={"target_days": payload.target_days}, user_id=str(user_id), request_id=request_id):
        habit_service.create_habit(
            db,
            user_id,
            title=payload.title,
            description=payload.description,
            start_date=payload.start_date,
            target_days=payload.target_days,
        )
        snapshot = habit_service.get_habit(db, user_id)
    log_metric("habit.create.success", 1, metadata={"user_id": str(user_id)})
    return Envelope(data=_serialize(snapshot))


@router.patch("/habit", response_model=Envelope[HabitWithLogs], tags=["habit"])
def update_habit(
    payload: HabitUpdateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[HabitWithLogs]:
    request_id = getattr(http_request.state, "request_id", None)
    updates: Dict[str, Any] = {
        field: getattr(payload, field)
        for field in ("title", "status", "target_days")
        if getattr(payload, field) is not None
    }
    if "description" in payload.model_fields_set:
        updates["description"] = payload.description
    with trace("habit.update", metadata={"fields": sorted(updates)}, user_id=str(user_id), request_id=request_id):
        habit_service.update_habit(db, user_id, **updates)
        snapshot = habit_service.get_habit(db, user_id)
    return Envelope(data=_serialize(snapshot))


@router.delete("/habit", tags=["habit"])
def delete_habit(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("habit.delete", metadata={"route": "/habit"}, user_id=str(user_id), request_id=request_id):
        habit_service.delete_habit(db, user_id)
    return {"success": True, "message": "Habit deleted"}


@router.post("/habit/mark-today", response_model=Envelope[HabitWithLogs], tags=["habit"])
def mark_today(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[HabitWithLogs]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("habit.mark_today", metadata={"route": "/habit/mark-today"}, user_id=str(user_id), request_id=request_id):
        snapshot = habit_service.mark_today(db, user_id)
    log_metric("habit.mark_today.success", 1, metadata={"user_id": str(user_id)})
    return Envelope(data=_serialize(snapshot))
