"""Task CRUD API routes."""
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from saturway.api.schemas.common import Envelope
from saturway.api.schemas.task import (
    TaskCreateRequest,
    TaskData,
    TaskListData,
    TaskOut,
    TaskStatus,
    TaskUpdateRequest,
)
from saturway.core.security import get_current_user_id
from saturway.db.deps import get_db
from saturway.observability.metrics import log_metric, timed
from saturway.observability.tracing import trace
from saturway.services import task_service

router = APIRouter()


@router.get("/tasks", response_model=Envelope[TaskListData], tags=["tasks"])
def list_tasks(
    http_request: Request,
    status_filter: Optional[TaskStatus] = Query(default=None, alias="status"),
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[TaskListData]:
    """List the caller's tasks, newest first."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": "/tasks",
        "status": status_filter,
        "limit": limit,
        "offset": offset,
    }

    with trace("task.list", metadata=metadata, user_id=str(user_id), request_id=request_id):
        tasks = task_service.list_tasks(db, user_id, status=status_filter, limit=limit, offset=offset)

    log_metric("task.list.count", len(tasks), metadata={"user_id": str(user_id)})
    return Envelope(data=TaskListData(tasks=[TaskOut.model_validate(task) for task in tasks], total=len(tasks)))


@router.post("/tasks", response_model=Envelope[TaskData], status_code=status.HTTP_201_CREATED, tags=["tasks"])
def create_task(
    payload: TaskCreateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[TaskData]:
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/tasks", "priority": payload.priority}
    with timed("task.create", metadata={"user_id": str(user_id)}):
        with trace("task.create", metadata=metadata, user_id=str(user_id), request_id=request_id):
            task = task_service.create_task(
                db,
                user_id,
                title=payload.title,
                description=payload.description,
                priority=payload.priority,
                status=payload.status,
                due_date=payload.due_date,
                ai_metadata=payload.ai_metadata,
            )
    return Envelope(data=TaskData(task=TaskOut.model_validate(task)))


@router.get("/tasks/{task_id}", response_model=Envelope[TaskData], tags=["tasks"])
def get_task(
    task_id: UUID,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[TaskData]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("task.get", metadata={"task_id": str(task_id)}, user_id=str(user_id), request_id=request_id):
        task = task_service.get_task(db, user_id, task_id)
    return Envelope(data=TaskData(task=TaskOut.model_validate(task)))


@router.patch("/tasks/{task_id}", response_model=Envelope[TaskData], tags=["tasks"])
def update_task(
    task_id: UUID,
    payload: TaskUpdateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[TaskData]:
    """Partial update. Only fields present in the body are touched."""
    request_id = getattr(http_request.state, "request_id", None)
    sent = payload.model_fields_set
    updates: Dict[str, Any] = {
        field: getattr(payload, field)
        for field in ("title", "priority", "status")
        if field in sent and getattr(payload, field) is not None
    }
    for nullable in ("description", "due_date", "ai_metadata"):
        if nullable in sent:
            updates[nullable] = getattr(payload, nullable)

    metadata = {"task_id": str(task_id), "fields": sorted(updates)}
    with timed("task.update", metadata={"user_id": str(user_id)}):
        with trace("task.update", metadata=metadata, user_id=str(user_id), request_id=request_id):
            task = task_service.update_task(db, user_id, task_id, **updates)
    return Envelope(data=TaskData(task=TaskOut.model_validate(task)))


@router.post("/tasks/{task_id}/complete", response_model=Envelope[TaskData], tags=["tasks"])
def complete_task(
    task_id: UUID,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[TaskData]:
    request_id = getattr(http_request.state, "request_id", None)
    with timed("task.complete", metadata={"user_id": str(user_id)}):
        with trace("task.complete", metadata={"task_id": str(task_id)}, user_id=str(user_id), request_id=request_id):
            task = task_service.complete_task(db, user_id, task_id)
    return Envelope(data=TaskData(task=TaskOut.model_validate(task)))


@router.delete("/tasks/{task_id}", tags=["tasks"])
def delete_task(
    task_id: UUID,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    request_id = getattr(http_request.state, "request_id", None)
    with timed("task.delete", metadata={"user_id": str(user_id)}):
        with trace("task.delete", metadata={"task_id": str(task_id)}, user_id=str(user_id), request_id=request_id):
            task_service.delete_task(db, user_id, task_id)
    return {"success": True, "message": "Task deleted"}
