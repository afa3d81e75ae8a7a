"""Task persistence helpers scoped to a single user."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from saturway.core.config import settings
from saturway.core.errors import NotFoundError, ValidationError
from saturway.core.time_utils import utcnow
from saturway.db.models.task import TASK_PRIORITIES, TASK_STATUSES, Task

_UNSET: Any = object()


def _validate_text(title: Optional[str], description: Optional[str]) -> None:
    if title is not None:
        if not title.strip():
            raise ValidationError("Task title is required")
        if len(title) > settings.max_task_title_length:
            raise ValidationError(
                f"Task title must be at most {settings.max_task_title_length} characters"
            )
    if description is not None and len(description) > settings.max_task_description_length:
        raise ValidationError(
            f"Task description must be at most {settings.max_task_description_length} characters"
        )


def _validate_choice(value: Optional[str], allowed: tuple[str, ...], field: str) -> None:
    if value is not None and value not in allowed:
        raise ValidationError(f"Invalid {field}: {value}", details=[{"field": field, "message": f"must be one of {', '.join(allowed)}"}])


def list_tasks(
    db: Session,
    user_id: UUID,
    *,
    status: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[Task]:
    """Return the user's tasks newest first, optionally filtered by status."""
    _validate_choice(status, TASK_STATUSES, "status")
    page_size = min(limit or settings.default_page_size, settings.max_page_size)
    query = db.query(Task).filter(Task.user_id == user_id)
    if status:
        query = query.filter(Task.status == status)
    return query.order_by(desc(Task.created_at)).offset(max(offset, 0)).limit(page_size).all()


def tasks_by_status(db: Session, user_id: UUID, status: str) -> List[Task]:
    _validate_choice(status, TASK_STATUSES, "status")
    return (
        db.query(Task)
        .filter(Task.user_id == user_id, Task.status == status)
        .order_by(desc(Task.created_at))
        .all()
    )


def get_task(db: Session, user_id: UUID, task_id: UUID) -> Task:
    task = db.get(Task, task_id)
    if not task or task.user_id != user_id:
        raise NotFoundError("Task not found")
    return task


def create_task(
    db: Session,
    user_id: UUID,
    *,
    title: str,
    description: Optional[str] = None,
    priority: str = "medium",
    status: str = "pending",
    due_date: Optional[datetime] = None,
    ai_metadata: Optional[Dict[str, Any]] = None,
) -> Task:
    _validate_text(title, description)
    _validate_choice(priority, TASK_PRIORITIES, "priority")
    _validate_choice(status, TASK_STATUSES, "status")

    task = Task(
        user_id=user_id,
        title=title.strip(),
        description=description,
        priority=priority,
        status=status,
        due_date=due_date,
        ai_metadata=ai_metadata,
        completed_at=utcnow() if status == "completed" else None,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(
    db: Session,
    user_id: UUID,
    task_id: UUID,
    *,
    title: Optional[str] = None,
    description: Optional[str] = _UNSET,
    priority: Optional[str] = None,
    status: Optional[str] = None,
    due_date: Optional[datetime] = _UNSET,
    ai_metadata: Optional[Dict[str, Any]] = _UNSET,
) -> Task:
    """Apply a partial update. Moving to ``completed`` stamps ``completed_at``; any other status clears it."""
    task = get_task(db, user_id, task_id)
    _validate_text(title, None if description is _UNSET else description)
    _validate_choice(priority, TASK_PRIORITIES, "priority")
    _validate_choice(status, TASK_STATUSES, "status")

    if title is not None:
        task.title = title.strip()
    if description is not _UNSET:
        task.description = description
    if priority is not None:
        task.priority = priority
    if due_date is not _UNSET:
        task.due_date = due_date
    if ai_metadata is not _UNSET:
        task.ai_metadata = ai_metadata
    if status is not None and status != task.status:
        task.status = status
        task.completed_at = utcnow() if status == "completed" else None

    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def complete_task(db: Session, user_id: UUID, task_id: UUID) -> Task:
    return update_task(db, user_id, task_id, status="completed")


def delete_task(db: Session, user_id: UUID, task_id: UUID) -> None:
    task = get_task(db, user_id, task_id)
    db.delete(task)
    db.commit()


def task_stats(db: Session, user_id: UUID) -> Dict[str, int]:
    rows = (
        db.query(Task.status, func.count(Task.id))
        .filter(Task.user_id == user_id)
        .group_by(Task.status)
        .all()
    )
    counts = {status: 0 for status in TASK_STATUSES}
    for status, count in rows:
        counts[status] = int(count)
    return {
        "total": sum(counts.values()),
        "pending": counts["pending"],
        "in_progress": counts["in_progress"],
        "completed": counts["completed"],
        "cancelled": counts["cancelled"],
    }
