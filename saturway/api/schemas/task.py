"""Schemas for task CRUD."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import Field

from saturway.api.schemas.common import CamelModel

TaskPriority = Literal["low", "medium", "high", "urgent"]
TaskStatus = Literal["pending", "in_progress", "completed", "cancelled"]


class TaskOut(CamelModel):
    id: UUID
    user_id: UUID
    title: str
    description: Optional[str]
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[datetime]
    completed_at: Optional[datetime]
    ai_metadata: Optional[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime


class TaskCreateRequest(CamelModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    priority: TaskPriority = "medium"
    status: TaskStatus = "pending"
    due_date: Optional[datetime] = None
    ai_metadata: Optional[Dict[str, Any]] = None


class TaskUpdateRequest(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None
    ai_metadata: Optional[Dict[str, Any]] = None


class TaskData(CamelModel):
    task: TaskOut


class TaskListData(CamelModel):
    tasks: List[TaskOut]
    total: int
