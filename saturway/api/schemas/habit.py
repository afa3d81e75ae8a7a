"""Schemas for the habit challenge."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field

from saturway.api.schemas.common import CamelModel

HabitStatus = Literal["active", "completed", "abandoned"]


class HabitOut(CamelModel):
    id: UUID
    user_id: UUID
    title: str
    description: Optional[str]
    start_date: date
    target_days: int
    status: HabitStatus
    done_days: int
    longest_streak: int
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class HabitLogOut(CamelModel):
    id: UUID
    habit_id: UUID
    user_id: UUID
    date: date
    done: bool
    created_at: datetime


class HabitStatsOut(CamelModel):
    done_days: int
    target_days: int
    current_streak: int
    longest_streak: int
    today_done: bool
    progress: int


class HabitWithLogs(CamelModel):
    habit: Optional[HabitOut] = None
    logs: List[HabitLogOut] = Field(default_factory=list)
    stats: Optional[HabitStatsOut] = None


class HabitCreateRequest(CamelModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_date: Optional[date] = None
    target_days: Optional[int] = Field(default=None, ge=1, le=365)


class HabitUpdateRequest(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[HabitStatus] = None
    target_days: Optional[int] = Field(default=None, ge=1, le=365)
