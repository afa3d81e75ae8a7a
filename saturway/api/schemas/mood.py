"""Schemas for mood logging."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from saturway.api.schemas.common import CamelModel


class MoodLogRequest(CamelModel):
    energy_level: int
    focus_level: int
    notes: Optional[str] = None
    source: Optional[str] = None


class MoodLogOut(CamelModel):
    id: UUID
    user_id: UUID
    energy_level: int
    focus_level: int
    notes: Optional[str]
    source: Optional[str]
    logged_at: datetime
    created_at: datetime


class MoodStatsOut(CamelModel):
    average_energy: float
    average_focus: float
    total_logs: int
    trend: Literal["improving", "declining", "stable"]


class MoodLogResponse(CamelModel):
    success: bool = True
    log: MoodLogOut


class MoodLogsResponse(CamelModel):
    success: bool = True
    logs: List[MoodLogOut]
    total: int


class MoodStatsResponse(CamelModel):
    success: bool = True
    stats: MoodStatsOut
