"""Schemas for the current user."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from saturway.api.schemas.common import CamelModel


class UserOut(CamelModel):
    id: UUID
    telegram_id: int
    username: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    language_code: Optional[str]
    is_premium: bool
    photo_url: Optional[str]
    settings: Dict[str, Any]
    created_at: datetime


class UserUpdateRequest(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None


class UserStatsOut(CamelModel):
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    completion_rate: int
    average_energy_level: float
    average_focus_level: float
    mood_logs_count: int
