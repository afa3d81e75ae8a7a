"""Schemas for energy check-ins."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from saturway.api.schemas.common import CamelModel

EnergySource = Literal["today", "review", "onboarding"]


class EnergyLogRequest(CamelModel):
    value: int
    source: EnergySource = "today"


class EnergyLogOut(CamelModel):
    id: UUID
    user_id: UUID
    value: int
    source: EnergySource
    created_at: datetime


class EnergyLogData(CamelModel):
    energy_log: EnergyLogOut


class EnergyTodayData(CamelModel):
    logs: List[EnergyLogOut]
    last_value: Optional[int]
    avg_value: Optional[int]
