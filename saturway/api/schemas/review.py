"""Schemas for daily reviews."""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from saturway.api.schemas.common import CamelModel


class ReviewOut(CamelModel):
    id: UUID
    user_id: UUID
    date: date
    good: str
    bad: str
    end_energy: int
    ai_summary: str
    ai_advice: str
    created_at: datetime
    updated_at: datetime


class ReviewCreateRequest(CamelModel):
    good: str = ""
    bad: str = ""
    end_energy: int


class ReviewData(CamelModel):
    review: Optional[ReviewOut]
