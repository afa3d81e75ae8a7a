"""Schemas for AI endpoints. These respond with top-level fields, not a data envelope."""
from __future__ import annotations

from datetime import date as date_type
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from saturway.api.schemas.common import CamelModel


class SchedulePreferences(CamelModel):
    work_hours_start: Optional[str] = None
    work_hours_end: Optional[str] = None
    break_duration: Optional[int] = Field(default=None, ge=0)
    prioritize_urgent: Optional[bool] = None


class OptimizeScheduleRequest(CamelModel):
    tasks: List[str] = Field(default_factory=list, description="Task ids to plan; empty plans every pending task.")
    energy_level: Optional[int] = Field(default=None, ge=1, le=10)
    focus_level: Optional[int] = Field(default=None, ge=1, le=10)
    preferences: Optional[SchedulePreferences] = None
    date: Optional[date_type] = None


class ScheduleSuggestionOut(CamelModel):
    task_id: Optional[str] = None
    title: Optional[str] = None
    suggested_time: str = ""
    duration: int = 0
    reasoning: str = ""
    energy_match: int = Field(default=3, ge=1, le=5)


class OptimizeScheduleResponse(CamelModel):
    success: bool = True
    suggestions: List[ScheduleSuggestionOut]
    reasoning: str


class TaskSuggestionOut(CamelModel):
    title: str
    description: str = ""
    priority: Literal["low", "medium", "high", "urgent"] = "medium"
    reasoning: str = ""
    category: str = "general"


class TaskSuggestionsResponse(CamelModel):
    success: bool = True
    suggestions: List[TaskSuggestionOut]


class InsightOut(CamelModel):
    id: str
    title: str
    description: str
    category: Literal["productivity", "wellness", "scheduling", "motivation"]
    priority: Literal["low", "medium", "high"]
    actionable: bool
    created_at: datetime


class InsightsResponse(CamelModel):
    success: bool = True
    insights: List[InsightOut]


class ChatMessageIn(CamelModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1)
    history: List[ChatMessageIn] = Field(default_factory=list)
    provider: Optional[str] = Field(default=None, description="\"primary\", \"fallback\" or a provider name; defaults to primary.")


class ChatResponse(CamelModel):
    success: bool = True
    response: str
    tokens_used: int
