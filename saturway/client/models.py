"""Client-side views of API resources."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from saturway.services.scales import ten_to_five_point


class ClientModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Task(ClientModel):
    id: str
    user_id: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    priority: str = "medium"
    status: str = "pending"
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    ai_metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MoodLog(ClientModel):
    id: str
    energy_level: int
    focus_level: int
    notes: Optional[str] = None
    source: Optional[str] = None
    logged_at: datetime
    created_at: Optional[datetime] = None


class CurrentMood(ClientModel):
    energy: int
    focus: int

    @property
    def energy_rating(self) -> int:
        return ten_to_five_point(self.energy)

    @property
    def focus_rating(self) -> int:
        return ten_to_five_point(self.focus)


class MoodStats(ClientModel):
    average_energy: float
    average_focus: float
    total_logs: int
    trend: str


class EnergyLog(ClientModel):
    id: str
    value: int
    source: str = "today"
    created_at: Optional[datetime] = None


class EnergyToday(ClientModel):
    logs: List[EnergyLog] = Field(default_factory=list)
    last_value: Optional[int] = None
    avg_value: Optional[int] = None


class Habit(ClientModel):
    id: str
    title: str
    description: Optional[str] = None
    start_date: date
    target_days: int = 40
    status: str = "active"
    done_days: int = 0
    longest_streak: int = 0
    completed_at: Optional[datetime] = None


class HabitLog(ClientModel):
    id: str
    habit_id: str
    date: date
    done: bool = True


class HabitStats(ClientModel):
    done_days: int
    target_days: int
    current_streak: int
    longest_streak: int
    today_done: bool
    progress: int = 0


class HabitState(ClientModel):
    habit: Optional[Habit] = None
    logs: List[HabitLog] = Field(default_factory=list)
    stats: Optional[HabitStats] = None


class AIInsight(ClientModel):
    id: str
    title: str
    description: str
    category: str
    priority: str
    actionable: bool
    created_at: Optional[datetime] = None


class ScheduleSuggestion(ClientModel):
    task_id: Optional[str] = None
    title: Optional[str] = None
    suggested_time: str = ""
    duration: int = 0
    reasoning: str = ""
    energy_match: int = 3


class TaskSuggestion(ClientModel):
    title: str
    description: str = ""
    priority: str = "medium"
    reasoning: str = ""
    category: str = "general"


class User(ClientModel):
    id: str
    telegram_id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    language_code: Optional[str] = None
    is_premium: bool = False
    photo_url: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)


class UserStats(ClientModel):
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    completion_rate: int
    average_energy_level: float
    average_focus_level: float
    mood_logs_count: int


class Review(ClientModel):
    id: str
    date: date
    good: str = ""
    bad: str = ""
    end_energy: int
    ai_summary: str = ""
    ai_advice: str = ""
    created_at: Optional[datetime] = None
