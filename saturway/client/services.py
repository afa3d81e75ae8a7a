"""Typed adapters over the REST resources. Each unwraps its response envelope."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from saturway.client.api import ApiClient
from saturway.client.models import (
    AIInsight,
    EnergyLog,
    EnergyToday,
    HabitState,
    MoodLog,
    MoodStats,
    Review,
    ScheduleSuggestion,
    Task,
    TaskSuggestion,
    User,
    UserStats,
)


def _wire(fields: Dict[str, Any]) -> Dict[str, Any]:
    """snake_case keyword arguments to camelCase wire keys."""
    out: Dict[str, Any] = {}
    for key, value in fields.items():
        head, *rest = key.split("_")
        out[head + "".join(part.title() for part in rest)] = value
    return out


class TasksApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def list(self, status: Optional[str] = None) -> List[Task]:
        endpoint = f"/tasks?status={status}" if status else "/tasks"
        body = await self.client.get(endpoint)
        return [Task.model_validate(item) for item in body["data"]["tasks"]]

    async def get(self, task_id: str) -> Task:
        body = await self.client.get(f"/tasks/{task_id}")
        return Task.model_validate(body["data"]["task"])

    async def create(self, title: str, **fields: Any) -> Task:
        body = await self.client.post("/tasks", {"title": title, **_wire(fields)})
        return Task.model_validate(body["data"]["task"])

    async def update(self, task_id: str, updates: Dict[str, Any]) -> Task:
        body = await self.client.patch(f"/tasks/{task_id}", _wire(updates))
        return Task.model_validate(body["data"]["task"])

    async def delete(self, task_id: str) -> None:
        await self.client.delete(f"/tasks/{task_id}")

    async def complete(self, task_id: str) -> Task:
        body = await self.client.post(f"/tasks/{task_id}/complete", {})
        return Task.model_validate(body["data"]["task"])


class MoodApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def log(self, energy_level: int, focus_level: int, notes: Optional[str] = None) -> MoodLog:
        payload: Dict[str, Any] = {"energyLevel": energy_level, "focusLevel": focus_level}
        if notes:
            payload["notes"] = notes
        body = await self.client.post("/mood/log", payload)
        return MoodLog.model_validate(body["log"])

    async def logs(self, days: int = 7) -> List[MoodLog]:
        body = await self.client.get(f"/mood/logs?days={days}")
        return [MoodLog.model_validate(item) for item in body["logs"]]

    async def stats(self, days: int = 7) -> MoodStats:
        body = await self.client.get(f"/mood/stats?days={days}")
        return MoodStats.model_validate(body["stats"])


class EnergyApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def create(self, value: int, source: str = "today") -> EnergyLog:
        body = await self.client.post("/energy", {"value": value, "source": source})
        return EnergyLog.model_validate(body["data"]["energyLog"])

    async def today(self) -> EnergyToday:
        body = await self.client.get("/energy/today")
        return EnergyToday.model_validate(body["data"])


class HabitApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get(self) -> HabitState:
        return HabitState.model_validate((await self.client.get("/habit"))["data"])

    async def create(self, title: str, **fields: Any) -> HabitState:
        body = await self.client.post("/habit", {"title": title, **_wire(fields)})
        return HabitState.model_validate(body["data"])

    async def update(self, **fields: Any) -> HabitState:
        body = await self.client.patch("/habit", _wire(fields))
        return HabitState.model_validate(body["data"])

    async def delete(self) -> None:
        await self.client.delete("/habit")

    async def mark_today(self) -> HabitState:
        return HabitState.model_validate((await self.client.post("/habit/mark-today", {}))["data"])


class InsightsApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def insights(self) -> List[AIInsight]:
        body = await self.client.get("/ai/insights")
        return [AIInsight.model_validate(item) for item in body["insights"]]

    async def optimize_schedule(self, task_ids: Optional[List[str]] = None, **fields: Any) -> List[ScheduleSuggestion]:
        body = await self.client.post("/ai/optimize-schedule", {"tasks": task_ids or [], **_wire(fields)})
        return [ScheduleSuggestion.model_validate(item) for item in body["suggestions"]]

    async def suggestions(self) -> List[TaskSuggestion]:
        body = await self.client.post("/ai/suggestions")
        return [TaskSuggestion.model_validate(item) for item in body["suggestions"]]

    async def chat(self, message: str, history: Optional[List[Dict[str, str]]] = None) -> str:
        body = await self.client.post("/ai/chat", {"message": message, "history": history or []})
        return body["response"]


class ReviewApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def today(self) -> Optional[Review]:
        review = (await self.client.get("/review/today"))["data"]["review"]
        return Review.model_validate(review) if review else None

    async def create(self, good: str, bad: str, end_energy: int) -> Review:
        """Save today's review; the server fills in the AI summary and advice."""
        body = await self.client.post("/review", {"good": good, "bad": bad, "endEnergy": end_energy})
        return Review.model_validate(body["data"]["review"])


class UserApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def me(self) -> User:
        return User.model_validate((await self.client.get("/user/me"))["data"])

    async def update(self, **fields: Any) -> User:
        body = await self.client.patch("/user/me", _wire(fields))
        return User.model_validate(body["data"])

    async def stats(self) -> UserStats:
        return UserStats.model_validate((await self.client.get("/user/stats"))["data"])


class AuthApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def authenticate(self, init_data: str) -> User:
        """Exchange Telegram initData for a bearer token; the token is stored on the client."""
        body = await self.client.post("/auth", {"initData": init_data})
        self.client.set_token(body["token"])
        return User.model_validate(body["user"])

    def logout(self) -> None:
        self.client.clear_token()
