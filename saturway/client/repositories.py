"""One repository per domain slice, each with its own loading flag and error."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple, TypeVar

from saturway.client.models import (
    AIInsight,
    CurrentMood,
    EnergyLog,
    EnergyToday,
    Habit,
    HabitLog,
    HabitState,
    HabitStats,
    MoodLog,
    Review,
    ScheduleSuggestion,
    Task,
    TaskSuggestion,
)
from saturway.client.optimistic import VersionTracker, run_optimistic
from saturway.services.scales import five_point_to_ten

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _message(exc: Exception, fallback: str) -> str:
    return str(exc) or fallback


class TasksBackend(Protocol):
    async def list(self) -> List[Task]: ...
    async def create(self, title: str, **fields: Any) -> Task: ...
    async def update(self, task_id: str, updates: Dict[str, Any]) -> Task: ...
    async def delete(self, task_id: str) -> None: ...
    async def complete(self, task_id: str) -> Task: ...


class MoodBackend(Protocol):
    async def log(self, energy_level: int, focus_level: int, notes: Optional[str] = None) -> MoodLog: ...
    async def logs(self, days: int = 7) -> List[MoodLog]: ...


class EnergyBackend(Protocol):
    async def create(self, value: int, source: str = "today") -> EnergyLog: ...
    async def today(self) -> EnergyToday: ...


class HabitBackend(Protocol):
    async def get(self) -> HabitState: ...
    async def create(self, title: str, **fields: Any) -> HabitState: ...
    async def update(self, **fields: Any) -> HabitState: ...
    async def delete(self) -> None: ...
    async def mark_today(self) -> HabitState: ...


class ReviewBackend(Protocol):
    async def today(self) -> Optional[Review]: ...
    async def create(self, good: str, bad: str, end_energy: int) -> Review: ...


class InsightsBackend(Protocol):
    async def insights(self) -> List[AIInsight]: ...
    async def optimize_schedule(self, task_ids: Optional[List[str]] = None, **fields: Any) -> List[ScheduleSuggestion]: ...
    async def suggestions(self) -> List[TaskSuggestion]: ...


class Repository:
    """Base slice: ``loading``, ``error`` and change notification."""

    name = "slice"

    def __init__(self) -> None:
        self.loading = False
        self.error: Optional[str] = None
        self.on_change: Optional[Callable[[str], None]] = None

    def _changed(self) -> None:
        if self.on_change:
            self.on_change(self.name)

    def _start(self) -> None:
        self.loading = True
        self.error = None
        self._changed()

    def _fail(self, exc: Exception, fallback: str) -> None:
        logger.error("%s: %s", fallback, exc)
        self.error = _message(exc, fallback)
        self.loading = False
        self._changed()

    async def _read(self, fetch: Callable[[], Awaitable[T]], assign: Callable[[T], None], fallback: str) -> None:
        """Loading/error/data triple. Failures keep the previous data and are not raised."""
        self._start()
        try:
            result = await fetch()
        except Exception as exc:
            self._fail(exc, fallback)
            return
        assign(result)
        self.loading = False
        self._changed()

    async def _write(self, call: Callable[[], Awaitable[T]], assign: Callable[[T], None], fallback: str) -> T:
        """Server-authoritative write. Failures are recorded and re-raised."""
        self._start()
        try:
            result = await call()
        except Exception as exc:
            self._fail(exc, fallback)
            raise
        assign(result)
        self.loading = False
        self._changed()
        return result


class TaskRepository(Repository):
    name = "tasks"

    def __init__(self, api: TasksBackend, versions: Optional[VersionTracker] = None):
        super().__init__()
        self.api = api
        self.versions = versions or VersionTracker()
        self.tasks: List[Task] = []

    def _index(self, task_id: str) -> Optional[int]:
        for index, task in enumerate(self.tasks):
            if task.id == task_id:
                return index
        return None

    def _replace(self, task: Task) -> None:
        # Tasks no longer (or never) held locally are not inserted.
        index = self._index(task.id)
        if index is not None:
            self.tasks = [*self.tasks[:index], task, *self.tasks[index + 1:]]
            self._changed()

    def _record_error(self, fallback: str) -> Callable[[Exception], None]:
        def record(exc: Exception) -> None:
            logger.error("%s: %s", fallback, exc)
            self.error = _message(exc, fallback)
            self._changed()

        return record

    def _patch_local(self, task_id: str, changes: Dict[str, Any]) -> Tuple[Optional[int], Optional[Task]]:
        index = self._index(task_id)
        if index is None:
            return None, None
        previous = self.tasks[index]
        self.tasks = [*self.tasks[:index], previous.model_copy(update=changes), *self.tasks[index + 1:]]
        self._changed()
        return index, previous

    def _restore(self, snapshot: Tuple[Optional[int], Optional[Task]]) -> None:
        index, previous = snapshot
        if previous is None:
            return
        current = self._index(previous.id)
        if current is not None:
            self.tasks = [*self.tasks[:current], previous, *self.tasks[current + 1:]]
        else:
            position = min(index if index is not None else len(self.tasks), len(self.tasks))
            self.tasks = [*self.tasks[:position], previous, *self.tasks[position:]]
        self._changed()

    @staticmethod
    def _confirmed(task: Task, snapshot: Tuple[Optional[int], Optional[Task]]) -> Tuple[Optional[int], Optional[Task]]:
        index, previous = snapshot
        # Nothing to restore for a task that was not held locally.
        return (index, task) if previous is not None else snapshot

    async def fetch_tasks(self) -> None:
        def assign(tasks: List[Task]) -> None:
            self.tasks = list(tasks)

        await self._read(self.api.list, assign, "Failed to load tasks")

    async def add_task(self, title: str, **fields: Any) -> Task:
        def assign(task: Task) -> None:
            self.tasks = [*self.tasks, task]

        return await self._write(lambda: self.api.create(title, **fields), assign, "Failed to create task")

    async def complete_task(self, task_id: str) -> Task:
        """Mark completed locally right away, then swap in the server's task."""
        self.error = None
        return await run_optimistic(
            key=("task", task_id),
            versions=self.versions,
            apply=lambda: self._patch_local(task_id, {"status": "completed"}),
            call_remote=lambda: self.api.complete(task_id),
            reconcile=self._replace,
            rollback=self._restore,
            confirm=self._confirmed,
            on_error=self._record_error("Failed to complete task"),
        )

    async def update_task(self, task_id: str, updates: Dict[str, Any]) -> Task:
        self.error = None
        return await run_optimistic(
            key=("task", task_id),
            versions=self.versions,
            apply=lambda: self._patch_local(task_id, updates),
            call_remote=lambda: self.api.update(task_id, updates),
            reconcile=self._replace,
            rollback=self._restore,
            confirm=self._confirmed,
            on_error=self._record_error("Failed to update task"),
        )

    async def delete_task(self, task_id: str) -> None:
        def apply() -> Tuple[Optional[int], Optional[Task]]:
            index = self._index(task_id)
            if index is None:
                return None, None
            removed = self.tasks[index]
            self.tasks = [*self.tasks[:index], *self.tasks[index + 1:]]
            self._changed()
            return index, removed

        self.error = None
        await run_optimistic(
            key=("task", task_id),
            versions=self.versions,
            apply=apply,
            call_remote=lambda: self.api.delete(task_id),
            reconcile=lambda _result: None,
            rollback=self._restore,
            confirm=lambda _result, snapshot: (snapshot[0], None),
            on_error=self._record_error("Failed to delete task"),
        )


def latest_mood(logs: List[MoodLog]) -> Optional[CurrentMood]:
    """The most recent log by ``logged_at``, independent of list order."""
    if not logs:
        return None
    latest = max(logs, key=lambda log: log.logged_at)
    return CurrentMood(energy=latest.energy_level, focus=latest.focus_level)


class MoodRepository(Repository):
    name = "mood"

    def __init__(self, api: MoodBackend):
        super().__init__()
        self.api = api
        self.logs: List[MoodLog] = []

    @property
    def current_mood(self) -> Optional[CurrentMood]:
        return latest_mood(self.logs)

    async def fetch_mood_logs(self, days: int = 7) -> None:
        def assign(logs: List[MoodLog]) -> None:
            self.logs = list(logs)

        await self._read(lambda: self.api.logs(days), assign, "Failed to load mood logs")

    async def log_mood(self, energy: int, focus: int, notes: Optional[str] = None) -> MoodLog:
        def assign(entry: MoodLog) -> None:
            self.logs = [entry, *self.logs]

        return await self._write(lambda: self.api.log(energy, focus, notes), assign, "Failed to log mood")

    async def log_mood_rating(self, energy: int, focus: int, notes: Optional[str] = None) -> MoodLog:
        """Log a 1-5 rating from the quick check-in, stored on the 1-10 scale."""
        return await self.log_mood(five_point_to_ten(energy), five_point_to_ten(focus), notes)


class EnergyRepository(Repository):
    name = "energy"

    def __init__(self, api: EnergyBackend):
        super().__init__()
        self.api = api
        self.logs: List[EnergyLog] = []
        self.avg_today: Optional[int] = None
        self.last_today: Optional[int] = None

    def _assign(self, today: EnergyToday) -> None:
        self.logs = list(today.logs)
        self.avg_today = today.avg_value
        self.last_today = today.last_value

    async def fetch_today_energy(self) -> None:
        await self._read(self.api.today, self._assign, "Failed to load energy")

    async def add_energy_log(self, value: int, source: str = "today") -> EnergyToday:
        async def create_then_refresh() -> EnergyToday:
            await self.api.create(value, source)
            return await self.api.today()

        return await self._write(create_then_refresh, self._assign, "Failed to add energy log")


class HabitRepository(Repository):
    name = "habit"

    def __init__(self, api: HabitBackend):
        super().__init__()
        self.api = api
        self.habit: Optional[Habit] = None
        self.logs: List[HabitLog] = []
        self.stats: Optional[HabitStats] = None

    def _assign(self, state: Optional[HabitState]) -> None:
        state = state or HabitState()
        self.habit = state.habit
        self.logs = list(state.logs)
        self.stats = state.stats

    async def fetch_habit(self) -> None:
        await self._read(self.api.get, self._assign, "Failed to load habit")

    async def create_habit(self, title: str, **fields: Any) -> HabitState:
        return await self._write(lambda: self.api.create(title, **fields), self._assign, "Failed to create habit")

    async def update_habit(self, **fields: Any) -> HabitState:
        return await self._write(lambda: self.api.update(**fields), self._assign, "Failed to update habit")

    async def delete_habit(self) -> None:
        await self._write(self.api.delete, lambda _result: self._assign(None), "Failed to delete habit")

    async def mark_today(self) -> HabitState:
        return await self._write(self.api.mark_today, self._assign, "Failed to mark today")


class InsightsRepository(Repository):
    name = "insights"

    def __init__(self, api: InsightsBackend):
        super().__init__()
        self.api = api
        self.insights: List[AIInsight] = []

    async def fetch_insights(self) -> None:
        def assign(insights: List[AIInsight]) -> None:
            self.insights = list(insights)

        await self._read(self.api.insights, assign, "Failed to load insights")

    async def optimize_schedule(self, task_ids: Optional[List[str]] = None, **fields: Any) -> List[ScheduleSuggestion]:
        return await self.api.optimize_schedule(task_ids, **fields)

    async def task_suggestions(self) -> List[TaskSuggestion]:
        return await self.api.suggestions()


class ReviewRepository(Repository):
    name = "review"

    def __init__(self, api: ReviewBackend):
        super().__init__()
        self.api = api
        self.review: Optional[Review] = None

    def _assign(self, review: Optional[Review]) -> None:
        self.review = review

    async def fetch_today_review(self) -> None:
        await self._read(self.api.today, self._assign, "Failed to load review")

    async def submit_review(self, good: str, bad: str, end_energy: int) -> Review:
        return await self._write(lambda: self.api.create(good, bad, end_energy), self._assign, "Failed to save review")
