from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest

from saturway.client.errors import ApiError
from saturway.client.models import AIInsight, EnergyLog, EnergyToday, HabitState, MoodLog, Review, Task
from saturway.client.optimistic import VersionTracker, run_optimistic
from saturway.client.repositories import (
    EnergyRepository,
    HabitRepository,
    InsightsRepository,
    MoodRepository,
    ReviewRepository,
    TaskRepository,
    latest_mood,
)
from saturway.client.store import AppState


class _FakeTasks:
    """Remote calls block until the test releases them."""

    def __init__(self, tasks: List[Task] | None = None):
        self.tasks = tasks or []
        self.gates: Dict[str, asyncio.Event] = {}
        self.results: Dict[str, Any] = {}
        self.list_error: Exception | None = None

    def _gate(self, name: str) -> asyncio.Event:
        return self.gates.setdefault(name, asyncio.Event())

    async def _resolve(self, name: str) -> Any:
        await self._gate(name).wait()
        result = self.results.pop(name)
        if isinstance(result, Exception):
            raise result
        return result

    async def list(self) -> List[Task]:
        if self.list_error:
            raise self.list_error
        return list(self.tasks)

    async def create(self, title: str, **fields: Any) -> Task:
        return Task(id="new", title=title, **fields)

    async def update(self, task_id: str, updates: Dict[str, Any]) -> Task:
        return await self._resolve(f"update:{task_id}")

    async def delete(self, task_id: str) -> None:
        return await self._resolve(f"delete:{task_id}")

    async def complete(self, task_id: str) -> Task:
        return await self._resolve(f"complete:{task_id}")

    def release(self, name: str, result: Any) -> None:
        self.results[name] = result
        self._gate(name).set()


def _tasks() -> List[Task]:
    return [Task(id="1", status="pending"), Task(id="2", status="completed")]


@pytest.mark.asyncio
async def test_complete_task_end_to_end():
    api = _FakeTasks()
    repo = TaskRepository(api)
    repo.tasks = _tasks()

    pending = asyncio.create_task(repo.complete_task("1"))
    await asyncio.sleep(0)

    # Optimistic state is visible before the server answers.
    assert repo.tasks[0].status == "completed"
    assert repo.tasks[0].completed_at is None

    api.release("complete:1", Task.model_validate({"id": "1", "status": "completed", "completedAt": "2025-01-01T00:00:00Z"}))
    await pending

    assert [(t.id, t.status) for t in repo.tasks] == [("1", "completed"), ("2", "completed")]
    assert repo.tasks[0].completed_at == datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert repo.tasks[1].completed_at is None
    assert repo.error is None


@pytest.mark.asyncio
async def test_delete_failure_restores_original_position():
    api = _FakeTasks()
    repo = TaskRepository(api)
    repo.tasks = [Task(id="a"), Task(id="b"), Task(id="c")]

    pending = asyncio.create_task(repo.delete_task("b"))
    await asyncio.sleep(0)
    assert [t.id for t in repo.tasks] == ["a", "c"]

    api.release("delete:b", ApiError("Task not found", 404))
    with pytest.raises(ApiError):
        await pending

    assert [t.id for t in repo.tasks] == ["a", "b", "c"]
    assert repo.error == "Task not found"


@pytest.mark.asyncio
async def test_failed_rollback_keeps_unrelated_changes():
    api = _FakeTasks()
    repo = TaskRepository(api)
    repo.tasks = _tasks()

    pending = asyncio.create_task(repo.complete_task("1"))
    await asyncio.sleep(0)
    repo.tasks = [*repo.tasks, Task(id="3")]

    api.release("complete:1", ApiError("boom", 500))
    with pytest.raises(ApiError):
        await pending

    assert [(t.id, t.status) for t in repo.tasks] == [("1", "pending"), ("2", "completed"), ("3", "pending")]
    assert repo.error == "boom"


@pytest.mark.asyncio
async def test_complete_unknown_task_leaves_state_unchanged():
    api = _FakeTasks()
    repo = TaskRepository(api)
    repo.tasks = _tasks()

    pending = asyncio.create_task(repo.complete_task("missing"))
    await asyncio.sleep(0)
    api.release("complete:missing", Task(id="missing", status="completed"))
    await pending

    assert [t.id for t in repo.tasks] == ["1", "2"]


@pytest.mark.asyncio
async def test_stale_reply_is_discarded():
    api = _FakeTasks()
    repo = TaskRepository(api)
    repo.tasks = _tasks()

    first = asyncio.create_task(repo.update_task("1", {"title": "first"}))
    await asyncio.sleep(0)
    first_gate = api.gates.pop("update:1")
    second = asyncio.create_task(repo.update_task("1", {"title": "second"}))
    await asyncio.sleep(0)
    assert repo.tasks[0].title == "second"

    api.release("update:1", Task(id="1", title="second (server)"))
    await second
    api.results["update:1"] = Task(id="1", title="first (server)")
    first_gate.set()
    await first

    assert repo.tasks[0].title == "second (server)"


@pytest.mark.asyncio
async def test_run_optimistic_ignores_out_of_order_replies():
    versions = VersionTracker()
    state = {"value": 0}
    applied: List[str] = []
    slow_gate = asyncio.Event()

    async def slow() -> str:
        await slow_gate.wait()
        return "old"

    async def fast() -> str:
        return "new"

    def apply(value: int):
        def _apply() -> int:
            previous = state["value"]
            state["value"] = value
            return previous

        return _apply

    old = asyncio.create_task(
        run_optimistic(key="k", versions=versions, apply=apply(1), call_remote=slow, reconcile=applied.append, rollback=lambda s: None)
    )
    await asyncio.sleep(0)
    await run_optimistic(key="k", versions=versions, apply=apply(2), call_remote=fast, reconcile=applied.append, rollback=lambda s: None)
    slow_gate.set()
    assert await old == "old"

    assert applied == ["new"]
    assert state["value"] == 2


@pytest.mark.asyncio
async def test_superseded_failure_waits_for_newest_mutation():
    versions = VersionTracker()
    state = {"value": 0}
    gates = {1: asyncio.Event(), 2: asyncio.Event()}
    errors: List[Exception] = []

    def failing(version: int):
        async def _call() -> None:
            await gates[version].wait()
            raise ApiError(f"failure {version}")

        return _call

    def set_to(value: int):
        def _apply() -> int:
            previous = state["value"]
            state["value"] = value
            return previous

        return _apply

    def rollback(previous: int) -> None:
        state["value"] = previous

    def start(value: int) -> "asyncio.Task[None]":
        return asyncio.create_task(
            run_optimistic(
                key="k",
                versions=versions,
                apply=set_to(value),
                call_remote=failing(value),
                reconcile=lambda r: None,
                rollback=rollback,
                on_error=errors.append,
            )
        )

    older = start(1)
    await asyncio.sleep(0)
    newer = start(2)
    await asyncio.sleep(0)

    gates[1].set()
    with pytest.raises(ApiError):
        await older
    assert state["value"] == 2

    gates[2].set()
    with pytest.raises(ApiError):
        await newer
    # Neither write was accepted, so the value from before both comes back.
    assert state["value"] == 0
    assert len(errors) == 2


async def _complete_twice(api: _FakeTasks, repo: TaskRepository):
    first = asyncio.create_task(repo.complete_task("1"))
    await asyncio.sleep(0)
    first_gate = api.gates.pop("complete:1")
    second = asyncio.create_task(repo.complete_task("1"))
    await asyncio.sleep(0)
    return first, first_gate, second


@pytest.mark.asyncio
async def test_two_failed_completes_restore_pending_in_order():
    api = _FakeTasks()
    repo = TaskRepository(api)
    repo.tasks = _tasks()
    first, first_gate, second = await _complete_twice(api, repo)

    api.results["complete:1"] = ApiError("boom", 500)
    first_gate.set()
    with pytest.raises(ApiError):
        await first
    api.release("complete:1", ApiError("boom again", 500))
    with pytest.raises(ApiError):
        await second

    assert repo.tasks[0].status == "pending"
    assert repo.error == "boom again"


@pytest.mark.asyncio
async def test_two_failed_completes_restore_pending_newest_first():
    api = _FakeTasks()
    repo = TaskRepository(api)
    repo.tasks = _tasks()
    first, first_gate, second = await _complete_twice(api, repo)

    api.release("complete:1", ApiError("boom", 500))
    with pytest.raises(ApiError):
        await second
    assert repo.tasks[0].status == "pending"

    api.results["complete:1"] = ApiError("late", 500)
    first_gate.set()
    with pytest.raises(ApiError):
        await first

    assert repo.tasks[0].status == "pending"


@pytest.mark.asyncio
async def test_failed_complete_then_failed_update_restores_original():
    api = _FakeTasks()
    repo = TaskRepository(api)
    repo.tasks = [Task(id="1", title="t", status="pending")]

    complete = asyncio.create_task(repo.complete_task("1"))
    await asyncio.sleep(0)
    update = asyncio.create_task(repo.update_task("1", {"title": "x"}))
    await asyncio.sleep(0)
    assert (repo.tasks[0].status, repo.tasks[0].title) == ("completed", "x")

    api.release("complete:1", ApiError("boom", 500))
    with pytest.raises(ApiError):
        await complete
    api.release("update:1", ApiError("boom", 500))
    with pytest.raises(ApiError):
        await update

    assert (repo.tasks[0].status, repo.tasks[0].title) == ("pending", "t")


@pytest.mark.asyncio
async def test_failed_update_falls_back_to_earlier_server_reply():
    api = _FakeTasks()
    repo = TaskRepository(api)
    repo.tasks = [Task(id="1", title="t", status="pending")]

    complete = asyncio.create_task(repo.complete_task("1"))
    await asyncio.sleep(0)
    update = asyncio.create_task(repo.update_task("1", {"title": "x"}))
    await asyncio.sleep(0)

    server_task = Task.model_validate({"id": "1", "title": "t", "status": "completed", "completedAt": "2025-01-01T00:00:00Z"})
    api.release("complete:1", server_task)
    await complete
    # The update is still pending, so its optimistic title stays visible.
    assert repo.tasks[0].title == "x"

    api.release("update:1", ApiError("boom", 500))
    with pytest.raises(ApiError):
        await update

    assert repo.tasks[0] == server_task
    assert repo.tasks[0].completed_at == datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_older_success_after_newer_failure_is_applied():
    api = _FakeTasks()
    repo = TaskRepository(api)
    repo.tasks = [Task(id="1", title="t", status="pending")]

    complete = asyncio.create_task(repo.complete_task("1"))
    await asyncio.sleep(0)
    update = asyncio.create_task(repo.update_task("1", {"title": "x"}))
    await asyncio.sleep(0)

    api.release("update:1", ApiError("boom", 500))
    with pytest.raises(ApiError):
        await update
    assert (repo.tasks[0].status, repo.tasks[0].title) == ("pending", "t")

    api.release("complete:1", Task(id="1", title="t", status="completed"))
    await complete

    assert repo.tasks[0].status == "completed"


@pytest.mark.asyncio
async def test_fetch_failure_keeps_previous_data():
    api = _FakeTasks(tasks=_tasks())
    repo = TaskRepository(api)
    await repo.fetch_tasks()
    assert [t.id for t in repo.tasks] == ["1", "2"]

    api.list_error = ApiError("Network error")
    await repo.fetch_tasks()

    assert [t.id for t in repo.tasks] == ["1", "2"]
    assert repo.error == "Network error"
    assert repo.loading is False


def _mood(log_id: str, energy: int, focus: int, logged_at: str) -> MoodLog:
    return MoodLog.model_validate({"id": log_id, "energyLevel": energy, "focusLevel": focus, "loggedAt": logged_at})


def test_latest_mood_ignores_list_order():
    logs = [
        _mood("a", 3, 4, "2025-01-01T08:00:00Z"),
        _mood("b", 9, 8, "2025-01-02T08:00:00Z"),
        _mood("c", 5, 5, "2025-01-01T20:00:00Z"),
    ]
    current = latest_mood(logs)
    assert (current.energy, current.focus) == (9, 8)
    assert latest_mood([]) is None


class _FakeMood:
    def __init__(self, logs: List[MoodLog]):
        self._logs = logs

    async def log(self, energy_level: int, focus_level: int, notes=None) -> MoodLog:
        return _mood("new", energy_level, focus_level, "2025-01-03T08:00:00Z")

    async def logs(self, days: int = 7) -> List[MoodLog]:
        return list(self._logs)


class _FakeEnergy:
    def __init__(self):
        self.created: List[int] = []

    async def create(self, value: int, source: str = "today") -> EnergyLog:
        self.created.append(value)
        return EnergyLog(id=str(len(self.created)), value=value, source=source)

    async def today(self) -> EnergyToday:
        logs = [EnergyLog(id=str(i), value=v) for i, v in enumerate(self.created)]
        if not logs:
            return EnergyToday()
        return EnergyToday(logs=logs, last_value=self.created[-1], avg_value=round(sum(self.created) / len(self.created)))


class _FailingHabit:
    async def get(self) -> HabitState:
        raise ApiError("Failed to load habit", 500)


class _FakeInsights:
    async def insights(self) -> List[AIInsight]:
        return [AIInsight(id="i1", title="Low energy", description="Rest", category="wellness", priority="high", actionable=True)]


@pytest.mark.asyncio
async def test_current_mood_from_fetch_and_from_log():
    repo = MoodRepository(_FakeMood([_mood("a", 2, 2, "2025-01-01T08:00:00Z"), _mood("b", 6, 7, "2025-01-02T08:00:00Z")]))
    await repo.fetch_mood_logs()
    assert (repo.current_mood.energy, repo.current_mood.focus) == (6, 7)

    await repo.log_mood(9, 9)
    assert (repo.current_mood.energy, repo.current_mood.focus) == (9, 9)
    assert repo.logs[0].id == "new"


@pytest.mark.asyncio
async def test_five_point_rating_is_logged_on_ten_point_scale():
    repo = MoodRepository(_FakeMood([]))
    entry = await repo.log_mood_rating(3, 5)

    assert (entry.energy_level, entry.focus_level) == (6, 10)
    assert (repo.current_mood.energy_rating, repo.current_mood.focus_rating) == (3, 5)
    with pytest.raises(ValueError):
        await repo.log_mood_rating(0, 3)


@pytest.mark.asyncio
async def test_energy_add_refreshes_today():
    repo = EnergyRepository(_FakeEnergy())
    await repo.add_energy_log(40)
    await repo.add_energy_log(100)

    assert repo.last_today == 100
    assert repo.avg_today == 70
    assert len(repo.logs) == 2


def _state(habit_api=None) -> AppState:
    return AppState(
        tasks=TaskRepository(_FakeTasks(tasks=_tasks())),
        mood=MoodRepository(_FakeMood([])),
        energy=EnergyRepository(_FakeEnergy()),
        habit=HabitRepository(habit_api or _FailingHabit()),
        insights=InsightsRepository(_FakeInsights()),
    )


@pytest.mark.asyncio
async def test_initialize_app_isolates_failures():
    state = _state()
    await state.initialize_app()

    assert [t.id for t in state.tasks.tasks] == ["1", "2"]
    assert [i.id for i in state.insights.insights] == ["i1"]
    assert state.habit_error == "Failed to load habit"
    assert state.tasks_error is None
    assert state.mood_error is None
    assert state.energy_error is None
    assert state.insights_error is None
    assert state.energy.avg_today is None


@pytest.mark.asyncio
async def test_listeners_are_notified_per_slice():
    state = _state()
    seen: List[str] = []
    unsubscribe = state.subscribe(seen.append)

    await state.tasks.fetch_tasks()
    unsubscribe()
    await state.insights.fetch_insights()

    assert set(seen) == {"tasks"}


class _FakeReview:
    def __init__(self):
        self.saved: Review | None = None
        self.fail_next = False

    async def today(self) -> Review | None:
        return self.saved

    async def create(self, good: str, bad: str, end_energy: int) -> Review:
        if self.fail_next:
            raise ApiError("Validation failed", 400)
        self.saved = Review(id="r-1", date="2025-01-01", good=good, bad=bad, end_energy=end_energy, ai_advice="Rest")
        return self.saved


@pytest.mark.asyncio
async def test_review_slice_fetches_and_submits():
    api = _FakeReview()
    state = AppState(
        tasks=TaskRepository(_FakeTasks()),
        mood=MoodRepository(_FakeMood([])),
        energy=EnergyRepository(_FakeEnergy()),
        habit=HabitRepository(_FailingHabit()),
        insights=InsightsRepository(_FakeInsights()),
        review=ReviewRepository(api),
    )
    seen: List[str] = []
    state.subscribe(seen.append)

    await state.review.fetch_today_review()
    assert state.review.review is None

    saved = await state.review.submit_review("shipped", "meetings", 60)
    assert state.review.review == saved
    assert "review" in seen

    api.fail_next = True
    with pytest.raises(ApiError):
        await state.review.submit_review("", "", 40)
    assert state.review_error == "Validation failed"
    assert state.review.review == saved
