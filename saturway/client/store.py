"""Application state: the domain repositories plus app-wide wiring."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional

from saturway.client.api import ApiClient
from saturway.client.config import ClientSettings, get_client_settings
from saturway.client.models import User
from saturway.client.optimistic import VersionTracker
from saturway.client.repositories import (
    EnergyRepository,
    HabitRepository,
    InsightsRepository,
    MoodRepository,
    Repository,
    ReviewRepository,
    TaskRepository,
)
from saturway.client.services import (
    AuthApi,
    EnergyApi,
    HabitApi,
    InsightsApi,
    MoodApi,
    ReviewApi,
    TasksApi,
    UserApi,
)
from saturway.client.session import SessionStore

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


class AppState:
    """Composes the per-domain repositories. Each slice owns its own error."""

    def __init__(
        self,
        *,
        tasks: TaskRepository,
        mood: MoodRepository,
        energy: EnergyRepository,
        habit: HabitRepository,
        insights: InsightsRepository,
        review: Optional[ReviewRepository] = None,
        users: Optional[UserApi] = None,
        auth: Optional[AuthApi] = None,
    ):
        self.tasks = tasks
        self.mood = mood
        self.energy = energy
        self.habit = habit
        self.insights = insights
        self.review = review
        self.users = users
        self.auth = auth
        self.user: Optional[User] = None
        self._listeners: List[Listener] = []
        for repository in self._repositories():
            repository.on_change = self._notify

    @classmethod
    def from_client(cls, client: ApiClient) -> "AppState":
        return cls(
            tasks=TaskRepository(TasksApi(client), VersionTracker()),
            mood=MoodRepository(MoodApi(client)),
            energy=EnergyRepository(EnergyApi(client)),
            habit=HabitRepository(HabitApi(client)),
            insights=InsightsRepository(InsightsApi(client)),
            review=ReviewRepository(ReviewApi(client)),
            users=UserApi(client),
            auth=AuthApi(client),
        )

    @classmethod
    def from_settings(cls, settings: Optional[ClientSettings] = None) -> "AppState":
        settings = settings or get_client_settings()
        client = ApiClient(
            settings.api_url,
            timeout_s=settings.api_timeout_s,
            session=SessionStore(settings.token_path),
        )
        return cls.from_client(client)

    def _repositories(self) -> List[Repository]:
        repositories: List[Repository] = [self.tasks, self.mood, self.energy, self.habit, self.insights]
        if self.review is not None:
            repositories.append(self.review)
        return repositories

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(slice_name)`` on every change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, slice_name: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(slice_name)
            except Exception:
                logger.exception("State listener failed for %s", slice_name)

    @property
    def tasks_error(self) -> Optional[str]:
        return self.tasks.error

    @property
    def mood_error(self) -> Optional[str]:
        return self.mood.error

    @property
    def energy_error(self) -> Optional[str]:
        return self.energy.error

    @property
    def habit_error(self) -> Optional[str]:
        return self.habit.error

    @property
    def insights_error(self) -> Optional[str]:
        return self.insights.error

    @property
    def review_error(self) -> Optional[str]:
        return self.review.error if self.review is not None else None

    async def initialize_app(self) -> None:
        """Run the five startup fetches concurrently. One failing does not stop the others."""
        results = await asyncio.gather(
            self.tasks.fetch_tasks(),
            self.mood.fetch_mood_logs(7),
            self.insights.fetch_insights(),
            self.habit.fetch_habit(),
            self.energy.fetch_today_energy(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error("Initial load branch failed: %s", result)

    async def authenticate(self, init_data: str) -> User:
        if self.auth is None:
            raise RuntimeError("AppState was built without an auth backend")
        self.user = await self.auth.authenticate(init_data)
        self._notify("user")
        return self.user

    async def update_user(self, **fields: Any) -> User:
        if self.users is None:
            raise RuntimeError("AppState was built without a user backend")
        try:
            self.user = await self.users.update(**fields)
        except Exception:
            logger.exception("Failed to update user")
            raise
        self._notify("user")
        return self.user

    def logout(self) -> None:
        if self.auth is not None:
            self.auth.logout()
        self.user = None
        self._notify("user")
