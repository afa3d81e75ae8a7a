"""ORM models exposed for metadata discovery."""
from saturway.db.models.energy_log import EnergyLog
from saturway.db.models.habit import Habit, HabitLog
from saturway.db.models.mood_log import MoodLog
from saturway.db.models.review import Review
from saturway.db.models.task import Task
from saturway.db.models.user import User

__all__ = [
    "EnergyLog",
    "Habit",
    "HabitLog",
    "MoodLog",
    "Review",
    "Task",
    "User",
]
