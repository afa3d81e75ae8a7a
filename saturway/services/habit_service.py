"""The 40-day habit challenge: one current habit per user with daily marks."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import asc, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from saturway.core.config import settings
from saturway.core.errors import ConflictError, NotFoundError, ValidationError
from saturway.core.time_utils import utc_today, utcnow
from saturway.db.models.habit import HABIT_STATUSES, Habit, HabitLog

_UNSET: Any = object()


def longest_streak(days: Iterable[date]) -> int:
    ordered = sorted(set(days))
    best = run = 0
    previous: Optional[date] = None
    for day in ordered:
        run = run + 1 if previous and day - previous == timedelta(days=1) else 1
        best = max(best, run)
        previous = day
    return best


def current_streak(days: Iterable[date], today: date) -> int:
    """Consecutive done days ending today, or ending yesterday when today is not marked yet."""
    marked = set(days)
    cursor = today if today in marked else today - timedelta(days=1)
    streak = 0
    while cursor in marked:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def current_habit(db: Session, user_id: UUID) -> Optional[Habit]:
    active = (
        db.query(Habit)
        .filter(Habit.user_id == user_id, Habit.status == "active")
        .order_by(desc(Habit.created_at))
        .first()
    )
    if active:
        return active
    return db.query(Habit).filter(Habit.user_id == user_id).order_by(desc(Habit.created_at)).first()


def _done_dates(db: Session, habit: Habit) -> List[date]:
    rows = (
        db.query(HabitLog.date)
        .filter(HabitLog.habit_id == habit.id, HabitLog.done.is_(True))
        .order_by(asc(HabitLog.date))
        .all()
    )
    return [row[0] for row in rows]


def habit_stats(habit: Habit, done_dates: List[date], today: Optional[date] = None) -> Dict[str, Any]:
    today = today or utc_today()
    return {
        "done_days": habit.done_days,
        "target_days": habit.target_days,
        "longest_streak": habit.longest_streak,
        "current_streak": current_streak(done_dates, today),
        "today_done": today in set(done_dates),
        "progress": round(min(habit.done_days / habit.target_days, 1.0) * 100) if habit.target_days else 0,
    }


def _snapshot(db: Session, habit: Habit, today: Optional[date] = None) -> Dict[str, Any]:
    logs = (
        db.query(HabitLog)
        .filter(HabitLog.habit_id == habit.id)
        .order_by(asc(HabitLog.date))
        .all()
    )
    done = [log.date for log in logs if log.done]
    return {"habit": habit, "logs": logs, "stats": habit_stats(habit, done, today)}


def get_habit(db: Session, user_id: UUID) -> Dict[str, Any]:
    habit = current_habit(db, user_id)
    if not habit:
        return {"habit": None, "logs": [], "stats": None}
    return _snapshot(db, habit)


def create_habit(
    db: Session,
    user_id: UUID,
    *,
    title: str,
    description: Optional[str] = None,
    start_date: Optional[date] = None,
    target_days: Optional[int] = None,
) -> Habit:
    if not title or not title.strip():
        raise ValidationError("Habit title is required")
    target = target_days if target_days is not None else settings.habit_default_target_days
    if target < 1:
        raise ValidationError("targetDays must be positive")

    existing = (
        db.query(Habit)
        .filter(Habit.user_id == user_id, Habit.status == "active")
        .first()
    )
    if existing:
        raise ConflictError("An active habit already exists")

    habit = Habit(
        user_id=user_id,
        title=title.strip(),
        description=description,
        start_date=start_date or utc_today(),
        target_days=target,
    )
    db.add(habit)
    db.commit()
    db.refresh(habit)
    return habit


def update_habit(
    db: Session,
    user_id: UUID,
    *,
    title: Optional[str] = None,
    description: Optional[str] = _UNSET,
    status: Optional[str] = None,
    target_days: Optional[int] = None,
) -> Habit:
    habit = current_habit(db, user_id)
    if not habit:
        raise NotFoundError("Habit not found")
    if status is not None and status not in HABIT_STATUSES:
        raise ValidationError(f"Invalid status: {status}")
    if title is not None:
        if not title.strip():
            raise ValidationError("Habit title is required")
        habit.title = title.strip()
    if description is not _UNSET:
        habit.description = description
    if target_days is not None:
        if target_days < 1:
            raise ValidationError("targetDays must be positive")
        habit.target_days = target_days
    if status is not None and status != habit.status:
        if status == "active":
            other = (
                db.query(Habit)
                .filter(Habit.user_id == user_id, Habit.status == "active", Habit.id != habit.id)
                .first()
            )
            if other:
                raise ConflictError("An active habit already exists")
        habit.status = status
        habit.completed_at = utcnow() if status == "completed" else None

    db.add(habit)
    db.commit()
    db.refresh(habit)
    return habit


def delete_habit(db: Session, user_id: UUID) -> None:
    habit = current_habit(db, user_id)
    if not habit:
        raise NotFoundError("Habit not found")
    db.delete(habit)
    db.commit()


def mark_today(db: Session, user_id: UUID, today: Optional[date] = None) -> Dict[str, Any]:
    """Mark the current habit done for today. Marking twice leaves a single log."""
    today = today or utc_today()
    habit = current_habit(db, user_id)
    if not habit or habit.status != "active":
        raise NotFoundError("No active habit")

    exists = (
        db.query(HabitLog)
        .filter(HabitLog.habit_id == habit.id, HabitLog.date == today)
        .first()
    )
    if not exists:
        db.add(HabitLog(habit_id=habit.id, user_id=user_id, date=today, done=True))
        try:
            db.flush()
        except IntegrityError:
            # Concurrent mark for the same day already landed.
            db.rollback()
            habit = current_habit(db, user_id)

    done = _done_dates(db, habit)
    habit.done_days = len(done)
    habit.longest_streak = longest_streak(done)
    if habit.done_days >= habit.target_days and habit.status == "active":
        habit.status = "completed"
        habit.completed_at = utcnow()
    db.add(habit)
    db.commit()
    db.refresh(habit)
    return _snapshot(db, habit, today)
