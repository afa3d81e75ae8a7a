"""Helpers for working with users."""
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from saturway.core.errors import NotFoundError, ValidationError
from saturway.db.models.mood_log import MoodLog
from saturway.db.models.user import User
from saturway.services import task_service

_TELEGRAM_FIELDS = ("username", "first_name", "last_name", "language_code", "photo_url")


def upsert_from_telegram(db: Session, telegram_user: Dict[str, Any]) -> User:
    """Create the user on first login, refresh profile fields on later ones."""
    try:
        telegram_id = int(telegram_user["id"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError("Telegram user id is missing") from exc

    user = db.query(User).filter(User.telegram_id == telegram_id).one_or_none()
    if user is None:
        user = User(telegram_id=telegram_id, settings={})
        db.add(user)

    for field in _TELEGRAM_FIELDS:
        if field in telegram_user:
            setattr(user, field, telegram_user.get(field))
    user.is_premium = bool(telegram_user.get("is_premium", False))

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = db.query(User).filter(User.telegram_id == telegram_id).one_or_none()
        if existing:
            return existing
        raise
    db.refresh(user)
    return user


def get_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def update_user(
    db: Session,
    user_id: UUID,
    *,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    settings: Optional[Dict[str, Any]] = None,
) -> User:
    user = get_user(db, user_id)
    if first_name is not None:
        user.first_name = first_name
    if last_name is not None:
        user.last_name = last_name
    if settings is not None:
        # Merge so partial preference updates keep the other keys.
        user.settings = {**(user.settings or {}), **settings}
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def user_stats(db: Session, user_id: UUID) -> Dict[str, Any]:
    tasks = task_service.task_stats(db, user_id)
    averages = (
        db.query(
            func.avg(MoodLog.energy_level),
            func.avg(MoodLog.focus_level),
            func.count(MoodLog.id),
        )
        .filter(MoodLog.user_id == user_id)
        .one()
    )
    avg_energy, avg_focus, mood_count = averages
    completion_rate = round(tasks["completed"] / tasks["total"] * 100) if tasks["total"] else 0
    return {
        "total_tasks": tasks["total"],
        "completed_tasks": tasks["completed"],
        "pending_tasks": tasks["pending"],
        "completion_rate": completion_rate,
        "average_energy_level": round(float(avg_energy), 1) if avg_energy is not None else 0.0,
        "average_focus_level": round(float(avg_focus), 1) if avg_focus is not None else 0.0,
        "mood_logs_count": int(mood_count or 0),
    }
