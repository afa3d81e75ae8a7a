"""Mood logging and the 7-day statistical summary used by AI features."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from saturway.core.errors import ValidationError
from saturway.core.time_utils import utcnow
from saturway.db.models.mood_log import MoodLog
from saturway.services.scales import MOOD_MAX, MOOD_MIN, is_valid_mood_level

TREND_THRESHOLD = 0.5


def log_mood(
    db: Session,
    user_id: UUID,
    *,
    energy_level: int,
    focus_level: int,
    notes: Optional[str] = None,
    source: Optional[str] = None,
    logged_at: Optional[datetime] = None,
) -> MoodLog:
    for field, value in (("energyLevel", energy_level), ("focusLevel", focus_level)):
        if not is_valid_mood_level(value):
            raise ValidationError(
                f"{field} must be an integer between {MOOD_MIN} and {MOOD_MAX}",
                details=[{"field": field, "message": f"got {value!r}"}],
            )

    entry = MoodLog(
        user_id=user_id,
        energy_level=energy_level,
        focus_level=focus_level,
        notes=notes,
        source=source,
        logged_at=logged_at or utcnow(),
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def recent_logs(db: Session, user_id: UUID, days: int = 7) -> List[MoodLog]:
    """Logs from the last ``days`` days, newest first."""
    since = utcnow() - timedelta(days=days)
    return (
        db.query(MoodLog)
        .filter(MoodLog.user_id == user_id, MoodLog.logged_at >= since)
        .order_by(desc(MoodLog.logged_at), desc(MoodLog.created_at))
        .all()
    )


def _chronological(db: Session, user_id: UUID, days: int) -> List[MoodLog]:
    since = utcnow() - timedelta(days=days)
    return (
        db.query(MoodLog)
        .filter(MoodLog.user_id == user_id, MoodLog.logged_at >= since)
        .order_by(asc(MoodLog.logged_at), asc(MoodLog.created_at))
        .all()
    )


def compute_trend(logs: Sequence[Any]) -> str:
    """Compare the later half of chronologically ordered logs against the earlier half."""
    if len(logs) < 2:
        return "stable"
    scores = [(log.energy_level + log.focus_level) / 2 for log in logs]
    middle = len(scores) // 2
    earlier = scores[:middle]
    later = scores[middle:]
    delta = sum(later) / len(later) - sum(earlier) / len(earlier)
    if delta > TREND_THRESHOLD:
        return "improving"
    if delta < -TREND_THRESHOLD:
        return "declining"
    return "stable"


def summarize(logs: Sequence[Any]) -> Dict[str, Any]:
    if not logs:
        return {"average_energy": 0.0, "average_focus": 0.0, "total_logs": 0, "trend": "stable"}
    total = len(logs)
    return {
        "average_energy": round(sum(log.energy_level for log in logs) / total, 1),
        "average_focus": round(sum(log.focus_level for log in logs) / total, 1),
        "total_logs": total,
        "trend": compute_trend(logs),
    }


def mood_stats(db: Session, user_id: UUID, days: int = 7) -> Dict[str, Any]:
    return summarize(_chronological(db, user_id, days))


def delete_old_logs(db: Session, user_id: UUID, retention_days: int) -> int:
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = (
        db.query(MoodLog)
        .filter(MoodLog.user_id == user_id, MoodLog.logged_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    return int(deleted or 0)
