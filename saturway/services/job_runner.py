"""Batch maintenance jobs run by the scheduler worker."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from saturway.core.config import settings
from saturway.db.models.mood_log import MoodLog
from saturway.services import mood_service

logger = logging.getLogger(__name__)


@dataclass
class JobRunResult:
    users_processed: int
    rows_deleted: int
    users_failed: int = 0


def _users_with_mood_logs(db: Session) -> List[UUID]:
    rows = db.query(MoodLog.user_id).distinct().all()
    return [row[0] for row in rows]


def run_mood_retention_for_all_users(
    db: Session,
    *,
    user_ids: Optional[Iterable[UUID]] = None,
    retention_days: Optional[int] = None,
) -> JobRunResult:
    """Delete mood logs older than the retention window, one user at a time."""
    days = retention_days if retention_days is not None else settings.mood_log_retention_days
    ids = list(dict.fromkeys(user_ids)) if user_ids is not None else _users_with_mood_logs(db)

    processed = deleted = failed = 0
    for uid in ids:
        try:
            deleted += mood_service.delete_old_logs(db, uid, days)
        except Exception:
            db.rollback()
            failed += 1
            logger.exception("Mood retention failed for user %s", uid)
            continue
        processed += 1
    return JobRunResult(users_processed=processed, rows_deleted=deleted, users_failed=failed)
