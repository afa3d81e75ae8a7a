from __future__ import annotations

from datetime import timedelta

from saturway.core.time_utils import utcnow
from saturway.db.models.mood_log import MoodLog
from saturway.services import job_runner, mood_service
from saturway.services.job_runner import run_mood_retention_for_all_users


def _seed_logs(session_factory, user_id, ages_in_days):
    with session_factory() as db:
        for age in ages_in_days:
            db.add(MoodLog(user_id=user_id, energy_level=5, focus_level=5, logged_at=utcnow() - timedelta(days=age)))
        db.commit()


def test_retention_deletes_only_old_logs(session_factory, make_user):
    first = make_user()
    second = make_user()
    _seed_logs(session_factory, first, [200, 100, 1])
    _seed_logs(session_factory, second, [95])

    with session_factory() as db:
        result = run_mood_retention_for_all_users(db, retention_days=90)
        remaining = db.query(MoodLog).count()

    assert result.users_processed == 2
    assert result.rows_deleted == 3
    assert result.users_failed == 0
    assert remaining == 1


def test_retention_for_explicit_users(session_factory, make_user):
    first = make_user()
    second = make_user()
    _seed_logs(session_factory, first, [200])
    _seed_logs(session_factory, second, [200])

    with session_factory() as db:
        result = run_mood_retention_for_all_users(db, user_ids=[first, first], retention_days=90)
        remaining = db.query(MoodLog).filter(MoodLog.user_id == second).count()

    assert result.users_processed == 1
    assert result.rows_deleted == 1
    assert remaining == 1


def test_retention_continues_after_user_failure(session_factory, make_user, monkeypatch):
    first = make_user()
    second = make_user()
    _seed_logs(session_factory, first, [200])
    _seed_logs(session_factory, second, [200])
    original = mood_service.delete_old_logs

    def flaky(db, user_id, retention_days):
        if user_id == first:
            raise RuntimeError("lock timeout")
        return original(db, user_id, retention_days)

    monkeypatch.setattr(job_runner.mood_service, "delete_old_logs", flaky)

    with session_factory() as db:
        result = run_mood_retention_for_all_users(db, user_ids=[first, second], retention_days=90)

    assert result.users_failed == 1
    assert result.users_processed == 1
    assert result.rows_deleted == 1
