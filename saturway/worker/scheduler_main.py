"""Dedicated APScheduler worker process."""
from __future__ import annotations

import logging
import signal
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from saturway.core.config import settings
from saturway.core.logging import configure_logging
from saturway.db.session import SessionLocal
from saturway.services.job_runner import run_mood_retention_for_all_users

logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging(log_level=settings.log_level)
    logger.info("Scheduler worker starting (enabled=%s)", settings.scheduler_enabled)

    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)

    if settings.scheduler_enabled:
        register_jobs(scheduler)
        scheduler.start()
        if settings.jobs_run_on_startup:
            logger.info("Running retention job once on startup")
            run_retention_job()
    else:
        logger.warning("Scheduler disabled via config; worker will idle")

    stop_event = threading.Event()

    def shutdown(signum, frame):  # pragma: no cover - signal handler
        logger.info("Scheduler worker shutting down (signal=%s)", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        shutdown(signal.SIGINT, None)


def register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        run_retention_job,
        trigger="cron",
        hour=settings.retention_job_hour,
        minute=settings.retention_job_minute,
        id="mood_retention_job",
        replace_existing=True,
    )
    logger.info(
        "Registered mood retention job (daily at %02d:%02d %s, keep %s days)",
        settings.retention_job_hour,
        settings.retention_job_minute,
        settings.scheduler_timezone,
        settings.mood_log_retention_days,
    )


def run_retention_job() -> None:
    session = SessionLocal()
    try:
        result = run_mood_retention_for_all_users(session)
        logger.info(
            "Mood retention job complete: users=%s, deleted=%s, failed=%s",
            result.users_processed,
            result.rows_deleted,
            result.users_failed,
        )
    except Exception:
        logger.exception("Mood retention job failed")
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
