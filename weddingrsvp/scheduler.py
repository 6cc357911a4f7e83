"""Background maintenance jobs run by APScheduler."""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from .config import settings
from .maintenance import vacuum_database

logger = logging.getLogger("uvicorn.error")

_scheduler: BackgroundScheduler | None = None


def _schedule_maintenance(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        vacuum_database,
        "interval",
        hours=settings.sqlite_vacuum_hours,
        id="vacuum",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )


def start_scheduler() -> BackgroundScheduler:
    """Start the shared scheduler once; later calls return the running one."""
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        return _scheduler
    scheduler = BackgroundScheduler(timezone="UTC")
    _schedule_maintenance(scheduler)
    scheduler.start()
    logger.info(
        "Maintenance scheduler started (vacuum every %d hours)",
        settings.sqlite_vacuum_hours,
    )
    _scheduler = scheduler
    return scheduler


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler is None or not _scheduler.running:
        return
    _scheduler.shutdown(wait=False)
    _scheduler = None
