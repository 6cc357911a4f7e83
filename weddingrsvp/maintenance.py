"""Periodic database housekeeping."""

from __future__ import annotations

import logging

from .database import engine

logger = logging.getLogger("uvicorn.error")


def vacuum_database() -> None:
    """Reclaim free pages left behind by deleted RSVPs."""
    if engine.dialect.name != "sqlite":
        return
    with engine.connect() as connection:
        connection.execution_options(isolation_level="AUTOCOMMIT").exec_driver_sql(
            "VACUUM"
        )
    logger.info("SQLite VACUUM completed")
