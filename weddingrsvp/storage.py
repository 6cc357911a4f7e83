"""Database initialization and helpers."""

from __future__ import annotations

import secrets
import shutil
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from .config import settings
from .database import engine, get_session
from .models import Meta
from .utils import utcnow

# Columns added after the first release; older unmanaged databases lack them.
LEGACY_RSVP_COLUMNS = {
    "dietary_restrictions": "TEXT",
    "song_requests": "TEXT",
}


def init_db() -> None:
    upgrade_database(make_backup=False)
    ensure_root_token()


def ensure_schema_updates() -> list[str]:
    """Perform lightweight schema updates for existing SQLite deployments."""
    actions: list[str] = []
    if engine.dialect.name != "sqlite":
        return actions

    inspector = inspect(engine)
    if not inspector.has_table("rsvps"):
        return actions

    columns = {col["name"] for col in inspector.get_columns("rsvps")}
    with engine.begin() as conn:
        for name, column_type in LEGACY_RSVP_COLUMNS.items():
            if name in columns:
                continue
            conn.exec_driver_sql(f"ALTER TABLE rsvps ADD COLUMN {name} {column_type}")
            actions.append(f"Added rsvps.{name} column")
    return actions


def _alembic_config() -> Config:
    package_dir = Path(__file__).resolve().parent
    script_location = package_dir / "alembic"
    ini_path = script_location.parent / "alembic.ini"

    config = Config(str(ini_path)) if ini_path.exists() else Config()
    config.set_main_option("script_location", str(script_location))
    config.set_main_option("sqlalchemy.url", str(engine.url))
    return config


def upgrade_database(*, make_backup: bool = True) -> list[str]:
    """Upgrade the database schema in-place.

    Returns a list of applied actions; empty if already up-to-date.
    """
    actions: list[str] = []
    db_path = Path(settings.database_path)

    if make_backup and db_path.exists():
        backup_path = db_path.with_suffix(db_path.suffix + ".bak")
        shutil.copy(db_path, backup_path)
        actions.append(f"Backup created at {backup_path}")

    inspector = inspect(engine)
    has_alembic = inspector.has_table("alembic_version")
    has_rsvps = inspector.has_table("rsvps")
    config = _alembic_config()

    if not has_alembic and not has_rsvps:
        command.upgrade(config, "head")
        actions.append("Ran Alembic upgrade to head (fresh database)")
    elif not has_alembic:
        # Tables created outside Alembic: bring columns up to date, then baseline.
        actions.extend(ensure_schema_updates())
        command.stamp(config, "head")
        actions.append("Stamped existing database to Alembic head")
    else:
        command.upgrade(config, "head")
        actions.append("Applied Alembic migrations to head")

    return actions


def _store_root_token(session, token: str) -> str:
    session.merge(Meta(key=settings.root_token_key, value=token, updated_at=utcnow()))
    return token


def ensure_root_token() -> str:
    """Return the admin token, creating one on first run."""
    with get_session() as session:
        existing = session.get(Meta, settings.root_token_key)
        if existing is not None:
            return existing.value
        return _store_root_token(session, secrets.token_urlsafe(32))


def rotate_root_token() -> str:
    """Replace the admin token; old admin links stop working immediately."""
    with get_session() as session:
        return _store_root_token(session, secrets.token_urlsafe(32))


def fetch_root_token() -> str:
    with get_session() as session:
        meta = session.get(Meta, settings.root_token_key)
        if meta is not None:
            return meta.value
    return ensure_root_token()
