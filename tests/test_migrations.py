from __future__ import annotations

import types

import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine

from weddingrsvp import database, storage

HEAD = "0002_dietary_and_songs"


def _patch_db(monkeypatch: pytest.MonkeyPatch, engine: Engine, db_path) -> None:
    monkeypatch.setattr(storage, "engine", engine)
    monkeypatch.setattr(database, "engine", engine)
    monkeypatch.setattr(database, "DATABASE_URL", str(engine.url))
    fake_settings = types.SimpleNamespace(database_path=db_path)
    monkeypatch.setattr(storage, "settings", fake_settings)


def _get_version(engine: Engine) -> str | None:
    with engine.connect() as conn:
        try:
            return conn.execute(
                text("select version_num from alembic_version")
            ).scalar()
        except Exception:
            return None


def _rsvp_columns(engine: Engine) -> set[str]:
    return {col["name"] for col in inspect(engine).get_columns("rsvps")}


def test_upgrade_database_creates_fresh_schema(monkeypatch, tmp_path):
    db_path = tmp_path / "fresh.sqlite"
    engine = create_engine(f"sqlite:///{db_path}", future=True)
    _patch_db(monkeypatch, engine, db_path)

    actions = storage.upgrade_database(make_backup=False)

    assert "Ran Alembic upgrade to head (fresh database)" in actions
    assert _get_version(engine) == HEAD
    inspector = inspect(engine)
    assert inspector.has_table("rsvps")
    assert inspector.has_table("meta")
    assert {"dietary_restrictions", "song_requests"} <= _rsvp_columns(engine)
    with engine.connect() as conn:
        index_names = set(
            conn.execute(
                text("select name from sqlite_master where type = 'index' and tbl_name = 'rsvps'")
            ).scalars()
        )
    assert {"uq_rsvps_email_lower", "ix_rsvps_created_at", "ix_rsvps_is_attending"} <= index_names


def test_migrated_schema_rejects_case_variant_emails(monkeypatch, tmp_path):
    db_path = tmp_path / "unique.sqlite"
    engine = create_engine(f"sqlite:///{db_path}", future=True)
    _patch_db(monkeypatch, engine, db_path)
    storage.upgrade_database(make_backup=False)

    insert = text(
        "insert into rsvps (name, email, is_attending, number_of_guests, created_at, updated_at) "
        "values (:name, :email, 1, 0, '2024-01-01 00:00:00', '2024-01-01 00:00:00')"
    )
    with engine.begin() as conn:
        conn.execute(insert, {"name": "Ann", "email": "ann@example.com"})
    with pytest.raises(Exception, match="UNIQUE"):
        with engine.begin() as conn:
            conn.execute(insert, {"name": "Ann", "email": "ANN@example.com"})


def test_upgrade_database_stamps_legacy_db(monkeypatch, tmp_path):
    db_path = tmp_path / "legacy.sqlite"
    engine = create_engine(f"sqlite:///{db_path}", future=True)
    with engine.begin() as conn:
        conn.exec_driver_sql(
            "CREATE TABLE rsvps (id INTEGER PRIMARY KEY, name VARCHAR(100) NOT NULL, "
            "email VARCHAR(254) NOT NULL UNIQUE, is_attending BOOLEAN NOT NULL, "
            "number_of_guests INTEGER NOT NULL, guest_names JSON, notes TEXT, "
            "created_at DATETIME NOT NULL, updated_at DATETIME NOT NULL)"
        )
        conn.exec_driver_sql(
            "CREATE TABLE meta (key VARCHAR(128) PRIMARY KEY, value TEXT NOT NULL, "
            "updated_at DATETIME NOT NULL)"
        )
    _patch_db(monkeypatch, engine, db_path)

    actions = storage.upgrade_database(make_backup=False)

    assert "Added rsvps.dietary_restrictions column" in actions
    assert "Added rsvps.song_requests column" in actions
    assert "Stamped existing database to Alembic head" in actions
    assert _get_version(engine) == HEAD
    assert {"dietary_restrictions", "song_requests"} <= _rsvp_columns(engine)


def test_upgrade_database_backs_up_and_is_idempotent(monkeypatch, tmp_path):
    db_path = tmp_path / "backup.sqlite"
    engine = create_engine(f"sqlite:///{db_path}", future=True)
    _patch_db(monkeypatch, engine, db_path)
    storage.upgrade_database(make_backup=False)

    actions = storage.upgrade_database(make_backup=True)

    assert (tmp_path / "backup.sqlite.bak").exists()
    assert "Applied Alembic migrations to head" in actions
    assert _get_version(engine) == HEAD
