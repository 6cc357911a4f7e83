"""Global configuration for the wedding RSVP site."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable

DEFAULTS: dict[str, Any] = {
    "app_host": "0.0.0.0",
    "app_port": 8000,
    "enable_scheduler": True,
    "sqlite_vacuum_hours": 12,
    "email_enabled": True,
    "resend_api_key": "",
    "email_from": "Wedding RSVP <onboarding@resend.dev>",
    "site_url": "http://localhost:8000",
    "couple_names": "Kourtney & Benjamin",
    "wedding_date": "June 15, 2024",
    "ceremony_details": "4:00 PM at Sunset Gardens",
    "reception_details": "6:00 PM - 11:00 PM at Grand Ballroom",
    "venue_address": "123 Wedding Lane, Celebration City, CA 90210",
    "slow_submission_ms": 1000,
    "seed_rsvps": 25,
}

# Values read from the environment or TOML are cast to the type of their default.
TYPE_CASTERS: dict[str, Callable[[Any], Any]] = {
    key: type(default) for key, default in DEFAULTS.items()
}

# Never written back to the TOML file by ``update_config_file``.
SECRET_KEYS = {"resend_api_key"}


@dataclass(frozen=True)
class Settings:
    base_dir: Path
    data_dir: Path
    database_path: Path
    app_host: str
    app_port: int
    enable_scheduler: bool
    sqlite_vacuum_hours: int
    email_enabled: bool
    resend_api_key: str
    email_from: str
    site_url: str
    couple_names: str
    wedding_date: str
    ceremony_details: str
    reception_details: str
    venue_address: str
    slow_submission_ms: int
    seed_rsvps: int
    root_token_key: str
    config_path: Path

    @property
    def vacuum_interval(self) -> timedelta:
        return timedelta(hours=self.sqlite_vacuum_hours)

    @property
    def email_configured(self) -> bool:
        return self.email_enabled and bool(self.resend_api_key)


def _boolify(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"Cannot parse boolean value from {value!r}")


def _cast_value(key: str, value: Any) -> Any:
    if key not in TYPE_CASTERS:
        return value
    caster = TYPE_CASTERS[key]
    if caster is bool:
        return _boolify(value)
    return caster(value)


def _load_toml_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        return tomllib.load(handle)


def _config_layered_value(key: str, *, toml_config: dict[str, Any]) -> Any:
    env_key = f"WEDDINGRSVP_{key.upper()}"
    if env_key in os.environ:
        return _cast_value(key, os.environ[env_key])
    if key in toml_config:
        return _cast_value(key, toml_config[key])
    return DEFAULTS[key]


def _resolve_paths(
    *,
    base_dir: Path,
    data_dir: str | Path | None,
    database_path: str | Path | None,
):
    resolved_base = Path(base_dir)
    resolved_data = Path(data_dir) if data_dir else resolved_base / "data"
    if not resolved_data.is_absolute():
        resolved_data = resolved_base / resolved_data
    resolved_db = (
        Path(database_path) if database_path else resolved_data / "weddingrsvp.db"
    )
    if not resolved_db.is_absolute():
        resolved_db = resolved_base / resolved_db
    return resolved_base, resolved_data, resolved_db


def load_settings(config_override: Path | None = None) -> Settings:
    base_dir = Path(os.getenv("WEDDINGRSVP_BASE_DIR", Path.cwd()))
    env_config = os.getenv("WEDDINGRSVP_CONFIG")
    config_path = Path(config_override or env_config or base_dir / "weddingrsvp.toml")
    toml_config = _load_toml_config(config_path)

    base_dir_value, data_dir_value, database_path_value = _resolve_paths(
        base_dir=base_dir,
        data_dir=os.getenv("WEDDINGRSVP_DATA_DIR", toml_config.get("data_dir")),
        database_path=os.getenv("WEDDINGRSVP_DB", toml_config.get("database_path")),
    )

    values = {
        key: _config_layered_value(key, toml_config=toml_config) for key in DEFAULTS
    }
    # Email templates append paths such as "/travel".
    values["site_url"] = values["site_url"].rstrip("/")
    if values["sqlite_vacuum_hours"] < 1:
        raise ValueError("sqlite_vacuum_hours must be at least 1")
    settings = Settings(
        base_dir=base_dir_value,
        data_dir=data_dir_value,
        database_path=database_path_value,
        root_token_key="root_admin_token",
        config_path=config_path,
        **values,
    )
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings


def settings_as_dict(settings: Settings, *, include_secrets: bool = False) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "base_dir": str(settings.base_dir),
        "data_dir": str(settings.data_dir),
        "database_path": str(settings.database_path),
    }
    for key in DEFAULTS:
        value = getattr(settings, key)
        if key in SECRET_KEYS and not include_secrets:
            value = "***" if value else ""
        payload[key] = value
    return payload


# Basic TOML strings cannot hold raw control characters.
_TOML_ESCAPES = str.maketrans(
    {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}
)


def _toml_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return f'"{str(value).translate(_TOML_ESCAPES)}"'


def write_config_file(config: dict[str, Any], *, path: Path) -> None:
    lines = ["# Wedding RSVP configuration\n"]
    for key in sorted(config.keys()):
        lines.append(f"{key} = {_toml_literal(config[key])}\n")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(lines), encoding="utf-8")


def update_config_file(updates: dict[str, Any], *, path: Path | None = None) -> Settings:
    current_settings = settings if "settings" in globals() else load_settings()
    target_path = path or current_settings.config_path
    existing = _load_toml_config(target_path)
    merged = {**existing}
    for key, value in updates.items():
        if key not in DEFAULTS or key in SECRET_KEYS:
            continue
        merged[key] = _cast_value(key, value)
    write_config_file(merged, path=target_path)
    new_settings = load_settings(target_path)
    globals()["settings"] = new_settings
    return new_settings


settings = load_settings()
