from __future__ import annotations

import pytest

from weddingrsvp import config


@pytest.fixture()
def isolated_env(monkeypatch, tmp_path):
    for key in list(config.os.environ):
        if key.startswith("WEDDINGRSVP_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("WEDDINGRSVP_BASE_DIR", str(tmp_path))
    # update_config_file swaps the module-level settings; put it back afterwards.
    monkeypatch.setattr(config, "settings", config.settings)
    return tmp_path


def test_defaults_without_config_file(isolated_env):
    loaded = config.load_settings()
    assert loaded.app_port == 8000
    assert loaded.database_path == isolated_env / "data" / "weddingrsvp.db"
    assert not loaded.email_configured


def test_environment_overrides_toml(isolated_env, monkeypatch):
    (isolated_env / "weddingrsvp.toml").write_text(
        'couple_names = "Sam & Alex"\napp_port = 9000\n', encoding="utf-8"
    )
    monkeypatch.setenv("WEDDINGRSVP_APP_PORT", "9100")
    monkeypatch.setenv("WEDDINGRSVP_EMAIL_ENABLED", "yes")
    monkeypatch.setenv("WEDDINGRSVP_RESEND_API_KEY", "re_live")
    loaded = config.load_settings()
    assert loaded.couple_names == "Sam & Alex"
    assert loaded.app_port == 9100
    assert loaded.email_configured


def test_bad_boolean_is_rejected(isolated_env, monkeypatch):
    monkeypatch.setenv("WEDDINGRSVP_ENABLE_SCHEDULER", "sometimes")
    with pytest.raises(ValueError):
        config.load_settings()


def test_update_config_file_never_writes_secrets(isolated_env):
    path = isolated_env / "weddingrsvp.toml"
    updated = config.update_config_file(
        {"wedding_date": "May 1, 2026", "resend_api_key": "re_secret", "bogus": 1},
        path=path,
    )
    text = path.read_text(encoding="utf-8")
    assert 'wedding_date = "May 1, 2026"' in text
    assert "re_secret" not in text
    assert "bogus" not in text
    assert updated.wedding_date == "May 1, 2026"


def test_settings_as_dict_masks_secrets(isolated_env, monkeypatch):
    monkeypatch.setenv("WEDDINGRSVP_RESEND_API_KEY", "re_live")
    payload = config.settings_as_dict(config.load_settings())
    assert payload["resend_api_key"] == "***"
    unmasked = config.settings_as_dict(config.load_settings(), include_secrets=True)
    assert unmasked["resend_api_key"] == "re_live"


def test_site_url_trailing_slash_is_dropped(isolated_env, monkeypatch):
    monkeypatch.setenv("WEDDINGRSVP_SITE_URL", "https://wedding.example.com/")
    assert config.load_settings().site_url == "https://wedding.example.com"


def test_vacuum_interval_must_be_positive(isolated_env, monkeypatch):
    monkeypatch.setenv("WEDDINGRSVP_SQLITE_VACUUM_HOURS", "0")
    with pytest.raises(ValueError, match="sqlite_vacuum_hours"):
        config.load_settings()


def test_multiline_values_round_trip_through_config_file(isolated_env):
    path = isolated_env / "weddingrsvp.toml"
    address = 'The "Old" Barn\n12 Orchard Lane\r\nSpringfield'
    updated = config.update_config_file({"venue_address": address}, path=path)
    assert updated.venue_address == address
    assert config.load_settings(path).venue_address == address
