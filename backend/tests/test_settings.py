"""Tests for settings loading (env, config file, overrides)."""
import json
import logging

from tourney.main import create_app
from tourney.settings import Settings, load_settings, read_config_file


def test_defaults():
    settings = Settings()

    assert settings.api_v1_prefix == "/v1"
    assert settings.notification_retention_hours == 24
    assert settings.notification_sweep_interval_seconds == 6 * 60 * 60
    assert settings.ws_auth_requires_token is True


def test_yaml_file_wins_over_env(tmp_path, monkeypatch):
    monkeypatch.setenv("NOTIFICATION_LIST_LIMIT", "10")
    monkeypatch.setenv("NOTIFICATION_RETENTION_HOURS", "48")
    config = tmp_path / "config.yaml"
    config.write_text("notification_retention_hours: 12\nnotification_store_backend: memory\n")

    settings = load_settings(str(config))

    assert settings.notification_list_limit == 10
    assert settings.notification_retention_hours == 12
    assert settings.notification_store_backend == "memory"


def test_overrides_win_over_file(tmp_path):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"push_count_timeout_seconds": 2.5, "debug": True}))

    settings = load_settings(str(config), push_count_timeout_seconds=1.0)

    assert settings.push_count_timeout_seconds == 1.0
    assert settings.debug is True


def test_config_file_env_var(tmp_path, monkeypatch):
    config = tmp_path / "custom.yml"
    config.write_text("app_name: From env path\n")
    monkeypatch.setenv("CONFIG_FILE", str(config))

    assert load_settings().app_name == "From env path"


def test_read_config_file_bad_inputs(tmp_path):
    missing = tmp_path / "missing.yaml"
    broken = tmp_path / "broken.yaml"
    broken.write_text("key: [unclosed\n")
    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n")
    toml = tmp_path / "config.toml"
    toml.write_text("a = 1\n")

    assert read_config_file(missing) == {}
    assert read_config_file(broken) == {}
    assert read_config_file(listing) == {}
    assert read_config_file(toml) == {}


def test_debug_enables_fastapi_debug_and_debug_logging(settings, memory_store):
    tourney_logger = logging.getLogger("tourney")
    previous = tourney_logger.level
    try:
        app = create_app(settings=settings.model_copy(update={"debug": True}), store=memory_store)

        assert app.debug is True
        assert tourney_logger.isEnabledFor(logging.DEBUG)
    finally:
        tourney_logger.setLevel(previous)


def test_debug_off_by_default(settings, memory_store):
    assert create_app(settings=settings, store=memory_store).debug is False
