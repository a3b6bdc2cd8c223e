"""Tests for engine settings and .env loading."""
import json
import os
from pathlib import Path

import pytest

from ui_automation.mobile.config import DEFAULT_APPIUM_SERVER_URL, load_engine_settings, resolve_app_path
from ui_automation.mobile.env import load_dotenv, parse_dotenv

EXAMPLE_SETTINGS = Path(__file__).resolve().parents[1] / "mobile_examples" / "engine_settings.example.json"

CAPS = {"capabilities": {"alwaysMatch": {"platformName": "Android", "appium:app": "apps/app.apk"}, "firstMatch": [{}]}}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("APPIUM_SERVER_URL", "MOBILE_EXPLICIT_TIMEOUT_S"):
        # setenv first so monkeypatch restores the prior state afterwards
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def _write_settings(tmp_path, **overrides):
    config = {"capabilities": CAPS}
    config.update(overrides)
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return path


def test_defaults(tmp_path):
    """Test that omitted keys fall back to the documented defaults."""
    settings = load_engine_settings(_write_settings(tmp_path))

    assert settings.appium_server_url == DEFAULT_APPIUM_SERVER_URL
    assert settings.explicit_timeout_s == 10.0
    assert settings.poll_interval_s == 0.25
    assert (settings.scroll_budget().max_down, settings.scroll_budget().max_up) == (3, 5)


def test_relative_app_path_is_made_absolute(tmp_path):
    """Test app path resolution against the capabilities file."""
    settings = load_engine_settings(_write_settings(tmp_path))

    app = settings.capabilities["capabilities"]["alwaysMatch"]["appium:app"]
    assert app == str((tmp_path / "apps" / "app.apk").resolve())


def test_remote_and_absolute_app_paths_are_kept():
    payload = {"capabilities": {"alwaysMatch": {"appium:app": "https://host/app.apk"}, "firstMatch": [{"app": "/opt/a.apk"}]}}

    resolved = resolve_app_path(payload, base_dir=Path("/tmp"))

    assert resolved == payload
    assert resolved is not payload


def test_capabilities_from_separate_file(tmp_path):
    """Test loading capabilities from a path relative to the settings file."""
    (tmp_path / "caps").mkdir()
    (tmp_path / "caps" / "android.json").write_text(json.dumps(CAPS), encoding="utf-8")
    settings = load_engine_settings(_write_settings(tmp_path, capabilities="caps/android.json"))

    app = settings.capabilities["capabilities"]["alwaysMatch"]["appium:app"]
    assert app == str((tmp_path / "caps" / "apps" / "app.apk").resolve())


def test_env_overrides_file(tmp_path, monkeypatch):
    """Test APPIUM_SERVER_URL and MOBILE_EXPLICIT_TIMEOUT_S overrides."""
    monkeypatch.setenv("APPIUM_SERVER_URL", "http://device-farm:4723")
    monkeypatch.setenv("MOBILE_EXPLICIT_TIMEOUT_S", "20")

    settings = load_engine_settings(_write_settings(tmp_path, appium_server_url="http://ignored", explicit_timeout_s=5))

    assert settings.appium_server_url == "http://device-farm:4723"
    assert settings.explicit_timeout_s == 20.0


@pytest.mark.parametrize("poll", [0, 0.5, -1])
def test_invalid_poll_interval(tmp_path, poll):
    with pytest.raises(ValueError):
        load_engine_settings(_write_settings(tmp_path, poll_interval_s=poll))


def test_scroll_budget_from_file(tmp_path):
    settings = load_engine_settings(_write_settings(tmp_path, scroll_budget={"down": 1, "up": 2}))
    assert (settings.scroll_down_budget, settings.scroll_up_budget) == (1, 2)


def test_missing_capabilities(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{}", encoding="utf-8")

    with pytest.raises(ValueError):
        load_engine_settings(path)


def test_example_settings_load():
    """Test that the shipped example settings are valid."""
    settings = load_engine_settings(EXAMPLE_SETTINGS)
    assert settings.capabilities["capabilities"]["alwaysMatch"]["platformName"] == "Android"


def test_parse_dotenv():
    text = "# comment\nexport A=1\nB='two words'\n\nC\nD=\"x\"\n"
    assert parse_dotenv(text) == {"A": "1", "B": "two words", "D": "x"}


def test_load_dotenv_does_not_override(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("APPIUM_SERVER_URL=http://from-file\nMOBILE_EXPLICIT_TIMEOUT_S=3\n", encoding="utf-8")
    monkeypatch.setenv("APPIUM_SERVER_URL", "http://from-env")

    loaded = load_dotenv(path=env_file)

    assert loaded == {"MOBILE_EXPLICIT_TIMEOUT_S": "3"}
    assert os.environ["APPIUM_SERVER_URL"] == "http://from-env"
