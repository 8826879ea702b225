from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from data_providers.yahoo import YahooHistoryClient
from market_history.config_manager import DEFAULT_SETTINGS_PATH, ConfigError, ConfigManager


def _write_defaults(tmp_path: Path, payload: dict | None = None) -> Path:
    path = tmp_path / "defaults.json"
    data = payload or {
        "http": {"base_url": "https://example.test/download", "timeout": 10, "user_agent": "agent/1"},
        "logging": {"level": "WARNING"},
    }
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch):
    for key in ("YH_HTTP__TIMEOUT", "YH_HTTP__BASE_URL", "YH_LOGGING__LEVEL"):
        monkeypatch.delenv(key, raising=False)


def test_shipped_defaults_load():
    config = ConfigManager(default_path=DEFAULT_SETTINGS_PATH, user_path=Path("does/not/exist.json")).load()
    assert config.http.base_url == "https://query1.finance.yahoo.com/v7/finance/download"
    assert config.http.timeout == 15.0
    assert config.logging.level == "INFO"


def test_user_overrides_are_deep_merged(tmp_path: Path):
    defaults = _write_defaults(tmp_path)
    user = tmp_path / "local.json"
    user.write_text(json.dumps({"http": {"timeout": 42}}), encoding="utf-8")

    config = ConfigManager(default_path=defaults, user_path=user).load()

    assert config.http.timeout == 42.0
    assert config.http.base_url == "https://example.test/download"
    assert config.http.user_agent == "agent/1"


def test_env_overrides_take_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("YH_HTTP__TIMEOUT", "30")
    monkeypatch.setenv("YH_LOGGING__LEVEL", "debug")
    defaults = _write_defaults(tmp_path)

    config = ConfigManager(default_path=defaults, user_path=tmp_path / "missing.json").load()

    assert config.http.timeout == 30.0
    assert config.logging.numeric_level() == logging.DEBUG


def test_missing_defaults_raise(tmp_path: Path):
    with pytest.raises(ConfigError):
        ConfigManager(default_path=tmp_path / "nope.json").load()


def test_unparsable_defaults_raise(tmp_path: Path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        ConfigManager(default_path=path).load()


@pytest.mark.parametrize(
    "payload",
    [
        {"http": {"timeout": 0}},
        {"http": {"timeout": "soon"}},
        {"http": {"base_url": "ftp://example.test"}},
        {"logging": {"level": "LOUD"}},
        {"logging": {"colour": True}},
    ],
)
def test_invalid_values_raise(tmp_path: Path, payload: dict):
    defaults = _write_defaults(tmp_path, payload)
    with pytest.raises(ConfigError):
        ConfigManager(default_path=defaults, user_path=tmp_path / "missing.json").load()


def test_load_is_cached_until_forced(tmp_path: Path):
    defaults = _write_defaults(tmp_path)
    manager = ConfigManager(default_path=defaults, user_path=tmp_path / "missing.json")

    first = manager.load()
    assert manager.load() is first
    assert manager.load(force_reload=True) is not first


def test_client_from_config(tmp_path: Path):
    defaults = _write_defaults(tmp_path)
    config = ConfigManager(default_path=defaults, user_path=tmp_path / "missing.json").load()

    client = YahooHistoryClient.from_config(config, session=object())

    assert client.base_url == "https://example.test/download"
    assert client.timeout == 10.0
    assert client.user_agent == "agent/1"
