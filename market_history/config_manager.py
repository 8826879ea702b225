"""Configuration management utilities for the market history client."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from data_providers.base import DEFAULT_BASE_URL
from data_providers.yahoo import DEFAULT_USER_AGENT

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_SETTINGS_PATH = PROJECT_ROOT / "config" / "default_settings.json"
USER_SETTINGS_PATH = PROJECT_ROOT / "config" / "settings.local.json"

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class ConfigError(Exception):
    """Raised when configuration files are missing or invalid."""


@dataclass
class HttpConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 15.0
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class LoggingConfig:
    level: str = "INFO"

    def numeric_level(self) -> int:
        return getattr(logging, self.level.upper())


@dataclass
class MarketHistoryConfig:
    http: HttpConfig = field(default_factory=HttpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ConfigManager:
    """Loads and validates configuration data from files and environment variables."""

    def __init__(
        self,
        default_path: Path | str = DEFAULT_SETTINGS_PATH,
        user_path: Path | str = USER_SETTINGS_PATH,
        env_prefix: str = "YH_",
    ) -> None:
        self.default_path = Path(default_path)
        self.user_path = Path(user_path)
        self.env_prefix = env_prefix
        self._cached_config: Optional[MarketHistoryConfig] = None

    def load(self, force_reload: bool = False) -> MarketHistoryConfig:
        """Load configuration from defaults, user overrides, and environment."""
        if self._cached_config is not None and not force_reload:
            return self._cached_config

        base_config = self._load_default_config()
        merged_config = self._merge_user_overrides(base_config)
        merged_config = self._apply_env_overrides(merged_config)

        config = self._build_config(merged_config)
        self._validate_config(config)

        self._cached_config = config
        return config

    def clear_cache(self) -> None:
        """Clear the cached configuration instance."""
        self._cached_config = None

    # ------------------------------------------------------------------
    # Loading helpers
    # ------------------------------------------------------------------
    def _load_default_config(self) -> Dict[str, Any]:
        if not self.default_path.exists():
            raise ConfigError(f"Default configuration file not found: {self.default_path}")

        with self.default_path.open("r", encoding="utf-8") as handle:
            try:
                return json.load(handle)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"Unable to parse default configuration: {exc}") from exc

    def _merge_user_overrides(self, base: Dict[str, Any]) -> Dict[str, Any]:
        data = json.loads(json.dumps(base))
        if self.user_path.exists():
            with self.user_path.open("r", encoding="utf-8") as handle:
                try:
                    overrides = json.load(handle)
                except json.JSONDecodeError as exc:
                    raise ConfigError(f"Unable to parse user configuration: {exc}") from exc
            self._deep_merge(data, overrides)
        return data

    def _apply_env_overrides(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = json.loads(json.dumps(data))
        prefix_len = len(self.env_prefix)
        for key, value in os.environ.items():
            if not key.startswith(self.env_prefix):
                continue
            path_parts = key[prefix_len:].lower().split("__")
            parsed_value = self._parse_env_value(value)
            self._set_nested_value(result, path_parts, parsed_value)
        return result

    # ------------------------------------------------------------------
    # Build dataclasses
    # ------------------------------------------------------------------
    def _build_config(self, data: Dict[str, Any]) -> MarketHistoryConfig:
        try:
            http_data = data.get("http", {})
            http = HttpConfig(
                base_url=str(http_data.get("base_url", DEFAULT_BASE_URL)),
                timeout=float(http_data.get("timeout", 15.0)),
                user_agent=str(http_data.get("user_agent", DEFAULT_USER_AGENT)),
            )
            logging_config = LoggingConfig(**data.get("logging", {}))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration field: {exc}") from exc
        except AttributeError as exc:
            raise ConfigError(f"Configuration sections must be objects: {exc}") from exc

        return MarketHistoryConfig(http=http, logging=logging_config)

    # ------------------------------------------------------------------
    # Validation & utilities
    # ------------------------------------------------------------------
    def _validate_config(self, config: MarketHistoryConfig) -> None:
        if config.http.timeout <= 0:
            raise ConfigError("http.timeout must be greater than zero")
        if not config.http.base_url.startswith(("http://", "https://")):
            raise ConfigError("http.base_url must be an http(s) URL")
        if not isinstance(config.logging.level, str) or config.logging.level.upper() not in LOG_LEVELS:
            raise ConfigError(f"logging.level must be one of {sorted(LOG_LEVELS)}")

    @staticmethod
    def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> None:
        for key, value in overrides.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                ConfigManager._deep_merge(base[key], value)
            else:
                base[key] = value

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        value = value.strip()
        if not value:
            return value
        lowered = value.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    @staticmethod
    def _set_nested_value(target: Dict[str, Any], path_parts: list[str], value: Any) -> None:
        current = target
        for part in path_parts[:-1]:
            if part not in current or not isinstance(current[part], dict):
                current[part] = {}
            current = current[part]
        current[path_parts[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Return the currently cached configuration as a dictionary."""
        config = self.load()
        return config.as_dict()


__all__ = [
    "ConfigError",
    "ConfigManager",
    "HttpConfig",
    "LoggingConfig",
    "MarketHistoryConfig",
]
