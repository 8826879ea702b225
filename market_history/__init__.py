"""Configuration for the Yahoo market history client."""

from .config_manager import ConfigError, ConfigManager, HttpConfig, LoggingConfig, MarketHistoryConfig  # noqa: F401

__all__ = [
    "ConfigError",
    "ConfigManager",
    "HttpConfig",
    "LoggingConfig",
    "MarketHistoryConfig",
]
