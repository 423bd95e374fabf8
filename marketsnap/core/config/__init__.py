"""Configuration management module."""

from marketsnap.core.config.settings import (
    CacheSettings,
    ConfigManager,
    LoggingSettings,
    MarketSnapConfig,
    ProviderSettings,
    WebSettings,
    load_config_from_env,
)

__all__ = [
    "ConfigManager",
    "MarketSnapConfig",
    "ProviderSettings",
    "CacheSettings",
    "LoggingSettings",
    "WebSettings",
    "load_config_from_env",
]
