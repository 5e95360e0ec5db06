"""Configuration package for senja."""

from senja.config.app_config import (
    AdminConfig,
    AppConfig,
    RemoteConfig,
    StoreConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AdminConfig",
    "AppConfig",
    "RemoteConfig",
    "StoreConfig",
    "clear_config_cache",
    "load_app_config",
]
