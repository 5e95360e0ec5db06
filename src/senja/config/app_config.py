"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults. A couple of environment variables
override the file for deployment convenience.

Usage:
    from senja.config.app_config import load_app_config

    config = load_app_config()
    print(config.remote.api_url)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

ENV_API_URL = "SENJA_API_URL"
ENV_DB_PATH = "SENJA_DB_PATH"


@dataclass
class RemoteConfig:
    """Configuration for the spreadsheet API."""

    api_url: str = ""
    # None means requests are never timed out
    timeout: float | None = None


@dataclass
class StoreConfig:
    """Configuration for durable local storage."""

    db_path: str = "data/state/senja.db"


@dataclass
class AdminConfig:
    """Initial staff account seeded into an empty users table."""

    id: str = "admin-1"
    username: str = "admin"
    password: str = "admin"
    name: str = "Administrator"
    role: str = "admin"

    def to_record(self) -> dict[str, Any]:
        """Convert to a users table record."""
        return {
            "id": self.id,
            "username": self.username,
            "password": self.password,
            "name": self.name,
            "role": self.role,
        }


@dataclass
class AppConfig:
    """Application-wide configuration."""

    remote: RemoteConfig = field(default_factory=RemoteConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    admin: AdminConfig = field(default_factory=AdminConfig)
    settings_defaults: dict[str, Any] = field(
        default_factory=lambda: {"certBackground": ""}
    )


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "remote": {
            "api_url": "",
            "timeout": None,
        },
        "store": {
            "db_path": "data/state/senja.db",
        },
        "settings": {
            "defaults": {"certBackground": ""},
        },
        "admin": {
            "id": "admin-1",
            "username": "admin",
            "password": "admin",
            "name": "Administrator",
            "role": "admin",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    remote_data = data.get("remote") or {}
    remote = RemoteConfig(
        api_url=remote_data.get("api_url") or "",
        timeout=remote_data.get("timeout"),
    )

    store_data = data.get("store") or {}
    store = StoreConfig(
        db_path=store_data.get("db_path", defaults["store"]["db_path"]),
    )

    admin_data = {**defaults["admin"], **(data.get("admin") or {})}
    admin = AdminConfig(
        id=admin_data["id"],
        username=admin_data["username"],
        password=admin_data["password"],
        name=admin_data["name"],
        role=admin_data["role"],
    )

    settings_data = data.get("settings") or {}
    settings_defaults = settings_data.get("defaults", defaults["settings"]["defaults"])

    return AppConfig(
        remote=remote,
        store=store,
        admin=admin,
        settings_defaults=dict(settings_defaults),
    )


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Apply environment variable overrides."""
    api_url = os.environ.get(ENV_API_URL)
    if api_url is not None:
        config.remote.api_url = api_url.strip()

    db_path = os.environ.get(ENV_DB_PATH)
    if db_path:
        config.store.db_path = db_path

    return config


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _apply_env_overrides(_parse_config(data))
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
