"""
Configuration loading for wifi-proxy

Search order (later overrides earlier):
1. Built-in defaults
2. ~/.config/wifi-proxy/config.toml (user global, XDG-aware)
3. ./.wifi-proxy.toml (local directory)
4. Environment variables (WIFI_PROXY_*)
5. CLI arguments (applied by the caller)

Example config.toml::

    default_interface = "wlan1"
    port = 8080
    credentials_file = "~/.config/wifi-proxy/networks.csv"
    request_timeout = 10.0
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

APP_NAME = "wifi-proxy"
CONFIG_FILENAME = "config.toml"
LOCAL_CONFIG_FILENAME = ".wifi-proxy.toml"
CREDENTIALS_FILENAME = "networks.csv"

ENV_PREFIX = "WIFI_PROXY_"


def get_config_dir() -> Path:
    """Get user config directory (XDG-compliant)."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_config_paths() -> list[Path]:
    """Return config paths to check, lowest precedence first."""
    return [
        get_config_dir() / CONFIG_FILENAME,
        Path.cwd() / LOCAL_CONFIG_FILENAME,
    ]


@dataclass
class Settings:
    """Resolved settings after merging files and environment."""

    default_interface: str | None = None
    port: int = 8080
    credentials_file: Path = field(
        default_factory=lambda: get_config_dir() / CREDENTIALS_FILENAME
    )
    request_timeout: float = 10.0

    # Which sources contributed, for debugging
    config_sources: list[str] = field(default_factory=list)


def _merge_config(settings: Settings, data: dict[str, Any], source: str) -> None:
    """Merge one parsed TOML document into *settings*.

    Every value is converted before any is assigned, so a bad value leaves
    *settings* untouched.
    """
    updates: dict[str, Any] = {}
    if "default_interface" in data:
        updates["default_interface"] = str(data["default_interface"]) or None
    if "port" in data:
        updates["port"] = int(data["port"])
    if "credentials_file" in data:
        updates["credentials_file"] = Path(str(data["credentials_file"])).expanduser()
    if "request_timeout" in data:
        updates["request_timeout"] = float(data["request_timeout"])

    for name, value in updates.items():
        setattr(settings, name, value)
    settings.config_sources.append(source)


def _apply_env_overrides(settings: Settings) -> None:
    """Apply WIFI_PROXY_* environment variables."""
    interface = os.environ.get(f"{ENV_PREFIX}INTERFACE")
    if interface:
        settings.default_interface = interface
        settings.config_sources.append(f"env:{ENV_PREFIX}INTERFACE")

    port = os.environ.get(f"{ENV_PREFIX}PORT")
    if port:
        try:
            settings.port = int(port)
            settings.config_sources.append(f"env:{ENV_PREFIX}PORT")
        except ValueError:
            logger.warning("Ignoring invalid %sPORT: %r", ENV_PREFIX, port)

    credentials = os.environ.get(f"{ENV_PREFIX}CREDENTIALS")
    if credentials:
        settings.credentials_file = Path(credentials).expanduser()
        settings.config_sources.append(f"env:{ENV_PREFIX}CREDENTIALS")


def load_settings(paths: list[Path] | None = None) -> Settings:
    """
    Load and merge settings from all config sources.

    Args:
        paths: Config files to read, lowest precedence first.  Defaults to
               :func:`get_config_paths`.

    Returns:
        Merged Settings object.
    """
    settings = Settings()

    for config_path in paths if paths is not None else get_config_paths():
        if not config_path.is_file():
            continue
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            _merge_config(settings, data, str(config_path))
            logger.debug("Loaded config from %s", config_path)
        except (OSError, tomllib.TOMLDecodeError, ValueError, TypeError) as e:
            logger.warning("Failed to load %s: %s", config_path, e)

    _apply_env_overrides(settings)
    return settings
