"""
Configuration management for ConnWatch.

This module handles loading, validation, and default configuration values
for the ConnWatch application.
"""

import sys
import toml
from pathlib import Path

from .exceptions import ConfigurationError

# --- App Constants ---
APP_NAME = "connwatch"
if sys.platform == "darwin":
    LOG_DIR = Path.home() / "Library" / "Logs"
else:
    LOG_DIR = Path.home() / ".local" / "state" / APP_NAME
LOG_FILE = LOG_DIR / "connwatch.log"

# --- Logging Constants ---
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# --- Monitoring Constants ---
BACKEND_AUTO = "auto"
BACKEND_SYSTEMCONFIGURATION = "systemconfiguration"
BACKEND_PSUTIL = "psutil"
VALID_BACKENDS = (BACKEND_AUTO, BACKEND_SYSTEMCONFIGURATION, BACKEND_PSUTIL)

DEFAULT_BACKEND = BACKEND_AUTO
DEFAULT_POLL_INTERVAL = 2.0  # seconds, psutil backend only
DEFAULT_DEBUG = False

# Name registered with SCDynamicStore, should be unique per process
DYNAMIC_STORE_NAME = f"com.user.{APP_NAME}"

# --- CLI Constants ---
DEFAULT_STATUS_TIMEOUT = 5.0  # seconds to wait for the first path update
WATCH_REFRESH_INTERVAL = 0.5  # seconds between state reads in `watch`

# Default configuration for the application
DEFAULT_CONFIG = {
    "settings": {
        "debug": DEFAULT_DEBUG,
        "backend": DEFAULT_BACKEND,
        "poll_interval": DEFAULT_POLL_INTERVAL,
    },
}


def get_config_path():
    """Gets the path to the configuration file."""
    return Path.home() / ".config" / APP_NAME / "config.toml"


def load_config():
    """Loads the configuration from the TOML file."""
    path = get_config_path()
    if not path.exists():
        # Create a default config if one doesn't exist
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            toml.dump(DEFAULT_CONFIG, f)
        return DEFAULT_CONFIG

    try:
        with open(path, "r") as f:
            config = toml.load(f)
    except toml.TomlDecodeError as e:
        raise ConfigurationError(
            "Could not parse configuration file", {"path": str(path), "error": str(e)}
        ) from e

    from .logging_config import get_logger

    logger = get_logger(__name__)
    logger.debug(f"Loaded settings: {config.get('settings', {})}")
    return config


def get_settings(config=None):
    """
    Return the validated [settings] table, with defaults filled in.

    Args:
        config: A parsed configuration dict. Loaded from disk when None.

    Raises:
        ConfigurationError: If a setting has an invalid value.
    """
    if config is None:
        config = load_config()

    settings = dict(DEFAULT_CONFIG["settings"])
    settings.update(config.get("settings", {}))

    backend = settings["backend"]
    if backend not in VALID_BACKENDS:
        raise ConfigurationError(
            f"Unknown backend '{backend}'", {"valid": list(VALID_BACKENDS)}
        )

    try:
        poll_interval = float(settings["poll_interval"])
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            "poll_interval must be a number", {"value": settings["poll_interval"]}
        ) from e
    if poll_interval <= 0:
        raise ConfigurationError(
            "poll_interval must be positive", {"value": poll_interval}
        )
    settings["poll_interval"] = poll_interval
    settings["debug"] = bool(settings["debug"])

    return settings
