"""User-profile locations for config, shared state, and logs."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir, user_log_dir

APP_NAME = "trooper"
CONFIG_FILENAME = "config.ini"
SETTINGS_FILENAME = "settings.json"
REGISTER_FILENAME = "register.json"
BOOKMARKS_FILENAME = "bookmarks.json"
LOG_FILENAME = "trooper.log"

STATE_DIR_ENV = "TROOPER_STATE_DIR"


def default_config_dir() -> Path:
    return Path(user_config_dir(APP_NAME, appauthor=False))


def default_config_path() -> Path:
    return default_config_dir() / CONFIG_FILENAME


def default_state_dir() -> Path:
    """Directory shared by every running instance for register and bookmarks.

    ``TROOPER_STATE_DIR`` overrides the platform data directory.
    """
    override = os.environ.get(STATE_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path(user_data_dir(APP_NAME, appauthor=False))


def default_log_dir() -> Path:
    return Path(user_log_dir(APP_NAME, appauthor=False))
