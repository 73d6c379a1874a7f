"""Persistent JSON settings helpers.

Stores hidden-file visibility, bookmark-panel visibility, and the chord timeout.
Malformed or missing settings fall back to defaults.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .store.paths import SETTINGS_FILENAME, default_config_dir

logger = logging.getLogger(__name__)

SETTINGS_PATH = default_config_dir() / SETTINGS_FILENAME
DEFAULT_CHORD_TIMEOUT_MS = 1000
MAX_CHORD_TIMEOUT_MS = 10_000


def load_settings() -> dict[str, object]:
    """Load the persisted JSON settings object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable settings %s: %s", SETTINGS_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_settings(data: dict[str, object]) -> None:
    """Persist settings as pretty-printed JSON.

    Write errors are logged and otherwise ignored; losing a preference must
    not interrupt the session.
    """
    try:
        SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
        SETTINGS_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not save settings %s: %s", SETTINGS_PATH, exc)


def _load_bool(key: str) -> bool:
    value = load_settings().get(key)
    return bool(value) if isinstance(value, bool) else False


def _save_bool(key: str, value: bool) -> None:
    settings = load_settings()
    settings[key] = bool(value)
    save_settings(settings)


def load_show_hidden() -> bool:
    """Return persisted hidden-file visibility preference.

    Only explicit boolean values are accepted; any other type falls back to
    ``False``.
    """
    return _load_bool("show_hidden")


def save_show_hidden(show_hidden: bool) -> None:
    _save_bool("show_hidden", show_hidden)


def load_show_bookmarks() -> bool:
    return _load_bool("show_bookmarks")


def save_show_bookmarks(show_bookmarks: bool) -> None:
    _save_bool("show_bookmarks", show_bookmarks)


def coerce_chord_timeout_ms(value: object) -> int | None:
    """Validate a chord timeout in milliseconds, clamped to ``[0, 10000]``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return max(0, min(MAX_CHORD_TIMEOUT_MS, value))


def load_chord_timeout_ms() -> int:
    timeout = coerce_chord_timeout_ms(load_settings().get("chord_timeout_ms"))
    return DEFAULT_CHORD_TIMEOUT_MS if timeout is None else timeout
