"""On-disk yank register shared by every running instance.

The register file is the single source of truth. Callers re-read it right
before acting on it (paste) and overwrite it wholesale on yank/cut; racing
writers resolve as last-writer-wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .atomic import atomic_write_bytes, decode_json_object, encode_json, read_snapshot
from .paths import REGISTER_FILENAME

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class RegisterMode(Enum):
    NONE = "none"
    YANKED = "yanked"
    CUT = "cut"


@dataclass(frozen=True)
class PendingRegister:
    mode: RegisterMode = RegisterMode.NONE
    entries: tuple[Path, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.mode is RegisterMode.NONE or not self.entries


EMPTY_REGISTER = PendingRegister()


def _normalize_entries(entries: Iterable[Path | str]) -> tuple[Path, ...]:
    """Absolute paths, first occurrence order, duplicates dropped."""
    seen: set[Path] = set()
    out: list[Path] = []
    for entry in entries:
        path = Path(entry)
        if not path.is_absolute():
            path = Path.cwd() / path
        if path in seen:
            continue
        seen.add(path)
        out.append(path)
    return tuple(out)


def _parse_register(payload: dict[str, object] | None) -> PendingRegister:
    if payload is None:
        return EMPTY_REGISTER
    try:
        mode = RegisterMode(payload.get("mode", RegisterMode.NONE.value))
    except ValueError:
        return EMPTY_REGISTER
    raw_entries = payload.get("entries", [])
    if not isinstance(raw_entries, list):
        return EMPTY_REGISTER
    entries = _normalize_entries(item for item in raw_entries if isinstance(item, str) and item)
    if mode is RegisterMode.NONE or not entries:
        return EMPTY_REGISTER
    return PendingRegister(mode=mode, entries=entries)


class RegisterStore:
    """Read and atomically replace the register file in ``state_dir``."""

    def __init__(self, state_dir: Path) -> None:
        self.path = state_dir / REGISTER_FILENAME

    def read_register(self) -> PendingRegister:
        """Load the current register; an absent or malformed file reads as empty."""
        snapshot = read_snapshot(self.path)
        if snapshot.data is None:
            return EMPTY_REGISTER
        payload = decode_json_object(snapshot.data)
        if payload is None:
            logger.warning("ignoring malformed register file %s", self.path)
        return _parse_register(payload)

    def write_register(self, mode: RegisterMode, entries: Iterable[Path | str]) -> PendingRegister:
        """Overwrite the register with ``mode`` and ``entries``."""
        normalized = _normalize_entries(entries)
        if mode is RegisterMode.NONE or not normalized:
            mode, normalized = RegisterMode.NONE, ()
        payload: dict[str, object] = {
            "version": SCHEMA_VERSION,
            "mode": mode.value,
            "entries": [str(path) for path in normalized],
        }
        atomic_write_bytes(self.path, encode_json(payload))
        logger.info("register set to %s with %d entries", mode.value, len(normalized))
        return PendingRegister(mode=mode, entries=normalized)

    def clear_register(self) -> PendingRegister:
        return self.write_register(RegisterMode.NONE, ())
