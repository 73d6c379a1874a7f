"""Bookmark persistence with optimistic read-merge-write.

Several instances may add or remove bookmarks concurrently. Every mutation
re-reads the file, applies only its own change, and replaces the file only if
its fingerprint is still the one that was read; otherwise it starts over.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from ..errors import StoreConflictError
from .atomic import (
    FileSnapshot,
    atomic_write_bytes,
    current_fingerprint,
    decode_json_object,
    encode_json,
    read_snapshot,
)
from .paths import BOOKMARKS_FILENAME

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
MAX_WRITE_ATTEMPTS = 5


def is_bookmark_key(key: str) -> bool:
    return len(key) == 1 and key.isprintable() and not key.isspace()


def _parse_bookmarks(snapshot: FileSnapshot) -> dict[str, Path]:
    """Decode bookmarks, dropping invalid keys and non-absolute paths."""
    payload = decode_json_object(snapshot.data)
    if payload is None:
        if snapshot.data is not None:
            logger.warning("ignoring malformed bookmark file %s", snapshot.path)
        return {}
    raw = payload.get("bookmarks")
    if not isinstance(raw, dict):
        return {}

    bookmarks: dict[str, Path] = {}
    for key, raw_path in raw.items():
        if not isinstance(key, str) or not is_bookmark_key(key):
            continue
        if not isinstance(raw_path, str) or not raw_path:
            continue
        path = Path(raw_path)
        if not path.is_absolute():
            continue
        bookmarks[key] = path
    return bookmarks


def _encode_bookmarks(bookmarks: dict[str, Path]) -> bytes:
    return encode_json(
        {
            "version": SCHEMA_VERSION,
            "bookmarks": {key: str(path) for key, path in sorted(bookmarks.items())},
        }
    )


class BookmarkStore:
    """Bookmark file in ``state_dir`` keyed by single characters."""

    def __init__(self, state_dir: Path, max_attempts: int = MAX_WRITE_ATTEMPTS) -> None:
        self.path = state_dir / BOOKMARKS_FILENAME
        self.max_attempts = max(1, max_attempts)

    def read_bookmarks(self) -> dict[str, Path]:
        return _parse_bookmarks(read_snapshot(self.path))

    def _mutate(self, change: Callable[[dict[str, Path]], bool], description: str) -> dict[str, Path]:
        """Apply ``change`` to the freshest bookmarks and persist atomically.

        ``change`` edits the mapping in place and returns ``False`` when there
        is nothing to write. Raises ``StoreConflictError`` when the file keeps
        changing underneath us for ``max_attempts`` rounds.
        """
        for attempt in range(1, self.max_attempts + 1):
            snapshot = read_snapshot(self.path)
            bookmarks = _parse_bookmarks(snapshot)
            if not change(bookmarks):
                return bookmarks
            if current_fingerprint(self.path) != snapshot.fingerprint:
                logger.info("bookmark file changed during %s, retrying (attempt %d)", description, attempt)
                continue
            atomic_write_bytes(self.path, _encode_bookmarks(bookmarks))
            logger.info("bookmarks updated: %s", description)
            return bookmarks
        raise StoreConflictError(
            f"bookmark file kept changing; gave up after {self.max_attempts} attempts"
        )

    def write_bookmark(self, key: str, path: Path) -> dict[str, Path]:
        """Bind ``key`` to ``path``, preserving bookmarks written by other instances."""
        if not is_bookmark_key(key):
            raise ValueError(f"invalid bookmark key: {key!r}")
        target = Path(path)
        if not target.is_absolute():
            target = Path.cwd() / target

        def bind(bookmarks: dict[str, Path]) -> bool:
            if bookmarks.get(key) == target:
                return False
            bookmarks[key] = target
            return True

        return self._mutate(bind, f"set {key!r} -> {target}")

    def delete_bookmark(self, key: str) -> bool:
        """Remove ``key``; returns ``False`` when it was not bound."""
        removed = False

        def unbind(bookmarks: dict[str, Path]) -> bool:
            nonlocal removed
            removed = bookmarks.pop(key, None) is not None
            return removed

        self._mutate(unbind, f"delete {key!r}")
        return removed
