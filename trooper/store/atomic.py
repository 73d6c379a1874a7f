"""Atomic file replacement and content fingerprints for shared state files.

Writers never modify a shared file in place: they write a sibling temp file,
fsync it, and ``os.replace`` it over the target, so a concurrent reader sees
either the old or the new content. Fingerprints let read-modify-write callers
detect that another process replaced the file in between.
"""

from __future__ import annotations

import contextlib
import hashlib
import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FileSnapshot:
    """Content of a file at one point in time; ``data is None`` when absent."""

    path: Path
    data: bytes | None
    fingerprint: str | None


def fingerprint_bytes(data: bytes | None) -> str | None:
    if data is None:
        return None
    return hashlib.sha256(data).hexdigest()


def read_snapshot(path: Path) -> FileSnapshot:
    """Read ``path`` whole, treating a missing file as an empty snapshot."""
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        data = None
    return FileSnapshot(path=path, data=data, fingerprint=fingerprint_bytes(data))


def current_fingerprint(path: Path) -> str | None:
    return read_snapshot(path).fingerprint


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` using write-to-temp-then-rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


def encode_json(payload: dict[str, object]) -> bytes:
    return (json.dumps(payload, indent=2, sort_keys=True) + "\n").encode("utf-8")


def decode_json_object(data: bytes | None) -> dict[str, object] | None:
    """Decode a top-level JSON object, or ``None`` for absent/malformed data."""
    if data is None:
        return None
    try:
        value = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None
