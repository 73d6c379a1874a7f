"""Error taxonomy shared by config loading, persistence, and navigation.

``ConfigError`` is fatal at startup. ``NavigationError`` and its subclasses are
recoverable and end up in the status row. ``StoreError`` is raised by the
persistence layer and converted by the navigator.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .navigator.state import NavigatorState


class ConfigError(Exception):
    """Invalid keymap configuration, reported with its origin and line."""

    def __init__(self, message: str, origin: str = "<config>", line: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.origin = origin
        self.line = line

    def __str__(self) -> str:
        if self.line is None:
            return f"{self.origin}: {self.message}"
        return f"{self.origin}:{self.line}: {self.message}"


class UnknownActionError(ConfigError):
    pass


class MalformedSequenceError(ConfigError):
    pass


class DuplicateBindingError(ConfigError):
    pass


class ConfigSyntaxError(ConfigError):
    pass


class StoreError(Exception):
    """Persistent register/bookmark store could not complete an operation."""


class StoreConflictError(StoreError):
    """Concurrent writers kept changing a file faster than we could merge."""


class NavigationError(Exception):
    """Recoverable failure of one navigator action."""


class PermissionDeniedError(NavigationError):
    pass


class NotFoundError(NavigationError):
    pass


class NameCollisionError(NavigationError):
    pass


class UnknownBookmarkError(NavigationError):
    def __init__(self, key: str) -> None:
        super().__init__(f"No bookmark bound to {key!r}")
        self.key = key


class PartialPasteError(NavigationError):
    """Some entries failed to paste; the others were copied or moved.

    ``state`` is the navigator state after the successful part of the batch,
    since files already pasted stay where they landed.
    """

    def __init__(
        self,
        failed: list[Path],
        state: NavigatorState | None = None,
        reasons: dict[Path, str] | None = None,
    ) -> None:
        names = ", ".join(path.name for path in failed)
        super().__init__(f"Failed to paste {len(failed)} entr{'y' if len(failed) == 1 else 'ies'}: {names}")
        self.failed = list(failed)
        self.state = state
        self.reasons = dict(reasons or {})
