from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path


@dataclass(frozen=True)
class DirectoryEntry:
    """One visible directory child."""

    name: str
    path: Path
    is_dir: bool


@dataclass(frozen=True)
class NavigatorState:
    """Per-process view of the directory being browsed."""

    cwd: Path
    entries: tuple[DirectoryEntry, ...] = ()
    selected: int = 0
    show_hidden: bool = False
    status: str = ""

    @property
    def selected_entry(self) -> DirectoryEntry | None:
        if not self.entries:
            return None
        return self.entries[max(0, min(self.selected, len(self.entries) - 1))]

    def index_of(self, name: str) -> int | None:
        for idx, entry in enumerate(self.entries):
            if entry.name == name:
                return idx
        return None

    def with_selection(self, selected: int) -> NavigatorState:
        if not self.entries:
            return replace(self, selected=0)
        return replace(self, selected=max(0, min(selected, len(self.entries) - 1)))

    def with_status(self, status: str) -> NavigatorState:
        return replace(self, status=status)
