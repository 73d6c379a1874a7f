"""Filesystem operations behind the navigator.

Every method raises plain ``OSError`` subclasses; the navigator translates them
into its own error taxonomy.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from .state import DirectoryEntry


def _sort_key(entry: DirectoryEntry) -> tuple[bool, str]:
    """Directories first, then case-insensitive name order."""
    return (not entry.is_dir, entry.name.lower())


class LocalFileSystem:
    """The real filesystem, as seen by the navigator."""

    def list_directory(self, directory: Path, show_hidden: bool) -> list[DirectoryEntry]:
        """List visible children of ``directory`` in display order."""
        entries: list[DirectoryEntry] = []
        with os.scandir(directory) as children:
            for child in children:
                name = child.name
                if not show_hidden and name.startswith("."):
                    continue
                try:
                    # Symlinked directories are browsable like real ones.
                    is_dir = child.is_dir()
                except OSError:
                    is_dir = False
                entries.append(DirectoryEntry(name=name, path=Path(child.path), is_dir=is_dir))
        entries.sort(key=_sort_key)
        return entries

    def exists(self, path: Path) -> bool:
        """Return whether ``path`` exists, counting dangling symlinks."""
        return os.path.lexists(path)

    def is_dir(self, path: Path) -> bool:
        """Return whether ``path`` is a directory or links to one."""
        return path.is_dir()

    def copy(self, src: Path, dst: Path) -> None:
        """Copy a file or a whole tree to ``dst``, keeping symlinks as links."""
        if src.is_dir() and not src.is_symlink():
            shutil.copytree(src, dst, symlinks=True)
        else:
            shutil.copy2(src, dst, follow_symlinks=False)

    def move(self, src: Path, dst: Path) -> None:
        """Move ``src`` to ``dst``, across filesystems if needed."""
        shutil.move(str(src), str(dst))

    def rename(self, path: Path, new_name: str) -> Path:
        """Rename ``path`` within its directory and return the new path."""
        target = path.with_name(new_name)
        if os.path.lexists(target):
            raise FileExistsError(f"{target} already exists")
        os.rename(path, target)
        return target

    def mkdir_if_needed(self, path: Path) -> None:
        """Create ``path`` and any missing parents."""
        path.mkdir(parents=True, exist_ok=True)

    def delete(self, path: Path) -> None:
        """Remove a file, a symlink, or a directory tree."""
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
