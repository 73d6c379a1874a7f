"""Action dispatch over the navigator state.

``Navigator.apply`` takes the current ``NavigatorState`` and returns the next
one. Failures raise ``NavigationError`` subclasses and leave the caller's state
as it was, except for ``PartialPasteError`` which carries the refreshed state
because part of the batch already happened.
"""

from __future__ import annotations

import errno
import logging
import os
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from ..actions import Action
from ..errors import (
    NameCollisionError,
    NavigationError,
    NotFoundError,
    PartialPasteError,
    PermissionDeniedError,
    StoreError,
    UnknownBookmarkError,
)
from ..store.bookmarks import BookmarkStore, is_bookmark_key
from ..store.register import RegisterMode, RegisterStore
from .fs import LocalFileSystem
from .state import DirectoryEntry, NavigatorState

logger = logging.getLogger(__name__)

COPY_SUFFIX = " (Copy)"

Handler = Callable[[NavigatorState, str | None], NavigatorState]


def translate_os_error(exc: OSError, path: Path | None = None) -> NavigationError:
    """Map an ``OSError`` onto the navigator's error taxonomy."""
    target = path if path is not None else exc.filename
    if isinstance(exc, PermissionError) or exc.errno in {errno.EACCES, errno.EPERM}:
        return PermissionDeniedError(f"Permission denied: {target}")
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)) or exc.errno == errno.ENOENT:
        return NotFoundError(f"Not found: {target}")
    if isinstance(exc, FileExistsError):
        return NameCollisionError(f"Already exists: {target}")
    return NavigationError(f"{target}: {exc.strerror or exc}")


def copy_name(name: str, is_dir: bool) -> str:
    """Return ``name`` with the copy marker appended before any file suffix."""
    if is_dir:
        return f"{name}{COPY_SUFFIX}"
    path = Path(name)
    return f"{path.stem}{COPY_SUFFIX}{path.suffix}"


def validate_entry_name(name: str | None) -> str:
    """Return ``name`` if usable as a single directory entry name."""
    if name is None or not name.strip():
        raise NameCollisionError("Name must not be empty")
    separators = {os.sep} | ({os.altsep} if os.altsep else set())
    if name in {".", ".."} or "\0" in name or any(sep in name for sep in separators):
        raise NameCollisionError(f"Invalid name: {name!r}")
    return name


class _PasteRefused(Exception):
    pass


class Navigator:
    """Applies resolved actions to navigator state, the filesystem, and the store."""

    def __init__(
        self,
        register_store: RegisterStore,
        bookmark_store: BookmarkStore,
        fs: LocalFileSystem | None = None,
        on_show_hidden_changed: Callable[[bool], None] | None = None,
    ) -> None:
        self.fs = fs if fs is not None else LocalFileSystem()
        self.register_store = register_store
        self.bookmark_store = bookmark_store
        self.on_show_hidden_changed = on_show_hidden_changed
        self._handlers: dict[Action, Handler] = {
            Action.MOVE_UP: lambda state, _arg: state.with_selection(state.selected - 1),
            Action.MOVE_DOWN: lambda state, _arg: state.with_selection(state.selected + 1),
            Action.MOVE_TO_TOP: lambda state, _arg: state.with_selection(0),
            Action.MOVE_TO_BOTTOM: lambda state, _arg: state.with_selection(len(state.entries) - 1),
            Action.ENTER_DIR: self._enter_dir,
            Action.GO_PARENT: self._go_parent,
            Action.YANK: lambda state, _arg: self._fill_register(state, RegisterMode.YANKED),
            Action.CUT: lambda state, _arg: self._fill_register(state, RegisterMode.CUT),
            Action.PASTE: self._paste,
            Action.RENAME: self._rename,
            Action.CREATE_DIR: self._create_dir,
            Action.DELETE_ENTRY: self._delete_entry,
            Action.CREATE_BOOKMARK: self._create_bookmark,
            Action.JUMP_BOOKMARK: self._jump_bookmark,
            Action.DELETE_BOOKMARK: self._delete_bookmark,
            Action.TOGGLE_HIDDEN_FILES: self._toggle_hidden,
            Action.CLEAR_REGISTER: self._clear_register,
            # Loop-level actions with no navigator effect.
            Action.TOGGLE_BOOKMARKS: lambda state, _arg: state,
            Action.MOVE_TO_LEFT_PANEL: lambda state, _arg: state,
            Action.MOVE_TO_RIGHT_PANEL: lambda state, _arg: state,
            Action.OPEN_COMMAND_MODE: lambda state, _arg: state,
            Action.QUIT: lambda state, _arg: state,
        }

    def handles(self, action: Action) -> bool:
        return action in self._handlers

    def open(self, path: Path, show_hidden: bool = False) -> NavigatorState:
        """Build the initial state for ``path``."""
        cwd = Path(path).absolute()
        entries = self._list(cwd, show_hidden)
        return NavigatorState(cwd=cwd, entries=entries, selected=0, show_hidden=show_hidden)

    def apply(self, action: Action, state: NavigatorState, argument: str | None = None) -> NavigatorState:
        """Apply ``action`` and return the next state."""
        handler = self._handlers[action]
        return handler(state.with_status(""), argument)

    def refresh(self, state: NavigatorState, prefer_name: str | None = None) -> NavigatorState:
        """Re-list the current directory, keeping the selection where possible."""
        entries = self._list(state.cwd, state.show_hidden)
        refreshed = replace(state, entries=entries)
        selected_entry = state.selected_entry
        name = prefer_name if prefer_name is not None else (selected_entry.name if selected_entry else None)
        idx = refreshed.index_of(name) if name is not None else None
        return refreshed.with_selection(idx if idx is not None else state.selected)

    def _list(self, directory: Path, show_hidden: bool) -> tuple[DirectoryEntry, ...]:
        try:
            return tuple(self.fs.list_directory(directory, show_hidden))
        except OSError as exc:
            raise translate_os_error(exc, directory) from exc

    def _change_directory(self, state: NavigatorState, target: Path, select_name: str | None = None) -> NavigatorState:
        entries = self._list(target, state.show_hidden)
        moved = replace(state, cwd=target, entries=entries, selected=0)
        if select_name is not None:
            idx = moved.index_of(select_name)
            if idx is not None:
                moved = moved.with_selection(idx)
        return moved

    def _enter_dir(self, state: NavigatorState, _arg: str | None) -> NavigatorState:
        entry = state.selected_entry
        if entry is None or not entry.is_dir:
            return state
        return self._change_directory(state, entry.path)

    def _go_parent(self, state: NavigatorState, _arg: str | None) -> NavigatorState:
        parent = state.cwd.parent
        if parent == state.cwd:
            return state.with_status("Already at the filesystem root")
        return self._change_directory(state, parent, select_name=state.cwd.name)

    def _fill_register(self, state: NavigatorState, mode: RegisterMode) -> NavigatorState:
        entry = state.selected_entry
        if entry is None:
            return state.with_status("Nothing selected")
        try:
            previous = self.register_store.read_register()
            if not previous.is_empty:
                logger.debug("replacing %s register with %d entries", previous.mode.value, len(previous.entries))
            self.register_store.write_register(mode, [entry.path])
        except OSError as exc:
            raise translate_os_error(exc, self.register_store.path) from exc
        verb = "Yanked" if mode is RegisterMode.YANKED else "Cut"
        return state.with_status(f"{verb} {entry.name}")

    def _clear_register(self, state: NavigatorState, _arg: str | None) -> NavigatorState:
        try:
            self.register_store.clear_register()
        except OSError as exc:
            raise translate_os_error(exc, self.register_store.path) from exc
        return state.with_status("Register cleared")

    def _unique_destination(self, directory: Path, name: str, is_dir: bool) -> Path:
        dest = directory / name
        while self.fs.exists(dest):
            dest = directory / copy_name(dest.name, is_dir)
        return dest

    def _paste_one(self, src: Path, directory: Path, mode: RegisterMode) -> str:
        if not self.fs.exists(src):
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(src))
        is_dir = self.fs.is_dir(src)
        if mode is RegisterMode.CUT and src.parent == directory:
            return src.name
        if is_dir:
            try:
                directory.resolve().relative_to(src.resolve())
            except ValueError:
                pass
            else:
                raise _PasteRefused(f"cannot paste {src.name} into itself")
        dest = self._unique_destination(directory, src.name, is_dir)
        if mode is RegisterMode.CUT:
            self.fs.move(src, dest)
        else:
            self.fs.copy(src, dest)
        logger.info("%s %s -> %s", "moved" if mode is RegisterMode.CUT else "copied", src, dest)
        return dest.name

    def _paste(self, state: NavigatorState, _arg: str | None) -> NavigatorState:
        try:
            register = self.register_store.read_register()
        except OSError as exc:
            raise translate_os_error(exc, self.register_store.path) from exc
        if register.is_empty:
            return state.with_status("Register is empty")

        pasted: list[str] = []
        failed: list[Path] = []
        reasons: dict[Path, str] = {}
        for src in register.entries:
            try:
                pasted.append(self._paste_one(src, state.cwd, register.mode))
            except OSError as exc:
                failed.append(src)
                reasons[src] = str(translate_os_error(exc, src))
                logger.warning("paste of %s failed: %s", src, exc)
            except _PasteRefused as exc:
                failed.append(src)
                reasons[src] = str(exc)
                logger.warning("paste of %s refused: %s", src, exc)

        if register.mode is RegisterMode.CUT:
            try:
                # Moved entries no longer exist at their source; keep only the failures.
                self.register_store.write_register(RegisterMode.CUT, failed)
            except OSError as exc:
                raise translate_os_error(exc, self.register_store.path) from exc

        try:
            refreshed = self.refresh(state, prefer_name=pasted[-1] if pasted else None)
        except NavigationError as exc:
            if not failed:
                raise
            # The per-entry failures still need reporting.
            logger.warning("could not re-list %s after paste: %s", state.cwd, exc)
            refreshed = state
        if failed:
            raise PartialPasteError(failed, state=refreshed, reasons=reasons)
        noun = "entry" if len(pasted) == 1 else "entries"
        return refreshed.with_status(f"Pasted {len(pasted)} {noun}")

    def _rename(self, state: NavigatorState, new_name: str | None) -> NavigatorState:
        entry = state.selected_entry
        if entry is None:
            return state.with_status("Nothing to rename")
        name = validate_entry_name(new_name)
        if name == entry.name:
            return state
        if self.fs.exists(state.cwd / name):
            raise NameCollisionError(f"{name} already exists")
        try:
            self.fs.rename(entry.path, name)
        except OSError as exc:
            raise translate_os_error(exc, entry.path) from exc
        logger.info("renamed %s -> %s", entry.path, name)
        return self.refresh(state, prefer_name=name).with_status(f"Renamed to {name}")

    def _create_dir(self, state: NavigatorState, name: str | None) -> NavigatorState:
        name = validate_entry_name(name)
        target = state.cwd / name
        if self.fs.exists(target) and not self.fs.is_dir(target):
            raise NameCollisionError(f"{name} already exists")
        try:
            self.fs.mkdir_if_needed(target)
        except OSError as exc:
            raise translate_os_error(exc, target) from exc
        return self.refresh(state, prefer_name=name).with_status(f"Created {name}")

    def _delete_entry(self, state: NavigatorState, _arg: str | None) -> NavigatorState:
        entry = state.selected_entry
        if entry is None:
            return state.with_status("Nothing to delete")
        try:
            self.fs.delete(entry.path)
        except OSError as exc:
            raise translate_os_error(exc, entry.path) from exc
        logger.info("deleted %s", entry.path)
        refreshed = replace(state, entries=self._list(state.cwd, state.show_hidden))
        return refreshed.with_selection(state.selected).with_status(f"Deleted {entry.name}")

    def _create_bookmark(self, state: NavigatorState, key: str | None) -> NavigatorState:
        if key is None or not is_bookmark_key(key):
            raise NavigationError(f"Invalid bookmark key: {key!r}")
        try:
            self.bookmark_store.write_bookmark(key, state.cwd)
        except StoreError as exc:
            raise NavigationError(str(exc)) from exc
        except OSError as exc:
            raise translate_os_error(exc, self.bookmark_store.path) from exc
        return state.with_status(f"Bookmark '{key}' -> {state.cwd}")

    def _jump_bookmark(self, state: NavigatorState, key: str | None) -> NavigatorState:
        if key is None:
            raise UnknownBookmarkError("")
        try:
            bookmarks = self.bookmark_store.read_bookmarks()
        except OSError as exc:
            raise translate_os_error(exc, self.bookmark_store.path) from exc
        target = bookmarks.get(key)
        if target is None:
            raise UnknownBookmarkError(key)
        return self._change_directory(state, target)

    def _delete_bookmark(self, state: NavigatorState, key: str | None) -> NavigatorState:
        if key is None:
            raise UnknownBookmarkError("")
        try:
            removed = self.bookmark_store.delete_bookmark(key)
        except StoreError as exc:
            raise NavigationError(str(exc)) from exc
        except OSError as exc:
            raise translate_os_error(exc, self.bookmark_store.path) from exc
        if not removed:
            raise UnknownBookmarkError(key)
        return state.with_status(f"Bookmark '{key}' deleted")

    def _toggle_hidden(self, state: NavigatorState, _arg: str | None) -> NavigatorState:
        toggled = replace(state, show_hidden=not state.show_hidden)
        refreshed = self.refresh(toggled)
        if self.on_show_hidden_changed is not None:
            self.on_show_hidden_changed(refreshed.show_hidden)
        return refreshed.with_status("Hidden files shown" if refreshed.show_hidden else "Hidden files hidden")
