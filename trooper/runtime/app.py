"""Application layer between decoded keys and the navigator.

``Application`` owns the per-session interaction state: the sequence matcher,
argument capture for actions that need a key or a line of text, the ``:``
command prompt, and bookmark-panel visibility and focus. Feature logic stays
in the navigator; this module only routes.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..actions import KEY_ARGUMENT_ACTIONS, TEXT_ARGUMENT_ACTIONS, Action
from ..errors import NavigationError, PartialPasteError
from ..input.matcher import MatcherState, MatchKind, MatchResult, SequenceMatcher
from ..input.prompt import LinePrompt, PromptHistory, PromptOutcome
from ..keymap.tokens import ESC, KeyToken, format_key_sequence
from ..navigator.navigator import Navigator
from ..navigator.state import NavigatorState
from ..store.bookmarks import is_bookmark_key
from .render import RenderContext

logger = logging.getLogger(__name__)

COMMANDS: dict[str, Action] = {
    "rename": Action.RENAME,
    "mv": Action.RENAME,
    "mkdir": Action.CREATE_DIR,
    "bookmark": Action.CREATE_BOOKMARK,
    "bm": Action.CREATE_BOOKMARK,
    "del_bookmark": Action.DELETE_BOOKMARK,
    "dbm": Action.DELETE_BOOKMARK,
    "jump": Action.JUMP_BOOKMARK,
    "delete": Action.DELETE_ENTRY,
    "up": Action.MOVE_UP,
    "paste": Action.PASTE,
    "clear": Action.CLEAR_REGISTER,
    "hidden": Action.TOGGLE_HIDDEN_FILES,
    "quit": Action.QUIT,
    "q": Action.QUIT,
}

_PROMPT_LABELS: dict[Action, str] = {
    Action.RENAME: "rename: ",
    Action.CREATE_DIR: "mkdir: ",
    Action.OPEN_COMMAND_MODE: ":",
}

_KEY_PROMPTS: dict[Action, str] = {
    Action.CREATE_BOOKMARK: "Bookmark current directory as: ",
    Action.JUMP_BOOKMARK: "Jump to bookmark: ",
    Action.DELETE_BOOKMARK: "Delete bookmark: ",
}

# Actions that keep their normal meaning while the bookmark panel has focus.
_PANEL_PASSTHROUGH = frozenset(
    {
        Action.QUIT,
        Action.TOGGLE_BOOKMARKS,
        Action.OPEN_COMMAND_MODE,
        Action.MOVE_TO_LEFT_PANEL,
        Action.MOVE_TO_RIGHT_PANEL,
    }
)


@dataclass(frozen=True)
class ActivePrompt:
    purpose: Action
    prompt: LinePrompt


class Application:
    """Route keys through the matcher and apply resolved actions."""

    def __init__(
        self,
        navigator: Navigator,
        matcher: SequenceMatcher,
        state: NavigatorState,
        *,
        show_bookmarks: bool = False,
        on_show_bookmarks_changed: Callable[[bool], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.navigator = navigator
        self.matcher = matcher
        self.state = state
        self.show_bookmarks = show_bookmarks
        self.on_show_bookmarks_changed = on_show_bookmarks_changed
        self.clock = clock
        self.command_history = PromptHistory()
        self.active_prompt: ActivePrompt | None = None
        self.awaiting_key_for: Action | None = None
        self.bookmark_focus = False
        self.bookmark_selected = 0
        self.quit_requested = False
        self.dirty = True

    def read_timeout_ms(self, idle_poll_ms: int, now: float | None = None) -> int:
        """Bound the next key read so an ambiguous chord resolves on time."""
        remaining = self.matcher.seconds_until_deadline(now)
        if remaining is None:
            return idle_poll_ms
        return max(0, min(idle_poll_ms, int(remaining * 1000) + 1))

    def handle_idle(self, now: float | None = None) -> bool:
        """Resolve an expired chord; return ``True`` when the app should quit."""
        expired = self.matcher.poll(now)
        if expired is not None:
            self._on_match(expired)
        return self.quit_requested

    def handle_token(self, token: KeyToken, now: float | None = None) -> bool:
        """Process one key; return ``True`` when the app should quit."""
        if now is None:
            now = self.clock()
        self.dirty = True

        if self.active_prompt is not None:
            self._handle_prompt_key(token)
            return self.quit_requested

        if self.awaiting_key_for is not None:
            self._handle_argument_key(token)
            return self.quit_requested

        expired = self.matcher.poll(now)
        if expired is not None:
            self._on_match(expired)
            if self.quit_requested:
                return True
            if self.active_prompt is not None or self.awaiting_key_for is not None:
                # The expired action takes this key as its input.
                return self.handle_token(token, now)

        if token == KeyToken(ESC) and self.matcher.state is MatcherState.MATCHING:
            self.matcher.reset()
            return self.quit_requested

        self._on_match(self.matcher.feed(token, now))
        return self.quit_requested

    def _on_match(self, result: MatchResult) -> None:
        if result.kind is MatchKind.RESOLVED and result.action is not None:
            logger.debug("resolved %s -> %s", format_key_sequence(result.sequence), result.action.value)
            self.on_action(result.action)
        elif result.kind is MatchKind.NO_MATCH:
            logger.debug("no binding for %s", format_key_sequence(result.sequence))

    def on_action(self, action: Action) -> None:
        if self.bookmark_focus and action not in _PANEL_PASSTHROUGH:
            self._on_panel_action(action)
            return
        if action is Action.QUIT:
            self.quit_requested = True
        elif action is Action.TOGGLE_BOOKMARKS:
            self._set_show_bookmarks(not self.show_bookmarks)
        elif action is Action.MOVE_TO_LEFT_PANEL:
            if not self.show_bookmarks:
                self._set_show_bookmarks(True)
            self.bookmark_focus = True
        elif action is Action.MOVE_TO_RIGHT_PANEL:
            self.bookmark_focus = False
        elif action is Action.OPEN_COMMAND_MODE:
            self.active_prompt = ActivePrompt(
                action,
                LinePrompt(
                    _PROMPT_LABELS[action],
                    history=self.command_history,
                    completions=tuple(COMMANDS),
                ),
            )
        elif action is Action.RENAME:
            entry = self.state.selected_entry
            if entry is None:
                self.state = self.state.with_status("Nothing to rename")
                return
            self.active_prompt = ActivePrompt(action, LinePrompt(_PROMPT_LABELS[action], text=entry.name))
        elif action is Action.CREATE_DIR:
            self.active_prompt = ActivePrompt(action, LinePrompt(_PROMPT_LABELS[action]))
        elif action in KEY_ARGUMENT_ACTIONS:
            self.awaiting_key_for = action
            self.state = self.state.with_status(_KEY_PROMPTS[action])
        else:
            self.dispatch(action)

    def _set_show_bookmarks(self, visible: bool) -> None:
        self.show_bookmarks = visible
        if not visible:
            self.bookmark_focus = False
        if self.on_show_bookmarks_changed is not None:
            self.on_show_bookmarks_changed(visible)

    def _panel_bookmarks(self) -> list[tuple[str, Path]]:
        try:
            bookmarks = self.navigator.bookmark_store.read_bookmarks()
        except OSError as exc:
            logger.warning("could not read bookmarks: %s", exc)
            return []
        return sorted(bookmarks.items())

    def _clamp_bookmark_selection(self, count: int) -> None:
        self.bookmark_selected = max(0, min(self.bookmark_selected, count - 1))

    def _on_panel_action(self, action: Action) -> None:
        """Apply ``action`` to the focused bookmark panel.

        Movement walks the bookmark list, ``EnterDir`` jumps to the selected
        bookmark and hands focus back to the listing, and ``DeleteBookmark``
        removes the selected bookmark without asking for a key. Anything else
        is ignored while the panel has focus.
        """
        bookmarks = self._panel_bookmarks()
        self._clamp_bookmark_selection(len(bookmarks))
        if action is Action.MOVE_UP:
            self.bookmark_selected -= 1
        elif action is Action.MOVE_DOWN:
            self.bookmark_selected += 1
        elif action is Action.MOVE_TO_TOP:
            self.bookmark_selected = 0
        elif action is Action.MOVE_TO_BOTTOM:
            self.bookmark_selected = len(bookmarks) - 1
        elif action is Action.ENTER_DIR and bookmarks:
            key, _path = bookmarks[self.bookmark_selected]
            self.bookmark_focus = False
            self.dispatch(Action.JUMP_BOOKMARK, key)
        elif action is Action.DELETE_BOOKMARK and bookmarks:
            key, _path = bookmarks[self.bookmark_selected]
            self.dispatch(Action.DELETE_BOOKMARK, key)
            bookmarks = self._panel_bookmarks()
        self._clamp_bookmark_selection(len(bookmarks))

    def dispatch(self, action: Action, argument: str | None = None) -> None:
        """Apply ``action`` through the navigator, turning failures into status text."""
        if action is Action.QUIT:
            self.quit_requested = True
            return
        try:
            self.state = self.navigator.apply(action, self.state, argument)
        except PartialPasteError as exc:
            logger.warning("%s", exc)
            base = exc.state if exc.state is not None else self.state
            self.state = base.with_status(str(exc))
        except NavigationError as exc:
            logger.warning("%s failed: %s", action.value, exc)
            self.state = self.state.with_status(str(exc))

    def _handle_argument_key(self, token: KeyToken) -> None:
        action = self.awaiting_key_for
        self.awaiting_key_for = None
        assert action is not None
        if token == KeyToken(ESC):
            self.state = self.state.with_status("")
            return
        key = token.printable
        if key is None or not is_bookmark_key(key):
            self.state = self.state.with_status("Bookmark keys are single visible characters")
            return
        self.dispatch(action, key)

    def _handle_prompt_key(self, token: KeyToken) -> None:
        active = self.active_prompt
        assert active is not None
        outcome = active.prompt.handle_key(token)
        if outcome is PromptOutcome.EDITING:
            return
        self.active_prompt = None
        if outcome is PromptOutcome.CANCELLED:
            return
        text = active.prompt.text
        if active.purpose is Action.OPEN_COMMAND_MODE:
            self.run_command(text)
        else:
            self.dispatch(active.purpose, text)

    def run_command(self, text: str) -> None:
        """Execute one ``:`` command line such as ``mkdir build`` or ``bm w``."""
        words = text.strip().split(maxsplit=1)
        if not words:
            return
        name = words[0]
        argument = words[1] if len(words) > 1 else None
        action = COMMANDS.get(name)
        if action is None:
            self.state = self.state.with_status(f"Unknown command: {name}")
            return
        needs_argument = action in KEY_ARGUMENT_ACTIONS or action in TEXT_ARGUMENT_ACTIONS
        if needs_argument and argument is None:
            self.state = self.state.with_status(f"Usage: {name} <{'key' if action in KEY_ARGUMENT_ACTIONS else 'name'}>")
            return
        self.dispatch(action, argument)

    def refresh_from_disk(self) -> None:
        """Pick up changes other instances made to the directory or register."""
        self.dirty = True
        try:
            refreshed = self.navigator.refresh(self.state)
        except NavigationError as exc:
            logger.debug("periodic refresh of %s failed: %s", self.state.cwd, exc)
            return
        if refreshed.entries != self.state.entries:
            self.state = refreshed

    def render_context(self, width: int, height: int) -> RenderContext:
        """Snapshot of everything the renderer draws, re-reading shared state."""
        try:
            register = self.navigator.register_store.read_register()
        except OSError as exc:
            logger.warning("could not read register for display: %s", exc)
            register = None
        bookmarks = None
        if self.show_bookmarks:
            try:
                bookmarks = self.navigator.bookmark_store.read_bookmarks()
            except OSError as exc:
                logger.warning("could not read bookmarks for display: %s", exc)
                bookmarks = {}
        context = RenderContext(
            state=self.state,
            width=width,
            height=height,
            bookmarks=bookmarks,
            pending_chord=format_key_sequence(self.matcher.buffer),
        )
        if bookmarks is not None and self.bookmark_focus:
            self._clamp_bookmark_selection(len(bookmarks))
            context.bookmark_selected = self.bookmark_selected
        if register is not None:
            context.register = register
        if self.active_prompt is not None:
            context.prompt_label = self.active_prompt.prompt.label
            context.prompt_text = self.active_prompt.prompt.text
        return context
