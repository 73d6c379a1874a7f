"""Single-line text prompt used for rename, mkdir, and ``:`` commands.

The prompt edits a text buffer with the cursor at the end, keeps a command
history navigable with Up/Down, and cycles Tab completions over a fixed set of
candidate words.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..keymap.tokens import BACKSPACE, DOWN, ENTER, ESC, TAB, UP, KeyToken

MAX_HISTORY = 100


class PromptOutcome(Enum):
    EDITING = "editing"
    SUBMITTED = "submitted"
    CANCELLED = "cancelled"


@dataclass
class PromptHistory:
    entries: list[str] = field(default_factory=list)
    max_entries: int = MAX_HISTORY

    def record(self, text: str) -> None:
        if not text.strip():
            return
        if self.entries and self.entries[-1] == text:
            return
        self.entries.append(text)
        overflow = len(self.entries) - self.max_entries
        if overflow > 0:
            del self.entries[:overflow]


class LinePrompt:
    """Editable line with history browsing and prefix completion."""

    def __init__(
        self,
        label: str,
        text: str = "",
        history: PromptHistory | None = None,
        completions: tuple[str, ...] = (),
    ) -> None:
        self.label = label
        self.text = text
        self.history = history
        self.completions = completions
        self._history_index: int | None = None
        self._draft = text
        self._completion_matches: list[str] = []
        self._completion_index = -1

    def _reset_completion(self) -> None:
        self._completion_matches = []
        self._completion_index = -1

    def _browse_history(self, step: int) -> None:
        if self.history is None or not self.history.entries:
            return
        entries = self.history.entries
        if self._history_index is None:
            if step > 0:
                return
            self._draft = self.text
            self._history_index = len(entries) - 1
        else:
            self._history_index += step
        if self._history_index >= len(entries):
            self._history_index = None
            self.text = self._draft
            return
        self._history_index = max(0, self._history_index)
        self.text = entries[self._history_index]

    def _complete(self) -> None:
        if not self.completions:
            return
        if self._completion_index == -1:
            word = self.text.strip()
            self._draft = self.text
            self._completion_matches = sorted(c for c in self.completions if c.startswith(word))
        if not self._completion_matches:
            return
        self._completion_index += 1
        if self._completion_index >= len(self._completion_matches):
            # Cycling past the last match restores what was typed.
            self._completion_index = -1
            self.text = self._draft
            return
        self.text = self._completion_matches[self._completion_index]

    def handle_key(self, token: KeyToken) -> PromptOutcome:
        if token.key == ESC and not token.ctrl:
            return PromptOutcome.CANCELLED
        if token.key == ENTER and not token.ctrl:
            if self.history is not None:
                self.history.record(self.text)
            return PromptOutcome.SUBMITTED
        if token.key == TAB and not token.ctrl:
            self._complete()
            return PromptOutcome.EDITING
        self._reset_completion()
        if token.key == BACKSPACE or (token.ctrl and token.key == "h"):
            self.text = self.text[:-1]
        elif token.ctrl and token.key == "u":
            self.text = ""
        elif token.ctrl and token.key == "w":
            self.text = self.text.rstrip()
            cut = self.text.rfind(" ")
            self.text = self.text[: cut + 1] if cut >= 0 else ""
        elif token.key == UP:
            self._browse_history(-1)
        elif token.key == DOWN:
            self._browse_history(1)
        else:
            printable = token.printable
            if printable is not None:
                self.text += printable
        return PromptOutcome.EDITING
