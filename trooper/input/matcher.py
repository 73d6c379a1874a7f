"""Incremental key-sequence matching against the keymap table.

Keys arrive one at a time with no terminator. The matcher keeps the tokens of
the current attempt in a buffer and reports, after every key, whether the
attempt resolved to an action, needs more keys, or cannot match anything.

When the buffer is itself bound *and* is a strict prefix of a longer binding
(``g`` next to ``gg``), the shorter action only wins after ``timeout_seconds``
pass without another key. The event loop drives that through ``deadline`` and
``poll``.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..actions import Action
from ..keymap.table import KeymapTable
from ..keymap.tokens import KeySequence, KeyToken

DEFAULT_CHORD_TIMEOUT_SECONDS = 1.0


class MatchKind(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    NO_MATCH = "no_match"


class MatcherState(Enum):
    IDLE = "idle"
    MATCHING = "matching"


@dataclass(frozen=True)
class MatchResult:
    kind: MatchKind
    action: Action | None = None
    sequence: KeySequence = ()

    @classmethod
    def pending(cls, sequence: KeySequence) -> MatchResult:
        return cls(MatchKind.PENDING, sequence=sequence)

    @classmethod
    def resolved(cls, action: Action, sequence: KeySequence) -> MatchResult:
        return cls(MatchKind.RESOLVED, action=action, sequence=sequence)

    @classmethod
    def no_match(cls, sequence: KeySequence) -> MatchResult:
        return cls(MatchKind.NO_MATCH, sequence=sequence)


class SequenceMatcher:
    """Stateful resolver from keypresses to actions."""

    def __init__(
        self,
        keymap: KeymapTable,
        timeout_seconds: float = DEFAULT_CHORD_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.keymap = keymap
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._buffer: list[KeyToken] = []
        self._deadline: float | None = None

    @property
    def buffer(self) -> KeySequence:
        return tuple(self._buffer)

    @property
    def state(self) -> MatcherState:
        return MatcherState.MATCHING if self._buffer else MatcherState.IDLE

    @property
    def deadline(self) -> float | None:
        """Clock time at which an ambiguous exact match resolves, if armed."""
        return self._deadline

    def reset(self) -> None:
        self._buffer.clear()
        self._deadline = None

    def _finish(self, result: MatchResult) -> MatchResult:
        self.reset()
        return result

    def feed(self, token: KeyToken, now: float | None = None) -> MatchResult:
        """Consume one key and report the outcome for the current attempt."""
        if now is None:
            now = self._clock()
        self._buffer.append(token)
        self._deadline = None
        sequence = tuple(self._buffer)

        exact = self.keymap.lookup(sequence)
        longer = self.keymap.has_continuation(sequence)

        if exact is not None and not longer:
            return self._finish(MatchResult.resolved(exact, sequence))
        if exact is not None:
            if self.timeout_seconds <= 0:
                return self._finish(MatchResult.resolved(exact, sequence))
            self._deadline = now + self.timeout_seconds
            return MatchResult.pending(sequence)
        if longer:
            return MatchResult.pending(sequence)
        return self._finish(MatchResult.no_match(sequence))

    def poll(self, now: float | None = None) -> MatchResult | None:
        """Resolve an ambiguous buffer whose timeout has elapsed.

        Returns ``None`` while nothing is due.
        """
        if self._deadline is None:
            return None
        if now is None:
            now = self._clock()
        if now < self._deadline:
            return None
        sequence = tuple(self._buffer)
        action = self.keymap.lookup(sequence)
        if action is None:
            return self._finish(MatchResult.no_match(sequence))
        return self._finish(MatchResult.resolved(action, sequence))

    def seconds_until_deadline(self, now: float | None = None) -> float | None:
        if self._deadline is None:
            return None
        if now is None:
            now = self._clock()
        return max(0.0, self._deadline - now)
