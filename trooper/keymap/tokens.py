"""Key tokens and the escaped textual notation used in config files.

A sequence such as ``<C-w><C-h>`` or ``dd`` parses into a tuple of
``KeyToken`` values; ``format_key_sequence`` is the inverse used for display.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

SPACE = "Space"
ENTER = "Enter"
ESC = "Esc"
TAB = "Tab"
BACKSPACE = "Backspace"
UP = "Up"
DOWN = "Down"
LEFT = "Left"
RIGHT = "Right"

NAMED_KEYS: frozenset[str] = frozenset({SPACE, ENTER, ESC, TAB, BACKSPACE, UP, DOWN, LEFT, RIGHT})

# Lower-cased escape name -> token key.
_ESCAPES: dict[str, str] = {
    "lt": "<",
    "gt": ">",
    "space": SPACE,
    "cr": ENTER,
    "enter": ENTER,
    "esc": ESC,
    "tab": TAB,
    "bs": BACKSPACE,
    "up": UP,
    "down": DOWN,
    "left": LEFT,
    "right": RIGHT,
}

_DISPLAY_ESCAPES: dict[str, str] = {
    "<": "<lt>",
    ">": "<gt>",
    SPACE: "<Space>",
    ENTER: "<CR>",
    ESC: "<Esc>",
    TAB: "<Tab>",
    BACKSPACE: "<BS>",
    UP: "<Up>",
    DOWN: "<Down>",
    LEFT: "<Left>",
    RIGHT: "<Right>",
}

_CTRL_RE = re.compile(r"^[cC]-(.)$")


@dataclass(frozen=True)
class KeyToken:
    """One logical keypress: a printable character or named key, plus Ctrl."""

    key: str
    ctrl: bool = False

    def __post_init__(self) -> None:
        if len(self.key) != 1 and self.key not in NAMED_KEYS:
            raise ValueError(f"not a key: {self.key!r}")
        if self.ctrl and len(self.key) == 1 and self.key != self.key.lower():
            object.__setattr__(self, "key", self.key.lower())

    @classmethod
    def char(cls, ch: str) -> KeyToken:
        """Token for a typed character, mapping a literal space to ``Space``."""
        if ch == " ":
            return cls(SPACE)
        return cls(ch)

    @classmethod
    def ctrl_char(cls, ch: str) -> KeyToken:
        return cls(ch, ctrl=True)

    @property
    def printable(self) -> str | None:
        """Character this token inserts into a text prompt, if any."""
        if self.ctrl:
            return None
        if self.key == SPACE:
            return " "
        if len(self.key) == 1 and self.key.isprintable():
            return self.key
        return None


KeySequence = tuple[KeyToken, ...]


class KeyNotationError(ValueError):
    """Raised for sequence text that does not follow the escape grammar."""


def parse_key_sequence(text: str) -> KeySequence:
    """Parse escaped key notation into a key sequence.

    Literal characters map to themselves. ``<...>`` groups are escapes:
    ``<lt>``, ``<gt>``, ``<Space>``, ``<CR>``/``<Enter>``, ``<Esc>``,
    ``<Tab>``, ``<BS>``, arrows, and ``<C-x>`` for Ctrl+x. Escape names are
    case-insensitive. A stray ``>`` is a literal character; a ``<`` that does
    not open a valid group is an error.
    """
    tokens: list[KeyToken] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch != "<":
            tokens.append(KeyToken.char(ch))
            i += 1
            continue
        close = text.find(">", i + 1)
        if close == -1:
            raise KeyNotationError(f"unterminated '<' at column {i + 1} in {text!r}")
        body = text[i + 1 : close]
        if not body or "<" in body:
            raise KeyNotationError(f"empty or nested escape at column {i + 1} in {text!r}")
        tokens.append(_parse_escape(body, text))
        i = close + 1

    if not tokens:
        raise KeyNotationError("empty key sequence")
    return tuple(tokens)


def _parse_escape(body: str, text: str) -> KeyToken:
    named = _ESCAPES.get(body.lower())
    if named is not None:
        return KeyToken(named)
    match = _CTRL_RE.match(body)
    if match is not None:
        inner = match.group(1)
        if inner.isspace() or not inner.isprintable():
            raise KeyNotationError(f"invalid Ctrl key <{body}> in {text!r}")
        return KeyToken.ctrl_char(inner)
    raise KeyNotationError(f"unknown escape <{body}> in {text!r}")


def format_key_token(token: KeyToken) -> str:
    if token.ctrl:
        return f"<C-{token.key}>"
    return _DISPLAY_ESCAPES.get(token.key, token.key)


def format_key_sequence(sequence: KeySequence) -> str:
    """Render a sequence back into config notation."""
    return "".join(format_key_token(token) for token in sequence)
