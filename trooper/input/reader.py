"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into ``KeyToken`` values.
Handles ESC-sequence timing for arrow keys, control bytes, and UTF-8 input.
"""

from __future__ import annotations

import os
import select

from ..keymap.tokens import BACKSPACE, DOWN, ENTER, ESC, LEFT, RIGHT, TAB, UP, KeyToken

ESC_SEQUENCE_TIMEOUT_MS = 25
_PENDING_BYTES: list[bytes] = []

_ARROWS: dict[bytes, str] = {b"A": UP, b"B": DOWN, b"C": RIGHT, b"D": LEFT}


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _decode_control(ch: bytes) -> KeyToken | None:
    code = ch[0]
    if ch == b"\t":
        return KeyToken(TAB)
    if ch in {b"\r", b"\n"}:
        return KeyToken(ENTER)
    if ch == b"\x7f":
        return KeyToken(BACKSPACE)
    if 1 <= code <= 26:
        # Ctrl+letter arrives as the letter's alphabet index; 0x08 is Ctrl+h.
        return KeyToken.ctrl_char(chr(ord("a") + code - 1))
    return None


def read_key(fd: int, timeout_ms: int | None = None) -> KeyToken | None:
    """Read one logical key, or ``None`` when ``timeout_ms`` elapses first."""
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return None

        ch = os.read(fd, 1)
        if not ch:
            return None

    if ch != b"\x1b":
        control = _decode_control(ch)
        if control is not None:
            return control
        if ch[0] < 0x20:
            return None
        raw = ch
        for _ in range(_utf8_length(ch[0]) - 1):
            more = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
            if more is None:
                break
            raw += more
        text = raw.decode("utf-8", errors="replace")
        return KeyToken.char(text[0])

    # Escape / arrow key sequences.
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return KeyToken(ESC)
    if seq not in {b"[", b"O"}:
        _PENDING_BYTES.append(seq)
        return KeyToken(ESC)
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return KeyToken(ESC)
    arrow = _ARROWS.get(seq)
    if arrow is not None:
        return KeyToken(arrow)
    # Swallow the rest of an unsupported CSI sequence up to its final byte.
    while not (0x40 <= seq[0] <= 0x7E):
        seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if seq is None:
            break
    return None
