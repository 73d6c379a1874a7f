"""Frame composition for the directory view.

Builds plain-text rows first, clips them to the terminal width, and only then
wraps them in SGR styling, so width math never has to skip escape sequences.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from pathlib import Path

from ..navigator.state import NavigatorState
from ..store.register import PendingRegister, RegisterMode

BOOKMARK_PANEL_MIN_WIDTH = 16
BOOKMARK_PANEL_MAX_WIDTH = 32

SGR_RESET = "\033[0m"
SGR_HEADER = "\033[1m"
SGR_DIRECTORY = "\033[1;38;5;81m"
SGR_SELECTED = "\033[7m"
SGR_YANKED = "\033[38;5;114m"
SGR_CUT = "\033[38;5;203m"
SGR_STATUS = "\033[38;5;229m"
SGR_PANEL = "\033[38;5;245m"


@dataclass
class RenderContext:
    state: NavigatorState
    width: int
    height: int
    register: PendingRegister = field(default_factory=PendingRegister)
    bookmarks: dict[str, Path] | None = None
    # Row of the focused bookmark panel; ``None`` while the listing has focus.
    bookmark_selected: int | None = None
    pending_chord: str = ""
    prompt_label: str | None = None
    prompt_text: str = ""


def char_display_width(ch: str) -> int:
    """Return terminal column width for one character."""
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def fit(text: str, width: int) -> str:
    """Clip ``text`` to ``width`` display columns and pad it to exactly that width."""
    if width <= 0:
        return ""
    out: list[str] = []
    col = 0
    for ch in text:
        if not ch.isprintable():
            ch = "?"
        w = char_display_width(ch)
        if col + w > width:
            break
        out.append(ch)
        col += w
    return "".join(out) + " " * (width - col)


def list_window_start(selected: int, total: int, rows: int) -> int:
    """First visible row index keeping ``selected`` on screen."""
    if rows <= 0 or total <= rows:
        return 0
    return max(0, min(selected - rows + 1, total - rows))


def _entry_rows(context: RenderContext, width: int, rows: int) -> list[str]:
    state = context.state
    if not state.entries:
        return [fit("  (empty)", width)] + [" " * width] * (rows - 1)

    register_marks: dict[Path, str] = {}
    if not context.register.is_empty:
        style = SGR_CUT if context.register.mode is RegisterMode.CUT else SGR_YANKED
        register_marks = {path: style for path in context.register.entries}

    start = list_window_start(state.selected, len(state.entries), rows)
    out: list[str] = []
    for idx in range(start, min(len(state.entries), start + rows)):
        entry = state.entries[idx]
        label = f"  {entry.name}/" if entry.is_dir else f"  {entry.name}"
        text = fit(label, width)
        style = register_marks.get(entry.path, SGR_DIRECTORY if entry.is_dir else "")
        if idx == state.selected:
            style = style + SGR_SELECTED
        out.append(f"{style}{text}{SGR_RESET}" if style else text)
    while len(out) < rows:
        out.append(" " * width)
    return out


def _bookmark_rows(
    bookmarks: dict[str, Path], width: int, rows: int, selected: int | None = None
) -> list[str]:
    out: list[str] = [f"{SGR_HEADER}{fit(' Bookmarks', width)}{SGR_RESET}"]
    items = sorted(bookmarks.items())
    start = list_window_start(selected or 0, len(items), rows - 1)
    for idx, (key, path) in enumerate(items[start : start + rows - 1], start=start):
        label = path.name or str(path)
        style = SGR_PANEL + SGR_SELECTED if idx == selected else SGR_PANEL
        out.append(f"{style}{fit(f' {key}  {label}', width)}{SGR_RESET}")
    out = out[:rows]
    while len(out) < rows:
        out.append(" " * width)
    return out


def bookmark_panel_width(bookmarks: dict[str, Path], total_width: int) -> int:
    longest = max((len(path.name or str(path)) + 5 for path in bookmarks.values()), default=0)
    width = max(BOOKMARK_PANEL_MIN_WIDTH, min(BOOKMARK_PANEL_MAX_WIDTH, longest))
    return min(width, max(0, total_width // 2))


def _register_summary(register: PendingRegister) -> str:
    if register.is_empty:
        return ""
    return f"[{register.mode.value} {len(register.entries)}]"


def status_row(context: RenderContext) -> str:
    width = context.width
    if context.prompt_label is not None:
        return fit(f"{context.prompt_label}{context.prompt_text}_", width)
    right = " ".join(part for part in (context.pending_chord, _register_summary(context.register)) if part)
    left_width = max(0, width - len(right) - 1) if right else width
    left = fit(context.state.status, left_width)
    if not right:
        return f"{SGR_STATUS}{left}{SGR_RESET}"
    return f"{SGR_STATUS}{left}{SGR_RESET} {fit(right, width - left_width - 1)}"


def build_frame_rows(context: RenderContext) -> list[str]:
    """Compose every screen row: header, listing (plus bookmarks), status."""
    width = max(1, context.width)
    height = max(3, context.height)
    body_rows = height - 2

    header = f"{SGR_HEADER}{fit(' ' + str(context.state.cwd), width)}{SGR_RESET}"
    if context.bookmarks is not None:
        panel_width = bookmark_panel_width(context.bookmarks, width)
        list_width = max(1, width - panel_width - 1)
        panel = _bookmark_rows(context.bookmarks, panel_width, body_rows, context.bookmark_selected)
        listing = _entry_rows(context, list_width, body_rows)
        body = [f"{left}{SGR_PANEL}|{SGR_RESET}{right}" for left, right in zip(panel, listing)]
    else:
        body = _entry_rows(context, width, body_rows)
    return [header, *body, status_row(context)]


def compose_frame(context: RenderContext) -> str:
    rows = build_frame_rows(context)
    return "\033[H" + "\r\n".join(rows)
