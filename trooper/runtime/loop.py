"""Main interactive event loop for the terminal UI.

Each iteration renders when something changed, reads at most one key with a
timeout bounded by the pending chord deadline, and hands the key (or the idle
tick) to the ``Application``. The loop itself holds no file-manager logic.
"""

from __future__ import annotations

import shutil
import time
from collections.abc import Callable

from ..input import read_key
from ..keymap.tokens import KeyToken
from .app import Application
from .render import compose_frame
from .terminal import TerminalController

IDLE_POLL_MS = 250
WATCH_POLL_SECONDS = 2.0


def run_main_loop(
    app: Application,
    terminal: TerminalController,
    stdin_fd: int,
    read_token: Callable[[int, int | None], KeyToken | None] = read_key,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Run until a quit action resolves."""
    last_size: tuple[int, int] | None = None
    last_watch = clock()
    with terminal.raw_mode():
        while True:
            term = shutil.get_terminal_size((80, 24))
            size = (term.columns, term.lines)
            if size != last_size:
                last_size = size
                terminal.write_frame("\033[2J")
                app.dirty = True
            if app.dirty:
                terminal.write_frame(compose_frame(app.render_context(term.columns, term.lines)))
                app.dirty = False

            token = read_token(stdin_fd, app.read_timeout_ms(IDLE_POLL_MS, clock()))
            now = clock()
            if token is None:
                pending_before = app.matcher.buffer
                should_quit = app.handle_idle(now)
                if app.matcher.buffer != pending_before:
                    app.dirty = True
                if now - last_watch >= WATCH_POLL_SECONDS:
                    last_watch = now
                    app.refresh_from_disk()
            else:
                should_quit = app.handle_token(token, now)
            if should_quit:
                break
