"""Interactive side of trooper: key routing, frames, and the tty loop.

Importing this package stays free of ``termios``; the loop and the terminal
controller are only loaded once ``run_main_loop`` is actually called.
"""

from __future__ import annotations

from .app import Application
from .render import RenderContext, compose_frame


def run_main_loop(app, terminal, stdin_fd, **options) -> None:
    from .loop import run_main_loop as loop_impl

    loop_impl(app, terminal, stdin_fd, **options)


__all__ = ["Application", "RenderContext", "compose_frame", "run_main_loop"]
