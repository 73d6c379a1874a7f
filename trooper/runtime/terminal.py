"""Raw-mode terminal session used by the interactive loop."""

from __future__ import annotations

import contextlib
import os
import termios
import tty
from collections.abc import Iterator

ENTER_SCREEN = b"\x1b[?1049h\x1b[?25l"
LEAVE_SCREEN = b"\x1b[0m\x1b[?25h\x1b[?1049l"


class TerminalController:
    """Switches the tty into raw alternate-screen mode and writes frames."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        """Remember the descriptors and the tty settings to restore later."""
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        # Captured up front so a failure here happens before the screen changes.
        self._cooked_attrs = termios.tcgetattr(stdin_fd)

    def enable_tui_mode(self) -> None:
        """Enter raw mode and the alternate screen with the cursor hidden."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        self._write_all(ENTER_SCREEN)

    def disable_tui_mode(self) -> None:
        """Leave the alternate screen and restore the saved tty settings."""
        self._write_all(LEAVE_SCREEN)
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._cooked_attrs)

    def write_frame(self, frame: str) -> None:
        """Write one rendered frame to the terminal."""
        self._write_all(frame.encode("utf-8", errors="replace"))

    def _write_all(self, data: bytes) -> None:
        """Write ``data`` fully, looping over short writes."""
        view = memoryview(data)
        while view:
            view = view[os.write(self.stdout_fd, view):]

    @contextlib.contextmanager
    def raw_mode(self) -> Iterator[None]:
        """Hold raw mode for the body; the cooked tty comes back even on errors."""
        self.enable_tui_mode()
        try:
            yield
        finally:
            self.disable_tui_mode()
