from __future__ import annotations

import contextlib
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from trooper.input.matcher import SequenceMatcher
from trooper.keymap.table import KeymapSource, load_keymap
from trooper.keymap.tokens import KeyToken
from trooper.navigator.navigator import Navigator
from trooper.runtime.app import Application
from trooper.runtime.loop import run_main_loop
from trooper.store.bookmarks import BookmarkStore
from trooper.store.register import RegisterStore


class _FakeTerminal:
    def __init__(self) -> None:
        self.frames: list[str] = []
        self.raw_entered = 0
        self.raw_exited = 0

    def write_frame(self, frame: str) -> None:
        self.frames.append(frame)

    @contextlib.contextmanager
    def raw_mode(self):
        self.raw_entered += 1
        try:
            yield
        finally:
            self.raw_exited += 1


class MainLoopTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        base = Path(self._tmp.name).resolve()
        self.root = base / "root"
        self.root.mkdir()
        for name in ("one.txt", "two.txt"):
            (self.root / name).write_text("", encoding="utf-8")
        navigator = Navigator(RegisterStore(base / "state"), BookmarkStore(base / "state"))
        matcher = SequenceMatcher(load_keymap(KeymapSource.packaged_default()))
        self.app = Application(navigator, matcher, navigator.open(self.root))
        self.terminal = _FakeTerminal()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def run_with_keys(self, keys: list[KeyToken | None]) -> list[int | None]:
        timeouts: list[int | None] = []
        pending = iter(keys)

        def read_token(_fd: int, timeout_ms: int | None):
            timeouts.append(timeout_ms)
            return next(pending)

        with mock.patch(
            "trooper.runtime.loop.shutil.get_terminal_size",
            return_value=os.terminal_size((40, 10)),
        ):
            run_main_loop(self.app, self.terminal, 0, read_token=read_token, clock=lambda: 0.0)
        return timeouts

    def test_loop_applies_keys_and_exits_on_quit(self) -> None:
        self.run_with_keys([KeyToken("j"), None, KeyToken("q")])

        self.assertEqual(self.app.state.selected, 1)
        self.assertTrue(self.app.quit_requested)
        self.assertEqual((self.terminal.raw_entered, self.terminal.raw_exited), (1, 1))

    def test_loop_redraws_only_when_state_changes(self) -> None:
        self.run_with_keys([None, None, KeyToken("j"), KeyToken("q")])

        # Clear screen + first frame, then one redraw after ``j``.
        self.assertEqual(len(self.terminal.frames), 3)
        self.assertIn("two.txt", self.terminal.frames[-1])

    def test_terminal_is_restored_when_loop_raises(self) -> None:
        def exploding_read(_fd: int, _timeout_ms: int | None):
            raise KeyboardInterrupt

        with self.assertRaises(KeyboardInterrupt):
            run_main_loop(self.app, self.terminal, 0, read_token=exploding_read)

        self.assertEqual(self.terminal.raw_exited, 1)


if __name__ == "__main__":
    unittest.main()
