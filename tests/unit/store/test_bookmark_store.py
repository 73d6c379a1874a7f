"""Bookmark store: idempotent reads and merge-safe concurrent writes."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from trooper.errors import StoreConflictError
from trooper.store import atomic
from trooper.store.bookmarks import BookmarkStore, is_bookmark_key


class BookmarkStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.state_dir = Path(self._tmp.name)
        self.store = BookmarkStore(self.state_dir)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_absent_file_reads_as_empty(self) -> None:
        self.assertEqual(self.store.read_bookmarks(), {})

    def test_reads_are_idempotent(self) -> None:
        self.store.write_bookmark("w", Path("/work"))
        before = self.store.path.read_bytes()

        first = self.store.read_bookmarks()
        second = self.store.read_bookmarks()

        self.assertEqual(first, second)
        self.assertEqual(first, {"w": Path("/work")})
        self.assertEqual(self.store.path.read_bytes(), before)

    def test_write_and_delete(self) -> None:
        self.store.write_bookmark("a", Path("/alpha"))
        self.store.write_bookmark("b", Path("/beta"))

        self.assertTrue(self.store.delete_bookmark("a"))
        self.assertFalse(self.store.delete_bookmark("a"))
        self.assertEqual(self.store.read_bookmarks(), {"b": Path("/beta")})

    def test_rebinding_key_replaces_path(self) -> None:
        self.store.write_bookmark("a", Path("/alpha"))
        self.store.write_bookmark("a", Path("/other"))

        self.assertEqual(self.store.read_bookmarks(), {"a": Path("/other")})

    def test_invalid_key_is_rejected(self) -> None:
        for key in ("", "ab", " "):
            with self.subTest(key=key), self.assertRaises(ValueError):
                self.store.write_bookmark(key, Path("/x"))

    def test_invalid_entries_in_file_are_dropped(self) -> None:
        self.store.path.write_text(
            json.dumps({"version": 1, "bookmarks": {"a": "/ok", "bb": "/long-key", "c": "relative", "d": 5}}),
            encoding="utf-8",
        )

        self.assertEqual(self.store.read_bookmarks(), {"a": Path("/ok")})

    def test_two_instances_keep_each_others_bookmarks(self) -> None:
        first = BookmarkStore(self.state_dir)
        second = BookmarkStore(self.state_dir)

        first.write_bookmark("a", Path("/alpha"))
        second.write_bookmark("b", Path("/beta"))

        self.assertEqual(first.read_bookmarks(), {"a": Path("/alpha"), "b": Path("/beta")})

    def test_concurrent_writer_between_read_and_replace_is_merged(self) -> None:
        self.store.write_bookmark("a", Path("/alpha"))
        other = BookmarkStore(self.state_dir)
        real_fingerprint = atomic.current_fingerprint
        calls = {"count": 0}

        def racing_fingerprint(path: Path):
            calls["count"] += 1
            if calls["count"] == 1:
                # Another instance lands its write right before our replace.
                other.write_bookmark("z", Path("/zeta"))
            return real_fingerprint(path)

        with mock.patch("trooper.store.bookmarks.current_fingerprint", side_effect=racing_fingerprint):
            self.store.write_bookmark("b", Path("/beta"))

        self.assertEqual(
            self.store.read_bookmarks(),
            {"a": Path("/alpha"), "b": Path("/beta"), "z": Path("/zeta")},
        )
        # Our first check, the other writer's check, then our successful retry.
        self.assertEqual(calls["count"], 3)

    def test_gives_up_after_max_attempts(self) -> None:
        store = BookmarkStore(self.state_dir, max_attempts=3)

        with mock.patch("trooper.store.bookmarks.current_fingerprint", return_value="changed") as fingerprint:
            with self.assertRaises(StoreConflictError):
                store.write_bookmark("a", Path("/alpha"))

        self.assertEqual(fingerprint.call_count, 3)
        self.assertFalse(store.path.exists())


class BookmarkKeyTests(unittest.TestCase):
    def test_single_visible_characters_only(self) -> None:
        self.assertTrue(is_bookmark_key("w"))
        self.assertTrue(is_bookmark_key("1"))
        self.assertFalse(is_bookmark_key(" "))
        self.assertFalse(is_bookmark_key("\t"))
        self.assertFalse(is_bookmark_key("ab"))


if __name__ == "__main__":
    unittest.main()
