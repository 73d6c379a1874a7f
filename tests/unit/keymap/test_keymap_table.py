"""Keymap loading tests: packaged defaults, user overrides, and config errors."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from trooper.actions import Action
from trooper.errors import (
    ConfigError,
    ConfigSyntaxError,
    DuplicateBindingError,
    MalformedSequenceError,
    UnknownActionError,
)
from trooper.keymap.table import (
    KeymapSource,
    KeymapTable,
    load_keymap,
    load_keymap_from_path,
    parse_keymap_source,
)
from trooper.keymap.tokens import parse_key_sequence


def _user(text: str, origin: str = "user.ini") -> KeymapSource:
    return KeymapSource(text=text, origin=origin)


class DefaultKeymapTests(unittest.TestCase):
    def test_packaged_defaults_cover_core_actions(self) -> None:
        table = load_keymap(KeymapSource.packaged_default())

        self.assertIs(table.lookup(parse_key_sequence("j")), Action.MOVE_DOWN)
        self.assertIs(table.lookup(parse_key_sequence("gg")), Action.MOVE_TO_TOP)
        self.assertIs(table.lookup(parse_key_sequence("dd")), Action.CUT)
        self.assertIs(table.lookup(parse_key_sequence("<CR>")), Action.ENTER_DIR)
        self.assertIs(table.lookup(parse_key_sequence(":")), Action.OPEN_COMMAND_MODE)
        self.assertIs(table.lookup(parse_key_sequence("'")), Action.JUMP_BOOKMARK)
        self.assertIs(table.lookup(parse_key_sequence("<C-h>")), Action.MOVE_TO_LEFT_PANEL)
        self.assertIs(table.lookup(parse_key_sequence("<C-w><C-l>")), Action.MOVE_TO_RIGHT_PANEL)

    def test_packaged_defaults_have_no_timeout_ambiguity(self) -> None:
        table = load_keymap(KeymapSource.packaged_default())
        self.assertEqual(table.ambiguous_sequences(), [])

    def test_prefix_queries(self) -> None:
        table = load_keymap(KeymapSource.packaged_default())

        self.assertTrue(table.has_continuation(parse_key_sequence("g")))
        self.assertTrue(table.has_continuation(parse_key_sequence("d")))
        self.assertFalse(table.has_continuation(parse_key_sequence("gg")))
        self.assertIsNone(table.lookup(parse_key_sequence("g")))


class UserOverrideTests(unittest.TestCase):
    def test_user_binding_replaces_default_for_same_sequence(self) -> None:
        table = load_keymap(KeymapSource.packaged_default(), _user("[keybindings]\nj = MoveUp\n"))

        self.assertIs(table.lookup(parse_key_sequence("j")), Action.MOVE_UP)
        # Untouched defaults survive.
        self.assertIs(table.lookup(parse_key_sequence("k")), Action.MOVE_UP)
        self.assertIs(table.lookup(parse_key_sequence("gg")), Action.MOVE_TO_TOP)

    def test_user_file_may_introduce_ambiguity(self) -> None:
        table = load_keymap(KeymapSource.packaged_default(), _user("[keybindings]\ng = Quit\n"))

        self.assertEqual(table.ambiguous_sequences(), [parse_key_sequence("g")])

    def test_legacy_section_and_action_aliases(self) -> None:
        bindings = parse_keymap_source(_user("[normal]\nh = MoveUpDir\ny = CopyFiles\nx = DeleteFile\n"))

        self.assertEqual(
            bindings,
            {
                parse_key_sequence("h"): Action.GO_PARENT,
                parse_key_sequence("y"): Action.YANK,
                parse_key_sequence("x"): Action.DELETE_ENTRY,
            },
        )

    def test_colon_and_semicolon_are_bindable_keys(self) -> None:
        bindings = parse_keymap_source(_user("[keybindings]\n; = Quit\n: = OpenCommandMode\n"))

        self.assertIs(bindings[parse_key_sequence(";")], Action.QUIT)
        self.assertIs(bindings[parse_key_sequence(":")], Action.OPEN_COMMAND_MODE)

    def test_sequence_keys_are_case_sensitive(self) -> None:
        bindings = parse_keymap_source(_user("[keybindings]\ng = MoveToTop\nG = MoveToBottom\n"))

        self.assertIs(bindings[parse_key_sequence("g")], Action.MOVE_TO_TOP)
        self.assertIs(bindings[parse_key_sequence("G")], Action.MOVE_TO_BOTTOM)

    def test_load_from_missing_path_uses_defaults_only(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            table = load_keymap_from_path(Path(tmp) / "config.ini")

        self.assertEqual(len(table), len(load_keymap(KeymapSource.packaged_default())))

    def test_load_from_path_applies_user_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.ini"
            config_path.write_text("[keybindings]\n<C-n> = MoveDown\n", encoding="utf-8")
            table = load_keymap_from_path(config_path)

        self.assertIs(table.lookup(parse_key_sequence("<C-n>")), Action.MOVE_DOWN)

    def test_sequences_for_lists_shortest_first(self) -> None:
        table = KeymapTable(
            {
                parse_key_sequence("cw"): Action.RENAME,
                parse_key_sequence("r"): Action.RENAME,
            }
        )
        self.assertEqual(table.sequences_for(Action.RENAME), [parse_key_sequence("r"), parse_key_sequence("cw")])


class KeymapErrorTests(unittest.TestCase):
    def test_unknown_action_reports_origin_and_line(self) -> None:
        with self.assertRaises(UnknownActionError) as caught:
            parse_keymap_source(_user("[keybindings]\nj = MoveDown\nx = Frobnicate\n"))

        self.assertEqual(caught.exception.line, 3)
        self.assertEqual(str(caught.exception), "user.ini:3: unknown action 'Frobnicate'")

    def test_malformed_sequence_reports_line(self) -> None:
        with self.assertRaises(MalformedSequenceError) as caught:
            parse_keymap_source(_user("[keybindings]\n\n<C-w = Quit\n"))

        self.assertEqual(caught.exception.line, 3)

    def test_binding_without_action_is_malformed(self) -> None:
        with self.assertRaises(MalformedSequenceError):
            parse_keymap_source(_user("[keybindings]\nj =\n"))

    def test_same_option_twice_is_duplicate(self) -> None:
        with self.assertRaises(DuplicateBindingError) as caught:
            parse_keymap_source(_user("[keybindings]\na = Quit\na = MoveUp\n"))

        self.assertEqual(caught.exception.line, 3)

    def test_two_spellings_of_one_sequence_are_duplicate(self) -> None:
        with self.assertRaises(DuplicateBindingError) as caught:
            parse_keymap_source(_user("[keybindings]\n<Space> = Quit\n<space> = MoveUp\n"))

        self.assertEqual(caught.exception.line, 3)

    def test_binding_outside_section_is_syntax_error(self) -> None:
        with self.assertRaises(ConfigSyntaxError) as caught:
            parse_keymap_source(_user("j = MoveDown\n"))

        self.assertEqual(caught.exception.line, 1)

    def test_default_section_bindings_are_rejected(self) -> None:
        with self.assertRaises(ConfigSyntaxError) as caught:
            load_keymap(
                KeymapSource.packaged_default(),
                _user("[DEFAULT]\nQ = Quit\n[keybindings]\nx = Yank\n"),
            )

        self.assertEqual(caught.exception.line, 2)
        self.assertIn("[keybindings]", str(caught.exception))

    def test_default_section_with_both_binding_sections_is_not_a_duplicate(self) -> None:
        text = "[DEFAULT]\nQ = Quit\n[keybindings]\nx = Yank\n[normal]\ny = Cut\n"
        with self.assertRaises(ConfigSyntaxError) as caught:
            parse_keymap_source(_user(text))

        self.assertNotIsInstance(caught.exception, DuplicateBindingError)
        self.assertEqual(caught.exception.line, 2)

    def test_empty_default_section_is_allowed(self) -> None:
        bindings = parse_keymap_source(_user("[DEFAULT]\n[keybindings]\nx = Yank\n"))

        self.assertEqual(bindings, {parse_key_sequence("x"): Action.YANK})

    def test_user_error_aborts_loading_with_config_error(self) -> None:
        with self.assertRaises(ConfigError):
            load_keymap(KeymapSource.packaged_default(), _user("[keybindings]\nq = Explode\n"))


if __name__ == "__main__":
    unittest.main()
