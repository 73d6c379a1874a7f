"""Sequence matcher behavior: prefixes, misses, and timeout disambiguation."""

from __future__ import annotations

import unittest

from trooper.actions import Action
from trooper.input.matcher import MatcherState, MatchKind, SequenceMatcher
from trooper.keymap.table import KeymapSource, KeymapTable, load_keymap
from trooper.keymap.tokens import KeyToken, parse_key_sequence


def _table(**pairs: Action) -> KeymapTable:
    return KeymapTable({parse_key_sequence(text): action for text, action in pairs.items()})


def _feed_text(matcher: SequenceMatcher, text: str, now: float = 0.0):
    results = [matcher.feed(token, now) for token in parse_key_sequence(text)]
    return results[-1]


class SequenceMatcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.table = KeymapTable(
            {
                parse_key_sequence("j"): Action.MOVE_DOWN,
                parse_key_sequence("gg"): Action.MOVE_TO_TOP,
                parse_key_sequence("dd"): Action.CUT,
                parse_key_sequence("dm"): Action.DELETE_BOOKMARK,
                parse_key_sequence("<C-w><C-h>"): Action.GO_PARENT,
            }
        )
        self.matcher = SequenceMatcher(self.table, timeout_seconds=1.0)

    def test_single_key_resolves_immediately(self) -> None:
        result = self.matcher.feed(KeyToken("j"), now=0.0)

        self.assertIs(result.kind, MatchKind.RESOLVED)
        self.assertIs(result.action, Action.MOVE_DOWN)
        self.assertIs(self.matcher.state, MatcherState.IDLE)

    def test_prefix_is_pending_until_completed(self) -> None:
        first = self.matcher.feed(KeyToken("g"), now=0.0)
        self.assertIs(first.kind, MatchKind.PENDING)
        self.assertIs(self.matcher.state, MatcherState.MATCHING)
        self.assertIsNone(self.matcher.deadline)

        second = self.matcher.feed(KeyToken("g"), now=5.0)
        self.assertIs(second.kind, MatchKind.RESOLVED)
        self.assertIs(second.action, Action.MOVE_TO_TOP)
        self.assertEqual(self.matcher.buffer, ())

    def test_pure_prefix_never_times_out(self) -> None:
        self.matcher.feed(KeyToken("d"), now=0.0)

        self.assertIsNone(self.matcher.poll(now=100.0))
        self.assertEqual(self.matcher.buffer, (KeyToken("d"),))

    def test_shared_prefix_branches(self) -> None:
        self.assertIs(_feed_text(self.matcher, "dm").action, Action.DELETE_BOOKMARK)
        self.assertIs(_feed_text(self.matcher, "dd").action, Action.CUT)

    def test_ctrl_chords(self) -> None:
        result = _feed_text(self.matcher, "<C-w><C-h>")
        self.assertIs(result.action, Action.GO_PARENT)

    def test_unbound_key_is_no_match(self) -> None:
        result = self.matcher.feed(KeyToken("z"), now=0.0)

        self.assertIs(result.kind, MatchKind.NO_MATCH)
        self.assertIsNone(result.action)
        self.assertIs(self.matcher.state, MatcherState.IDLE)

    def test_broken_prefix_is_no_match_and_clears_buffer(self) -> None:
        self.matcher.feed(KeyToken("g"), now=0.0)
        result = self.matcher.feed(KeyToken("x"), now=0.1)

        self.assertIs(result.kind, MatchKind.NO_MATCH)
        self.assertEqual(result.sequence, (KeyToken("g"), KeyToken("x")))
        self.assertEqual(self.matcher.buffer, ())

        # The next attempt starts fresh.
        self.assertIs(self.matcher.feed(KeyToken("j"), now=0.2).action, Action.MOVE_DOWN)

    def test_reset_discards_partial_sequence(self) -> None:
        self.matcher.feed(KeyToken("g"), now=0.0)
        self.matcher.reset()

        self.assertIs(self.matcher.state, MatcherState.IDLE)
        self.assertIs(self.matcher.feed(KeyToken("g"), now=0.1).kind, MatchKind.PENDING)


class DefaultKeymapResolutionTests(unittest.TestCase):
    def test_every_unambiguous_default_binding_resolves_and_resets(self) -> None:
        table = load_keymap(KeymapSource.packaged_default())
        matcher = SequenceMatcher(table)
        for sequence, action in table.bindings.items():
            if table.has_continuation(sequence):
                continue
            with self.subTest(sequence=sequence):
                results = [matcher.feed(token, now=0.0) for token in sequence]
                self.assertTrue(all(r.kind is MatchKind.PENDING for r in results[:-1]))
                self.assertIs(results[-1].kind, MatchKind.RESOLVED)
                self.assertIs(results[-1].action, action)
                self.assertEqual(matcher.buffer, ())


class AmbiguousPrefixTests(unittest.TestCase):
    def setUp(self) -> None:
        self.table = _table(g=Action.GO_PARENT, gg=Action.MOVE_TO_TOP)

    def test_exact_prefix_waits_for_timeout(self) -> None:
        matcher = SequenceMatcher(self.table, timeout_seconds=1.0)
        result = matcher.feed(KeyToken("g"), now=10.0)

        self.assertIs(result.kind, MatchKind.PENDING)
        self.assertEqual(matcher.deadline, 11.0)
        self.assertAlmostEqual(matcher.seconds_until_deadline(now=10.25), 0.75)
        self.assertIsNone(matcher.poll(now=10.5))

        expired = matcher.poll(now=11.0)
        self.assertIsNotNone(expired)
        self.assertIs(expired.kind, MatchKind.RESOLVED)
        self.assertIs(expired.action, Action.GO_PARENT)
        self.assertIs(matcher.state, MatcherState.IDLE)
        self.assertIsNone(matcher.deadline)

    def test_longer_binding_wins_before_timeout(self) -> None:
        matcher = SequenceMatcher(self.table, timeout_seconds=1.0)
        matcher.feed(KeyToken("g"), now=0.0)
        result = matcher.feed(KeyToken("g"), now=0.5)

        self.assertIs(result.action, Action.MOVE_TO_TOP)
        self.assertIsNone(matcher.poll(now=5.0))

    def test_zero_timeout_resolves_shorter_binding_immediately(self) -> None:
        matcher = SequenceMatcher(self.table, timeout_seconds=0)
        result = matcher.feed(KeyToken("g"), now=0.0)

        self.assertIs(result.kind, MatchKind.RESOLVED)
        self.assertIs(result.action, Action.GO_PARENT)

    def test_unrelated_key_drops_ambiguous_attempt(self) -> None:
        matcher = SequenceMatcher(self.table, timeout_seconds=1.0)
        matcher.feed(KeyToken("g"), now=0.0)
        result = matcher.feed(KeyToken("q"), now=0.2)

        self.assertIs(result.kind, MatchKind.NO_MATCH)
        self.assertIsNone(matcher.deadline)

    def test_uses_injected_clock_when_now_omitted(self) -> None:
        ticks = iter([3.0, 4.5])
        matcher = SequenceMatcher(self.table, timeout_seconds=1.0, clock=lambda: next(ticks))
        matcher.feed(KeyToken("g"))

        self.assertIs(matcher.poll().action, Action.GO_PARENT)


if __name__ == "__main__":
    unittest.main()
