"""Input-layer public API for key decoding, sequence matching, and prompts.

Exports are split between low-level terminal decoding (`read_key`) and the
higher-level matcher and prompt used by the runtime loop.
"""

from .matcher import (
    DEFAULT_CHORD_TIMEOUT_SECONDS,
    MatcherState,
    MatchKind,
    MatchResult,
    SequenceMatcher,
)
from .prompt import LinePrompt, PromptHistory, PromptOutcome
from .reader import ESC_SEQUENCE_TIMEOUT_MS, _PENDING_BYTES, read_key

__all__ = [
    "read_key",
    "_PENDING_BYTES",
    "ESC_SEQUENCE_TIMEOUT_MS",
    "DEFAULT_CHORD_TIMEOUT_SECONDS",
    "MatcherState",
    "MatchKind",
    "MatchResult",
    "SequenceMatcher",
    "LinePrompt",
    "PromptHistory",
    "PromptOutcome",
]
