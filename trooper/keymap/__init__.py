"""Key notation parsing and the keymap table built from INI sources."""

from .table import KeymapSource, KeymapTable, load_keymap, load_keymap_from_path, parse_keymap_source
from .tokens import (
    KeySequence,
    KeyToken,
    KeyNotationError,
    format_key_sequence,
    format_key_token,
    parse_key_sequence,
)

__all__ = [
    "KeySequence",
    "KeyToken",
    "KeyNotationError",
    "KeymapSource",
    "KeymapTable",
    "format_key_sequence",
    "format_key_token",
    "load_keymap",
    "load_keymap_from_path",
    "parse_key_sequence",
    "parse_keymap_source",
]
