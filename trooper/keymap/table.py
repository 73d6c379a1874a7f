"""Keymap table construction from default and user INI sources.

Both sources use a ``[keybindings]`` section of ``<sequence> = <Action>``
lines. ``=`` is the only delimiter and ``#`` the only comment prefix, so ``:``
and ``;`` can be bound as plain keys. User bindings replace default bindings
for the same key sequence.
"""

from __future__ import annotations

import configparser
import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from types import MappingProxyType

from ..actions import Action, parse_action_name
from ..errors import (
    ConfigSyntaxError,
    DuplicateBindingError,
    MalformedSequenceError,
    UnknownActionError,
)
from .tokens import KeyNotationError, KeySequence, format_key_sequence, parse_key_sequence

logger = logging.getLogger(__name__)

KEYBINDINGS_SECTION = "keybindings"
# Older config files used ``[normal]`` for the same bindings.
SECTION_ALIASES: tuple[str, ...] = (KEYBINDINGS_SECTION, "normal")
DEFAULT_CONFIG_RESOURCE = "default_config.ini"

_SECTION_HEADER_RE = re.compile(r"^\[(?P<name>[^\]]+)\]\s*$")


@dataclass(frozen=True)
class KeymapSource:
    """Raw INI text plus a human-readable origin used in error messages."""

    text: str
    origin: str

    @classmethod
    def from_path(cls, path: Path) -> KeymapSource:
        return cls(text=path.read_text(encoding="utf-8"), origin=str(path))

    @classmethod
    def packaged_default(cls) -> KeymapSource:
        text = resources.files(__package__).joinpath(DEFAULT_CONFIG_RESOURCE).read_text(encoding="utf-8")
        return cls(text=text, origin=DEFAULT_CONFIG_RESOURCE)


class KeymapTable:
    """Immutable ``KeySequence -> Action`` table with O(1) prefix queries."""

    def __init__(self, bindings: Mapping[KeySequence, Action]) -> None:
        self._bindings: dict[KeySequence, Action] = dict(bindings)
        self._prefixes: frozenset[KeySequence] = frozenset(
            sequence[:size] for sequence in self._bindings for size in range(1, len(sequence))
        )

    @property
    def bindings(self) -> Mapping[KeySequence, Action]:
        return MappingProxyType(self._bindings)

    def lookup(self, sequence: KeySequence) -> Action | None:
        """Return the action bound to exactly ``sequence``."""
        return self._bindings.get(sequence)

    def has_continuation(self, sequence: KeySequence) -> bool:
        """Return whether some bound sequence is strictly longer and starts with ``sequence``."""
        return sequence in self._prefixes

    def ambiguous_sequences(self) -> list[KeySequence]:
        """Bound sequences that are also strict prefixes of longer bindings."""
        return sorted(
            (sequence for sequence in self._bindings if sequence in self._prefixes),
            key=format_key_sequence,
        )

    def sequences_for(self, action: Action) -> list[KeySequence]:
        return sorted(
            (sequence for sequence, bound in self._bindings.items() if bound is action),
            key=lambda sequence: (len(sequence), format_key_sequence(sequence)),
        )

    def __len__(self) -> int:
        return len(self._bindings)

    def __iter__(self) -> Iterator[KeySequence]:
        return iter(self._bindings)

    def __contains__(self, sequence: object) -> bool:
        return sequence in self._bindings


def _new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(
        delimiters=("=",),
        comment_prefixes=("#",),
        inline_comment_prefixes=None,
        interpolation=None,
        allow_no_value=True,
        strict=True,
        empty_lines_in_values=False,
    )
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    return parser


def _option_line_numbers(text: str) -> dict[tuple[str, str], int]:
    """Map ``(section, option)`` to the 1-based line where it is declared."""
    lines: dict[tuple[str, str], int] = {}
    section: str | None = None
    for lineno, raw in enumerate(text.splitlines(), start=1):
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue
        header = _SECTION_HEADER_RE.match(stripped)
        if header is not None:
            section = header.group("name")
            continue
        if section is None or raw[:1].isspace():
            continue
        option = raw.split("=", 1)[0].strip()
        lines.setdefault((section, option), lineno)
    return lines


def parse_keymap_source(source: KeymapSource) -> dict[KeySequence, Action]:
    """Parse one source into bindings, raising ``ConfigError`` subclasses."""
    parser = _new_parser()
    try:
        parser.read_string(source.text, source=source.origin)
    except configparser.MissingSectionHeaderError as exc:
        raise ConfigSyntaxError("binding outside of a [keybindings] section", source.origin, exc.lineno) from exc
    except configparser.ParsingError as exc:
        lineno = exc.errors[0][0] if exc.errors else None
        raise ConfigSyntaxError("unparsable line", source.origin, lineno) from exc
    except configparser.DuplicateOptionError as exc:
        raise DuplicateBindingError(
            f"key sequence {exc.option!r} is bound twice", source.origin, exc.lineno
        ) from exc
    except configparser.DuplicateSectionError as exc:
        raise ConfigSyntaxError(f"section [{exc.section}] appears twice", source.origin, exc.lineno) from exc
    except configparser.Error as exc:
        raise ConfigSyntaxError(str(exc), source.origin) from exc

    line_numbers = _option_line_numbers(source.text)
    defaults = parser.defaults()
    if defaults:
        # configparser would copy these into every section.
        option = next(iter(defaults))
        raise ConfigSyntaxError(
            f"bindings belong in [{KEYBINDINGS_SECTION}], not [{parser.default_section}]",
            source.origin,
            line_numbers.get((parser.default_section, option)),
        )
    bindings: dict[KeySequence, Action] = {}
    declared_at: dict[KeySequence, str] = {}
    for section in SECTION_ALIASES:
        if not parser.has_section(section):
            continue
        for option, value in parser.items(section, raw=True):
            lineno = line_numbers.get((section, option))
            try:
                sequence = parse_key_sequence(option)
            except KeyNotationError as exc:
                raise MalformedSequenceError(str(exc), source.origin, lineno) from exc
            if value is None or not value.strip():
                raise MalformedSequenceError(f"binding {option!r} has no action", source.origin, lineno)
            action = parse_action_name(value)
            if action is None:
                raise UnknownActionError(f"unknown action {value.strip()!r}", source.origin, lineno)
            if sequence in bindings:
                raise DuplicateBindingError(
                    f"{option!r} repeats the binding of {declared_at[sequence]!r}",
                    source.origin,
                    lineno,
                )
            bindings[sequence] = action
            declared_at[sequence] = option
    return bindings


def load_keymap(default_source: KeymapSource, user_source: KeymapSource | None = None) -> KeymapTable:
    """Build the keymap table, with ``user_source`` bindings overriding defaults."""
    bindings = parse_keymap_source(default_source)
    if user_source is not None:
        overrides = parse_keymap_source(user_source)
        replaced = sum(1 for sequence in overrides if sequence in bindings)
        bindings.update(overrides)
        logger.info(
            "loaded %d user bindings from %s (%d override defaults)",
            len(overrides),
            user_source.origin,
            replaced,
        )
    table = KeymapTable(bindings)
    for sequence in table.ambiguous_sequences():
        logger.debug("sequence %s resolves after the chord timeout", format_key_sequence(sequence))
    return table


def load_keymap_from_path(user_config_path: Path | None) -> KeymapTable:
    """Load packaged defaults plus the user file when it exists."""
    user_source = None
    if user_config_path is not None and user_config_path.is_file():
        user_source = KeymapSource.from_path(user_config_path)
    return load_keymap(KeymapSource.packaged_default(), user_source)
