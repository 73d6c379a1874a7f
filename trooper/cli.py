"""Command-line front door for trooper.

Parses CLI options, loads and validates the keymap, wires the shared stores,
and dispatches into the interactive runtime.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from . import settings
from .errors import ConfigError, NavigationError
from .input.matcher import SequenceMatcher
from .keymap.table import KeymapTable, load_keymap_from_path
from .keymap.tokens import format_key_sequence
from .logs import configure_logging, resolve_log_level
from .navigator.navigator import Navigator
from .runtime import run_main_loop
from .runtime.app import Application
from .store.bookmarks import BookmarkStore
from .store.paths import default_config_path, default_log_dir, default_state_dir
from .store.register import RegisterStore

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 2


def _nonnegative_int(value: str) -> int:
    """argparse type for non-negative integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trooper",
        description="Terminal file manager driven by VIM-style key sequences.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Directory to open. Defaults to current directory.")
    parser.add_argument("--config", type=Path, default=None, help="Keybinding INI file (default: user config dir).")
    parser.add_argument(
        "--state-dir",
        type=Path,
        default=None,
        help="Directory holding the shared register and bookmarks.",
    )
    parser.add_argument(
        "--chord-timeout-ms",
        type=_nonnegative_int,
        default=None,
        help="How long an ambiguous key sequence waits for more keys.",
    )
    parser.add_argument("--log-level", default=None, help="Log level for the log file (default: WARNING).")
    parser.add_argument("--print-keymap", action="store_true", help="Validate and print the keymap, then exit.")
    return parser


def format_keymap(keymap: KeymapTable) -> str:
    ambiguous = set(keymap.ambiguous_sequences())
    lines = []
    for sequence, action in sorted(keymap.bindings.items(), key=lambda item: (item[1].value, format_key_sequence(item[0]))):
        marker = "  # waits for chord timeout" if sequence in ambiguous else ""
        lines.append(f"{format_key_sequence(sequence)} = {action.value}{marker}")
    return "\n".join(lines) + "\n"


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and launch trooper; returns the process exit status."""
    args = build_parser().parse_args(argv)

    log_path = configure_logging(default_log_dir(), resolve_log_level(args.log_level))
    logger.info("starting (pid %d), log file %s", os.getpid(), log_path)

    config_path = args.config if args.config is not None else default_config_path()
    if args.config is not None and not args.config.is_file():
        print(f"trooper: config file not found: {args.config}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    try:
        keymap = load_keymap_from_path(config_path)
    except ConfigError as exc:
        logger.error("invalid keymap: %s", exc)
        print(f"trooper: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except (OSError, UnicodeDecodeError) as exc:
        print(f"trooper: cannot read {config_path}: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if args.print_keymap:
        sys.stdout.write(format_keymap(keymap))
        return 0

    start = Path(args.path) if args.path is not None else Path.cwd()
    if not start.is_dir():
        raise SystemExit(f"Not a directory: {start}")

    state_dir = args.state_dir if args.state_dir is not None else default_state_dir()
    navigator = Navigator(
        RegisterStore(state_dir),
        BookmarkStore(state_dir),
        on_show_hidden_changed=settings.save_show_hidden,
    )
    try:
        state = navigator.open(start, show_hidden=settings.load_show_hidden())
    except NavigationError as exc:
        raise SystemExit(str(exc)) from exc

    timeout_ms = args.chord_timeout_ms if args.chord_timeout_ms is not None else settings.load_chord_timeout_ms()
    matcher = SequenceMatcher(keymap, timeout_seconds=timeout_ms / 1000.0)

    from .runtime.terminal import TerminalController

    app = Application(
        navigator,
        matcher,
        state,
        show_bookmarks=settings.load_show_bookmarks(),
        on_show_bookmarks_changed=settings.save_show_bookmarks,
    )
    stdin_fd = sys.stdin.fileno()
    terminal = TerminalController(stdin_fd, sys.stdout.fileno())
    try:
        run_main_loop(app, terminal, stdin_fd)
    except KeyboardInterrupt:
        pass
    logger.info("exiting from %s", app.state.cwd)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
