"""Closed set of file-manager actions a key sequence can resolve to.

Config files name actions by their enum value. A few legacy spellings from
older config files are accepted as aliases.
"""

from __future__ import annotations

from enum import Enum


class Action(Enum):
    MOVE_UP = "MoveUp"
    MOVE_DOWN = "MoveDown"
    MOVE_TO_TOP = "MoveToTop"
    MOVE_TO_BOTTOM = "MoveToBottom"
    ENTER_DIR = "EnterDir"
    GO_PARENT = "GoParent"
    YANK = "Yank"
    CUT = "Cut"
    PASTE = "Paste"
    RENAME = "Rename"
    CREATE_DIR = "CreateDir"
    DELETE_ENTRY = "DeleteEntry"
    CREATE_BOOKMARK = "CreateBookmark"
    JUMP_BOOKMARK = "JumpBookmark"
    DELETE_BOOKMARK = "DeleteBookmark"
    TOGGLE_BOOKMARKS = "ToggleBookmarks"
    MOVE_TO_LEFT_PANEL = "MoveToLeftPanel"
    MOVE_TO_RIGHT_PANEL = "MoveToRightPanel"
    TOGGLE_HIDDEN_FILES = "ToggleHiddenFiles"
    OPEN_COMMAND_MODE = "OpenCommandMode"
    CLEAR_REGISTER = "ClearRegister"
    QUIT = "Quit"


ACTION_ALIASES: dict[str, Action] = {
    "MoveUpDir": Action.GO_PARENT,
    "CopyFiles": Action.YANK,
    "CutFiles": Action.CUT,
    "PasteFiles": Action.PASTE,
    "ToggleBookmark": Action.TOGGLE_BOOKMARKS,
    "MoveEntry": Action.RENAME,
    "DeleteFile": Action.DELETE_ENTRY,
}

# Actions whose argument is the next single keypress.
KEY_ARGUMENT_ACTIONS = frozenset(
    {Action.CREATE_BOOKMARK, Action.JUMP_BOOKMARK, Action.DELETE_BOOKMARK}
)

# Actions whose argument is a line of text typed into the prompt.
TEXT_ARGUMENT_ACTIONS = frozenset({Action.RENAME, Action.CREATE_DIR})


def parse_action_name(name: str) -> Action | None:
    """Return the action for a config-file name, or ``None`` when unknown."""
    stripped = name.strip()
    try:
        return Action(stripped)
    except ValueError:
        return ACTION_ALIASES.get(stripped)
