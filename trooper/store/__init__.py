"""Cross-instance persistence for the yank register and bookmarks."""

from .atomic import FileSnapshot, atomic_write_bytes, current_fingerprint, read_snapshot
from .bookmarks import MAX_WRITE_ATTEMPTS, BookmarkStore, is_bookmark_key
from .paths import default_config_path, default_log_dir, default_state_dir
from .register import EMPTY_REGISTER, PendingRegister, RegisterMode, RegisterStore

__all__ = [
    "BookmarkStore",
    "EMPTY_REGISTER",
    "FileSnapshot",
    "MAX_WRITE_ATTEMPTS",
    "PendingRegister",
    "RegisterMode",
    "RegisterStore",
    "atomic_write_bytes",
    "current_fingerprint",
    "default_config_path",
    "default_log_dir",
    "default_state_dir",
    "is_bookmark_key",
    "read_snapshot",
]
