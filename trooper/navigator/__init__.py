"""Navigator state, filesystem collaborator, and action dispatch."""

from .fs import LocalFileSystem
from .navigator import COPY_SUFFIX, Navigator, copy_name, translate_os_error, validate_entry_name
from .state import DirectoryEntry, NavigatorState

__all__ = [
    "COPY_SUFFIX",
    "DirectoryEntry",
    "LocalFileSystem",
    "Navigator",
    "NavigatorState",
    "copy_name",
    "translate_os_error",
    "validate_entry_name",
]
