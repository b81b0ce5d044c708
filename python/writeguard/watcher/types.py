"""
Watcher event types.
"""

from enum import Enum


class FileEvent(Enum):
    """File system event types reported by the guarded watcher."""

    CREATED = "created"  # New file appeared
    MODIFIED = "modified"  # Existing file content changed
    DELETED = "deleted"  # File removed
    MOVED = "moved"  # Rename/move (split into DELETED + CREATED)
