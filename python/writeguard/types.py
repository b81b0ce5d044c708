"""
Change tracker type definitions and protocol.

This module defines the core types and protocols for write classification:
- PathState enum: Per-path state machine (IDLE / GENERATING)
- Decision enum: Why a change was classified the way it was
- Classification: Result record of a single classification
- TrackerState: Debug snapshot of tracker internals
- ChangeDetectorProtocol: Interface contract for change trackers
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Union

# Paths are opaque keys; anything os.fspath() accepts is normalized to str
PathLike = Union[str, "os.PathLike[str]"]

# Content as read from disk (bytes) or as produced by a generator (str)
Content = Union[str, bytes, bytearray, memoryview]


class PathState(Enum):
    """Per-path state of the tracker."""

    IDLE = "idle"  # Watching normally, changes are compared against the digest
    GENERATING = "generating"  # Generator is mid-write, all changes ignored


class Decision(Enum):
    """Reason behind a classification result."""

    PAUSED = "paused"  # Path is mid-write, comparison skipped
    NO_DIGEST = "no-digest"  # Path never generated, treated as user-owned
    HASH_MATCH = "hash-match"  # Content is exactly what the generator wrote
    HASH_MISMATCH = "hash-mismatch"  # Content diverged from the generator's output
    ERROR = "error"  # Internal failure, failed open


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying one change notification."""

    path: str
    is_user_edit: bool
    decision: Decision
    expected_digest: Optional[str] = None
    actual_digest: Optional[str] = None

    def __bool__(self) -> bool:
        return self.is_user_edit


@dataclass(frozen=True)
class TrackerState:
    """
    Copy of the tracker's internal structures.

    For debugging and tests only. Mutating it has no effect on the tracker.
    """

    expected_digests: dict[str, str] = field(default_factory=dict)
    paused_paths: frozenset[str] = frozenset()
    timed_paths: frozenset[str] = frozenset()


class ChangeDetectorProtocol(Protocol):
    """
    Protocol defining the change detector interface.

    The detector sits between a code generator and a filesystem watcher.
    The generator announces each write before it happens and confirms it
    afterwards; the watcher asks, for every change notification, whether
    the content on disk is something the generator produced.

    Expected Call Sequence:
    -----------------------
    1. register_upcoming_write(path, content)   (generator, before write)
    2. <generator writes exactly `content` to `path`>
    3. await confirm_write_complete(path)       (generator, after write)
    4. classify_change(path, content)           (watcher, any time)

    Timing Guarantees:
    ------------------
    - Between (1) and the end of (3), classify_change returns False
    - A safety timer lifts the pause if (3) never happens
    - After (3), identical content classifies as False, anything else True
    """

    def register_upcoming_write(self, path: PathLike, content: Content) -> None:
        """
        Announce that the generator is about to write `content` to `path`.

        Error Conditions:
        -----------------
        - Raises ValueError if path is empty or content is None
        - Digest failures are logged, the path is still paused

        Post-conditions:
        ----------------
        - classify_change(path, <anything>) returns False
        - A safety timer is armed for the path
        """
        ...

    async def confirm_write_complete(self, path: PathLike) -> None:
        """
        Announce that the write to `path` finished (or failed).

        Expected Behavior:
        ------------------
        - Waits the settle delay so late watcher events are still ignored
        - Lifts the pause and cancels the safety timer
        - No-op (after the delay) if the path was never registered

        Error Conditions:
        -----------------
        - Raises ValueError if path is empty
        """
        ...

    def classify_change(self, path: PathLike, content: Content) -> bool:
        """
        Decide whether `content` at `path` is a user edit.

        Returns:
        --------
        bool: True for a user edit, False for the generator's own write.
              Internal failures return True.
        """
        ...

    def clear(self) -> None:
        """Drop all state and cancel every outstanding timer."""
        ...
