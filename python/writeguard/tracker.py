"""
Hash-based change tracking that separates generator writes from user edits.

Without change tracking, generation and watching form an infinite loop:
1. Generator writes a file
2. Watcher sees the change and triggers regeneration
3. Generator writes the file again, and so on

The tracker breaks the loop by remembering what the generator wrote:
- Before a write, store the SHA-256 of the content and pause the path
- While paused, every change notification for the path is ignored
- After the write, wait a short settle delay, then resume
- On later notifications, matching digest = generator write (ignore),
  different digest = user edit (react)

Typical usage:
--------------
    tracker = ChangeTracker()

    # Generator side
    tracker.register_upcoming_write(path, code)
    try:
        path.write_text(code, encoding="utf-8", newline="")
    finally:
        await tracker.confirm_write_complete(path)

    # Watcher side
    if tracker.classify_change(path, path.read_bytes()):
        await reverse_sync(path)

EDGE CASES HANDLED
==================

1. Concurrent writes to different files → independent per-path state
2. Slow filesystems (network drives) → settle delay before resuming
3. Generator crash before confirming → safety timer auto-resumes
4. Same content regenerated → digests match, still ignored
5. File deleted and recreated → digest persists, new content compared
6. Re-registration before confirm → old timer cancelled, digest replaced
7. Edit during the settle window → ignored (accepted trade-off, next
   edit is detected)
8. Digest failure → registration still pauses, classification fails open
"""

import dataclasses
import logging
import os
import threading
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from writeguard.config import TrackerOptions
from writeguard.hashing import compute_content_hash, short_hash
from writeguard.scheduler import AsyncioScheduler, Scheduler, TimerHandle
from writeguard.types import (
    Classification,
    Content,
    Decision,
    PathLike,
    PathState,
    TrackerState,
)

logger = logging.getLogger(__name__)


class _SafetyTimer:
    """Pending auto-resume for one path."""

    __slots__ = ("path", "handle")

    def __init__(self, path: str) -> None:
        self.path = path
        self.handle: Optional[TimerHandle] = None

    def cancel(self) -> None:
        if self.handle is not None:
            self.handle.cancel()


class ChangeTracker:
    """
    Classifies file changes as generator writes or user edits.

    Constructor Args:
    -----------------
    options: TrackerOptions (defaults: 100ms settle, 5000ms auto-resume)
    scheduler: Timer source (default: AsyncioScheduler)
    **overrides: Individual TrackerOptions fields, applied on top of `options`

    Each instance owns its own state. Several trackers (one per project,
    one per test) can coexist; clear() or close() releases all timers.

    Example Usage:
    --------------
    >>> tracker = ChangeTracker(pause_duration=200, debug=True)
    >>> async with tracker.generating("/project/src/Button.tsx", code):
    ...     Path("/project/src/Button.tsx").write_text(code, encoding="utf-8", newline="")
    >>> tracker.classify_change("/project/src/Button.tsx", code)
    False
    """

    def __init__(
        self,
        options: Optional[TrackerOptions] = None,
        scheduler: Optional[Scheduler] = None,
        **overrides,
    ) -> None:
        options = options or TrackerOptions()
        if overrides:
            options = dataclasses.replace(options, **overrides)

        self._options = options
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()

        # path -> SHA-256 of the content the generator last wrote
        self._expected_digests: dict[str, str] = {}

        # Paths currently being written by the generator
        self._paused_paths: set[str] = set()

        # path -> safety timer armed by register_upcoming_write
        self._timers: dict[str, _SafetyTimer] = {}

        # Timer callbacks may fire on another thread (threading.Timer fallback)
        self._lock = threading.RLock()

        if self._options.debug:
            logger.debug(f"ChangeTracker initialized with options: {self._options.to_dict()}")

    @property
    def options(self) -> TrackerOptions:
        return self._options

    # ------------------------------------------------------------------
    # Generator side
    # ------------------------------------------------------------------

    def register_upcoming_write(self, path: PathLike, content: Content) -> None:
        """
        Prepare for a generator write to `path`.

        TIMING CRITICAL: call immediately before writing, with the exact
        content that will be written.

        What it does:
        1. Validates path and content
        2. Stores the SHA-256 of content (replacing any previous digest)
        3. Pauses the path (classify_change returns False)
        4. Replaces the path's safety timer

        Args:
            path: File about to be written
            content: Exact content about to be written

        Raises:
            ValueError: If path is empty or content is None
        """
        key = _validate_path(path, "register_upcoming_write")
        if content is None:
            raise ValueError("register_upcoming_write: content cannot be None")

        try:
            digest: Optional[str] = compute_content_hash(content)
        except Exception as e:
            # Pause without a digest; the next unpaused change is a user edit
            logger.warning(
                f"Could not hash content registered for {key}, pausing without digest: {e}",
                exc_info=True,
            )
            digest = None

        with self._lock:
            timer = _SafetyTimer(key)
            timer.handle = self._scheduler.call_later(
                self._options.auto_resume_seconds, lambda: self._auto_resume(timer)
            )

            previous = self._timers.pop(key, None)
            if previous is not None:
                previous.cancel()
            self._timers[key] = timer

            if digest is None:
                self._expected_digests.pop(key, None)
            else:
                self._expected_digests[key] = digest
            self._paused_paths.add(key)

        if self._options.debug:
            logger.debug(
                f"register_upcoming_write: {key} hash={short_hash(digest)} paused=True "
                f"timeout={self._options.auto_resume_timeout}ms "
                f"replaced_timer={previous is not None}",
                extra={"path": key, "digest": digest},
            )

    async def confirm_write_complete(self, path: PathLike) -> None:
        """
        Resume watching `path` after a generator write.

        Call after the write attempt, whether it succeeded or not. Calling
        it for a path that was never registered is a harmless no-op.

        What it does:
        1. Waits the settle delay (late filesystem events are still ignored)
        2. Removes the path from the paused set
        3. Cancels the safety timer

        If the wait is interrupted (e.g. the task is cancelled), the path is
        resumed anyway before the exception propagates.

        Confirms are not matched to registrations. If the same path is
        registered again while an earlier confirm is still settling, that
        confirm resumes the path and cancels the newer safety timer.

        Raises:
            ValueError: If path is empty
        """
        key = _validate_path(path, "confirm_write_complete")

        try:
            await self._scheduler.sleep(self._options.pause_seconds)
        finally:
            timer_cleared = self._resume(key)

        if self._options.debug:
            logger.debug(
                f"confirm_write_complete: {key} paused=False timer_cleared={timer_cleared}",
                extra={"path": key},
            )

    @asynccontextmanager
    async def generating(self, path: PathLike, content: Content) -> AsyncIterator["ChangeTracker"]:
        """
        Scope a generator write: register on entry, confirm on exit.

        The confirm runs even if the body raises, so a failed write can
        never leave the path paused until the safety timer fires.

        >>> async with tracker.generating(path, code):
        ...     path.write_text(code, encoding="utf-8", newline="")
        """
        self.register_upcoming_write(path, content)
        try:
            yield self
        finally:
            await self.confirm_write_complete(path)

    # ------------------------------------------------------------------
    # Watcher side
    # ------------------------------------------------------------------

    def classify_change(self, path: PathLike, content: Content) -> bool:
        """
        Return True if `content` at `path` is a user edit.

        DECISION FLOW (cheapest check first):

            Path paused?            ──YES──> False (generator is writing)
                 │ NO
            Expected digest known?  ──NO───> True  (never generated)
                 │ YES
            Digest matches?         ──YES──> False (generator's own output)
                 │ NO
                 └─────────────────────────> True  (content diverged)

        Any internal error returns True: reacting to a non-edit is cheaper
        than losing a real one. Never modifies tracker state.
        """
        return self.classify(path, content).is_user_edit

    def classify(self, path: PathLike, content: Content) -> Classification:
        """Like classify_change(), but returns the full Classification."""
        try:
            key = os.fspath(path)
            with self._lock:
                paused = key in self._paused_paths
                expected = self._expected_digests.get(key)

            if paused:
                result = Classification(key, False, Decision.PAUSED)
            elif expected is None:
                result = Classification(key, True, Decision.NO_DIGEST)
            else:
                actual = compute_content_hash(content)
                if actual == expected:
                    result = Classification(key, False, Decision.HASH_MATCH, expected, actual)
                else:
                    result = Classification(key, True, Decision.HASH_MISMATCH, expected, actual)
        except Exception as e:
            logger.warning(f"Error classifying change for {path}, assuming user edit: {e}", exc_info=True)
            result = Classification(str(path), True, Decision.ERROR)

        if self._options.debug:
            self._log_decision(result)
        return result

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def is_paused(self, path: PathLike) -> bool:
        with self._lock:
            return os.fspath(path) in self._paused_paths

    def state_of(self, path: PathLike) -> PathState:
        return PathState.GENERATING if self.is_paused(path) else PathState.IDLE

    def expected_digest(self, path: PathLike) -> Optional[str]:
        with self._lock:
            return self._expected_digests.get(os.fspath(path))

    def paused_paths(self) -> list[str]:
        with self._lock:
            return sorted(self._paused_paths)

    def tracked_file_count(self) -> int:
        """Number of paths with a stored expected digest."""
        with self._lock:
            return len(self._expected_digests)

    def get_state(self) -> TrackerState:
        """Copy of internal state, for debugging and tests."""
        with self._lock:
            return TrackerState(
                expected_digests=dict(self._expected_digests),
                paused_paths=frozenset(self._paused_paths),
                timed_paths=frozenset(self._timers),
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Drop all digests and pauses, cancelling every outstanding timer."""
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            self._expected_digests.clear()
            self._paused_paths.clear()

        if self._options.debug:
            logger.debug("ChangeTracker state cleared")

    def close(self) -> None:
        self.clear()

    def __enter__(self) -> "ChangeTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resume(self, key: str) -> bool:
        """Lift the pause for `key`. Returns True if a timer was cancelled."""
        with self._lock:
            self._paused_paths.discard(key)
            timer = self._timers.pop(key, None)
            if timer is not None:
                timer.cancel()
        return timer is not None

    def _auto_resume(self, timer: _SafetyTimer) -> None:
        """Safety timer callback: force-clear a pause nobody confirmed."""
        with self._lock:
            # Superseded by a newer registration, or already confirmed
            if self._timers.get(timer.path) is not timer:
                return
            del self._timers[timer.path]
            self._paused_paths.discard(timer.path)

        logger.warning(
            f"Auto-resumed watching for {timer.path} after {self._options.auto_resume_timeout}ms. "
            f"confirm_write_complete was never called - the generator may have crashed."
        )

    def _log_decision(self, result: Classification) -> None:
        verdict = "USER EDIT" if result.is_user_edit else "TOOL EDIT"
        if result.decision in (Decision.HASH_MATCH, Decision.HASH_MISMATCH):
            detail = (
                f" expected={short_hash(result.expected_digest)}"
                f" actual={short_hash(result.actual_digest)}"
            )
        else:
            detail = ""
        logger.debug(
            f"classify_change: {result.path} - {result.decision.value}{detail} -> {verdict}",
            extra={
                "path": result.path,
                "decision": result.decision.value,
                "is_user_edit": result.is_user_edit,
            },
        )


def _validate_path(path: PathLike, operation: str) -> str:
    """Normalize a path argument to its string key."""
    try:
        key = os.fspath(path)
    except TypeError:
        raise ValueError(
            f"{operation}: path must be a non-empty string or path-like, got {type(path).__name__}"
        ) from None
    if not isinstance(key, str) or not key:
        raise ValueError(f"{operation}: path must be a non-empty string or path-like")
    return key
