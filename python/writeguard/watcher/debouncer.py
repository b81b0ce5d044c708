"""
Event debouncing for the guarded watcher.

This module provides the DebounceQueue class that collects rapid file changes
and batches them, so a burst of notifications for one save is classified once.
"""

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from writeguard.watcher.types import FileEvent

logger = logging.getLogger(__name__)

FlushCallback = Callable[[list[tuple[FileEvent, Path]]], Union[None, Awaitable[None]]]


class DebounceQueue:
    """
    Queue that collects rapid file changes and flushes them as one batch.

    Behavior:
    ---------
    Editors and generators often produce several notifications per save
    (truncate, write, chmod). Instead of classifying each one:
    1. Collect events until `debounce_delay` seconds pass with no new event
    2. Deduplicate per path
    3. Hand the batch to the flush callback

    Deduplication Rules:
    --------------------
    - CREATED then MODIFIED  → CREATED
    - CREATED then DELETED   → dropped (file never settled)
    - MODIFIED then DELETED  → DELETED
    - anything else          → latest event wins
    """

    def __init__(
        self,
        debounce_delay: float = 0.05,
        flush_callback: Optional[FlushCallback] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        """
        Args:
        -----
        debounce_delay: Quiet period in seconds before flushing
        flush_callback: Sync or async callable receiving the batch
        loop: Event loop that runs the flush (default: running loop)

        Raises:
        -------
        ValueError: If debounce_delay is not in (0, 10]
        RuntimeError: If no loop is given and none is running
        """
        if debounce_delay <= 0 or debounce_delay > 10:
            raise ValueError("debounce_delay must be between 0 and 10 seconds")

        self._debounce_delay = debounce_delay
        self._flush_callback = flush_callback
        self._loop = loop or asyncio.get_running_loop()

        # path -> latest (event_type, path), insertion ordered
        self._queue: dict[Path, tuple[FileEvent, Path]] = {}

        self._timer_handle: Optional[asyncio.TimerHandle] = None

        # Keep references so pending flushes aren't garbage collected
        self._flush_tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._queue)

    def add(self, event_type: FileEvent, file_path: Path) -> None:
        """Queue an event and restart the quiet-period timer."""
        existing = self._queue.get(file_path)
        previous = existing[0] if existing else None

        if previous is FileEvent.CREATED and event_type is FileEvent.MODIFIED:
            pass
        elif previous is FileEvent.CREATED and event_type is FileEvent.DELETED:
            del self._queue[file_path]
        else:
            self._queue[file_path] = (event_type, file_path)

        if self._timer_handle:
            self._timer_handle.cancel()
        self._timer_handle = self._loop.call_later(self._debounce_delay, self._schedule_flush)

    def _schedule_flush(self) -> None:
        task = self._loop.create_task(self.flush())
        self._flush_tasks.add(task)
        task.add_done_callback(self._flush_tasks.discard)

    async def flush(self) -> None:
        """
        Deliver all pending events to the callback now.

        The callback is invoked even for an empty batch. Exceptions from the
        callback are logged, never raised.
        """
        if self._timer_handle:
            self._timer_handle.cancel()
            self._timer_handle = None

        events = list(self._queue.values())
        self._queue.clear()

        if self._flush_callback is None:
            return

        try:
            result = self._flush_callback(events)
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"Error in flush callback: {e}", exc_info=True)

    def cancel(self) -> None:
        """Drop pending events without flushing and cancel flushes in progress."""
        if self._timer_handle:
            self._timer_handle.cancel()
            self._timer_handle = None
        self._queue.clear()
        for task in list(self._flush_tasks):
            task.cancel()
