"""
Bridge between watchdog's observer thread and the guarded watcher.
"""

import asyncio
from pathlib import Path

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
)

from writeguard.watcher.types import FileEvent


class WatchdogEventHandler:
    """
    Receives raw watchdog events and forwards normalized FileEvents.

    Watchdog calls dispatch() on its observer thread; events are handed to
    the watcher's event loop with run_coroutine_threadsafe. Directory events
    and open/close notifications are dropped. Moves become DELETED for the
    source plus CREATED for the destination, which is how atomic saves
    (write temp file, rename over target) surface.
    """

    def __init__(self, watcher: "GuardedFileWatcher") -> None:  # noqa: F821
        self.watcher = watcher

    def dispatch(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        if isinstance(event, FileMovedEvent):
            self._forward(FileEvent.DELETED, Path(_as_str(event.src_path)))
            self._forward(FileEvent.CREATED, Path(_as_str(event.dest_path)))
        elif isinstance(event, FileCreatedEvent):
            self._forward(FileEvent.CREATED, Path(_as_str(event.src_path)))
        elif isinstance(event, FileModifiedEvent):
            self._forward(FileEvent.MODIFIED, Path(_as_str(event.src_path)))
        elif isinstance(event, FileDeletedEvent):
            self._forward(FileEvent.DELETED, Path(_as_str(event.src_path)))

    def _forward(self, event_type: FileEvent, file_path: Path) -> None:
        loop = self.watcher._loop
        if loop is None or loop.is_closed():
            return
        asyncio.run_coroutine_threadsafe(self.watcher.handle_event(event_type, file_path), loop)


def _as_str(path) -> str:
    # watchdog reports bytes paths when the watched path was given as bytes
    return path.decode() if isinstance(path, bytes) else path
