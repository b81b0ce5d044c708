"""
Filesystem watcher that feeds the change tracker.

Typical usage:
--------------
    from writeguard import ChangeTracker
    from writeguard.watcher import GuardedFileWatcher

    tracker = ChangeTracker()

    async def on_user_edit(edits):
        for event_type, path, content in edits:
            await reverse_sync(path, content)

    watcher = GuardedFileWatcher(Path("src"), tracker, on_user_edit)
    watcher.start()

    # Generator writes are registered with the same tracker and never
    # reach on_user_edit
    async with tracker.generating(path, code):
        path.write_text(code, encoding="utf-8", newline="")
"""

from writeguard.watcher.core import GuardedFileWatcher
from writeguard.watcher.debouncer import DebounceQueue
from writeguard.watcher.handlers import WatchdogEventHandler
from writeguard.watcher.types import FileEvent

__all__ = [
    "DebounceQueue",
    "FileEvent",
    "GuardedFileWatcher",
    "WatchdogEventHandler",
]
