"""
Guarded file watcher: a watchdog observer that only reports user edits.

Flow for every change under the watched root:

    watchdog thread ──> WatchdogEventHandler ──> event loop
        ──> ignore patterns ──> DebounceQueue (quiet period)
        ──> read file bytes ──> ChangeTracker.classify_change()
        ──> on_user_edit(batch)   (generator writes never get here)

Deletions are forwarded without classification since there is no content
to compare. Files that vanish or become unreadable between the event and
the read are skipped.
"""

import asyncio
import fnmatch
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from watchdog.observers import Observer

from writeguard.tracker import ChangeTracker
from writeguard.watcher.debouncer import DebounceQueue
from writeguard.watcher.handlers import WatchdogEventHandler
from writeguard.watcher.types import FileEvent

logger = logging.getLogger(__name__)

UserEdit = tuple[FileEvent, Path, Optional[bytes]]
UserEditCallback = Callable[[list[UserEdit]], Union[None, Awaitable[None]]]


class GuardedFileWatcher:
    """
    Watches a directory and reports only changes the generator didn't make.

    Constructor Args:
    -----------------
    root: Directory to watch recursively
    tracker: ChangeTracker shared with the generator
    on_user_edit: Sync or async callback receiving a list of
        (FileEvent, Path, content) tuples; content is None for deletions
    ignore_patterns: Optional names or globs to exclude
    debounce_delay: Quiet period in seconds before a batch is classified

    Example Usage:
    --------------
    >>> tracker = ChangeTracker()
    >>> async def on_user_edit(edits):
    ...     for event_type, path, content in edits:
    ...         await reverse_sync(path, content)
    >>> watcher = GuardedFileWatcher(Path("src"), tracker, on_user_edit,
    ...                              ignore_patterns={".git", "node_modules"})
    >>> watcher.start()      # from inside the event loop
    >>> ...
    >>> watcher.stop()
    """

    def __init__(
        self,
        root: Path,
        tracker: ChangeTracker,
        on_user_edit: UserEditCallback,
        ignore_patterns: Optional[set[str]] = None,
        debounce_delay: float = 0.05,
    ) -> None:
        """
        Raises:
        -------
        FileNotFoundError: If root doesn't exist
        ValueError: If root is not a directory
        TypeError: If on_user_edit is not callable
        """
        root = Path(root)
        if not root.exists():
            raise FileNotFoundError(f"Watch root does not exist: {root}")
        if not root.is_dir():
            raise ValueError(f"Watch root is not a directory: {root}")
        if not callable(on_user_edit):
            raise TypeError("on_user_edit must be callable")

        self._root = root.resolve()
        self._tracker = tracker
        self._on_user_edit = on_user_edit
        self._ignore_patterns = list(ignore_patterns) if ignore_patterns else []
        self._debounce_delay = debounce_delay

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._observer = None
        self._debounce_queue: Optional[DebounceQueue] = None

    @property
    def root(self) -> Path:
        return self._root

    @property
    def tracker(self) -> ChangeTracker:
        return self._tracker

    def start(self) -> None:
        """
        Start watching. Must be called from a running event loop.

        Raises:
        -------
        RuntimeError: If already running, or no event loop is running
        """
        if self.is_running():
            raise RuntimeError("GuardedFileWatcher is already running")

        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError("GuardedFileWatcher.start() must be called from a running event loop") from None

        self._debounce_queue = DebounceQueue(
            debounce_delay=self._debounce_delay,
            flush_callback=self._on_flush,
            loop=self._loop,
        )

        self._observer = Observer()
        self._observer.schedule(WatchdogEventHandler(self), str(self._root), recursive=True)
        self._observer.start()
        logger.info(f"Watching {self._root} for user edits")

    def stop(self) -> None:
        """
        Stop watching and drop pending events. Safe to call when stopped.

        Flushes already in progress are cancelled, so on_user_edit is not
        called again once stop() returns.
        """
        if self._observer is None:
            return

        logger.info(f"Stopping watcher for {self._root}")
        self._observer.stop()
        self._observer.join()
        self._observer = None

        if self._debounce_queue is not None:
            self._debounce_queue.cancel()
            self._debounce_queue = None

    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    async def handle_event(self, event_type: FileEvent, file_path: Path) -> None:
        """Queue a normalized event (called on the loop by the handler)."""
        if self._should_ignore(file_path):
            return
        if self._debounce_queue is not None:
            self._debounce_queue.add(event_type, file_path)

    def _should_ignore(self, file_path: Path) -> bool:
        """Check a path against editor temp files and ignore patterns."""
        name = file_path.name
        if (
            name.endswith(".tmp")
            or ".tmp." in name
            or name.endswith("~")
            or name.endswith(".swp")
            or name.endswith(".swo")
            or name.startswith(".#")
        ):
            return True

        try:
            relative = file_path.relative_to(self._root)
        except ValueError:
            # Outside the watched root (e.g. symlink target)
            return True
        rel_path = relative.as_posix()

        for pattern in self._ignore_patterns:
            if "/" not in pattern and "*" not in pattern:
                if pattern in relative.parts:
                    return True
            elif fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(name, pattern):
                return True

        return False

    async def _on_flush(self, events: list[tuple[FileEvent, Path]]) -> None:
        """Classify a debounced batch and forward the user edits."""
        edits: list[UserEdit] = []

        for event_type, file_path in events:
            if event_type == FileEvent.DELETED:
                edits.append((event_type, file_path, None))
                continue

            try:
                content = await asyncio.to_thread(file_path.read_bytes)
            except FileNotFoundError:
                logger.debug(f"{file_path} disappeared before it could be read, skipping")
                continue
            except OSError as e:
                logger.warning(f"Could not read {file_path}, skipping: {e}")
                continue

            if self._tracker.classify_change(file_path, content):
                edits.append((event_type, file_path, content))
            else:
                logger.debug(f"Ignoring generator write: {file_path}")

        if not edits:
            return

        logger.info(f"Detected {len(edits)} user edit(s) under {self._root}")
        try:
            result = self._on_user_edit(edits)
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"Error in user edit callback: {e}", exc_info=True)
