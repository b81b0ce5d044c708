"""
Timer scheduling for the change tracker.

The tracker never touches timer APIs directly. It asks a Scheduler for:
- call_later(): a one-shot callback returning a cancellable handle
- sleep(): an awaitable delay (the settle delay)

AsyncioScheduler is the production implementation. Tests substitute a
virtual clock so timeouts can be driven without real waiting.
"""

import asyncio
import threading
from typing import Callable, Protocol


class TimerHandle(Protocol):
    """Handle for a scheduled callback."""

    def cancel(self) -> None:
        """Prevent the callback from running. Safe to call more than once."""
        ...


class Scheduler(Protocol):
    """Source of time for the tracker."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run `callback` once after `delay` seconds."""
        ...

    async def sleep(self, delay: float) -> None:
        """Suspend the calling task for `delay` seconds."""
        ...


class AsyncioScheduler:
    """
    Scheduler backed by the running event loop, with a thread fallback.

    Behavior:
    ---------
    - Inside a running event loop: loop.call_later() (TimerHandle)
    - Outside any loop (plain sync code): daemon threading.Timer
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running loop, use a background thread timer
            timer = threading.Timer(delay, callback)
            timer.daemon = True
            timer.start()
            return timer

        return loop.call_later(delay, callback)

    async def sleep(self, delay: float) -> None:
        await asyncio.sleep(delay)
