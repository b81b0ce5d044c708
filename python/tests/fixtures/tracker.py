"""
ChangeTracker fixtures for test_tracker_*.py tests.

ManualScheduler is a virtual clock: timers only fire when a test calls
advance(), so safety-timer and settle-delay behaviour is deterministic.
"""
import asyncio

import pytest


class ManualTimer:
    """Handle returned by ManualScheduler.call_later()."""

    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """
    Scheduler whose clock only moves when told to.

    auto_advance=True: sleep() advances the clock by its delay immediately,
        so confirm_write_complete() completes without real waiting.
    auto_advance=False: sleep() blocks until a test calls advance().
    """

    def __init__(self, auto_advance=True):
        self.now = 0.0
        self.auto_advance = auto_advance
        self.sleeps = []
        self._timers = []

    def call_later(self, delay, callback):
        timer = ManualTimer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    async def sleep(self, delay):
        self.sleeps.append(delay)
        future = asyncio.get_running_loop().create_future()

        def wake():
            if not future.done():
                future.set_result(None)

        self.call_later(delay, wake)
        if self.auto_advance:
            self.advance(delay)
        await future

    def advance(self, seconds):
        """Move the clock forward, firing due timers in order."""
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self._timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self.now = target

    @property
    def pending(self):
        return [t for t in self._timers if not t.cancelled]

    @property
    def all_timers(self):
        return list(self._timers)


@pytest.fixture
def scheduler():
    """Virtual clock that advances through settle delays automatically."""
    return ManualScheduler()


@pytest.fixture
def held_scheduler():
    """Virtual clock where settle delays wait for an explicit advance()."""
    return ManualScheduler(auto_advance=False)


@pytest.fixture
def tracker(scheduler):
    """ChangeTracker with default options on a virtual clock."""
    from writeguard import ChangeTracker

    t = ChangeTracker(scheduler=scheduler)
    yield t
    t.clear()


@pytest.fixture
def held_tracker(held_scheduler):
    """ChangeTracker whose settle delay only ends on held_scheduler.advance()."""
    from writeguard import ChangeTracker

    t = ChangeTracker(scheduler=held_scheduler)
    yield t
    t.clear()


@pytest.fixture
def debug_tracker(scheduler, caplog):
    """ChangeTracker with debug=True and DEBUG capture on the writeguard logger."""
    import logging

    from writeguard import ChangeTracker

    caplog.set_level(logging.DEBUG, logger="writeguard")
    t = ChangeTracker(scheduler=scheduler, debug=True)
    yield t
    t.clear()


@pytest.fixture
def filepath():
    """Absolute path key used by most tracker tests."""
    return "/project/src/Button.tsx"
