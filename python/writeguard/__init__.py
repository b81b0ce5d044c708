"""
writeguard - tell generator writes apart from user edits.

A code generator and a filesystem watcher on the same directory form a
feedback loop: every generated file looks like a change that needs
regenerating. ChangeTracker remembers what the generator wrote (by SHA-256)
and pauses each path while it is being written, so the watcher can ask
"did a human do this?" for every notification.
"""

from writeguard.config import TrackerOptions
from writeguard.hashing import compute_content_hash
from writeguard.scheduler import AsyncioScheduler, Scheduler, TimerHandle
from writeguard.tracker import ChangeTracker
from writeguard.types import (
    ChangeDetectorProtocol,
    Classification,
    Decision,
    PathState,
    TrackerState,
)

__version__ = "0.1.0"

__all__ = [
    "AsyncioScheduler",
    "ChangeDetectorProtocol",
    "ChangeTracker",
    "Classification",
    "Decision",
    "PathState",
    "Scheduler",
    "TimerHandle",
    "TrackerOptions",
    "TrackerState",
    "compute_content_hash",
]
