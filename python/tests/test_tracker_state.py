"""
Tests for tracker state snapshots, lifecycle and debug logging.

These tests focus on:
1. get_state() snapshots
2. clear() / close() / context manager
3. Memory stays bounded by file count
4. Debug-mode decision logging
"""

import logging

import pytest

from writeguard import ChangeTracker, Decision, PathState, TrackerOptions


# ============================================================================
# STATE SNAPSHOTS
# ============================================================================


def test_get_state_snapshot(tracker, filepath):
    """Test: get_state reflects digests, pauses and timers."""
    tracker.register_upcoming_write(filepath, "content")

    state = tracker.get_state()

    assert set(state.expected_digests) == {filepath}
    assert state.paused_paths == {filepath}
    assert state.timed_paths == {filepath}


def test_get_state_returns_copy(tracker, filepath):
    """Test: Mutating a snapshot doesn't affect the tracker."""
    tracker.register_upcoming_write(filepath, "content")

    state = tracker.get_state()
    state.expected_digests.clear()

    assert tracker.expected_digest(filepath) is not None


def test_state_of_unseen_path_is_idle(tracker):
    """Test: Paths never registered start Idle with no digest."""
    assert tracker.state_of("/project/unseen.tsx") == PathState.IDLE
    assert tracker.expected_digest("/project/unseen.tsx") is None


def test_paused_paths_sorted(tracker):
    """Test: paused_paths lists paused paths in sorted order."""
    for name in ("c", "a", "b"):
        tracker.register_upcoming_write(f"/project/{name}.tsx", name)

    assert tracker.paused_paths() == ["/project/a.tsx", "/project/b.tsx", "/project/c.tsx"]


# ============================================================================
# LIFECYCLE
# ============================================================================


def test_clear_wipes_all_state(tracker):
    """Test: clear() removes digests, pauses and timers."""
    for i in range(3):
        tracker.register_upcoming_write(f"/project/f{i}.tsx", str(i))

    tracker.clear()

    state = tracker.get_state()
    assert state.expected_digests == {}
    assert state.paused_paths == frozenset()
    assert state.timed_paths == frozenset()


def test_clear_cancels_timers(tracker, scheduler):
    """Test: clear() cancels every outstanding safety timer."""
    for i in range(3):
        tracker.register_upcoming_write(f"/project/f{i}.tsx", str(i))
    timers = scheduler.pending

    tracker.clear()

    assert all(t.cancelled for t in timers)
    assert scheduler.pending == []


def test_clear_then_time_passes(tracker, scheduler, caplog):
    """Test: No auto-resume warnings fire after clear()."""
    tracker.register_upcoming_write("/project/a.tsx", "a")
    tracker.clear()

    with caplog.at_level(logging.WARNING, logger="writeguard"):
        scheduler.advance(60.0)

    assert caplog.text == ""


def test_cleared_paths_are_user_owned_again(tracker):
    """Test: After clear(), previously generated paths count as unseen."""
    tracker.register_upcoming_write("/project/a.tsx", "a")
    tracker.clear()

    assert tracker.classify_change("/project/a.tsx", "a") is True


def test_context_manager_clears_on_exit(scheduler):
    """Test: Using the tracker as a context manager releases timers on exit."""
    with ChangeTracker(scheduler=scheduler) as tracker:
        tracker.register_upcoming_write("/project/a.tsx", "a")
        assert scheduler.pending

    assert scheduler.pending == []
    assert tracker.get_state().paused_paths == frozenset()


def test_tracker_is_reusable_after_clear(tracker, scheduler):
    """Test: A cleared tracker keeps working normally."""
    tracker.register_upcoming_write("/project/a.tsx", "a")
    tracker.clear()

    tracker.register_upcoming_write("/project/a.tsx", "a")
    assert tracker.is_paused("/project/a.tsx")
    scheduler.advance(5.0)
    assert not tracker.is_paused("/project/a.tsx")


# ============================================================================
# MEMORY
# ============================================================================


@pytest.mark.asyncio
async def test_memory_bounded_by_file_count(tracker):
    """Test: Regenerating the same files doesn't grow state."""
    paths = [f"/project/components/C{i}.tsx" for i in range(100)]

    for round_number in range(3):
        for p in paths:
            tracker.register_upcoming_write(p, f"{p} round {round_number}")
        for p in paths:
            await tracker.confirm_write_complete(p)

    state = tracker.get_state()
    assert tracker.tracked_file_count() == 100
    assert state.paused_paths == frozenset()
    assert state.timed_paths == frozenset()


# ============================================================================
# DEBUG MODE
# ============================================================================


def _decision_records(caplog):
    return [r for r in caplog.records if hasattr(r, "decision")]


def test_debug_logs_initialization(scheduler, caplog):
    """Test: debug=True logs the effective options on construction."""
    caplog.set_level(logging.DEBUG, logger="writeguard")

    ChangeTracker(scheduler=scheduler, debug=True, pause_duration=150)

    assert "initialized with options" in caplog.text
    assert "150" in caplog.text


def test_debug_logs_paused_decision(debug_tracker, caplog):
    """Test: A paused classification is logged with its decision."""
    debug_tracker.register_upcoming_write("/project/test.tsx", "content")
    debug_tracker.classify_change("/project/test.tsx", "content")

    records = _decision_records(caplog)
    assert records[-1].decision == Decision.PAUSED.value
    assert records[-1].path == "/project/test.tsx"
    assert records[-1].levelno == logging.DEBUG


def test_debug_logs_no_digest_decision(debug_tracker, caplog):
    """Test: A never-generated path logs a no-digest decision."""
    debug_tracker.classify_change("/project/new.tsx", "content")

    records = _decision_records(caplog)
    assert records[-1].decision == Decision.NO_DIGEST.value
    assert records[-1].is_user_edit is True


@pytest.mark.asyncio
async def test_debug_logs_hash_comparison(debug_tracker, caplog):
    """Test: Hash comparisons log both digests and the verdict."""
    debug_tracker.register_upcoming_write("/project/test.tsx", "original")
    await debug_tracker.confirm_write_complete("/project/test.tsx")

    debug_tracker.classify_change("/project/test.tsx", "original")
    debug_tracker.classify_change("/project/test.tsx", "modified")

    decisions = [r.decision for r in _decision_records(caplog)]
    assert decisions[-2:] == [Decision.HASH_MATCH.value, Decision.HASH_MISMATCH.value]
    assert "expected=" in caplog.text
    assert "USER EDIT" in caplog.text
    assert "TOOL EDIT" in caplog.text


def test_debug_logs_register_and_clear(debug_tracker, caplog):
    """Test: Registration and clear() are logged in debug mode."""
    debug_tracker.register_upcoming_write("/project/test.tsx", "content")
    debug_tracker.clear()

    assert "register_upcoming_write: /project/test.tsx" in caplog.text
    assert "state cleared" in caplog.text


def test_no_decision_logging_when_debug_disabled(tracker, caplog):
    """Test: debug=False keeps classification silent."""
    caplog.set_level(logging.DEBUG, logger="writeguard")

    tracker.register_upcoming_write("/project/test.tsx", "content")
    tracker.classify_change("/project/test.tsx", "content")
    tracker.classify_change("/project/other.tsx", "content")

    assert _decision_records(caplog) == []
    assert caplog.text == ""


def test_options_object_and_overrides(scheduler):
    """Test: Keyword overrides apply on top of an options object."""
    base = TrackerOptions(pause_duration=50, auto_resume_timeout=1000)

    tracker = ChangeTracker(base, scheduler=scheduler, debug=True)

    assert tracker.options == TrackerOptions(pause_duration=50, auto_resume_timeout=1000, debug=True)
