"""
Pytest configuration and fixtures for writeguard tests.

Specialized fixtures are organized in the fixtures/ directory:
- fixtures.tracker: ManualScheduler (virtual clock) and ChangeTracker fixtures
- fixtures.watcher: GuardedFileWatcher fixtures
"""

import logging

import pytest

# Load fixture modules
pytest_plugins = [
    "tests.fixtures.tracker",
    "tests.fixtures.watcher",
]


@pytest.fixture
def button_source():
    """Generated component source used across scenarios."""
    return "const Button = () => <button>Click</button>"


@pytest.fixture
def reset_writeguard_logger():
    """
    Restore the "writeguard" logger after a test installs handlers.

    setup_logging() attaches handlers to a process-wide logger; without this,
    file handlers pointing at deleted tmp_path directories leak into later tests.
    """
    logger = logging.getLogger("writeguard")
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.setLevel(level)
