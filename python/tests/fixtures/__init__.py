"""
Pytest fixtures for writeguard tests.

Fixtures are organized by test category:
- tracker.py: Virtual clock scheduler and tracker instances
- watcher.py: GuardedFileWatcher fixtures
"""
