"""Shared fixtures for missionboard tests."""

import logging

import pytest

from missionboard.storage import MemoryStorage, TaskPersistence


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo setup_logging() calls made by CLI tests."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    logging.captureWarnings(False)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Point the default data directory at a temporary path."""
    monkeypatch.delenv("TASK_DB_PATH", raising=False)
    monkeypatch.delenv("MISSIONBOARD_LOG_FILE", raising=False)
    monkeypatch.delenv("MISSIONBOARD_LOG_LEVEL", raising=False)
    monkeypatch.setenv("MISSIONBOARD_DATA_DIR", str(tmp_path / "default-data"))
    monkeypatch.setenv("NO_COLOR", "1")


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def persistence(memory_storage):
    return TaskPersistence(memory_storage)
