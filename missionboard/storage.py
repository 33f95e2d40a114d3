"""Storage layer for missionboard.

This module provides a string-keyed key-value storage interface with two
implementations, plus the two collaborators built on top of it:

- Storage: abstract key-value store (get_item/set_item/remove_item/clear)
- FileStorage: one file per key, with fcntl-based file locking
- MemoryStorage: dict-backed store, used by tests
- TaskPersistence: loads and saves the task sequence under the "tasks" key
- ThemePreference: loads and saves the display theme under the "theme" key
"""

import fcntl
import json
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from missionboard.config import get_settings
from missionboard.models import Task, Theme

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"
THEME_KEY = "theme"

_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _check_key(key: str) -> str:
    if not isinstance(key, str) or not _KEY_RE.match(key):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class Storage(ABC):
    """Abstract base class for string-keyed key-value storage."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None if there is none."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store value under key, overwriting any previous value."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove key. Removing a missing key does nothing."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every key."""


class MemoryStorage(Storage):
    """In-memory storage. Values are lost when the object goes away."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set_item(key, value)

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(_check_key(key))

    def set_item(self, key: str, value: str) -> None:
        self._items[_check_key(key)] = str(value)

    def remove_item(self, key: str) -> None:
        self._items.pop(_check_key(key), None)

    def clear(self) -> None:
        self._items.clear()

    def keys(self) -> List[str]:
        return sorted(self._items)


class FileStorage(Storage):
    """File-based storage with one file per key and file locking.

    Each key is stored in a file named after the key inside ``data_dir``.
    Writes take an exclusive fcntl lock and reads a shared one.

    Attributes:
        data_dir: Directory holding the key files
    """

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        """Initialize FileStorage with a data directory.

        Args:
            data_dir: Directory for the key files. If None, uses the
                      configured data directory (see missionboard.config).
        """
        if data_dir is None:
            data_dir = get_settings().data_dir
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        return self.data_dir / _check_key(key)

    def get_item(self, key: str) -> Optional[str]:
        """Read the value of key with a shared lock.

        Returns:
            File contents, or None if the file doesn't exist
        """
        path = self.path_for(key)
        if not path.exists():
            return None

        with open(path, "r", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            try:
                return f.read()
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def set_item(self, key: str, value: str) -> None:
        """Write value to the key file with an exclusive lock."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        # truncate only once the lock is held
        with open(path, "a+", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.seek(0)
                f.truncate()
                f.write(value)
                f.flush()
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def remove_item(self, key: str) -> None:
        path = self.path_for(key)
        if path.exists():
            path.unlink()

    def clear(self) -> None:
        """Delete every key file in the data directory."""
        if not self.data_dir.exists():
            return
        for path in self.data_dir.iterdir():
            if path.is_file() and _KEY_RE.match(path.name):
                path.unlink()


def format_timestamp(value: datetime) -> str:
    """Format a datetime as UTC ISO-8601 with milliseconds and a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(raw: Any) -> datetime:
    """Parse an ISO-8601 timestamp; unparseable input maps to the Unix epoch."""
    if not isinstance(raw, str) or not raw:
        return _EPOCH
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        value = datetime.fromisoformat(text)
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        # must survive format_timestamp on the next save
        return value.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return _EPOCH


def task_to_record(task: Task) -> Dict[str, Any]:
    return {
        "id": task.id,
        "text": task.text,
        "completed": task.completed,
        "createdAt": format_timestamp(task.created_at),
    }


def task_from_record(record: Any) -> Optional[Task]:
    """Convert a stored record into a Task.

    Returns:
        Task, or None if the record is malformed (wrong types, blank text)
    """
    if not isinstance(record, dict):
        return None

    task_id = record.get("id")
    text = record.get("text")
    completed = record.get("completed", False)

    # bool is a subclass of int; reject true/false ids
    if not isinstance(task_id, int) or isinstance(task_id, bool):
        return None
    if not isinstance(text, str) or not text.strip():
        return None
    if not isinstance(completed, bool):
        return None

    return Task(
        id=task_id,
        text=text.strip(),
        completed=completed,
        created_at=parse_timestamp(record.get("createdAt")),
    )


class TaskPersistence:
    """Saves and loads the task sequence as a JSON array.

    Attributes:
        storage: Key-value storage backend
        key: Storage key holding the task array
    """

    def __init__(self, storage: Optional[Storage] = None, key: str = TASKS_KEY):
        """Initialize TaskPersistence with a storage backend.

        Args:
            storage: Storage implementation to use. If None, uses FileStorage
                    with the configured data directory.
            key: Storage key for the task array
        """
        self.storage = storage if storage is not None else FileStorage()
        self.key = _check_key(key)

    def load(self) -> List[Task]:
        """Load the stored task sequence.

        Never raises for bad data: a missing key, malformed JSON or a
        non-array value yields an empty list, and malformed or duplicate
        records are skipped.

        Returns:
            Tasks in stored order
        """
        try:
            raw = self.storage.get_item(self.key)
        except UnicodeDecodeError as e:
            logger.warning("Stored %r is not valid UTF-8 (%s); starting empty.", self.key, e)
            return []
        if raw is None or not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except (ValueError, RecursionError) as e:
            logger.warning("Stored %r is not valid JSON (%s); starting empty.", self.key, e)
            return []

        if not isinstance(data, list):
            logger.warning(
                "Stored %r is a %s, not an array; starting empty.", self.key, type(data).__name__
            )
            return []

        tasks: List[Task] = []
        seen = set()
        for index, record in enumerate(data):
            task = task_from_record(record)
            if task is None:
                logger.warning("Skipping malformed task record at index %d.", index)
                continue
            if task.id in seen:
                logger.warning("Skipping duplicate task id %d at index %d.", task.id, index)
                continue
            seen.add(task.id)
            tasks.append(task)

        logger.debug("Loaded %d task(s) from %r.", len(tasks), self.key)
        return tasks

    def save(self, tasks: Sequence[Task]) -> None:
        """Serialize the full sequence and overwrite the stored value."""
        payload = json.dumps([task_to_record(t) for t in tasks], ensure_ascii=False)
        self.storage.set_item(self.key, payload)
        logger.debug("Saved %d task(s) to %r.", len(tasks), self.key)


class ThemePreference:
    """Persisted light/dark display preference."""

    def __init__(self, storage: Optional[Storage] = None, key: str = THEME_KEY):
        self.storage = storage if storage is not None else FileStorage()
        self.key = _check_key(key)

    def load(self) -> Theme:
        """Return the stored theme, LIGHT when unset or unrecognised."""
        try:
            raw = self.storage.get_item(self.key)
        except UnicodeDecodeError:
            logger.warning("Stored %r is not valid UTF-8; using light theme.", self.key)
            return Theme.LIGHT
        if raw is None:
            return Theme.LIGHT
        try:
            return Theme(raw.strip())
        except ValueError:
            logger.warning("Ignoring unknown theme value %r.", raw)
            return Theme.LIGHT

    def save(self, theme: Theme) -> None:
        self.storage.set_item(self.key, Theme(theme).value)

    def toggle(self) -> Theme:
        """Flip the stored theme and return the new one."""
        theme = self.load().toggled()
        self.save(theme)
        return theme
