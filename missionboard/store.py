"""Task store for managing the mission list.

This module provides the TaskStore class, which owns the ordered task
sequence (newest first) and the active view filter. Every mutation updates
the in-memory sequence and then persists the full sequence through the
injected TaskPersistence collaborator.
"""

import logging
import time
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Union

from missionboard.models import Filter, Summary, Task, utc_now
from missionboard.storage import TaskPersistence

logger = logging.getLogger(__name__)

CelebrationListener = Callable[[], None]


class IdGenerator:
    """Generates task ids from wall-clock milliseconds.

    Ids are strictly increasing: when the clock has not moved past the last
    id handed out, the next id is the last one plus one.
    """

    def __init__(self, last_id: int = 0, clock: Optional[Callable[[], float]] = None):
        self.last_id = last_id
        self._clock = clock or time.time

    def seed(self, ids: Iterable[int]) -> None:
        """Make sure future ids are greater than every id in ids."""
        self.last_id = max(self.last_id, max(ids, default=self.last_id))

    def next_id(self) -> int:
        now_ms = int(self._clock() * 1000)
        self.last_id = max(now_ms, self.last_id + 1)
        return self.last_id


class TaskStore:
    """Canonical task sequence and view filter.

    The sequence is the sole source of truth. Views and summaries are
    computed from it on demand and never stored.

    Attributes:
        persistence: Collaborator used to load and save the sequence
        current_filter: Filter applied by view() when none is given
    """

    def __init__(
        self,
        persistence: Optional[TaskPersistence] = None,
        id_generator: Optional[IdGenerator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize TaskStore and load the persisted sequence.

        Args:
            persistence: Persistence collaborator. If None, uses
                        TaskPersistence with default FileStorage.
            id_generator: Id source. If None, uses a wall-clock IdGenerator.
            clock: Returns the creation time for new tasks (aware datetime)
        """
        self.persistence = persistence if persistence is not None else TaskPersistence()
        self.current_filter = Filter.ALL
        self._clock = clock or utc_now
        self._listeners: List[CelebrationListener] = []

        self._tasks: List[Task] = self.persistence.load()

        self._ids = id_generator or IdGenerator()
        self._ids.seed(t.id for t in self._tasks)

        logger.info("TaskStore ready total=%d", len(self._tasks))

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def tasks(self) -> List[Task]:
        """Copy of the full sequence, newest first."""
        return [replace(t) for t in self._tasks]

    def on_celebrate(self, listener: CelebrationListener) -> CelebrationListener:
        """Register a listener for the all-tasks-completed notification.

        Returns:
            The listener, so this can be used as a decorator
        """
        self._listeners.append(listener)
        return listener

    # ---- mutations ----

    def add(self, text: str) -> Optional[Task]:
        """Create a new task at the front of the sequence.

        Args:
            text: Task text; surrounding whitespace is removed

        Returns:
            The created Task, or None if the trimmed text is empty
        """
        text = (text or "").strip()
        if not text:
            logger.debug("Ignoring add with blank text")
            return None

        task = Task(id=self._ids.next_id(), text=text, completed=False, created_at=self._clock())
        self._tasks.insert(0, task)
        self._save()

        logger.debug("Task added id=%d", task.id)
        return replace(task)

    def toggle_complete(self, task_id: int) -> Optional[Task]:
        """Flip the completion flag of a task.

        Emits the celebration notification when this call completes the
        last active task of a non-empty sequence.

        Args:
            task_id: ID of the task to toggle

        Returns:
            Updated Task if found, None if the task doesn't exist
        """
        task = self._find(task_id)
        if task is None:
            logger.debug("Ignoring toggle of unknown id=%s", task_id)
            return None

        was_completed = task.completed
        task.completed = not was_completed
        self._save()
        logger.debug("Task toggled id=%d completed=%s", task.id, task.completed)

        if not was_completed and self._all_completed():
            self._celebrate()

        return replace(task)

    def edit(self, task_id: int, new_text: str) -> Optional[Task]:
        """Replace the text of a task.

        Blank text leaves the task unchanged. Nothing is persisted unless the
        text actually changes.

        Args:
            task_id: ID of the task to edit
            new_text: Replacement text; surrounding whitespace is removed

        Returns:
            The (possibly unchanged) Task if found, None otherwise
        """
        task = self._find(task_id)
        if task is None:
            logger.debug("Ignoring edit of unknown id=%s", task_id)
            return None

        new_text = (new_text or "").strip()
        if new_text and new_text != task.text:
            task.text = new_text
            self._save()
            logger.debug("Task edited id=%d", task.id)

        return replace(task)

    def delete(self, task_id: int) -> bool:
        """Delete a task by ID.

        Args:
            task_id: ID of the task to delete

        Returns:
            True if task was deleted, False if task didn't exist
        """
        task = self._find(task_id)
        if task is None:
            logger.debug("Ignoring delete of unknown id=%s", task_id)
            return False

        self._tasks.remove(task)
        self._save()

        logger.debug("Task deleted id=%d", task_id)
        return True

    def clear_completed(self) -> int:
        """Remove every completed task, keeping the rest in order.

        Returns:
            Number of tasks removed
        """
        before = len(self._tasks)
        self._tasks = [t for t in self._tasks if not t.completed]
        self._save()

        removed = before - len(self._tasks)
        logger.debug("Cleared %d completed task(s)", removed)
        return removed

    def set_filter(self, selection: Union[Filter, str]) -> None:
        """Change the filter used by view().

        Raises:
            ValueError: If selection is not a known Filter value
        """
        self.current_filter = Filter(selection)

    # ---- queries ----

    def view(self, selection: Optional[Union[Filter, str]] = None) -> List[Task]:
        """Get the tasks matching a filter, in canonical (newest-first) order.

        Args:
            selection: Filter to apply. If None, uses current_filter.

        Returns:
            Copies of the matching tasks
        """
        selected = self.current_filter if selection is None else Filter(selection)
        return [replace(t) for t in self._tasks if selected.matches(t)]

    def summary(self) -> Summary:
        active = sum(1 for t in self._tasks if not t.completed)
        return Summary(active_count=active, total_count=len(self._tasks))

    def get_task(self, task_id: int) -> Optional[Task]:
        task = self._find(task_id)
        return replace(task) if task is not None else None

    # ---- internals ----

    def _find(self, task_id: int) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def _all_completed(self) -> bool:
        return bool(self._tasks) and all(t.completed for t in self._tasks)

    def _celebrate(self) -> None:
        logger.info("All %d task(s) completed", len(self._tasks))
        for listener in list(self._listeners):
            listener()

    def _save(self) -> None:
        self.persistence.save(self._tasks)
