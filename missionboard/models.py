"""Core models for missionboard.

This module defines the core data structures for mission tracking:
- Task: A dataclass representing a single mission
- Filter: Enum selecting which tasks a view shows
- Summary: Counts used for the remaining-count text and progress bar
- Theme: Enum for the light/dark display preference
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class Task:
    """Task model representing a single mission.

    Attributes:
        id: Unique identifier, assigned by the store at creation
        text: Trimmed, non-empty mission text
        completed: Whether the mission is done
        created_at: Timestamp when the task was created (UTC)
    """

    id: int
    text: str
    completed: bool = False
    created_at: datetime = field(default_factory=utc_now)


class Filter(Enum):
    """View selector over the task sequence."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"

    def matches(self, task: Task) -> bool:
        """Return True if the task belongs in a view with this filter."""
        if self is Filter.ACTIVE:
            return not task.completed
        if self is Filter.COMPLETED:
            return task.completed
        return True


@dataclass(frozen=True)
class Summary:
    """Counts over the whole task sequence.

    Attributes:
        active_count: Number of tasks not yet completed
        total_count: Number of tasks in the store
    """

    active_count: int
    total_count: int

    @property
    def completed_count(self) -> int:
        return self.total_count - self.active_count

    @property
    def progress(self) -> float:
        """Percentage of completed tasks, 0.0 for an empty store."""
        if self.total_count <= 0:
            return 0.0
        return self.completed_count / self.total_count * 100


class Theme(Enum):
    """Display theme preference."""

    LIGHT = "light"
    DARK = "dark"

    def toggled(self) -> "Theme":
        return Theme.LIGHT if self is Theme.DARK else Theme.DARK
