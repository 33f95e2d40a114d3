"""Text rendering for the mission board.

Every function here is pure: output depends only on the arguments (and the
random generator passed in for confetti). The CLI calls these after each
command with the store's view() and summary().
"""

import random
from typing import List, Optional, Sequence

from missionboard.models import Summary, Task, Theme

CHECK = "✓"
EMPTY_MESSAGE = "No tasks found. Add your first mission!"
CELEBRATION_MESSAGE = "All missions complete!"

CONFETTI_PIECES = 50
CONFETTI_GLYPHS = "*+x•·o~✦✧"

RESET = "\033[0m"

# role -> ANSI SGR sequence
PALETTES = {
    Theme.LIGHT: {
        "active": "\033[30m",
        "completed": "\033[90;9m",
        "muted": "\033[90m",
        "accent": "\033[34m",
    },
    Theme.DARK: {
        "active": "\033[97m",
        "completed": "\033[2;9m",
        "muted": "\033[37m",
        "accent": "\033[96m",
    },
}


def paint(text: str, role: str, theme: Theme = Theme.LIGHT, color: bool = False) -> str:
    """Wrap text in the theme's colour for role when color is enabled."""
    if not color:
        return text
    return f"{PALETTES[theme][role]}{text}{RESET}"


def render_task(task: Task, theme: Theme = Theme.LIGHT, color: bool = False) -> str:
    """Render one task as ``[✓] #<id> <text>``."""
    mark = CHECK if task.completed else " "
    line = f"[{mark}] #{task.id} {task.text}"
    return paint(line, "completed" if task.completed else "active", theme, color)


def render_tasks(
    tasks: Sequence[Task], theme: Theme = Theme.LIGHT, color: bool = False
) -> List[str]:
    """Render a view, or the empty-list message when there is nothing to show."""
    if not tasks:
        return [paint(EMPTY_MESSAGE, "muted", theme, color)]
    return [render_task(t, theme, color) for t in tasks]


def remaining_text(summary: Summary) -> str:
    count = summary.active_count
    noun = "mission" if count == 1 else "missions"
    return f"{count} {noun} awaiting"


def progress_bar(summary: Summary, width: int = 20) -> str:
    """Render the completion percentage as ``[#####-----] 50%``."""
    filled = int(round(summary.progress / 100 * width))
    filled = max(0, min(width, filled))
    return f"[{'#' * filled}{'-' * (width - filled)}] {summary.progress:.0f}%"


def render_board(
    tasks: Sequence[Task],
    summary: Summary,
    theme: Theme = Theme.LIGHT,
    color: bool = False,
) -> str:
    """Render the full board: task lines, remaining count and progress bar."""
    lines = render_tasks(tasks, theme, color)
    lines.append("")
    lines.append(paint(remaining_text(summary), "muted", theme, color))
    lines.append(paint(progress_bar(summary), "accent", theme, color))
    return "\n".join(lines)


def confetti(count: int = CONFETTI_PIECES, rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    return "".join(rng.choice(CONFETTI_GLYPHS) for _ in range(count))


def render_celebration(
    theme: Theme = Theme.LIGHT, color: bool = False, rng: Optional[random.Random] = None
) -> str:
    """Confetti line followed by the completion message."""
    return "\n".join(
        [
            paint(confetti(rng=rng), "accent", theme, color),
            paint(CELEBRATION_MESSAGE, "accent", theme, color),
        ]
    )
