"""Command-line interface for missionboard.

This module is the presentation layer: it calls TaskStore mutations in
response to commands, then redraws the board from view() and summary().
It supports the following commands:
- add: Create a new mission
- list: Show missions, optionally filtered
- done / toggle: Flip a mission between active and completed
- edit: Change the text of a mission
- delete: Delete a mission
- clear: Remove all completed missions
- theme: Show or change the light/dark theme
"""

import argparse
import logging
import os
import sys
from typing import Callable, Dict, List, Optional

from missionboard.config import get_settings
from missionboard.logging_setup import setup_logging
from missionboard.models import Filter, Theme
from missionboard.render import render_board, render_celebration
from missionboard.storage import FileStorage, TaskPersistence, ThemePreference
from missionboard.store import TaskStore

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="missions",
        description="Terminal mission board: a small persistent task list"
    )
    parser.add_argument(
        "--data-dir",
        help="Directory for stored data (default: $MISSIONBOARD_DATA_DIR or ~/.missionboard)"
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable coloured output"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Add command
    add_parser = subparsers.add_parser("add", help="Add a new mission")
    add_parser.add_argument("text", nargs="+", help="Mission text")

    # List command
    list_parser = subparsers.add_parser("list", help="List missions")
    list_parser.add_argument(
        "--filter",
        choices=[f.value for f in Filter],
        default=Filter.ALL.value,
        help="Which missions to show (default: all)"
    )

    # Done / toggle commands
    for name, help_text in (
        ("done", "Toggle a mission's completion"),
        ("toggle", "Toggle a mission's completion"),
    ):
        toggle_parser = subparsers.add_parser(name, help=help_text)
        toggle_parser.add_argument("id", type=int, help="Mission ID")

    # Edit command
    edit_parser = subparsers.add_parser("edit", help="Change a mission's text")
    edit_parser.add_argument("id", type=int, help="Mission ID")
    edit_parser.add_argument("text", nargs="+", help="New mission text")

    # Delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a mission")
    delete_parser.add_argument("id", type=int, help="Mission ID")

    # Clear command
    subparsers.add_parser("clear", help="Remove all completed missions")

    # Theme command
    theme_parser = subparsers.add_parser("theme", help="Show or change the theme")
    theme_parser.add_argument(
        "value",
        nargs="?",
        choices=[t.value for t in Theme] + ["toggle"],
        help="New theme, or 'toggle' to switch"
    )

    return parser


def _not_found(task_id: int) -> int:
    print(f"Error: Task #{task_id} not found.", file=sys.stderr)
    return 1


def cmd_add(args: argparse.Namespace, store: TaskStore, prefs: ThemePreference) -> int:
    """Handle the 'add' command.

    Blank text is ignored without an error.

    Returns:
        Exit code (0 for success)
    """
    task = store.add(" ".join(args.text))
    if task is not None:
        print(f"Task added: #{task.id} {task.text}")
    return 0


def cmd_list(args: argparse.Namespace, store: TaskStore, prefs: ThemePreference) -> int:
    """Handle the 'list' command. The board itself is drawn by main()."""
    store.set_filter(args.filter)
    return 0


def cmd_toggle(args: argparse.Namespace, store: TaskStore, prefs: ThemePreference) -> int:
    """Handle the 'done' and 'toggle' commands.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    task = store.toggle_complete(args.id)
    if task is None:
        return _not_found(args.id)

    state = "done" if task.completed else "active"
    print(f"Task #{task.id} marked as {state}: {task.text}")
    return 0


def cmd_edit(args: argparse.Namespace, store: TaskStore, prefs: ThemePreference) -> int:
    """Handle the 'edit' command.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    before = store.get_task(args.id)
    if before is None:
        return _not_found(args.id)

    task = store.edit(args.id, " ".join(args.text))
    if task.text == before.text:
        print(f"Task #{task.id} unchanged.")
    else:
        print(f"Task #{task.id} updated: {task.text}")
    return 0


def cmd_delete(args: argparse.Namespace, store: TaskStore, prefs: ThemePreference) -> int:
    """Handle the 'delete' command.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if not store.delete(args.id):
        return _not_found(args.id)

    print(f"Task #{args.id} deleted.")
    return 0


def cmd_clear(args: argparse.Namespace, store: TaskStore, prefs: ThemePreference) -> int:
    removed = store.clear_completed()
    noun = "task" if removed == 1 else "tasks"
    print(f"Cleared {removed} completed {noun}.")
    return 0


def cmd_theme(args: argparse.Namespace, store: TaskStore, prefs: ThemePreference) -> int:
    """Handle the 'theme' command: show, set or toggle the stored theme."""
    if args.value is None:
        print(f"Theme: {prefs.load().value}")
        return 0

    if args.value == "toggle":
        theme = prefs.toggle()
    else:
        theme = Theme(args.value)
        prefs.save(theme)

    print(f"Theme set to {theme.value}.")
    return 0


COMMANDS: Dict[str, Callable[[argparse.Namespace, TaskStore, ThemePreference], int]] = {
    "add": cmd_add,
    "list": cmd_list,
    "done": cmd_toggle,
    "toggle": cmd_toggle,
    "edit": cmd_edit,
    "delete": cmd_delete,
    "clear": cmd_clear,
    "theme": cmd_theme,
}


def use_color(no_color: bool = False) -> bool:
    """Colour only for a terminal, and never when NO_COLOR is set."""
    if no_color or "NO_COLOR" in os.environ:
        return False
    return sys.stdout.isatty()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    settings = get_settings()
    setup_logging("DEBUG" if args.verbose else settings.log_level, settings.log_file)

    storage = FileStorage(args.data_dir or settings.data_dir)
    store = TaskStore(TaskPersistence(storage))
    prefs = ThemePreference(storage)
    color = use_color(args.no_color)

    celebrations: List[bool] = []
    store.on_celebrate(lambda: celebrations.append(True))

    handler = COMMANDS.get(args.command)
    if handler is None:
        print(f"Error: Unknown command '{args.command}'", file=sys.stderr)
        return 1

    logger.debug("Running command %s", args.command)
    code = handler(args, store, prefs)
    if code != 0:
        return code

    theme = prefs.load()
    print()
    print(render_board(store.view(), store.summary(), theme, color))
    if celebrations:
        print()
        print(render_celebration(theme, color))
    return 0


if __name__ == "__main__":
    sys.exit(main())
