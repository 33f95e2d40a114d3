"""Comprehensive tests for CLI module."""

import tempfile
from io import StringIO
from pathlib import Path
from unittest.mock import patch

import pytest

from missionboard.cli import (
    cmd_add,
    cmd_clear,
    cmd_delete,
    cmd_edit,
    cmd_list,
    cmd_theme,
    cmd_toggle,
    create_parser,
    main,
    use_color,
)
from missionboard.models import Filter, Theme
from missionboard.render import CELEBRATION_MESSAGE, EMPTY_MESSAGE
from missionboard.storage import FileStorage, TaskPersistence, ThemePreference
from missionboard.store import TaskStore


class TestParser:
    """Tests for argument parsing."""

    def test_create_parser(self):
        """Test that parser is created with correct program name."""
        parser = create_parser()
        assert parser.prog == "missions"

        with pytest.raises(SystemExit):
            parser.parse_args(["--help"])

    def test_parser_add_joins_words(self):
        parser = create_parser()
        args = parser.parse_args(["add", "Buy", "milk"])
        assert args.command == "add"
        assert args.text == ["Buy", "milk"]

    def test_parser_list_default_filter(self):
        args = create_parser().parse_args(["list"])
        assert args.filter == "all"

    @pytest.mark.parametrize("value", ["all", "active", "completed"])
    def test_parser_list_filters(self, value):
        args = create_parser().parse_args(["list", "--filter", value])
        assert args.filter == value

    def test_parser_invalid_filter(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["list", "--filter", "pending"])

    @pytest.mark.parametrize("command", ["done", "toggle", "delete"])
    def test_parser_id_commands(self, command):
        args = create_parser().parse_args([command, "42"])
        assert args.command == command
        assert args.id == 42

    @pytest.mark.parametrize("command", ["done", "toggle", "delete", "edit"])
    def test_parser_requires_id(self, command):
        with pytest.raises(SystemExit):
            create_parser().parse_args([command])

    def test_parser_non_integer_id(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["done", "abc"])

    def test_parser_edit(self):
        args = create_parser().parse_args(["edit", "7", "new", "text"])
        assert args.id == 7
        assert args.text == ["new", "text"]

    def test_parser_theme(self):
        parser = create_parser()
        assert parser.parse_args(["theme"]).value is None
        assert parser.parse_args(["theme", "toggle"]).value == "toggle"
        with pytest.raises(SystemExit):
            parser.parse_args(["theme", "sepia"])

    def test_parser_global_options(self):
        args = create_parser().parse_args(["--data-dir", "/tmp/x", "--no-color", "-v", "list"])
        assert args.data_dir == "/tmp/x"
        assert args.no_color is True
        assert args.verbose is True


class TestCommands:
    """Tests for individual command handlers."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary data directory for testing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir

    @pytest.fixture
    def storage(self, temp_dir):
        return FileStorage(temp_dir)

    @pytest.fixture
    def store(self, storage):
        """Create a TaskStore with temporary file storage."""
        return TaskStore(TaskPersistence(storage))

    @pytest.fixture
    def prefs(self, storage):
        return ThemePreference(storage)

    def run(self, handler, argv, store, prefs):
        args = create_parser().parse_args(argv)
        with patch("sys.stdout", new_callable=StringIO) as out, patch(
            "sys.stderr", new_callable=StringIO
        ) as err:
            code = handler(args, store, prefs)
        return code, out.getvalue(), err.getvalue()

    def test_cmd_add(self, store, prefs):
        code, out, _ = self.run(cmd_add, ["add", "Test", "task"], store, prefs)

        assert code == 0
        task = store.tasks[0]
        assert f"Task added: #{task.id} Test task" in out
        assert task.text == "Test task"

    def test_cmd_add_blank_is_silent(self, store, prefs):
        code, out, err = self.run(cmd_add, ["add", "   "], store, prefs)

        assert code == 0
        assert out == ""
        assert err == ""
        assert len(store) == 0

    def test_cmd_list_sets_filter(self, store, prefs):
        code, _, _ = self.run(cmd_list, ["list", "--filter", "active"], store, prefs)
        assert code == 0
        assert store.current_filter is Filter.ACTIVE

    def test_cmd_toggle(self, store, prefs):
        task = store.add("Test task")

        code, out, _ = self.run(cmd_toggle, ["done", str(task.id)], store, prefs)
        assert code == 0
        assert f"Task #{task.id} marked as done: Test task" in out

        code, out, _ = self.run(cmd_toggle, ["toggle", str(task.id)], store, prefs)
        assert code == 0
        assert f"Task #{task.id} marked as active: Test task" in out

    def test_cmd_toggle_not_found(self, store, prefs):
        code, _, err = self.run(cmd_toggle, ["done", "999"], store, prefs)
        assert code == 1
        assert "Error: Task #999 not found." in err

    def test_cmd_edit(self, store, prefs):
        task = store.add("old")
        code, out, _ = self.run(cmd_edit, ["edit", str(task.id), " new "], store, prefs)

        assert code == 0
        assert f"Task #{task.id} updated: new" in out
        assert store.get_task(task.id).text == "new"

    def test_cmd_edit_blank_keeps_text(self, store, prefs):
        task = store.add("old")
        code, out, _ = self.run(cmd_edit, ["edit", str(task.id), ""], store, prefs)

        assert code == 0
        assert f"Task #{task.id} unchanged." in out
        assert store.get_task(task.id).text == "old"

    def test_cmd_edit_not_found(self, store, prefs):
        code, _, err = self.run(cmd_edit, ["edit", "5", "x"], store, prefs)
        assert code == 1
        assert "Task #5 not found" in err

    def test_cmd_delete(self, store, prefs):
        task = store.add("Test task")
        code, out, _ = self.run(cmd_delete, ["delete", str(task.id)], store, prefs)

        assert code == 0
        assert f"Task #{task.id} deleted." in out
        assert store.get_task(task.id) is None

    def test_cmd_delete_not_found(self, store, prefs):
        code, _, err = self.run(cmd_delete, ["delete", "999"], store, prefs)
        assert code == 1
        assert "Error: Task #999 not found." in err

    def test_cmd_clear(self, store, prefs):
        done = store.add("done")
        store.add("open")
        store.toggle_complete(done.id)

        code, out, _ = self.run(cmd_clear, ["clear"], store, prefs)
        assert code == 0
        assert "Cleared 1 completed task." in out
        assert [t.text for t in store.tasks] == ["open"]

    def test_cmd_theme_show(self, store, prefs):
        code, out, _ = self.run(cmd_theme, ["theme"], store, prefs)
        assert code == 0
        assert "Theme: light" in out

    def test_cmd_theme_set_and_toggle(self, store, prefs):
        self.run(cmd_theme, ["theme", "dark"], store, prefs)
        assert prefs.load() is Theme.DARK

        code, out, _ = self.run(cmd_theme, ["theme", "toggle"], store, prefs)
        assert code == 0
        assert "Theme set to light." in out
        assert prefs.load() is Theme.LIGHT


class TestMain:
    """Tests for the main entry point."""

    @pytest.fixture
    def data_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir

    def run_main(self, argv, data_dir):
        with patch("sys.stdout", new_callable=StringIO) as out, patch(
            "sys.stderr", new_callable=StringIO
        ) as err:
            code = main(["--data-dir", data_dir, "--no-color"] + argv)
        return code, out.getvalue(), err.getvalue()

    def load_store(self, data_dir):
        return TaskStore(TaskPersistence(FileStorage(data_dir)))

    def test_main_no_command(self):
        with patch("sys.stdout", new_callable=StringIO):
            assert main([]) == 1

    def test_main_add_redraws_board(self, data_dir):
        code, out, _ = self.run_main(["add", "Buy", "milk"], data_dir)

        assert code == 0
        assert "Task added:" in out
        assert "] #" in out and "Buy milk" in out
        assert "1 mission awaiting" in out
        assert "0%" in out

    def test_main_list_empty(self, data_dir):
        code, out, _ = self.run_main(["list"], data_dir)
        assert code == 0
        assert EMPTY_MESSAGE in out
        assert "0 missions awaiting" in out

    def test_main_list_filter(self, data_dir):
        self.run_main(["add", "first"], data_dir)
        self.run_main(["add", "second"], data_dir)
        first = [t for t in self.load_store(data_dir).tasks if t.text == "first"][0]
        self.run_main(["done", str(first.id)], data_dir)

        _, out, _ = self.run_main(["list", "--filter", "active"], data_dir)
        assert "second" in out
        assert "first" not in out

        _, out, _ = self.run_main(["list", "--filter", "completed"], data_dir)
        assert "first" in out
        assert "second" not in out

    def test_main_celebrates_when_all_done(self, data_dir):
        self.run_main(["add", "only"], data_dir)
        task = self.load_store(data_dir).tasks[0]

        code, out, _ = self.run_main(["done", str(task.id)], data_dir)
        assert code == 0
        assert CELEBRATION_MESSAGE in out
        assert "100%" in out

    def test_main_no_celebration_while_tasks_remain(self, data_dir):
        self.run_main(["add", "a"], data_dir)
        self.run_main(["add", "b"], data_dir)
        task = self.load_store(data_dir).tasks[0]

        _, out, _ = self.run_main(["done", str(task.id)], data_dir)
        assert CELEBRATION_MESSAGE not in out

    def test_main_list_with_undecodable_tasks_file(self, data_dir):
        (Path(data_dir) / "tasks").write_bytes(b"\xff\xfe[garbage")

        code, out, _ = self.run_main(["list"], data_dir)
        assert code == 0
        assert EMPTY_MESSAGE in out

    def test_main_error_skips_board(self, data_dir):
        code, out, err = self.run_main(["delete", "12"], data_dir)
        assert code == 1
        assert "Task #12 not found" in err
        assert "awaiting" not in out

    def test_main_uses_configured_directory(self, data_dir, monkeypatch):
        monkeypatch.setenv("MISSIONBOARD_DATA_DIR", data_dir)
        with patch("sys.stdout", new_callable=StringIO):
            assert main(["add", "configured"]) == 0

        assert [t.text for t in self.load_store(data_dir).tasks] == ["configured"]

    def test_main_writes_log_file(self, data_dir, monkeypatch):
        log_file = Path(data_dir) / "logs" / "missions.log"
        monkeypatch.setenv("MISSIONBOARD_LOG_FILE", str(log_file))

        self.run_main(["add", "logged"], data_dir)
        assert log_file.exists()
        assert "Task added" in log_file.read_text(encoding="utf-8")


class TestUseColor:
    """Tests for colour detection."""

    def test_no_color_flag(self):
        assert use_color(no_color=True) is False

    def test_no_color_environment(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert use_color() is False

    def test_not_a_terminal(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        with patch("sys.stdout", new_callable=StringIO):
            assert use_color() is False
