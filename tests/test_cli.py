"""Tests for CLI commands."""

import logging
import os

import pytest

from daybell.cli.app import app
from daybell.cli.commands.tasks import _truncate
from daybell.config.paths import get_pid_path
from daybell.config.store import TaskConfigStore
from daybell.service.pid import PidFile


def _invoke(cli_runner, config_file, *args):
    return cli_runner.invoke(app, [*args[:2], "--config", str(config_file), *args[2:]])


class TestInitCommand:
    """Tests for 'daybell init'."""

    def test_creates_config(self, cli_runner, tmp_path):
        path = tmp_path / "new" / "config.toml"
        result = cli_runner.invoke(app, ["init", "--path", str(path)])
        assert result.exit_code == 0
        assert path.exists()
        assert "[scheduler]" in path.read_text()

    def test_refuses_to_overwrite(self, cli_runner, config_file):
        result = cli_runner.invoke(app, ["init", "--path", str(config_file)])
        assert result.exit_code == 1
        assert "already exists" in result.stdout


class TestTasksCommand:
    """Tests for 'daybell tasks'."""

    def test_list(self, cli_runner, config_file):
        result = _invoke(cli_runner, config_file, "tasks", "list")
        assert result.exit_code == 0
        assert "14:30" in result.stdout
        assert "04:00" in result.stdout
        assert "Total: 2 task(s)" in result.stdout

    def test_log_level_defaults_to_warning(self, cli_runner, config_file, root_logger):
        result = _invoke(cli_runner, config_file, "tasks", "list")
        assert result.exit_code == 0
        assert root_logger.level == logging.WARNING

    def test_log_level_from_env(self, cli_runner, config_file, root_logger, monkeypatch):
        monkeypatch.setenv("DAYBELL_LOG_LEVEL", "info")
        result = _invoke(cli_runner, config_file, "tasks", "list")
        assert result.exit_code == 0
        assert root_logger.level == logging.INFO

    def test_list_empty(self, cli_runner, tmp_path):
        path = tmp_path / "empty.toml"
        path.write_text(f'[ledger]\ndatabase_path = "{tmp_path / "e.db"}"\n')
        result = _invoke(cli_runner, path, "tasks", "list")
        assert result.exit_code == 0
        assert "No tasks configured" in result.stdout

    def test_missing_config(self, cli_runner, tmp_path):
        result = _invoke(cli_runner, tmp_path / "missing.toml", "tasks", "list")
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_add_and_remove(self, cli_runner, config_file):
        result = _invoke(cli_runner, config_file, "tasks", "add", "7", "01:00", "true", "-m", "Nightly")
        assert result.exit_code == 0, result.stdout
        entry = TaskConfigStore(config_file).load_entries()["7"]
        assert entry == {"time": "01:00", "commands": ["true"], "message": "Nightly"}

        result = _invoke(cli_runner, config_file, "tasks", "remove", "7", "--force")
        assert result.exit_code == 0
        assert "7" not in TaskConfigStore(config_file).load_entries()

    def test_add_existing_task(self, cli_runner, config_file):
        result = _invoke(cli_runner, config_file, "tasks", "add", "1", "01:00", "true")
        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_time(self, cli_runner, config_file):
        result = _invoke(cli_runner, config_file, "tasks", "time", "1", "06:15")
        assert result.exit_code == 0
        assert TaskConfigStore(config_file).load_entries()["1"]["time"] == "06:15"

    def test_time_invalid_format(self, cli_runner, config_file):
        before = config_file.read_text()
        result = _invoke(cli_runner, config_file, "tasks", "time", "1", "25:99")
        assert result.exit_code == 1
        assert "Invalid time format" in result.stdout
        assert config_file.read_text() == before

    def test_time_unknown_task(self, cli_runner, config_file):
        result = _invoke(cli_runner, config_file, "tasks", "time", "42", "06:15")
        assert result.exit_code == 1
        assert "Task 42 not found" in result.stdout

    def test_add_and_remove_command(self, cli_runner, config_file):
        result = _invoke(cli_runner, config_file, "tasks", "add-command", "1", "[op] save-all")
        assert result.exit_code == 0
        assert TaskConfigStore(config_file).load_entries()["1"]["commands"] == [
            "[console] say hi",
            "[op] save-all",
        ]

        result = _invoke(cli_runner, config_file, "tasks", "remove-command", "1", "1")
        assert result.exit_code == 0
        assert TaskConfigStore(config_file).load_entries()["1"]["commands"] == ["[op] save-all"]

    def test_remove_command_bad_index(self, cli_runner, config_file):
        result = _invoke(cli_runner, config_file, "tasks", "remove-command", "1", "5")
        assert result.exit_code == 1
        assert "Invalid command index" in result.stdout

    def test_message_set_and_clear(self, cli_runner, config_file):
        result = _invoke(cli_runner, config_file, "tasks", "message", "2", "Daily restart")
        assert result.exit_code == 0
        assert TaskConfigStore(config_file).load_entries()["2"]["message"] == "Daily restart"

        result = _invoke(cli_runner, config_file, "tasks", "message", "2")
        assert result.exit_code == 0
        assert "message" not in TaskConfigStore(config_file).load_entries()["2"]

    def test_test_runs_commands(self, cli_runner, config_file):
        _invoke(cli_runner, config_file, "tasks", "add", "8", "01:00", "true")
        result = _invoke(cli_runner, config_file, "tasks", "test", "8")
        assert result.exit_code == 0
        assert "Task 8 test completed" in result.stdout

    def test_remove_unknown_task(self, cli_runner, config_file):
        result = _invoke(cli_runner, config_file, "tasks", "remove", "42", "--force")
        assert result.exit_code == 1

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores file permissions")
    def test_read_only_config(self, cli_runner, config_file):
        before = config_file.read_text()
        config_file.chmod(0o444)
        try:
            result = _invoke(cli_runner, config_file, "tasks", "time", "1", "06:15")
        finally:
            config_file.chmod(0o644)
        assert result.exit_code == 1
        assert "could not write" in result.stdout
        assert config_file.read_text() == before

    def test_truncate(self):
        assert _truncate("x" * 80) == "x" * 80
        assert _truncate("x" * 81) == "x" * 77 + "..."


class TestPlaceholderCommand:
    """Tests for 'daybell placeholder'."""

    def test_resolves_values(self, cli_runner, config_file):
        result = cli_runner.invoke(
            app,
            ["placeholder", "--config", str(config_file), "tasks_total", "task_1_msg", "task_2_msg"],
        )
        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["2", "Afternoon greeting", "No message set"]

    def test_unknown_placeholder(self, cli_runner, config_file):
        result = cli_runner.invoke(app, ["placeholder", "--config", str(config_file), "weather"])
        assert result.exit_code == 1
        assert "Unknown placeholder" in result.stdout


class TestLedgerCommand:
    """Tests for 'daybell ledger'."""

    def test_shows_tasks(self, cli_runner, config_file):
        result = _invoke(cli_runner, config_file, "ledger")
        assert result.exit_code == 0
        assert "not run" in result.stdout

    def test_invalid_date(self, cli_runner, config_file):
        result = cli_runner.invoke(
            app, ["ledger", "--config", str(config_file), "--date", "yesterday"]
        )
        assert result.exit_code == 1
        assert "Invalid date" in result.stdout


class TestConfigCommand:
    """Tests for 'daybell config'."""

    def test_config_show_displays_content(self, cli_runner, config_file):
        result = cli_runner.invoke(app, ["config", "show", "--path", str(config_file)])
        assert result.exit_code == 0
        assert "poll_interval" in result.stdout

    def test_config_show_missing_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            app, ["config", "show", "--path", str(tmp_path / "missing.toml")]
        )
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_config_validate_success(self, cli_runner, config_file):
        result = cli_runner.invoke(app, ["config", "validate", "--path", str(config_file)])
        assert result.exit_code == 0
        assert "valid" in result.stdout.lower()

    def test_config_validate_reports_skipped_tasks(self, cli_runner, tmp_path):
        path = tmp_path / "tasks.toml"
        path.write_text('[tasks."1"]\ntime = "25:99"\ncommands = ["x"]\n')
        result = cli_runner.invoke(app, ["config", "validate", "--path", str(path)])
        assert result.exit_code == 0
        assert "skipped" in result.stdout

    def test_config_validate_invalid_toml(self, cli_runner, tmp_path):
        invalid_file = tmp_path / "invalid.toml"
        invalid_file.write_text("not valid toml [[[")
        result = cli_runner.invoke(app, ["config", "validate", "--path", str(invalid_file)])
        assert result.exit_code == 1

    def test_config_validate_invalid_config(self, cli_runner, tmp_path):
        invalid_config = tmp_path / "bad_config.toml"
        invalid_config.write_text("[scheduler]\npoll_interval = 300\n")
        result = cli_runner.invoke(app, ["config", "validate", "--path", str(invalid_config)])
        assert result.exit_code == 1
        assert "validation failed" in result.stdout.lower()

    def test_config_paths(self, cli_runner):
        result = cli_runner.invoke(app, ["config", "paths"])
        assert result.exit_code == 0
        assert "database" in result.stdout

    def test_config_unknown_action(self, cli_runner):
        result = cli_runner.invoke(app, ["config", "unknown"])
        assert result.exit_code == 2


class TestServiceCommands:
    """Tests for 'daybell reload' and 'daybell status'."""

    def test_reload_without_server(self, cli_runner):
        result = cli_runner.invoke(app, ["reload"])
        assert result.exit_code == 1
        assert "not running" in result.stdout

    def test_reload_signals_server(self, cli_runner, monkeypatch):
        import signal

        sent = []
        monkeypatch.setattr(
            "daybell.service.pid.signal_process",
            lambda pid, sig: sent.append((pid, sig)) or True,
        )
        PidFile(get_pid_path()).write()

        result = cli_runner.invoke(app, ["reload"])
        assert result.exit_code == 0
        assert "reloaded" in result.stdout
        assert sent == [(os.getpid(), signal.SIGHUP)]

    def test_status(self, cli_runner):
        result = cli_runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "not running" in result.stdout

        PidFile(get_pid_path()).write()
        result = cli_runner.invoke(app, ["status"])
        assert "is running" in result.stdout
