"""Tests for the PID file."""

import os
import signal

from daybell.service.pid import PidFile, is_process_alive, signal_process


class TestPidFile:
    """Tests for writing and reading the PID file."""

    def test_write_and_read_current_process(self, tmp_path):
        pid_file = PidFile(tmp_path / "run" / "daybell.pid")
        pid_file.write()

        process = pid_file.read()
        assert process is not None
        assert process.pid == os.getpid()
        assert process.alive
        assert process.uptime >= 0

    def test_missing_file(self, tmp_path):
        assert PidFile(tmp_path / "missing.pid").read() is None

    def test_garbage_file(self, tmp_path):
        path = tmp_path / "bad.pid"
        path.write_text("not a pid\n")
        assert PidFile(path).read() is None

    def test_pid_without_start_time(self, tmp_path):
        path = tmp_path / "old.pid"
        path.write_text(f"{os.getpid()}\n")

        process = PidFile(path).read()
        assert process is not None
        assert process.started_at == 0.0
        assert process.uptime == 0.0

    def test_remove_is_idempotent(self, tmp_path):
        pid_file = PidFile(tmp_path / "daybell.pid")
        pid_file.write()
        pid_file.remove()
        pid_file.remove()
        assert not pid_file.path.exists()


class TestProcessHelpers:
    # PIDs are capped well below this on Linux and macOS
    DEAD_PID = 2**22 + 12345

    def test_dead_process(self):
        assert not is_process_alive(self.DEAD_PID)

    def test_signal_dead_process(self):
        assert not signal_process(self.DEAD_PID, signal.SIGHUP)
