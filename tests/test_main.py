"""Tests for command line handling and startup."""

import asyncio
import json
import logging
import os
import signal
import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from watchping import main as main_module
from watchping.cli import parse_args, settings_overrides
from watchping.config import Settings
from watchping.errors import PingUnavailableError


@pytest.fixture(autouse=True)
def restore_root_logger():
    handlers, level = logging.root.handlers[:], logging.root.level
    yield
    logging.root.handlers = handlers
    logging.root.setLevel(level)


class TestCommandLine:
    def test_no_options_means_no_overrides(self):
        args = parse_args([])

        assert args.hosts == []
        assert settings_overrides(args) == {}

    def test_flags_map_to_settings(self):
        args = parse_args(["-v", "-E", "-S", "-e", "ops@example.com", "-t", "30",
                           "-s", "local0.crit", "--retries", "2", "mars", "phobos"])

        assert args.hosts == ["mars", "phobos"]
        assert settings_overrides(args) == {
            "verbose": True,
            "email_enabled": False,
            "syslog_enabled": False,
            "mail_to": "ops@example.com",
            "interval_seconds": 30,
            "syslog_priority": "local0.crit",
            "probe_retries": 2,
        }

    def test_infile_clears_hosts_setting(self):
        overrides = settings_overrides(parse_args(["-i", "prod.txt"]))

        assert overrides["hosts_file"] == "prod.txt"
        assert overrides["hosts"] is None

    def test_overrides_beat_environment(self, monkeypatch):
        monkeypatch.setenv("WATCHPING_INTERVAL_SECONDS", "90")

        settings = Settings(**settings_overrides(parse_args(["-t", "5"])))

        assert settings.interval_seconds == 5

    def test_bad_interval_is_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["-t", "soon"])

        assert exc_info.value.code == 2


class TestMain:
    def test_invalid_settings_exit_code(self, capsys):
        assert main_module.main(["-t", "0"]) == 3
        assert "invalid settings" in capsys.readouterr().err

    def test_invalid_environment_exit_code(self, monkeypatch, capsys):
        monkeypatch.setenv("WATCHPING_PROBE_TIMEOUT", "0")

        assert main_module.main(["-E", "-S", "mars"]) == 3
        assert "probe_timeout" in capsys.readouterr().err

    def test_invalid_environment_does_not_break_import(self):
        env = dict(os.environ, WATCHPING_PROBE_TIMEOUT="0", PYTHONPATH=str(Path(__file__).parents[1]))

        proc = subprocess.run(
            [sys.executable, "-c", "import watchping.main"],
            env=env,
            capture_output=True,
            text=True,
        )

        assert proc.returncode == 0, proc.stderr

    def test_missing_ping_exit_code(self):
        with patch.object(main_module, "ensure_ping_available", side_effect=PingUnavailableError("no ping")):
            assert main_module.main(["mars"]) == 7

    def test_unreadable_host_file_exit_code(self, tmp_path):
        with patch.object(main_module, "ensure_ping_available"):
            assert main_module.main(["-i", str(tmp_path / "missing")]) == 4

    def test_unwritable_logfile_exit_code(self, tmp_path):
        with patch.object(main_module, "ensure_ping_available"):
            code = main_module.main(["-E", "-S", "-l", str(tmp_path / "nodir" / "w.log"), "mars"])

        assert code == 5

    def test_unwritable_website_exit_code(self, tmp_path):
        with patch.object(main_module, "ensure_ping_available"):
            code = main_module.main(["-E", "-S", "-w", str(tmp_path / "nodir" / "w.html"), "mars"])

        assert code == 6

    def test_runs_monitor_until_stopped(self, tmp_path):
        run = MagicMock()

        with patch.object(main_module, "ensure_ping_available"), \
                patch.object(main_module, "run", run), \
                patch.object(main_module.asyncio, "run") as asyncio_run:
            code = main_module.main(["-E", "-S", "-t", "15", "-l", str(tmp_path / "w.log"), "mars"])

        assert code == 0
        asyncio_run.assert_called_once()
        monitor, interval = run.call_args.args
        assert monitor.hosts == ("mars",)
        assert interval == 15


class TestConfigureLogging:
    def test_text_format(self):
        main_module.configure_logging(Settings(log_level="debug"))

        assert logging.root.level == logging.DEBUG
        assert len(logging.root.handlers) == 1
        assert logging.getLogger("apscheduler").level == logging.WARNING

    def test_json_format_with_file(self, tmp_path):
        log_path = tmp_path / "logs" / "watchping.log"
        main_module.configure_logging(Settings(log_format="json", app_log_file=log_path))

        logging.getLogger("watchping.test").warning("hello")
        for handler in logging.root.handlers:
            handler.flush()

        record = json.loads(log_path.read_text().splitlines()[-1])
        assert record["message"] == "hello"
        assert record["level"] == "WARNING"
        assert record["service"] == "watchping"


@pytest.mark.asyncio
async def test_run_stops_on_signal():
    monitor = MagicMock()

    async def wait_idle():
        return None

    monitor.wait_idle = wait_idle

    with patch.object(main_module, "start_scheduler") as start, \
            patch.object(main_module, "pause_scheduler"), \
            patch.object(main_module, "shutdown_scheduler") as shutdown:
        loop = asyncio.get_running_loop()
        loop.call_later(0.01, os.kill, os.getpid(), signal.SIGTERM)
        await asyncio.wait_for(main_module.run(monitor, 60), timeout=2)

    start.assert_called_once_with(monitor, 60)
    shutdown.assert_called_once()


class SlowMonitor:
    """Monitor stand-in whose cycle takes a while to finish."""

    def __init__(self):
        self.completed = []
        self._lock = asyncio.Lock()

    async def run_cycle(self):
        async with self._lock:
            await asyncio.sleep(0.3)
            self.completed.append(True)

    async def wait_idle(self):
        async with self._lock:
            pass


@pytest.mark.asyncio
async def test_stop_lets_running_cycle_finish():
    from watchping.scheduler import job_scheduler

    monitor = SlowMonitor()
    scheduler = job_scheduler.start_scheduler(monitor, 60)
    await asyncio.sleep(0.1)

    await main_module.stop_monitoring(monitor)

    assert monitor.completed == [True]
    assert not scheduler.running
