"""
End-to-end tests for the complete monitoring workflow.

Tests the full path from configuration loading through log tailing, action
execution, global variable updates and notification delivery, plus the
command-line entry point.
"""

import asyncio
import os
import signal
import threading
import time
from unittest.mock import patch

import pytest

from tailwatch.cli.main import main_cli
from tailwatch.config import clear_config_cache, load_config
from tailwatch.models.runtime import Notification
from tailwatch.orchestration.supervisor import Supervisor


async def wait_until(predicate, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.02)


def write_config(path, text: str):
    path.write_text(text)
    return path


@pytest.mark.e2e
class TestMonitoringWorkflow:
    """End-to-end tests for monitoring workflow."""

    def setup_method(self):
        clear_config_cache()

    def teardown_method(self):
        clear_config_cache()

    @pytest.mark.asyncio
    async def test_log_line_to_action_state_and_notification(self, temp_dir, log_file):
        out_file = temp_dir / "actions.txt"
        config_path = write_config(
            temp_dir / "tailwatch.toml",
            f"""
[var]
site = "eu-1"

[monitor.login]
log = "{log_file}"
match_log = 'user (?P<user>\\w+) logged in'
exec = 'echo "$user" >> {out_file}'
push = {{ users = "$user" }}
set = {{ last = "$user@$site" }}
notify = {{ channel = "audit", title = "$user logged in", body = "$match" }}

[notify.audit]
every = "1s"
""",
        )
        config = load_config(config_path)
        supervisor = Supervisor(config)
        delivered = []

        async def capture(notification: Notification) -> None:
            delivered.append(notification)

        await supervisor.setup()
        with patch.object(supervisor.aggregators["audit"], "send", side_effect=capture):
            task = asyncio.create_task(supervisor.run())
            try:
                await asyncio.sleep(0.2)
                with open(log_file, "ab") as f:
                    f.write(b"user alice logged in\nuser bob logged in\n")

                await wait_until(lambda: len(delivered) == 1)
                assert out_file.read_text().split() == ["alice", "bob"]
                state = supervisor.store.peek()
                assert state["users"] == ["alice", "bob"]
                assert state["last"] == "bob@eu-1"
                assert delivered[0].title == "Tailwatch Aggregated Notification"
                assert delivered[0].body == "user alice logged in\nuser bob logged in"
            finally:
                supervisor.request_shutdown()
                await asyncio.wait_for(task, timeout=5)

    @pytest.mark.asyncio
    async def test_rotated_log_keeps_being_tailed(self, temp_dir, log_file):
        config_path = write_config(
            temp_dir / "tailwatch.toml",
            f"""
[monitor.errors]
log = "{log_file}"
match_log = 'ERROR (?P<code>\\d+)'
push = {{ codes = "$code" }}
""",
        )
        supervisor = Supervisor(load_config(config_path))
        task = asyncio.create_task(supervisor.run())
        try:
            await asyncio.sleep(0.2)
            with open(log_file, "ab") as f:
                f.write(b"ERROR 1\n")
            await wait_until(lambda: supervisor.store.peek().get("codes") == ["1"])

            os.rename(log_file, str(log_file) + ".1")
            with open(log_file, "ab") as f:
                f.write(b"ERROR 2\n")
            await wait_until(lambda: supervisor.store.peek().get("codes") == ["1", "2"])
        finally:
            supervisor.request_shutdown()
            await asyncio.wait_for(task, timeout=5)


@pytest.mark.e2e
class TestCommandLine:
    """End-to-end tests for the tailwatch command."""

    def test_check_prints_summary(self, config_files, capsys):
        main_cli(["--config", str(config_files["config"]), "--check"])
        out = capsys.readouterr().out
        assert "monitor login:" in out
        assert "mutates globals" in out
        assert "channel ops: transport=smtp, every 60s" in out
        assert out.rstrip().endswith("OK")

    def test_invalid_config_exits_1(self, temp_dir):
        config_path = write_config(temp_dir / "bad.toml", "[monitor.a]\nbogus = 1\n")
        with pytest.raises(SystemExit) as exc_info:
            main_cli(["-c", str(config_path), "--check"])
        assert exc_info.value.code == 1

    def test_missing_config_exits_1(self, temp_dir):
        with pytest.raises(SystemExit) as exc_info:
            main_cli(["-c", str(temp_dir / "absent.toml")])
        assert exc_info.value.code == 1

    def test_setup_failure_exits_1(self, temp_dir):
        config_path = write_config(
            temp_dir / "tailwatch.toml",
            f'[monitor.a]\nlog = "{temp_dir / "missing.log"}"\nmatch_log = "x"\n',
        )
        with pytest.raises(SystemExit) as exc_info:
            main_cli(["-c", str(config_path)])
        assert exc_info.value.code == 1

    @pytest.mark.slow
    def test_sigterm_exits_cleanly(self, temp_dir):
        config_path = write_config(
            temp_dir / "tailwatch.toml", '[monitor.tick]\nevery = "100ms"\nexec = "true"\n'
        )
        timer = threading.Timer(0.5, os.kill, args=(os.getpid(), signal.SIGTERM))
        timer.start()
        try:
            main_cli(["-c", str(config_path), "--log-level", "debug"])
        finally:
            timer.cancel()
