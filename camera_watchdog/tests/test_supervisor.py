"""
Tests for the PM2 supervisor adapter.

A small shell script stands in for the pm2 binary so real subprocesses are
exercised without PM2 installed.
"""

import stat
import sys

import pytest

from camera_watchdog.config import WatchdogConfig
from camera_watchdog.supervisor import ProcessSupervisor, SupervisorError

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")

FAKE_PM2 = """#!/bin/sh
case "$1" in
  list)
    echo "id name status"
    echo "0 index online"
    ;;
  logs)
    echo "logs for $2 ($3 $4 $5)"
    if [ "$2" = "slow" ]; then
      exec sleep 5
    fi
    ;;
  restart)
    if [ "$2" = "broken" ]; then
      echo "[PM2][ERROR] Process or Namespace $2 not found" >&2
      exit 1
    fi
    echo "[PM2] Applying action restartProcessId on app [$2]"
    ;;
esac
"""


@pytest.fixture
def fake_pm2(tmp_path):
    """Create an executable stand-in for pm2."""
    script = tmp_path / "pm2"
    script.write_text(FAKE_PM2)
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return script


@pytest.fixture
def supervisor(fake_pm2):
    return ProcessSupervisor(
        WatchdogConfig(supervisor_bin=str(fake_pm2), supervisor_timeout=5.0)
    )


class TestProcessSupervisor:
    """Test cases for ProcessSupervisor."""

    @pytest.mark.asyncio
    async def test_list_processes(self, supervisor):
        output = await supervisor.list_processes()

        assert "0 index online" in output

    @pytest.mark.asyncio
    async def test_tail_logs(self, supervisor):
        output = await supervisor.tail_logs("index", 800, time_budget=5.0)

        assert "logs for index (--lines 800 --nostream)" in output

    @pytest.mark.asyncio
    async def test_tail_logs_returns_partial_output_on_timeout(self, supervisor):
        """Test log capture is cut off at its budget but keeps what it read."""
        output = await supervisor.tail_logs("slow", 10, time_budget=0.5)

        assert "logs for slow" in output

    @pytest.mark.asyncio
    async def test_restart_success(self, supervisor):
        outcome = await supervisor.restart("index")

        assert outcome.ok is True
        assert outcome.name == "index"
        assert "restartProcessId" in outcome.output

    @pytest.mark.asyncio
    async def test_restart_failure_is_captured(self, supervisor):
        """Test a failing restart is reported as text, not raised."""
        outcome = await supervisor.restart("broken")

        assert outcome.ok is False
        assert "not found" in outcome.output

    @pytest.mark.asyncio
    async def test_missing_binary(self, tmp_path):
        supervisor = ProcessSupervisor(
            WatchdogConfig(supervisor_bin=str(tmp_path / "no-such-pm2"))
        )

        with pytest.raises(SupervisorError):
            await supervisor.list_processes()

        with pytest.raises(SupervisorError):
            await supervisor.tail_logs("index", 10, time_budget=1.0)

        outcome = await supervisor.restart("index")
        assert outcome.ok is False
        assert "Cannot run" in outcome.output
