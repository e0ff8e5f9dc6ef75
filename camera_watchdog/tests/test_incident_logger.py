"""Tests for incident records."""

from datetime import datetime
from pathlib import Path

import pytest

from camera_watchdog.config import WatchdogConfig
from camera_watchdog.incident_logger import IncidentLogger


def fixed_now():
    return datetime(2026, 3, 14, 9, 26, 53)


class TestIncidentLogger:
    """Test cases for IncidentLogger."""

    @pytest.fixture
    def incident_logger(self, config, supervisor):
        return IncidentLogger(config, supervisor, now=fixed_now)

    @pytest.mark.asyncio
    async def test_creates_timestamped_file(self, incident_logger, config):
        """Test the record is named by a sortable timestamp in the log directory."""
        path = await incident_logger.capture("stale_stream")

        assert path == Path(config.log_dir) / "incident_2026-03-14_09-26-53.log"
        assert path.exists()

    @pytest.mark.asyncio
    async def test_record_layout(self, incident_logger, config):
        """Test header, per-process logs in order, then the process list."""
        path = await incident_logger.capture("probe_failure")
        content = path.read_text()

        assert content.startswith("# Incident @ 2026-03-14_09-26-53\n")
        assert "Reason: probe_failure" in content
        assert f"URL: {config.probe_url}" in content
        assert "Failure threshold: 2" in content
        assert "Staleness window: 10.0s" in content
        assert "Host:" in content

        first = content.index("===== pm2 logs Demo_linux_so =====")
        second = content.index("===== pm2 logs index =====")
        listing = content.index("===== pm2 list =====")
        assert first < second < listing
        assert "last 800 lines of Demo_linux_so" in content
        assert "0 cam online" in content

    @pytest.mark.asyncio
    async def test_capture_order(self, incident_logger, supervisor):
        await incident_logger.capture("stale_stream")

        assert supervisor.calls == [
            ("logs", "Demo_linux_so"),
            ("logs", "index"),
            ("list",),
        ]

    @pytest.mark.asyncio
    async def test_log_failure_leaves_partial_record(self, incident_logger, supervisor):
        """Test a failed log capture is noted and the rest still written."""
        supervisor.failing_logs.add("Demo_linux_so")

        path = await incident_logger.capture("probe_failure")
        content = path.read_text()

        assert "[log capture failed: cannot read logs of Demo_linux_so]" in content
        assert "last 800 lines of index" in content
        assert "===== pm2 list =====" in content

    @pytest.mark.asyncio
    async def test_list_failure_leaves_partial_record(self, incident_logger, supervisor):
        from camera_watchdog.supervisor import SupervisorError

        supervisor.list_error = SupervisorError("pm2 gone")

        path = await incident_logger.capture("probe_failure")

        assert "[process list unavailable: pm2 gone]" in path.read_text()

    @pytest.mark.asyncio
    async def test_same_second_gets_new_file(self, incident_logger):
        """Test an existing record is never appended to by a later incident."""
        first = await incident_logger.capture("probe_failure")
        second = await incident_logger.capture("probe_failure")

        assert first != second
        assert second.name == "incident_2026-03-14_09-26-53_1.log"

    @pytest.mark.asyncio
    async def test_unwritable_log_dir(self, tmp_path, supervisor):
        """Test an unusable log directory yields no record and no exception."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        config = WatchdogConfig(log_dir=str(blocker / "incidents"))
        incident_logger = IncidentLogger(config, supervisor, now=fixed_now)

        path = await incident_logger.capture("probe_failure")

        assert path is None
        assert supervisor.calls == []
