"""
Pytest configuration and fixtures for camera watchdog tests.
"""

import asyncio
from typing import List, Optional

import pytest
from unittest.mock import AsyncMock

from camera_watchdog.config import WatchdogConfig
from camera_watchdog.healer import Healer
from camera_watchdog.incident_logger import IncidentLogger
from camera_watchdog.prober import ProbeResult
from camera_watchdog.session import WatchSession
from camera_watchdog.supervisor import RestartOutcome, SupervisorError


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0):
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


class FakeSupervisor:
    """Supervisor double that records every call in order."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.failing_logs: set = set()
        self.failing_restarts: set = set()
        self.list_error: Optional[Exception] = None

    async def tail_logs(self, name: str, lines: int, time_budget: float) -> str:
        self.calls.append(("logs", name))
        await asyncio.sleep(0)
        if name in self.failing_logs:
            raise SupervisorError(f"cannot read logs of {name}")
        return f"last {lines} lines of {name}"

    async def list_processes(self) -> str:
        self.calls.append(("list",))
        await asyncio.sleep(0)
        if self.list_error is not None:
            raise self.list_error
        return "id name status\n0 cam online"

    async def restart(self, name: str) -> RestartOutcome:
        self.calls.append(("restart", name))
        await asyncio.sleep(0)
        ok = name not in self.failing_restarts
        return RestartOutcome(name=name, ok=ok, output="done" if ok else "[PM2] error")

    def restarted(self) -> List[str]:
        return [call[1] for call in self.calls if call[0] == "restart"]


class FakeProber:
    """Prober double replaying a scripted list of results."""

    def __init__(self, results: Optional[List[ProbeResult]] = None):
        self.results = list(results or [])
        self.probe_count = 0
        self.close = AsyncMock()

    def push(self, *results: ProbeResult) -> None:
        self.results.extend(results)

    async def probe(self) -> ProbeResult:
        self.probe_count += 1
        return self.results.pop(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start=1000.0)


@pytest.fixture
def config(tmp_path) -> WatchdogConfig:
    """Create a test configuration."""
    return WatchdogConfig(
        probe_url="http://camera.test:3000/thermal",
        tick_interval_ms=1,
        failure_threshold=2,
        staleness_window=10.0,
        heal_cooldown=10.0,
        log_dir=str(tmp_path / "incidents"),
        managed_processes=("Demo_linux_so", "index"),
    )


@pytest.fixture
def supervisor() -> FakeSupervisor:
    return FakeSupervisor()


@pytest.fixture
def session(config, clock) -> WatchSession:
    return WatchSession.from_config(config, clock=clock)


@pytest.fixture
def healer(config, supervisor, clock) -> Healer:
    return Healer(config, supervisor, IncidentLogger(config, supervisor), clock=clock)


@pytest.fixture
def prober() -> FakeProber:
    return FakeProber()
