"""Incident records: pre-restart diagnostics written to the log directory."""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import psutil

from camera_watchdog.config import WatchdogConfig
from camera_watchdog.supervisor import ProcessSupervisor, SupervisorError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


class IncidentLogger:
    """Writes one append-only incident file per heal.

    Layout of a record:
    - header (timestamp, reason, probe URL, thresholds, host snapshot)
    - one ``pm2 logs`` section per managed process, in declared order
    - a final ``pm2 list`` snapshot

    Capture is best effort: a failing section is noted in the file and the
    rest of the record is still written.
    """

    def __init__(
        self,
        config: WatchdogConfig,
        supervisor: ProcessSupervisor,
        now: Callable[[], datetime] = datetime.now,
    ):
        """Initialize incident logger.

        Args:
            config: Watchdog configuration
            supervisor: Supervisor adapter used for logs and process list
            now: Wall clock used to name incident files
        """
        self.config = config
        self.supervisor = supervisor
        self._now = now
        self.log_dir = Path(config.log_dir)

    def _new_incident_path(self, stamp: str) -> Path:
        path = self.log_dir / f"incident_{stamp}.log"
        suffix = 1
        while path.exists():
            path = self.log_dir / f"incident_{stamp}_{suffix}.log"
            suffix += 1
        return path

    def _append(self, path: Path, text: str) -> None:
        with open(path, "a", encoding="utf-8") as f:
            f.write(text)

    def _host_snapshot(self) -> str:
        try:
            memory = psutil.virtual_memory()
            load = ", ".join(f"{value:.2f}" for value in os.getloadavg())
            return (
                f"Host: cpu={psutil.cpu_percent(interval=None):.1f}% "
                f"memory={memory.percent:.1f}% load=[{load}]\n"
            )
        except (OSError, AttributeError, psutil.Error) as e:
            return f"Host: unavailable ({e})\n"

    def _header(self, stamp: str, reason: str) -> str:
        return (
            f"# Incident @ {stamp}\n"
            f"Reason: {reason}\n"
            f"URL: {self.config.probe_url}\n"
            f"Failure threshold: {self.config.failure_threshold}\n"
            f"Staleness window: {self.config.staleness_window}s\n"
            f"Cooldown: {self.config.heal_cooldown}s\n"
            f"Processes: {', '.join(self.config.managed_processes)}\n"
            f"{self._host_snapshot()}\n"
        )

    async def capture(self, reason: str) -> Optional[Path]:
        """Write a complete incident record for the current state.

        Args:
            reason: Why healing was triggered

        Returns:
            Path of the incident file, or None if it could not be created
        """
        stamp = self._now().strftime(TIMESTAMP_FORMAT)

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            path = self._new_incident_path(stamp)
            self._append(path, self._header(stamp, reason))
        except OSError as e:
            logger.error(f"Cannot create incident file in {self.log_dir}: {e}")
            return None

        for name in self.config.managed_processes:
            try:
                chunk = await self.supervisor.tail_logs(
                    name,
                    self.config.log_lines,
                    self.config.log_capture_timeout,
                )
            except SupervisorError as e:
                logger.warning(f"Log capture failed for {name}: {e}")
                chunk = f"[log capture failed: {e}]"
            self._write_section(path, f"pm2 logs {name}", chunk)

        try:
            snapshot = await self.supervisor.list_processes()
        except SupervisorError as e:
            logger.warning(f"Process list capture failed: {e}")
            snapshot = f"[process list unavailable: {e}]"
        self._write_section(path, "pm2 list", snapshot)

        logger.info(
            f"Incident recorded: {path}",
            extra={"event": "incident", "incident": str(path)},
        )
        return path

    def _write_section(self, path: Path, title: str, body: str) -> None:
        try:
            self._append(path, f"\n===== {title} =====\n{body}\n")
        except OSError as e:
            logger.error(f"Failed writing '{title}' to {path}: {e}")
