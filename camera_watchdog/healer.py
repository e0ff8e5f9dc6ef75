"""Self-healing: capture diagnostics, then restart managed processes."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from camera_watchdog.config import WatchdogConfig
from camera_watchdog.incident_logger import IncidentLogger
from camera_watchdog.session import WatchSession
from camera_watchdog.supervisor import ProcessSupervisor, RestartOutcome

logger = logging.getLogger(__name__)

MAX_HISTORY = 100


class HealReason(str, Enum):
    """What triggered a heal."""

    PROBE_FAILURE = "probe_failure"
    STALE_STREAM = "stale_stream"


@dataclass
class HealRecord:
    """Record of one heal transaction."""

    reason: HealReason
    started_at: datetime
    finished_at: Optional[datetime] = None
    incident_path: Optional[Path] = None
    restarts: List[RestartOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.restarts) and all(r.ok for r in self.restarts)


class Healer:
    """Runs single-flight heal transactions.

    Sequence per heal:
    1. Capture logs of every managed process and the process list
    2. Restart every managed process in declared order
    3. Reset failure and staleness baselines
    4. Hold the latch for the cooldown period

    Triggers arriving while a heal is in flight or cooling down are dropped.
    """

    def __init__(
        self,
        config: WatchdogConfig,
        supervisor: ProcessSupervisor,
        incident_logger: IncidentLogger,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize healer.

        Args:
            config: Watchdog configuration
            supervisor: Supervisor adapter used for restarts
            incident_logger: Writer for incident records
            clock: Monotonic clock used for the staleness reset
        """
        self.config = config
        self.supervisor = supervisor
        self.incident_logger = incident_logger
        self._clock = clock
        self._history: List[HealRecord] = []

    async def heal(self, reason: HealReason, session: WatchSession) -> Optional[HealRecord]:
        """Heal the managed processes unless a heal is already active.

        Args:
            reason: What triggered the heal
            session: Monitoring state to reset on completion

        Returns:
            HealRecord for this run, or None if the trigger was dropped
        """
        if not session.latch.try_acquire():
            logger.info(
                f"Heal already active or cooling down "
                f"({session.latch.cooldown_remaining:.1f}s left), dropping {reason.value}"
            )
            return None

        record = HealRecord(reason=reason, started_at=datetime.now())
        logger.warning(
            f"Healing triggered: {reason.value}",
            extra={"event": "heal_started", "reason": reason.value},
        )

        try:
            try:
                record.incident_path = await self.incident_logger.capture(reason.value)
            except Exception as e:
                logger.error(f"Diagnostics capture failed: {e}", exc_info=True)

            for name in self.config.managed_processes:
                record.restarts.append(await self._restart(name))
        finally:
            session.failures.reset()
            session.staleness.reset(self._clock())
            session.latch.release_after(self.config.heal_cooldown)
            record.finished_at = datetime.now()
            self._remember(record)

        restarted = ", ".join(r.name for r in record.restarts if r.ok) or "none"
        logger.info(
            f"Logged to {record.incident_path}. Restarted: {restarted}",
            extra={
                "event": "heal_finished",
                "reason": reason.value,
                "incident": str(record.incident_path),
                "success": record.success,
            },
        )
        return record

    async def _restart(self, name: str) -> RestartOutcome:
        try:
            outcome = await self.supervisor.restart(name)
        except Exception as e:
            logger.error(f"Restart of {name} raised: {e}", exc_info=True)
            return RestartOutcome(name=name, ok=False, output=str(e))

        if outcome.ok:
            logger.info(f"Restarted {name}")
        else:
            logger.error(f"Restart of {name} failed: {outcome.output.strip()[-500:]}")
        return outcome

    def _remember(self, record: HealRecord) -> None:
        self._history.append(record)
        if len(self._history) > MAX_HISTORY:
            del self._history[: len(self._history) - MAX_HISTORY]

    def get_heal_stats(self) -> dict:
        """Get heal statistics.

        Returns:
            Dictionary with heal counts and last heal time
        """
        last = self._history[-1] if self._history else None
        return {
            "total_heals": len(self._history),
            "failed_heals": sum(1 for r in self._history if not r.success),
            "last_heal_time": last.started_at.isoformat() if last else None,
            "last_heal_reason": last.reason.value if last else None,
        }

    def get_heal_history(self, limit: int = 10) -> list[dict]:
        """Get recent heals, newest first.

        Args:
            limit: Maximum number of records to return

        Returns:
            List of heal records as dictionaries
        """
        recent = self._history[-limit:] if limit > 0 else self._history

        return [
            {
                "reason": record.reason.value,
                "started_at": record.started_at.isoformat(),
                "finished_at": record.finished_at.isoformat() if record.finished_at else None,
                "incident_path": str(record.incident_path) if record.incident_path else None,
                "restarts": {r.name: r.ok for r in record.restarts},
                "success": record.success,
            }
            for record in reversed(recent)
        ]
