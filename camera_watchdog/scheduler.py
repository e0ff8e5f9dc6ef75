"""Fixed-interval tick loop driving probe, trackers and healing."""

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Optional

from camera_watchdog.config import WatchdogConfig
from camera_watchdog.digest import digest
from camera_watchdog.healer import Healer, HealReason
from camera_watchdog.incident_logger import IncidentLogger
from camera_watchdog.prober import Prober
from camera_watchdog.session import WatchSession
from camera_watchdog.supervisor import ProcessSupervisor

logger = logging.getLogger(__name__)


class TickOutcome(str, Enum):
    """What a single tick did."""

    SKIPPED = "skipped"
    HEALTHY = "healthy"
    FAILED = "failed"
    HEALED = "healed"


class Scheduler:
    """Owns the watch session and runs one evaluation cycle per interval.

    Ticks never overlap: each one runs to completion (including any heal it
    starts) before the next is scheduled. A tick that finds the healing latch
    set does not probe at all.
    """

    def __init__(
        self,
        config: Optional[WatchdogConfig] = None,
        prober: Optional[Prober] = None,
        healer: Optional[Healer] = None,
        session: Optional[WatchSession] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize scheduler.

        Args:
            config: Watchdog configuration
            prober: HTTP prober (created from config if not provided)
            healer: Healer (created with a PM2 supervisor if not provided)
            session: Monitoring state (fresh if not provided)
            clock: Monotonic clock for staleness and cooldown timing
        """
        if config is None:
            from camera_watchdog.config import get_config

            config = get_config()

        self.config = config
        self._clock = clock

        if prober is None:
            prober = Prober(config)
        self.prober = prober

        if healer is None:
            supervisor = ProcessSupervisor(config)
            healer = Healer(config, supervisor, IncidentLogger(config, supervisor), clock=clock)
        self.healer = healer

        if session is None:
            session = WatchSession.from_config(config, clock=clock)
        self.session = session

        self._stop_event: Optional[asyncio.Event] = None
        self._running = False

    async def tick(self) -> TickOutcome:
        """Run one evaluation cycle.

        Returns:
            TickOutcome describing what happened
        """
        if self.session.latch.is_set:
            logger.debug("Healing in progress or cooling down, skipping tick")
            return TickOutcome.SKIPPED

        result = await self.prober.probe()
        now = self._clock()
        reason: Optional[HealReason] = None

        if result.ok:
            self.session.failures.record_success()
            if self.session.staleness.observe(digest(result.body), now):
                reason = HealReason.STALE_STREAM
        else:
            logger.warning(
                f"Probe failed ({result.failure.value}): {result.detail} "
                f"[{self.session.failures.consecutive_failures + 1}/"
                f"{self.config.failure_threshold}]"
            )
            if self.session.failures.record_failure():
                reason = HealReason.PROBE_FAILURE

        if reason is None:
            return TickOutcome.HEALTHY if result.ok else TickOutcome.FAILED

        record = await self.healer.heal(reason, self.session)
        if record is None:
            return TickOutcome.HEALTHY if result.ok else TickOutcome.FAILED
        return TickOutcome.HEALED

    async def run(self, max_ticks: Optional[int] = None) -> None:
        """Tick immediately, then once per interval until stopped.

        Args:
            max_ticks: Stop after this many ticks (runs forever if None)
        """
        self._stop_event = asyncio.Event()
        self._running = True
        ticks = 0
        interval = self.config.tick_interval

        logger.info(
            f"Monitoring {self.config.probe_url} every {self.config.tick_interval_ms}ms "
            f"(processes: {', '.join(self.config.managed_processes)})"
        )

        try:
            while self._running:
                started = self._clock()
                try:
                    await self.tick()
                except Exception as e:
                    logger.error(f"Error in watchdog tick: {e}", exc_info=True)

                ticks += 1
                if max_ticks is not None and ticks >= max_ticks:
                    break

                delay = max(0.0, interval - (self._clock() - started))
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            await self.prober.close()
            logger.info("Watchdog loop stopped")

    def stop(self) -> None:
        """Ask the loop to exit after the current tick."""
        self._running = False
        if self._stop_event is not None:
            self._stop_event.set()
