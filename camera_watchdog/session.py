"""Mutable monitoring state owned by the scheduler."""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from camera_watchdog.config import WatchdogConfig
from camera_watchdog.trackers import FailureCounter, StalenessTracker


class HealingLatch:
    """Single-flight latch for heal transactions.

    Set while a heal is in flight and until its cooldown deadline passes.
    ``try_acquire`` never awaits, so test-and-set is atomic on the event loop.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._in_flight = False
        self._cooldown_until: Optional[float] = None

    @property
    def is_set(self) -> bool:
        if self._in_flight:
            return True
        return self._cooldown_until is not None and self._clock() < self._cooldown_until

    @property
    def cooldown_remaining(self) -> float:
        if self._cooldown_until is None:
            return 0.0
        return max(0.0, self._cooldown_until - self._clock())

    def try_acquire(self) -> bool:
        """Set the latch unless it is already set.

        Returns:
            True if the caller now owns the latch
        """
        if self.is_set:
            return False
        self._in_flight = True
        self._cooldown_until = None
        return True

    def release_after(self, cooldown: float) -> None:
        """Mark the transaction complete and hold the latch for ``cooldown`` seconds."""
        self._in_flight = False
        self._cooldown_until = self._clock() + cooldown


@dataclass
class WatchSession:
    """All state touched by the tick loop and the healer."""

    staleness: StalenessTracker
    failures: FailureCounter
    latch: HealingLatch

    @classmethod
    def from_config(
        cls,
        config: WatchdogConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> "WatchSession":
        """Create a fresh session.

        Args:
            config: Watchdog configuration
            clock: Monotonic clock shared by trackers and the latch

        Returns:
            WatchSession with empty baselines
        """
        return cls(
            staleness=StalenessTracker(config.staleness_window, now=clock()),
            failures=FailureCounter(config.failure_threshold),
            latch=HealingLatch(clock),
        )
