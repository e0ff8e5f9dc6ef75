"""Stream staleness and consecutive-failure tracking."""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class StalenessTracker:
    """Detects a stream that keeps answering with identical content.

    A successful, well-formed response that never changes is itself the
    fault condition (a frozen camera feed that still serves HTTP).
    """

    def __init__(self, window: float, now: float = 0.0):
        """Initialize tracker.

        Args:
            window: Seconds of unchanged content before a trigger
            now: Initial timestamp for ``last_change_at``
        """
        self.window = window
        self.last_digest: Optional[str] = None
        self.last_change_at: float = now

    def observe(self, fingerprint: str, now: float) -> bool:
        """Record the fingerprint of a successful probe.

        Args:
            fingerprint: Digest of the response body
            now: Current monotonic timestamp

        Returns:
            True if the content has been unchanged for at least the window
        """
        if self.last_digest is None:
            self.last_digest = fingerprint
            self.last_change_at = now
            return False

        if fingerprint != self.last_digest:
            self.last_digest = fingerprint
            self.last_change_at = now
            return False

        stale_for = self.stale_for(now)
        if stale_for >= self.window:
            logger.warning(
                f"Stream appears frozen: content unchanged for {stale_for:.1f}s "
                f"(window: {self.window}s)"
            )
            return True

        return False

    def stale_for(self, now: float) -> float:
        """Seconds since the content last changed."""
        if self.last_digest is None:
            return 0.0
        return now - self.last_change_at

    def reset(self, now: float) -> None:
        """Drop the baseline so the next observation starts fresh."""
        self.last_digest = None
        self.last_change_at = now
        logger.debug("Staleness tracking reset")


class FailureCounter:
    """Counts consecutive probe failures."""

    def __init__(self, threshold: int):
        self.threshold = threshold
        self.consecutive_failures: int = 0

    def record_failure(self) -> bool:
        """Count a failed probe.

        The counter is cleared on every threshold breach, whether or not a
        heal actually runs afterwards.

        Returns:
            True if the threshold was reached
        """
        self.consecutive_failures += 1
        if self.consecutive_failures >= self.threshold:
            logger.warning(
                f"Failure threshold reached ({self.consecutive_failures}/{self.threshold})"
            )
            self.consecutive_failures = 0
            return True
        return False

    def record_success(self) -> None:
        if self.consecutive_failures > 0:
            logger.info(f"Probe recovered after {self.consecutive_failures} failure(s)")
        self.consecutive_failures = 0

    def reset(self) -> None:
        self.consecutive_failures = 0
