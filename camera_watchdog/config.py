"""Configuration for the camera watchdog daemon."""

import os
from dataclasses import dataclass, field
from typing import Tuple

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_process_list(raw: str) -> Tuple[str, ...]:
    """Split a comma-separated process list, dropping blanks."""
    return tuple(name.strip() for name in raw.split(",") if name.strip())


@dataclass(frozen=True)
class WatchdogConfig:
    """Configuration for probing and self-healing.

    Read once at startup and never mutated afterwards.
    """

    # Probe
    probe_url: str = "http://127.0.0.1:3000/thermal"
    probe_timeout: float = 3.0  # seconds
    tick_interval_ms: int = 5000

    # Trigger policy
    failure_threshold: int = 2
    staleness_window: float = 10.0  # seconds of unchanged content
    heal_cooldown: float = 10.0  # seconds after heal completion

    # Incidents
    log_dir: str = "/var/log/camera-watch"
    log_lines: int = 800
    log_capture_timeout: float = 6.0  # seconds per process

    # Process supervisor
    managed_processes: Tuple[str, ...] = field(default=("Demo_linux_so", "index"))
    supervisor_bin: str = "pm2"
    supervisor_timeout: float = 30.0  # seconds

    # Logging
    log_level: str = "INFO"

    @property
    def tick_interval(self) -> float:
        """Tick interval in seconds."""
        return self.tick_interval_ms / 1000.0

    @classmethod
    def from_env(cls) -> "WatchdogConfig":
        """Create configuration from environment variables.

        Returns:
            WatchdogConfig instance
        """
        return cls(
            probe_url=os.getenv("WATCH_URL", "http://127.0.0.1:3000/thermal"),
            probe_timeout=float(os.getenv("WATCH_PROBE_TIMEOUT", "3.0")),
            tick_interval_ms=int(os.getenv("WATCH_INTERVAL_MS", "5000")),
            failure_threshold=int(os.getenv("FAILURE_THRESHOLD", "2")),
            staleness_window=float(os.getenv("WATCH_STALENESS_WINDOW", "10.0")),
            heal_cooldown=float(os.getenv("WATCH_COOLDOWN", "10.0")),
            log_dir=os.getenv("WATCH_LOG_DIR", "/var/log/camera-watch"),
            log_lines=int(os.getenv("WATCH_LOG_LINES", "800")),
            log_capture_timeout=float(os.getenv("WATCH_LOG_TIMEOUT", "6.0")),
            managed_processes=_parse_process_list(
                os.getenv("WATCH_PM2_APPS", "Demo_linux_so,index")
            ),
            supervisor_bin=os.getenv("WATCH_SUPERVISOR_BIN", "pm2"),
            supervisor_timeout=float(os.getenv("WATCH_SUPERVISOR_TIMEOUT", "30.0")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.probe_url.startswith(("http://", "https://")):
            raise ValueError(f"Invalid probe_url: {self.probe_url}")

        if self.probe_timeout <= 0:
            raise ValueError(f"Invalid probe_timeout: {self.probe_timeout}")

        if self.tick_interval_ms <= 0:
            raise ValueError(f"Invalid tick_interval_ms: {self.tick_interval_ms}")

        if self.failure_threshold < 1:
            raise ValueError(f"Invalid failure_threshold: {self.failure_threshold}")

        if self.staleness_window < 0:
            raise ValueError(f"Invalid staleness_window: {self.staleness_window}")

        if self.heal_cooldown < 0:
            raise ValueError(f"Invalid heal_cooldown: {self.heal_cooldown}")

        if self.log_lines < 1:
            raise ValueError(f"Invalid log_lines: {self.log_lines}")

        if self.log_capture_timeout <= 0 or self.supervisor_timeout <= 0:
            raise ValueError("Supervisor timeouts must be positive")

        if not self.managed_processes:
            raise ValueError("managed_processes must name at least one process")

        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")


def get_config() -> WatchdogConfig:
    """Get watchdog configuration from environment.

    Returns:
        WatchdogConfig instance
    """
    config = WatchdogConfig.from_env()
    config.validate()
    return config
