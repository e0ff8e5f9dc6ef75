"""Camera stream watchdog.

Probes a camera-streaming HTTP endpoint, detects failed or frozen output,
captures diagnostics and restarts the supervised worker processes.
"""

from .config import WatchdogConfig
from .healer import Healer, HealReason
from .incident_logger import IncidentLogger
from .prober import Prober, ProbeFailureKind, ProbeResult
from .scheduler import Scheduler, TickOutcome
from .session import HealingLatch, WatchSession
from .supervisor import ProcessSupervisor
from .trackers import FailureCounter, StalenessTracker

__all__ = [
    "WatchdogConfig",
    "Prober",
    "ProbeResult",
    "ProbeFailureKind",
    "StalenessTracker",
    "FailureCounter",
    "HealingLatch",
    "WatchSession",
    "ProcessSupervisor",
    "IncidentLogger",
    "Healer",
    "HealReason",
    "Scheduler",
    "TickOutcome",
]

__version__ = "1.0.0"
