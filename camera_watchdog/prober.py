"""HTTP probe against the camera stream endpoint."""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import aiohttp

from camera_watchdog.config import WatchdogConfig

logger = logging.getLogger(__name__)

# Outer deadline added on top of the HTTP timeout.
PROBE_DEADLINE_MARGIN = 1.0  # seconds


class ProbeFailureKind(str, Enum):
    """Why a probe failed."""

    EMPTY_BODY = "empty_body"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class ProbeResult:
    """Outcome of a single probe.

    Exactly one of ``body`` (success) or ``failure`` is set.
    """

    body: Optional[bytes] = None
    failure: Optional[ProbeFailureKind] = None
    detail: str = ""
    status_code: Optional[int] = None
    latency_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, body: bytes, **kwargs) -> "ProbeResult":
        return cls(body=body, **kwargs)

    @classmethod
    def failed(cls, kind: ProbeFailureKind, detail: str = "", **kwargs) -> "ProbeResult":
        return cls(failure=kind, detail=detail, **kwargs)


class Prober:
    """Issues bounded GET requests against the configured URL.

    No retries happen here; consecutive failures are counted across ticks.
    """

    def __init__(self, config: Optional[WatchdogConfig] = None):
        """Initialize prober.

        Args:
            config: Watchdog configuration
        """
        if config is None:
            from camera_watchdog.config import get_config

            config = get_config()

        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def probe(self) -> ProbeResult:
        """Fetch the probe URL once.

        Returns:
            ProbeResult carrying the raw body or the failure kind. Never raises
            for network problems.
        """
        timeout = self.config.probe_timeout
        started = time.monotonic()

        try:
            return await asyncio.wait_for(
                self._fetch(timeout, started),
                timeout=timeout + PROBE_DEADLINE_MARGIN,
            )
        except asyncio.TimeoutError:
            return ProbeResult.failed(
                ProbeFailureKind.TRANSPORT_ERROR,
                f"timed out after {timeout}s",
                latency_ms=(time.monotonic() - started) * 1000,
            )
        except aiohttp.ClientResponseError as e:
            return ProbeResult.failed(
                ProbeFailureKind.TRANSPORT_ERROR,
                f"HTTP {e.status}",
                status_code=e.status,
                latency_ms=(time.monotonic() - started) * 1000,
            )
        except (aiohttp.ClientError, OSError) as e:
            return ProbeResult.failed(
                ProbeFailureKind.TRANSPORT_ERROR,
                str(e) or type(e).__name__,
                latency_ms=(time.monotonic() - started) * 1000,
            )

    async def _fetch(self, timeout: float, started: float) -> ProbeResult:
        session = await self._get_session()
        async with session.get(
            self.config.probe_url,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as response:
            response.raise_for_status()
            body = await response.read()
            latency_ms = (time.monotonic() - started) * 1000

            if not body or not body.strip():
                return ProbeResult.failed(
                    ProbeFailureKind.EMPTY_BODY,
                    "empty response",
                    status_code=response.status,
                    latency_ms=latency_ms,
                )

            return ProbeResult.success(
                body,
                status_code=response.status,
                latency_ms=latency_ms,
            )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
