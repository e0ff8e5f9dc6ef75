"""Async adapter over the process supervisor command line (PM2).

The supervisor is treated as an opaque tool offering three commands:
list processes, tail logs of a process, and restart a process.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from camera_watchdog.config import WatchdogConfig

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class SupervisorError(Exception):
    """The supervisor command could not be executed at all."""


@dataclass
class CommandResult:
    """Output of one supervisor invocation."""

    returncode: Optional[int]
    output: str
    timed_out: bool = False


@dataclass
class RestartOutcome:
    """Result of restarting one managed process."""

    name: str
    ok: bool
    output: str


class ProcessSupervisor:
    """Runs PM2 commands without a shell, each bounded by a timeout."""

    def __init__(self, config: Optional[WatchdogConfig] = None):
        """Initialize supervisor adapter.

        Args:
            config: Watchdog configuration
        """
        if config is None:
            from camera_watchdog.config import get_config

            config = get_config()

        self.config = config

    async def list_processes(self) -> str:
        """Snapshot of every managed process and its status.

        Raises:
            SupervisorError: If the supervisor binary cannot be run
        """
        result = await self._run(["list"], self.config.supervisor_timeout)
        return result.output

    async def tail_logs(self, name: str, lines: int, time_budget: float) -> str:
        """Return the last ``lines`` log lines of a process.

        Best effort: whatever was collected within ``time_budget`` is returned.

        Args:
            name: Managed process name
            lines: Number of lines to request
            time_budget: Seconds before the command is killed

        Raises:
            SupervisorError: If the supervisor binary cannot be run
        """
        result = await self._run(
            ["logs", name, "--lines", str(lines), "--nostream"],
            time_budget,
        )
        if result.timed_out:
            logger.warning(f"Log capture for {name} hit its {time_budget}s budget")
        return result.output

    async def restart(self, name: str) -> RestartOutcome:
        """Restart a process by name.

        Never raises; failures are reported in the outcome text.
        """
        try:
            result = await self._run(["restart", name], self.config.supervisor_timeout)
        except SupervisorError as e:
            return RestartOutcome(name=name, ok=False, output=str(e))

        ok = result.returncode == 0 and not result.timed_out
        output = result.output
        if result.timed_out:
            output += f"\n[restart timed out after {self.config.supervisor_timeout}s]"
        return RestartOutcome(name=name, ok=ok, output=output)

    async def _run(self, args: Sequence[str], timeout: float) -> CommandResult:
        """Run one supervisor command, killing it once ``timeout`` expires.

        Args:
            args: Arguments after the supervisor binary
            timeout: Seconds to wait for the command

        Returns:
            CommandResult with combined stdout/stderr

        Raises:
            SupervisorError: If the process cannot be spawned
        """
        cmd = [self.config.supervisor_bin, *args]
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise SupervisorError(f"Cannot run {cmd[0]}: {e}") from e

        chunks: list[bytes] = []

        async def drain() -> int:
            while True:
                chunk = await process.stdout.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                chunks.append(chunk)
            return await process.wait()

        timed_out = False
        try:
            returncode: Optional[int] = await asyncio.wait_for(drain(), timeout=timeout)
        except asyncio.TimeoutError:
            timed_out = True
            try:
                process.kill()
            except ProcessLookupError:
                pass
            returncode = await process.wait()

        output = b"".join(chunks).decode("utf-8", errors="replace")
        return CommandResult(returncode=returncode, output=output, timed_out=timed_out)
