"""Reachability probe using the system ping command."""

import asyncio
import logging
import platform
import shutil
from contextlib import suppress
from dataclasses import dataclass, replace
from typing import List, Optional

from watchping.errors import PingUnavailableError
from watchping.probe.parser import is_resolution_failure

logger = logging.getLogger(__name__)

# Extra seconds allowed for ping to exit after its own reply timeout
KILL_GRACE_SECONDS = 1.0


@dataclass(frozen=True)
class RawProbeResult:
    host: str
    returncode: Optional[int]  # None if ping could not run or was killed
    output: str
    attempts: int = 1

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


def attempt_count(retries: int) -> int:
    """Convert a retry count into the total number of attempts.

    Retries are additional attempts after the first one, so 0 retries means
    exactly one attempt.
    """
    if retries < 0:
        raise ValueError("retries cannot be negative")
    return retries + 1


def ensure_ping_available(ping_command: str) -> str:
    """Locate the ping binary.

    Raises:
        PingUnavailableError: If it is not on PATH.
    """
    ping_path = shutil.which(ping_command)
    if not ping_path:
        raise PingUnavailableError(f"{ping_command} command not found in PATH")
    return ping_path


class PingProbeRunner:
    """Runs ``ping`` against one host with a bounded timeout and retry count."""

    def __init__(self, ping_command: str = "ping"):
        self.ping_command = ping_command

    def build_command(self, ping_path: str, host: str, timeout: float) -> List[str]:
        """Build the argument list for a single-packet attempt.

        Linux uses -W in seconds, macOS uses -W in milliseconds.
        """
        if platform.system() == "Darwin":
            wait = str(max(int(timeout * 1000), 1))
        else:
            wait = str(max(int(round(timeout)), 1))
        return [ping_path, "-q", "-c", "1", "-W", wait, host]

    async def _attempt(self, host: str, cmd: List[str], timeout: float) -> RawProbeResult:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        try:
            stdout, _ = await asyncio.wait_for(
                proc.communicate(),
                timeout=timeout + KILL_GRACE_SECONDS,
            )
        except asyncio.TimeoutError:
            logger.debug("Ping to %s overran %.1fs, killing", host, timeout)
            return RawProbeResult(host=host, returncode=None, output="")
        finally:
            # Overrun or cancelled, never leave ping behind
            if proc.returncode is None:
                with suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()

        return RawProbeResult(
            host=host,
            returncode=proc.returncode,
            output=stdout.decode("utf-8", errors="replace"),
        )

    async def probe(self, host: str, timeout: float, retries: int) -> RawProbeResult:
        """Probe a host, retrying failed attempts.

        Stops at the first successful reply or at the first name resolution
        failure, since retrying a lookup will not make a host answer.

        Args:
            host: Hostname or IP address.
            timeout: Seconds to wait for a reply on each attempt.
            retries: Additional attempts after the first.

        Returns:
            Result of the last attempt made.
        """
        if timeout <= 0:
            raise ValueError("timeout must be greater than 0")
        attempts = attempt_count(retries)

        ping_path = shutil.which(self.ping_command)
        if not ping_path:
            logger.warning("%s command not found in PATH", self.ping_command)
            return RawProbeResult(host=host, returncode=None, output="", attempts=0)

        cmd = self.build_command(ping_path, host, timeout)
        result = RawProbeResult(host=host, returncode=None, output="", attempts=0)

        for attempt in range(1, attempts + 1):
            try:
                result = await self._attempt(host, cmd, timeout)
            except OSError as e:
                logger.warning("Ping to %s could not run: %s", host, e)
                result = RawProbeResult(host=host, returncode=None, output="")

            result = replace(result, attempts=attempt)

            if result.succeeded:
                logger.debug("Ping to %s successful (attempt %d/%d)", host, attempt, attempts)
                break
            if is_resolution_failure(result.output):
                logger.debug("Ping to %s failed to resolve, not retrying", host)
                break
            logger.debug(
                "Ping to %s failed (attempt %d/%d, exit code %s)",
                host,
                attempt,
                attempts,
                result.returncode,
            )

        return result
