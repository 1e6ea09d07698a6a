"""Execution of one probe cycle over the whole host list."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from watchping.config import to_local_time
from watchping.monitor.models import CycleReport, HostResult, ProbeOutcome
from watchping.probe.parser import classify
from watchping.probe.runner import PingProbeRunner

logger = logging.getLogger(__name__)


class CycleExecutor:
    """Probes every host once and aggregates the results.

    Hosts are probed one at a time unless ``concurrency`` is above 1, in
    which case up to that many probes run at once. Results are always
    reported in host-list order.
    """

    def __init__(
        self,
        runner: Optional[PingProbeRunner] = None,
        concurrency: int = 1,
        tz: Optional[ZoneInfo] = None,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.runner = runner or PingProbeRunner()
        self.concurrency = concurrency
        self.tz = tz

    async def probe_host(self, host: str, timeout: float, retries: int) -> HostResult:
        """Probe and classify one host. Never raises."""
        try:
            raw = await self.runner.probe(host, timeout, retries)
            label, address, outcome = classify(raw)
        except Exception as e:
            logger.error("Probe of %s failed unexpectedly: %s", host, e)
            return HostResult(host=host, label=host, address="", outcome=ProbeOutcome.down())

        logger.debug("Probe of %s: %s", host, outcome.status.value)
        return HostResult(host=host, label=label, address=address, outcome=outcome)

    async def run_cycle(
        self,
        hosts: Sequence[str],
        timeout: float,
        retries: int,
    ) -> CycleReport:
        """Run one probe cycle.

        Args:
            hosts: Ordered host list.
            timeout: Seconds per probe attempt.
            retries: Additional attempts after the first.

        Returns:
            Report with one result per host, in host-list order.
        """
        timestamp = to_local_time(datetime.now(timezone.utc), self.tz)

        if self.concurrency == 1:
            results = [await self.probe_host(h, timeout, retries) for h in hosts]
        else:
            semaphore = asyncio.Semaphore(self.concurrency)

            async def bounded(host: str) -> HostResult:
                async with semaphore:
                    return await self.probe_host(host, timeout, retries)

            # gather keeps results in argument order
            results = await asyncio.gather(*(bounded(h) for h in hosts))

        report = CycleReport(timestamp=timestamp, results=tuple(results))
        logger.info(
            "Cycle complete: %d hosts probed, %d dead",
            len(report.results),
            len(report.dead_hosts),
        )
        return report
