"""Probe cycle orchestration: probe, compare, notify, commit."""

import asyncio
import logging
from typing import Optional, Sequence

from watchping.config import Settings
from watchping.metrics import (
    cycle_duration_seconds,
    cycles_total,
    dead_hosts_count,
    host_up_status,
    probe_latency_ms,
)
from watchping.monitor.cycle import CycleExecutor
from watchping.monitor.models import CycleReport, HostStatus, StateVerdict
from watchping.monitor.state import StateTracker
from watchping.notifications.notifier import NotificationDispatcher, build_notifiers
from watchping.probe.runner import PingProbeRunner

logger = logging.getLogger(__name__)


def update_host_metrics(report: CycleReport) -> None:
    """Update per-host and aggregate gauges from a cycle report."""
    dead_hosts_count.set(len(report.dead_hosts))
    for result in report.results:
        is_up = result.outcome.status is HostStatus.UP
        host_up_status.labels(host=result.host).set(1 if is_up else 0)
        if is_up:
            probe_latency_ms.labels(host=result.host).set(result.outcome.latency_ms)


class Monitor:
    """Runs probe cycles and turns dead-set changes into notifications.

    Cycles are serialized by a lock, so a shutdown can wait for the cycle in
    flight by acquiring it.
    """

    def __init__(
        self,
        hosts: Sequence[str],
        executor: CycleExecutor,
        dispatcher: NotificationDispatcher,
        timeout: float = 2.0,
        retries: int = 0,
        tracker: Optional[StateTracker] = None,
        verbose: bool = False,
    ):
        self.hosts = tuple(hosts)
        self.executor = executor
        self.dispatcher = dispatcher
        self.timeout = timeout
        self.retries = retries
        self.tracker = tracker or StateTracker()
        self.verbose = verbose
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, hosts: Sequence[str]) -> "Monitor":
        """Build a monitor from settings.

        Raises:
            ConfigurationError: If a log or web file cannot be written.
        """
        dispatcher = NotificationDispatcher(build_notifiers(settings))
        dispatcher.check_writable()

        executor = CycleExecutor(
            runner=PingProbeRunner(settings.ping_command),
            concurrency=settings.probe_concurrency,
            tz=settings.tz,
        )
        return cls(
            hosts=hosts,
            executor=executor,
            dispatcher=dispatcher,
            timeout=settings.probe_timeout,
            retries=settings.probe_retries,
            verbose=settings.verbose,
        )

    async def run_cycle(self) -> StateVerdict:
        """Run one full cycle.

        The dead set is committed after the notification decision, whatever
        the verdict and even if dispatching fails.

        Returns:
            The verdict for this cycle.
        """
        async with self._lock:
            with cycle_duration_seconds.time():
                report = await self.executor.run_cycle(self.hosts, self.timeout, self.retries)

            update_host_metrics(report)
            if self.verbose:
                logger.info("-----\n%s", report.render_text())

            current = report.dead_hosts
            verdict = self.tracker.evaluate(current)
            if verdict.is_change:
                logger.warning(
                    "Dead hosts changed: %s -> %s",
                    " ".join(sorted(self.tracker.previous)) or "none",
                    " ".join(report.dead_hosts_ordered) or "none",
                )

            try:
                await self.dispatcher.dispatch(verdict, report)
            finally:
                self.tracker.commit(current)

            cycles_total.labels(verdict=verdict.value).inc()
            return verdict

    async def wait_idle(self) -> None:
        """Wait until no cycle is running."""
        async with self._lock:
            pass
