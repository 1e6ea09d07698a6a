"""Job scheduler using APScheduler."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_EXECUTED,
    EVENT_JOB_MAX_INSTANCES,
    EVENT_JOB_MISSED,
    JobEvent,
)
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

if TYPE_CHECKING:
    from watchping.monitor.monitor import Monitor

logger = logging.getLogger(__name__)

CYCLE_JOB_ID = "probe_cycle"

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


def _job_listener(event: JobEvent) -> None:
    """Listen for job execution events."""
    if event.code == EVENT_JOB_MAX_INSTANCES:
        logger.warning("Job %s skipped, previous cycle still running", event.job_id)
    elif event.code == EVENT_JOB_MISSED:
        logger.warning("Job %s missed its run time", event.job_id)
    elif getattr(event, "exception", None):
        logger.error(
            "Job %s failed with exception: %s",
            event.job_id,
            event.exception,
        )
    else:
        logger.debug("Job %s executed successfully", event.job_id)


def create_scheduler(interval_seconds: int) -> AsyncIOScheduler:
    """Create and configure the scheduler.

    Args:
        interval_seconds: Seconds between probe cycles.

    Returns:
        Configured AsyncIOScheduler instance.
    """
    job_defaults = {
        "coalesce": True,  # Combine missed runs into one
        "max_instances": 1,  # Cycles never overlap
        "misfire_grace_time": interval_seconds,
    }

    return AsyncIOScheduler(
        job_defaults=job_defaults,
        timezone="UTC",
    )


def start_scheduler(monitor: "Monitor", interval_seconds: int) -> AsyncIOScheduler:
    """Start the scheduler with the probe cycle job.

    The first cycle runs immediately, then every ``interval_seconds``.
    """
    global scheduler

    scheduler = create_scheduler(interval_seconds)

    scheduler.add_listener(
        _job_listener,
        EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MAX_INSTANCES | EVENT_JOB_MISSED,
    )

    scheduler.add_job(
        monitor.run_cycle,
        trigger=IntervalTrigger(seconds=interval_seconds),
        id=CYCLE_JOB_ID,
        name="Probe Cycle",
        next_run_time=datetime.now(timezone.utc),
        replace_existing=True,
    )
    logger.info("Scheduled probe cycle every %d seconds", interval_seconds)

    scheduler.start()
    return scheduler


def pause_scheduler() -> None:
    """Stop starting new cycles, leaving the one in flight running."""
    if scheduler and scheduler.running:
        scheduler.pause()
        logger.info("Scheduler paused")


def shutdown_scheduler() -> None:
    """Shut the scheduler down.

    Pending coroutine jobs are cancelled, so pause and wait for the running
    cycle first.
    """
    global scheduler

    if scheduler and scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler shutdown complete")

