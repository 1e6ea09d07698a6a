"""Common interface for notification sinks."""

from typing import Optional

from watchping.monitor.models import CycleReport, StateVerdict


class Notifier:
    """A destination for cycle reports.

    Change-triggered notifiers only hear about cycles whose verdict is a
    change; the others record every cycle.
    """

    name = "notifier"
    change_triggered = True

    def __init__(self) -> None:
        self.last_error: Optional[str] = None

    async def notify(self, report: CycleReport, verdict: StateVerdict) -> bool:
        """Deliver a report. Returns False on failure instead of raising."""
        raise NotImplementedError
