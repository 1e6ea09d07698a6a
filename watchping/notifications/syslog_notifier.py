"""Syslog notifications."""

import logging
from logging.handlers import SysLogHandler
from typing import Optional, Tuple, Union

from watchping.config import Settings
from watchping.monitor.models import CycleReport, StateVerdict
from watchping.notifications.base import Notifier

logger = logging.getLogger(__name__)

SYSLOG_IDENT = "watchping: "


class PrioritySysLogHandler(SysLogHandler):
    """SysLogHandler that sends every record with a fixed priority.

    Delivery errors propagate instead of being printed to stderr.
    """

    def __init__(self, address: Union[str, Tuple[str, int]], facility: int, priority: int):
        super().__init__(address=address, facility=facility)
        self.priority = priority
        self.ident = SYSLOG_IDENT

    def mapPriority(self, levelName):
        return self.priority

    def handleError(self, record):
        raise


def parse_priority(value: str) -> Tuple[int, int]:
    """Convert a "facility.priority" string into numeric codes."""
    facility, sep, priority = value.lower().partition(".")
    if not sep:
        raise ValueError(f"invalid syslog priority: {value}")
    try:
        return SysLogHandler.facility_names[facility], SysLogHandler.priority_names[priority]
    except KeyError as e:
        raise ValueError(f"invalid syslog priority: {value}") from e


class SyslogNotifier(Notifier):
    """Sends state change summaries to syslog."""

    name = "syslog"
    change_triggered = True

    def __init__(
        self,
        priority: str = "user.err",
        address: Union[str, Tuple[str, int]] = "/dev/log",
    ):
        super().__init__()
        self.priority = priority
        self.address = address
        self._handler: Optional[PrioritySysLogHandler] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SyslogNotifier":
        return cls(
            priority=settings.syslog_priority,
            address=settings.syslog_socket_address,
        )

    def _get_handler(self, facility: int, priority: int) -> PrioritySysLogHandler:
        if self._handler is None:
            self._handler = PrioritySysLogHandler(self.address, facility, priority)
        self._handler.facility = facility
        self._handler.priority = priority
        return self._handler

    def send(self, priority: str, message: str) -> bool:
        """Send one message to syslog with the given "facility.priority".

        Returns:
            True if the message was handed to syslog, False otherwise.
        """
        try:
            facility_code, priority_code = parse_priority(priority)
            record = logging.LogRecord(
                name="watchping",
                level=logging.ERROR,
                pathname=__file__,
                lineno=0,
                msg=message,
                args=None,
                exc_info=None,
            )
            self._get_handler(facility_code, priority_code).handle(record)
        except Exception as e:
            self.last_error = f"syslog {self.address}: {e}"
            logger.error("Failed to send syslog message: %s", e)
            self.close()
            return False

        self.last_error = None
        logger.debug("Syslog message sent: %s", message)
        return True

    def report_error(self, message: str) -> bool:
        """Report a failure of another notifier."""
        return self.send(self.priority, f"ERROR: {message}")

    def close(self) -> None:
        if self._handler is not None:
            self._handler.close()
            self._handler = None

    async def notify(self, report: CycleReport, verdict: StateVerdict) -> bool:
        if verdict is StateVerdict.CHANGED_TO_ALL_UP:
            message = "Hosts Down: none (all ok!)"
        else:
            message = "Hosts Down: " + " ".join(report.dead_hosts_ordered)
        return self.send(self.priority, message)
