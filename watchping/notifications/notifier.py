"""Main notification orchestrator."""

import logging
from typing import Dict, List, Optional, Sequence

from watchping.config import Settings
from watchping.metrics import notifications_failed_total, notifications_sent_total
from watchping.monitor.models import CycleReport, StateVerdict
from watchping.notifications.base import Notifier
from watchping.notifications.email_notifier import EmailNotifier
from watchping.notifications.logfile_notifier import LogFileNotifier
from watchping.notifications.syslog_notifier import SyslogNotifier
from watchping.notifications.web_notifier import WebPageNotifier

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = {
    StateVerdict.UNCHANGED: "report",
    StateVerdict.CHANGED_TO_DOWN: "down",
    StateVerdict.CHANGED_TO_ALL_UP: "recovery",
}


def build_notifiers(settings: Settings) -> List[Notifier]:
    """Create the notifiers enabled in settings.

    Recorders come first so the log and page are updated before alerts go out.
    """
    notifiers: List[Notifier] = []
    if settings.log_file is not None:
        notifiers.append(LogFileNotifier(settings.log_file))
    if settings.web_file is not None:
        notifiers.append(WebPageNotifier(settings.web_file))
    if settings.email_configured:
        notifiers.append(EmailNotifier.from_settings(settings))
    if settings.syslog_enabled:
        notifiers.append(SyslogNotifier.from_settings(settings))
    return notifiers


class NotificationDispatcher:
    """Sends each cycle to the notifiers that should hear about it."""

    def __init__(self, notifiers: Sequence[Notifier]):
        self.notifiers = list(notifiers)

    @property
    def syslog(self) -> Optional[SyslogNotifier]:
        for notifier in self.notifiers:
            if isinstance(notifier, SyslogNotifier):
                return notifier
        return None

    def check_writable(self) -> None:
        """Fail early on recorders whose files cannot be written."""
        for notifier in self.notifiers:
            if isinstance(notifier, (LogFileNotifier, WebPageNotifier)):
                notifier.check_writable()

    def _report_failure(self, failed: Notifier, error: str) -> None:
        syslog = self.syslog
        if syslog is None or syslog is failed:
            return
        syslog.report_error(error)

    async def dispatch(self, verdict: StateVerdict, report: CycleReport) -> Dict[str, bool]:
        """Send a cycle report through all interested notifiers.

        Recorders always receive the report. Alerting notifiers only receive
        it when the verdict is a change. A failing notifier never stops the
        others; its failure is reported to syslog when syslog is enabled.

        Args:
            verdict: Verdict for this cycle.
            report: The cycle report.

        Returns:
            Mapping of notifier name to delivery success.
        """
        notification_type = NOTIFICATION_TYPES[verdict]
        results: Dict[str, bool] = {}

        for notifier in self.notifiers:
            if notifier.change_triggered and not verdict.is_change:
                continue

            try:
                success = await notifier.notify(report, verdict)
                error = notifier.last_error
            except Exception as e:
                logger.exception("Notifier %s raised", notifier.name)
                success, error = False, f"{notifier.name}: {e}"

            results[notifier.name] = success
            if success:
                notifications_sent_total.labels(channel=notifier.name, type=notification_type).inc()
            else:
                notifications_failed_total.labels(channel=notifier.name, type=notification_type).inc()
                self._report_failure(notifier, error or f"{notifier.name} delivery failed")

        sent = [name for name, success in results.items() if success]
        failed = [name for name, success in results.items() if not success]

        if sent:
            logger.info("Notifications sent via: %s", ", ".join(sent))
        if failed:
            logger.warning("Notifications failed: %s", ", ".join(failed))

        return results
