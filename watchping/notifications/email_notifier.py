"""Email notifications via SMTP."""

import logging
from email.mime.text import MIMEText
from typing import Optional, Tuple

import aiosmtplib

from watchping.config import Settings
from watchping.monitor.models import CycleReport, StateVerdict
from watchping.notifications.base import Notifier

logger = logging.getLogger(__name__)


def build_down_message(report: CycleReport) -> Tuple[str, str]:
    """Build subject and body for a hosts-down alert."""
    dead = " ".join(report.dead_hosts_ordered)
    subject = f"WatchPing Alert: {dead}"
    body = (
        "WatchPing Alert\n"
        "\n"
        "The following hosts failed to ping,\n"
        f" {dead}\n"
        "\n"
        "Output from all pings,\n"
        "\n"
        f"{report.render_text()}\n"
    )
    return subject, body


def build_recovery_message(report: CycleReport) -> Tuple[str, str]:
    """Build subject and body for an all-clear notice."""
    subject = "WatchPing Recovery: all hosts ok"
    body = (
        "WatchPing Recovery\n"
        "\n"
        "All hosts are responding again (all ok!).\n"
        "\n"
        "Output from all pings,\n"
        "\n"
        f"{report.render_text()}\n"
    )
    return subject, body


class EmailNotifier(Notifier):
    """Sends state change alerts by email."""

    name = "email"
    change_triggered = True

    def __init__(
        self,
        mail_to: str,
        smtp_host: str = "localhost",
        smtp_port: int = 25,
        smtp_from: str = "watchping@localhost",
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        start_tls: bool = False,
    ):
        super().__init__()
        self.mail_to = mail_to
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_from = smtp_from
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.start_tls = start_tls

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailNotifier":
        return cls(
            mail_to=settings.mail_to,
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_from=settings.smtp_from,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            start_tls=settings.smtp_start_tls,
        )

    async def send(self, subject: str, body: str) -> bool:
        """Send a plain text email.

        Returns:
            True if email sent successfully, False otherwise.
        """
        message = MIMEText(body, "plain", "utf-8")
        message["Subject"] = subject
        message["From"] = self.smtp_from
        message["To"] = self.mail_to

        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=self.start_tls,
            )
        except Exception as e:
            self.last_error = f"Emailing {self.mail_to}: {e}"
            logger.error("Failed to send email to %s: %s", self.mail_to, e)
            return False

        self.last_error = None
        logger.info("Email sent to %s: %s", self.mail_to, subject)
        return True

    async def notify(self, report: CycleReport, verdict: StateVerdict) -> bool:
        if verdict is StateVerdict.CHANGED_TO_ALL_UP:
            subject, body = build_recovery_message(report)
        else:
            subject, body = build_down_message(report)
        return await self.send(subject, body)
