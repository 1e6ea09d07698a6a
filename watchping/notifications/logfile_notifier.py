"""Status log file recorder."""

import logging
from pathlib import Path

from watchping.errors import LogFileNotWritableError
from watchping.monitor.models import CycleReport, StateVerdict
from watchping.notifications.base import Notifier

logger = logging.getLogger(__name__)

SEPARATOR = "-----"


class LogFileNotifier(Notifier):
    """Appends the full report of every cycle to a text file."""

    name = "logfile"
    change_triggered = False

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)

    def check_writable(self) -> None:
        """Create the file if needed, failing early if it cannot be written.

        Raises:
            LogFileNotWritableError: If the file cannot be opened for append.
        """
        try:
            with self.path.open("a", encoding="utf-8"):
                pass
        except OSError as e:
            raise LogFileNotWritableError(f"logfile {self.path}, is not writable: {e}") from e

    def append(self, text: str) -> bool:
        """Append one report block to the file."""
        try:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(f"{SEPARATOR}\n{text}\n")
        except OSError as e:
            self.last_error = f"writing logfile {self.path}: {e}"
            logger.error("Failed to append to %s: %s", self.path, e)
            return False

        self.last_error = None
        return True

    async def notify(self, report: CycleReport, verdict: StateVerdict) -> bool:
        return self.append(report.render_text())
