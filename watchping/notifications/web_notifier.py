"""HTML status page recorder."""

import logging
import os
from contextlib import suppress
from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader, select_autoescape

from watchping.errors import WebFileNotWritableError
from watchping.monitor.models import CycleReport, HostStatus, StateVerdict
from watchping.notifications.base import Notifier

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

# Red is bad, green is good, blue is unknown
STATUS_COLORS = {
    HostStatus.DOWN: "#FF0000",
    HostStatus.UNKNOWN_HOST: "#0000AA",
    HostStatus.UP: "#00AA00",
}

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


def _build_entries(report: CycleReport) -> List[Dict[str, str]]:
    return [
        {
            "text": result.line,
            "status": result.outcome.status.value,
            "color": STATUS_COLORS[result.outcome.status],
        }
        for result in report.results
    ]


def render_report_html(report: CycleReport) -> str:
    """Render a cycle report as a colour coded HTML page."""
    template = _env.get_template("report.html")
    return template.render(
        title=report.header,
        entries=_build_entries(report),
        dead_count=len(report.dead_hosts),
        host_count=len(report.results),
    )


class WebPageNotifier(Notifier):
    """Rewrites an HTML status page after every cycle."""

    name = "web"
    change_triggered = False

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)

    @property
    def tmp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    def check_writable(self) -> None:
        """Create the page if needed, failing early if it cannot be written.

        Pages are replaced through a temporary sibling, so the directory must
        be writable too.

        Raises:
            WebFileNotWritableError: If the page or its sibling cannot be written.
        """
        try:
            with self.path.open("a", encoding="utf-8"):
                pass
            with self.tmp_path.open("w", encoding="utf-8"):
                pass
            self.tmp_path.unlink()
        except OSError as e:
            raise WebFileNotWritableError(f"website {self.path}, is not writable: {e}") from e

    def render(self, report: CycleReport) -> bool:
        """Render and write the page, replacing the previous one atomically."""
        tmp_path = self.tmp_path
        try:
            tmp_path.write_text(render_report_html(report), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            with suppress(OSError):
                tmp_path.unlink()
            self.last_error = f"writing website {self.path}: {e}"
            logger.error("Failed to write %s: %s", self.path, e)
            return False

        self.last_error = None
        return True

    async def notify(self, report: CycleReport, verdict: StateVerdict) -> bool:
        return self.render(report)
