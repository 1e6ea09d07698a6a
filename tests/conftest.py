"""Shared pytest fixtures."""

import os
from datetime import datetime, timezone

import pytest

# Report timestamps are rendered in the display timezone
os.environ.setdefault("TZ", "UTC")


@pytest.fixture
def make_report():
    """Factory building a CycleReport from (host, status) pairs."""
    from watchping.monitor.models import CycleReport, HostResult, HostStatus, ProbeOutcome

    def _make(*entries, timestamp=None):
        results = []
        for index, (host, status) in enumerate(entries, start=1):
            if status == "up":
                outcome = ProbeOutcome.up(1.5)
            elif status == "down":
                outcome = ProbeOutcome.down()
            else:
                outcome = ProbeOutcome(HostStatus.UNKNOWN_HOST)
            address = host if status == "unknown" else f"10.0.0.{index}"
            results.append(HostResult(host=host, label=host, address=address, outcome=outcome))
        return CycleReport(
            timestamp=timestamp or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
            results=tuple(results),
        )

    return _make
