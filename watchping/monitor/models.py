"""Per-cycle data structures."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional, Tuple

# Set of hosts classified down or unknown in one cycle
DeadSet = FrozenSet[str]


class HostStatus(Enum):
    """Classification of a single probe."""

    UP = "up"
    DOWN = "down"
    UNKNOWN_HOST = "unknown_host"


class StateVerdict(Enum):
    """Result of comparing two consecutive dead sets."""

    UNCHANGED = "unchanged"
    CHANGED_TO_DOWN = "changed_to_down"
    CHANGED_TO_ALL_UP = "changed_to_all_up"

    @property
    def is_change(self) -> bool:
        return self is not StateVerdict.UNCHANGED


@dataclass(frozen=True)
class ProbeOutcome:
    status: HostStatus
    latency_ms: Optional[float] = None

    @classmethod
    def up(cls, latency_ms: float) -> "ProbeOutcome":
        return cls(HostStatus.UP, latency_ms)

    @classmethod
    def down(cls) -> "ProbeOutcome":
        return cls(HostStatus.DOWN)

    @classmethod
    def unknown_host(cls) -> "ProbeOutcome":
        return cls(HostStatus.UNKNOWN_HOST)

    @property
    def is_dead(self) -> bool:
        return self.status is not HostStatus.UP


@dataclass(frozen=True)
class HostResult:
    """Outcome of probing one configured host."""

    host: str      # As configured
    label: str     # Name reported by ping, falls back to host
    address: str   # Resolved address, empty if unknown
    outcome: ProbeOutcome

    @property
    def line(self) -> str:
        """Human readable status line used by the log, web and mail reports."""
        status = self.outcome.status
        if status is HostStatus.UNKNOWN_HOST:
            return f"{self.address or self.host} unknown hostname"
        if status is HostStatus.UP:
            return f"{self.label} [{self.address}] is up (time = {self.outcome.latency_ms} ms)"
        return f"{self.label} [{self.address}] is down"


@dataclass(frozen=True)
class CycleReport:
    """Results of one probe cycle, in host-list order."""

    timestamp: datetime
    results: Tuple[HostResult, ...]

    @property
    def dead_hosts(self) -> DeadSet:
        return frozenset(r.host for r in self.results if r.outcome.is_dead)

    @property
    def dead_hosts_ordered(self) -> Tuple[str, ...]:
        """Dead hosts in probe order, without duplicates."""
        seen = []
        for r in self.results:
            if r.outcome.is_dead and r.host not in seen:
                seen.append(r.host)
        return tuple(seen)

    @property
    def header(self) -> str:
        return self.timestamp.strftime("%a %b %d %H:%M:%S %Z %Y")

    @property
    def lines(self) -> Tuple[str, ...]:
        return tuple(r.line for r in self.results)

    def render_text(self) -> str:
        """Full report: timestamp line followed by one line per host."""
        return "\n".join([self.header] + [f" {line}" for line in self.lines])
