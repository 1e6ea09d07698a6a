"""Classification of raw ping output.

Understands the output of iputils (Linux), BusyBox and BSD/macOS ping. The
classification precedence is fixed:

1. a name resolution failure marker means ``UNKNOWN_HOST``, even if some
   latency text is also present;
2. otherwise a round-trip statistics line means ``UP`` with its average
   latency, even if some packets were lost;
3. anything else is ``DOWN``, including zero packets with no error text.
"""

import re
from typing import TYPE_CHECKING, Optional, Tuple

from watchping.monitor.models import ProbeOutcome

if TYPE_CHECKING:
    from watchping.probe.runner import RawProbeResult

# "PING mars (10.0.0.1) 56(84) bytes of data." / "PING mars (10.0.0.1): 56 data bytes"
HEADER_RE = re.compile(r"^PING\s+(\S+)\s+\(([^)]*)\)", re.MULTILINE)

# "rtt min/avg/max/mdev = 0.1/0.2/0.3/0.0 ms" / "round-trip min/avg/max = 0.1/0.2/0.3 ms"
RTT_RE = re.compile(
    r"(?:rtt|round-trip)\s+min/avg/max(?:/\w+)?\s*=\s*"
    r"([\d.]+)/([\d.]+)/([\d.]+)"
)

# Resolution failure markers, with the unresolvable name captured where present
RESOLUTION_FAILURE_RES = (
    re.compile(r"bad address '([^']*)'"),                               # BusyBox
    re.compile(r"ping:\s*(\S+?):\s*Name or service not known"),         # iputils
    re.compile(r"ping:\s*(\S+?):\s*Temporary failure in name resolution"),
    re.compile(r"ping:\s*(\S+?):\s*No address associated with hostname"),
    re.compile(r"cannot resolve\s+(\S+?):"),                            # macOS
    re.compile(r"unknown host\s+(\S+)"),
    re.compile(r"(?:Name or service not known|unknown host|Unknown host)"),
)


def find_unresolved_name(output: str) -> Optional[str]:
    """Return the unresolvable name, "" if a marker had no name, else None."""
    for pattern in RESOLUTION_FAILURE_RES:
        match = pattern.search(output)
        if match:
            return match.group(1) if match.groups() else ""
    return None


def is_resolution_failure(output: str) -> bool:
    """Check whether ping output reports a name resolution failure."""
    return find_unresolved_name(output) is not None


def parse_latency(output: str) -> Optional[float]:
    """Extract the average round-trip time in ms, if any reply was received."""
    match = RTT_RE.search(output)
    if match:
        return float(match.group(2))
    return None


def classify(raw: "RawProbeResult") -> Tuple[str, str, ProbeOutcome]:
    """Classify a raw probe result.

    Args:
        raw: Result returned by the probe runner.

    Returns:
        Tuple of (host label, address or "", outcome).
    """
    output = raw.output or ""

    unresolved = find_unresolved_name(output)
    if unresolved is not None:
        return raw.host, unresolved or raw.host, ProbeOutcome.unknown_host()

    label, address = raw.host, ""
    header = HEADER_RE.search(output)
    if header:
        label, address = header.group(1), header.group(2)

    latency = parse_latency(output)
    if latency is not None:
        return label, address, ProbeOutcome.up(latency)

    return label, address, ProbeOutcome.down()
