"""Host list loading."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from watchping.config import Settings, split_hosts, validate_host
from watchping.errors import HostListError

logger = logging.getLogger(__name__)


def read_hosts_file(path: Path) -> List[str]:
    """Read hosts from a text file.

    Hosts may be separated by whitespace or commas; anything after '#' on a
    line is ignored.

    Args:
        path: Host list file.

    Returns:
        Ordered list of hosts.

    Raises:
        HostListError: If the file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise HostListError(f"{path}, is not readable: {e}") from e

    hosts: List[str] = []
    for line in text.splitlines():
        hosts.extend(split_hosts(line.split("#", 1)[0]))
    return hosts


def read_hosts_db(path: Path) -> List[str]:
    """Read addresses from an /etc/hosts style file.

    Only lines starting with a digit are used (IPv4 entries), and only their
    first field.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise HostListError(f"{path}, is not readable: {e}") from e

    return [
        line.split()[0]
        for line in text.splitlines()
        if line[:1].isdigit()
    ]


def load_hosts(settings: Settings, cli_hosts: Optional[Sequence[str]] = None) -> List[str]:
    """Resolve the host list from the highest-precedence configured source.

    Precedence: command line hosts, the ``hosts`` setting, ``hosts_file``,
    then ``hosts_db``.

    Raises:
        HostListError: If a source is unreadable, a host is invalid, or the
            resulting list is empty.
    """
    if cli_hosts:
        hosts, source = list(cli_hosts), "command line"
    elif settings.hosts_list:
        hosts, source = settings.hosts_list, "settings"
    elif settings.hosts_file is not None:
        hosts, source = read_hosts_file(settings.hosts_file), str(settings.hosts_file)
    else:
        hosts, source = read_hosts_db(settings.hosts_db), str(settings.hosts_db)

    try:
        for host in hosts:
            validate_host(host)
    except ValueError as e:
        raise HostListError(f"invalid host in {source}: {e}") from e

    if not hosts:
        raise HostListError(f"no hosts found in {source}")

    logger.debug("Loaded %d hosts from %s", len(hosts), source)
    return hosts
