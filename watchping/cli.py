"""Command line options.

Flags override environment variables and the .env file.
"""

import argparse
from typing import Any, Dict, List, Optional

from watchping.version import get_version

EPILOG = """\
examples:
  watchping                     # Ping /etc/hosts hosts, email root.
  watchping -e fred@nurk.com    # Email this address instead of root.
  watchping mars phobos         # Ping these servers instead.
  watchping -i prod.txt         # Read host list from prod.txt.
  watchping -w hosts.html       # Generate website of host status.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="watchping",
        description=(
            "Ping servers periodically and alert by email and syslog "
            "only when the set of down hosts changes."
        ),
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("hosts", nargs="*", help="hosts to ping (default: from /etc/hosts)")
    parser.add_argument("-v", "--verbose", action="store_const", const=True,
                        help="print settings on startup and every cycle report")
    parser.add_argument("-e", "--email", dest="mail_to", metavar="ADDR",
                        help="email this address (default: root)")
    parser.add_argument("-E", "--no-email", dest="email_enabled", action="store_const", const=False,
                        help="don't send email")
    parser.add_argument("-s", "--syslog-priority", metavar="FACILITY.PRIORITY",
                        help='syslog "facility.priority" (default: user.err)')
    parser.add_argument("-S", "--no-syslog", dest="syslog_enabled", action="store_const", const=False,
                        help="don't send messages to syslog")
    parser.add_argument("-t", "--interval", dest="interval_seconds", type=int, metavar="SECS",
                        help="seconds between cycles (default: 60)")
    parser.add_argument("-l", "--logfile", dest="log_file", metavar="FILE",
                        help="append every cycle report to this file")
    parser.add_argument("-w", "--website", dest="web_file", metavar="FILE",
                        help="write a colour coded HTML status page here")
    parser.add_argument("-i", "--infile", dest="hosts_file", metavar="FILE",
                        help="read the host list from this file")
    parser.add_argument("--timeout", dest="probe_timeout", type=float, metavar="SECS",
                        help="seconds to wait for each ping (default: 2)")
    parser.add_argument("--retries", dest="probe_retries", type=int, metavar="N",
                        help="extra attempts after the first failed ping (default: 0)")
    parser.add_argument("--concurrency", dest="probe_concurrency", type=int, metavar="N",
                        help="hosts pinged at once within a cycle (default: 1)")
    parser.add_argument("--metrics-port", type=int, metavar="PORT",
                        help="serve Prometheus metrics on this port")
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    return parser


SETTING_OPTIONS = (
    "verbose",
    "mail_to",
    "email_enabled",
    "syslog_priority",
    "syslog_enabled",
    "interval_seconds",
    "log_file",
    "web_file",
    "hosts_file",
    "probe_timeout",
    "probe_retries",
    "probe_concurrency",
    "metrics_port",
)


def settings_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Collect the settings given explicitly on the command line."""
    overrides = {
        name: getattr(args, name)
        for name in SETTING_OPTIONS
        if getattr(args, name) is not None
    }
    if args.hosts_file is not None:
        # An explicit host file beats hosts from the environment
        overrides["hosts"] = None
    return overrides


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
