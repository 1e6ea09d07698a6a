"""Application configuration from environment variables."""

import os
import re
from datetime import datetime
from logging.handlers import SysLogHandler
from pathlib import Path
from typing import List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from pydantic import field_validator
from pydantic_settings import BaseSettings

# RFC 1123 hostname pattern (allows digits at start)
HOSTNAME_PATTERN = re.compile(
    r'^[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?)*$'
)
IPV4_PATTERN = re.compile(r'^(\d{1,3}\.){3}\d{1,3}$')
IPV6_PATTERN = re.compile(r'^[0-9a-fA-F:]+(%[a-zA-Z0-9]+)?$')

DANGEROUS_CHARS = set(';&|`$(){}[]<>\\\'\"!#*?~')


def validate_host(host: str) -> str:
    """Validate a single hostname/IP to prevent command injection.

    Validates against RFC 1123 hostname format and rejects shell metacharacters
    and anything that ping could mistake for an option.
    """
    if not host:
        raise ValueError('host cannot be empty')
    if len(host) > 253:
        raise ValueError(f'hostname too long (max 253 chars): {host}')
    if host.startswith('-'):
        raise ValueError(f'hostname cannot start with "-": {host}')
    if any(c in host for c in DANGEROUS_CHARS):
        raise ValueError(f'hostname contains invalid characters: {host}')

    if not (
        HOSTNAME_PATTERN.match(host)
        or IPV4_PATTERN.match(host)
        or (':' in host and IPV6_PATTERN.match(host))
    ):
        raise ValueError(f'invalid hostname format: {host}')

    return host


def split_hosts(value: Optional[str]) -> List[str]:
    """Split a comma and/or whitespace separated host string."""
    if not value:
        return []
    return [h for h in re.split(r'[\s,]+', value) if h]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Host list sources, in order of precedence after the command line
    hosts: Optional[str] = None        # e.g. "mars,phobos" or "mars phobos"
    hosts_file: Optional[Path] = None  # One host per line, '#' comments
    hosts_db: Path = Path("/etc/hosts")

    @field_validator('hosts')
    @classmethod
    def validate_hosts(cls, v: Optional[str]) -> Optional[str]:
        """Validate every host in the list."""
        for host in split_hosts(v):
            validate_host(host)
        return v

    @property
    def hosts_list(self) -> List[str]:
        """Parse configured hosts into an ordered list."""
        return split_hosts(self.hosts)

    # Probing
    probe_timeout: float = 2.0     # Seconds to wait for each attempt
    probe_retries: int = 0         # Extra attempts after the first one (0 = single attempt)
    probe_concurrency: int = 1     # Hosts probed at once within a cycle
    ping_command: str = "ping"

    @field_validator('probe_timeout')
    @classmethod
    def validate_probe_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError('probe_timeout must be greater than 0')
        return v

    @field_validator('probe_retries')
    @classmethod
    def validate_probe_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError('probe_retries cannot be negative')
        return v

    @field_validator('probe_concurrency')
    @classmethod
    def validate_probe_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError('probe_concurrency must be at least 1')
        return v

    # Scheduling
    interval_seconds: int = 60

    @field_validator('interval_seconds')
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v <= 0:
            raise ValueError('interval_seconds must be greater than 0')
        return v

    # Email alerts
    email_enabled: bool = True
    mail_to: str = "root"
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: str = "watchping@localhost"
    smtp_start_tls: bool = False

    # Syslog alerts
    syslog_enabled: bool = True
    syslog_priority: str = "user.err"  # "facility.priority"
    syslog_address: str = "/dev/log"   # Unix socket path or "host:port"

    @field_validator('syslog_priority')
    @classmethod
    def validate_syslog_priority(cls, v: str) -> str:
        """Validate a "facility.priority" pair against syslog names."""
        facility, sep, priority = v.lower().partition('.')
        if not sep:
            raise ValueError('syslog_priority must look like "facility.priority"')
        if facility not in SysLogHandler.facility_names:
            raise ValueError(f'unknown syslog facility: {facility}')
        if priority not in SysLogHandler.priority_names:
            raise ValueError(f'unknown syslog priority: {priority}')
        return f"{facility}.{priority}"

    @property
    def syslog_socket_address(self) -> Union[str, Tuple[str, int]]:
        """Address for SysLogHandler: a socket path or a (host, port) tuple."""
        if self.syslog_address.startswith('/'):
            return self.syslog_address
        host, _, port = self.syslog_address.rpartition(':')
        if host and port.isdigit():
            return (host, int(port))
        return (self.syslog_address, 514)

    # Unconditional recorders
    log_file: Optional[Path] = None
    web_file: Optional[Path] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"
    app_log_file: Optional[Path] = None

    # Prometheus exporter (disabled when unset)
    metrics_port: Optional[int] = None

    verbose: bool = False

    # Timezone for display (reads from TZ env var, defaults to UTC)
    display_timezone: str = os.getenv("TZ", "UTC")

    @property
    def tz(self) -> ZoneInfo:
        """Get timezone object for configured display timezone."""
        try:
            return ZoneInfo(self.display_timezone)
        except Exception:
            return ZoneInfo("UTC")

    @property
    def email_configured(self) -> bool:
        """Check if email alerts can be sent."""
        return self.email_enabled and bool(self.mail_to) and bool(self.smtp_host)

    class Config:
        env_prefix = "WATCHPING_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore unknown environment variables


def to_local_time(dt: datetime, tz: Optional[ZoneInfo] = None) -> datetime:
    """Convert a datetime to the display timezone.

    Args:
        dt: Datetime object (assumed UTC if naive).
        tz: Target timezone. Defaults to UTC.

    Returns:
        Timezone-aware datetime in the target timezone.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo("UTC"))
    return dt.astimezone(tz or ZoneInfo("UTC"))
