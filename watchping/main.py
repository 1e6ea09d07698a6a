"""Main entry point for WatchPing."""

import asyncio
import logging
import signal
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import List, Optional, Sequence

from prometheus_client import start_http_server
from pydantic import ValidationError

from watchping.cli import parse_args, settings_overrides
from watchping.config import Settings
from watchping.errors import ConfigurationError, InvalidSettingsError
from watchping.hosts import load_hosts
from watchping.monitor.monitor import Monitor
from watchping.probe.runner import attempt_count, ensure_ping_available
from watchping.scheduler.job_scheduler import pause_scheduler, shutdown_scheduler, start_scheduler
from watchping.version import __version__

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure logging based on settings.

    Logs go to stdout and, when ``app_log_file`` is set, to a rotating file.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.app_log_file is not None:
        settings.app_log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            settings.app_log_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8",
        ))

    if settings.log_format == "json":
        from pythonjsonlogger import jsonlogger

        class CustomJsonFormatter(jsonlogger.JsonFormatter):
            """Custom JSON formatter with additional fields."""

            def add_fields(self, log_record, record, message_dict):
                super().add_fields(log_record, record, message_dict)
                log_record["timestamp"] = datetime.utcnow().isoformat() + "Z"
                log_record["level"] = record.levelname
                log_record["logger"] = record.name
                log_record["service"] = "watchping"

        formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s"
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    for handler in handlers:
        handler.setFormatter(formatter)

    # Configure root logger
    logging.root.handlers = []
    for handler in handlers:
        logging.root.addHandler(handler)
    logging.root.setLevel(log_level)

    # Reduce noise from third-party loggers
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("aiosmtplib").setLevel(logging.WARNING)


def log_startup(settings: Settings, hosts: Sequence[str]) -> None:
    """Log effective settings. Verbose mode logs them at INFO."""
    level = logging.INFO if settings.verbose else logging.DEBUG
    logger.info("Starting WatchPing v%s", __version__)
    logger.log(level, "Sleep interval: %d secs", settings.interval_seconds)
    logger.log(
        level,
        "Probe timeout: %.1f secs, attempts: %d",
        settings.probe_timeout,
        attempt_count(settings.probe_retries),
    )
    if settings.email_configured:
        logger.log(level, "Email address: %s", settings.mail_to)
    if settings.syslog_enabled:
        logger.log(level, "Syslog priority: %s", settings.syslog_priority)
    if settings.log_file:
        logger.log(level, "Logfile: %s", settings.log_file)
    if settings.web_file:
        logger.log(level, "Website: %s", settings.web_file)
    logger.info("Checking %d hosts: %s", len(hosts), " ".join(hosts))


async def stop_monitoring(monitor: Monitor) -> None:
    """Stop scheduling, let the cycle in flight finish, then shut down."""
    pause_scheduler()
    await monitor.wait_idle()
    shutdown_scheduler()


async def run(monitor: Monitor, interval_seconds: int) -> None:
    """Run cycles until SIGINT or SIGTERM, then let the current cycle finish."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    start_scheduler(monitor, interval_seconds)
    try:
        await stop.wait()
        logger.info("Shutdown requested")
    finally:
        await stop_monitoring(monitor)
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
    logger.info("Shutdown complete")


def main(argv: Optional[List[str]] = None) -> int:
    """Run the application.

    Returns:
        Process exit status. Configuration errors have their own codes.
    """
    args = parse_args(argv)

    try:
        settings = Settings(**settings_overrides(args))
    except ValidationError as e:
        print(f"ERROR: invalid settings: {e}", file=sys.stderr)
        return InvalidSettingsError.exit_code

    configure_logging(settings)

    try:
        ensure_ping_available(settings.ping_command)
        hosts = load_hosts(settings, args.hosts)
        monitor = Monitor.from_settings(settings, hosts)
    except ConfigurationError as e:
        logger.error("ERROR: %s", e)
        return e.exit_code

    log_startup(settings, hosts)

    if settings.metrics_port:
        start_http_server(settings.metrics_port)
        logger.info("Metrics exporter listening on port %d", settings.metrics_port)

    asyncio.run(run(monitor, settings.interval_seconds))
    return 0


if __name__ == "__main__":
    sys.exit(main())
