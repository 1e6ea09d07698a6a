"""Startup configuration errors and their process exit statuses."""


class ConfigurationError(Exception):
    """Fatal configuration problem detected before the monitoring loop starts."""

    exit_code = 3


class InvalidSettingsError(ConfigurationError):
    """Settings failed validation."""

    exit_code = 3


class HostListError(ConfigurationError):
    """Host list file is unreadable or no hosts were configured."""

    exit_code = 4


class LogFileNotWritableError(ConfigurationError):
    """Status log file cannot be written."""

    exit_code = 5


class WebFileNotWritableError(ConfigurationError):
    """HTML status page cannot be written."""

    exit_code = 6


class PingUnavailableError(ConfigurationError):
    """The ping binary is not on PATH."""

    exit_code = 7
