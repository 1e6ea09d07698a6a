"""Version information for WatchPing."""

__version__ = "1.2.0"
__version_info__ = (1, 2, 0)


def get_version() -> str:
    """Get the current version string."""
    return __version__
