"""
threadroute core module.

Settings, logging setup and duration helpers shared by the daemon and CLI.
"""

from .config import RouteUpdaterSettings
from .durations import format_duration, parse_duration
from .logging import configure_logging, normalize_log_level

__all__ = [
    "RouteUpdaterSettings",
    "configure_logging",
    "format_duration",
    "normalize_log_level",
    "parse_duration",
]
