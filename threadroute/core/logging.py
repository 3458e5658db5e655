"""Central logging configuration helpers for threadroute."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Mapping

from loguru import logger

DEFAULT_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line} - {message}"
)

_LEVEL_ALIASES = {
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "WARN": "WARNING",
    "WARNING": "WARNING",
    "ERROR": "ERROR",
}


def normalize_log_level(level: str | None) -> str:
    """Map an operator supplied level onto a loguru level name.

    Unknown or empty values fall back to INFO.
    """
    if not level:
        return "INFO"
    return _LEVEL_ALIASES.get(level.strip().upper(), "INFO")


def configure_logging(
    level: str,
    *,
    debug_scopes: Iterable[str] = (),
    colorize: bool = False,
) -> tuple[int, ...]:
    """Configure loguru with module-based debug filtering."""
    logger.remove()

    level_name = normalize_log_level(level)
    handler_ids: list[int] = [
        logger.add(
            sys.stderr,
            level=level_name,
            format=DEFAULT_LOG_FORMAT,
            colorize=colorize,
        )
    ]

    scopes = tuple(scope.strip() for scope in debug_scopes if scope.strip())
    if scopes and level_name != "DEBUG":

        def _debug_filter(record: object) -> bool:
            if not isinstance(record, Mapping):
                return False
            level = record.get("level")
            if getattr(level, "name", None) != "DEBUG":
                return False
            record_name = record.get("name", "")

            for scope in scopes:
                if record_name.startswith(scope):
                    return True
                if not scope.startswith("threadroute.") and record_name.startswith(
                    f"threadroute.{scope}"
                ):
                    return True
            return False

        handler_ids.append(
            logger.add(
                sys.stderr,
                level="DEBUG",
                format=DEFAULT_LOG_FORMAT,
                colorize=colorize,
                filter=_debug_filter,
            )
        )

    return tuple(handler_ids)
