"""Duration parsing and formatting for settings and status output.

Durations are written the way operators already write them for the daemon's
environment variables: ``90s``, ``10m``, ``1h30m``, ``1.5h``.
"""

from __future__ import annotations

import re

from threadroute.datastructures.type_aliases import DurationSeconds

_UNIT_SECONDS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> DurationSeconds:
    """Parse a duration string into seconds.

    Raises:
        ValueError: if the text is not a valid duration.
    """
    value = text.strip()
    if not value:
        raise ValueError("empty duration")

    sign = 1.0
    if value[0] in "+-":
        sign = -1.0 if value[0] == "-" else 1.0
        value = value[1:]

    if value == "0":
        return 0.0

    total = 0.0
    position = 0
    while position < len(value):
        match = _COMPONENT_RE.match(value, position)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        number, unit = match.groups()
        total += float(number) * _UNIT_SECONDS[unit]
        position = match.end()

    if position == 0:
        raise ValueError(f"invalid duration {text!r}")
    return sign * total


def format_duration(seconds: DurationSeconds) -> str:
    """Render seconds as a short human string: ``30s``, ``5m``, ``2h30m``."""
    if seconds < 60:
        return f"{seconds:.0f}s"
    if seconds < 3600:
        return f"{seconds / 60:.0f}m"
    hours = int(seconds // 3600)
    minutes = int(seconds // 60) % 60
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h{minutes}m"
