"""Duration parsing for token lifetimes (``"15m"``, ``"7d"``)."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Final

DEFAULT_ACCESS_TTL: Final[timedelta] = timedelta(minutes=15)
DEFAULT_REFRESH_TTL: Final[timedelta] = timedelta(days=7)
# Longest accepted lifetime.
MAX_TTL: Final[timedelta] = timedelta(days=365 * 100)

_DURATION_RE: Final = re.compile(r"^(\d{1,15})([smhd])$")
_UNIT_SECONDS: Final[dict[str, int]] = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
}

_MAX_SECONDS: Final[int] = int(MAX_TTL.total_seconds())

Duration = str | int | timedelta


def duration_to_seconds(value: Duration) -> int | None:
    """
    Map a duration to a whole number of seconds.

    Accepts ``<integer><unit>`` strings (unit in ``s``, ``m``, ``h``, ``d``),
    non-negative integer seconds, or a non-negative :class:`~datetime.timedelta`.
    Values longer than :data:`MAX_TTL` are rejected.

    :param value: Duration to convert.
    :returns: Seconds, or ``None`` when the value is not understood.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds())
    elif isinstance(value, int):
        seconds = value
    elif isinstance(value, str):
        match = _DURATION_RE.match(value.strip())
        if not match:
            return None
        seconds = int(match.group(1)) * _UNIT_SECONDS[match.group(2)]
    else:
        return None
    if seconds < 0 or seconds > _MAX_SECONDS:
        return None
    return seconds


def parse_duration(value: Duration | None, default: timedelta) -> timedelta:
    """
    Parse ``value`` into a :class:`~datetime.timedelta`, falling back to ``default``.

    The fallback is silent here; callers that want to fail closed should use
    :func:`duration_to_seconds` and check for ``None``.
    """
    if value is None:
        return default
    seconds = duration_to_seconds(value)
    if seconds is None:
        return default
    return timedelta(seconds=seconds)
