"""Time utilities for the memory vault.

Provides the wall-clock source used for entry timestamps with:
- UTC discipline: epoch seconds are always UTC
- ISO-8601 formatting for display and export
- Injectable clocks so tests and replays control timestamps
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from .errors import InvalidInputError

__all__ = [
    "Clock",
    "FixedClock",
    "StepClock",
    "as_epoch_seconds",
    "epoch_seconds",
    "format_epoch_iso8601",
    "format_utc_iso8601",
    "get_current_utc",
    "parse_utc_iso8601",
]

Clock = Callable[[], int]
"""Type alias for clock callables returning epoch seconds."""


def get_current_utc() -> datetime:
    """Get current time in UTC.

    Returns
    -------
    datetime
        Current time in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def epoch_seconds() -> int:
    """Get current wall-clock time as whole seconds since the epoch.

    This is the default vault clock.

    Returns
    -------
    int
        Seconds since 1970-01-01T00:00:00Z
    """
    return int(get_current_utc().timestamp())


def as_epoch_seconds(value: Any) -> int:
    """Coerce a timestamp read from user input to whole epoch seconds.

    Accepts ints, integral floats (YAML and JSON may produce them) and digit
    strings.

    Raises
    ------
    InvalidInputError
        If the value is missing, fractional, negative or not a number
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"timestamp must be epoch seconds, got {value!r}")

    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidInputError(f"timestamp must be whole seconds, got {value!r}")
        seconds = int(value)
    elif isinstance(value, int):
        seconds = value
    elif isinstance(value, str) and value.strip().isdigit():
        seconds = int(value.strip())
    else:
        raise InvalidInputError(f"timestamp must be epoch seconds, got {value!r}")

    if seconds < 0:
        raise InvalidInputError(f"timestamp must not be negative, got {value!r}")
    return seconds


def format_utc_iso8601(dt: datetime) -> str:
    """Format datetime as ISO-8601 UTC string.

    Always converts to UTC before formatting.

    Parameters
    ----------
    dt
        Datetime to format (with or without timezone)

    Returns
    -------
    str
        ISO-8601 UTC string (e.g., "2025-10-08T12:30:00+00:00")

    Example
    -------
    >>> from datetime import datetime, timezone
    >>> dt = datetime(2025, 10, 8, 12, 30, 0, tzinfo=timezone.utc)
    >>> format_utc_iso8601(dt)
    '2025-10-08T12:30:00+00:00'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.isoformat()


def format_epoch_iso8601(seconds: int) -> str:
    """Format epoch seconds as ISO-8601 UTC string.

    Example
    -------
    >>> format_epoch_iso8601(1738281600)
    '2025-01-31T00:00:00+00:00'
    """
    return format_utc_iso8601(datetime.fromtimestamp(seconds, tz=timezone.utc))


def parse_utc_iso8601(iso_string: str) -> datetime:
    """Parse ISO-8601 string to UTC datetime.

    Parameters
    ----------
    iso_string
        ISO-8601 formatted string

    Returns
    -------
    datetime
        Datetime in UTC

    Raises
    ------
    ValueError
        If string is not valid ISO-8601
    """
    # Handle 'Z' suffix (Zulu time = UTC)
    iso_string = iso_string.replace("Z", "+00:00")

    dt = datetime.fromisoformat(iso_string)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt


class FixedClock:
    """Clock frozen at a settable instant.

    Example:
        >>> clock = FixedClock(1738281600)
        >>> clock()
        1738281600
        >>> clock.advance(5)
        >>> clock()
        1738281605
    """

    def __init__(self, now: int) -> None:
        self.now = int(now)

    def __call__(self) -> int:
        return self.now

    def set(self, now: int) -> None:
        self.now = int(now)

    def advance(self, seconds: int = 1) -> None:
        self.now += int(seconds)


class StepClock:
    """Clock that moves forward by a fixed step on every reading.

    Thread-safe, so concurrent callers always observe distinct instants.
    """

    def __init__(self, start: int, step: int = 1) -> None:
        self._next = int(start)
        self._step = int(step)
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            now = self._next
            self._next += self._step
            return now
