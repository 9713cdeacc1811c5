"""
Time-of-day arithmetic for analogue clock positions.

A position is the number of whole minutes since the top of the dial, normalized
to the dial modulus: 720 minutes for a 12-hour dial, 1440 for a 24-hour dial.
Seconds are dropped because a slave clock only ever moves in whole minutes.
"""

from __future__ import annotations

import datetime as dt
from typing import Final, Union

MINUTES_PER_HOUR: Final[int] = 60
MINUTES_12H: Final[int] = 12 * MINUTES_PER_HOUR
MINUTES_24H: Final[int] = 24 * MINUTES_PER_HOUR

TimeLike = Union[dt.time, str]


def modulus_for(use_12_hour_clock: bool) -> int:
    """Number of minutes in one full turn of the dial."""
    return MINUTES_12H if use_12_hour_clock else MINUTES_24H


def parse_time_of_day(text: str) -> dt.time:
    """
    Parse 'HH:MM' or 'HH:MM:SS' into a datetime.time.

    Raises ValueError for anything else, including out-of-range fields.
    """
    parts = text.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.strip().isdigit() for p in parts):
        raise ValueError(f"Invalid time of day: {text!r}")
    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    return dt.time(hour, minute, second)


def to_minutes(value: TimeLike, use_12_hour_clock: bool) -> int:
    """Normalize a time of day to a dial position in minutes."""
    if isinstance(value, str):
        value = parse_time_of_day(value)
    total = value.hour * MINUTES_PER_HOUR + value.minute
    return total % modulus_for(use_12_hour_clock)


def add_one_minute(minutes: int, use_12_hour_clock: bool) -> int:
    return (minutes + 1) % modulus_for(use_12_hour_clock)


def forward_distance(current: int, target: int, use_12_hour_clock: bool) -> int:
    """Minutes the hands must travel forward from `current` to reach `target`."""
    return (target - current) % modulus_for(use_12_hour_clock)


def is_one_minute_before(current: int, target: int, use_12_hour_clock: bool) -> bool:
    return add_one_minute(current, use_12_hour_clock) == target


def minute_of_hour(minutes: int) -> int:
    return minutes % MINUTES_PER_HOUR


def format_minutes(minutes: int, use_12_hour_clock: bool) -> str:
    """
    Render a position as 'HH:MM'.

    A 12-hour dial shows position 0 as 12:00, the way the hands read.
    """
    hour, minute = divmod(minutes % modulus_for(use_12_hour_clock), MINUTES_PER_HOUR)
    if use_12_hour_clock and hour == 0:
        hour = 12
    return f"{hour:02d}:{minute:02d}"


def to_time(minutes: int) -> dt.time:
    hour, minute = divmod(minutes % MINUTES_24H, MINUTES_PER_HOUR)
    return dt.time(hour, minute)
