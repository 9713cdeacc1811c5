"""
Shared types, enums, and data structures for the pulse synchronization module.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class EngineState(str, Enum):
    """
    State machine for PulseEngine.

        [UNINITIALIZED] --first update--> [TRACKING] <--> [FAST_FORWARDING]
                                              |
                                          stop() --> [STOPPING] --> [STOPPED]
    """

    UNINITIALIZED = "uninitialized"
    TRACKING = "tracking"
    FAST_FORWARDING = "fast_forwarding"
    STOPPING = "stopping"
    STOPPED = "stopped"


class PollerState(str, Enum):
    """State machine for ClockPoller."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class Polarity(str, Enum):
    """Voltage applied to the slave clock line."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    ZERO = "zero"


@dataclass(frozen=True, slots=True)
class ClockStatus:
    """Authoritative time report received from the clock status source."""

    time: dt.time
    is_unavailable: bool = False
    is_realtime: bool = False
    is_paused: bool = False

    @property
    def is_actionable(self) -> bool:
        """False when the report carries no position the clocks should follow."""
        return not (self.is_unavailable or self.is_realtime or self.is_paused)


@dataclass(frozen=True, slots=True)
class PositionUpdate:
    """Notification emitted after the analogue clocks moved."""

    minutes: int
    text: str
    fast_forwarded: bool
    remaining: int = 0


@dataclass
class PollStats:
    """Statistics for the polling loop."""

    ticks: int = 0
    requests: int = 0
    successes: int = 0
    failures: int = 0
    consecutive_failures: int = 0
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_server_time: Optional[dt.time] = None
