"""
now() provides the monotonic notion of time for the poller and the pulse engine.
sleep_until() and sleep_for() pause until a deadline and can be woken early by a
stop event. PeriodicTimer builds drift-corrected ticks on top of a Clock. Used by
 - ClockPoller, to fire a status request every poll interval
 - PulseEngine, to space fast-forward steps
 - tests, through SimClock, to drive both deterministically
"""

import asyncio
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

Millis = int

# -------- Exceptions -----------------------------------------------------------


class ClockError(RuntimeError):
    """Raised when a clock operation would violate its invariants
    (e.g., going backward, using a disposed timer).
    """


# -------- Utilities -----------------------------------------------------------


def align_forward(ts_ms: Millis, interval_ms: Millis, offset_ms: Millis = 0) -> Millis:
    """
    Find the smallest grid timestamp that is greater or equal to ts_ms.
    The grid is defined by interval_ms and shifted by offset_ms.
    """
    if interval_ms <= 0:
        raise ValueError("align_forward: interval_ms must be > 0")

    n = math.ceil((ts_ms - offset_ms) / interval_ms)
    return offset_ms + n * interval_ms


# -------- Interface -----------------------------------------------------------


class Clock(ABC):
    """
    Time source interface.

    All timestamps are milliseconds (int) and must be monotonic non-decreasing.
    Sleeps accept an optional stop event; when it is set the sleep returns early
    and reports False.
    """

    @abstractmethod
    def now(self) -> Millis:
        """Current time in milliseconds (monotonic)."""
        raise NotImplementedError

    @abstractmethod
    async def sleep_until(self, ts_ms: Millis, stop: Optional[asyncio.Event] = None) -> bool:
        """
        Await until the clock reaches ts_ms.

        Returns True when the deadline was reached, False when `stop` was set first.
        """
        raise NotImplementedError

    async def sleep_for(self, delta_ms: Millis, stop: Optional[asyncio.Event] = None) -> bool:
        """Sleep for a relative duration (>= 0)."""
        if delta_ms < 0:
            raise ValueError("Clock.sleep_for: delta_ms must be non-negative")
        return await self.sleep_until(self.now() + int(delta_ms), stop)

    @property
    @abstractmethod
    def is_realtime(self) -> bool:
        """True for RealtimeClock; False for SimClock."""
        raise NotImplementedError


# -------- RealtimeClock -------------------------------------------------------


@dataclass
class RealtimeClock(Clock):
    """
    Realtime clock based on time.monotonic(), so NTP adjustments of the wall
    clock never shorten or stretch a poll interval or a pulse.

    Sleeps are chunked so a stop event is noticed within `sleep_chunk_ms`.
    """

    sleep_chunk_ms: int = 100

    _t0_mono: Optional[float] = None

    def __post_init__(self) -> None:
        self._t0_mono = time.monotonic()
        self.sleep_chunk_ms = max(5, int(self.sleep_chunk_ms))

    @property
    def is_realtime(self) -> bool:
        return True

    def now(self) -> Millis:
        if self._t0_mono is None:
            raise ClockError("Clock not properly initialized")
        return int((time.monotonic() - self._t0_mono) * 1000)

    async def sleep_until(self, ts_ms: Millis, stop: Optional[asyncio.Event] = None) -> bool:
        while True:
            if stop is not None and stop.is_set():
                return False
            remaining = ts_ms - self.now()
            if remaining <= 0:
                return True
            chunk = min(remaining, self.sleep_chunk_ms)
            if stop is None:
                await asyncio.sleep(chunk / 1000.0)
                continue
            try:
                await asyncio.wait_for(stop.wait(), timeout=chunk / 1000.0)
            except asyncio.TimeoutError:
                pass


# -------- SimClock ------------------------------------------------------------


class SimClock(Clock):
    """
    Deterministic, manually-advanced clock.

    Sleeping is time travel: the clock jumps to the deadline and yields control
    once. `sleeps` records every requested deadline so tests can assert spacing.
    """

    def __init__(self, start_ms: Millis = 0):
        if start_ms < 0:
            raise ValueError("start_ms must be >= 0")
        self._current_ms: Millis = int(start_ms)
        self.sleeps: list[Millis] = []

    @property
    def is_realtime(self) -> bool:
        return False

    def now(self) -> Millis:
        return self._current_ms

    def advance_to(self, ts_ms: Millis) -> Millis:
        """Move forward to exactly ts_ms. Raises ClockError on backward moves."""
        if ts_ms < self._current_ms:
            raise ClockError(f"SimClock: cannot go backwards: {ts_ms} < {self._current_ms}")
        self._current_ms = ts_ms
        return self._current_ms

    def advance_by(self, delta_ms: Millis) -> Millis:
        if delta_ms < 0:
            raise ClockError(f"SimClock: cannot go backwards, delta_ms < 0: {delta_ms}")
        return self.advance_to(self._current_ms + int(delta_ms))

    async def sleep_until(self, ts_ms: Millis, stop: Optional[asyncio.Event] = None) -> bool:
        if stop is not None and stop.is_set():
            return False
        self.sleeps.append(ts_ms)
        if ts_ms > self._current_ms:
            self.advance_to(ts_ms)
        await asyncio.sleep(0)
        return not (stop is not None and stop.is_set())


# -------- PeriodicTimer -------------------------------------------------------


class PeriodicTimer:
    """
    Drift-corrected periodic timer.

    The first tick is due one period after construction. Every wait targets the
    next scheduled tick on the grid anchored at construction time, never
    "now + period", so latency spent between waits does not accumulate. Ticks
    missed because the caller was busy are coalesced into one immediate tick.

    Usage:
        timer = PeriodicTimer(clock, period_ms=2000)
        while await timer.wait_for_next_tick(stop_event):
            ...
        timer.dispose()
    """

    def __init__(self, clock: Clock, period_ms: Millis) -> None:
        if period_ms <= 0:
            raise ClockError(f"PeriodicTimer: period_ms must be positive, got {period_ms}")
        self._clock = clock
        self._period_ms = int(period_ms)
        self._origin_ms = clock.now()
        self._next_tick_ms = self._origin_ms + self._period_ms
        self._disposed = False

    @property
    def period_ms(self) -> Millis:
        return self._period_ms

    @property
    def next_tick_ms(self) -> Millis:
        return self._next_tick_ms

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    async def wait_for_next_tick(self, stop: Optional[asyncio.Event] = None) -> bool:
        """
        Wait for the next tick.

        Returns False when the timer is disposed or `stop` is set before the tick.
        """
        if self._disposed:
            return False

        target = self._next_tick_ms
        reached = await self._clock.sleep_until(target, stop)
        if not reached or self._disposed:
            return False

        following = target + self._period_ms
        now = self._clock.now()
        if following <= now:
            # coalesce missed ticks onto the grid
            following = align_forward(now + 1, self._period_ms, self._origin_ms)
        self._next_tick_ms = following
        return True

    def dispose(self) -> None:
        self._disposed = True
