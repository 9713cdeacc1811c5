"""
Clock Poller - the polling loop that feeds the pulse engine.

Handles:
- Drift-corrected periodic status requests
- Flat retry delay after a failed tick, retried indefinitely
- Cooperative cancellation between ticks and during the network request
- Engine teardown when the loop exits
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Protocol

from clockpulse.core.clock import Clock, PeriodicTimer, RealtimeClock
from clockpulse.pulse.engine import PulseEngine
from clockpulse.pulse.types import ClockStatus, PollerState, PollStats

logger = logging.getLogger(__name__)


class StatusSource(Protocol):
    async def fetch(self) -> ClockStatus: ...


class ClockPoller:
    """
    Fires the engine on a fixed period.

    Each tick:
    1. Waits error_wait_retry_ms first if the previous tick failed
    2. Requests the clock status
    3. On success clears the error flag and forwards the status to the engine
    4. On any failure (source or engine) sets the error flag, records it and
       carries on with the next tick

    The stop event is observed while waiting for a tick, during the retry
    delay and during the request. It never interrupts a pulse: engine.update()
    always runs to completion once called.

    Usage:
        poller = ClockPoller(engine, source)
        stop = asyncio.Event()
        await poller.run(stop)  # returns after stop.set(), engine stopped
    """

    def __init__(
        self,
        engine: PulseEngine,
        source: StatusSource,
        *,
        clock: Optional[Clock] = None,
        name: str = "clock_poller",
    ) -> None:
        self._engine = engine
        self._source = source
        self._settings = engine.settings
        self._clock = clock or RealtimeClock()
        self._name = name

        self._state = PollerState.IDLE
        self._has_error = False
        self._stats = PollStats()
        self._timer: Optional[PeriodicTimer] = None

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def stats(self) -> PollStats:
        return self._stats

    @property
    def has_error(self) -> bool:
        """True when the last tick failed and the next one will wait before requesting."""
        return self._has_error

    async def run(self, stop: asyncio.Event) -> None:
        """Poll until `stop` is set, then stop the engine."""
        if self._state != PollerState.IDLE:
            logger.warning(f"[{self._name}] Cannot run from state: {self._state.value}")
            return

        self._state = PollerState.RUNNING
        self._timer = PeriodicTimer(self._clock, self._settings.poll_interval_ms)
        logger.info(
            f"[{self._name}] Polling {self._settings.remote_clock_time_href} "
            f"every {self._settings.poll_interval_s}s"
        )

        try:
            while await self._timer.wait_for_next_tick(stop):
                if stop.is_set():
                    break
                await self._tick(stop)
        finally:
            self._state = PollerState.STOPPING
            logger.info(f"[{self._name}] Stopping service...")
            self._timer.dispose()
            await self._engine.stop()
            self._state = PollerState.STOPPED
            logger.info(f"[{self._name}] Stopped service.")

    async def _tick(self, stop: asyncio.Event) -> None:
        self._stats.ticks += 1
        try:
            if self._has_error:
                if not await self._clock.sleep_for(self._settings.error_wait_retry_ms, stop):
                    return

            self._stats.requests += 1
            status = await self._fetch(stop)
            if status is None:
                return

            self._has_error = False
            self._record_success(status)
            logger.info(
                f"[{self._name}] Time requested at {datetime.now().strftime('%H:%M:%S')}: "
                f"server time is {status.time.strftime('%H:%M')}"
            )
            await self._engine.update(status)

        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._has_error = True
            self._record_failure(e)
            logger.error(f"[{self._name}] Error at: {datetime.now().isoformat()}. Reason: {e}")

    async def _fetch(self, stop: asyncio.Event) -> Optional[ClockStatus]:
        """Run the request, abandoning it if `stop` is set first."""
        fetch_task = asyncio.ensure_future(self._source.fetch())
        stop_task = asyncio.ensure_future(stop.wait())
        try:
            done, _ = await asyncio.wait(
                {fetch_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
            )
            if fetch_task in done:
                return fetch_task.result()
            logger.debug(f"[{self._name}] Request abandoned, stop requested")
            return None
        finally:
            for task in (fetch_task, stop_task):
                if not task.done():
                    task.cancel()
                    try:
                        await task
                    except asyncio.CancelledError:
                        pass

    def _record_success(self, status: ClockStatus) -> None:
        self._stats.successes += 1
        self._stats.consecutive_failures = 0
        self._stats.last_success_at = datetime.now(timezone.utc)
        self._stats.last_server_time = status.time

    def _record_failure(self, error: Exception) -> None:
        self._stats.failures += 1
        self._stats.consecutive_failures += 1
        self._stats.last_error = str(error)
        self._stats.last_error_at = datetime.now(timezone.utc)
