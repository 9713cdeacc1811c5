"""
Pulse Synchronization Engine.

Keeps the modeled position of the analogue clocks, compares it with every
authoritative status report and moves the clocks by emitting polarity-encoded
pulses to all sinks:
- one step when the report is exactly one minute ahead
- a fast-forward run on its own tighter timer for any other difference
- alternating polarity by minute parity so bipolar mechanisms keep stepping
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable, Optional

from clockpulse.core.clock import Clock, PeriodicTimer, RealtimeClock
from clockpulse.core.clock_time import (
    TimeLike,
    add_one_minute,
    forward_distance,
    format_minutes,
    is_one_minute_before,
    minute_of_hour,
    to_minutes,
)
from clockpulse.pulse.config import EngineSettings
from clockpulse.pulse.errors import EngineError
from clockpulse.pulse.types import ClockStatus, EngineState, Polarity, PositionUpdate
from clockpulse.sinks.base import (
    FastForwardAware,
    PulseSink,
    SupportsAclose,
    SupportsClose,
    sink_name,
)

logger = logging.getLogger(__name__)

_BOLD_YELLOW = "\x1b[1m\x1b[33m"
_RESET = "\x1b[39m\x1b[22m"


class PulseEngine:
    """
    Drives a fixed, ordered set of sinks so the analogue clocks follow the
    authoritative time.

    The engine never creates or destroys sinks; it starts them lazily on the
    first update and stops and releases them in stop(). Sink calls are made
    sequentially in enumeration order, each awaited before the next.

    State Machine:
        [UNINITIALIZED] --update()--> [TRACKING] <--> [FAST_FORWARDING]
                                          |
                                       stop() --> [STOPPING] --> [STOPPED]

    Usage:
        engine = PulseEngine(settings, [LoggingSink(), serial_sink])
        await engine.update(status)
        # ... every poll ...
        await engine.stop()
    """

    def __init__(
        self,
        settings: EngineSettings,
        sinks: Iterable[PulseSink],
        *,
        start_time: Optional[TimeLike] = None,
        clock: Optional[Clock] = None,
        on_position: Optional[Callable[[PositionUpdate], Awaitable[None]]] = None,
        name: str = "pulse_engine",
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Engine settings
            sinks: Ordered sinks receiving lifecycle and pulse commands
            start_time: Position the clocks show now; defaults to the configured start time
            clock: Time source for pulse and fast-forward timing
            on_position: Optional callback after every completed step
            name: Name for logging purposes
        """
        self._settings = settings
        self._sinks: tuple[PulseSink, ...] = tuple(sinks)
        for sink in self._sinks:
            if not isinstance(sink, PulseSink):
                raise EngineError(
                    f"{sink_name(sink)} does not implement the pulse sink interface",
                    component=name,
                )
        self._clock = clock or RealtimeClock()
        self._on_position = on_position
        self._name = name

        initial = start_time if start_time is not None else settings.start_time
        self._modeled = to_minutes(initial, settings.use_12_hour_clock)
        self._last_authoritative: Optional[int] = None
        self._state = EngineState.UNINITIALIZED

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def sinks(self) -> tuple[PulseSink, ...]:
        return self._sinks

    @property
    def modeled_minutes(self) -> int:
        """Where the engine believes the analogue clocks stand, in dial minutes."""
        return self._modeled

    @property
    def modeled_time_text(self) -> str:
        return self._format(self._modeled)

    @property
    def last_authoritative_minutes(self) -> Optional[int]:
        return self._last_authoritative

    @property
    def installed_sink_types(self) -> list[str]:
        return [sink_name(s) for s in self._sinks]

    def _format(self, minutes: int) -> str:
        return format_minutes(minutes, self._settings.use_12_hour_clock)

    # --- Lifecycle ---

    async def _start_sinks(self) -> None:
        for sink in self._sinks:
            await sink.start()
        self._state = EngineState.TRACKING
        logger.info(
            f"[{self._name}] Started {len(self._sinks)} sink(s) at analogue time "
            f"{self.modeled_time_text}"
        )

    async def stop(self) -> None:
        """
        Stop every sink, then release resources in two ordered passes:
        synchronous close() first, then asynchronous aclose().

        A failing sink is logged and does not prevent its peers from being
        stopped and released.
        """
        if self._state in (EngineState.STOPPING, EngineState.STOPPED):
            return

        logger.info(f"[{self._name}] Disposing...")
        self._state = EngineState.STOPPING

        for sink in self._sinks:
            try:
                await sink.stop()
            except Exception as e:
                logger.warning(f"[{self._name}] Error stopping {sink_name(sink)}: {e}")

        for sink in self._sinks:
            if isinstance(sink, SupportsClose):
                try:
                    sink.close()
                except Exception as e:
                    logger.warning(f"[{self._name}] Error closing {sink_name(sink)}: {e}")

        for sink in self._sinks:
            if isinstance(sink, SupportsAclose):
                try:
                    await sink.aclose()
                except Exception as e:
                    logger.warning(f"[{self._name}] Error closing {sink_name(sink)}: {e}")

        self._state = EngineState.STOPPED
        logger.info(f"[{self._name}] Disposed")

    # --- Update ---

    async def update(self, status: ClockStatus) -> None:
        """
        Bring the analogue clocks to the time in `status`.

        Sink failures propagate; the modeled time then stays at the last
        completed step and the next update closes the gap.
        """
        if self._state in (EngineState.STOPPING, EngineState.STOPPED):
            logger.warning(f"[{self._name}] Update ignored, engine is {self._state.value}")
            return

        if self._state == EngineState.UNINITIALIZED:
            await self._start_sinks()

        if not status.is_actionable:
            logger.debug(
                f"[{self._name}] Status not actionable "
                f"(unavailable={status.is_unavailable}, realtime={status.is_realtime}, "
                f"paused={status.is_paused})"
            )
            return

        twelve = self._settings.use_12_hour_clock
        target = to_minutes(status.time, twelve)
        self._last_authoritative = target

        if target == self._modeled:
            return

        if is_one_minute_before(self._modeled, target, twelve):
            await self._step_once()
            self._modeled = target
            await self._notify(PositionUpdate(target, self._format(target), fast_forwarded=False))
        else:
            await self._fast_forward(target)

        logger.info(f"{_BOLD_YELLOW}Updated analogue time: {self.modeled_time_text}{_RESET}")

    async def _fast_forward(self, target: int) -> None:
        twelve = self._settings.use_12_hour_clock
        distance = forward_distance(self._modeled, target, twelve)
        from_text, to_text = self.modeled_time_text, self._format(target)
        logger.info(
            f"[{self._name}] Fast forwarding {distance} minute(s) from {from_text} to {to_text}"
        )

        self._state = EngineState.FAST_FORWARDING
        await self._notify_fast_forward_started(from_text, to_text)

        timer = PeriodicTimer(self._clock, self._settings.fast_forward_interval_ms)
        try:
            while self._modeled != target:
                await timer.wait_for_next_tick()
                await self._step_once()
                self._modeled = add_one_minute(self._modeled, twelve)
                logger.info(
                    f"{_BOLD_YELLOW}Fast forwarding analogue time: {self.modeled_time_text}{_RESET}"
                )
                await self._notify(
                    PositionUpdate(
                        self._modeled,
                        self.modeled_time_text,
                        fast_forwarded=True,
                        remaining=forward_distance(self._modeled, target, twelve),
                    )
                )
        finally:
            timer.dispose()
            if self._state == EngineState.FAST_FORWARDING:
                self._state = EngineState.TRACKING
            await self._notify_fast_forward_stopped(self.modeled_time_text)

    # --- Pulses ---

    def polarity_for(self, minutes: int) -> Polarity:
        """Even minute drives negative, odd minute drives positive."""
        return Polarity.NEGATIVE if minute_of_hour(minutes) % 2 == 0 else Polarity.POSITIVE

    async def _step_once(self) -> None:
        await self._dispatch(self.polarity_for(self._modeled))
        await self._clock.sleep_for(self._settings.pulse_duration_ms)
        await self._dispatch(Polarity.ZERO)

    async def _dispatch(self, polarity: Polarity) -> None:
        for sink in self._sinks:
            if polarity is Polarity.POSITIVE:
                await sink.positive()
            elif polarity is Polarity.NEGATIVE:
                await sink.negative()
            else:
                await sink.zero()

    # --- Notifications ---

    async def _notify(self, update: PositionUpdate) -> None:
        if self._on_position is None:
            return
        try:
            await self._on_position(update)
        except Exception as e:
            logger.warning(f"[{self._name}] Position callback error: {e}")

    async def _notify_fast_forward_started(self, from_text: str, to_text: str) -> None:
        for sink in self._sinks:
            if isinstance(sink, FastForwardAware):
                await sink.fast_forward_started(from_text, to_text)

    async def _notify_fast_forward_stopped(self, at_text: str) -> None:
        # runs from a finally block; must not replace a sink error already in flight
        for sink in self._sinks:
            if not isinstance(sink, FastForwardAware):
                continue
            try:
                await sink.fast_forward_stopped(at_text)
            except Exception as e:
                logger.warning(f"[{self._name}] Error ending fast forward on {sink_name(sink)}: {e}")

    def __str__(self) -> str:
        return str(self._settings)
