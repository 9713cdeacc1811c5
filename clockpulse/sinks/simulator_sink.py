"""
Analogue clock simulation sink.

Models a bipolar stepping mechanism in software: the hands advance one minute
when a pulse of the opposite polarity to the previous one is released. A pulse
with the same polarity as its predecessor does not move the rotor and is
counted as a stall, which is how a real slave clock falls behind.
"""

from __future__ import annotations

import logging
from typing import Optional

from clockpulse.core.clock_time import TimeLike, add_one_minute, format_minutes, to_minutes
from clockpulse.pulse.types import Polarity

logger = logging.getLogger(__name__)


class AnalogueClockSimulationSink:
    name = "AnalogueClockSimulationSink"

    def __init__(self, start_time: TimeLike, *, use_12_hour_clock: bool = True) -> None:
        self._twelve = use_12_hour_clock
        self._minutes = to_minutes(start_time, use_12_hour_clock)
        self._last_polarity: Optional[Polarity] = None
        self._armed: Optional[Polarity] = None
        self._running = False
        self.steps = 0
        self.stalls = 0

    @property
    def minutes(self) -> int:
        return self._minutes

    @property
    def time_text(self) -> str:
        return format_minutes(self._minutes, self._twelve)

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        self._running = True
        logger.info(f"Analogue clock simulation started at {self.time_text}")

    async def stop(self) -> None:
        self._running = False
        self._armed = None
        logger.info(f"Analogue clock simulation stopped at {self.time_text}")

    async def positive(self) -> None:
        self._energise(Polarity.POSITIVE)

    async def negative(self) -> None:
        self._energise(Polarity.NEGATIVE)

    async def zero(self) -> None:
        if self._armed is None:
            return
        self._last_polarity = self._armed
        self._armed = None
        self._minutes = add_one_minute(self._minutes, self._twelve)
        self.steps += 1
        logger.info(f"Analogue clock simulation shows {self.time_text}")

    def _energise(self, polarity: Polarity) -> None:
        if polarity == self._last_polarity:
            self.stalls += 1
            self._armed = None
            logger.warning(
                f"Analogue clock simulation stalled at {self.time_text}: "
                f"repeated {polarity.value} pulse"
            )
            return
        self._armed = polarity
