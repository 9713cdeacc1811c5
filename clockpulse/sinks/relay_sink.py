"""
Raspberry Pi relay board sink.

Two relay channels form the polarity switch in front of the slave clock line:
channel A (positive_pin) for positive pulses, channel B (negative_pin) for
negative pulses. Zero releases both. Most relay HATs are active low, so the
pin level for "energised" is configurable.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Optional

from clockpulse.pulse.errors import SinkError

logger = logging.getLogger(__name__)


class RelayBoardSink:
    name = "RelayBoardSink"

    def __init__(
        self,
        *,
        positive_pin: int = 26,
        negative_pin: int = 20,
        active_low: bool = True,
        gpio: Optional[Any] = None,
    ) -> None:
        self._positive_pin = positive_pin
        self._negative_pin = negative_pin
        self._active_low = active_low
        self._gpio = gpio
        self._configured = False

    @property
    def pins(self) -> tuple[int, int]:
        return (self._positive_pin, self._negative_pin)

    def _level(self, energised: bool) -> bool:
        return energised != self._active_low

    async def start(self) -> None:
        if self._gpio is None:
            self._gpio = importlib.import_module("RPi.GPIO")
        gpio = self._gpio
        gpio.setwarnings(False)
        gpio.setmode(gpio.BCM)
        for pin in self.pins:
            gpio.setup(pin, gpio.OUT, initial=self._level(False))
        self._configured = True
        logger.info(
            f"Relay board ready on BCM pins {self._positive_pin}/{self._negative_pin} "
            f"(active_low={self._active_low})"
        )

    async def stop(self) -> None:
        if self._configured:
            self._drive(positive=False, negative=False)

    async def positive(self) -> None:
        self._drive(positive=True, negative=False)

    async def negative(self) -> None:
        self._drive(positive=False, negative=True)

    async def zero(self) -> None:
        self._drive(positive=False, negative=False)

    def close(self) -> None:
        if self._configured and self._gpio is not None:
            self._gpio.cleanup(list(self.pins))
            logger.info("Relay board pins released")
        self._configured = False

    def _drive(self, *, positive: bool, negative: bool) -> None:
        if not self._configured or self._gpio is None:
            raise SinkError(
                "Relay board is not started",
                sink_name=self.name,
                component="RelayBoardSink",
            )
        # release first so both channels are never energised together
        if not positive:
            self._gpio.output(self._positive_pin, self._level(False))
        if not negative:
            self._gpio.output(self._negative_pin, self._level(False))
        if positive:
            self._gpio.output(self._positive_pin, self._level(True))
        if negative:
            self._gpio.output(self._negative_pin, self._level(True))
