"""
Unit tests for the analogue clock simulation sink.
"""

import datetime as dt

import pytest

from clockpulse.core.clock import SimClock
from clockpulse.pulse.config import EngineSettings
from clockpulse.pulse.engine import PulseEngine
from clockpulse.pulse.types import ClockStatus
from clockpulse.sinks.simulator_sink import AnalogueClockSimulationSink


async def step(sink: AnalogueClockSimulationSink, polarity: str) -> None:
    await getattr(sink, polarity)()
    await sink.zero()


class TestMechanism:
    @pytest.mark.asyncio
    async def test_alternating_pulses_advance(self) -> None:
        sink = AnalogueClockSimulationSink("06:00", use_12_hour_clock=False)
        await sink.start()

        await step(sink, "negative")
        await step(sink, "positive")

        assert sink.time_text == "06:02"
        assert sink.steps == 2
        assert sink.stalls == 0

    @pytest.mark.asyncio
    async def test_repeated_polarity_stalls(self, caplog: pytest.LogCaptureFixture) -> None:
        sink = AnalogueClockSimulationSink("06:00", use_12_hour_clock=False)

        await step(sink, "negative")
        await step(sink, "negative")

        assert sink.time_text == "06:01"
        assert sink.stalls == 1
        assert any("stalled" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_zero_without_pulse_does_nothing(self) -> None:
        sink = AnalogueClockSimulationSink("06:00")
        await sink.zero()
        assert sink.time_text == "06:00"

    @pytest.mark.asyncio
    async def test_12h_dial_wraps(self) -> None:
        sink = AnalogueClockSimulationSink("11:59", use_12_hour_clock=True)
        await step(sink, "positive")
        assert sink.time_text == "12:00"
        assert sink.minutes == 0

    @pytest.mark.asyncio
    async def test_lifecycle_flag(self) -> None:
        sink = AnalogueClockSimulationSink(dt.time(6, 0))
        await sink.start()
        assert sink.is_running
        await sink.stop()
        assert not sink.is_running


class TestDrivenByEngine:
    """The simulation follows the engine without ever stalling."""

    @pytest.mark.asyncio
    async def test_follows_fast_forward_across_midnight(self) -> None:
        settings = EngineSettings(
            remote_clock_time_href="http://clock.test/api/time",
            use_12_hour_clock=False,
            fast_forward_interval_ms=100,
            pulse_duration_ms=10,
        )
        sink = AnalogueClockSimulationSink("23:55", use_12_hour_clock=False)
        engine = PulseEngine(settings, [sink], start_time="23:55", clock=SimClock())

        await engine.update(ClockStatus(time=dt.time(0, 10)))
        await engine.update(ClockStatus(time=dt.time(0, 11)))

        assert sink.time_text == engine.modeled_time_text == "00:11"
        assert sink.stalls == 0
