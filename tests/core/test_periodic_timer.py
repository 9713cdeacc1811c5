"""
Unit tests for the clock implementations and the drift-corrected PeriodicTimer.
"""

import asyncio

import pytest

from clockpulse.core.clock import ClockError, PeriodicTimer, RealtimeClock, SimClock, align_forward


class TestAlignForward:
    def test_on_grid(self) -> None:
        assert align_forward(2000, 1000) == 2000

    def test_between_grid_points(self) -> None:
        assert align_forward(2001, 1000) == 3000

    def test_offset_grid(self) -> None:
        assert align_forward(2001, 1000, offset_ms=250) == 2250

    def test_invalid_interval(self) -> None:
        with pytest.raises(ValueError):
            align_forward(1, 0)


class TestSimClock:
    def test_cannot_go_backwards(self) -> None:
        clock = SimClock(start_ms=100)
        with pytest.raises(ClockError):
            clock.advance_to(99)
        with pytest.raises(ClockError):
            clock.advance_by(-1)

    @pytest.mark.asyncio
    async def test_sleep_jumps_to_deadline(self) -> None:
        clock = SimClock()
        assert await clock.sleep_for(300) is True
        assert clock.now() == 300
        assert clock.sleeps == [300]

    @pytest.mark.asyncio
    async def test_sleep_reports_stop(self) -> None:
        clock = SimClock()
        stop = asyncio.Event()
        stop.set()
        assert await clock.sleep_for(300, stop) is False
        assert clock.now() == 0

    @pytest.mark.asyncio
    async def test_negative_sleep_rejected(self) -> None:
        with pytest.raises(ValueError):
            await SimClock().sleep_for(-1)


class TestRealtimeClock:
    def test_is_monotonic(self) -> None:
        clock = RealtimeClock()
        first = clock.now()
        assert clock.now() >= first
        assert clock.is_realtime is True

    @pytest.mark.asyncio
    async def test_sleep_reaches_deadline(self) -> None:
        clock = RealtimeClock(sleep_chunk_ms=10)
        start = clock.now()
        assert await clock.sleep_for(30) is True
        assert clock.now() - start >= 30

    @pytest.mark.asyncio
    async def test_stop_wakes_sleep_early(self) -> None:
        clock = RealtimeClock(sleep_chunk_ms=10)
        stop = asyncio.Event()
        asyncio.get_running_loop().call_later(0.02, stop.set)

        start = clock.now()
        assert await clock.sleep_for(5_000, stop) is False
        assert clock.now() - start < 1_000


class TestPeriodicTimer:
    """Ticks sit on a grid anchored at construction time."""

    def test_rejects_non_positive_period(self) -> None:
        with pytest.raises(ClockError):
            PeriodicTimer(SimClock(), 0)

    @pytest.mark.asyncio
    async def test_first_tick_one_period_after_construction(self) -> None:
        clock = SimClock(start_ms=500)
        timer = PeriodicTimer(clock, 2_000)

        assert await timer.wait_for_next_tick() is True
        assert clock.now() == 2_500
        assert timer.next_tick_ms == 4_500

    @pytest.mark.asyncio
    async def test_latency_does_not_accumulate(self) -> None:
        """Test that work between ticks does not shift later ticks."""
        clock = SimClock()
        timer = PeriodicTimer(clock, 1_000)

        ticks = []
        for _ in range(3):
            await timer.wait_for_next_tick()
            ticks.append(clock.now())
            clock.advance_by(300)  # simulated work

        assert ticks == [1_000, 2_000, 3_000]

    @pytest.mark.asyncio
    async def test_missed_ticks_coalesce(self) -> None:
        clock = SimClock()
        timer = PeriodicTimer(clock, 1_000)

        await timer.wait_for_next_tick()
        clock.advance_by(3_500)  # overran three ticks

        assert timer.next_tick_ms == 2_000
        await timer.wait_for_next_tick()
        assert clock.now() == 4_500
        assert timer.next_tick_ms == 5_000

    @pytest.mark.asyncio
    async def test_stop_event_ends_wait(self) -> None:
        clock = SimClock()
        timer = PeriodicTimer(clock, 1_000)
        stop = asyncio.Event()
        stop.set()

        assert await timer.wait_for_next_tick(stop) is False

    @pytest.mark.asyncio
    async def test_disposed_timer_never_ticks(self) -> None:
        timer = PeriodicTimer(SimClock(), 1_000)
        timer.dispose()

        assert timer.is_disposed
        assert await timer.wait_for_next_tick() is False
