import logging

import pytest

from clockpulse.sinks.logging_sink import LoggingSink


class TestLoggingSink:
    """Every command becomes one log line."""

    @pytest.mark.asyncio
    async def test_voltage_lines(self, caplog: pytest.LogCaptureFixture) -> None:
        sink = LoggingSink()
        with caplog.at_level(logging.INFO, logger="clockpulse.sinks.logging_sink"):
            await sink.start()
            await sink.positive()
            await sink.zero()
            await sink.negative()
            await sink.stop()

        messages = [r.getMessage() for r in caplog.records]
        assert len(messages) == 5
        assert "started" in messages[0]
        assert "Positive voltage" in messages[1]
        assert "Zero voltage" in messages[2]
        assert "Negative voltage" in messages[3]
        assert "stopped" in messages[4]

    @pytest.mark.asyncio
    async def test_fast_forward_lines(self, caplog: pytest.LogCaptureFixture) -> None:
        sink = LoggingSink()
        with caplog.at_level(logging.INFO, logger="clockpulse.sinks.logging_sink"):
            await sink.fast_forward_started("06:00", "06:10")
            await sink.fast_forward_stopped("06:10")

        messages = [r.getMessage() for r in caplog.records]
        assert messages == [
            "Clock was starting fast forwarding from 06:00 to 06:10.",
            "Clock was stopping fast forwarding at 06:10.",
        ]

    @pytest.mark.asyncio
    async def test_custom_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        sink = LoggingSink(logging.getLogger("clock.hall"))
        with caplog.at_level(logging.INFO, logger="clock.hall"):
            await sink.zero()

        assert [r.name for r in caplog.records] == ["clock.hall"]
