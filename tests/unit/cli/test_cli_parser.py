"""
Tests for the clockpulse CLI: argument parsing, start position resolution and
service composition.
"""

import asyncio
from pathlib import Path
from typing import Optional

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from clockpulse.cli.clockpulse import build_parser, main, resolve_start_time, run_service
from clockpulse.pulse.config import AppConfig, EngineSettings


class MemoryStore:
    def __init__(self, position: Optional[str] = None) -> None:
        self.position = position
        self.saved: list[str] = []

    def load(self) -> Optional[str]:
        return self.position

    def save(self, position: str) -> None:
        self.saved.append(position)


class TestParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args([])
        assert args.config is None
        assert args.config_overrides == []
        assert args.reset is False
        assert args.start_time is None
        assert args.log_level == "INFO"

    def test_all_options(self) -> None:
        args = build_parser().parse_args(
            [
                "--config", "clock.toml",
                "--set", "a.b=1",
                "--set", "c=2",
                "-r",
                "-t", "07:15",
                "--state-file", "pos.json",
                "--log-level", "DEBUG",
            ]
        )
        assert args.config == Path("clock.toml")
        assert args.config_overrides == ["a.b=1", "c=2"]
        assert args.reset is True
        assert args.start_time == "07:15"
        assert args.state_file == Path("pos.json")

    def test_invalid_start_time_rejected(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--start-time", "7 pm"])
        assert exc_info.value.code == 2


class TestResolveStartTime:
    def test_explicit_start_time_wins(self) -> None:
        store = MemoryStore("09:00")
        assert resolve_start_time(configured="06:00", start_time="07:15", store=store) == "07:15"

    def test_reset_uses_configured(self) -> None:
        store = MemoryStore("09:00")
        assert resolve_start_time(configured="06:00", reset=True, store=store) == "06:00"

    def test_stored_position_resumed(self) -> None:
        assert resolve_start_time(configured="06:00", store=MemoryStore("09:00")) == "09:00"

    def test_empty_store_falls_back(self) -> None:
        assert resolve_start_time(configured="06:00", store=MemoryStore()) == "06:00"

    def test_no_store(self) -> None:
        assert resolve_start_time(configured="06:00") == "06:00"


class TestMain:
    def test_missing_href_exits_2(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CLOCKPULSE_ENVIRONMENT", raising=False)
        assert main(["--set", "pulse_generator.use_12_hour_clock=true"]) == 2

    def test_missing_config_file_exits_2(self, tmp_path: Path) -> None:
        assert main(["--config", str(tmp_path / "absent.toml")]) == 2

    def test_malformed_override_exits_2(self) -> None:
        assert main(["--set", "nonsense"]) == 2


class TestRunService:
    """Composition of sinks, engine, source and poller."""

    @pytest.mark.asyncio
    async def test_stop_before_first_poll(self) -> None:
        config = AppConfig(engine=EngineSettings(remote_clock_time_href="http://127.0.0.1:9/time"))
        stop = asyncio.Event()
        stop.set()

        await run_service(config, start_time="06:00", store=MemoryStore(), stop=stop)

    @pytest.mark.asyncio
    async def test_position_saved_after_step(self) -> None:
        stop = asyncio.Event()
        requests = {"count": 0}

        async def handler(request: web.Request) -> web.Response:
            requests["count"] += 1
            if requests["count"] >= 2:
                stop.set()
            return web.json_response({"time": "06:01", "isUnavailable": False})

        app = web.Application()
        app.router.add_get("/time", handler)
        store = MemoryStore()

        async with TestServer(app) as server:
            config = AppConfig(
                engine=EngineSettings(
                    remote_clock_time_href=str(server.make_url("/time")),
                    use_12_hour_clock=False,
                    poll_interval_s=0.05,
                    fast_forward_interval_ms=20,
                    pulse_duration_ms=5,
                )
            )
            await asyncio.wait_for(
                run_service(config, start_time="06:00", store=store, stop=stop), timeout=5.0
            )

        assert store.saved == ["06:01"]
