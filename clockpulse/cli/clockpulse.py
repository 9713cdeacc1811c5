"""clockpulse CLI entrypoint.

Runs the pulse service: loads the TOML config, builds the sinks, resumes the
analogue clock position from the state file and polls the clock status source
until SIGINT or SIGTERM.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from pathlib import Path
from typing import Optional

from clockpulse.adapters.position_file import JsonFilePositionStore
from clockpulse.config.config_loader import ConfigLoader
from clockpulse.config.overrides import parse_overrides
from clockpulse.core.clock_time import parse_time_of_day
from clockpulse.ports.position_store import PositionStore
from clockpulse.pulse.config import AppConfig
from clockpulse.pulse.engine import PulseEngine
from clockpulse.pulse.errors import ConfigurationError
from clockpulse.pulse.poller import ClockPoller
from clockpulse.pulse.source import ClockStatusSource
from clockpulse.pulse.types import PositionUpdate
from clockpulse.sinks.factory import build_sinks

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - [%(levelname)s] - %(name)s - %(message)s"


def _time_of_day(text: str) -> str:
    try:
        parse_time_of_day(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e
    return text


def build_parser(prog: str = "clockpulse") -> argparse.ArgumentParser:
    """
    Return the CLI argument parser.
    """
    p = argparse.ArgumentParser(prog=prog, description="Drive analogue slave clocks from a clock server")
    p.add_argument("--config", type=Path, required=False, help="Path to the TOML config file")
    p.add_argument(
        "--set",
        dest="config_overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a config entry, e.g. pulse_generator.poll_interval_s=5 (may be repeated)",
    )
    p.add_argument(
        "-r",
        "--reset",
        action="store_true",
        help="Ignore the stored position and start from the configured start time",
    )
    p.add_argument(
        "-t",
        "--start-time",
        type=_time_of_day,
        default=None,
        metavar="HH:MM",
        help="Time the analogue clocks show right now (implies --reset)",
    )
    p.add_argument("--state-file", type=Path, default=None, help="Where the clock position is kept")
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Root log level",
    )
    return p


def resolve_start_time(
    *,
    configured: str,
    reset: bool = False,
    start_time: Optional[str] = None,
    store: Optional[PositionStore] = None,
) -> str:
    """
    Decide where the analogue clocks stand at startup.

    An explicit start time wins and implies a reset. A reset falls back to the
    configured start time. Otherwise the stored position is used when present.
    """
    if start_time is not None:
        return start_time
    if reset or store is None:
        return configured
    stored = store.load()
    if stored is None:
        return configured
    return stored


def _install_signal_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # no loop signal support on this platform; Ctrl+C raises KeyboardInterrupt instead
            logger.debug(f"Signal handler for {sig.name} not installed")


async def run_service(
    config: AppConfig,
    *,
    start_time: str,
    store: Optional[PositionStore] = None,
    stop: Optional[asyncio.Event] = None,
) -> None:
    """Compose sinks, engine, source and poller and poll until `stop` is set."""
    if stop is None:
        stop = asyncio.Event()
        _install_signal_handlers(stop)

    async def save_position(update: PositionUpdate) -> None:
        if store is not None:
            await asyncio.to_thread(store.save, update.text)

    sinks = build_sinks(config, start_time=start_time)
    engine = PulseEngine(
        config.engine,
        sinks,
        start_time=start_time,
        on_position=save_position if store is not None else None,
    )
    logger.info(f"Starting clockpulse ({config.environment}): {engine}")
    logger.info(f"Analogue clocks assumed at {engine.modeled_time_text}")

    async with ClockStatusSource(config.engine.remote_clock_time_href) as source:
        poller = ClockPoller(engine, source)
        await poller.run(stop)


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint wrapper compatible with setuptools scripts."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    try:
        overrides = parse_overrides(args.config_overrides)
        config = ConfigLoader().load_app_config(
            str(args.config) if args.config else None, overrides
        )
    except (ConfigurationError, FileNotFoundError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    state_file = args.state_file or config.state_file
    store = JsonFilePositionStore(state_file) if state_file is not None else None
    start_time = resolve_start_time(
        configured=config.engine.analogue_clock_start_time,
        reset=args.reset,
        start_time=args.start_time,
        store=store,
    )

    try:
        asyncio.run(run_service(config, start_time=start_time, store=store))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
