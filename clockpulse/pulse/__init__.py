"""
Pulse Synchronization Module.

Drives analogue slave clocks from an authoritative clock status source. The
poller requests the status on a fixed period and hands it to the engine, which
emits polarity-encoded pulses to every installed sink until the clocks show
the reported time.

Components:
- PulseEngine: Modeled position, single steps, fast-forward runs, sink lifecycle
- ClockPoller: Periodic status requests, retry delay, cooperative cancellation
- ClockStatusSource: HTTP client and lenient status document decoding
- EngineSettings/AppConfig: Validated, immutable configuration

Usage:
    from clockpulse.pulse import ClockPoller, ClockStatusSource, EngineSettings, PulseEngine

    settings = EngineSettings(remote_clock_time_href="http://clock.local/api/clocks/demo/time")
    engine = PulseEngine(settings, [LoggingSink()])
    async with ClockStatusSource(settings.remote_clock_time_href) as source:
        await ClockPoller(engine, source).run(stop_event)
"""

from clockpulse.pulse.config import (
    AppConfig,
    EngineSettings,
    RelayBoardConfig,
    SerialSinkConfig,
    SimulatorConfig,
    UdpBroadcastConfig,
)
from clockpulse.pulse.engine import PulseEngine
from clockpulse.pulse.errors import (
    ClockSourceError,
    ConfigurationError,
    EngineError,
    PulseError,
    SinkError,
    StatusParseError,
)
from clockpulse.pulse.poller import ClockPoller
from clockpulse.pulse.source import ClockStatusSource, decode_status
from clockpulse.pulse.types import (
    ClockStatus,
    EngineState,
    Polarity,
    PollerState,
    PollStats,
    PositionUpdate,
)

__all__ = [
    # Main entry points
    "PulseEngine",
    "ClockPoller",
    "ClockStatusSource",
    "decode_status",
    # Config
    "AppConfig",
    "EngineSettings",
    "SerialSinkConfig",
    "UdpBroadcastConfig",
    "RelayBoardConfig",
    "SimulatorConfig",
    # Types
    "ClockStatus",
    "EngineState",
    "PollerState",
    "Polarity",
    "PollStats",
    "PositionUpdate",
    # Errors
    "PulseError",
    "ConfigurationError",
    "ClockSourceError",
    "StatusParseError",
    "SinkError",
    "EngineError",
]
