"""
Configuration types for the pulse synchronization module.

Provides immutable, validated configuration dataclasses for the engine, the
poller and every sink transport.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from clockpulse.core.clock_time import modulus_for, parse_time_of_day
from clockpulse.pulse.errors import ConfigurationError

DEFAULT_UDP_PORT = 15000
DEVELOPMENT_ENVIRONMENT = "Development"


def _require_bool(name: str, value: object) -> None:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{name} must be true or false", field=name, value=value)


@dataclass(frozen=True)
class EngineSettings:
    """
    Settings shared by the pulse engine and the poller. Read-only for a run.

    Example:
        settings = EngineSettings(
            remote_clock_time_href="http://clock.local/api/clocks/demo/time",
            use_12_hour_clock=True,
            analogue_clock_start_time="06:00",
        )
    """

    remote_clock_time_href: str

    use_12_hour_clock: bool = True
    analogue_clock_start_time: str = "06:00"

    # Polling
    poll_interval_s: float = 2.0
    error_wait_retry_ms: int = 10_000

    # Pulse shape
    fast_forward_interval_ms: int = 1_000
    pulse_duration_ms: int = 300

    def __post_init__(self) -> None:
        _require_bool("use_12_hour_clock", self.use_12_hour_clock)
        if not self.remote_clock_time_href:
            raise ConfigurationError(
                "remote_clock_time_href is required",
                field="remote_clock_time_href",
            )
        try:
            parse_time_of_day(self.analogue_clock_start_time)
        except ValueError as e:
            raise ConfigurationError(
                "analogue_clock_start_time must be HH:MM or HH:MM:SS",
                field="analogue_clock_start_time",
                value=self.analogue_clock_start_time,
            ) from e
        if self.poll_interval_s <= 0:
            raise ConfigurationError(
                "poll_interval_s must be positive",
                field="poll_interval_s",
                value=self.poll_interval_s,
            )
        # the poll timer runs on whole milliseconds
        if self.poll_interval_ms <= 0:
            raise ConfigurationError(
                "poll_interval_s must be at least 0.001 (1 ms)",
                field="poll_interval_s",
                value=self.poll_interval_s,
            )
        if self.error_wait_retry_ms < 0:
            raise ConfigurationError(
                "error_wait_retry_ms must be non-negative",
                field="error_wait_retry_ms",
                value=self.error_wait_retry_ms,
            )
        if self.fast_forward_interval_ms <= 0:
            raise ConfigurationError(
                "fast_forward_interval_ms must be positive",
                field="fast_forward_interval_ms",
                value=self.fast_forward_interval_ms,
            )
        if self.pulse_duration_ms < 0:
            raise ConfigurationError(
                "pulse_duration_ms must be non-negative",
                field="pulse_duration_ms",
                value=self.pulse_duration_ms,
            )

    @property
    def modulus_minutes(self) -> int:
        return modulus_for(self.use_12_hour_clock)

    @property
    def start_time(self) -> dt.time:
        return parse_time_of_day(self.analogue_clock_start_time)

    @property
    def poll_interval_ms(self) -> int:
        return int(self.poll_interval_s * 1000)

    def __str__(self) -> str:
        dial = "12h" if self.use_12_hour_clock else "24h"
        return (
            f"source={self.remote_clock_time_href} dial={dial} "
            f"start={self.analogue_clock_start_time} poll={self.poll_interval_s}s "
            f"pulse={self.pulse_duration_ms}ms fast_forward={self.fast_forward_interval_ms}ms "
            f"retry={self.error_wait_retry_ms}ms"
        )


@dataclass(frozen=True)
class SerialSinkConfig:
    """Serial line sink driving RTS/DTR."""

    disabled: bool = True
    port_name: str = "COM3"
    dtr_only: bool = False

    def __post_init__(self) -> None:
        _require_bool("disabled", self.disabled)
        _require_bool("dtr_only", self.dtr_only)
        if not self.disabled and not self.port_name:
            raise ConfigurationError("port_name required for serial sink", field="port_name")


@dataclass(frozen=True)
class UdpBroadcastConfig:
    """UDP broadcast sink."""

    disabled: bool = True
    ip_address: str = "255.255.255.255"
    port_number: int = DEFAULT_UDP_PORT

    def __post_init__(self) -> None:
        _require_bool("disabled", self.disabled)
        if not (0 < self.port_number < 65536):
            raise ConfigurationError(
                "port_number must be between 1 and 65535",
                field="port_number",
                value=self.port_number,
            )


@dataclass(frozen=True)
class RelayBoardConfig:
    """Raspberry Pi relay board sink (BCM pin numbering)."""

    disabled: bool = True
    positive_pin: int = 26
    negative_pin: int = 20
    active_low: bool = True

    def __post_init__(self) -> None:
        _require_bool("disabled", self.disabled)
        _require_bool("active_low", self.active_low)
        if self.positive_pin == self.negative_pin:
            raise ConfigurationError(
                "positive_pin and negative_pin must differ",
                field="negative_pin",
                value=self.negative_pin,
            )


@dataclass(frozen=True)
class SimulatorConfig:
    """In-process analogue clock simulation sink."""

    enabled: Optional[bool] = None  # None: follow the runtime environment

    def __post_init__(self) -> None:
        if self.enabled is not None:
            _require_bool("enabled", self.enabled)


@dataclass(frozen=True)
class AppConfig:
    """Immutable top-level configuration for a clockpulse service run."""

    engine: EngineSettings
    serial: SerialSinkConfig = field(default_factory=SerialSinkConfig)
    udp_broadcast: UdpBroadcastConfig = field(default_factory=UdpBroadcastConfig)
    relay_board: RelayBoardConfig = field(default_factory=RelayBoardConfig)
    simulator: SimulatorConfig = field(default_factory=SimulatorConfig)

    state_file: Optional[Path] = None
    environment: str = "Production"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == DEVELOPMENT_ENVIRONMENT.lower()
