"""
Sink composition.

Selection rules:
- LoggingSink is always installed, first.
- SerialPortSink when enabled and the configured port exists.
- UdpBroadcastSink when enabled and the address is a valid IPv4 address.
- RelayBoardSink when enabled and running on Linux.
- AnalogueClockSimulationSink in the Development environment, unless the
  simulator section says otherwise.

A sink whose preconditions are not met is skipped with a warning; the
service still runs with the remaining sinks.
"""

from __future__ import annotations

import ipaddress
import logging
import sys
from typing import Any, Callable, Optional

from clockpulse.core.clock_time import TimeLike
from clockpulse.pulse.config import AppConfig
from clockpulse.sinks.base import PulseSink
from clockpulse.sinks.logging_sink import LoggingSink
from clockpulse.sinks.relay_sink import RelayBoardSink
from clockpulse.sinks.serial_sink import SerialPortSink, available_ports
from clockpulse.sinks.simulator_sink import AnalogueClockSimulationSink
from clockpulse.sinks.udp_sink import UdpBroadcastSink

logger = logging.getLogger(__name__)


def build_sinks(
    config: AppConfig,
    *,
    platform: Optional[str] = None,
    port_lister: Optional[Callable[[], list[str]]] = None,
    serial_factory: Optional[Callable[[str], Any]] = None,
    gpio: Optional[Any] = None,
    start_time: Optional[TimeLike] = None,
) -> list[PulseSink]:
    """
    Build the ordered sink list for a run.

    Args:
        config: Validated application config
        platform: Overrides sys.platform (tests)
        port_lister: Overrides serial port discovery (tests)
        serial_factory: Passed to SerialPortSink
        gpio: Passed to RelayBoardSink instead of importing RPi.GPIO
        start_time: Initial dial position for the simulator; defaults to the
            configured analogue clock start time
    """
    platform = platform or sys.platform
    port_lister = port_lister or available_ports

    sinks: list[PulseSink] = [LoggingSink()]

    serial_cfg = config.serial
    if not serial_cfg.disabled:
        ports = port_lister()
        if serial_cfg.port_name in ports:
            sinks.append(
                SerialPortSink(
                    serial_cfg.port_name,
                    dtr_only=serial_cfg.dtr_only,
                    serial_factory=serial_factory,
                )
            )
        else:
            logger.warning(
                f"Serial port {serial_cfg.port_name} not found (available: {ports}); "
                f"serial sink skipped"
            )

    udp_cfg = config.udp_broadcast
    if not udp_cfg.disabled:
        if _is_ipv4(udp_cfg.ip_address):
            sinks.append(UdpBroadcastSink(udp_cfg.ip_address, udp_cfg.port_number))
        else:
            logger.warning(f"Invalid UDP broadcast address {udp_cfg.ip_address!r}; UDP sink skipped")

    relay_cfg = config.relay_board
    if not relay_cfg.disabled:
        if platform.startswith("linux"):
            sinks.append(
                RelayBoardSink(
                    positive_pin=relay_cfg.positive_pin,
                    negative_pin=relay_cfg.negative_pin,
                    active_low=relay_cfg.active_low,
                    gpio=gpio,
                )
            )
        else:
            logger.warning(f"Relay board requires Linux (platform={platform}); relay sink skipped")

    simulate = config.simulator.enabled
    if simulate is None:
        simulate = config.is_development
    if simulate:
        engine = config.engine
        sinks.append(
            AnalogueClockSimulationSink(
                start_time if start_time is not None else engine.analogue_clock_start_time,
                use_12_hour_clock=engine.use_12_hour_clock,
            )
        )

    logger.info(f"Installed sinks: {', '.join(type(s).__name__ for s in sinks)}")
    return sinks


def _is_ipv4(text: str) -> bool:
    try:
        ipaddress.IPv4Address(text)
    except ValueError:
        return False
    return True
