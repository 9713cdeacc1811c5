"""
Serial line sink.

Drives the modem control lines of a serial port:
- positive: RTS high, DTR low
- negative: DTR high, RTS low
- zero: both low

In dtr_only mode DTR carries every pulse regardless of polarity, for
mechanisms whose polarity is switched externally.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

import serial

logger = logging.getLogger(__name__)


class SerialPortSink:
    name = "SerialPortSink"

    def __init__(
        self,
        port_name: str,
        *,
        dtr_only: bool = False,
        serial_factory: Optional[Callable[[str], Any]] = None,
    ) -> None:
        self._port_name = port_name
        self._dtr_only = dtr_only
        self._serial_factory = serial_factory or _open_port
        self._port: Optional[Any] = None

    @property
    def port_name(self) -> str:
        return self._port_name

    @property
    def is_open(self) -> bool:
        return self._port is not None and bool(getattr(self._port, "is_open", True))

    async def start(self) -> None:
        if self._port is None:
            self._port = await asyncio.to_thread(self._serial_factory, self._port_name)
        self._set_lines(rts=False, dtr=False)
        logger.info(f"Serial port {self._port_name} opened (dtr_only={self._dtr_only})")

    async def stop(self) -> None:
        if self.is_open:
            self._set_lines(rts=False, dtr=False)
            logger.info(f"Serial port {self._port_name} lines released")

    async def positive(self) -> None:
        if self._dtr_only:
            self._set_lines(rts=False, dtr=True)
        else:
            self._set_lines(rts=True, dtr=False)

    async def negative(self) -> None:
        self._set_lines(rts=False, dtr=True)

    async def zero(self) -> None:
        self._set_lines(rts=False, dtr=False)

    def close(self) -> None:
        if self._port is not None:
            self._port.close()
            logger.info(f"Serial port {self._port_name} closed")
        self._port = None

    def _set_lines(self, *, rts: bool, dtr: bool) -> None:
        if self._port is None:
            raise serial.SerialException(f"Serial port {self._port_name} is not open")
        # lower before raising so both lines are never high together
        if not rts:
            self._port.rts = False
        if not dtr:
            self._port.dtr = False
        if rts:
            self._port.rts = True
        if dtr:
            self._port.dtr = True


def _open_port(port_name: str) -> serial.Serial:
    return serial.Serial(port=port_name)


def available_ports() -> list[str]:
    """Names of the serial ports present on this machine."""
    from serial.tools import list_ports

    return [p.device for p in list_ports.comports()]
