"""
UDP broadcast sink.

Every lifecycle and voltage command is sent as one datagram with an orjson
payload, e.g. {"pulse":"positive","ts":1717171717000}. Receivers on the
network can drive their own displays or clocks from it.
"""

from __future__ import annotations

import asyncio
import logging
import socket
import time
from typing import Optional

import orjson

from clockpulse.pulse.errors import SinkError

logger = logging.getLogger(__name__)


class UdpBroadcastSink:
    name = "UdpBroadcastSink"

    def __init__(self, ip_address: str, port: int) -> None:
        self._address = (ip_address, port)
        self._transport: Optional[asyncio.DatagramTransport] = None
        self._datagrams_sent = 0

    @property
    def address(self) -> tuple[str, int]:
        return self._address

    @property
    def datagrams_sent(self) -> int:
        return self._datagrams_sent

    async def start(self) -> None:
        if self._transport is None:
            loop = asyncio.get_running_loop()
            self._transport, _ = await loop.create_datagram_endpoint(
                asyncio.DatagramProtocol,
                family=socket.AF_INET,
                allow_broadcast=True,
            )
            logger.info(f"UDP broadcast to {self._address[0]}:{self._address[1]} opened")
        self._send("start")

    async def stop(self) -> None:
        if self._transport is not None:
            self._send("stop")

    async def positive(self) -> None:
        self._send("positive")

    async def negative(self) -> None:
        self._send("negative")

    async def zero(self) -> None:
        self._send("zero")

    async def aclose(self) -> None:
        if self._transport is not None:
            self._transport.close()
            # let the loop run the transport's close callbacks
            await asyncio.sleep(0)
            logger.info(f"UDP broadcast to {self._address[0]}:{self._address[1]} closed")
        self._transport = None

    def _send(self, pulse: str) -> None:
        if self._transport is None:
            raise SinkError(
                "UDP transport is not open",
                sink_name=self.name,
                operation=pulse,
                component="UdpBroadcastSink",
            )
        payload = orjson.dumps({"pulse": pulse, "ts": int(time.time() * 1000)})
        self._transport.sendto(payload, self._address)
        self._datagrams_sent += 1
