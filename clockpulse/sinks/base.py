"""
Sink capability interfaces.

Every pulse-consuming device implements PulseSink. Optional capabilities are
separate runtime-checkable protocols so the engine can filter the sink set by
what each sink supports without knowing concrete types:
- SupportsClose: synchronous release of held resources
- SupportsAclose: asynchronous release of held resources
- FastForwardAware: notified when a catch-up run begins and ends

Contract (all sinks):
- start() completes before any voltage call is issued to the sink.
- positive()/negative()/zero() return only once the effect is observable.
- stop() must not raise on a sink that was never started.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PulseSink(Protocol):
    async def start(self) -> None: ...
    async def stop(self) -> None: ...
    async def positive(self) -> None: ...
    async def negative(self) -> None: ...
    async def zero(self) -> None: ...


@runtime_checkable
class SupportsClose(Protocol):
    def close(self) -> None: ...


@runtime_checkable
class SupportsAclose(Protocol):
    async def aclose(self) -> None: ...


@runtime_checkable
class FastForwardAware(Protocol):
    async def fast_forward_started(self, from_text: str, to_text: str) -> None: ...
    async def fast_forward_stopped(self, at_text: str) -> None: ...


def sink_name(sink: object) -> str:
    """Display name used in logs and errors."""
    name = getattr(sink, "name", None)
    return name if isinstance(name, str) and name else type(sink).__name__
