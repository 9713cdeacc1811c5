import importlib
import inspect

import pytest

from clockpulse.adapters.position_file import JsonFilePositionStore
from clockpulse.sinks.base import FastForwardAware, PulseSink, SupportsAclose, SupportsClose
from clockpulse.sinks.logging_sink import LoggingSink
from clockpulse.sinks.relay_sink import RelayBoardSink
from clockpulse.sinks.serial_sink import SerialPortSink
from clockpulse.sinks.simulator_sink import AnalogueClockSimulationSink
from clockpulse.sinks.udp_sink import UdpBroadcastSink

# Mapping of module -> (ProtocolName, required_methods: {name: arity})
PORT_PROTOCOLS = {
    "clockpulse.ports.position_store": ("PositionStore", {"load": 0, "save": 1}),
    "clockpulse.pulse.poller": ("StatusSource", {"fetch": 0}),
    "clockpulse.sinks.base": (
        "PulseSink",
        {"start": 0, "stop": 0, "positive": 0, "negative": 0, "zero": 0},
    ),
    "clockpulse.sinks.base:close": ("SupportsClose", {"close": 0}),
    "clockpulse.sinks.base:aclose": ("SupportsAclose", {"aclose": 0}),
    "clockpulse.sinks.base:ff": (
        "FastForwardAware",
        {"fast_forward_started": 2, "fast_forward_stopped": 1},
    ),
}


@pytest.mark.parametrize("module_key,meta", PORT_PROTOCOLS.items())
def test_required_port_signatures(module_key, meta):
    proto_name, methods = meta
    module = importlib.import_module(module_key.split(":")[0])
    proto = getattr(module, proto_name)
    assert inspect.isclass(proto), f"{proto_name} not a class"
    for method_name, arity in methods.items():
        fn = getattr(proto, method_name, None)
        assert fn is not None, f"Missing method {method_name} on {proto_name}"
        sig = inspect.signature(fn)
        # remove self
        params = [p for p in sig.parameters.values() if p.kind == p.POSITIONAL_OR_KEYWORD][1:]
        assert (
            len(params) == arity
        ), f"{proto_name}.{method_name} expected {arity} args got {len(params)}"


SINKS = [
    LoggingSink(),
    SerialPortSink("/dev/null"),
    UdpBroadcastSink("127.0.0.1", 15000),
    RelayBoardSink(gpio=object()),
    AnalogueClockSimulationSink("06:00"),
]


@pytest.mark.parametrize("sink", SINKS, ids=lambda s: type(s).__name__)
def test_every_sink_is_a_pulse_sink(sink):
    assert isinstance(sink, PulseSink)


def test_release_capabilities():
    assert isinstance(SerialPortSink("/dev/null"), SupportsClose)
    assert isinstance(RelayBoardSink(gpio=object()), SupportsClose)
    assert isinstance(UdpBroadcastSink("127.0.0.1", 15000), SupportsAclose)
    assert not isinstance(LoggingSink(), SupportsClose)
    assert not isinstance(LoggingSink(), SupportsAclose)


def test_fast_forward_capability():
    assert isinstance(LoggingSink(), FastForwardAware)
    assert not isinstance(AnalogueClockSimulationSink("06:00"), FastForwardAware)


def test_position_file_store_matches_port(tmp_path):
    from clockpulse.ports.position_store import PositionStore

    store: PositionStore = JsonFilePositionStore(tmp_path / "position.json")
    assert callable(store.load) and callable(store.save)
