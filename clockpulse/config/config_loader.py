"""
Purpose:
    - Loads a clockpulse TOML config file
    - Applies environment and --set overrides
    - Builds the validated AppConfig

Layout:
    [pulse_generator]          -> EngineSettings
    [sinks.serial]             -> SerialSinkConfig
    [sinks.udp_broadcast]      -> UdpBroadcastConfig
    [sinks.relay_board]        -> RelayBoardConfig
    [sinks.simulator]          -> SimulatorConfig
    [service]                  -> state_file, environment
"""

import datetime as dt
import os
import tomllib
from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping, Optional

from clockpulse.config.overrides import deep_merge, insert_path
from clockpulse.pulse.config import (
    AppConfig,
    EngineSettings,
    RelayBoardConfig,
    SerialSinkConfig,
    SimulatorConfig,
    UdpBroadcastConfig,
)
from clockpulse.pulse.errors import ConfigurationError

ENVIRONMENT_VARIABLE = "CLOCKPULSE_ENVIRONMENT"


class ConfigLoader:
    """
    Config-loader; loading toml file.
    """

    def __init__(self, base_dir: str = ".", environ: Optional[Mapping[str, str]] = None) -> None:
        self._base_dir = base_dir
        self._environ = os.environ if environ is None else environ

    def load(self, file_name: str) -> dict[str, Any]:
        path = Path(file_name)
        if not path.is_absolute():
            path = Path(self._base_dir) / file_name

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open("rb") as f:
            try:
                return tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigurationError(
                    f"Config file {path} is not valid TOML: {e}", component="ConfigLoader"
                ) from e

    def load_app_config(
        self,
        config_path: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> AppConfig:
        data: dict[str, Any] = self.load(config_path) if config_path else {}

        environment = self._environ.get(ENVIRONMENT_VARIABLE)
        if environment:
            env_tree: dict[str, Any] = {}
            insert_path(env_tree, "service.environment", environment)
            data = deep_merge(data, env_tree)

        if overrides:
            data = deep_merge(data, overrides)

        return self.build(data)

    def build(self, data: Mapping[str, Any]) -> AppConfig:
        unknown = set(data) - {"pulse_generator", "sinks", "service"}
        if unknown:
            raise ConfigurationError(
                f"Unknown config section(s): {sorted(unknown)}", component="ConfigLoader"
            )

        engine_data = _section(data, "pulse_generator", EngineSettings)
        if not engine_data.get("remote_clock_time_href"):
            raise ConfigurationError(
                "pulse_generator.remote_clock_time_href is required",
                field="remote_clock_time_href",
                component="ConfigLoader",
            )

        start = engine_data.get("analogue_clock_start_time")
        if isinstance(start, dt.time):
            # unquoted TOML local time
            engine_data["analogue_clock_start_time"] = start.strftime("%H:%M:%S")

        sinks_data = data.get("sinks", {}) or {}
        if not isinstance(sinks_data, Mapping):
            raise ConfigurationError("[sinks] must be a table", field="sinks", component="ConfigLoader")
        unknown = set(sinks_data) - {"serial", "udp_broadcast", "relay_board", "simulator"}
        if unknown:
            raise ConfigurationError(
                f"Unknown sink section(s): {sorted(unknown)}", component="ConfigLoader"
            )

        service_data = data.get("service", {}) or {}
        if not isinstance(service_data, Mapping):
            raise ConfigurationError("[service] must be a table", field="service", component="ConfigLoader")
        unknown = set(service_data) - {"state_file", "environment"}
        if unknown:
            raise ConfigurationError(
                f"Unknown key(s) in [service]: {sorted(unknown)}", component="ConfigLoader"
            )

        state_file: Optional[Path] = None
        state_file_raw = service_data.get("state_file")
        if state_file_raw:
            state_file = Path(state_file_raw)
            if not state_file.is_absolute():
                state_file = Path(self._base_dir) / state_file

        try:
            return AppConfig(
                engine=EngineSettings(**engine_data),
                serial=SerialSinkConfig(**_section(sinks_data, "serial", SerialSinkConfig)),
                udp_broadcast=UdpBroadcastConfig(
                    **_section(sinks_data, "udp_broadcast", UdpBroadcastConfig)
                ),
                relay_board=RelayBoardConfig(**_section(sinks_data, "relay_board", RelayBoardConfig)),
                simulator=SimulatorConfig(**_section(sinks_data, "simulator", SimulatorConfig)),
                state_file=state_file,
                environment=str(service_data.get("environment", "Production")),
            )
        except TypeError as e:
            # wrong value types surface as TypeError from the validators
            raise ConfigurationError(f"Invalid config value: {e}", component="ConfigLoader") from e


def _section(data: Mapping[str, Any], name: str, target: type) -> dict[str, Any]:
    section = data.get(name, {}) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"[{name}] must be a table", field=name, component="ConfigLoader")
    allowed = {f.name for f in fields(target)}
    unknown = set(section) - allowed
    if unknown:
        raise ConfigurationError(
            f"Unknown key(s) in [{name}]: {sorted(unknown)}", field=name, component="ConfigLoader"
        )
    return dict(section)
