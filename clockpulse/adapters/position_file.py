"""JSON file PositionStore adapter.

Stores {"position": "HH:MM", "saved_at": <epoch ms>} in a single file. Writes go
to a sibling temp file that replaces the target, so a crash mid-write never
leaves a truncated state file behind.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Optional

import orjson

from clockpulse.core.clock_time import parse_time_of_day

logger = logging.getLogger(__name__)


class JsonFilePositionStore:
    def __init__(self, path: Path) -> None:
        self._path = path if isinstance(path, Path) else Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[str]:
        """Stored position, or None when the file is missing or unreadable."""
        if not self._path.exists():
            return None
        try:
            data = orjson.loads(self._path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable state file {self._path}: {e}")
            return None

        position = data.get("position") if isinstance(data, dict) else None
        if not isinstance(position, str):
            logger.warning(f"Ignoring state file {self._path}: no position recorded")
            return None
        try:
            parse_time_of_day(position)
        except ValueError:
            logger.warning(f"Ignoring state file {self._path}: invalid position {position!r}")
            return None
        return position

    def save(self, position: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = orjson.dumps({"position": position, "saved_at": int(time.time() * 1000)})
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_bytes(payload)
        os.replace(tmp, self._path)
