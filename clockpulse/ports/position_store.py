"""PositionStore Port Interface.

Contract: Persist and retrieve the last position the analogue clocks were
driven to, as 'HH:MM' text, so a restart resumes from where the hands stand.
"""

from __future__ import annotations

from typing import Optional, Protocol


class PositionStore(Protocol):
    def load(self) -> Optional[str]: ...
    def save(self, position: str) -> None: ...
