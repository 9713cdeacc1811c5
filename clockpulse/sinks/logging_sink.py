"""Sink that writes every lifecycle and voltage command to the log."""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)

_BOLD = "\x1b[1m"
_RED = "\x1b[31m"
_GREEN = "\x1b[32m"
_CYAN = "\x1b[36m"
_RESET = "\x1b[39m\x1b[22m"


class LoggingSink:
    """Always installed; makes every pulse visible in the service log."""

    name = "LoggingSink"

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._log = log or logger

    async def start(self) -> None:
        self._log.info(f"Clock was {_BOLD}{_GREEN}started{_RESET}.")

    async def stop(self) -> None:
        self._log.info(f"Clock was {_BOLD}{_RED}stopped{_RESET}.")

    async def positive(self) -> None:
        self._log.info(f"{_BOLD}{_GREEN}Positive voltage{_RESET}")

    async def negative(self) -> None:
        self._log.info(f"{_BOLD}{_RED}Negative voltage{_RESET}")

    async def zero(self) -> None:
        self._log.info(f"{_BOLD}{_CYAN}Zero voltage{_RESET}")

    async def fast_forward_started(self, from_text: str, to_text: str) -> None:
        self._log.info(f"Clock was starting fast forwarding from {from_text} to {to_text}.")

    async def fast_forward_stopped(self, at_text: str) -> None:
        self._log.info(f"Clock was stopping fast forwarding at {at_text}.")
