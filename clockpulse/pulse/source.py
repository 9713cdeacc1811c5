"""
Clock Status Source.

Fetches the authoritative clock status over HTTP and decodes it into a
ClockStatus. Decoding is lenient in the ways the clock server's documents
need: field names are case-insensitive, unknown fields are ignored and
trailing commas before a closing bracket are tolerated.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Any, Optional

import aiohttp
import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from clockpulse.core.clock_time import parse_time_of_day
from clockpulse.pulse.errors import ClockSourceError, StatusParseError
from clockpulse.pulse.types import ClockStatus

logger = logging.getLogger(__name__)


class ClockStatusModel(BaseModel):
    """Validated shape of a status document; keys are lower-cased before validation."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    time: dt.time
    is_unavailable: bool = Field(default=False, alias="isunavailable")
    is_realtime: bool = Field(default=False, alias="isrealtime")
    is_paused: bool = Field(default=False, alias="ispaused")

    @field_validator("time", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_time_of_day(value)
        return value

    def to_status(self) -> ClockStatus:
        return ClockStatus(
            time=self.time,
            is_unavailable=self.is_unavailable,
            is_realtime=self.is_realtime,
            is_paused=self.is_paused,
        )


def strip_trailing_commas(text: str) -> str:
    """Remove commas that directly precede '}' or ']' outside of string literals."""
    out: list[str] = []
    pending_comma: Optional[int] = None
    in_string = False
    escaped = False

    for ch in text:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == ",":
            pending_comma = len(out)
            out.append(ch)
        elif ch in "}]":
            if pending_comma is not None:
                del out[pending_comma]
            pending_comma = None
            out.append(ch)
        elif ch.isspace():
            out.append(ch)
        else:
            if ch == '"':
                in_string = True
            pending_comma = None
            out.append(ch)

    return "".join(out)


def decode_status(raw: str | bytes) -> ClockStatus:
    """
    Decode a status document.

    Raises:
        StatusParseError: If the document is not a JSON object with a valid time
    """
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    try:
        data = orjson.loads(strip_trailing_commas(text))
    except orjson.JSONDecodeError as e:
        raise StatusParseError(
            f"Status is not valid JSON: {e}",
            raw_data=text,
            expected_type="object",
            component="ClockStatusSource",
        ) from e

    if not isinstance(data, dict):
        raise StatusParseError(
            f"Status must be a JSON object, got {type(data).__name__}",
            raw_data=text,
            expected_type="object",
            component="ClockStatusSource",
        )

    normalized = {str(k).lower(): v for k, v in data.items()}
    try:
        return ClockStatusModel.model_validate(normalized).to_status()
    except (ValidationError, ValueError) as e:
        raise StatusParseError(
            f"Invalid status document: {e}",
            raw_data=text,
            expected_type="ClockStatus",
            component="ClockStatusSource",
        ) from e


class ClockStatusSource:
    """
    HTTP client for the clock status endpoint.

    Owns its aiohttp session unless one is injected.

    Usage:
        async with ClockStatusSource("http://clock.local/api/clocks/demo/time") as source:
            status = await source.fetch()
    """

    def __init__(
        self,
        href: str,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_s: float = 10.0,
    ) -> None:
        self._href = href
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout_s)

    @property
    def href(self) -> str:
        return self._href

    async def __aenter__(self) -> "ClockStatusSource":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def fetch(self) -> ClockStatus:
        """
        Request and decode the current clock status.

        Raises:
            ClockSourceError: On transport errors or a non-success status code
            StatusParseError: If the response body cannot be decoded
        """
        session = self._ensure_session()
        try:
            async with session.get(self._href) as response:
                if not 200 <= response.status < 300:
                    raise ClockSourceError(
                        f"Responded with code {response.status}",
                        url=self._href,
                        status=response.status,
                        component="ClockStatusSource",
                    )
                body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ClockSourceError(
                f"Request failed: {e}",
                url=self._href,
                component="ClockStatusSource",
            ) from e

        status = decode_status(body)
        logger.debug(f"Fetched status from {self._href}: {status}")
        return status

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
