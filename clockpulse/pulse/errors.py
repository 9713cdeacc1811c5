"""
Custom exceptions for the pulse synchronization module.

Exception hierarchy:
- PulseError (base)
  - ConfigurationError: Invalid or missing settings
  - ClockSourceError: Status request failed or returned a non-success code
  - StatusParseError: Status document could not be decoded
  - SinkError: A sink could not perform a lifecycle or voltage operation
  - EngineError: Engine used outside its lifecycle
"""

from __future__ import annotations

from typing import Any, Optional


class PulseError(Exception):
    """Base exception for all pulse synchronization errors."""

    def __init__(
        self,
        message: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.component = component
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.component:
            parts.append(f"[component={self.component}]")
        if self.details:
            parts.append(f"[details={self.details}]")
        return " ".join(parts)


class ConfigurationError(PulseError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.field = field
        self.value = value
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, component=component, details=details)


class ClockSourceError(PulseError):
    """Raised when the clock status source cannot be reached or answers with an error."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status: Optional[int] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.url = url
        self.status = status
        details = details or {}
        if url:
            details["url"] = url
        if status is not None:
            details["status"] = status
        super().__init__(message, component=component, details=details)


class StatusParseError(PulseError):
    """Raised when a status document cannot be decoded."""

    def __init__(
        self,
        message: str,
        *,
        raw_data: Optional[str] = None,
        expected_type: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.raw_data = raw_data
        self.expected_type = expected_type
        details = details or {}
        if expected_type:
            details["expected_type"] = expected_type
        # raw_data stays out of details to keep log lines short
        super().__init__(message, component=component, details=details)


class SinkError(PulseError):
    """Raised when a sink fails a lifecycle or voltage operation."""

    def __init__(
        self,
        message: str,
        *,
        sink_name: Optional[str] = None,
        operation: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.sink_name = sink_name
        self.operation = operation
        details = details or {}
        if sink_name:
            details["sink_name"] = sink_name
        if operation:
            details["operation"] = operation
        super().__init__(message, component=component, details=details)


class EngineError(PulseError):
    """Raised when the engine is driven outside its lifecycle."""
