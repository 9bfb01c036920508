"""
Error taxonomy for report generation.

Only ``DataFetchError`` can surface from the core itself; the rest are
raised by the scoping and orchestration layers around it.
"""

from __future__ import annotations

from typing import Optional


class ReportError(Exception):
    """Base class for every error raised by this package."""


class DataFetchError(ReportError):
    """The remote data service failed (network, timeout or HTTP error)."""

    def __init__(self, api_id: str, message: str, status: int = 0) -> None:
        super().__init__(f"{api_id}: {message}")
        self.api_id = api_id
        self.message = message
        self.status = status


class InvalidWindowInput(ReportError):
    """A report window could not be parsed from user input."""

    def __init__(self, field: str, value: Optional[str], reason: str) -> None:
        super().__init__(f"Invalid {field}={value!r}: {reason}")
        self.field = field
        self.value = value
        self.reason = reason


class ReportAccessDenied(ReportError):
    """The caller's role may not generate reports."""


class ReportSuperseded(ReportError):
    """A newer report request from the same requester has started."""

    def __init__(self, requester: str, token: int, latest: int) -> None:
        super().__init__(
            f"Report {token} for '{requester}' superseded by {latest}"
        )
        self.requester = requester
        self.token = token
        self.latest = latest
