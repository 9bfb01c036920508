"""
Timestamp helpers shared by the domain model and the report engine.

All timestamps inside the package are timezone-aware UTC ``datetime``
objects; durations are integer milliseconds.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo

from machine_status.core.config import settings

_ONE_MS = timedelta(milliseconds=1)

TimestampLike = Union[str, datetime]


def local_zone(name: Optional[str] = None) -> tzinfo:
    """Resolve the zone naive timestamps are interpreted in."""
    return ZoneInfo(name or settings.REPORT_TIMEZONE)


def parse_timestamp(value: TimestampLike, zone: Optional[tzinfo] = None) -> datetime:
    """
    Parse an ISO 8601 value into an aware UTC ``datetime``.

    Naive values are interpreted in *zone* (default ``REPORT_TIMEZONE``).
    Raises ``ValueError`` / ``TypeError`` on malformed input; callers
    decide whether that is recoverable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip())
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone or local_zone())
    return truncate_ms(parsed.astimezone(timezone.utc))


def parse_optional_timestamp(value: Any) -> Optional[datetime]:
    """Like ``parse_timestamp`` but ``None``/empty pass through as ``None``."""
    if value is None or value == "":
        return None
    return parse_timestamp(value)


def utc_now() -> datetime:
    return truncate_ms(datetime.now(timezone.utc))


def truncate_ms(moment: datetime) -> datetime:
    """Drop sub-millisecond precision; every instant in a report is a whole ms."""
    return moment.replace(microsecond=moment.microsecond // 1000 * 1000)


def to_ms(delta: timedelta) -> int:
    """Whole milliseconds in *delta* (floored)."""
    return delta // _ONE_MS


def to_epoch_ms(moment: datetime) -> int:
    return to_ms(moment - datetime(1970, 1, 1, tzinfo=timezone.utc))


def span_ms(start: datetime, end: datetime) -> int:
    """
    Milliseconds between two instants, measured on the epoch-ms scale.

    Adjacent spans add up exactly: ``span_ms(a, b) + span_ms(b, c) ==
    span_ms(a, c)`` even when the inputs carry microseconds.
    """
    return to_epoch_ms(end) - to_epoch_ms(start)
