"""
ReportWindow parsing — date/time range input.

Accepts ISO 8601 date-times, including the ``YYYY-MM-DDTHH:MM`` form a
``datetime-local`` input produces.  Naive values are local wall-clock
time in ``REPORT_TIMEZONE``.  Missing values default to the last
``DEFAULT_WINDOW_HOURS`` hours ending now.

A start at or after the end is NOT rejected here: it simply produces
an empty report.
"""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Optional

from machine_status.core.config import settings
from machine_status.core.errors import InvalidWindowInput
from machine_status.core.timeutil import local_zone, parse_timestamp, utc_now
from machine_status.models.domain import ReportWindow


def parse_report_window(
    start: Optional[str],
    end: Optional[str],
    now: Optional[datetime] = None,
    zone: Optional[tzinfo] = None,
) -> ReportWindow:
    """
    Build a ``ReportWindow`` from raw user input.

    Raises:
        InvalidWindowInput: a provided value is not a valid date-time.
    """
    zone = zone or local_zone()
    now = now or utc_now()

    end_dt = _parse_field("end", end, zone) or now
    start_dt = _parse_field("start", start, zone) or (
        end_dt - timedelta(hours=settings.DEFAULT_WINDOW_HOURS)
    )
    return ReportWindow(start=start_dt, end=end_dt)


def parse_bound(
    name: str,
    value: Optional[str],
    zone: Optional[tzinfo] = None,
) -> Optional[datetime]:
    """Parse one optional range bound; ``None`` means unbounded."""
    return _parse_field(name, value, zone or local_zone())


def _parse_field(name: str, value: Optional[str], zone: tzinfo) -> Optional[datetime]:
    if value is None or not value.strip():
        return None
    try:
        return parse_timestamp(value, zone)
    except (ValueError, TypeError) as exc:
        raise InvalidWindowInput(name, value, str(exc)) from exc
