"""
Export — report → DataFrame → CSV / Excel.

Single Responsibility: flatten a ``StatusReport`` into tabular form and
serialize it to downloadable byte formats.  No business logic.
"""

from __future__ import annotations

import io
from typing import Callable, Dict

import pandas as pd

from machine_status.models.domain import StatusReport
from machine_status.services.reports.presentation import format_duration

SUMMARY_COLUMNS = ["status", "duration_ms", "duration", "percentage"]
MACHINE_COLUMNS = [
    "machine_id", "machine_code", "machine_name",
    "status", "duration_ms", "duration", "percentage",
]
TIMELINE_COLUMNS = [
    "machine_id", "machine_code", "machine_name",
    "status", "start_time", "end_time", "duration_ms", "duration",
]


def summary_frame(report: StatusReport) -> pd.DataFrame:
    """Aggregate breakdown, one row per status."""
    rows = [
        {
            "status": d.status,
            "duration_ms": d.duration,
            "duration": format_duration(d.duration),
            "percentage": round(d.percentage, 2),
        }
        for d in report.status_durations
    ]
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def machines_frame(report: StatusReport) -> pd.DataFrame:
    """Per-machine breakdowns, one row per (machine, status)."""
    rows = [
        {
            "machine_id": r.machine_id,
            "machine_code": r.machine_code,
            "machine_name": r.machine_name,
            "status": d.status,
            "duration_ms": d.duration,
            "duration": format_duration(d.duration),
            "percentage": round(d.percentage, 2),
        }
        for r in report.machine_reports
        for d in r.status_durations
    ]
    return pd.DataFrame(rows, columns=MACHINE_COLUMNS)


def timeline_frame(report: StatusReport) -> pd.DataFrame:
    """Every timeline segment, ordered by machine then start time."""
    rows = [
        {
            "machine_id": t.machine_id,
            "machine_code": t.machine_code,
            "machine_name": t.machine_name,
            "status": s.status,
            "start_time": s.start_time,
            "end_time": s.end_time,
            "duration_ms": s.duration,
            "duration": format_duration(s.duration),
        }
        for t in report.machine_timelines
        for s in t.segments
    ]
    df = pd.DataFrame(rows, columns=TIMELINE_COLUMNS)
    return format_datetime_columns(df)


FRAME_BUILDERS: Dict[str, Callable[[StatusReport], pd.DataFrame]] = {
    "summary": summary_frame,
    "machines": machines_frame,
    "timeline": timeline_frame,
}


def to_csv(df: pd.DataFrame) -> str:
    """Export a DataFrame to a CSV string."""
    if df.empty:
        return ""
    return df.to_csv(index=False)


def to_excel_bytes(report: StatusReport) -> bytes:
    """Export every report view to one xlsx workbook, one sheet per view."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for sheet_name, builder in FRAME_BUILDERS.items():
            builder(report).to_excel(writer, index=False, sheet_name=sheet_name)
    return buffer.getvalue()


def format_datetime_columns(df: pd.DataFrame, fmt: str = "%Y-%m-%dT%H:%M:%S%z") -> pd.DataFrame:
    """
    Convert all datetime columns to formatted strings.

    Returns the modified DataFrame (mutated in place).
    """
    for col in ("start_time", "end_time"):
        if col in df.columns and not df.empty:
            df[col] = pd.to_datetime(df[col], utc=True).dt.strftime(fmt)
    return df
