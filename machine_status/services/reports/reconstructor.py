"""
Interval reconstructor — time-in-status from a status-change log.

Single Responsibility: given one machine's status-change events and a
reporting window, sweep the events in time order and emit the
contiguous status intervals clipped to the window.  No I/O, no
scoping, no presentation — just pure calculation.

Sweep rules:
  - Events before the machine's creation are discarded.
  - The status active at the report start (the latest event at or
    before it) is carried into the window.
  - An interval is only closed when the next change is strictly later
    than the interval start, and only recorded when its duration is
    positive.
  - Events at or after the effective end never open an interval; the
    last open interval is closed at the effective end.
  - Durations are measured on the epoch-millisecond scale, so adjacent
    intervals always add up to the span they cover.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

from machine_status.core.timeutil import span_ms
from machine_status.models.domain import (
    StatusChangeEvent,
    StatusDuration,
    TimelineSegment,
)
from machine_status.services.reports.accumulator import StatusAccumulator


@dataclass
class MachineBreakdown:
    """Per-machine result of one sweep."""
    report_start: datetime
    effective_end: datetime
    totals: StatusAccumulator = field(default_factory=StatusAccumulator)
    segments: List[TimelineSegment] = field(default_factory=list)
    carried_over_status: Optional[str] = None

    @property
    def total_time(self) -> int:
        return self.totals.total

    @property
    def is_empty(self) -> bool:
        return not self.segments

    def status_durations(self) -> List[StatusDuration]:
        return self.totals.breakdown()


def reconstruct_machine(
    history: Iterable[StatusChangeEvent],
    machine_created_at: datetime,
    window_start: datetime,
    effective_end: datetime,
) -> MachineBreakdown:
    """
    Rebuild the status intervals of one machine inside a window.

    Args:
        history:            Every status change of the machine, any order.
        machine_created_at: Nothing before this instant is counted.
        window_start:       Requested report start.
        effective_end:      Report end already clamped to "now".

    Returns:
        ``MachineBreakdown`` — empty (no segments, zero totals) when
        the window or the history leaves nothing to measure.
    """
    report_start = max(window_start, machine_created_at)
    breakdown = MachineBreakdown(report_start=report_start, effective_end=effective_end)

    events = sorted(
        (e for e in history if e.changed_at >= machine_created_at),
        key=lambda e: e.changed_at,
    )
    if report_start >= effective_end or not events:
        return breakdown

    relevant = [e for e in events if e.changed_at < effective_end]
    if not relevant:
        return breakdown

    current_status = carried_over_status(events, report_start)
    breakdown.carried_over_status = current_status
    period_start = report_start

    for event in relevant:
        if current_status is not None and event.changed_at > period_start:
            _close_period(
                breakdown, current_status,
                period_start, min(event.changed_at, effective_end),
            )
        current_status = event.status
        period_start = max(event.changed_at, report_start)

    if current_status is not None and period_start < effective_end:
        _close_period(
            breakdown, current_status, period_start, effective_end,
        )

    return breakdown


def carried_over_status(
    events: List[StatusChangeEvent],
    report_start: datetime,
) -> Optional[str]:
    """Status of the latest event at or before *report_start* (sorted input)."""
    status: Optional[str] = None
    for event in events:
        if event.changed_at > report_start:
            break
        status = event.status
    return status


# ── Helpers ──────────────────────────────────────────────────────

def _close_period(
    breakdown: MachineBreakdown,
    status: str,
    start: datetime,
    end: datetime,
) -> None:
    """Record ``[start, end)`` for *status* if it has positive length."""
    duration = span_ms(start, end)
    if duration <= 0:
        return

    breakdown.totals.add(status, duration)

    breakdown.segments.append(
        TimelineSegment(
            status=status,
            start_time=start,
            end_time=end,
            duration=duration,
        )
    )
