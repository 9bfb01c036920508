"""
StatusAccumulator — per-status duration totals.

Used twice per report: once per machine, and once as the caller-owned
aggregate that every machine contributes to.  Insertion order is
first-seen order, which is the tie-break when durations are equal.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from machine_status.models.domain import StatusDuration


class StatusAccumulator:
    """Running ``status -> milliseconds`` totals."""

    def __init__(self) -> None:
        self._totals: Dict[str, int] = {}

    def add(self, status: str, duration: int) -> None:
        """Record *duration* ms for *status*; non-positive values are ignored."""
        if duration <= 0:
            return
        self._totals[status] = self._totals.get(status, 0) + duration

    def merge(self, totals: Dict[str, int]) -> None:
        for status, duration in totals.items():
            self.add(status, duration)

    @property
    def total(self) -> int:
        return sum(self._totals.values())

    def totals(self) -> Dict[str, int]:
        return dict(self._totals)

    def breakdown(self) -> List[StatusDuration]:
        """Durations with percentages, longest first."""
        return build_status_durations(self._totals.items())

    def __len__(self) -> int:
        return len(self._totals)


def build_status_durations(items: Iterable[tuple[str, int]]) -> List[StatusDuration]:
    """
    Derive percentages from ``(status, duration)`` pairs.

    The percentage base is the sum of the given durations, so the
    breakdown is always consistent with itself.  ``sorted`` is stable,
    so equal durations keep their incoming order.
    """
    pairs = list(items)
    total = sum(duration for _, duration in pairs)
    durations = [
        StatusDuration(
            status=status,
            duration=duration,
            percentage=(duration / total) * 100 if total > 0 else 0.0,
        )
        for status, duration in pairs
    ]
    return sorted(durations, key=lambda d: d.duration, reverse=True)
