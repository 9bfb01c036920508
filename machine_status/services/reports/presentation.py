"""
Presentation helpers for report consumers.

Status names are opaque to the report engine; colours live in the
status-type catalog as a colour key, mapped here to a hex value.
"""

from __future__ import annotations

from typing import Dict, Iterable

from machine_status.models.domain import StatusType

_MS_PER_MINUTE = 60 * 1000
_MS_PER_HOUR = 60 * _MS_PER_MINUTE

FALLBACK_COLOR = "gray"

COLOR_HEX: Dict[str, str] = {
    "green": "#10B981",
    "blue": "#3B82F6",
    "yellow": "#F59E0B",
    "red": "#EF4444",
    "purple": "#A855F7",
    "orange": "#F97316",
    "pink": "#EC4899",
    "gray": "#9CA3AF",
}


def format_duration(ms: int) -> str:
    """``5_400_000`` → ``"1h 30m"`` (seconds are truncated)."""
    hours = ms // _MS_PER_HOUR
    minutes = (ms % _MS_PER_HOUR) // _MS_PER_MINUTE
    return f"{hours}h {minutes}m"


def status_color(status: str, status_types: Iterable[StatusType]) -> str:
    """Hex colour for *status*; unknown statuses and colour keys fall back to gray."""
    for status_type in status_types:
        if status_type.name == status:
            return COLOR_HEX.get(status_type.color, COLOR_HEX[FALLBACK_COLOR])
    return COLOR_HEX[FALLBACK_COLOR]


def status_palette(
    statuses: Iterable[str],
    status_types: Iterable[StatusType],
) -> Dict[str, str]:
    types = list(status_types)
    return {status: status_color(status, types) for status in statuses}
