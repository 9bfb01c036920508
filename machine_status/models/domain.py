"""
Domain Models — records read from the data service and report outputs.

Read-only records (``Machine``, ``StatusChangeEvent`` …) are built from
the JSON rows returned by the data service via ``from_api``.  Derived
records (``StatusDuration``, ``TimelineSegment`` …) are produced fresh
by the report engine on every request and never persisted.

Timestamps are aware UTC ``datetime`` objects; durations are integer
milliseconds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from machine_status.core.timeutil import (
    parse_optional_timestamp,
    parse_timestamp,
    to_epoch_ms,
)


# ─────────────────────────────────────────────────────────────
#  RECORDS OWNED BY THE DATA SERVICE
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StatusChangeEvent:
    """One status transition of a machine (append-only log entry)."""
    machine_id: int
    status: str
    changed_at: datetime
    previous_status: Optional[str] = None
    comment: Optional[str] = None
    changed_by: Optional[int] = None
    id: Optional[int] = None

    @classmethod
    def from_api(cls, row: Dict[str, Any]) -> "StatusChangeEvent":
        return cls(
            id=row.get("id"),
            machine_id=int(row["machine_id"]),
            status=str(row["status"]),
            previous_status=row.get("previous_status"),
            changed_at=parse_timestamp(row["changed_at"]),
            comment=row.get("comment"),
            changed_by=row.get("changed_by"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "machine_id": self.machine_id,
            "status": self.status,
            "previous_status": self.previous_status,
            "changed_at": self.changed_at.isoformat(),
            "comment": self.comment,
            "changed_by": self.changed_by,
        }


@dataclass(frozen=True)
class Machine:
    """A machine; ``created_at`` bounds every report from below."""
    id: int
    code: str
    name: str
    created_at: datetime
    department_id: Optional[int] = None
    description: str = ""
    current_status: Optional[str] = None
    last_updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, row: Dict[str, Any]) -> "Machine":
        dept = row.get("department_id")
        return cls(
            id=int(row["id"]),
            code=str(row["machine_code"]),
            name=str(row["machine_name"]),
            created_at=parse_timestamp(row["created_at"]),
            department_id=int(dept) if dept is not None else None,
            description=row.get("description") or "",
            current_status=row.get("current_status"),
            last_updated_at=parse_optional_timestamp(row.get("last_updated_at")),
        )


@dataclass(frozen=True)
class Department:
    id: int
    name: str
    description: str = ""

    @classmethod
    def from_api(cls, row: Dict[str, Any]) -> "Department":
        return cls(
            id=int(row["id"]),
            name=str(row["name"]),
            description=row.get("description") or "",
        )


@dataclass(frozen=True)
class StatusType:
    """Catalog entry: a status name plus its presentation colour key."""
    name: str
    color: str = "gray"
    is_active: bool = True
    is_default: bool = False
    display_order: int = 0

    @classmethod
    def from_api(cls, row: Dict[str, Any]) -> "StatusType":
        return cls(
            name=str(row["name"]),
            color=row.get("color") or "gray",
            is_active=bool(row.get("is_active", True)),
            is_default=bool(row.get("is_default", False)),
            display_order=int(row.get("display_order") or 0),
        )


@dataclass(frozen=True)
class DepartmentLeader:
    department_id: int
    user_id: int

    @classmethod
    def from_api(cls, row: Dict[str, Any]) -> "DepartmentLeader":
        return cls(department_id=int(row["department_id"]), user_id=int(row["user_id"]))


@dataclass(frozen=True)
class MachineOperator:
    machine_id: int
    user_id: int

    @classmethod
    def from_api(cls, row: Dict[str, Any]) -> "MachineOperator":
        return cls(machine_id=int(row["machine_id"]), user_id=int(row["user_id"]))


# ─────────────────────────────────────────────────────────────
#  REQUEST VALUE OBJECTS
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ReportWindow:
    """Caller-supplied reporting window ``[start, end)``."""
    start: datetime
    end: datetime

    def effective_end(self, now: datetime) -> datetime:
        """A report never claims time beyond *now*."""
        return min(self.end, now)


@dataclass(frozen=True)
class Principal:
    """The caller on whose behalf machines are scoped."""
    role: str
    user_id: Optional[int] = None


@dataclass(frozen=True)
class MachineSelection:
    """Explicit machine ids win over a department; neither means all."""
    machine_ids: Tuple[int, ...] = ()
    department_id: Optional[int] = None


# ─────────────────────────────────────────────────────────────
#  DERIVED REPORT RECORDS
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StatusDuration:
    status: str
    duration: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "duration": self.duration,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class TimelineSegment:
    status: str
    start_time: datetime
    end_time: datetime
    duration: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "start_ms": to_epoch_ms(self.start_time),
            "end_ms": to_epoch_ms(self.end_time),
            "duration": self.duration,
        }


@dataclass(frozen=True)
class MachineReport:
    machine_id: int
    machine_code: str
    machine_name: str
    status_durations: List[StatusDuration]
    total_time: int

    @property
    def is_empty(self) -> bool:
        return self.total_time == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "machine_id": self.machine_id,
            "machine_code": self.machine_code,
            "machine_name": self.machine_name,
            "status_durations": [d.to_dict() for d in self.status_durations],
            "total_time": self.total_time,
        }


@dataclass(frozen=True)
class MachineTimeline:
    machine_id: int
    machine_code: str
    machine_name: str
    segments: List[TimelineSegment]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "machine_id": self.machine_id,
            "machine_code": self.machine_code,
            "machine_name": self.machine_name,
            "segments": [s.to_dict() for s in self.segments],
        }


@dataclass(frozen=True)
class StatusReport:
    """Aggregate over every target machine plus the per-machine views."""
    status_durations: List[StatusDuration]
    total_time: int
    machine_reports: List[MachineReport]
    machine_timelines: List[MachineTimeline]
    window: ReportWindow
    effective_end: datetime
    generated_at: datetime
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.total_time == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status_durations": [d.to_dict() for d in self.status_durations],
            "total_time": self.total_time,
            "machine_reports": [r.to_dict() for r in self.machine_reports],
            "machine_timelines": [t.to_dict() for t in self.machine_timelines],
            "window": {
                "start": self.window.start.isoformat(),
                "end": self.window.end.isoformat(),
                "effective_end": self.effective_end.isoformat(),
            },
            "generated_at": self.generated_at.isoformat(),
            "meta": dict(self.meta),
        }
