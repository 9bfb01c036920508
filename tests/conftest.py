"""Shared fixtures: fixed clock, sample machines and an in-memory data service."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from machine_status.core.errors import DataFetchError
from machine_status.models.domain import (
    DepartmentLeader,
    Machine,
    MachineOperator,
    StatusChangeEvent,
    StatusType,
)

T0 = datetime(2024, 3, 1, 6, 0, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)


def hours(n: float) -> datetime:
    return T0 + n * HOUR


def event(machine_id: int, status: str, at: datetime, comment: Optional[str] = None) -> StatusChangeEvent:
    return StatusChangeEvent(machine_id=machine_id, status=status, changed_at=at, comment=comment)


def machine(machine_id: int, department_id: Optional[int] = 1, created_at: datetime = T0) -> Machine:
    return Machine(
        id=machine_id,
        code=f"M-{machine_id:03d}",
        name=f"Press {machine_id}",
        created_at=created_at,
        department_id=department_id,
    )


class FakeDataService:
    """In-memory stand-in for ``DataService`` with the same coroutine API."""

    def __init__(
        self,
        machines: List[Machine],
        histories: Dict[int, List[StatusChangeEvent]],
        leaders: Optional[List[DepartmentLeader]] = None,
        operators: Optional[List[MachineOperator]] = None,
        status_types: Optional[List[StatusType]] = None,
        failing_machine: Optional[int] = None,
    ) -> None:
        self.machines = machines
        self.histories = histories
        self.leaders = leaders or []
        self.operators = operators or []
        self.status_types = status_types or []
        self.failing_machine = failing_machine
        self.history_calls: List[int] = []

    async def get_machines(self) -> List[Machine]:
        return list(self.machines)

    async def get_machine_history(self, machine_id: int) -> List[StatusChangeEvent]:
        self.history_calls.append(machine_id)
        if machine_id == self.failing_machine:
            raise DataFetchError("machine_history", "HTTP 500: boom", 500)
        return list(self.histories.get(machine_id, []))

    async def get_status_history(self) -> List[StatusChangeEvent]:
        return [e for events in self.histories.values() for e in events]

    async def get_department_leaders(self, user_id: int) -> List[DepartmentLeader]:
        return [row for row in self.leaders if row.user_id == user_id]

    async def get_machine_operators(self, user_id: int) -> List[MachineOperator]:
        return [row for row in self.operators if row.user_id == user_id]

    async def get_status_types(self) -> List[StatusType]:
        return list(self.status_types)

    def clear_cache(self, api_id: Optional[str] = None) -> None:
        pass


@pytest.fixture
def plant() -> FakeDataService:
    """Two departments, three machines, one leader (user 10), one operator (user 20)."""
    machines = [machine(1, 1), machine(2, 1), machine(3, 2)]
    histories = {
        1: [
            event(1, "Running", hours(0)),
            event(1, "Idle", hours(2), comment="lunch"),
            event(1, "Running", hours(3)),
        ],
        2: [event(2, "Down", hours(0.5))],
        3: [event(3, "Running", hours(1)), event(3, "Down", hours(3.5))],
    }
    return FakeDataService(
        machines=machines,
        histories=histories,
        leaders=[DepartmentLeader(department_id=2, user_id=10)],
        operators=[MachineOperator(machine_id=2, user_id=20)],
        status_types=[
            StatusType(name="Running", color="green"),
            StatusType(name="Idle", color="yellow"),
            StatusType(name="Down", color="red"),
        ],
    )
