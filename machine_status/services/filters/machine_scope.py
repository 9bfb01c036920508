"""
MachineScopeResolver — resolve the target machine set for a request.

Single Responsibility: turn a ``MachineSelection`` and the caller's
``Principal`` into a concrete list of machines.  The report engine never
sees roles; it only receives the resolved list.

Selection priority:
  1. ``machine_ids``   → exactly those machines.
  2. ``department_id`` → machines of that department.
  3. Neither           → every machine.

Role restriction (applied after selection):
  - ``admin``       → unrestricted.
  - ``team_leader`` → machines in departments the user leads.
  - ``operator``    → machines assigned to the user.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from machine_status.core.errors import ReportAccessDenied
from machine_status.models.domain import Machine, MachineSelection, Principal
from machine_status.services.broker.data_service import DataService, data_service

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_TEAM_LEADER = "team_leader"
ROLE_OPERATOR = "operator"

ROLES = (ROLE_ADMIN, ROLE_TEAM_LEADER, ROLE_OPERATOR)
REPORT_ROLES = (ROLE_ADMIN, ROLE_TEAM_LEADER)


class MachineScopeResolver:
    """
    Resolves the machines a principal may see for a given selection.
    """

    def __init__(self, source: Optional[DataService] = None) -> None:
        self._source = source or data_service

    async def resolve(
        self,
        principal: Principal,
        selection: MachineSelection,
    ) -> List[Machine]:
        """Fetch machines and apply selection + role restriction."""
        _check_role(principal)
        machines = await self._source.get_machines()
        selected = select_machines(machines, selection)
        scoped = await self._restrict(selected, principal)

        logger.info(
            f"[MachineScope] {len(scoped)} of {len(machines)} machines "
            f"in scope for role={principal.role}"
        )
        return scoped

    async def resolve_for_report(
        self,
        principal: Principal,
        selection: MachineSelection,
    ) -> List[Machine]:
        """Same as ``resolve`` but only for roles allowed to run reports."""
        if principal.role not in REPORT_ROLES:
            raise ReportAccessDenied(
                f"Role '{principal.role}' may not generate reports"
            )
        return await self.resolve(principal, selection)

    # ─────────────────────────────────────────────────────────────
    #  ROLE RESTRICTION
    # ─────────────────────────────────────────────────────────────

    async def _restrict(
        self,
        machines: List[Machine],
        principal: Principal,
    ) -> List[Machine]:
        if principal.role == ROLE_ADMIN:
            return machines

        if principal.user_id is None:
            logger.warning(
                f"[MachineScope] role={principal.role} without user_id — empty scope"
            )
            return []

        if principal.role == ROLE_TEAM_LEADER:
            leaders = await self._source.get_department_leaders(principal.user_id)
            return restrict_to_departments(
                machines, (row.department_id for row in leaders),
            )

        assignments = await self._source.get_machine_operators(principal.user_id)
        return restrict_to_machine_ids(
            machines, (row.machine_id for row in assignments),
        )


# ── Pure helpers ─────────────────────────────────────────────────

def select_machines(
    machines: Iterable[Machine],
    selection: MachineSelection,
) -> List[Machine]:
    """Apply the explicit selection; result is ordered by machine code."""
    if selection.machine_ids:
        wanted = set(selection.machine_ids)
        chosen = [m for m in machines if m.id in wanted]
    elif selection.department_id is not None:
        chosen = [m for m in machines if m.department_id == selection.department_id]
    else:
        chosen = list(machines)
    return sorted(chosen, key=lambda m: m.code)


def restrict_to_departments(
    machines: Iterable[Machine],
    department_ids: Iterable[int],
) -> List[Machine]:
    allowed: Set[int] = set(department_ids)
    return [
        m for m in machines
        if m.department_id is not None and m.department_id in allowed
    ]


def restrict_to_machine_ids(
    machines: Iterable[Machine],
    machine_ids: Iterable[int],
) -> List[Machine]:
    allowed: Set[int] = set(machine_ids)
    return [m for m in machines if m.id in allowed]


def _check_role(principal: Principal) -> None:
    if principal.role not in ROLES:
        raise ReportAccessDenied(f"Unknown role '{principal.role}'")
