"""
History API — the raw status-change log, scoped to the caller.

GET /api/v1/history
  Admin sees every machine, a team leader the machines of the
  departments they lead, an operator the machines assigned to them.
  Optional filters (combined with AND): department, machine, status,
  and a ``[start, end]`` range on ``changed_at``.  Newest changes first.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from machine_status.api.v1.dependencies import get_data_service, get_scope_resolver
from machine_status.core.errors import (
    DataFetchError,
    InvalidWindowInput,
    ReportAccessDenied,
)
from machine_status.models.domain import MachineSelection, Principal
from machine_status.services.broker.data_service import DataService
from machine_status.services.filters.machine_scope import MachineScopeResolver
from machine_status.services.filters.window import parse_bound

router = APIRouter(prefix="/history", tags=["history"])


@router.get("")
async def list_history(
    role: str = Query(..., description="admin | team_leader | operator"),
    user_id: Optional[int] = Query(None),
    department_id: Optional[int] = Query(None),
    machine_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    limit: int = Query(500, ge=1, le=5000),
    resolver: MachineScopeResolver = Depends(get_scope_resolver),
    source: DataService = Depends(get_data_service),
):
    """Scoped, filtered status-change log."""
    try:
        start_dt = parse_bound("start", start)
        end_dt = parse_bound("end", end)
    except InvalidWindowInput as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    principal = Principal(role=role, user_id=user_id)
    selection = MachineSelection(department_id=department_id)

    try:
        machines = await resolver.resolve(principal, selection)
        events = await source.get_status_history()
    except ReportAccessDenied as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    except DataFetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc))

    by_id = {m.id: m for m in machines}
    rows = [
        e for e in events
        if e.machine_id in by_id
        and (machine_id is None or e.machine_id == machine_id)
        and (status is None or e.status == status)
        and (start_dt is None or e.changed_at >= start_dt)
        and (end_dt is None or e.changed_at <= end_dt)
    ]
    rows.sort(key=lambda e: e.changed_at, reverse=True)

    items = []
    for event in rows[:limit]:
        item = event.to_dict()
        item["machine_code"] = by_id[event.machine_id].code
        item["machine_name"] = by_id[event.machine_id].name
        items.append(item)

    return {"items": items, "count": len(items), "total": len(rows)}
