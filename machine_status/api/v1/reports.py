"""
Report API Endpoints — status-duration reports over a time window.

Core endpoint: POST /api/v1/reports/generate
  1. Parses the window (422 on malformed input — engine never runs).
  2. Resolves target machines from the selection + caller role.
  3. Delegates to ReportGenerator (fetch → sweep → aggregate).
  4. Returns aggregate, per-machine breakdowns and timelines.

Secondary endpoints:
  POST /api/v1/reports/export  → same report as CSV or XLSX download
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field

from machine_status.api.v1.dependencies import (
    get_data_service,
    get_report_generator,
    get_scope_resolver,
    window_or_422,
)
from machine_status.core.errors import (
    DataFetchError,
    ReportAccessDenied,
    ReportSuperseded,
)
from machine_status.models.domain import MachineSelection, Principal, StatusReport
from machine_status.services.broker.data_service import DataService
from machine_status.services.filters.machine_scope import MachineScopeResolver
from machine_status.services.reports import export
from machine_status.services.reports.generator import ReportGenerator
from machine_status.services.reports.presentation import (
    format_duration,
    status_palette,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])

_MEDIA_TYPES = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


# ── Pydantic request model ───────────────────────────────────────

class ReportRequest(BaseModel):
    """
    Request body for report generation.

    ``machine_ids`` wins over ``department_id``; neither means every
    machine visible to the caller.
    """
    start: Optional[str] = Field(
        None, description="Window start (ISO 8601; naive = local time).",
    )
    end: Optional[str] = Field(
        None, description="Window end; clamped to now.",
    )
    department_id: Optional[int] = None
    machine_ids: List[int] = Field(default_factory=list)

    # Auth context (sent by the frontend)
    role: str = Field(..., description="admin | team_leader | operator")
    user_id: Optional[int] = None


# ── Helpers ──────────────────────────────────────────────────────

async def _run_report(
    request: ReportRequest,
    resolver: MachineScopeResolver,
    generator: ReportGenerator,
) -> StatusReport:
    """
    Scope → generate, mapping domain errors onto HTTP errors.

    A newer request from the same ``user_id`` supersedes an older one
    (409); requests without a ``user_id`` never supersede each other.
    """
    window = window_or_422(request.start, request.end)
    principal = Principal(role=request.role, user_id=request.user_id)
    selection = MachineSelection(
        machine_ids=tuple(request.machine_ids),
        department_id=request.department_id,
    )
    requester = str(request.user_id) if request.user_id is not None else None

    try:
        machines = await resolver.resolve_for_report(principal, selection)
        return await generator.generate(machines, window, requester=requester)
    except ReportAccessDenied as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    except ReportSuperseded as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except DataFetchError as exc:
        logger.error(f"[Reports] Report generation failed: {exc}")
        raise HTTPException(
            status_code=502, detail=f"Report generation failed: {exc}",
        )


def _presentation(report: StatusReport, palette: Dict[str, str]) -> Dict[str, Any]:
    """Human-readable durations next to the raw milliseconds."""
    return {
        "total_time": format_duration(report.total_time),
        "status_durations": {
            d.status: format_duration(d.duration) for d in report.status_durations
        },
        "machines": {
            str(r.machine_id): format_duration(r.total_time)
            for r in report.machine_reports
        },
        "status_colors": palette,
    }


# ── Endpoints ────────────────────────────────────────────────────

@router.post("/generate")
async def generate_report(
    request: ReportRequest,
    resolver: MachineScopeResolver = Depends(get_scope_resolver),
    generator: ReportGenerator = Depends(get_report_generator),
    source: DataService = Depends(get_data_service),
):
    """
    Generate the status report — the "Generate report" button hits this.

    An empty report (nothing measurable in the window) is a normal
    200 response with ``total_time == 0``.
    """
    report = await _run_report(request, resolver, generator)

    statuses = {d.status for d in report.status_durations}
    try:
        status_types = await source.get_status_types()
    except DataFetchError as exc:
        logger.warning(f"[Reports] Status colours unavailable: {exc}")
        status_types = []

    body = report.to_dict()
    body["display"] = _presentation(report, status_palette(sorted(statuses), status_types))
    return body


@router.post("/export")
async def export_report(
    request: ReportRequest,
    format: str = Query("csv", pattern="^(csv|xlsx)$"),
    view: str = Query("summary", pattern="^(summary|machines|timeline)$"),
    resolver: MachineScopeResolver = Depends(get_scope_resolver),
    generator: ReportGenerator = Depends(get_report_generator),
):
    """
    Download the report.

    ``csv`` exports the single ``view``; ``xlsx`` contains every view as
    its own sheet.
    """
    report = await _run_report(request, resolver, generator)

    if format == "xlsx":
        content: Any = export.to_excel_bytes(report)
        filename = "status_report.xlsx"
    else:
        content = export.to_csv(export.FRAME_BUILDERS[view](report))
        filename = f"status_report_{view}.csv"

    return Response(
        content=content,
        media_type=_MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
