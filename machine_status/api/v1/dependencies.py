"""
FastAPI dependencies — shared service instances and request parsing.

Single Responsibility: provide reusable ``Depends()`` callables so that
endpoints never reach for module singletons directly; tests override
these with ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException

from machine_status.core.errors import InvalidWindowInput
from machine_status.models.domain import ReportWindow
from machine_status.services.broker.data_service import DataService, data_service
from machine_status.services.filters.machine_scope import MachineScopeResolver
from machine_status.services.filters.window import parse_report_window
from machine_status.services.reports.generator import (
    ReportGenerator,
    report_generator,
)


def get_data_service() -> DataService:
    return data_service


def get_report_generator() -> ReportGenerator:
    return report_generator


def get_scope_resolver(
    source: DataService = Depends(get_data_service),
) -> MachineScopeResolver:
    return MachineScopeResolver(source)


def window_or_422(start: Optional[str], end: Optional[str]) -> ReportWindow:
    """
    Parse a report window, mapping bad input to HTTP 422.

    Invalid input stops the request before the report engine runs.
    """
    try:
        return parse_report_window(start, end)
    except InvalidWindowInput as exc:
        raise HTTPException(status_code=422, detail=str(exc))
