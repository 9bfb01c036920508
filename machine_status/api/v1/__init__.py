"""
API v1 — Router aggregation.
"""

from fastapi import APIRouter

from machine_status.api.v1.system import router as system_router
from machine_status.api.v1.reports import router as reports_router
from machine_status.api.v1.history import router as history_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(system_router)
api_router.include_router(reports_router)
api_router.include_router(history_router)
