"""System endpoints — health check, data-service endpoint catalog."""

from fastapi import APIRouter, Depends

from machine_status.api.v1.dependencies import get_data_service
from machine_status.core.config import settings
from machine_status.services.broker.api_config import api_config_loader
from machine_status.services.broker.data_service import DataService

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/health")
async def health_check():
    """Basic liveness probe."""
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "data_service": settings.DATA_SERVICE_URL,
    }


@router.get("/endpoints")
async def list_endpoints():
    """Configured data-service endpoints (from ``data_service.yml``)."""
    return [
        {
            "api_id": ep.api_id,
            "name": ep.name,
            "path": ep.path,
            "cache_ttl": ep.cache_ttl,
            "enabled": ep.enabled,
        }
        for ep in api_config_loader.get_all().values()
    ]


@router.post("/cache/clear")
async def cache_clear(source: DataService = Depends(get_data_service)):
    """Drop cached catalog responses (departments, status types)."""
    source.clear_cache()
    return {"status": "cleared"}
