"""Observability API endpoints.

Provides metrics and health checks for monitoring.
"""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session

from ..cache.role_cache import RoleCache
from ..database import get_db
from ..dependencies import get_object_storage, get_role_cache
from ..domain.documents.ports.object_storage_port import ObjectStoragePort
from .health import (
    check_database_health,
    check_object_storage_health,
    check_role_cache_health,
    get_overall_health,
    HealthStatus,
)

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    """Expose Prometheus metrics in text exposition format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@router.get(
    "/health",
    summary="Health check endpoint",
    description="Returns health status of the database, role cache and object storage",
)
def health_check(
    db: Session = Depends(get_db),
    cache: RoleCache = Depends(get_role_cache),
    storage: ObjectStoragePort = Depends(get_object_storage),
):
    """Check health of all system components.

    Returns 200 OK unless a component is unhealthy, then 503. A disabled
    role cache only degrades the service.
    """
    components = {
        "database": check_database_health(db),
        "role_cache": check_role_cache_health(cache),
        "object_storage": check_object_storage_health(storage),
    }

    overall_status = get_overall_health(components)

    response_data = {
        "status": overall_status.value,
        "components": {
            name: {
                "status": comp.status.value,
                "message": comp.message,
                "latency_ms": comp.latency_ms,
            }
            for name, comp in components.items()
        }
    }

    status_code = 200 if overall_status != HealthStatus.UNHEALTHY else 503

    return JSONResponse(
        content=response_data,
        status_code=status_code
    )
