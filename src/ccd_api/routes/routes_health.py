"""Health check endpoints for monitoring application status."""

from datetime import datetime
from datetime import timezone

from fastapi import APIRouter
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from loguru import logger

ROUTER_HEALTH = APIRouter(tags=["Health"])


@ROUTER_HEALTH.get(
    "/health",
    summary="Health check endpoint",
    description="Basic health check that returns application status and metadata",
    responses={
        status.HTTP_200_OK: {
            "description": "Application is healthy",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "timestamp": "2026-01-05T12:00:00.000000Z",
                        "service": "CCDigital Access Request API",
                        "version": "v1",
                    }
                }
            },
        }
    },
)
async def health_check(request: Request):
    """
    Basic health check endpoint.

    Returns application status and metadata. This endpoint is lightweight
    and does not perform any external dependency checks.

    Used by:
    - Load balancers
    - Kubernetes liveness probes
    """
    settings = request.app.state.settings

    response_data = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "CCDigital Access Request API",
        "version": "v1",
        "access_requests_enabled": bool(settings.enable_access_requests and settings.domain_db_connection_string),
    }

    logger.debug("Health check requested", status="healthy")

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=response_data,
    )


@ROUTER_HEALTH.get(
    "/health/ready",
    summary="Readiness check endpoint",
    description="Checks the domain database connection",
    responses={
        status.HTTP_200_OK: {"description": "Application is ready"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Database is not reachable"},
    },
)
async def readiness_check(request: Request):
    """
    Readiness check endpoint.

    Verifies the domain database connection when the access request routes
    are enabled. Used by Kubernetes readiness probes.
    """
    db_pool = getattr(request.app.state, "domain_db_pool", None)

    if db_pool is None:
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"Message": "Ready (access requests disabled)", "DatabaseConnected": False},
        )

    db_healthy = await db_pool.health_check()
    if not db_healthy:
        logger.warning("Readiness check failed", database_connected=False)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"Message": "Domain database unavailable", "DatabaseConnected": False},
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"Message": "Ready", "DatabaseConnected": True},
    )
