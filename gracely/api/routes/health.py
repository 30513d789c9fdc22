"""Kubernetes liveness/readiness probe endpoints."""
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from gracely.core.logging import get_logger

logger = get_logger("health")


def build_health_router(surface, liveness_path: str = "/live", readiness_path: str = "/ready") -> APIRouter:
    """
    Build the probe router for a health surface.

    Paths are configurable, so routes are created per app rather than at
    import time.
    """
    router = APIRouter(tags=["Health"])

    @router.get(liveness_path, summary="Kubernetes liveness probe")
    async def liveness():
        """
        Liveness probe for Kubernetes.

        Returns:
        - 200: Process has not finished shutting down
        - 503: Lifecycle reached SHUTDOWN
        """
        if surface.is_alive():
            return JSONResponse(
                status_code=status.HTTP_200_OK,
                content={"status": "alive", "probe": "liveness"}
            )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "dead", "probe": "liveness"}
        )

    @router.get(readiness_path, summary="Kubernetes readiness probe")
    async def readiness():
        """
        Readiness probe for Kubernetes.

        Returns:
        - 200: Application is ready to serve traffic
        - 503: Application is starting up or shutting down
        """
        if surface.is_ready():
            return JSONResponse(
                status_code=status.HTTP_200_OK,
                content={"status": "ready", "probe": "readiness"}
            )
        state = surface.state
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "probe": "readiness",
                "state": state.value if state else None,
            }
        )

    return router
