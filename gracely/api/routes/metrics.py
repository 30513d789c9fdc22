"""
gracely/api/routes/metrics.py
Exposes Prometheus-compatible metrics endpoint.
"""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST

from ..metrics.registry import render_prometheus_metrics


def build_metrics_router(path: str = "/metrics") -> APIRouter:
    router = APIRouter(tags=["Metrics"])

    @router.get(path)
    async def metrics():
        """Prometheus scrape endpoint."""
        data = render_prometheus_metrics()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    return router
