"""Prometheus scrape endpoint."""

from fastapi import APIRouter, Request
from fastapi.responses import Response

router = APIRouter()


@router.get("/metrics")
async def metrics(request: Request):
    """Current values of every registered series, in Prometheus text format."""
    exporter = request.app.state.exporter
    return Response(content=exporter.render(), media_type=exporter.content_type)
