"""Health check endpoint."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from chainsentry.status import app_info

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/healthz")
async def healthz(request: Request):
    """Liveness/readiness check; 500 while the service is not ready."""
    status = await request.app.state.status_provider.status()
    logger.debug("got status", extra={"status": status.to_dict()})

    body = {**status.to_dict(), "app": app_info()}
    return JSONResponse(status_code=200 if status.ready else 500, content=body)
