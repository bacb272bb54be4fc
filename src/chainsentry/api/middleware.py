"""Request logging middleware."""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware

from chainsentry.logger import request_id_ctx

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log it when it finishes.

    An incoming ``X-Request-ID`` header is reused; otherwise a uuid4 is
    generated. The id is echoed on the response and made available to log
    records through ``request_id_ctx``.
    """

    async def dispatch(self, request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)

        url = str(request.url.path)
        method = request.method
        start = time.perf_counter()
        logger.debug("Incoming request", extra={"url": url, "method": method})

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            logger.info(
                "Processed request",
                extra={
                    "url": url,
                    "method": method,
                    "statusCode": response.status_code,
                    "responseTime": round((time.perf_counter() - start) * 1000, 2),
                },
            )
            return response
        finally:
            request_id_ctx.reset(token)
