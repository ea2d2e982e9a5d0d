"""HTTP correlation middleware."""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from .context import accept_request_id, request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Scraped constantly; access lines would drown everything else
_UNLOGGED_PATHS = frozenset({"/health", "/metrics"})


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the duration of a request and echo it back."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = accept_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"{request.method} {request.url.path} raised")
            raise
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        if request.url.path not in _UNLOGGED_PATHS:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)",
                extra={"request_id": request_id},
            )
        return response
