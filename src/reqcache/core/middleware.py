"""
FastAPI middleware for basic observability (request_id + latency).
Why: one structured log line per request; ids flow into validation logs.
"""

import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .logging import get_logger

_LOG = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            status = response.status_code if response is not None else "ERROR"
            _LOG.info(
                f"{request.method} {request.url.path} {status}",
                extra={
                    "context": {
                        "path": request.url.path,
                        "method": request.method,
                        "status": status,
                        "duration_ms": duration_ms,
                        "request_id": request_id,
                    }
                },
            )
