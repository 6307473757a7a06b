from __future__ import annotations

import logging
from time import perf_counter
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from facility_registry.observability import get_tracer

logger = logging.getLogger(__name__)


class TracingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, service_name: str) -> None:
        super().__init__(app)
        self._tracer = get_tracer(service_name)

    async def dispatch(self, request: Request, call_next) -> Response:
        trace_id = request.headers.get("x-trace-id") or str(uuid4())
        started = perf_counter()
        with self._tracer.start_as_current_span("http.request") as span:
            span.set_attribute("http.method", request.method)
            span.set_attribute("http.route", request.url.path)
            span.set_attribute("trace.id", trace_id)
            response = await call_next(request)
            span.set_attribute("http.status_code", response.status_code)

        response.headers["x-trace-id"] = trace_id
        logger.debug(
            "http_request_completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": (perf_counter() - started) * 1000.0,
                "trace_id": trace_id,
            },
        )
        return response
