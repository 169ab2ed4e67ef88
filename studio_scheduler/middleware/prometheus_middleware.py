"""
Prometheus metrics middleware for HTTP request tracking.
"""

import time
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.constants import RECURRING_GROUP_PREFIX
from ..core.ulid_helper import is_valid_ulid
from ..monitoring.prometheus_metrics import prometheus_metrics


def normalize_path(raw_path: str) -> str:
    """Replace booking and group ids so endpoint labels stay low-cardinality."""
    segments = []
    for segment in raw_path.split("/"):
        if segment.startswith(RECURRING_GROUP_PREFIX):
            segments.append(":group_id")
        elif is_valid_ulid(segment):
            segments.append(":id")
        else:
            segments.append(segment)
    return "/".join(segments)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = normalize_path(request.url.path)
        start_time = time.time()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            prometheus_metrics.record_http_request(
                method=method,
                endpoint=path,
                duration=time.time() - start_time,
                status_code=status_code,
            )
