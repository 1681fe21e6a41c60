"""Prometheus metrics middleware: counts and times every request.

Paths outside the provider's route table are folded into one "other"
endpoint label so a client probing random URLs cannot grow the label set.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from oidc_mock.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION

METRICS_PATH = "/metrics"

KNOWN_ENDPOINTS = frozenset(
    {
        "/.well-known/openid-configuration",
        "/jwk",
        "/authorize",
        "/login_form_submit",
        "/token",
        "/userinfo",
    }
)


def endpoint_label(path: str) -> str:
    return path if path in KNOWN_ENDPOINTS else "other"


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Scrapes of /metrics would otherwise count themselves
        if request.url.path == METRICS_PATH:
            return await call_next(request)

        endpoint = endpoint_label(request.url.path)
        ACTIVE_REQUESTS.inc()
        start = time.monotonic()
        status_code = "500"

        try:
            response = await call_next(request)
            status_code = str(response.status_code)
        finally:
            ACTIVE_REQUESTS.dec()
            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=status_code,
            ).inc()
            REQUEST_DURATION.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(time.monotonic() - start)

        return response
