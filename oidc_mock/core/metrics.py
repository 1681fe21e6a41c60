"""Prometheus metrics for the mock provider.

All metrics are defined here; modules import the ones they update.  The
HTTP metrics are filled by MetricsMiddleware, the flow metrics by the
handlers at the point where the event happens.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # RSA signing on /token dominates; everything else is a dict lookup
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Authorization-code flow
# ---------------------------------------------------------------------------

LOGIN_ATTEMPTS = Counter(
    "login_attempts_total",
    "Login form submissions by result",
    ["result"],  # "accepted" or "rejected"
)

AUTHZ_CODES_ISSUED = Counter(
    "authorization_codes_issued_total",
    "Temporary authorization codes handed out by the login endpoint",
)

CODE_REDEMPTIONS = Counter(
    "code_redemptions_total",
    "Authorization code redemptions at the token endpoint by result",
    ["result"],  # "redeemed" or "unknown"
)

TOKENS_ISSUED = Counter(
    "tokens_issued_total",
    "Token responses issued",
    ["lifetime"],  # "default" or "custom"
)
