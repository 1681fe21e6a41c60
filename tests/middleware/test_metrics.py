"""Tests for Prometheus metrics middleware.

prometheus-client uses a global default registry and counters cannot be
reset between tests, so every assertion is on the delta between a reading
taken before the action and one taken after it.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from oidc_mock.middleware.metrics import endpoint_label
from tests.conftest import obtain_code, redeem, submit_login


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/jwk", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/jwk")
    assert _get_sample("http_requests_total", labels) - before == 1


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/.well-known/openid-configuration"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/.well-known/openid-configuration")
    assert _get_sample("http_request_duration_seconds_count", labels) - before == 1


def test_error_status_is_recorded(client: TestClient) -> None:
    labels = {"method": "POST", "endpoint": "/token", "status_code": "400"}
    before = _get_sample("http_requests_total", labels)
    client.post("/token")
    assert _get_sample("http_requests_total", labels) - before == 1


def test_unknown_paths_share_one_label(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "other", "status_code": "404"}
    before = _get_sample("http_requests_total", labels)
    client.get("/random-1")
    client.get("/random-2")
    assert _get_sample("http_requests_total", labels) - before == 2


def test_endpoint_label() -> None:
    assert endpoint_label("/token") == "/token"
    assert endpoint_label("/token/extra") == "other"


def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    client.get("/jwk")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "tokens_issued_total" in resp.text


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "other", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/metrics")
    client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == before


def test_flow_counters(client: TestClient) -> None:
    rejected = _get_sample("login_attempts_total", {"result": "rejected"})
    issued = _get_sample("authorization_codes_issued_total")
    redeemed = _get_sample("code_redemptions_total", {"result": "redeemed"})
    unknown = _get_sample("code_redemptions_total", {"result": "unknown"})
    default_tokens = _get_sample("tokens_issued_total", {"lifetime": "default"})

    submit_login(client, "nobody@krill")
    code = obtain_code(client)
    redeem(client, code)
    redeem(client, code)

    assert _get_sample("login_attempts_total", {"result": "rejected"}) - rejected == 1
    assert _get_sample("authorization_codes_issued_total") - issued == 1
    assert _get_sample("code_redemptions_total", {"result": "redeemed"}) - redeemed == 1
    assert _get_sample("code_redemptions_total", {"result": "unknown"}) - unknown == 1
    assert (
        _get_sample("tokens_issued_total", {"lifetime": "default"}) - default_tokens == 1
    )
