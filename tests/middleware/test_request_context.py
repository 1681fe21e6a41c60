"""Tests for the request context middleware.

Verifies that every response gets:
- An X-Request-ID header (generated or echoed from the request)
- A summary log line carrying the request context
"""

from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient

from tests.conftest import submit_login


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    resp = client.get("/.well-known/openid-configuration")
    req_id = resp.headers.get("x-request-id")
    assert req_id is not None
    uuid.UUID(req_id)  # raises ValueError if invalid


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    custom_id = "rp-e2e-run-7"
    resp = client.get("/jwk", headers={"X-Request-ID": custom_id})
    assert resp.headers.get("x-request-id") == custom_id


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    """Provider errors and unknown routes still carry the header."""
    resp = client.post("/token", params={"code": "never-issued"})
    assert resp.status_code == 400
    assert resp.headers.get("x-request-id") is not None

    resp = client.get("/no-such-route")
    assert resp.status_code == 404
    assert resp.headers.get("x-request-id") is not None


def test_request_summary_is_logged(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="oidc_mock.middleware.request_context"):
        submit_login(client, "unknown@krill")

    summaries = [
        r for r in caplog.records if r.name == "oidc_mock.middleware.request_context"
    ]
    assert len(summaries) == 1
    record = summaries[0]
    assert record.method == "GET"  # type: ignore[attr-defined]
    assert record.path == "/login_form_submit"  # type: ignore[attr-defined]
    assert record.status_code == 400  # type: ignore[attr-defined]
    assert "GET /login_form_submit" in record.getMessage()
