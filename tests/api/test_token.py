from __future__ import annotations

import logging

import jwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from oidc_mock.core.config import Settings
from oidc_mock.main import create_app
from oidc_mock.models.authorization_code import AuthorizationCode
from oidc_mock.services.key_service import KeyManager
from oidc_mock.services.token_service import compute_at_hash
from tests.conftest import ISSUER, obtain_code, redeem


def _verify(key_manager: KeyManager, id_token: str, audience: str = "cid1") -> dict:
    return key_manager.verify(id_token, audience=audience, issuer=ISSUER)


def test_token_exchange_returns_bearer_and_id_token(
    client: TestClient, key_manager: KeyManager
) -> None:
    resp = redeem(client, obtain_code(client))
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.headers["cache-control"] == "no-store"

    body = resp.json()
    assert set(body) == {"access_token", "token_type", "id_token", "expires_in"}
    assert body["token_type"] == "Bearer"
    assert body["expires_in"] == 3600

    claims = _verify(key_manager, body["id_token"])
    assert claims["iss"] == ISSUER
    assert claims["aud"] == "cid1"
    assert claims["sub"] == "admin@krill"
    assert claims["email"] == "admin@krill"
    assert claims["email_verified"] is True
    assert claims["nonce"] == "n1"
    assert claims["role"] == "admin"
    assert claims["exp"] - claims["iat"] == 3600
    assert claims["at_hash"] == compute_at_hash(body["access_token"])


def test_code_is_single_use(client: TestClient) -> None:
    code = obtain_code(client)
    assert redeem(client, code).status_code == 200

    second = redeem(client, code)
    assert second.status_code == 400
    assert second.text == f"Unknown temporary authorization code '{code}'"


def test_unknown_code_is_rejected(client: TestClient) -> None:
    resp = redeem(client, "never-issued")
    assert resp.status_code == 400
    assert resp.text == "Unknown temporary authorization code 'never-issued'"


def test_missing_code_is_rejected(client: TestClient) -> None:
    resp = client.post("/token")
    assert resp.status_code == 400
    assert resp.text == "Missing query parameter 'code'"


def test_code_may_arrive_in_form_body(client: TestClient) -> None:
    code = obtain_code(client)
    resp = client.post(
        "/token",
        data={"grant_type": "authorization_code", "code": code},
    )
    assert resp.status_code == 200
    assert resp.json()["token_type"] == "Bearer"


def test_audience_and_nonce_follow_the_authorize_request(
    client: TestClient, key_manager: KeyManager
) -> None:
    code = obtain_code(client, "readwrite@krill", client_id="krill-ui", nonce="n-42")
    body = redeem(client, code).json()
    claims = _verify(key_manager, body["id_token"], audience="krill-ui")
    assert claims["nonce"] == "n-42"
    assert claims["sub"] == "readwrite@krill"
    assert claims["role"] == "gui_read_write"


def test_per_user_lifetime_override(
    client: TestClient, key_manager: KeyManager, caplog: pytest.LogCaptureFixture
) -> None:
    code = obtain_code(client, "shorttokenwithoutrefresh@krill")
    with caplog.at_level(logging.INFO, logger="oidc_mock"):
        body = redeem(client, code).json()

    assert body["expires_in"] == 1
    # Already expired or about to be, so skip the exp check
    claims = jwt.decode(
        body["id_token"],
        key_manager.public_key,
        algorithms=["RS256"],
        audience="cid1",
        options={"verify_exp": False},
    )
    assert claims["exp"] - claims["iat"] == 1

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert any("non-default expiration time of 1 seconds" in r.getMessage() for r in warnings)


def test_default_lifetime_logs_no_warning(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    code = obtain_code(client)
    with caplog.at_level(logging.INFO, logger="oidc_mock"):
        redeem(client, code)
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


def test_default_lifetime_comes_from_settings(key_manager: KeyManager) -> None:
    settings = Settings(app_env="test", issuer_url=ISSUER, default_token_secs=120)
    client = TestClient(create_app(settings, key_manager=key_manager), follow_redirects=False)
    body = redeem(client, obtain_code(client)).json()
    assert body["expires_in"] == 120


def test_token_opens_login_session(client: TestClient, app: FastAPI) -> None:
    body = redeem(client, obtain_code(client, "readonly@krill")).json()
    session = app.state.provider_state.lookup_session(body["access_token"])
    assert session is not None
    assert session.username == "readonly@krill"


def test_code_for_vanished_user_is_an_internal_error(
    client: TestClient, app: FastAPI
) -> None:
    code = app.state.provider_state.issue_code(
        AuthorizationCode(client_id="cid1", nonce="n1", username="ghost@krill")
    )
    resp = redeem(client, code)
    assert resp.status_code == 500
    assert resp.text == "Internal error, unknown user 'ghost@krill'"
    # The code was consumed even though no token came of it
    assert redeem(client, code).status_code == 400
