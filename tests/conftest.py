from __future__ import annotations

import base64
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from oidc_mock.core.config import Settings
from oidc_mock.main import create_app
from oidc_mock.services.key_service import KeyManager

ISSUER = "http://localhost:3001"

CLIENT_ID = "cid1"
NONCE = "n1"
STATE = "s1"
REDIRECT_URI = "http://rp/cb"


@pytest.fixture(scope="session")
def key_manager() -> KeyManager:
    """One RSA key for the whole run; generating one per test is slow."""
    return KeyManager()


@pytest.fixture
def settings() -> Settings:
    return Settings(app_env="test", issuer_url=ISSUER)


@pytest.fixture
def app(settings: Settings, key_manager: KeyManager) -> FastAPI:
    return create_app(settings, key_manager=key_manager)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, follow_redirects=False)


# ---------------------------------------------------------------------------
# Flow helpers
# ---------------------------------------------------------------------------


def b64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def submit_login(
    client: TestClient,
    username: str = "admin@krill",
    *,
    client_id: str = CLIENT_ID,
    nonce: str = NONCE,
    state: str = STATE,
    redirect_uri: str = REDIRECT_URI,
):
    """Submit the login form the way the rendered page would."""
    return client.get(
        "/login_form_submit",
        params={
            "username": username,
            "client_id": b64(client_id),
            "nonce": b64(nonce),
            "state": b64(state),
            "redirect_uri": b64(redirect_uri),
        },
    )


def redirect_params(location: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlparse(location).query).items()}


def obtain_code(client: TestClient, username: str = "admin@krill", **kwargs: str) -> str:
    resp = submit_login(client, username, **kwargs)
    assert resp.status_code == 302, resp.text
    return redirect_params(resp.headers["location"])["code"]


def redeem(client: TestClient, code: str):
    return client.post("/token", params={"code": code})
