"""Authorization endpoint and login form submission.

GET /authorize: render the login page, carrying the relying
    party's parameters base64-encoded
GET /login_form_submit: check the username, issue a temporary
    authorization code, redirect back to the RP

Login failures answer directly with a 400 rather than redirecting to the
relying party with ``?error=...``; the end-to-end suites built on this
provider assert on that response.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse, RedirectResponse

from oidc_mock.api.dependencies import get_login_page, get_provider_state, require_param
from oidc_mock.core.errors import InvalidCredentials
from oidc_mock.core.metrics import AUTHZ_CODES_ISSUED, LOGIN_ATTEMPTS
from oidc_mock.models.authorization_code import AuthorizationCode
from oidc_mock.services.login_page import LoginPage, b64decode_param
from oidc_mock.services.provider_state import ProviderState

logger = logging.getLogger(__name__)

router = APIRouter(tags=["authorize"])


def _urlsafe(value: str) -> str:
    return quote(value, safe="")


def build_redirect_url(redirect_uri: str, *, code: str, state: str, nonce: str) -> str:
    separator = "&" if "?" in redirect_uri else "?"
    return (
        f"{redirect_uri}{separator}code={_urlsafe(code)}"
        f"&state={_urlsafe(state)}&nonce={_urlsafe(nonce)}"
    )


# ========================== GET /authorize ==================================


@router.get("/authorize", response_class=HTMLResponse)
async def authorize(
    client_id: str | None = Query(None),
    nonce: str | None = Query(None),
    state: str | None = Query(None),
    redirect_uri: str | None = Query(None),
    login_page: LoginPage = Depends(get_login_page),
) -> HTMLResponse:
    client_id = require_param("client_id", client_id)
    nonce = require_param("nonce", nonce)
    state = require_param("state", state)
    redirect_uri = require_param("redirect_uri", redirect_uri)

    logger.info(
        "Authorization request  client_id=%s redirect_uri=%s",
        client_id,
        redirect_uri,
        extra={"client_id": client_id},
    )
    page = login_page.render(
        client_id=client_id,
        nonce=nonce,
        state=state,
        redirect_uri=redirect_uri,
    )
    return HTMLResponse(page)


# ========================== GET /login_form_submit ==========================


@router.get("/login_form_submit")
async def login_form_submit(
    redirect_uri: str | None = Query(None),
    username: str | None = Query(None),
    client_id: str | None = Query(None),
    nonce: str | None = Query(None),
    state: str | None = Query(None),
    provider: ProviderState = Depends(get_provider_state),
) -> RedirectResponse:
    target = b64decode_param("redirect_uri", require_param("redirect_uri", redirect_uri))
    username = require_param("username", username)

    user = provider.users.get(username)
    if user is None:
        LOGIN_ATTEMPTS.labels(result="rejected").inc()
        raise InvalidCredentials()

    # Only a recognised user gets this far, so only then are these required
    client_id = b64decode_param("client_id", require_param("client_id", client_id))
    nonce = b64decode_param("nonce", require_param("nonce", nonce))
    state = b64decode_param("state", require_param("state", state))

    code = provider.issue_code(
        AuthorizationCode(client_id=client_id, nonce=nonce, username=user.username)
    )
    LOGIN_ATTEMPTS.labels(result="accepted").inc()
    AUTHZ_CODES_ISSUED.inc()
    logger.info(
        "Login accepted, issued authorization code  username=%s client_id=%s",
        user.username,
        client_id,
        extra={"username": user.username, "client_id": client_id},
    )

    location = build_redirect_url(target, code=code, state=state, nonce=nonce)
    return RedirectResponse(url=location, status_code=status.HTTP_302_FOUND)
