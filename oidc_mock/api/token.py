"""Token endpoint: redeem a temporary authorization code for tokens.

The code is read from the query string (``POST /token?code=...``).  Client
libraries that follow RFC 6749 put it in a form-encoded body instead, so
the body is consulted when the query string has none.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from oidc_mock.api.dependencies import get_provider_state, get_token_issuer
from oidc_mock.core.errors import (
    InternalLookupFailure,
    MissingParameter,
    SerializationFailure,
    UnknownAuthorizationCode,
)
from oidc_mock.core.metrics import CODE_REDEMPTIONS, TOKENS_ISSUED
from oidc_mock.models.login_session import LoginSession
from oidc_mock.services.provider_state import ProviderState
from oidc_mock.services.token_service import TokenIssuer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["token"])

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


async def _code_from_body(request: Request) -> str | None:
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith(_FORM_CONTENT_TYPE):
        return None
    form = await request.form()
    code = form.get("code")
    return code if isinstance(code, str) else None


@router.post("/token")
async def token(
    request: Request,
    code: str | None = Query(None),
    provider: ProviderState = Depends(get_provider_state),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> Response:
    if code is None:
        code = await _code_from_body(request)
    if code is None:
        raise MissingParameter("code")

    # Single use: the record is gone from the store once popped
    record = provider.redeem_code(code)
    if record is None:
        CODE_REDEMPTIONS.labels(result="unknown").inc()
        raise UnknownAuthorizationCode(code)
    CODE_REDEMPTIONS.labels(result="redeemed").inc()

    user = provider.users.get(record.username)
    if user is None:
        raise InternalLookupFailure(record.username)

    token_response = issuer.issue(record, user)
    try:
        body = token_response.model_dump_json()
    except ValueError as exc:
        raise SerializationFailure(
            f"Error while building ID Token JSON response: {exc}"
        ) from exc

    provider.open_session(token_response.access_token, LoginSession(username=user.username))
    TOKENS_ISSUED.labels(
        lifetime="default"
        if token_response.expires_in == issuer.default_token_secs
        else "custom"
    ).inc()

    return Response(
        content=body,
        media_type="application/json",
        headers={"Cache-Control": "no-store", "Pragma": "no-cache"},
    )
