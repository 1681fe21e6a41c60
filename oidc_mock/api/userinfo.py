"""Userinfo endpoint.

A bearer token issued by /token resolves to its principal's claims.  Any
other request (no token, unknown token) gets the fixed demo subject
``sub-123``, which is what relying parties tested against earlier versions
of this provider expect.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from oidc_mock.api.dependencies import get_provider_state
from oidc_mock.models.claims import UserInfoClaims
from oidc_mock.services.provider_state import ProviderState

logger = logging.getLogger(__name__)

router = APIRouter(tags=["userinfo"])

DEMO_SUBJECT = "sub-123"


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


def resolve_claims(provider: ProviderState, access_token: str | None) -> UserInfoClaims:
    if access_token is not None:
        session = provider.lookup_session(access_token)
        if session is not None:
            user = provider.users.get(session.username)
            return UserInfoClaims(
                sub=session.username,
                email=session.username,
                email_verified=True,
                role=user.role if user is not None else None,
            )
        logger.info("Unknown bearer token on /userinfo, answering with demo subject")
    return UserInfoClaims(sub=DEMO_SUBJECT)


@router.get("/userinfo")
async def userinfo(
    authorization: str | None = Header(None),
    provider: ProviderState = Depends(get_provider_state),
) -> JSONResponse:
    claims = resolve_claims(provider, _bearer_token(authorization))
    return JSONResponse(claims.model_dump(exclude_none=True))
