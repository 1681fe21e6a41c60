from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from oidc_mock.api.dependencies import get_metadata
from oidc_mock.services.provider_metadata import JWKS_PATH, ProviderMetadataPublisher

router = APIRouter(tags=["discovery"])


@router.get("/.well-known/openid-configuration")
async def discovery(
    metadata: ProviderMetadataPublisher = Depends(get_metadata),
) -> Response:
    return Response(content=metadata.discovery(), media_type="application/json")


@router.get(JWKS_PATH)
async def jwks(metadata: ProviderMetadataPublisher = Depends(get_metadata)) -> Response:
    return Response(content=metadata.jwks(), media_type="application/json")
