"""Prometheus scrape endpoint, for watching a long end-to-end run."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from oidc_mock.middleware.metrics import METRICS_PATH

router = APIRouter(tags=["observability"])


@router.get(METRICS_PATH, include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
