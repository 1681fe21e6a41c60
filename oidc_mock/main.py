from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from oidc_mock.api.authorize import router as authorize_router
from oidc_mock.api.discovery import router as discovery_router
from oidc_mock.api.metrics_endpoint import router as metrics_router
from oidc_mock.api.token import router as token_router
from oidc_mock.api.userinfo import router as userinfo_router
from oidc_mock.core.config import SETTINGS, Settings
from oidc_mock.core.errors import ProviderError, ResponseBuildFailure
from oidc_mock.core.logging import setup_logging
from oidc_mock.middleware.metrics import MetricsMiddleware
from oidc_mock.middleware.request_context import RequestContextMiddleware
from oidc_mock.repos.user_directory import UserDirectory, load_user_directory
from oidc_mock.services.key_service import KeyManager
from oidc_mock.services.login_page import LoginPage
from oidc_mock.services.provider_metadata import ProviderMetadataPublisher
from oidc_mock.services.provider_state import ProviderState
from oidc_mock.services.token_service import TokenIssuer

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


async def _provider_error_handler(request: Request, exc: ProviderError) -> PlainTextResponse:
    logger.error(
        "%s %s failed: %s",
        request.method,
        request.url.path,
        exc.message,
        extra={"status_code": exc.status_code},
    )
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def _http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> PlainTextResponse:
    # 404 for unknown paths, 405 (with Allow) for a wrong method on a known one
    return PlainTextResponse(
        str(exc.detail), status_code=exc.status_code, headers=exc.headers
    )


async def _unexpected_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
    failure = ResponseBuildFailure(f"Error while building response: {exc}")
    # Starlette re-raises after this response is sent and the ASGI server
    # logs the traceback, so only the summary line is logged here
    logger.error(
        "%s %s failed: %s",
        request.method,
        request.url.path,
        failure.message,
        extra={"status_code": failure.status_code},
    )
    return PlainTextResponse(failure.message, status_code=failure.status_code)


def create_app(
    settings: Settings = SETTINGS,
    *,
    users: UserDirectory | None = None,
    key_manager: KeyManager | None = None,
) -> FastAPI:
    """Build a provider with its own key, user directory and stores.

    *users* and *key_manager* override what *settings* would produce; tests
    use them to vary the user set and to share one key across apps.
    """
    keys = key_manager if key_manager is not None else KeyManager(key_bits=settings.rsa_key_bits)
    directory = users if users is not None else load_user_directory(settings.users_file)

    app = FastAPI(
        title="oidc-mock",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.settings = settings
    app.state.provider_state = ProviderState(directory)
    app.state.metadata = ProviderMetadataPublisher(
        issuer_url=settings.issuer_url,
        key_manager=keys,
        end_session_endpoint=settings.end_session_endpoint,
    )
    app.state.token_issuer = TokenIssuer(
        keys,
        issuer=settings.issuer_url,
        default_token_secs=settings.default_token_secs,
    )
    app.state.login_page = LoginPage.from_file(settings.login_template)
    app.state.key_manager = keys

    app.add_exception_handler(ProviderError, _provider_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)

    # Last added runs first: RequestContext → Metrics → route handler
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestContextMiddleware)

    app.include_router(discovery_router)
    app.include_router(authorize_router)
    app.include_router(token_router)
    app.include_router(userinfo_router)
    app.include_router(metrics_router)

    logger.info(
        "Mock OpenID Connect provider ready  env=%s issuer=%s users=%d",
        settings.app_env,
        settings.issuer_url,
        sum(1 for _ in directory),
    )
    return app
