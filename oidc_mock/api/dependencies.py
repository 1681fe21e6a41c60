"""FastAPI dependencies that hand handlers the provider's components.

Everything lives on ``app.state`` (set up by ``create_app``), so each app
instance, and each test, gets its own key, stores and documents.
"""

from __future__ import annotations

from fastapi import Request

from oidc_mock.core.errors import MissingParameter
from oidc_mock.services.login_page import LoginPage
from oidc_mock.services.provider_metadata import ProviderMetadataPublisher
from oidc_mock.services.provider_state import ProviderState
from oidc_mock.services.token_service import TokenIssuer


def get_provider_state(request: Request) -> ProviderState:
    return request.app.state.provider_state


def get_metadata(request: Request) -> ProviderMetadataPublisher:
    return request.app.state.metadata


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_login_page(request: Request) -> LoginPage:
    return request.app.state.login_page


def require_param(name: str, value: str | None) -> str:
    """Return *value*, or raise MissingParameter when it was not sent.

    An empty value counts as sent.
    """
    if value is None:
        raise MissingParameter(name)
    return value
