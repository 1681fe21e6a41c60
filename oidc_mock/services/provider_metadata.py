"""Discovery and JWKS documents.

Both are rendered to bytes once, when the provider starts, and served
verbatim afterwards: a relying party that fetches them twice sees the same
bytes.
"""

from __future__ import annotations

import json
import logging

from oidc_mock.core.errors import SerializationFailure
from oidc_mock.services.key_service import ALGORITHM, KeyManager

logger = logging.getLogger(__name__)

AUTHORIZE_PATH = "/authorize"
TOKEN_PATH = "/token"
USERINFO_PATH = "/userinfo"
JWKS_PATH = "/jwk"


def build_discovery_document(issuer_url: str, *, end_session_endpoint: str = "") -> dict:
    return {
        "issuer": issuer_url,
        "authorization_endpoint": f"{issuer_url}{AUTHORIZE_PATH}",
        "token_endpoint": f"{issuer_url}{TOKEN_PATH}",
        "userinfo_endpoint": f"{issuer_url}{USERINFO_PATH}",
        "jwks_uri": f"{issuer_url}{JWKS_PATH}",
        "response_types_supported": ["code"],
        "subject_types_supported": ["pairwise"],
        "id_token_signing_alg_values_supported": [ALGORITHM],
        "scopes_supported": ["openid", "email", "profile"],
        "response_modes_supported": ["query"],
        "claims_supported": ["email"],
        "end_session_endpoint": end_session_endpoint,
    }


def _serialize(document: dict, what: str) -> bytes:
    try:
        return json.dumps(document, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise SerializationFailure(f"Error while building {what} JSON response: {exc}") from exc


class ProviderMetadataPublisher:
    def __init__(
        self,
        *,
        issuer_url: str,
        key_manager: KeyManager,
        end_session_endpoint: str = "",
    ) -> None:
        self._discovery = _serialize(
            build_discovery_document(issuer_url, end_session_endpoint=end_session_endpoint),
            "discovery",
        )
        self._jwks = _serialize({"keys": [key_manager.public_jwk()]}, "jwks")
        logger.info("Provider metadata ready  issuer=%s kid=%s", issuer_url, key_manager.kid)

    def discovery(self) -> bytes:
        return self._discovery

    def jwks(self) -> bytes:
        return self._jwks
