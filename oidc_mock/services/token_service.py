"""ID token and token-response issuance.

The token endpoint hands us a redeemed authorization code and the user it
names; we mint a random access token, sign an ID token bound to that
access token, and assemble the response the relying party expects.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import secrets
import time
from collections.abc import Callable

from oidc_mock.core.config import DEFAULT_TOKEN_SECS
from oidc_mock.models.authorization_code import AuthorizationCode
from oidc_mock.models.claims import IdTokenClaims, TokenResponse
from oidc_mock.models.known_user import KnownUser
from oidc_mock.services.key_service import KeyManager

logger = logging.getLogger(__name__)

ACCESS_TOKEN_BYTES = 32


def new_access_token() -> str:
    return secrets.token_urlsafe(ACCESS_TOKEN_BYTES)


def compute_at_hash(access_token: str) -> str:
    """Left half of SHA-256 over the access token, base64url without padding."""
    digest = hashlib.sha256(access_token.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest[: len(digest) // 2]).rstrip(b"=").decode("ascii")


class TokenIssuer:
    def __init__(
        self,
        key_manager: KeyManager,
        *,
        issuer: str,
        default_token_secs: int = DEFAULT_TOKEN_SECS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._keys = key_manager
        self._issuer = issuer
        self._default_token_secs = default_token_secs
        self._clock = clock

    @property
    def default_token_secs(self) -> int:
        return self._default_token_secs

    def token_lifetime(self, user: KnownUser) -> int:
        if user.token_secs is None:
            return self._default_token_secs
        return user.token_secs

    def build_claims(
        self,
        authz: AuthorizationCode,
        user: KnownUser,
        *,
        lifetime: int,
        access_token: str | None = None,
    ) -> IdTokenClaims:
        now = int(self._clock())
        return IdTokenClaims(
            iss=self._issuer,
            aud=authz.client_id,
            iat=now,
            exp=now + lifetime,
            sub=user.username,
            email=user.username,
            email_verified=True,
            nonce=authz.nonce,
            at_hash=compute_at_hash(access_token) if access_token else None,
            role=user.role,
        )

    def issue(self, authz: AuthorizationCode, user: KnownUser) -> TokenResponse:
        """Build the token-endpoint response for a redeemed code.

        Raises CryptoFailure if signing fails.
        """
        access_token = new_access_token()
        lifetime = self.token_lifetime(user)
        if lifetime != self._default_token_secs:
            logger.warning(
                "Issuing token with non-default expiration time of %d seconds  user=%s",
                lifetime,
                user.username,
            )

        claims = self.build_claims(authz, user, lifetime=lifetime, access_token=access_token)
        id_token = self._keys.sign(claims.to_payload())

        logger.info(
            "Issued ID token  sub=%s aud=%s role=%s expires_in=%d",
            claims.sub,
            claims.aud,
            user.role,
            lifetime,
        )
        return TokenResponse(
            access_token=access_token,
            token_type="Bearer",
            id_token=id_token,
            expires_in=lifetime,
        )
