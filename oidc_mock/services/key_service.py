"""The provider's one signing key.

An RSA key pair is generated when the KeyManager is built (once per process
in normal use) and never rotated.  The private half signs ID tokens; the
public half is published as a JWK so relying parties can verify them.
"""

from __future__ import annotations

import logging
import threading

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from oidc_mock.core.errors import CryptoFailure

logger = logging.getLogger(__name__)

ALGORITHM = "RS256"
KEY_ID = "key1"


class KeyManager:
    def __init__(
        self,
        *,
        key_bits: int = 2048,
        kid: str = KEY_ID,
        private_key: rsa.RSAPrivateKey | None = None,
    ) -> None:
        if private_key is None:
            private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_bits)
            logger.info("Generated RSA signing key  bits=%d kid=%s", key_bits, kid)
        self._private_key = private_key
        self._public_key = private_key.public_key()
        self._kid = kid
        # Held only while signing
        self._lock = threading.Lock()

    @property
    def kid(self) -> str:
        return self._kid

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self._public_key

    def sign(self, payload: dict) -> str:
        """Sign *payload* as an RS256 JWT carrying our key id."""
        with self._lock:
            try:
                return jwt.encode(
                    payload,
                    self._private_key,
                    algorithm=ALGORITHM,
                    headers={"kid": self._kid},
                )
            except (jwt.PyJWTError, TypeError, ValueError) as exc:
                raise CryptoFailure(f"Error while signing ID token: {exc}") from exc

    def verify(self, token: str, *, audience: str, issuer: str) -> dict:
        """Verify a token we signed and return its claims.

        Pins the algorithm to RS256. Raises jwt.InvalidTokenError on failure.
        """
        return jwt.decode(
            token,
            self._public_key,
            algorithms=[ALGORITHM],
            audience=audience,
            issuer=issuer,
            options={"require": ["iss", "aud", "exp", "iat", "sub"]},
        )

    def public_jwk(self) -> dict:
        jwk = RSAAlgorithm.to_jwk(self._public_key, as_dict=True)
        jwk.update({"kid": self._kid, "use": "sig", "alg": ALGORITHM})
        return jwk
