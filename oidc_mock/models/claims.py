"""Wire models for the tokens and claims the provider hands out."""

from __future__ import annotations

from pydantic import BaseModel


class IdTokenClaims(BaseModel):
    iss: str
    aud: str
    iat: int
    exp: int
    sub: str
    email: str
    email_verified: bool = True
    nonce: str
    at_hash: str | None = None
    # Extension claim consumed by the relying party for authorization
    role: str | None = None

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    id_token: str
    expires_in: int


class UserInfoClaims(BaseModel):
    sub: str
    email: str | None = None
    email_verified: bool | None = None
    role: str | None = None
