from __future__ import annotations

from dataclasses import dataclass

# •	client_id: becomes the ID token audience
# •	nonce: echoed into the ID token
# •	username: the principal who logged in


@dataclass(frozen=True, slots=True)
class AuthorizationCode:
    """What the login endpoint remembers about a code until /token redeems it."""

    client_id: str
    nonce: str
    username: str
