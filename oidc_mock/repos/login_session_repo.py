from __future__ import annotations

from typing import Protocol

from oidc_mock.models.login_session import LoginSession


class LoginSessionRepo(Protocol):
    def insert(self, access_token: str, session: LoginSession) -> None: ...
    def get(self, access_token: str) -> LoginSession | None: ...
    def __len__(self) -> int: ...


class InMemoryLoginSessionRepo:
    # Sessions are never expired; they live as long as the process.

    def __init__(self) -> None:
        self._by_access_token: dict[str, LoginSession] = {}

    def insert(self, access_token: str, session: LoginSession) -> None:
        self._by_access_token[access_token] = session

    def get(self, access_token: str) -> LoginSession | None:
        return self._by_access_token.get(access_token)

    def __len__(self) -> int:
        return len(self._by_access_token)
