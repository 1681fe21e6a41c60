from __future__ import annotations

from typing import Protocol

from oidc_mock.models.authorization_code import AuthorizationCode


class AuthCodeRepo(Protocol):
    def insert(self, code: str, record: AuthorizationCode) -> None: ...
    def pop(self, code: str) -> AuthorizationCode | None: ...
    def __len__(self) -> int: ...


class InMemoryAuthCodeRepo:
    """Not thread-safe on its own; ProviderState serializes access."""

    def __init__(self) -> None:
        self._by_code: dict[str, AuthorizationCode] = {}

    def insert(self, code: str, record: AuthorizationCode) -> None:
        if code in self._by_code:
            raise ValueError("authorization code already issued")
        self._by_code[code] = record

    def pop(self, code: str) -> AuthorizationCode | None:
        """Remove and return the record. A popped code is gone for good."""
        return self._by_code.pop(code, None)

    def __len__(self) -> int:
        return len(self._by_code)
