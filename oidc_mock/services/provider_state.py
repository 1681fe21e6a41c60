"""The single container for the provider's mutable state.

Authorization codes and login sessions are shared by every request task.
ProviderState is the only object holding them, and every read or write of
either store happens under its one lock.  That makes redemption (look up,
then remove) atomic: when two requests race to redeem the same code,
exactly one gets the record and the other gets None.

The user directory is read-only after startup and is exposed as-is.
"""

from __future__ import annotations

import logging
import secrets
import threading

from oidc_mock.core.errors import CryptoFailure
from oidc_mock.models.authorization_code import AuthorizationCode
from oidc_mock.models.login_session import LoginSession
from oidc_mock.repos.auth_code_repo import AuthCodeRepo, InMemoryAuthCodeRepo
from oidc_mock.repos.login_session_repo import InMemoryLoginSessionRepo, LoginSessionRepo
from oidc_mock.repos.user_directory import UserDirectory

logger = logging.getLogger(__name__)

CODE_BYTES = 16
_MAX_CODE_ATTEMPTS = 5


def new_authorization_code() -> str:
    return secrets.token_urlsafe(CODE_BYTES)


class ProviderState:
    def __init__(
        self,
        users: UserDirectory,
        *,
        codes: AuthCodeRepo | None = None,
        sessions: LoginSessionRepo | None = None,
    ) -> None:
        self.users = users
        self._codes: AuthCodeRepo = codes if codes is not None else InMemoryAuthCodeRepo()
        self._sessions: LoginSessionRepo = (
            sessions if sessions is not None else InMemoryLoginSessionRepo()
        )
        self._lock = threading.Lock()

    # -- authorization codes -------------------------------------------------

    def issue_code(self, record: AuthorizationCode) -> str:
        """Store *record* under a fresh random code and return the code."""
        for _ in range(_MAX_CODE_ATTEMPTS):
            code = new_authorization_code()
            with self._lock:
                try:
                    self._codes.insert(code, record)
                except ValueError:
                    logger.warning("Authorization code collision, retrying")
                    continue
            return code
        raise CryptoFailure("Could not generate a unique authorization code")

    def redeem_code(self, code: str) -> AuthorizationCode | None:
        """Atomically remove and return the record for *code*, or None."""
        with self._lock:
            return self._codes.pop(code)

    @property
    def pending_codes(self) -> int:
        with self._lock:
            return len(self._codes)

    # -- login sessions ------------------------------------------------------

    def open_session(self, access_token: str, session: LoginSession) -> None:
        with self._lock:
            self._sessions.insert(access_token, session)

    def lookup_session(self, access_token: str) -> LoginSession | None:
        with self._lock:
            return self._sessions.get(access_token)

    @property
    def session_count(self) -> int:
        with self._lock:
            return len(self._sessions)
