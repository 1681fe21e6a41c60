"""The fixed set of principals the provider will log in.

The directory is built once at startup, either from the built-in default
users or from a JSON file named by USERS_FILE:

    {
      "admin@krill": {"role": "admin"},
      "shorttokenwithoutrefresh@krill": {"role": "gui_read_write", "token_secs": 1}
    }

It is read-only afterwards, so lookups need no locking.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Protocol

from oidc_mock.models.known_user import KnownUser

logger = logging.getLogger(__name__)

DEFAULT_USERS: tuple[KnownUser, ...] = (
    KnownUser(username="admin@krill", role="admin"),
    KnownUser(username="readonly@krill", role="gui_read_only"),
    KnownUser(username="readwrite@krill", role="gui_read_write"),
    KnownUser(
        username="shorttokenwithoutrefresh@krill",
        role="gui_read_write",
        token_secs=1,
    ),
)


class UserDirectory(Protocol):
    def get(self, username: str) -> KnownUser | None: ...
    def __contains__(self, username: object) -> bool: ...
    def __iter__(self) -> Iterator[KnownUser]: ...


class InMemoryUserDirectory:
    def __init__(self, users: Iterable[KnownUser] = DEFAULT_USERS) -> None:
        self._by_username: dict[str, KnownUser] = {}
        for user in users:
            if user.username in self._by_username:
                raise ValueError(f"duplicate user {user.username!r}")
            self._by_username[user.username] = user

    def get(self, username: str) -> KnownUser | None:
        return self._by_username.get(username)

    def __contains__(self, username: object) -> bool:
        return username in self._by_username

    def __iter__(self) -> Iterator[KnownUser]:
        return iter(self._by_username.values())

    def __len__(self) -> int:
        return len(self._by_username)


def _parse_user(username: str, raw: object) -> KnownUser:
    if not username:
        raise ValueError("user names must be non-empty")
    if not isinstance(raw, dict):
        raise ValueError(f"user {username!r}: expected an object, got {type(raw).__name__}")

    role = raw.get("role")
    if not isinstance(role, str) or not role:
        raise ValueError(f"user {username!r}: 'role' must be a non-empty string")

    token_secs = raw.get("token_secs")
    if token_secs is not None:
        # bool is an int subclass; reject it explicitly
        if isinstance(token_secs, bool) or not isinstance(token_secs, int):
            raise ValueError(f"user {username!r}: 'token_secs' must be an integer")
        if token_secs <= 0:
            raise ValueError(f"user {username!r}: 'token_secs' must be positive")

    unknown = set(raw) - {"role", "token_secs"}
    if unknown:
        raise ValueError(f"user {username!r}: unknown fields {sorted(unknown)}")

    return KnownUser(username=username, role=role, token_secs=token_secs)


def parse_users(document: object) -> list[KnownUser]:
    if not isinstance(document, dict):
        raise ValueError("users document must be a JSON object keyed by user name")
    return [_parse_user(username, raw) for username, raw in document.items()]


def load_user_directory(path: str | None = None) -> InMemoryUserDirectory:
    """Build the directory from *path*, or from DEFAULT_USERS when None."""
    if path is None:
        directory = InMemoryUserDirectory()
        logger.info("Using built-in user directory  users=%d", len(directory))
        return directory

    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValueError(f"cannot read USERS_FILE {path!r}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"USERS_FILE {path!r} is not valid JSON: {exc}") from exc

    directory = InMemoryUserDirectory(parse_users(document))
    logger.info("Loaded user directory  path=%s users=%d", path, len(directory))
    return directory
