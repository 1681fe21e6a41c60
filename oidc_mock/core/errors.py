"""Typed failures raised by the provider's handlers and services.

Each failure carries the HTTP status the router answers with.  The message
becomes the plaintext response body, so it is written for the developer
reading a failed end-to-end test.
"""

from __future__ import annotations


class ProviderError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# 400: the caller sent something we cannot act on
# ---------------------------------------------------------------------------


class MissingParameter(ProviderError):
    status_code = 400

    def __init__(self, name: str) -> None:
        super().__init__(f"Missing query parameter '{name}'")
        self.name = name


class InvalidParameter(ProviderError):
    status_code = 400

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid query parameter '{name}': {reason}")
        self.name = name


class InvalidCredentials(ProviderError):
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class UnknownAuthorizationCode(ProviderError):
    status_code = 400

    def __init__(self, code: str) -> None:
        super().__init__(f"Unknown temporary authorization code '{code}'")
        self.code = code


# ---------------------------------------------------------------------------
# 500: our fault
# ---------------------------------------------------------------------------


class InternalLookupFailure(ProviderError):
    """A code referenced a user that is no longer in the directory."""

    def __init__(self, username: str) -> None:
        super().__init__(f"Internal error, unknown user '{username}'")
        self.username = username


class CryptoFailure(ProviderError):
    pass


class SerializationFailure(ProviderError):
    pass


class ResponseBuildFailure(ProviderError):
    pass
