from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlparse

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

DEFAULT_PORT = 3001
DEFAULT_TOKEN_SECS = 3600


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv = "dev"
    log_level: LogLevel = "info"
    log_json: bool = False
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    issuer_url: str = f"http://localhost:{DEFAULT_PORT}"
    users_file: str | None = None
    login_template: str | None = None
    default_token_secs: int = DEFAULT_TOKEN_SECS
    rsa_key_bits: int = 2048
    end_session_endpoint: str = ""

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if log_json_raw not in ("true", "false", "1", "0", "yes", "no"):
        raise ValueError(f"LOG_JSON must be a boolean (got {log_json_raw!r})")

    port = _getenv_int("PORT", DEFAULT_PORT)
    default_token_secs = _getenv_int("DEFAULT_TOKEN_SECS", DEFAULT_TOKEN_SECS)
    rsa_key_bits = _getenv_int("RSA_KEY_BITS", 2048)

    if default_token_secs <= 0:
        raise ValueError(
            f"DEFAULT_TOKEN_SECS must be positive (got {default_token_secs})"
        )
    if rsa_key_bits < 2048:
        # PyJWT refuses to sign RS256 with shorter keys
        raise ValueError(f"RSA_KEY_BITS must be >= 2048 (got {rsa_key_bits})")

    issuer_url = _getenv("ISSUER_URL", f"http://localhost:{port}").rstrip("/")
    parsed = urlparse(issuer_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"ISSUER_URL must be an absolute http(s) URL (got {issuer_url!r})")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("true", "1", "yes"),
        host=_getenv("HOST", "127.0.0.1"),
        port=port,
        issuer_url=issuer_url,
        users_file=_getenv("USERS_FILE", "") or None,
        login_template=_getenv("LOGIN_TEMPLATE", "") or None,
        default_token_secs=default_token_secs,
        rsa_key_bits=rsa_key_bits,
        end_session_endpoint=_getenv("END_SESSION_ENDPOINT", ""),
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
