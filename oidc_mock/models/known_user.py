from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class KnownUser:
    username: str
    role: str
    # None means "use the provider default"
    token_secs: int | None = None
