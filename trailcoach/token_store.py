"""Per-provider OAuth token persistence.

Each provider's token payload lives in its own repository key and has its
own lifecycle: created on a successful exchange or refresh, destroyed on
disconnect. A stored payload is either complete or absent; anything that
does not decode into a payload with an access token is treated as absent.
"""

from __future__ import annotations

import logging
import time
from typing import Any, NamedTuple

from trailcoach.provider_status import Provider
from trailcoach.storage import GARMIN_TOKENS_KEY, STRAVA_TOKENS_KEY, StateRepository

log = logging.getLogger(__name__)

REFRESH_MARGIN_MS = 60_000

_KEYS = {
    Provider.STRAVA: STRAVA_TOKENS_KEY,
    Provider.GARMIN: GARMIN_TOKENS_KEY,
}


class TokenPayload(NamedTuple):
    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None  # epoch seconds

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"access_token": self.access_token}
        if self.refresh_token:
            data["refresh_token"] = self.refresh_token
        if self.expires_at:
            data["expires_at"] = self.expires_at
        return data

    @classmethod
    def from_dict(cls, data: dict) -> TokenPayload:
        access_token = data["access_token"]
        if not access_token:
            raise ValueError("empty access_token")
        expires_at = data.get("expires_at")
        return cls(
            access_token=str(access_token),
            refresh_token=str(data["refresh_token"]) if data.get("refresh_token") else None,
            expires_at=int(expires_at) if expires_at else None,
        )

    @classmethod
    def from_token_response(cls, data: dict, now: float | None = None) -> TokenPayload:
        """Build a payload from a token endpoint response.

        ``expires_in`` (relative) is turned into ``expires_at`` (absolute)
        here, once; stored payloads are never re-normalized on read.
        """
        now = time.time() if now is None else now
        expires_at = data.get("expires_at")
        if not expires_at and data.get("expires_in"):
            expires_at = int(now) + int(data["expires_in"])
        return cls.from_dict({**data, "expires_at": expires_at})


def needs_refresh(payload: TokenPayload, now: float | None = None) -> bool:
    """True when the token expires within a minute (or already has) and can be refreshed."""
    if not payload.refresh_token or not payload.expires_at:
        return False
    now = time.time() if now is None else now
    return payload.expires_at * 1000 - now * 1000 < REFRESH_MARGIN_MS


class TokenStore:
    """Reads and writes provider token payloads through a StateRepository."""

    def __init__(self, repository: StateRepository) -> None:
        self.repository = repository

    def get(self, provider: Provider) -> TokenPayload | None:
        return self.repository.load_as(_KEYS[provider], TokenPayload.from_dict)

    def set(self, provider: Provider, payload: TokenPayload) -> None:
        self.repository.save(_KEYS[provider], payload.to_dict())

    def clear(self, provider: Provider) -> None:
        self.repository.delete(_KEYS[provider])
        log.info("Cleared %s tokens", provider.value)

    def is_connected(self, provider: Provider) -> bool:
        return self.get(provider) is not None
