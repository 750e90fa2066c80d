"""Base provider interface for activity providers.

Every provider speaks the same small protocol: build an authorization URL,
exchange a redirect code for tokens, refresh those tokens, and list the
activities of a trailing window. Token bookkeeping (when to refresh, what to
persist, how to disconnect) is identical for all of them and lives here.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

from trailcoach.activity import Activity
from trailcoach.appconfig import DEFAULT_CONFIG, provider_settings
from trailcoach.exceptions import AuthExchangeError, TokenRefreshError
from trailcoach.provider_status import Provider
from trailcoach.token_store import TokenPayload, TokenStore, needs_refresh

log = logging.getLogger(__name__)

SECONDS_PER_DAY = 60 * 60 * 24


class ActivityProvider(ABC):
    """Abstract base class for OAuth-backed activity providers."""

    provider: Provider

    def __init__(self, store: TokenStore, config: dict[str, Any] | None = None):
        self.store = store
        self.config = config or {}
        self.settings = provider_settings(self.config, self.provider)
        self.timeout = int(self.config.get("http_timeout") or DEFAULT_CONFIG["http_timeout"])

    @property
    def provider_name(self) -> str:
        return self.provider.value

    def sync_window(self, now: float | None = None) -> tuple[int, int]:
        """(start, end) epoch seconds covering the trailing sync window."""
        now = time.time() if now is None else now
        days = int(self.config.get("sync_window_days") or DEFAULT_CONFIG["sync_window_days"])
        end = int(now)
        return int(now - days * SECONDS_PER_DAY), end

    # ---- provider-specific ---------------------------------------------------

    @abstractmethod
    def build_auth_url(self) -> str:
        """Return the URL the user must visit to authorize this app."""

    @abstractmethod
    def _request_token(self, code: str) -> dict:
        """Trade an authorization code for a raw token response."""

    @abstractmethod
    def _request_refresh(self, refresh_token: str) -> dict:
        """Trade a refresh token for a raw token response."""

    @abstractmethod
    def _fetch(self, access_token: str) -> list[Activity]:
        """List the activities in the sync window using *access_token*."""

    # ---- shared token lifecycle ----------------------------------------------

    def _token_payload(self, data: Any, error_cls: type) -> TokenPayload:
        """Turn a decoded token response into a payload or raise *error_cls*."""
        if not isinstance(data, dict):
            raise error_cls(
                f"{self.provider.display_name} token response is not an object.", provider=self.provider_name
            )
        try:
            return TokenPayload.from_token_response(data)
        except (KeyError, ValueError, TypeError) as e:
            detail = data.get("error") or f"missing or invalid {e}"
            raise error_cls(
                f"{self.provider.display_name} token response unusable: {detail}", provider=self.provider_name
            ) from e

    def exchange_code(self, code: str) -> TokenPayload:
        """Exchange an authorization code and persist the resulting tokens."""
        payload = self._token_payload(self._request_token(code), AuthExchangeError)
        self.store.set(self.provider, payload)
        log.info("Connected %s", self.provider_name)
        return payload

    def refresh(self, payload: TokenPayload) -> TokenPayload:
        """Refresh *payload* and persist the result.

        Providers that rotate refresh tokens return a new one; when the
        response omits it, the previous refresh token is kept.
        """
        if not payload.refresh_token:
            raise TokenRefreshError("No refresh token stored.", provider=self.provider_name)
        refreshed = self._token_payload(self._request_refresh(payload.refresh_token), TokenRefreshError)
        if not refreshed.refresh_token:
            refreshed = refreshed._replace(refresh_token=payload.refresh_token)
        self.store.set(self.provider, refreshed)
        log.info("Refreshed %s access token", self.provider_name)
        return refreshed

    def valid_access_token(self, now: float | None = None) -> str | None:
        """Return a usable access token, refreshing it when it is about to expire.

        A failed refresh is not fatal: the stored token is returned and the
        activity request is allowed to fail on its own.
        """
        payload = self.store.get(self.provider)
        if payload is None:
            return None
        if not needs_refresh(payload, now):
            return payload.access_token
        try:
            return self.refresh(payload).access_token
        except TokenRefreshError as e:
            log.warning("%s token refresh failed: %s. Proceeding with existing token.", self.provider.display_name, e)
            return payload.access_token

    def fetch_activities(self) -> list[Activity]:
        """Activities from the trailing sync window; empty when not connected."""
        access_token = self.valid_access_token()
        if not access_token:
            return []
        activities = self._fetch(access_token)
        log.info("Fetched %d %s activities", len(activities), self.provider_name)
        return activities

    def disconnect(self) -> None:
        """Forget this provider's tokens. Local only; never fails."""
        self.store.clear(self.provider)
