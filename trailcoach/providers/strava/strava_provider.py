"""Strava provider for trailcoach.

The Strava client secret never leaves the backend: code exchange and token
refresh are posted to the trailcoach relay (``app/routes/auth_strava.py``),
which talks to Strava with stravalib. Activity listing goes straight to the
Strava API through ``stravalib.Client``.
"""

import datetime
import logging
from typing import Any

import requests
from stravalib import Client
from stravalib.exc import Fault, RateLimitExceeded

from trailcoach.activity import (
    Activity,
    calendar_date,
    classify_activity_type,
    meters_to_km,
    round_int,
    seconds_to_minutes,
)
from trailcoach.appconfig import require_setting, setting
from trailcoach.exceptions import ActivityFetchError, AuthExchangeError, ConfigurationError, TokenRefreshError
from trailcoach.provider_status import Provider
from trailcoach.providers.base_provider import ActivityProvider
from trailcoach.token_store import TokenStore

log = logging.getLogger(__name__)

STRAVA_AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"


def _field(record: Any, name: str) -> Any:
    """Read *name* from a stravalib model or a plain dict."""
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _text(value: Any) -> str:
    # stravalib wraps activity types in a pydantic RootModel
    value = getattr(value, "root", value)
    return "" if value is None else str(value)


def _seconds(value: Any) -> float | None:
    if value is None:
        return None
    if hasattr(value, "total_seconds"):
        return value.total_seconds()
    if hasattr(value, "timedelta"):
        return value.timedelta().total_seconds()
    return float(value)


def strava_to_activity(record: Any) -> Activity:
    """Map one Strava activity (stravalib model or API dict) to an Activity."""
    type_text = _text(_field(record, "sport_type")) or _text(_field(record, "type"))
    return Activity(
        id=str(_field(record, "id")),
        name=str(_field(record, "name") or ""),
        type=classify_activity_type(type_text),
        distance=meters_to_km(_field(record, "distance")),
        duration=seconds_to_minutes(_seconds(_field(record, "moving_time"))),
        elevation_gain=round_int(_field(record, "total_elevation_gain")),
        date=calendar_date(_field(record, "start_date")),
        calories=round_int(_field(record, "calories")),
        provider=Provider.STRAVA.value,
    )


class StravaProvider(ActivityProvider):
    provider = Provider.STRAVA

    def __init__(self, store: TokenStore, config: dict[str, Any] | None = None):
        super().__init__(store, config)
        self.relay_url = str(setting(self.config, "relay_url")).rstrip("/")
        self.client = Client()

    def build_auth_url(self) -> str:
        client_id = require_setting(self.settings, "client_id", self.provider)
        if not client_id.isdigit():
            raise ConfigurationError(
                f"Strava client_id must be numeric, got {client_id!r}.",
                provider=self.provider_name,
                setting="client_id",
            )
        redirect_uri = require_setting(self.settings, "redirect_uri", self.provider)
        scope = [s.strip() for s in str(self.settings.get("scope") or "").split(",") if s.strip()]
        url = self.client.authorization_url(
            client_id=int(client_id),
            redirect_uri=redirect_uri,
            scope=scope or None,
            state=self.provider.value,
        )
        return str(url)

    def _post_relay(self, path: str, body: dict, error_cls: type, action: str) -> dict:
        try:
            resp = requests.post(f"{self.relay_url}{path}", json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise error_cls(f"Strava {action} failed: {e}", provider=self.provider_name) from e
        if not resp.ok:
            raise error_cls(
                f"Strava {action} failed with HTTP {resp.status_code}.",
                provider=self.provider_name,
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise error_cls(
                f"Strava {action} returned a body that is not JSON.",
                provider=self.provider_name,
                status_code=resp.status_code,
            ) from e

    def _request_token(self, code: str) -> dict:
        return self._post_relay("/api/auth/strava", {"code": code}, AuthExchangeError, "code exchange")

    def _request_refresh(self, refresh_token: str) -> dict:
        return self._post_relay(
            "/api/auth/strava/refresh", {"refresh_token": refresh_token}, TokenRefreshError, "token refresh"
        )

    def _fetch(self, access_token: str) -> list[Activity]:
        start, end = self.sync_window()
        self.client.access_token = access_token
        try:
            raw = list(
                self.client.get_activities(
                    after=datetime.datetime.fromtimestamp(start, tz=datetime.UTC),
                    before=datetime.datetime.fromtimestamp(end, tz=datetime.UTC),
                )
            )
        except (Fault, RateLimitExceeded) as e:
            status = getattr(getattr(e, "response", None), "status_code", None)
            raise ActivityFetchError(
                f"Failed to fetch Strava activities: {e}", provider=self.provider_name, status_code=status
            ) from e
        except requests.RequestException as e:
            raise ActivityFetchError(f"Failed to fetch Strava activities: {e}", provider=self.provider_name) from e
        return [strava_to_activity(record) for record in raw]
