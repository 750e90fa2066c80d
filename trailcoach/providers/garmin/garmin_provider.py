"""Garmin provider for trailcoach.

Talks to the Garmin wellness API as a confidential OAuth client: the token
endpoint receives the client id and secret as form fields for both the code
exchange and the refresh grant. All endpoints are configured, not built in.
"""

from typing import Any
from urllib.parse import urlencode

import requests

from trailcoach.activity import (
    Activity,
    calendar_date,
    classify_activity_type,
    meters_to_km,
    round_int,
    seconds_to_minutes,
)
from trailcoach.appconfig import require_setting
from trailcoach.exceptions import ActivityFetchError, AuthExchangeError, TokenRefreshError
from trailcoach.provider_status import Provider
from trailcoach.providers.base_provider import ActivityProvider

DEFAULT_REDIRECT_URI = "http://localhost:5173"
DEFAULT_SCOPE = "activities"
ACTIVITIES_PATH = "/wellness-api/rest/activities"


def garmin_to_activity(record: dict) -> Activity:
    """Map one wellness-API activity summary to an Activity."""
    return Activity(
        id=str(record.get("activityId")),
        name=str(record.get("activityName") or ""),
        type=classify_activity_type(record.get("activityType")),
        distance=meters_to_km(record.get("distanceInMeters")),
        duration=seconds_to_minutes(record.get("durationInSeconds")),
        elevation_gain=round_int(record.get("elevationGainInMeters")),
        date=calendar_date(record.get("startTimeLocal")),
        calories=round_int(record.get("calories")),
        provider=Provider.GARMIN.value,
    )


class GarminProvider(ActivityProvider):
    """Provider for the Garmin wellness API."""

    provider = Provider.GARMIN

    @property
    def redirect_uri(self) -> str:
        return str(self.settings.get("redirect_uri") or DEFAULT_REDIRECT_URI)

    def build_auth_url(self) -> str:
        client_id = require_setting(self.settings, "client_id", self.provider)
        auth_url = require_setting(self.settings, "auth_url", self.provider)
        params = {
            "client_id": client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.settings.get("scope") or DEFAULT_SCOPE,
            "state": self.provider.value,
        }
        return f"{auth_url}?{urlencode(params)}"

    def _post_token(self, form: dict, error_cls: type, action: str) -> dict:
        client_id = require_setting(self.settings, "client_id", self.provider)
        client_secret = require_setting(self.settings, "client_secret", self.provider)
        token_url = require_setting(self.settings, "token_url", self.provider)
        body = {"client_id": client_id, "client_secret": client_secret, **form}
        try:
            resp = requests.post(
                token_url,
                data=body,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise error_cls(f"Failed to {action}: {e}", provider=self.provider_name) from e
        if not resp.ok:
            raise error_cls(f"Failed to {action}.", provider=self.provider_name, status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise error_cls(
                f"Failed to {action}: response is not JSON.", provider=self.provider_name, status_code=resp.status_code
            ) from e

    def _request_token(self, code: str) -> dict:
        form = {"code": code, "grant_type": "authorization_code", "redirect_uri": self.redirect_uri}
        return self._post_token(form, AuthExchangeError, "exchange Garmin authorization code")

    def _request_refresh(self, refresh_token: str) -> dict:
        form = {"refresh_token": refresh_token, "grant_type": "refresh_token"}
        return self._post_token(form, TokenRefreshError, "refresh Garmin token")

    def _fetch(self, access_token: str) -> list[Activity]:
        api_base = require_setting(self.settings, "api_base", self.provider).rstrip("/")
        start, end = self.sync_window()
        try:
            resp = requests.get(
                f"{api_base}{ACTIVITIES_PATH}",
                params={"startTimeInSeconds": start, "endTimeInSeconds": end},
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ActivityFetchError(f"Failed to fetch Garmin activities: {e}", provider=self.provider_name) from e
        if not resp.ok:
            raise ActivityFetchError(
                "Failed to fetch Garmin activities.", provider=self.provider_name, status_code=resp.status_code
            )
        try:
            records = resp.json() or []
        except ValueError as e:
            raise ActivityFetchError(
                "Garmin activities response is not JSON.", provider=self.provider_name, status_code=resp.status_code
            ) from e
        return [garmin_to_activity(record) for record in records]
