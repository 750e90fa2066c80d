"""Provider identifiers and per-provider integration state.

``IntegrationState`` is the transient, UI-facing view of one provider: is it
connected, is a sync in flight, what went wrong last time and when did it
last succeed. It lives for the current session only and is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class Provider(Enum):
    """The closed set of supported activity providers, in priority order."""

    STRAVA = "strava"
    GARMIN = "garmin"

    @property
    def display_name(self) -> str:
        return self.value.title()

    @classmethod
    def parse(cls, value: str | Provider) -> Provider:
        """Look a provider up by name; raises ValueError for unknown names."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


PROVIDER_PRIORITY: dict[Provider, int] = {provider: index for index, provider in enumerate(Provider)}


@dataclass
class IntegrationState:
    connected: bool = False
    syncing: bool = False
    error: str | None = None
    last_sync: datetime | None = None

    def copy(self) -> IntegrationState:
        return replace(self)

    def to_dict(self) -> dict:
        return {
            "connected": self.connected,
            "syncing": self.syncing,
            "error": self.error,
            "lastSync": self.last_sync.isoformat() if self.last_sync else None,
        }


def sync_failed_message(provider: Provider) -> str:
    """The error shown for a provider whose last sync failed."""
    return f"{provider.display_name} sync failed. Please retry."
