"""Activity provider integrations for trailcoach."""

from typing import Any

from trailcoach.provider_status import Provider
from trailcoach.token_store import TokenStore

from .base_provider import ActivityProvider
from .garmin.garmin_provider import GarminProvider
from .strava.strava_provider import StravaProvider

_IMPLEMENTATIONS: dict[Provider, type[ActivityProvider]] = {
    Provider.STRAVA: StravaProvider,
    Provider.GARMIN: GarminProvider,
}


def build_provider(provider: Provider, store: TokenStore, config: dict[str, Any] | None = None) -> ActivityProvider:
    """Construct the implementation for *provider*."""
    return _IMPLEMENTATIONS[provider](store, config)


def build_providers(store: TokenStore, config: dict[str, Any] | None = None) -> list[ActivityProvider]:
    """One implementation per supported provider, in priority order."""
    return [build_provider(provider, store, config) for provider in Provider]


__all__ = [
    "ActivityProvider",
    "GarminProvider",
    "StravaProvider",
    "build_provider",
    "build_providers",
]
