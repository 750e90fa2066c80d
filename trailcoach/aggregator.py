"""Merge activities from every connected provider into one timeline.

Each provider is fetched on its own worker thread and every fetch is allowed
to finish, successfully or not, before anything is published. The caller
then sees one consistent transition per provider: the merged activity list
and all integration states change together, never one provider at a time.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from typing import NamedTuple

from trailcoach.activity import Activity
from trailcoach.exceptions import TrailcoachError
from trailcoach.provider_status import PROVIDER_PRIORITY, IntegrationState, Provider, sync_failed_message
from trailcoach.providers import ActivityProvider
from trailcoach.token_store import TokenStore

log = logging.getLogger(__name__)


class ProviderResult(NamedTuple):
    """Outcome of one provider fetch: either activities or an error, never both."""

    provider: Provider
    activities: list[Activity] | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, provider: Provider, activities: list[Activity]) -> ProviderResult:
        return cls(provider, activities=list(activities))

    @classmethod
    def failure(cls, provider: Provider, error: Exception) -> ProviderResult:
        return cls(provider, error=error)


class SyncResult(NamedTuple):
    activities: list[Activity]
    statuses: dict[Provider, IntegrationState]
    results: list[ProviderResult]

    @property
    def failed(self) -> list[Provider]:
        return [r.provider for r in self.results if not r.ok]


def sort_activities(activities: list[Activity]) -> list[Activity]:
    """Newest first.

    Same-day activities are ordered by provider priority, then longer
    distance first, then id, so the merged list is fully deterministic.
    """
    ordered = sorted(
        activities,
        key=lambda a: (PROVIDER_PRIORITY.get(_provider_of(a), len(PROVIDER_PRIORITY)), -a.distance, a.id),
    )
    # stable, so the tie-break order above survives within a date
    return sorted(ordered, key=lambda a: a.date, reverse=True)


def _provider_of(activity: Activity) -> Provider | None:
    try:
        return Provider.parse(activity.provider)
    except ValueError:
        return None


def integration_states(store: TokenStore) -> dict[Provider, IntegrationState]:
    """Fresh per-provider states, ``connected`` taken from stored tokens."""
    return {provider: IntegrationState(connected=store.is_connected(provider)) for provider in Provider}


class ActivityAggregator:
    """Runs provider fetches and owns the merged activity list."""

    def __init__(
        self,
        providers: list[ActivityProvider],
        states: dict[Provider, IntegrationState] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.providers = {p.provider: p for p in providers}
        self.states = states if states is not None else {p.provider: IntegrationState() for p in providers}
        for provider in self.providers:
            self.states.setdefault(provider, IntegrationState())
        self.clock = clock or (lambda: datetime.now(UTC))
        self.activities: list[Activity] = []
        self._contributions: dict[Provider, list[Activity]] = {}
        self._lock = threading.Lock()

    def _settle(self, provider: ActivityProvider) -> ProviderResult:
        try:
            return ProviderResult.success(provider.provider, provider.fetch_activities())
        except TrailcoachError as e:
            log.warning("%s sync failed: %s", provider.provider.display_name, e)
            return ProviderResult.failure(provider.provider, e)
        except Exception as e:
            log.exception("%s sync failed unexpectedly", provider.provider.display_name)
            return ProviderResult.failure(provider.provider, e)

    def _run(self, providers: list[ActivityProvider]) -> list[ProviderResult]:
        with self._lock:
            for p in providers:
                self.states[p.provider].syncing = True
        with ThreadPoolExecutor(max_workers=max(1, len(providers))) as executor:
            return list(executor.map(self._settle, providers))

    def _publish(self, results: list[ProviderResult]) -> SyncResult:
        now = self.clock()
        with self._lock:
            for result in results:
                state = self.states[result.provider]
                state.syncing = False
                if result.ok:
                    state.error = None
                    state.last_sync = now
                    self._contributions[result.provider] = result.activities or []
                else:
                    state.error = sync_failed_message(result.provider)
                    self._contributions[result.provider] = []
            merged = [a for activities in self._contributions.values() for a in activities]
            self.activities = sort_activities(merged)
            statuses = {provider: state.copy() for provider, state in self.states.items()}
        return SyncResult(activities=list(self.activities), statuses=statuses, results=results)

    def sync(self) -> SyncResult:
        """Fetch every provider concurrently and publish the merged result."""
        providers = list(self.providers.values())
        results = self._run(providers)
        synced = self._publish(results)
        log.info(
            "Synced %d activities (%d provider(s) failed)",
            len(synced.activities),
            len(synced.failed),
        )
        return synced

    def retry(self, provider: Provider) -> SyncResult:
        """Re-fetch one provider and replace only its share of the merged list."""
        return self._publish(self._run([self.providers[provider]]))
