"""OAuth completion as an explicit state machine.

The redirect back from a provider is handled by exactly one call,
``OAuthFlow.complete(params)``, with the query parameters of the redirect.
The ``state`` parameter (set by ``build_auth_url``) routes the code to the
provider that issued it.

    Idle ──begin()──▶ AwaitingRedirect ──complete()──▶ ExchangingCode
                                                          │
                                      Connected ◀─────────┴────────▶ Failed
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import NamedTuple
from urllib.parse import parse_qs, urlparse

from trailcoach.exceptions import AuthExchangeError, ConfigurationError
from trailcoach.provider_status import IntegrationState, Provider
from trailcoach.providers import ActivityProvider

log = logging.getLogger(__name__)


class OAuthState(Enum):
    IDLE = "Idle"
    AWAITING_REDIRECT = "AwaitingRedirect"
    EXCHANGING_CODE = "ExchangingCode"
    CONNECTED = "Connected"
    FAILED = "Failed"


class OAuthResult(NamedTuple):
    state: OAuthState
    provider: Provider | None = None
    error: str | None = None

    @property
    def connected(self) -> bool:
        return self.state == OAuthState.CONNECTED

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "provider": self.provider.value if self.provider else None,
            "error": self.error,
        }


def callback_params(url: str) -> dict[str, str]:
    """First value of each query parameter of a redirect URL."""
    return {key: values[0] for key, values in parse_qs(urlparse(url).query).items() if values}


class OAuthFlow:
    def __init__(self, providers: list[ActivityProvider], states: dict[Provider, IntegrationState]):
        self.providers = {p.provider: p for p in providers}
        self.states = states
        for provider in self.providers:
            self.states.setdefault(provider, IntegrationState())
        self.state = OAuthState.IDLE
        self.pending: Provider | None = None
        self.error: str | None = None

    def _fail(self, provider: Provider | None, message: str) -> OAuthResult:
        self.state = OAuthState.FAILED
        self.error = message
        self.pending = None
        if provider is not None:
            self.states[provider].error = message
        log.warning("OAuth failed for %s: %s", provider.value if provider else "unknown provider", message)
        return OAuthResult(self.state, provider, message)

    def begin(self, provider: Provider) -> str:
        """Authorization URL for *provider*; the flow then awaits the redirect."""
        try:
            url = self.providers[provider].build_auth_url()
        except ConfigurationError as e:
            self._fail(provider, str(e))
            raise
        self.state = OAuthState.AWAITING_REDIRECT
        self.pending = provider
        self.error = None
        return url

    def _route(self, params: Mapping[str, str]) -> Provider | None:
        name = params.get("state") or params.get("provider")
        if not name:
            return self.pending
        try:
            return Provider.parse(name)
        except ValueError:
            return None

    def complete(self, params: Mapping[str, str]) -> OAuthResult:
        """Drive the flow from the redirect query parameters."""
        code = params.get("code")
        error = params.get("error")
        if not code and not error:
            # not an OAuth redirect
            return OAuthResult(self.state, self.pending)

        provider = self._route(params)
        if provider is None or provider not in self.providers:
            return self._fail(None, f"Unknown OAuth provider: {params.get('state') or params.get('provider')}")
        if error:
            return self._fail(provider, f"{provider.display_name} authorization denied: {error}")

        self.state = OAuthState.EXCHANGING_CODE
        self.pending = provider
        try:
            self.providers[provider].exchange_code(code)
        except (AuthExchangeError, ConfigurationError) as e:
            return self._fail(provider, str(e))

        self.state = OAuthState.CONNECTED
        self.pending = None
        self.error = None
        self.states[provider].connected = True
        self.states[provider].error = None
        return OAuthResult(self.state, provider)

    def disconnect(self, provider: Provider) -> None:
        """Forget *provider*'s tokens; the other provider is left alone."""
        self.providers[provider].disconnect()
        state = self.states[provider]
        state.connected = False
        state.error = None
        state.last_sync = None
        self.state = OAuthState.IDLE
        self.pending = None
        self.error = None
