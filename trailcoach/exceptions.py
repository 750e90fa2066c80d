"""Typed exceptions for trailcoach.

Provider errors carry the provider name so the aggregator and the web layer
can report them per provider. ``ParseError`` and ``AIServiceError`` are
always absorbed by a fallback value close to where they are raised.
"""

from __future__ import annotations


class TrailcoachError(Exception):
    """Base class for every error raised by trailcoach."""


class ConfigurationError(TrailcoachError):
    """A required client id, secret or URL setting is missing."""

    def __init__(self, message: str, provider: str | None = None, setting: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.setting = setting


class ProviderError(TrailcoachError):
    """Base class for failures talking to an activity provider."""

    def __init__(self, message: str, provider: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code  # HTTP status, when there was a response


class AuthExchangeError(ProviderError):
    """The token endpoint (or relay) rejected an authorization code."""


class TokenRefreshError(ProviderError):
    """A refresh token could not be exchanged for a new access token."""


class ActivityFetchError(ProviderError):
    """The activity list endpoint returned a non-success status."""


class ParseError(TrailcoachError):
    """Persisted JSON could not be decoded into the expected shape."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class AIServiceError(TrailcoachError):
    """Any failure calling an AI endpoint."""

    def __init__(self, message: str, endpoint: str | None = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint
