"""Persisted client state behind a single repository seam.

Every piece of state the dashboard keeps between runs (user profile, plan,
nutrition log, nutrition plan and the two provider token blobs) is stored as
a JSON document under a fixed key. Callers only ever see ``load`` / ``save``
/ ``delete``; the medium behind them is either the peewee database
(``DatabaseRepository``) or a plain dict (``MemoryRepository``).

A stored document that fails to decode is treated as absent: ``load`` logs a
warning and hands back the caller's fallback instead of raising.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from peewee import CharField, IntegerField, Model, TextField

from trailcoach.db import db
from trailcoach.exceptions import ParseError

log = logging.getLogger(__name__)

T = TypeVar("T")

# ---- keys --------------------------------------------------------------------

USER_PROFILE_KEY = "userProfile"
PLAN_KEY = "trainingPlan"
NUTRITION_LOG_KEY = "nutritionLog"
NUTRITION_PLAN_KEY = "nutritionPlan"
STRAVA_TOKENS_KEY = "stravaTokens"
GARMIN_TOKENS_KEY = "garminTokens"


# ---- model -------------------------------------------------------------------


class StoredState(Model):
    """One JSON document per key."""

    key = CharField(max_length=128, unique=True)
    value = TextField()  # JSON-encoded value
    updated_at = IntegerField(null=True)  # Unix timestamp

    class Meta:
        database = db
        table_name = "stored_state"


# ---- repositories ------------------------------------------------------------


class StateRepository(ABC):
    """Keyed JSON storage with parse failures degraded to a fallback."""

    @abstractmethod
    def _read(self, key: str) -> str | None:
        """Return the raw stored text for *key*, or None."""

    @abstractmethod
    def _write(self, key: str, text: str) -> None:
        """Overwrite the raw stored text for *key*."""

    @abstractmethod
    def _remove(self, key: str) -> None:
        """Drop *key*; a missing key is not an error."""

    def load(self, key: str, fallback: Any = None) -> Any:
        """Return the decoded document under *key*, or *fallback*."""
        raw = self._read(key)
        if raw is None:
            return fallback
        try:
            return _decode(key, raw)
        except ParseError as exc:
            log.warning("Ignoring stored %s: %s", key, exc)
            return fallback

    def load_as(self, key: str, convert: Callable[[Any], T], fallback: T | None = None) -> T | None:
        """Decode *key* and pass it through *convert*.

        A document that decodes but does not have the shape *convert* expects
        is treated exactly like malformed JSON.
        """
        raw = self._read(key)
        if raw is None:
            return fallback
        try:
            data = _decode(key, raw)
            try:
                return convert(data)
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                raise ParseError(f"unexpected shape: {exc}", key=key) from exc
        except ParseError as exc:
            log.warning("Ignoring stored %s: %s", key, exc)
            return fallback

    def save(self, key: str, value: Any) -> None:
        """Serialize *value* to JSON and overwrite *key*."""
        self._write(key, json.dumps(value))

    def delete(self, key: str) -> None:
        self._remove(key)


class DatabaseRepository(StateRepository):
    """Repository backed by the ``stored_state`` table."""

    def _read(self, key: str) -> str | None:
        row = StoredState.get_or_none(StoredState.key == key)
        return row.value if row else None

    def _write(self, key: str, text: str) -> None:
        now = int(datetime.now(UTC).timestamp())
        (
            StoredState.insert(key=key, value=text, updated_at=now)
            .on_conflict(
                conflict_target=[StoredState.key],
                update={StoredState.value: text, StoredState.updated_at: now},
            )
            .execute()
        )

    def _remove(self, key: str) -> None:
        StoredState.delete().where(StoredState.key == key).execute()


class MemoryRepository(StateRepository):
    """In-process repository; values still go through JSON so they round-trip like the DB."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._blobs: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.save(key, value)

    def _read(self, key: str) -> str | None:
        return self._blobs.get(key)

    def _write(self, key: str, text: str) -> None:
        self._blobs[key] = text

    def _remove(self, key: str) -> None:
        self._blobs.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._blobs)


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"malformed JSON: {exc}", key=key) from exc
