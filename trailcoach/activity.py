"""Normalized Activity record and the provider → Activity mapping helpers."""

from __future__ import annotations

import datetime
import math
from enum import Enum
from typing import Any, NamedTuple


class ActivityType(Enum):
    RUN = "Run"
    TRAIL_RUN = "TrailRun"
    HIKE = "Hike"
    REST = "Rest"


class Activity(NamedTuple):
    """One completed exercise session, whatever provider it came from."""

    id: str
    name: str
    type: ActivityType
    distance: float  # km, one decimal
    duration: int  # minutes
    elevation_gain: int  # meters
    date: str  # YYYY-MM-DD
    calories: int
    provider: str = ""

    def to_dict(self) -> dict:
        """Serialize to the JSON shape the dashboard stores."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "distance": self.distance,
            "duration": self.duration,
            "elevationGain": self.elevation_gain,
            "date": self.date,
            "calories": self.calories,
            "provider": self.provider,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Activity:
        """Deserialize from the dashboard JSON shape."""
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            type=ActivityType(data.get("type") or ActivityType.RUN.value),
            distance=float(data.get("distance") or 0),
            duration=int(data.get("duration") or 0),
            elevation_gain=int(data.get("elevationGain") or 0),
            date=str(data.get("date") or ""),
            calories=int(data.get("calories") or 0),
            provider=str(data.get("provider") or ""),
        )


# ---------------------------------------------------------------------------
# Mapping helpers shared by every provider
# ---------------------------------------------------------------------------


def classify_activity_type(type_text: str | None) -> ActivityType:
    """Classify a provider's free-text activity type.

    Stored data depends on this exact rule: "trail" wins over "hike", and
    anything else (including an empty string) is a Run.
    """
    if not type_text:
        return ActivityType.RUN
    lowered = str(type_text).lower()
    if "trail" in lowered:
        return ActivityType.TRAIL_RUN
    if "hike" in lowered:
        return ActivityType.HIKE
    return ActivityType.RUN


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round_int(value: Any) -> int:
    """Round to the nearest integer, halves up; absent values become 0."""
    if value is None:
        return 0
    return max(0, _round_half_up(float(value)))


def meters_to_km(meters: Any) -> float:
    """Meters → kilometers with one decimal place."""
    if meters is None:
        return 0.0
    return max(0.0, _round_half_up(float(meters) / 1000 * 10) / 10)


def seconds_to_minutes(seconds: Any) -> int:
    """Seconds → whole minutes."""
    if seconds is None:
        return 0
    return max(0, _round_half_up(float(seconds) / 60))


def calendar_date(start: Any) -> str:
    """Calendar-date portion of a provider start timestamp.

    ISO strings are cut at the ``T``; datetimes keep whatever timezone they
    were given. No conversion is done either way.
    """
    if start is None:
        return ""
    if isinstance(start, datetime.datetime):
        return start.date().isoformat()
    if isinstance(start, datetime.date):
        return start.isoformat()
    return str(start).split("T")[0]
