"""Match planned sessions to recorded activities and grade each session."""

from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import NamedTuple

from trailcoach.activity import Activity
from trailcoach.plan import TrainingSession, WeeklyPlan

ON_TRACK_RATIO = 0.9
PARTIAL_RATIO = 0.5


class Adherence(Enum):
    ON_TRACK = "OnTrack"
    PARTIAL = "Partial"
    BEHIND = "Behind"
    EXEMPT = "Exempt"  # nothing was planned


def match(session: TrainingSession, activities: list[Activity]) -> Activity | None:
    """The first activity (in merged-list order) recorded on the session's date."""
    for activity in activities:
        if activity.date == session.date:
            return activity
    return None


def classify(target_km: float, actual_km: float) -> Adherence:
    if target_km <= 0:
        return Adherence.EXEMPT
    ratio = actual_km / target_km
    if ratio >= ON_TRACK_RATIO:
        return Adherence.ON_TRACK
    if ratio >= PARTIAL_RATIO:
        return Adherence.PARTIAL
    return Adherence.BEHIND


class SessionAdherence(NamedTuple):
    session: TrainingSession
    activity: Activity | None
    actual_km: float
    status: Adherence

    def to_dict(self) -> dict:
        return {
            "session": self.session.to_dict(),
            "activity": self.activity.to_dict() if self.activity else None,
            "actualDistance": self.actual_km,
            "status": self.status.value,
        }


def week_adherence(plan: WeeklyPlan, activities: list[Activity]) -> list[SessionAdherence]:
    rows = []
    for session in plan.sessions:
        activity = match(session, activities)
        actual = activity.distance if activity else 0.0
        rows.append(SessionAdherence(session, activity, actual, classify(session.distance_target, actual)))
    return rows


class AdherenceSummary(NamedTuple):
    counts: dict[Adherence, int]
    planned_km: float
    actual_km: float

    def to_dict(self) -> dict:
        return {
            "counts": {status.value: self.counts.get(status, 0) for status in Adherence},
            "plannedDistance": self.planned_km,
            "actualDistance": self.actual_km,
        }


def summarize(rows: list[SessionAdherence]) -> AdherenceSummary:
    counts = Counter(row.status for row in rows)
    return AdherenceSummary(
        counts={status: counts.get(status, 0) for status in Adherence},
        planned_km=round(sum(row.session.distance_target for row in rows), 1),
        actual_km=round(sum(row.actual_km for row in rows), 1),
    )
