"""Weekly training plans: data model, fallback plan and plan persistence."""

from __future__ import annotations

import datetime
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple

from trailcoach.exceptions import AIServiceError
from trailcoach.storage import PLAN_KEY, StateRepository

if TYPE_CHECKING:
    from trailcoach.coach import CoachClient
    from trailcoach.profile import UserProfile

log = logging.getLogger(__name__)

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class SessionType(Enum):
    REST = "Rest"
    EASY = "Easy"
    TEMPO = "Tempo"
    INTERVALS = "Intervals"
    LONG_RUN = "Long Run"
    HILL_REPEATS = "Hill Repeats"
    CROSS_TRAIN = "Cross Train"


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError(f"{name} must be a number, got {value!r}")
    return value


def _string(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string, got {value!r}")
    return value


_SESSION_FIELDS = ("day", "date", "type", "distanceTarget", "description")
_PLAN_FIELDS = ("weekNumber", "focus", "sessions")


def _extra(data: dict, known: tuple[str, ...]) -> dict | None:
    """Keys of *data* beyond *known*, or None."""
    extra = {key: value for key, value in data.items() if key not in known}
    return extra or None


class TrainingSession(NamedTuple):
    day: str
    date: str  # YYYY-MM-DD
    type: SessionType
    distance_target: float  # km
    description: str
    extra: dict | None = None

    def to_dict(self) -> dict:
        return {
            **(self.extra or {}),
            "day": self.day,
            "date": self.date,
            "type": self.type.value,
            "distanceTarget": self.distance_target,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TrainingSession:
        distance = _number(data["distanceTarget"], "distanceTarget")
        if distance < 0:
            raise ValueError("distanceTarget must not be negative")
        return cls(
            day=_string(data["day"], "day"),
            date=_string(data["date"], "date"),
            type=SessionType(data["type"]),
            distance_target=distance,
            description=_string(data.get("description", ""), "description"),
            extra=_extra(data, _SESSION_FIELDS),
        )


class WeeklyPlan(NamedTuple):
    week_number: int
    focus: str
    sessions: list[TrainingSession]
    extra: dict | None = None

    def to_dict(self) -> dict:
        return {
            **(self.extra or {}),
            "weekNumber": self.week_number,
            "focus": self.focus,
            "sessions": [s.to_dict() for s in self.sessions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> WeeklyPlan:
        """Build a plan, raising ValueError/KeyError/TypeError when *data* is not one.

        The sessions must be one calendar week: Monday to Sunday in order,
        on seven consecutive dates starting on a Monday.
        """
        sessions = [TrainingSession.from_dict(s) for s in data["sessions"]]
        if len(sessions) != len(WEEKDAYS):
            raise ValueError(f"expected {len(WEEKDAYS)} sessions, got {len(sessions)}")
        if [s.day for s in sessions] != WEEKDAYS:
            raise ValueError(f"sessions must run Monday to Sunday, got {[s.day for s in sessions]}")
        monday = datetime.date.fromisoformat(sessions[0].date)
        if monday.weekday() != 0:
            raise ValueError(f"first session date {sessions[0].date} is not a Monday")
        if [s.date for s in sessions] != week_dates(monday):
            raise ValueError("session dates must be the seven consecutive days of one week")
        return cls(
            week_number=int(_number(data["weekNumber"], "weekNumber")),
            focus=_string(data["focus"], "focus"),
            sessions=sessions,
            extra=_extra(data, _PLAN_FIELDS),
        )

    @property
    def total_distance(self) -> float:
        return sum(s.distance_target for s in self.sessions)


def week_dates(today: datetime.date) -> list[str]:
    """ISO dates of the Monday-first week containing *today*."""
    monday = today - datetime.timedelta(days=today.weekday())
    return [(monday + datetime.timedelta(days=i)).isoformat() for i in range(7)]


_FALLBACK_SESSIONS = [
    (SessionType.REST, 0, "Active recovery or total rest."),
    (SessionType.EASY, 10, "Zone 2 flat trail run."),
    (SessionType.HILL_REPEATS, 8, "10x3min hills @ threshold."),
    (SessionType.EASY, 10, "Recovery run, keep HR low."),
    (SessionType.REST, 0, "Mobility work."),
    (SessionType.LONG_RUN, 25, "Trail run with 1000m+ elevation gain."),
    (SessionType.EASY, 15, "Back-to-back run on tired legs."),
]


def fallback_plan(today: datetime.date) -> WeeklyPlan:
    """The built-in plan used whenever the AI plan cannot be generated."""
    sessions = [
        TrainingSession(day=day, date=date, type=session_type, distance_target=km, description=description)
        for day, date, (session_type, km, description) in zip(WEEKDAYS, week_dates(today), _FALLBACK_SESSIONS)
    ]
    return WeeklyPlan(week_number=1, focus="Base Building & Aerobic Capacity", sessions=sessions)


def next_workout(plan: WeeklyPlan | None, today: datetime.date) -> TrainingSession | None:
    """Today's session by weekday name, else the first session of the plan."""
    if plan is None or not plan.sessions:
        return None
    day_name = WEEKDAYS[today.weekday()]
    for session in plan.sessions:
        if session.day == day_name:
            return session
    return plan.sessions[0]


class PlanResult(NamedTuple):
    plan: WeeklyPlan
    used_fallback: bool = False
    generated: bool = False


class PlanStore:
    """The persisted current plan and the rules for replacing it.

    A stored plan is kept until the user explicitly asks for a new one; it is
    only generated automatically when nothing (readable) is stored.
    """

    def __init__(self, repository: StateRepository, coach: CoachClient):
        self.repository = repository
        self.coach = coach

    def current(self) -> WeeklyPlan | None:
        return self.repository.load_as(PLAN_KEY, WeeklyPlan.from_dict)

    def save(self, plan: WeeklyPlan) -> None:
        self.repository.save(PLAN_KEY, plan.to_dict())

    def ensure(self, profile: UserProfile, today: datetime.date) -> PlanResult:
        plan = self.current()
        if plan is not None:
            return PlanResult(plan)
        return self.regenerate(profile, today)

    def regenerate(self, profile: UserProfile, today: datetime.date) -> PlanResult:
        try:
            plan = self.coach.generate_plan(profile.plan_request(today))
            used_fallback = False
        except AIServiceError as e:
            log.warning("Using fallback training plan: %s", e)
            plan = fallback_plan(today)
            used_fallback = True
        self.save(plan)
        return PlanResult(plan, used_fallback=used_fallback, generated=True)
