"""The runner's profile and the request it turns into for plan generation."""

from __future__ import annotations

import datetime
import math
from enum import Enum
from typing import NamedTuple

from trailcoach.plan import week_dates
from trailcoach.storage import USER_PROFILE_KEY, StateRepository


class FitnessLevel(Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    ELITE = "Elite"


class UserProfile(NamedTuple):
    name: str = "Trail Runner"
    race_distance: float = 175  # km
    race_date: str = "2025-08-24"
    fitness_level: FitnessLevel = FitnessLevel.ADVANCED
    weekly_hours: float | None = None
    goals: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "raceDistance": self.race_distance,
            "raceDate": self.race_date,
            "fitnessLevel": self.fitness_level.value,
        }
        if self.weekly_hours is not None:
            data["weeklyHours"] = self.weekly_hours
        if self.goals:
            data["goals"] = list(self.goals)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> UserProfile:
        default = cls()
        weekly_hours = data.get("weeklyHours")
        race_date = str(data.get("raceDate") or default.race_date)
        datetime.date.fromisoformat(race_date)
        return cls(
            name=str(data.get("name") or default.name),
            race_distance=float(data.get("raceDistance") or default.race_distance),
            race_date=race_date,
            fitness_level=FitnessLevel(data.get("fitnessLevel") or default.fitness_level.value),
            weekly_hours=float(weekly_hours) if weekly_hours is not None else None,
            goals=tuple(str(g) for g in data.get("goals") or ()),
        )

    def weeks_to_race(self, today: datetime.date) -> int:
        race_day = datetime.date.fromisoformat(self.race_date)
        return max(0, math.ceil((race_day - today).days / 7))

    def plan_request(self, today: datetime.date) -> dict:
        """The profile object the AI plan endpoint expects."""
        request = {
            "level": self.fitness_level.value,
            "targetRace": f"{self.race_distance:g}km ultra-trail",
            "targetDate": self.race_date,
            "weeksToRace": self.weeks_to_race(today),
            "currentWeekStart": week_dates(today)[0],
        }
        if self.weekly_hours is not None:
            request["weeklyHours"] = self.weekly_hours
        if self.goals:
            request["goals"] = list(self.goals)
        return request


def load_profile(repository: StateRepository) -> UserProfile:
    return repository.load_as(USER_PROFILE_KEY, UserProfile.from_dict, UserProfile())


def save_profile(repository: StateRepository, profile: UserProfile) -> None:
    repository.save(USER_PROFILE_KEY, profile.to_dict())
