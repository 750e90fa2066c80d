"""Meals, the daily nutrition log and the weekly nutrition plan."""

from __future__ import annotations

import datetime
import logging
import time
from enum import Enum
from typing import Any, NamedTuple

from trailcoach.storage import NUTRITION_LOG_KEY, NUTRITION_PLAN_KEY, StateRepository

log = logging.getLogger(__name__)


class MealType(Enum):
    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"


def _number(data: dict, name: str) -> float:
    value = data[name]
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError(f"{name} must be a number, got {value!r}")
    return value


def _string(data: dict, name: str) -> str:
    value = data[name]
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string, got {value!r}")
    return value


class Macros(NamedTuple):
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fats: float = 0

    def plus(self, other: Macros) -> Macros:
        return Macros(*(a + b for a, b in zip(self, other)))

    def minus(self, other: Macros) -> Macros:
        return Macros(*(a - b for a, b in zip(self, other)))

    def to_dict(self) -> dict:
        return self._asdict()


DEFAULT_TARGETS = Macros(calories=3200, protein=140, carbs=450, fats=90)


class Meal(NamedTuple):
    id: str
    name: str
    calories: float
    protein: float
    carbs: float
    fats: float
    time: str  # HH:MM
    type: MealType

    @property
    def macros(self) -> Macros:
        return Macros(self.calories, self.protein, self.carbs, self.fats)

    def to_dict(self) -> dict:
        return {**self._asdict(), "type": self.type.value}

    @classmethod
    def from_input(cls, data: dict, meal_id: str, at: str) -> Meal:
        """Validate an analyzed meal (no id or time yet) and stamp it."""
        if not isinstance(data, dict):
            raise ValueError("meal must be an object")
        return cls(
            id=meal_id,
            name=_string(data, "name"),
            calories=_number(data, "calories"),
            protein=_number(data, "protein"),
            carbs=_number(data, "carbs"),
            fats=_number(data, "fats"),
            time=at,
            type=MealType(data["type"]),
        )

    @classmethod
    def from_dict(cls, data: dict) -> Meal:
        return cls.from_input(data, _string(data, "id"), _string(data, "time"))


def new_meal_id() -> str:
    return str(int(time.time() * 1000))


OFFLINE_MEAL = {
    "name": "Logged Item (Offline)",
    "calories": 300,
    "protein": 10,
    "carbs": 40,
    "fats": 10,
    "type": "Snack",
}


def offline_meal() -> Meal:
    return Meal.from_input(OFFLINE_MEAL, new_meal_id(), "12:00")


class PlannedMeal(NamedTuple):
    name: str
    description: str
    calories: float
    protein: float
    carbs: float
    fats: float

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "calories": self.calories,
            "macros": {"p": self.protein, "c": self.carbs, "f": self.fats},
        }

    @classmethod
    def from_dict(cls, data: dict) -> PlannedMeal:
        macros = data["macros"]
        return cls(
            name=_string(data, "name"),
            description=_string(data, "description"),
            calories=_number(data, "calories"),
            protein=_number(macros, "p"),
            carbs=_number(macros, "c"),
            fats=_number(macros, "f"),
        )


class NutritionPlanDay(NamedTuple):
    day: str
    meals: dict[MealType, PlannedMeal]

    def to_dict(self) -> dict:
        return {"day": self.day, "meals": {t.value: self.meals[t].to_dict() for t in MealType}}

    @classmethod
    def from_dict(cls, data: dict) -> NutritionPlanDay:
        meals = data["meals"]
        return cls(
            day=_string(data, "day"),
            meals={t: PlannedMeal.from_dict(meals[t.value]) for t in MealType},
        )


def parse_nutrition_plan(data: Any) -> list[NutritionPlanDay]:
    if not isinstance(data, list):
        raise ValueError("nutrition plan must be a list of days")
    return [NutritionPlanDay.from_dict(day) for day in data]


FALLBACK_NUTRITION_PLAN = [
    {
        "day": "Training Day",
        "meals": {
            "Breakfast": {
                "name": "Oatmeal Power",
                "description": "Oats with berries and honey",
                "calories": 450,
                "macros": {"p": 15, "c": 70, "f": 10},
            },
            "Lunch": {
                "name": "Chicken Quinoa",
                "description": "Grilled chicken bowl",
                "calories": 600,
                "macros": {"p": 40, "c": 60, "f": 20},
            },
            "Dinner": {
                "name": "Salmon & Sweet Potato",
                "description": "Baked salmon with steamed veggies",
                "calories": 550,
                "macros": {"p": 35, "c": 40, "f": 25},
            },
            "Snack": {
                "name": "Trail Mix",
                "description": "Nuts and dried fruits",
                "calories": 300,
                "macros": {"p": 8, "c": 30, "f": 18},
            },
        },
    }
]


def fallback_nutrition_plan() -> list[NutritionPlanDay]:
    return parse_nutrition_plan(FALLBACK_NUTRITION_PLAN)


class NutritionDay(NamedTuple):
    date: str
    meals: list[Meal]
    targets: Macros = DEFAULT_TARGETS

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "meals": [m.to_dict() for m in self.meals],
            "targets": self.targets.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> NutritionDay:
        targets = data.get("targets") or {}
        return cls(
            date=_string(data, "date"),
            meals=[Meal.from_dict(m) for m in data.get("meals") or []],
            targets=Macros(**{k: targets.get(k, v) for k, v in DEFAULT_TARGETS.to_dict().items()}),
        )


class NutritionLog:
    """Today's meals, persisted under ``nutritionLog``.

    A stored day that is not today is replaced by an empty day with the same
    targets the first time it is read.
    """

    def __init__(self, repository: StateRepository, today: datetime.date | None = None):
        self.repository = repository
        self.today = (today or datetime.date.today()).isoformat()

    def day(self) -> NutritionDay:
        stored = self.repository.load_as(NUTRITION_LOG_KEY, NutritionDay.from_dict)
        if stored is None:
            return NutritionDay(date=self.today, meals=[])
        if stored.date != self.today:
            return NutritionDay(date=self.today, meals=[], targets=stored.targets)
        return stored

    def add_meal(self, meal: Meal) -> NutritionDay:
        current = self.day()
        updated = current._replace(meals=[*current.meals, meal])
        self.repository.save(NUTRITION_LOG_KEY, updated.to_dict())
        log.info("Logged %s (%s kcal)", meal.name, meal.calories)
        return updated

    def totals(self) -> Macros:
        total = Macros()
        for meal in self.day().meals:
            total = total.plus(meal.macros)
        return total

    def remaining(self) -> Macros:
        current = self.day()
        return current.targets.minus(self.totals())

    # ---- weekly nutrition plan -------------------------------------------

    def plan(self) -> list[NutritionPlanDay]:
        return self.repository.load_as(NUTRITION_PLAN_KEY, parse_nutrition_plan, [])

    def save_plan(self, days: list[NutritionPlanDay]) -> None:
        self.repository.save(NUTRITION_PLAN_KEY, [d.to_dict() for d in days])
