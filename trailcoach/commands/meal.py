"""Log a meal described in free text."""

from trailcoach.core import Trailcoach
from trailcoach.nutrition import OFFLINE_MEAL


def run(food_log: str) -> None:
    with Trailcoach() as tc:
        meal, _ = tc.log_meal(food_log)
        remaining = tc.nutrition.remaining()

    if meal.name == OFFLINE_MEAL["name"]:
        print("⚠️  The coach is offline; logged a placeholder estimate.")
    print(
        f"Logged {meal.name} ({meal.type.value}, {meal.time}): {meal.calories:g} kcal, "
        f"{meal.protein:g}g protein, {meal.carbs:g}g carbs, {meal.fats:g}g fats"
    )
    print(f"Remaining today: {remaining.calories:g} kcal")
