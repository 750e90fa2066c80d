"""Today's nutrition log and the weekly nutrition plan."""

from tabulate import tabulate

from trailcoach.core import Trailcoach
from trailcoach.nutrition import Macros, MealType, NutritionPlanDay


def _macro_row(label: str, macros: Macros) -> list:
    return [label, f"{macros.calories:g}", f"{macros.protein:g}", f"{macros.carbs:g}", f"{macros.fats:g}"]


def _print_plan(days: list[NutritionPlanDay]) -> None:
    for day in days:
        print(f"\n{day.day}")
        rows = []
        for meal_type in MealType:
            meal = day.meals[meal_type]
            macros = f"{meal.protein:g}/{meal.carbs:g}/{meal.fats:g}"
            rows.append([meal_type.value, meal.name, f"{meal.calories:g}", macros])
        print(tabulate(rows, headers=["Meal", "Name", "kcal", "P/C/F"], tablefmt="simple"))


def run(show_plan: bool = False, regenerate: bool = False) -> None:
    with Trailcoach() as tc:
        nutrition = tc.nutrition
        day = nutrition.day()
        totals = nutrition.totals()
        remaining = nutrition.remaining()
        days = tc.nutrition_plan(regenerate=regenerate) if show_plan or regenerate else None

    print(f"Nutrition for {day.date}\n")
    if day.meals:
        rows = [
            [m.time, m.name, m.type.value, f"{m.calories:g}", f"{m.protein:g}", f"{m.carbs:g}", f"{m.fats:g}"]
            for m in day.meals
        ]
        print(tabulate(rows, headers=["Time", "Meal", "Type", "kcal", "P", "C", "F"], tablefmt="simple"))
    else:
        print('No meals logged yet. Use: python -m trailcoach meal "<what you ate>"')

    print()
    summary = [
        _macro_row("Eaten", totals),
        _macro_row("Target", day.targets),
        _macro_row("Remaining", remaining),
    ]
    print(tabulate(summary, headers=["", "kcal", "Protein g", "Carbs g", "Fats g"], tablefmt="simple"))

    if days is not None:
        _print_plan(days)
