"""Show or update the runner profile used for plan generation."""

from tabulate import tabulate

from trailcoach.core import Trailcoach
from trailcoach.profile import FitnessLevel


def run(
    name: str | None = None,
    race_distance: float | None = None,
    race_date: str | None = None,
    level: str | None = None,
    weekly_hours: float | None = None,
    goals: list[str] | None = None,
) -> None:
    changes = {
        "name": name,
        "race_distance": race_distance,
        "race_date": race_date,
        "fitness_level": FitnessLevel(level) if level else None,
        "weekly_hours": weekly_hours,
        "goals": tuple(goals) if goals else None,
    }
    changes = {key: value for key, value in changes.items() if value is not None}

    with Trailcoach() as tc:
        if changes:
            try:
                profile = tc.update_profile(**changes)
            except ValueError as e:
                print(f"❌ Invalid race date: {e}")
                return
            print("✅ Profile saved.\n")
        else:
            profile = tc.profile
        weeks = profile.weeks_to_race(tc.today)

    rows = [
        ["Name", profile.name],
        ["Race distance", f"{profile.race_distance:g} km"],
        ["Race date", profile.race_date],
        ["Weeks to race", weeks],
        ["Fitness level", profile.fitness_level.value],
        ["Weekly hours", "-" if profile.weekly_hours is None else f"{profile.weekly_hours:g}"],
        ["Goals", ", ".join(profile.goals) or "-"],
    ]
    print(tabulate(rows, tablefmt="simple"))
    if weeks == 0:
        print("\n⚠️  Race day has passed. Set the next one with --race-date YYYY-MM-DD.")
