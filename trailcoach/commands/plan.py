"""Show (or regenerate) this week's training plan."""

from tabulate import tabulate

from trailcoach.core import Trailcoach
from trailcoach.plan import next_workout


def run(regenerate: bool = False) -> None:
    with Trailcoach() as tc:
        today = tc.today
        if regenerate:
            result = tc.plans.regenerate(tc.profile, today)
        else:
            result = tc.plans.ensure(tc.profile, today)

    plan = result.plan
    if result.used_fallback:
        print("⚠️  The coach is offline; showing the built-in base-building week.")
    print(f"Week {plan.week_number}: {plan.focus}\n")

    upcoming = next_workout(plan, today)
    rows = [
        ["→" if s == upcoming else "", s.day, s.date, s.type.value, f"{s.distance_target:g}", s.description]
        for s in plan.sessions
    ]
    print(tabulate(rows, headers=["", "Day", "Date", "Type", "km", "Description"], tablefmt="simple"))
    print(f"\nTotal: {plan.total_distance:g} km")
