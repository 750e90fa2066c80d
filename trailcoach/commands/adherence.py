"""This week's plan against recorded activities."""

from tabulate import tabulate

from trailcoach.adherence import summarize, week_adherence
from trailcoach.core import Trailcoach


def run() -> None:
    with Trailcoach() as tc:
        plan = tc.plans.ensure(tc.profile, tc.today).plan
        synced = tc.aggregator.sync()

    for state in synced.statuses.values():
        if state.error:
            print(f"⚠️  {state.error}")

    rows = week_adherence(plan, synced.activities)
    table = [
        [
            r.session.day,
            r.session.date,
            r.session.type.value,
            f"{r.session.distance_target:g}",
            f"{r.actual_km:g}",
            r.status.value,
        ]
        for r in rows
    ]
    print(tabulate(table, headers=["Day", "Date", "Type", "Plan km", "Actual km", "Status"], tablefmt="simple"))

    summary = summarize(rows)
    counts = ", ".join(f"{status.value}: {n}" for status, n in summary.counts.items() if n)
    print(f"\n{summary.actual_km:g} of {summary.planned_km:g} km ({counts})")
