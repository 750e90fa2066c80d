"""Fetch and merge recent activities from every provider."""

from tabulate import tabulate

from trailcoach.core import Trailcoach


def run() -> None:
    with Trailcoach() as tc:
        result = tc.aggregator.sync()

    for provider, state in result.statuses.items():
        if state.error:
            print(f"⚠️  {state.error}")
        elif state.connected:
            print(f"✅ {provider.display_name}: synced")

    if not result.activities:
        print("No activities in the sync window.")
        return

    rows = [
        [a.date, a.name, a.type.value, f"{a.distance:.1f}", a.duration, a.elevation_gain, a.provider]
        for a in result.activities
    ]
    print(
        tabulate(
            rows,
            headers=["Date", "Name", "Type", "km", "min", "Elev (m)", "Provider"],
            tablefmt="simple",
        )
    )
