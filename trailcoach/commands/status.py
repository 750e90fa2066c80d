"""Show which providers are connected and configured."""

from tabulate import tabulate

from trailcoach.core import Trailcoach
from trailcoach.exceptions import ConfigurationError
from trailcoach.provider_status import Provider


def run() -> None:
    """Print a provider-by-provider connection summary."""
    with Trailcoach() as tc:
        rows = []
        for name in Provider:
            provider = tc.get_provider(name)
            try:
                provider.build_auth_url()
                configured = "yes"
            except ConfigurationError as e:
                configured = f"no ({e.setting})"
            payload = tc.tokens.get(name)
            expires = "-"
            if payload and payload.expires_at:
                expires = str(payload.expires_at)
            rows.append(
                [
                    name.display_name,
                    configured,
                    "yes" if payload else "no",
                    expires,
                ]
            )
        plan = tc.plans.current()

    print(tabulate(rows, headers=["Provider", "Configured", "Connected", "Token expires"], tablefmt="simple"))
    print()
    if plan:
        print(f"Current plan: week {plan.week_number}, {plan.focus}")
    else:
        print("No training plan yet. Run 'python -m trailcoach plan'.")
