# pylint: disable=import-outside-toplevel
"""Main entry point for the trailcoach CLI.

This module provides the command-line interface for trailcoach, allowing users
to connect activity providers, sync their recent activities, and manage their
weekly training plan.
"""

import argparse

from dotenv import load_dotenv

load_dotenv()

PROVIDER_CHOICES = ["strava", "garmin"]
LEVEL_CHOICES = ["Beginner", "Intermediate", "Advanced", "Elite"]


def main():
    """Main function for the trailcoach CLI."""
    parser = argparse.ArgumentParser(description="trailcoach CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    connect_parser = subparsers.add_parser("connect", help="Print the authorization URL for a provider")
    connect_parser.add_argument("provider", choices=PROVIDER_CHOICES)

    callback_parser = subparsers.add_parser("callback", help="Complete an OAuth redirect")
    callback_parser.add_argument("url", help="The full URL the provider redirected to")

    disconnect_parser = subparsers.add_parser("disconnect", help="Forget a provider's tokens")
    disconnect_parser.add_argument("provider", choices=PROVIDER_CHOICES)

    subparsers.add_parser("sync", help="Fetch recent activities from every connected provider")

    plan_parser = subparsers.add_parser("plan", help="Show this week's training plan")
    plan_parser.add_argument("--regenerate", action="store_true", help="Ask the coach for a new plan")

    subparsers.add_parser("adherence", help="Compare this week's plan with recorded activities")

    profile_parser = subparsers.add_parser("profile", help="Show or update the runner profile")
    profile_parser.add_argument("--name")
    profile_parser.add_argument("--race-distance", type=float, help="Race distance in km")
    profile_parser.add_argument("--race-date", help="Race date (YYYY-MM-DD)")
    profile_parser.add_argument("--level", choices=LEVEL_CHOICES)
    profile_parser.add_argument("--weekly-hours", type=float)
    profile_parser.add_argument("--goal", action="append", dest="goals", help="Training goal (repeatable)")

    nutrition_parser = subparsers.add_parser("nutrition", help="Show today's meals and remaining macros")
    nutrition_parser.add_argument("--plan", action="store_true", help="Also show the nutrition plan")
    nutrition_parser.add_argument("--regenerate", action="store_true", help="Ask the coach for a new nutrition plan")

    meal_parser = subparsers.add_parser("meal", help="Log a meal described in free text")
    meal_parser.add_argument("food_log", help='What you ate, e.g. "two eggs and toast"')

    coach_parser = subparsers.add_parser("coach", help="Ask the coach a question")
    coach_parser.add_argument("question", nargs="?")
    coach_parser.add_argument("--check", action="store_true", help="Check that the AI service is reachable")

    subparsers.add_parser("status", help="Show provider connection status")
    subparsers.add_parser("migrate", help="Create or upgrade the database tables")
    subparsers.add_parser("help", help="Show a longer usage guide")

    args = parser.parse_args()

    if args.command == "connect":
        from trailcoach.commands.connect import run

        run(args.provider)
    elif args.command == "callback":
        from trailcoach.commands.callback import run

        run(args.url)
    elif args.command == "disconnect":
        from trailcoach.commands.disconnect import run

        run(args.provider)
    elif args.command == "sync":
        from trailcoach.commands.sync import run

        run()
    elif args.command == "plan":
        from trailcoach.commands.plan import run

        run(regenerate=args.regenerate)
    elif args.command == "adherence":
        from trailcoach.commands.adherence import run

        run()
    elif args.command == "profile":
        from trailcoach.commands.profile import run

        run(
            name=args.name,
            race_distance=args.race_distance,
            race_date=args.race_date,
            level=args.level,
            weekly_hours=args.weekly_hours,
            goals=args.goals,
        )
    elif args.command == "nutrition":
        from trailcoach.commands.nutrition import run

        run(show_plan=args.plan, regenerate=args.regenerate)
    elif args.command == "meal":
        from trailcoach.commands.meal import run

        run(args.food_log)
    elif args.command == "coach":
        from trailcoach.commands.coach import run

        run(args.question, check=args.check)
    elif args.command == "status":
        from trailcoach.commands.status import run

        run()
    elif args.command == "migrate":
        from trailcoach.commands.migrate import run

        run()
    elif args.command == "help" or args.command is None:
        print(
            """
trailcoach - Sync your trail runs and follow a weekly training plan.

Usage:
    python -m trailcoach <command>

Commands:
    connect       Print the authorization URL for strava or garmin
    callback      Complete an OAuth redirect (paste the URL you were sent to)
    disconnect    Forget the tokens of one provider
    sync          Fetch the last 30 days of activities from every provider
    plan          Show this week's plan (--regenerate asks the coach for a new one)
    adherence     Compare this week's plan with what you actually ran
    profile       Show or update your race (--race-date, --race-distance, --level, ...)
    nutrition     Show today's meals and macros (--plan for the nutrition plan)
    meal          Log a meal: python -m trailcoach meal "oatmeal with berries"
    coach         Ask the coach a question (--check tests the AI connection)
    status        Show provider connection status
    migrate       Bootstrap / migrate the database schema
    help          Show this help and usage documentation

Setup:
    1. Put provider credentials in .env (STRAVA_CLIENT_ID, GARMIN_CLIENT_ID, ...)
    2. Set your race with 'python -m trailcoach profile --race-date YYYY-MM-DD'.
    3. Run 'python -m trailcoach connect strava' and open the printed URL.
    4. Run 'python -m trailcoach callback "<redirect url>"' with the URL you land on.
    5. Use 'python -m trailcoach sync' and 'python -m trailcoach adherence'.
"""
        )
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
