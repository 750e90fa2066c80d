"""Ask the coach a question, or check that the AI service is reachable."""

from trailcoach.core import Trailcoach


def run(question: str | None = None, check: bool = False) -> None:
    if not check and not question:
        print('Ask a question, e.g. python -m trailcoach coach "How should I taper?"')
        return

    with Trailcoach() as tc:
        if check:
            status = tc.coach.check_connection()
            if status["status"] == "valid":
                print("✅ AI coach is reachable.")
            else:
                print(f"❌ {status['message']}")
            return
        print(tc.ask_coach(question))
