"""Complete an OAuth redirect pasted by the user."""

from trailcoach.core import Trailcoach
from trailcoach.oauth import callback_params


def run(url: str) -> None:
    params = callback_params(url)
    with Trailcoach() as tc:
        result = tc.oauth.complete(params)
    if result.connected:
        print(f"✅ {result.provider.display_name} connected.")
    elif result.error:
        print(f"❌ {result.error}")
    else:
        print("No authorization code or error found in that URL.")
