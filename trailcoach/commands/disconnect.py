"""Forget one provider's tokens."""

from trailcoach.core import Trailcoach
from trailcoach.provider_status import Provider


def run(provider_name: str) -> None:
    provider = Provider.parse(provider_name)
    with Trailcoach() as tc:
        tc.oauth.disconnect(provider)
    print(f"{provider.display_name} disconnected.")
