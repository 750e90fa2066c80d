"""Print a provider's authorization URL."""

from trailcoach.core import Trailcoach
from trailcoach.exceptions import ConfigurationError
from trailcoach.provider_status import Provider


def run(provider_name: str) -> None:
    provider = Provider.parse(provider_name)
    with Trailcoach() as tc:
        try:
            url = tc.oauth.begin(provider)
        except ConfigurationError as e:
            print(f"❌ {e}")
            return
        print(f"Open this URL to connect {provider.display_name}:\n\n    {url}\n")
        print("Then run: python -m trailcoach callback '<the URL you were redirected to>'")
