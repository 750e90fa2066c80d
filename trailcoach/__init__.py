"""This is the init module for trailcoach"""

# Providers
from .providers.garmin.garmin_provider import GarminProvider
from .providers.strava.strava_provider import StravaProvider

__version__ = "0.0.1"
__all__ = [
    "GarminProvider",
    "StravaProvider",
]
