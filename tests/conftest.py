import copy
import os

import pytest

from trailcoach.database import get_all_models, migrate_tables
from trailcoach.db import configure_db, get_db
from trailcoach.storage import MemoryRepository
from trailcoach.token_store import TokenStore

_SETTINGS_ENV = [
    "STRAVA_CLIENT_ID",
    "STRAVA_CLIENT_SECRET",
    "STRAVA_REDIRECT_URI",
    "STRAVA_SCOPE",
    "GARMIN_CLIENT_ID",
    "GARMIN_CLIENT_SECRET",
    "GARMIN_REDIRECT_URI",
    "GARMIN_SCOPE",
    "GARMIN_AUTH_URL",
    "GARMIN_TOKEN_URL",
    "GARMIN_API_BASE",
    "TRAILCOACH_RELAY_URL",
    "TRAILCOACH_AI_URL",
    "TRAILCOACH_TIMEZONE",
]

TEST_CONFIG = {
    "home_timezone": "UTC",
    "debug": False,
    "relay_url": "http://relay.test",
    "ai_base_url": "http://ai.test",
    "sync_window_days": 30,
    "http_timeout": 30,
    "providers": {
        "strava": {
            "client_id": "12345",
            "redirect_uri": "https://app.example/strava",
            "scope": "read,activity:read_all",
        },
        "garmin": {
            "client_id": "garmin-client",
            "client_secret": "garmin-secret",
            "redirect_uri": "https://app.example/garmin",
            "scope": "activities",
            "auth_url": "https://garmin.example/oauth/authorize",
            "token_url": "https://garmin.example/oauth/token",
            "api_base": "https://apis.garmin.example",
        },
    },
}


@pytest.fixture(autouse=True)
def clean_settings_env(monkeypatch):
    """Keep a developer's .env from leaking provider settings into tests."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="session", autouse=True)
def test_db():
    test_db_path = "test.sqlite3"
    configure_db(test_db_path)
    db = get_db()
    # Rebind all models to the test DB
    for model in get_all_models():
        model._meta.set_database(db)
    db.connect(reuse_if_open=True)
    migrate_tables(get_all_models())
    yield
    db.close()
    if os.path.exists(test_db_path):
        os.remove(test_db_path)


@pytest.fixture
def config():
    return copy.deepcopy(TEST_CONFIG)


@pytest.fixture
def repository():
    return MemoryRepository()


@pytest.fixture
def token_store(repository):
    return TokenStore(repository)
