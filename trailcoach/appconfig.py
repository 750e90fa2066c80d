"""Persistent application settings.

Settings are stored one top-level key per row in the ``appconfig`` table,
and that table is authoritative. A ``trailcoach_config.json`` next to the
process still wins when present: every ``load_config()`` copies changed file
keys into the table. With neither, the built-in defaults are written.

Provider credentials normally come from the environment (both entry points
load ``.env``). ``provider_settings()`` lays those variables over the stored
values, so secrets never need to reach the table.
"""

import copy
import datetime
import json
import logging
import os
from pathlib import Path
from typing import Any

import pytz
from peewee import CharField, Model, TextField

from .db import db, get_db
from .exceptions import ConfigurationError
from .provider_status import Provider

log = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "home_timezone": "UTC",
    "debug": False,
    "relay_url": "http://localhost:5000",
    "ai_base_url": "http://localhost:5000",
    "sync_window_days": 30,
    "http_timeout": 30,
    "providers": {
        "strava": {
            "client_id": "",
            "redirect_uri": "",
            "scope": "read,activity:read_all",
        },
        "garmin": {
            "client_id": "",
            "client_secret": "",
            "redirect_uri": "",
            "scope": "activities",
            "auth_url": "",
            "token_url": "",
            "api_base": "",
        },
    },
}

# first existing file wins
_FILE_PATHS: list[Path] = [
    Path("trailcoach_config.json"),
    Path("../trailcoach_config.json"),
]

_PROVIDER_ENV: dict[str, tuple[str, str]] = {
    "STRAVA_CLIENT_ID": ("strava", "client_id"),
    "STRAVA_REDIRECT_URI": ("strava", "redirect_uri"),
    "STRAVA_SCOPE": ("strava", "scope"),
    "GARMIN_CLIENT_ID": ("garmin", "client_id"),
    "GARMIN_CLIENT_SECRET": ("garmin", "client_secret"),
    "GARMIN_REDIRECT_URI": ("garmin", "redirect_uri"),
    "GARMIN_SCOPE": ("garmin", "scope"),
    "GARMIN_AUTH_URL": ("garmin", "auth_url"),
    "GARMIN_TOKEN_URL": ("garmin", "token_url"),
    "GARMIN_API_BASE": ("garmin", "api_base"),
}

_GLOBAL_ENV: dict[str, str] = {
    "TRAILCOACH_RELAY_URL": "relay_url",
    "TRAILCOACH_AI_URL": "ai_base_url",
    "TRAILCOACH_TIMEZONE": "home_timezone",
}


class AppConfig(Model):
    """One row per top-level setting; ``value`` holds its JSON encoding."""

    key = CharField(max_length=128, unique=True)
    value = TextField()

    class Meta:
        database = db
        table_name = "appconfig"


def _stored_config() -> dict[str, Any] | None:
    rows = AppConfig.select()
    config = {row.key: json.loads(row.value) for row in rows}
    return config or None


def _file_config() -> dict[str, Any] | None:
    for path in _FILE_PATHS:
        if not path.exists():
            continue
        try:
            return json.loads(path.read_text())
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable config file %s: %s", path, e)
    return None


def load_config() -> dict[str, Any]:
    """Current settings; the table is consulted once the DB is configured."""
    try:
        get_db()
    except RuntimeError:
        # no database yet: read-only view of file or defaults
        return _file_config() or copy.deepcopy(DEFAULT_CONFIG)

    from_file = _file_config()
    stored = _stored_config()

    if stored is None:
        seed = from_file if from_file is not None else copy.deepcopy(DEFAULT_CONFIG)
        save_config(seed)
        return seed
    if from_file is None or from_file == stored:
        return stored

    # keys only the table knows about survive
    merged = {**stored, **from_file}
    save_config(merged)
    return merged


def save_config(config: dict[str, Any]) -> None:
    """Upsert each top-level key of *config*."""
    for key, value in config.items():
        encoded = json.dumps(value)
        AppConfig.insert(key=key, value=encoded).on_conflict(
            conflict_target=[AppConfig.key], update={AppConfig.value: encoded}
        ).execute()


def setting(config: dict[str, Any], key: str) -> Any:
    """Top-level setting with environment override and built-in default."""
    for env_name, name in _GLOBAL_ENV.items():
        if name == key and os.environ.get(env_name, "").strip():
            return os.environ[env_name].strip()
    if key in config:
        return config[key]
    return DEFAULT_CONFIG.get(key)


def provider_settings(config: dict[str, Any], provider: Provider) -> dict[str, Any]:
    """Merged settings for one provider: defaults < stored config < environment."""
    name = provider.value
    merged = dict(DEFAULT_CONFIG["providers"].get(name, {}))
    merged.update(config.get("providers", {}).get(name, {}) or {})
    for env_name, (env_provider, key) in _PROVIDER_ENV.items():
        value = os.environ.get(env_name, "").strip()
        if env_provider == name and value:
            merged[key] = value
    return merged


def require_setting(settings: dict[str, Any], key: str, provider: Provider) -> str:
    """Return a non-empty setting or raise ConfigurationError naming it."""
    value = str(settings.get(key) or "").strip()
    if not value:
        raise ConfigurationError(
            f"{provider.display_name} {key} is not configured.",
            provider=provider.value,
            setting=key,
        )
    return value


def get_current_date(config: dict[str, Any]) -> datetime.date:
    """Get the current date in the configured timezone."""
    try:
        tz = pytz.timezone(setting(config, "home_timezone") or "UTC")
    except pytz.UnknownTimeZoneError:
        tz = pytz.UTC
    return datetime.datetime.now(tz).date()
