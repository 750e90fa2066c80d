"""Lazy database setup and the shared Trailcoach instance for the web app."""

import logging
from typing import Any

log = logging.getLogger(__name__)

_db_ready = False
_trailcoach = None


def _init_db() -> bool:
    """Configure and migrate the database on first use.

    ``DATABASE_URL`` selects PostgreSQL; otherwise SQLite at ``TRAILCOACH_DB``
    (default ``trailcoach.sqlite3``).
    """
    global _db_ready
    if _db_ready:
        return True
    from trailcoach.database import get_all_models, migrate_tables
    from trailcoach.db import configure_db, get_db_path_from_env

    try:
        configure_db(get_db_path_from_env())
        migrate_tables(get_all_models())
    except Exception:
        log.exception("Database initialisation failed")
        return False
    _db_ready = True
    return True


def load_trailcoach_config() -> dict[str, Any]:
    """Settings from the DB, a config file, or the built-in defaults."""
    _init_db()
    from trailcoach.appconfig import load_config

    return load_config()


def get_trailcoach():
    """The process-wide Trailcoach instance.

    Integration state (connected / syncing / last error) and the merged
    activity list live on this object for the lifetime of the process.
    """
    global _trailcoach
    if _trailcoach is None:
        from trailcoach.core import Trailcoach
        from trailcoach.storage import DatabaseRepository

        config = load_trailcoach_config()
        _trailcoach = Trailcoach(repository=DatabaseRepository(), config=config)
    return _trailcoach


def set_trailcoach(instance) -> None:
    """Replace (or with None, drop) the shared instance."""
    global _trailcoach
    _trailcoach = instance
