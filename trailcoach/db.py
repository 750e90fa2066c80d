import os

from peewee import Proxy, SqliteDatabase

DEFAULT_DB_PATH = "trailcoach.sqlite3"

# Models bind to this proxy; the real backend is chosen at runtime.
db = Proxy()

_configured = False


def configure_db(db_path: str = DEFAULT_DB_PATH):
    """Bind the proxy to a backend, once per process.

    ``DATABASE_URL`` (PostgreSQL in production) wins over *db_path*, which
    names a local SQLite file.
    """
    global _configured
    if _configured:
        return db

    url = os.environ.get("DATABASE_URL")
    if url:
        # needs psycopg2-binary, from the [production] extra
        from playhouse.db_url import connect

        backend = connect(url)
    else:
        backend = SqliteDatabase(db_path, pragmas={"journal_mode": "wal"})
    db.initialize(backend)
    _configured = True
    return db


def get_db():
    """The configured database; RuntimeError until ``configure_db`` ran."""
    if not _configured:
        raise RuntimeError("trailcoach database is not configured; call configure_db() first")
    return db


def get_db_path_from_env() -> str:
    """SQLite path from ``TRAILCOACH_DB``, else ``trailcoach.sqlite3`` in the cwd."""
    return os.environ.get("TRAILCOACH_DB", DEFAULT_DB_PATH)
