"""Table creation and in-place schema upgrades for the trailcoach models."""

import contextlib

from peewee import Model, SqliteDatabase

from .appconfig import AppConfig
from .db import get_db
from .storage import StoredState

# (table, column, SQL type) added after the table was first released
_ADDED_COLUMNS: list[tuple[str, str, str]] = [
    ("stored_state", "updated_at", "INTEGER"),
]


def get_all_models() -> list[type[Model]]:
    return [AppConfig, StoredState]


def migrate_tables(models: list[type[Model]]) -> None:
    """Create missing tables, then add any columns older databases lack."""
    database = get_db()
    database.connect(reuse_if_open=True)
    database.create_tables(models, safe=True)
    _upgrade_columns(database)
    database.close()


def _column_names(database, table: str) -> set[str]:
    cursor = database.execute_sql(f'PRAGMA table_info("{table}")')
    return {row[1] for row in cursor.fetchall()}


def _upgrade_columns(database) -> None:
    sqlite = isinstance(database.obj, SqliteDatabase)
    for table, column, sql_type in _ADDED_COLUMNS:
        if sqlite:
            if column in _column_names(database, table):
                continue
            statement = f'ALTER TABLE "{table}" ADD COLUMN "{column}" {sql_type}'
        else:
            statement = f'ALTER TABLE "{table}" ADD COLUMN IF NOT EXISTS "{column}" {sql_type}'
        # a concurrent worker may have added it first
        with contextlib.suppress(Exception):
            database.execute_sql(statement)
