"""Create or upgrade the trailcoach tables.

Idempotent, so containers can run it on every start. Against PostgreSQL the
first attempts may hit a database that is still booting; those are retried
for about a minute before giving up.
"""

import os
import time

from trailcoach.database import get_all_models, migrate_tables
from trailcoach.db import configure_db, get_db_path_from_env

ATTEMPTS = 12
WAIT_SECONDS = 5


def run():
    """Create missing tables and columns."""
    postgres = bool(os.environ.get("DATABASE_URL"))
    print(f"🗄️  Migrating the {'PostgreSQL' if postgres else 'SQLite'} database...")

    configure_db(get_db_path_from_env())
    attempt = 1
    while True:
        try:
            migrate_tables(get_all_models())
        except Exception as e:
            if not postgres or attempt >= ATTEMPTS:
                print(f"❌ Migration failed: {e}")
                raise
            print(f"⏳ Waiting for the database ({attempt}/{ATTEMPTS}): {e}")
            time.sleep(WAIT_SECONDS)
            attempt += 1
        else:
            print("✅ Database is up to date.")
            return
