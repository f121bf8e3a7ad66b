"""Catalog schema migrations.

- v1→v2: Add ``note`` column and status index
"""

import sqlite3


def migrate_v1_to_v2(conn: sqlite3.Connection) -> None:
    """Migrate the catalog from schema version 1 to version 2.

    Adds the ``note`` column used for dry-run and skip/failure reasons, and
    an index on ``status`` for the work-set query.

    This migration is idempotent - safe to run multiple times.

    Args:
        conn: An open database connection.
    """
    cursor = conn.execute("PRAGMA table_info(videos)")
    columns = {row[1] for row in cursor.fetchall()}
    if "note" not in columns:
        conn.execute("ALTER TABLE videos ADD COLUMN note TEXT")

    conn.execute("CREATE INDEX IF NOT EXISTS idx_videos_status ON videos(status)")
    conn.execute("UPDATE _meta SET value = '2' WHERE key = 'schema_version'")
    conn.commit()
