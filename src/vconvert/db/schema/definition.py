"""Catalog schema definition for vconvert.

The catalog is a single table keyed by absolute file path plus a ``_meta``
table that records the schema version. Schema changes are additive only:
new columns are added by migrations, existing columns are never dropped or
retyped, so an older catalog can always be reopened by newer code.
"""

import sqlite3

SCHEMA_VERSION = 2

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS _meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

-- One row per video file
CREATE TABLE IF NOT EXISTS videos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    path TEXT UNIQUE NOT NULL,
    container_extension TEXT NOT NULL,
    size_bytes INTEGER,          -- NULL when unknown
    bitrate_kbps INTEGER,        -- NULL when unknown, never negative
    duration_seconds REAL,       -- NULL when unknown, never negative
    width INTEGER,
    height INTEGER,
    codec TEXT,
    frames_per_second REAL,
    modified_at TEXT,            -- ISO 8601 UTC mtime of the source
    last_scanned_at TEXT,        -- ISO 8601 UTC timestamp
    status TEXT NOT NULL DEFAULT 'pending',
    probe_error TEXT,
    note TEXT,
    CONSTRAINT valid_status CHECK (
        status IN ('pending', 'converted', 'skipped', 'failed', 'unprobed')
    ),
    CONSTRAINT non_negative_metrics CHECK (
        (bitrate_kbps IS NULL OR bitrate_kbps >= 0)
        AND (duration_seconds IS NULL OR duration_seconds >= 0)
        AND (width IS NULL OR width >= 0)
        AND (height IS NULL OR height >= 0)
    )
);

CREATE INDEX IF NOT EXISTS idx_videos_extension ON videos(container_extension);
CREATE INDEX IF NOT EXISTS idx_videos_status ON videos(status);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the catalog schema if it doesn't exist.

    Args:
        conn: An open database connection.
    """
    conn.executescript(SCHEMA_SQL)

    conn.execute(
        "INSERT OR IGNORE INTO _meta (key, value) VALUES ('schema_version', ?)",
        (str(SCHEMA_VERSION),),
    )
    # executescript() commits implicitly; the INSERT opens a new transaction
    conn.commit()
