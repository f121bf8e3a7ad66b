"""Catalog connection management for vconvert."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from vconvert.exceptions import CatalogError

logger = logging.getLogger(__name__)

DB_FILENAME = "vconvert.db"


def get_default_db_path() -> Path:
    """Return the default catalog path (<data_dir>/vconvert.db)."""
    from vconvert.config.loader import get_data_dir

    return get_data_dir() / DB_FILENAME


def ensure_db_directory(db_path: Path) -> None:
    """Ensure the database directory exists, creating it if necessary."""
    db_path.parent.mkdir(parents=True, exist_ok=True)


def open_connection(db_path: Path, timeout: float = 30.0) -> sqlite3.Connection:
    """Open a catalog connection with the standard PRAGMAs applied.

    The connection may be shared across threads; callers must serialize
    access (see ``Catalog``).

    Args:
        db_path: Path to the database file.
        timeout: How long to wait for locks (seconds).

    Returns:
        An open sqlite3 Connection with ``sqlite3.Row`` rows.

    Raises:
        CatalogError: If the file cannot be opened or is not a database.
    """
    try:
        ensure_db_directory(db_path)
    except OSError as e:
        raise CatalogError(f"Cannot create catalog directory for {db_path}: {e}") from e

    try:
        conn = sqlite3.connect(str(db_path), timeout=timeout, check_same_thread=False)
    except sqlite3.Error as e:
        raise CatalogError(f"Cannot open catalog {db_path}: {e}") from e

    try:
        # WAL gives readers a consistent view while the single writer commits
        conn.execute("PRAGMA journal_mode = WAL")
        # NORMAL is safe with WAL mode and provides good durability
        conn.execute("PRAGMA synchronous = NORMAL")
        conn.execute("PRAGMA busy_timeout = 10000")
        conn.execute("PRAGMA temp_store = MEMORY")
        # Touch the schema so a corrupt file fails here, not mid-run
        conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
    except sqlite3.DatabaseError as e:
        conn.close()
        raise CatalogError(f"Catalog {db_path} is unreadable or corrupt: {e}") from e

    conn.row_factory = sqlite3.Row
    return conn
