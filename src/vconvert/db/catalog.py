"""The persistent video catalog.

``Catalog`` owns the single connection to the catalog file. Every operation
takes one ``threading.Lock``, so probe workers running on a thread pool can
hand results to the catalog without ever writing concurrently. Writes run
inside ``BEGIN IMMEDIATE`` transactions and are committed before the lock is
released.

Any sqlite error is surfaced as ``CatalogError``; there is no partial-catalog
mode.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from functools import wraps
from pathlib import Path
from typing import TypeVar

from vconvert.db import queries
from vconvert.db.connection import get_default_db_path, open_connection
from vconvert.db.schema import initialize_database
from vconvert.db.types import CatalogStats
from vconvert.domain import (
    ConversionStatus,
    FilterSpec,
    SortKey,
    VideoRecord,
)
from vconvert.exceptions import CatalogError
from vconvert.selection import select_records

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _wrap_sqlite_errors(func: Callable[..., T]) -> Callable[..., T]:
    """Decorator converting sqlite3.Error into CatalogError."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except sqlite3.Error as e:
            raise CatalogError(f"Catalog operation {func.__name__} failed: {e}") from e

    return wrapper


class Catalog:
    """Durable store of VideoRecords keyed by absolute path.

    Usage:
        with Catalog.open(path) as catalog:
            catalog.upsert(record)
            work = catalog.query(FilterSpec(min_bitrate=8000), SortKey())
    """

    def __init__(self, conn: sqlite3.Connection, db_path: Path | None = None) -> None:
        """Wrap an open connection. Prefer ``Catalog.open``.

        Args:
            conn: Connection with ``sqlite3.Row`` rows and schema initialized.
            db_path: Path of the store, for diagnostics.
        """
        self._conn = conn
        self._lock = threading.Lock()
        self._closed = False
        self.db_path = db_path

    @classmethod
    def open(cls, db_path: Path | None = None) -> Catalog:
        """Open (creating if needed) the catalog at ``db_path``.

        Args:
            db_path: Catalog file. Defaults to ``<data_dir>/vconvert.db``.

        Returns:
            Ready-to-use Catalog.

        Raises:
            CatalogError: If the file is unreadable, corrupt or too new.
        """
        if db_path is None:
            db_path = get_default_db_path()
        conn = open_connection(db_path)
        try:
            initialize_database(conn)
        except sqlite3.DatabaseError as e:
            conn.close()
            raise CatalogError(f"Catalog {db_path} is unreadable: {e}") from e
        except CatalogError:
            conn.close()
            raise
        logger.debug("Opened catalog %s", db_path)
        return cls(conn, db_path)

    def close(self) -> None:
        """Close the underlying connection. Safe to call twice."""
        with self._lock:
            if not self._closed:
                self._conn.close()
                self._closed = True

    def __enter__(self) -> Catalog:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def _read(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            if self._closed:
                raise CatalogError("Catalog is closed")
            yield self._conn

    @contextmanager
    def _write(self) -> Iterator[sqlite3.Connection]:
        """Hold the write lock for one committed transaction."""
        with self._lock:
            if self._closed:
                raise CatalogError("Catalog is closed")
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                yield self._conn
            except BaseException:
                self._conn.rollback()
                raise
            else:
                self._conn.commit()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @_wrap_sqlite_errors
    def upsert(
        self, record: VideoRecord, status: ConversionStatus | None = None
    ) -> None:
        """Insert or replace the record for ``record.path``.

        The stored status is preserved unless ``status`` is supplied.
        """
        with self._write() as conn:
            queries.upsert_video(conn, record, status)

    @_wrap_sqlite_errors
    def mark_probe_failed(
        self,
        path: Path,
        error: str,
        scanned_at: str,
        size_bytes: int | None = None,
    ) -> None:
        """Record that ``path`` could not be probed.

        Existing records keep their metadata and status. New paths are stored
        as UNPROBED with unknown metrics.
        """
        with self._write() as conn:
            queries.mark_probe_failed(
                conn,
                str(path),
                path.suffix.lower().lstrip("."),
                error,
                scanned_at,
                size_bytes,
            )

    @_wrap_sqlite_errors
    def update_status(
        self, path: str, status: ConversionStatus, note: str | None = None
    ) -> None:
        """Atomically set the status (and note) of one record.

        Raises:
            CatalogError: If no record exists for ``path``.
        """
        with self._write() as conn:
            if not queries.update_video_status(conn, path, status, note):
                raise CatalogError(f"No catalog record for {path}")

    @_wrap_sqlite_errors
    def set_note(self, path: str, note: str | None) -> None:
        """Set the informational note of a record, leaving its status alone."""
        with self._write() as conn:
            queries.update_video_note(conn, path, note)

    @_wrap_sqlite_errors
    def remove(self, path: str) -> bool:
        """Remove one record. Returns False if it did not exist."""
        with self._write() as conn:
            return queries.delete_video(conn, path)

    @_wrap_sqlite_errors
    def remove_missing(self) -> int:
        """Remove records whose source file no longer exists.

        CONVERTED records are kept; their sources are expected to be gone.

        Returns:
            Number of records removed.
        """
        prunable = [s for s in ConversionStatus if s is not ConversionStatus.CONVERTED]
        with self._write() as conn:
            candidates = queries.get_videos(conn, statuses=prunable)
            removed = 0
            for record in candidates:
                if not Path(record.path).exists():
                    queries.delete_video(conn, record.path)
                    removed += 1
        if removed:
            logger.info("Removed %d missing file(s) from the catalog", removed)
        return removed

    @_wrap_sqlite_errors
    def clear(self) -> int:
        """Remove every record. Irreversible.

        Returns:
            Number of records removed.
        """
        with self._write() as conn:
            count = conn.execute("SELECT COUNT(*) FROM videos").fetchone()[0]
            queries.delete_all_videos(conn)
        logger.info("Cleared %d record(s) from the catalog", count)
        return count

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @_wrap_sqlite_errors
    def get(self, path: str) -> VideoRecord | None:
        """Return the record for ``path``, or None."""
        with self._read() as conn:
            return queries.get_video(conn, path)

    @_wrap_sqlite_errors
    def all(self) -> list[VideoRecord]:
        """Return every record ordered by path."""
        with self._read() as conn:
            return queries.get_videos(conn)

    @_wrap_sqlite_errors
    def query(
        self,
        filter_spec: FilterSpec,
        sort_key: SortKey,
        limit: int | None = None,
        *,
        statuses: Iterable[ConversionStatus] | None = None,
        paths: Iterable[str] | None = None,
    ) -> list[VideoRecord]:
        """Return records matching a filter, sorted and truncated.

        Args:
            filter_spec: Conjunction of bounds; extensions are OR-ed.
            sort_key: Result order; ties broken by path.
            limit: Optional cap applied after sorting (with max_count).
            statuses: Restrict to these statuses, or None for all.
            paths: Restrict to these paths, or None for all.

        Returns:
            The selected records.
        """
        with self._read() as conn:
            candidates = queries.get_videos(
                conn, statuses=statuses, extensions=filter_spec.extensions
            )
        if paths is not None:
            wanted = set(paths)
            candidates = [r for r in candidates if r.path in wanted]
        return select_records(candidates, filter_spec, sort_key, limit)

    @_wrap_sqlite_errors
    def stats(self) -> CatalogStats:
        """Return per-extension counts, per-status counts and total size."""
        with self._read() as conn:
            return queries.get_catalog_stats(conn)
