"""Video record queries for the catalog.

These functions take a connection and do NOT commit; ``Catalog`` owns the
transactions and the write lock.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable

from vconvert.db.types import CatalogStats, ExtensionStats
from vconvert.domain import ConversionStatus, VideoRecord

_COLUMNS = (
    "path",
    "container_extension",
    "size_bytes",
    "bitrate_kbps",
    "duration_seconds",
    "width",
    "height",
    "codec",
    "frames_per_second",
    "modified_at",
    "last_scanned_at",
    "status",
    "probe_error",
    "note",
)


def _row_to_video_record(row: sqlite3.Row) -> VideoRecord:
    """Convert a database row to VideoRecord using named columns."""
    return VideoRecord(
        path=row["path"],
        container_extension=row["container_extension"],
        size_bytes=row["size_bytes"],
        bitrate_kbps=row["bitrate_kbps"],
        duration_seconds=row["duration_seconds"],
        width=row["width"],
        height=row["height"],
        codec=row["codec"],
        frames_per_second=row["frames_per_second"],
        modified_at=row["modified_at"],
        last_scanned_at=row["last_scanned_at"],
        status=ConversionStatus(row["status"]),
        probe_error=row["probe_error"],
        note=row["note"],
    )


def upsert_video(
    conn: sqlite3.Connection,
    record: VideoRecord,
    status: ConversionStatus | None = None,
) -> None:
    """Insert or replace a video record, keyed by path.

    Metadata columns are overwritten. The stored status (and its note) is
    kept unless ``status`` is given; a new row gets ``status`` or
    ``record.status``. A successful upsert clears ``probe_error``.

    Args:
        conn: Database connection.
        record: Record to store.
        status: Explicit status to set, or None to preserve the stored one.
    """
    initial_status = (status or record.status).value
    explicit_status = status.value if status is not None else None
    conn.execute(
        f"""
        INSERT INTO videos ({', '.join(_COLUMNS)})
        VALUES ({', '.join('?' for _ in _COLUMNS)})
        ON CONFLICT(path) DO UPDATE SET
            container_extension = excluded.container_extension,
            size_bytes = excluded.size_bytes,
            bitrate_kbps = excluded.bitrate_kbps,
            duration_seconds = excluded.duration_seconds,
            width = excluded.width,
            height = excluded.height,
            codec = excluded.codec,
            frames_per_second = excluded.frames_per_second,
            modified_at = excluded.modified_at,
            last_scanned_at = excluded.last_scanned_at,
            probe_error = NULL,
            status = COALESCE(?, videos.status),
            note = CASE WHEN ? IS NULL THEN videos.note ELSE excluded.note END
        """,  # nosec B608 - column names are module constants
        (
            record.path,
            record.container_extension,
            record.size_bytes,
            record.bitrate_kbps,
            record.duration_seconds,
            record.width,
            record.height,
            record.codec,
            record.frames_per_second,
            record.modified_at,
            record.last_scanned_at,
            initial_status,
            None,
            record.note,
            explicit_status,
            explicit_status,
        ),
    )


def mark_probe_failed(
    conn: sqlite3.Connection,
    path: str,
    container_extension: str,
    error: str,
    scanned_at: str,
    size_bytes: int | None = None,
) -> None:
    """Record a probe failure for a path.

    An existing row keeps its metadata and status; only ``probe_error`` and
    ``last_scanned_at`` change. ``modified_at`` is left alone so the next
    scan probes the file again. A new path is stored as UNPROBED with
    unknown metrics.
    """
    conn.execute(
        """
        INSERT INTO videos (
            path, container_extension, size_bytes, last_scanned_at,
            status, probe_error
        ) VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(path) DO UPDATE SET
            last_scanned_at = excluded.last_scanned_at,
            probe_error = excluded.probe_error
        """,
        (
            path,
            container_extension,
            size_bytes,
            scanned_at,
            ConversionStatus.UNPROBED.value,
            error,
        ),
    )


def get_video(conn: sqlite3.Connection, path: str) -> VideoRecord | None:
    """Get a video record by path."""
    row = conn.execute("SELECT * FROM videos WHERE path = ?", (path,)).fetchone()
    return _row_to_video_record(row) if row else None


def get_videos(
    conn: sqlite3.Connection,
    *,
    statuses: Iterable[ConversionStatus] | None = None,
    extensions: Iterable[str] | None = None,
) -> list[VideoRecord]:
    """Get video records, optionally restricted by status and extension.

    Args:
        conn: Database connection.
        statuses: Allowed statuses, or None for all.
        extensions: Allowed container extensions, or None/empty for all.

    Returns:
        Matching records ordered by path.
    """
    clauses: list[str] = []
    params: list[str] = []
    if statuses is not None:
        values = [s.value for s in statuses]
        if not values:
            return []
        clauses.append(f"status IN ({', '.join('?' for _ in values)})")
        params.extend(values)
    ext_values = sorted(extensions) if extensions else []
    if ext_values:
        clauses.append(
            f"lower(container_extension) IN ({', '.join('?' for _ in ext_values)})"
        )
        params.extend(ext_values)

    sql = "SELECT * FROM videos"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY path"
    rows = conn.execute(sql, params).fetchall()  # nosec B608 - placeholders only
    return [_row_to_video_record(row) for row in rows]


def update_video_status(
    conn: sqlite3.Connection,
    path: str,
    status: ConversionStatus,
    note: str | None = None,
) -> bool:
    """Set the status and note of one record.

    Returns:
        True if a row was updated, False if the path is unknown.
    """
    cursor = conn.execute(
        "UPDATE videos SET status = ?, note = ? WHERE path = ?",
        (status.value, note, path),
    )
    return cursor.rowcount > 0


def update_video_note(conn: sqlite3.Connection, path: str, note: str | None) -> bool:
    """Set the informational note of one record without touching its status."""
    cursor = conn.execute("UPDATE videos SET note = ? WHERE path = ?", (note, path))
    return cursor.rowcount > 0


def delete_video(conn: sqlite3.Connection, path: str) -> bool:
    """Delete one record by path."""
    cursor = conn.execute("DELETE FROM videos WHERE path = ?", (path,))
    return cursor.rowcount > 0


def delete_all_videos(conn: sqlite3.Connection) -> int:
    """Delete every record and return how many were removed."""
    cursor = conn.execute("DELETE FROM videos")
    return cursor.rowcount


def get_catalog_stats(conn: sqlite3.Connection) -> CatalogStats:
    """Compute aggregate counts and sizes over the catalog."""
    total_row = conn.execute(
        "SELECT COUNT(*) AS n, COALESCE(SUM(size_bytes), 0) AS size FROM videos"
    ).fetchone()

    ext_rows = conn.execute(
        """
        SELECT lower(container_extension) AS extension,
               COUNT(*) AS n,
               COALESCE(SUM(size_bytes), 0) AS size
        FROM videos
        GROUP BY lower(container_extension)
        ORDER BY n DESC, extension
        """
    ).fetchall()

    status_rows = conn.execute(
        "SELECT status, COUNT(*) AS n FROM videos GROUP BY status ORDER BY status"
    ).fetchall()

    return CatalogStats(
        total_records=total_row["n"],
        total_size_bytes=total_row["size"],
        by_extension=[
            ExtensionStats(
                extension=row["extension"], count=row["n"], size_bytes=row["size"]
            )
            for row in ext_rows
        ],
        by_status={row["status"]: row["n"] for row in status_rows},
    )
