"""Unit tests for the catalog store."""

import sqlite3
from pathlib import Path

import pytest

from vconvert.db import Catalog
from vconvert.db.schema import SCHEMA_VERSION, get_schema_version
from vconvert.domain import ConversionStatus, FilterSpec, SortKey
from vconvert.exceptions import CatalogError


class TestUpsert:
    """Tests for Catalog.upsert."""

    def test_insert_then_get(self, catalog, record_factory):
        record = record_factory("/v/a.mkv")
        catalog.upsert(record)

        stored = catalog.get("/v/a.mkv")
        assert stored == record

    def test_idempotent(self, catalog, record_factory):
        record = record_factory("/v/a.mkv")
        catalog.upsert(record)
        catalog.upsert(record)

        assert len(catalog.all()) == 1
        assert catalog.get("/v/a.mkv") == record

    def test_metadata_overwritten(self, catalog, record_factory):
        catalog.upsert(record_factory("/v/a.mkv", bitrate_kbps=1000))
        catalog.upsert(record_factory("/v/a.mkv", bitrate_kbps=2000))

        assert catalog.get("/v/a.mkv").bitrate_kbps == 2000

    def test_status_preserved_without_explicit_status(self, catalog, record_factory):
        catalog.upsert(record_factory("/v/a.mkv"))
        catalog.update_status("/v/a.mkv", ConversionStatus.SKIPPED, "hevc already")

        catalog.upsert(record_factory("/v/a.mkv", bitrate_kbps=1))

        stored = catalog.get("/v/a.mkv")
        assert stored.status == ConversionStatus.SKIPPED
        assert stored.note == "hevc already"
        assert stored.bitrate_kbps == 1

    def test_explicit_status_replaces_stored(self, catalog, record_factory):
        catalog.upsert(record_factory("/v/a.mkv"))
        catalog.update_status("/v/a.mkv", ConversionStatus.FAILED, "boom")

        catalog.upsert(record_factory("/v/a.mkv"), status=ConversionStatus.PENDING)

        stored = catalog.get("/v/a.mkv")
        assert stored.status == ConversionStatus.PENDING
        assert stored.note is None

    def test_clears_probe_error(self, catalog, record_factory):
        catalog.mark_probe_failed(Path("/v/a.mkv"), "bad header", "now")
        catalog.upsert(record_factory("/v/a.mkv"))

        assert catalog.get("/v/a.mkv").probe_error is None

    def test_unknown_metrics_round_trip(self, catalog, record_factory):
        record = record_factory(
            "/v/a.mkv", bitrate_kbps=None, duration_seconds=None, width=None
        )
        catalog.upsert(record)

        stored = catalog.get("/v/a.mkv")
        assert stored.bitrate_kbps is None
        assert stored.duration_seconds is None
        assert stored.width is None


class TestMarkProbeFailed:
    """Tests for Catalog.mark_probe_failed."""

    def test_new_path_stored_as_unprobed(self, catalog):
        catalog.mark_probe_failed(
            Path("/v/Broken.MKV"), "moov atom not found", "now", size_bytes=42
        )

        stored = catalog.get("/v/Broken.MKV")
        assert stored.status == ConversionStatus.UNPROBED
        assert stored.container_extension == "mkv"
        assert stored.size_bytes == 42
        assert stored.bitrate_kbps is None
        assert stored.codec is None
        assert stored.probe_error == "moov atom not found"

    def test_existing_record_keeps_metadata(self, catalog, record_factory):
        catalog.upsert(record_factory("/v/a.mkv", bitrate_kbps=9000))
        catalog.mark_probe_failed(Path("/v/a.mkv"), "timeout", "later")

        stored = catalog.get("/v/a.mkv")
        assert stored.status == ConversionStatus.PENDING
        assert stored.bitrate_kbps == 9000
        assert stored.probe_error == "timeout"
        assert stored.last_scanned_at == "later"
        assert stored.modified_at == "2024-01-01T00:00:00+00:00"


class TestStatusUpdates:
    """Tests for update_status and set_note."""

    def test_update_status(self, catalog, record_factory):
        catalog.upsert(record_factory("/v/a.mkv"))
        catalog.update_status("/v/a.mkv", ConversionStatus.CONVERTED, "done")

        stored = catalog.get("/v/a.mkv")
        assert stored.status == ConversionStatus.CONVERTED
        assert stored.note == "done"

    def test_unknown_path_raises(self, catalog):
        with pytest.raises(CatalogError, match="No catalog record"):
            catalog.update_status("/v/missing.mkv", ConversionStatus.FAILED)

    def test_set_note_keeps_status(self, catalog, record_factory):
        catalog.upsert(record_factory("/v/a.mkv"))
        catalog.set_note("/v/a.mkv", "would transcode")

        stored = catalog.get("/v/a.mkv")
        assert stored.status == ConversionStatus.PENDING
        assert stored.note == "would transcode"


class TestRemoval:
    """Tests for remove, remove_missing and clear."""

    def test_remove(self, catalog, record_factory):
        catalog.upsert(record_factory("/v/a.mkv"))
        assert catalog.remove("/v/a.mkv") is True
        assert catalog.remove("/v/a.mkv") is False

    def test_remove_missing_keeps_existing_and_converted(
        self, catalog, record_factory, temp_dir
    ):
        present = temp_dir / "present.mkv"
        present.write_bytes(b"x")
        catalog.upsert(record_factory(present))
        catalog.upsert(record_factory(temp_dir / "gone.mkv"))
        catalog.upsert(
            record_factory(temp_dir / "done.mkv"),
            status=ConversionStatus.CONVERTED,
        )

        removed = catalog.remove_missing()

        assert removed == 1
        assert catalog.get(str(present)) is not None
        assert catalog.get(str(temp_dir / "gone.mkv")) is None
        assert catalog.get(str(temp_dir / "done.mkv")) is not None

    def test_clear_returns_count(self, catalog, record_factory):
        for name in ("a", "b", "c"):
            catalog.upsert(record_factory(f"/v/{name}.mkv"))

        assert catalog.clear() == 3
        assert catalog.all() == []
        assert catalog.clear() == 0


class TestQuery:
    """Tests for Catalog.query."""

    @pytest.fixture
    def populated(self, catalog, record_factory):
        catalog.upsert(record_factory("/v/a.mkv", bitrate_kbps=12000))
        catalog.upsert(record_factory("/v/b.avi", bitrate_kbps=7999))
        catalog.upsert(record_factory("/v/c.mkv", bitrate_kbps=8000))
        catalog.upsert(
            record_factory("/v/d.mkv", bitrate_kbps=20000),
            status=ConversionStatus.CONVERTED,
        )
        return catalog

    def test_filter_and_sort(self, populated):
        result = populated.query(
            FilterSpec(min_bitrate=8000),
            SortKey.parse("bitrate"),
            statuses=[ConversionStatus.PENDING],
        )
        assert [r.path for r in result] == ["/v/a.mkv", "/v/c.mkv"]

    def test_extension_filter(self, populated):
        result = populated.query(FilterSpec(extensions=frozenset({"avi"})), SortKey())
        assert [r.path for r in result] == ["/v/b.avi"]

    def test_paths_restriction(self, populated):
        result = populated.query(FilterSpec(), SortKey(), paths=["/v/c.mkv"])
        assert [r.path for r in result] == ["/v/c.mkv"]

    def test_limit(self, populated):
        result = populated.query(FilterSpec(), SortKey.parse("bitrate"), limit=1)
        assert [r.path for r in result] == ["/v/d.mkv"]


class TestStats:
    """Tests for Catalog.stats."""

    def test_empty(self, catalog):
        stats = catalog.stats()
        assert stats.total_records == 0
        assert stats.by_extension == []
        assert stats.by_status == {}

    def test_aggregates(self, catalog, record_factory):
        catalog.upsert(record_factory("/v/a.mkv", size_bytes=100))
        catalog.upsert(record_factory("/v/b.mkv", size_bytes=200))
        catalog.upsert(record_factory("/v/c.avi", size_bytes=50))
        catalog.update_status("/v/c.avi", ConversionStatus.FAILED)

        stats = catalog.stats()

        assert stats.total_records == 3
        assert stats.total_size_bytes == 350
        assert [(e.extension, e.count) for e in stats.by_extension] == [
            ("mkv", 2),
            ("avi", 1),
        ]
        assert stats.by_extension[0].size_bytes == 300
        assert stats.by_status == {"failed": 1, "pending": 2}


class TestOpen:
    """Tests for opening, corruption and schema versions."""

    def test_persists_across_reopen(self, temp_db, record_factory):
        with Catalog.open(temp_db) as cat:
            cat.upsert(record_factory("/v/a.mkv"))
        with Catalog.open(temp_db) as cat:
            assert cat.get("/v/a.mkv") is not None

    def test_closed_catalog_raises(self, temp_db):
        cat = Catalog.open(temp_db)
        cat.close()
        with pytest.raises(CatalogError, match="closed"):
            cat.all()

    def test_corrupt_file_raises(self, temp_db):
        temp_db.write_bytes(b"this is not a sqlite database" * 100)
        with pytest.raises(CatalogError):
            Catalog.open(temp_db)

    def test_newer_schema_refused(self, temp_db):
        conn = sqlite3.connect(str(temp_db))
        conn.execute("CREATE TABLE _meta (key TEXT PRIMARY KEY, value TEXT)")
        conn.execute(
            "INSERT INTO _meta VALUES ('schema_version', ?)",
            (str(SCHEMA_VERSION + 1),),
        )
        conn.commit()
        conn.close()

        with pytest.raises(CatalogError, match="newer than supported"):
            Catalog.open(temp_db)

    def test_migrates_v1_catalog(self, temp_db):
        conn = sqlite3.connect(str(temp_db))
        conn.executescript(
            """
            CREATE TABLE _meta (key TEXT PRIMARY KEY, value TEXT NOT NULL);
            INSERT INTO _meta VALUES ('schema_version', '1');
            CREATE TABLE videos (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                path TEXT UNIQUE NOT NULL,
                container_extension TEXT NOT NULL,
                size_bytes INTEGER,
                bitrate_kbps INTEGER,
                duration_seconds REAL,
                width INTEGER,
                height INTEGER,
                codec TEXT,
                frames_per_second REAL,
                modified_at TEXT,
                last_scanned_at TEXT,
                status TEXT NOT NULL DEFAULT 'pending',
                probe_error TEXT
            );
            INSERT INTO videos (path, container_extension, codec)
            VALUES ('/v/old.mkv', 'mkv', 'h264');
            """
        )
        conn.commit()
        conn.close()

        with Catalog.open(temp_db) as cat:
            stored = cat.get("/v/old.mkv")
            assert stored.codec == "h264"
            assert stored.note is None
            cat.set_note("/v/old.mkv", "migrated")
            assert cat.get("/v/old.mkv").note == "migrated"

        conn = sqlite3.connect(str(temp_db))
        try:
            assert get_schema_version(conn) == SCHEMA_VERSION
        finally:
            conn.close()
