"""Unit tests for domain models."""

from pathlib import Path

import pytest

from vconvert.domain import (
    ConversionStatus,
    FilterSpec,
    ProbeResult,
    SortDirection,
    SortField,
    SortKey,
    VideoRecord,
)


class TestVideoRecord:
    """Tests for VideoRecord derived values."""

    def test_pixels(self, record_factory):
        record = record_factory("/v/a.mkv", width=1280, height=720)
        assert record.pixels == 1280 * 720

    def test_pixels_unknown_when_dimension_missing(self, record_factory):
        assert record_factory("/v/a.mkv", width=None).pixels is None

    def test_impact(self, record_factory):
        record = record_factory(
            "/v/a.mkv", bitrate_kbps=4800, frames_per_second=24.0, duration_seconds=10
        )
        assert record.impact == pytest.approx(2000.0)

    def test_impact_unknown_without_frame_rate(self, record_factory):
        assert record_factory("/v/a.mkv", frames_per_second=None).impact is None
        assert record_factory("/v/a.mkv", frames_per_second=0.0).impact is None

    def test_name(self, record_factory):
        assert record_factory("/v/dir/a.mkv").name == "a.mkv"

    def test_with_status_returns_copy(self, record_factory):
        record = record_factory("/v/a.mkv")
        updated = record.with_status(ConversionStatus.FAILED, "boom")

        assert updated.status == ConversionStatus.FAILED
        assert updated.note == "boom"
        assert record.status == ConversionStatus.PENDING

    def test_from_probe(self):
        result = ProbeResult(
            path=Path("/v/a.mkv"),
            codec="h264",
            container_extension="mkv",
            size_bytes=100,
            bitrate_kbps=5000,
            duration_seconds=12.5,
            width=640,
            height=480,
            frames_per_second=25.0,
        )
        record = VideoRecord.from_probe(
            result, modified_at="2024-01-01T00:00:00+00:00", scanned_at="now"
        )

        assert record.path == "/v/a.mkv"
        assert record.codec == "h264"
        assert record.bitrate_kbps == 5000
        assert record.status == ConversionStatus.PENDING
        assert record.modified_at == "2024-01-01T00:00:00+00:00"
        assert record.last_scanned_at == "now"


class TestFilterSpec:
    """Tests for FilterSpec normalization."""

    def test_extensions_normalized(self):
        spec = FilterSpec(extensions=frozenset({".MKV", "Mp4"}))
        assert spec.extensions == frozenset({"mkv", "mp4"})

    def test_defaults_unconstrained(self):
        spec = FilterSpec()
        assert spec.min_bitrate is None
        assert spec.extensions == frozenset()
        assert spec.max_count is None


class TestSortKeyParse:
    """Tests for SortKey.parse."""

    @pytest.mark.parametrize(
        ("name", "field", "direction"),
        [
            ("bitrate", SortField.BITRATE, SortDirection.DESCENDING),
            ("size", SortField.SIZE, SortDirection.DESCENDING),
            ("size_asc", SortField.SIZE, SortDirection.ASCENDING),
            ("duration", SortField.DURATION, SortDirection.DESCENDING),
            ("duration-asc", SortField.DURATION, SortDirection.ASCENDING),
            ("resolution", SortField.RESOLUTION, SortDirection.DESCENDING),
            ("Resolution_Asc", SortField.RESOLUTION, SortDirection.ASCENDING),
            ("impact", SortField.IMPACT, SortDirection.DESCENDING),
            ("name", SortField.NAME, SortDirection.ASCENDING),
        ],
    )
    def test_known_names(self, name, field, direction):
        key = SortKey.parse(name)
        assert key.field == field
        assert key.direction == direction

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError, match="Unknown sort order"):
            SortKey.parse("loudness")

    def test_str_returns_canonical_name(self):
        assert str(SortKey.parse("size-asc")) == "size_asc"
        assert str(SortKey()) == "name"

    def test_default_is_name_ascending(self):
        key = SortKey()
        assert key.field == SortField.NAME
        assert not key.descending
