"""Unit tests for formatting helpers."""

import pytest

from vconvert.core.formatting import (
    display_width,
    format_bitrate,
    format_duration,
    format_file_size,
    format_percent,
    get_resolution_label,
    pad_to_width,
    truncate_filename,
)


class TestGetResolutionLabel:
    @pytest.mark.parametrize(
        ("width", "height", "label"),
        [
            (3840, 2160, "4K"),
            (2560, 1440, "1440p"),
            (1920, 1080, "1080p"),
            (1280, 720, "720p"),
            (720, 480, "480p"),
            (320, 240, "240p"),
            (None, 1080, "-"),
        ],
    )
    def test_labels(self, width, height, label):
        assert get_resolution_label(width, height) == label


class TestFormatFileSize:
    def test_units(self):
        assert format_file_size(512) == "512 B"
        assert format_file_size(1536) == "1.5 KB"
        assert format_file_size(5 * 1024**2) == "5.0 MB"
        assert format_file_size(3 * 1024**3) == "3.0 GB"

    def test_negative(self):
        assert format_file_size(-2048) == "-2.0 KB"

    def test_unknown(self):
        assert format_file_size(None) == "-"


def test_format_duration():
    assert format_duration(3725) == "1:02:05"
    assert format_duration(59.6) == "0:01:00"
    assert format_duration(None) == "-"


def test_format_bitrate():
    assert format_bitrate(8500) == "8.5 Mbps"
    assert format_bitrate(None) == "-"


def test_format_percent():
    assert format_percent(25, 100) == "25.0%"
    assert format_percent(1, 0) == "-"


class TestTruncateFilename:
    def test_short_name_unchanged(self):
        assert truncate_filename("short.mp4", 40) == "short.mp4"

    def test_keeps_extension(self):
        result = truncate_filename("some-very-long-movie-name.mkv", 25)
        assert result == "some-very-long-movie….mkv"
        assert len(result) == 25

    def test_wide_characters_count_double(self):
        result = truncate_filename("千と千尋の神隠し.mkv", 12)
        assert result == "千と千….mkv"
        assert display_width(result) == 11


class TestDisplayWidth:
    def test_ascii(self):
        assert display_width("movie.mkv") == 9

    def test_wide(self):
        assert display_width("映画") == 4

    def test_pad_to_width(self):
        assert pad_to_width("映画", 6) == "映画  "
        assert pad_to_width("toolong", 3) == "toolong"
