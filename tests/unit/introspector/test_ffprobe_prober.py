"""Unit tests for FFprobeProber."""

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from vconvert.exceptions import ProbeError, ToolNotFoundError
from vconvert.introspector import FFprobeProber

FFPROBE = Path("/usr/bin/ffprobe")

SAMPLE_OUTPUT = {
    "streams": [
        {
            "codec_name": "hevc",
            "codec_type": "video",
            "width": 3840,
            "height": 2160,
            "r_frame_rate": "25/1",
        }
    ],
    "format": {"duration": "60.0", "bit_rate": "20000000"},
}


@pytest.fixture
def video_file(temp_dir: Path) -> Path:
    path = temp_dir / "clip.mkv"
    path.write_bytes(b"v" * 2048)
    return path


def _completed(stdout: str) -> MagicMock:
    result = MagicMock()
    result.stdout = stdout
    result.returncode = 0
    return result


class TestFFprobeProberInit:
    def test_missing_tool_raises(self):
        with patch(
            "vconvert.executor.interface.get_tool_path", return_value=None
        ):
            with pytest.raises(ToolNotFoundError):
                FFprobeProber()

    def test_explicit_path(self):
        prober = FFprobeProber(FFPROBE)
        assert prober.ffprobe_path == FFPROBE


class TestFFprobeProberProbe:
    """Tests for FFprobeProber.probe with subprocess patched."""

    def test_parses_output(self, video_file):
        prober = FFprobeProber(FFPROBE, timeout=5)
        with patch(
            "vconvert.introspector.ffprobe.subprocess.run",
            return_value=_completed(json.dumps(SAMPLE_OUTPUT)),
        ) as mock_run:
            result = prober.probe(video_file)

        assert result.codec == "hevc"
        assert result.bitrate_kbps == 20000
        assert result.size_bytes == 2048
        assert result.frames_per_second == 25.0

        args, kwargs = mock_run.call_args
        command = args[0]
        assert command[0] == str(FFPROBE)
        assert command[-1] == str(video_file)
        assert "-show_streams" in command
        assert kwargs["timeout"] == 5

    def test_missing_file(self, temp_dir):
        prober = FFprobeProber(FFPROBE)
        with pytest.raises(ProbeError, match="File not found"):
            prober.probe(temp_dir / "nope.mkv")

    def test_nonzero_exit(self, video_file):
        prober = FFprobeProber(FFPROBE)
        error = subprocess.CalledProcessError(
            1, ["ffprobe"], stderr="Invalid data found when processing input"
        )
        with patch("vconvert.introspector.ffprobe.subprocess.run", side_effect=error):
            with pytest.raises(ProbeError, match="Invalid data found"):
                prober.probe(video_file)

    def test_timeout(self, video_file):
        prober = FFprobeProber(FFPROBE, timeout=1)
        error = subprocess.TimeoutExpired(["ffprobe"], 1)
        with patch("vconvert.introspector.ffprobe.subprocess.run", side_effect=error):
            with pytest.raises(ProbeError, match="timed out"):
                prober.probe(video_file)

    def test_invalid_json(self, video_file):
        prober = FFprobeProber(FFPROBE)
        with patch(
            "vconvert.introspector.ffprobe.subprocess.run",
            return_value=_completed("not json"),
        ):
            with pytest.raises(ProbeError, match="Invalid ffprobe output"):
                prober.probe(video_file)

    def test_missing_format(self, video_file):
        prober = FFprobeProber(FFPROBE)
        with patch(
            "vconvert.introspector.ffprobe.subprocess.run",
            return_value=_completed(json.dumps({"streams": []})),
        ):
            with pytest.raises(ProbeError, match="Missing 'format'"):
                prober.probe(video_file)
