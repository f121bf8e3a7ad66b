"""Shared test fixtures for vconvert."""

import os
import shutil
import tempfile
import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from vconvert.db import Catalog
from vconvert.domain import ConversionStatus, ProbeResult, VideoRecord
from vconvert.exceptions import ProbeError
from vconvert.executor.interface import EncodeRequest, EncodeResult


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def temp_db(temp_dir: Path) -> Path:
    """Create a temporary catalog path."""
    return temp_dir / "test_catalog.db"


@pytest.fixture
def catalog(temp_db: Path):
    """Open a fresh catalog and close it after the test."""
    with Catalog.open(temp_db) as cat:
        yield cat


@pytest.fixture
def temp_video_dir(temp_dir: Path) -> Path:
    """Create a temporary directory with placeholder video files."""
    video_dir = temp_dir / "videos"
    video_dir.mkdir()

    (video_dir / "movie.mkv").write_bytes(b"m" * 2000)
    (video_dir / "show.mp4").write_bytes(b"s" * 1000)
    (video_dir / "notes.txt").write_text("not a video")

    nested = video_dir / "nested"
    nested.mkdir()
    (nested / "episode.mkv").write_bytes(b"e" * 1500)

    # Hidden directory (should be skipped)
    hidden = video_dir / ".hidden"
    hidden.mkdir()
    (hidden / "secret.mkv").write_bytes(b"h" * 10)

    return video_dir


@pytest.fixture(autouse=True)
def vconvert_data_dir(temp_dir: Path):
    """Point VCONVERT_DATA_DIR at a temp directory for every test.

    Keeps tests away from the user's real ~/.vconvert and any VCONVERT_*
    variables set in the developer's shell.
    """
    data_dir = temp_dir / ".vconvert"
    data_dir.mkdir(parents=True, exist_ok=True)
    clean_env = {k: v for k, v in os.environ.items() if not k.startswith("VCONVERT_")}
    clean_env["VCONVERT_DATA_DIR"] = str(data_dir)
    with patch.dict(os.environ, clean_env, clear=True):
        yield data_dir


def make_record(path, **overrides) -> VideoRecord:
    """Build a VideoRecord with plausible defaults for an H.264 MKV."""
    path = Path(path)
    values = {
        "path": str(path),
        "container_extension": path.suffix.lower().lstrip("."),
        "size_bytes": 1_000_000,
        "bitrate_kbps": 10_000,
        "duration_seconds": 600.0,
        "width": 1920,
        "height": 1080,
        "codec": "h264",
        "frames_per_second": 24.0,
        "modified_at": "2024-01-01T00:00:00+00:00",
        "last_scanned_at": "2024-01-02T00:00:00+00:00",
        "status": ConversionStatus.PENDING,
    }
    values.update(overrides)
    return VideoRecord(**values)


@pytest.fixture
def record_factory():
    """Return the ``make_record`` helper."""
    return make_record


class FakeMediaTool:
    """In-memory MediaTool: writes fake outputs instead of running ffmpeg.

    Attributes:
        fail_sources: Source names whose encode returns a non-zero exit.
        output_sizes: Output sizes handed out in order, then ``output_size``.
        output_duration: Duration reported when probing outputs, None to
            echo ``probe_durations`` or 600.0.
        unreadable_outputs: Output names whose probe raises ProbeError.
        abort_on_encode: Simulate an aborted encoder.
        requests: Every EncodeRequest received.
    """

    def __init__(self) -> None:
        self.fail_sources: set[str] = set()
        self.output_sizes: list[int] = []
        self.output_size = 500
        self.output_duration: float | None = 600.0
        self.unreadable_outputs: set[str] = set()
        self.abort_on_encode = False
        self.requests: list[EncodeRequest] = []
        self.probed: list[Path] = []

    def probe(self, path: Path) -> ProbeResult:
        self.probed.append(path)
        if path.name in self.unreadable_outputs:
            raise ProbeError(f"unreadable: {path}")
        return ProbeResult(
            path=path,
            codec="hevc",
            container_extension="mp4",
            size_bytes=path.stat().st_size if path.exists() else None,
            bitrate_kbps=4000,
            duration_seconds=self.output_duration,
            width=1920,
            height=1080,
            frames_per_second=24.0,
        )

    def command_for(self, request: EncodeRequest) -> list[str]:
        return ["ffmpeg", "-i", str(request.source), str(request.output)]

    def transcode(
        self, request: EncodeRequest, cancel: threading.Event | None = None
    ) -> EncodeResult:
        self.requests.append(request)
        command = self.command_for(request)
        if self.abort_on_encode:
            return EncodeResult(
                success=False,
                return_code=-15,
                command=command,
                error="cancelled by operator",
                cancelled=True,
            )
        if request.source.name in self.fail_sources:
            return EncodeResult(
                success=False,
                return_code=1,
                command=command,
                error="ffmpeg exited with code 1",
            )
        size = self.output_sizes.pop(0) if self.output_sizes else self.output_size
        request.output.write_bytes(b"o" * size)
        return EncodeResult(success=True, return_code=0, command=command)


@pytest.fixture
def fake_tool() -> FakeMediaTool:
    return FakeMediaTool()


class FakeProber:
    """MediaProber returning canned results keyed by file name."""

    def __init__(self, results=None, failures=None) -> None:
        self.results: dict[str, dict] = results or {}
        self.failures: dict[str, str] = failures or {}
        self.calls: list[Path] = []
        self._lock = threading.Lock()

    def probe(self, path: Path) -> ProbeResult:
        with self._lock:
            self.calls.append(path)
        if path.name in self.failures:
            raise ProbeError(self.failures[path.name])
        values = {
            "codec": "h264",
            "bitrate_kbps": 10_000,
            "duration_seconds": 600.0,
            "width": 1920,
            "height": 1080,
            "frames_per_second": 24.0,
        }
        values.update(self.results.get(path.name, {}))
        return ProbeResult(
            path=path,
            container_extension=path.suffix.lower().lstrip("."),
            size_bytes=path.stat().st_size,
            **values,
        )


@pytest.fixture
def fake_prober() -> FakeProber:
    return FakeProber()
