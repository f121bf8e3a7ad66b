"""FFprobe-based implementation of the MediaProber protocol."""

import json
import logging
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
from pathlib import Path

from vconvert.domain import ProbeResult
from vconvert.exceptions import ProbeError, ToolNotFoundError
from vconvert.introspector.parsers import parse_ffprobe_output

logger = logging.getLogger(__name__)


class FFprobeProber:
    """ffprobe-based implementation of MediaProber.

    Reads the first video stream plus container-level format data.
    """

    DEFAULT_TIMEOUT: float = 60.0

    def __init__(
        self,
        ffprobe_path: Path | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the prober.

        Args:
            ffprobe_path: Optional explicit path to ffprobe. If not provided,
                uses the environment override or system PATH.
            timeout: Seconds before a probe is abandoned.

        Raises:
            ToolNotFoundError: If ffprobe is not available.
        """
        self._ffprobe_path = ffprobe_path or self._get_configured_path()
        self._timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT

        if self._ffprobe_path is None:
            raise ToolNotFoundError("ffprobe")

    @staticmethod
    def _get_configured_path() -> Path | None:
        from vconvert.executor.interface import get_tool_path

        return get_tool_path("ffprobe")

    @property
    def ffprobe_path(self) -> Path:
        return self._ffprobe_path  # type: ignore[return-value]

    def probe(self, path: Path) -> ProbeResult:
        """Extract metadata from a video file.

        Args:
            path: Path to the video file.

        Returns:
            ProbeResult for the first video stream.

        Raises:
            ProbeError: If the file cannot be probed.
        """
        try:
            stat_size = path.stat().st_size
        except FileNotFoundError as e:
            raise ProbeError(f"File not found: {path}") from e
        except OSError as e:
            raise ProbeError(f"Cannot stat {path}: {e}") from e

        try:
            ffprobe_output = self._run_ffprobe(path)
        except FileNotFoundError as e:
            raise ProbeError(f"ffprobe not found at {self._ffprobe_path}") from e
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"ffprobe timed out for {path} after {e.timeout}s") from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"exit code {e.returncode}"
            raise ProbeError(f"ffprobe failed for {path}: {detail}") from e
        except json.JSONDecodeError as e:
            raise ProbeError(f"Invalid ffprobe output for {path}: {e}") from e

        return parse_ffprobe_output(path, ffprobe_output, fallback_size=stat_size)

    def _run_ffprobe(self, path: Path) -> dict:
        """Run ffprobe and return parsed JSON output.

        Raises:
            subprocess.CalledProcessError: If ffprobe returns non-zero.
            subprocess.TimeoutExpired: If ffprobe exceeds the timeout.
            json.JSONDecodeError: If output is not valid JSON.
            ProbeError: If output is missing required keys.
        """
        result = subprocess.run(  # nosec B603 - ffprobe path is resolved, no shell
            [
                str(self._ffprobe_path),
                "-v",
                "error",
                "-print_format",
                "json",
                "-show_streams",
                "-show_format",
                "-select_streams",
                "v:0",
                str(path),
            ],
            capture_output=True,
            text=True,
            errors="replace",  # Handle non-UTF8 characters by replacing them
            check=True,
            timeout=self._timeout,
        )
        data = json.loads(result.stdout)

        if not isinstance(data, dict) or "format" not in data:
            raise ProbeError(
                f"Missing 'format' in ffprobe output for {path}. "
                "File may be corrupted or not a valid media file."
            )
        return data
