"""Temp output handling and output verification.

Encoders always write to a hidden temporary file next to the final output.
The temporary file is moved into place only after ``verify_output`` accepts
it, so an interrupted or broken encode never leaves a plausible-looking
``.x265.mp4`` behind.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from vconvert.exceptions import ProbeError

if TYPE_CHECKING:
    from vconvert.executor.interface import MediaTool

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".vconvert-tmp"

# Output must play for at least this share of the source duration
MIN_DURATION_RATIO = 0.85

# Expected HEVC output size relative to the source, with headroom
_ESTIMATED_OUTPUT_RATIO = 0.6
_SPACE_BUFFER = 1.2


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of checking an encoder output."""

    valid: bool
    size_bytes: int = 0
    duration_seconds: float | None = None
    error: str | None = None


def create_temp_output(output_path: Path) -> Path:
    """Hidden temp path in the output's directory, same extension.

    >>> create_temp_output(Path("/v/movie.x265.mp4")).name
    '.movie.x265.vconvert-tmp.mp4'
    """
    return output_path.with_name(
        f".{output_path.stem}{TEMP_SUFFIX}{output_path.suffix}"
    )


def cleanup_temp_file(path: Path) -> None:
    """Remove a temporary file, logging any errors.

    Args:
        path: Path to temp file to remove.
    """
    if path.exists():
        try:
            path.unlink()
            logger.debug("Cleaned up temp file: %s", path)
        except OSError as e:
            logger.warning("Could not clean up temp file %s: %s", path, e)


def promote_temp_output(temp_path: Path, output_path: Path) -> None:
    """Move a verified temp file to its final name, replacing any file there."""
    os.replace(temp_path, output_path)
    logger.debug("Moved temp file to final: %s", output_path)


def check_disk_space(source: Path, size_bytes: int | None = None) -> str | None:
    """Check the source directory has room for the encoded output.

    Args:
        source: Source file; output is written beside it.
        size_bytes: Source size, if already known.

    Returns:
        Error message if space is insufficient, None if OK or unknown.
    """
    if size_bytes is None:
        try:
            size_bytes = source.stat().st_size
        except OSError as e:
            return f"Cannot stat file: {e}"

    needed = int(size_bytes * _ESTIMATED_OUTPUT_RATIO * _SPACE_BUFFER)
    try:
        free = shutil.disk_usage(source.parent).free
    except OSError as e:
        logger.warning("Could not check disk space for %s: %s", source.parent, e)
        return None
    if free < needed:
        return (
            f"Insufficient disk space: {free / 1024**3:.1f}GB free, "
            f"need ~{needed / 1024**3:.1f}GB"
        )
    return None


def verify_output(
    tool: MediaTool,
    output_path: Path,
    source_duration: float | None,
) -> VerificationResult:
    """Check that an encoder output is usable.

    The output must exist, be non-empty, be readable by the prober, and,
    when the source duration is known, last at least
    ``MIN_DURATION_RATIO`` of it.

    Args:
        tool: Tool used to probe the output.
        output_path: File to check.
        source_duration: Duration of the source in seconds, or None.

    Returns:
        VerificationResult; ``error`` says why an output was rejected.
    """
    try:
        size = output_path.stat().st_size
    except FileNotFoundError:
        return VerificationResult(False, error=f"Output missing: {output_path}")
    except OSError as e:
        return VerificationResult(False, error=f"Could not stat output: {e}")

    if size == 0:
        return VerificationResult(False, error=f"Output is empty: {output_path}")

    try:
        probed = tool.probe(output_path)
    except ProbeError as e:
        return VerificationResult(False, size, error=f"Output is unreadable: {e}")

    duration = probed.duration_seconds
    if source_duration and source_duration > 0:
        if duration is None:
            return VerificationResult(
                False, size, error="Output duration could not be determined"
            )
        ratio = duration / source_duration
        if ratio < MIN_DURATION_RATIO:
            return VerificationResult(
                False,
                size,
                duration,
                error=(
                    f"Output is truncated: {duration:.1f}s of "
                    f"{source_duration:.1f}s ({ratio:.0%})"
                ),
            )

    return VerificationResult(True, size, duration)
