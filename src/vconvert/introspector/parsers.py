"""Pure parsing functions for ffprobe JSON output.

These functions turn ffprobe's ``-print_format json`` output into a
ProbeResult. They do no I/O apart from the optional size fallback supplied
by the caller, which keeps them easy to test with fixture dicts.
"""

import logging
from pathlib import Path

from vconvert.domain import ProbeResult
from vconvert.exceptions import ProbeError

logger = logging.getLogger(__name__)

# Stream tags that carry a bitrate in MKV files written by mkvmerge
_BITRATE_TAGS = ("BPS", "BPS-eng")


def _log_validation_warning(
    message: str,
    field_name: str,
    file_path: str | None,
    *args: object,
) -> None:
    """Log a validation warning with optional file context."""
    context = f" in {file_path}" if file_path else ""
    logger.warning(f"{message}{context}", field_name, *args)


def validate_positive_int(
    value: object,
    field_name: str,
    file_path: str | None = None,
) -> int | None:
    """Validate that a value is a non-negative integer, else return None.

    Accepts ints and integer strings (ffprobe reports some numbers as
    strings).
    """
    if value is None or value == "" or value == "N/A":
        return None
    try:
        number = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        _log_validation_warning(
            "Expected int for %s, got %r", field_name, file_path, value
        )
        return None
    if number < 0:
        _log_validation_warning(
            "Invalid negative %s: %d", field_name, file_path, number
        )
        return None
    return number


def validate_positive_float(
    value: object,
    field_name: str,
    file_path: str | None = None,
) -> float | None:
    """Validate that a value is a non-negative float, else return None."""
    if value is None or value == "" or value == "N/A":
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        _log_validation_warning(
            "Expected float for %s, got %r", field_name, file_path, value
        )
        return None
    if number < 0:
        _log_validation_warning(
            "Invalid negative %s: %s", field_name, file_path, number
        )
        return None
    return number


def parse_frame_rate(value: str | None) -> float | None:
    """Parse an ffprobe rational frame rate.

    Args:
        value: Frame rate such as "24000/1001" or "25", or None.

    Returns:
        Frames per second, or None for missing, malformed or "0/0".
    """
    if not value:
        return None
    try:
        if "/" in value:
            num, den = value.split("/", 1)
            denominator = float(den)
            if denominator == 0:
                return None
            fps = float(num) / denominator
        else:
            fps = float(value)
    except ValueError:
        return None
    return fps if fps > 0 else None


def parse_bitrate_kbps(
    stream: dict, format_info: dict, file_path: str | None = None
) -> int | None:
    """Pick the first positive bitrate and convert it to kbps.

    Order: stream ``bit_rate``, stream tags ``BPS``/``BPS-eng``, then the
    container ``bit_rate``.
    """
    tags = stream.get("tags") or {}
    candidates = [stream.get("bit_rate")]
    candidates.extend(tags.get(tag) for tag in _BITRATE_TAGS)
    candidates.append(format_info.get("bit_rate"))

    for candidate in candidates:
        bits = validate_positive_int(candidate, "bit_rate", file_path)
        if bits:
            return bits // 1000
    return None


def parse_ffprobe_output(
    path: Path, data: dict, fallback_size: int | None = None
) -> ProbeResult:
    """Parse ffprobe JSON into a ProbeResult.

    Args:
        path: Probed file; its suffix becomes the container extension.
        data: Parsed ffprobe JSON with ``streams`` and ``format`` keys.
        fallback_size: Size to use when ffprobe reports none (e.g. from stat).

    Returns:
        ProbeResult with unknown fields set to None.

    Raises:
        ProbeError: If the output contains no video stream.
    """
    file_path = str(path)
    streams = data.get("streams") or []
    video = next(
        (
            s
            for s in streams
            if s.get("codec_type", "video") == "video" and s.get("codec_name")
        ),
        None,
    )
    if video is None:
        raise ProbeError(f"No video stream found in {path}")

    format_info = data.get("format") or {}

    duration = validate_positive_float(
        format_info.get("duration"), "duration", file_path
    )
    if duration is None:
        duration = validate_positive_float(video.get("duration"), "duration", file_path)

    size = validate_positive_int(format_info.get("size"), "size", file_path)
    if size is None:
        size = fallback_size

    frame_rate = parse_frame_rate(
        video.get("r_frame_rate") or video.get("avg_frame_rate")
    )

    return ProbeResult(
        path=path,
        codec=str(video["codec_name"]).lower(),
        container_extension=path.suffix.lower().lstrip("."),
        size_bytes=size,
        bitrate_kbps=parse_bitrate_kbps(video, format_info, file_path),
        duration_seconds=duration,
        width=validate_positive_int(video.get("width"), "width", file_path),
        height=validate_positive_int(video.get("height"), "height", file_path),
        frames_per_second=frame_rate,
    )
