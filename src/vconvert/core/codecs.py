"""Codec and container knowledge shared by the scanner, prober and converter.

This module is the single source of truth for:
- the target codec and container of a conversion
- codec alias groups used to decide remux vs transcode
- the known video extension sets
- the ``x265`` label that marks converted output files
"""

from __future__ import annotations

import re
from pathlib import Path

# =============================================================================
# Conversion target
# =============================================================================

TARGET_CODEC = "hevc"
TARGET_EXTENSION = "mp4"
TARGET_LABEL = "x265"

HEVC_ALIASES: frozenset[str] = frozenset(
    {"hevc", "h265", "h.265", "x265", "hvc1", "hev1"}
)

# Audio codecs carried unchanged when the source container is one of these.
AUDIO_COPY_CONTAINERS: frozenset[str] = frozenset({"mp4", "mkv"})

# =============================================================================
# Extension sets
# =============================================================================

DEFAULT_EXTENSIONS: tuple[str, ...] = ("mp4", "mkv")
ALL_EXTENSIONS: tuple[str, ...] = (
    "mp4",
    "mkv",
    "wmv",
    "flv",
    "m4v",
    "ts",
    "mpg",
    "avi",
    "mov",
    "webm",
)
OTHER_EXTENSIONS: tuple[str, ...] = tuple(
    ext for ext in ALL_EXTENSIONS if ext != TARGET_EXTENSION
)

_LABEL_PATTERN = re.compile(r"\bx265\b", re.IGNORECASE)


def is_target_codec(codec: str | None) -> bool:
    """Check if a codec name is an alias of the target codec.

    Args:
        codec: Codec name as reported by ffprobe, or None.

    Returns:
        True if the codec is HEVC under any of its common names.
    """
    if not codec:
        return False
    return codec.casefold() in HEVC_ALIASES


def has_target_label(path: Path) -> bool:
    """Check if a file stem already carries the ``x265`` label."""
    return bool(_LABEL_PATTERN.search(path.stem))


def is_converted_output(path: Path) -> bool:
    """Check if a path looks like a file this tool produced."""
    return path.suffix.lower() == f".{TARGET_EXTENSION}" and has_target_label(path)


def target_output_path(source: Path) -> Path:
    """Compute the output path for a source file.

    The output lives next to the source, keeps its stem and gains the
    ``.x265`` label unless the stem already carries it.

    Examples:
        >>> target_output_path(Path("/v/movie.mkv"))
        PosixPath('/v/movie.x265.mp4')
        >>> target_output_path(Path("/v/movie.x265.mkv"))
        PosixPath('/v/movie.x265.mp4')
    """
    stem = source.stem
    if not has_target_label(source):
        stem = f"{stem}.{TARGET_LABEL}"
    return source.with_name(f"{stem}.{TARGET_EXTENSION}")


def normalize_extensions(extensions: list[str] | tuple[str, ...]) -> list[str]:
    """Lowercase extensions, strip leading dots, drop duplicates in order."""
    seen: list[str] = []
    for ext in extensions:
        cleaned = ext.strip().lower().lstrip(".")
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen
