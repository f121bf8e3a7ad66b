"""Formatting utilities.

Pure functions for presenting catalog values on the terminal.
"""

from wcwidth import wcswidth


def get_resolution_label(width: int | None, height: int | None) -> str:
    """Map video dimensions to human-readable resolution label.

    Args:
        width: Video width in pixels.
        height: Video height in pixels.

    Returns:
        Resolution label (e.g., "1080p", "4K") or "-" if unknown.
    """
    if width is None or height is None:
        return "-"

    if max(width, height) >= 3840 or height >= 2160:
        return "4K"
    elif height >= 1440:
        return "1440p"
    elif height >= 1080:
        return "1080p"
    elif height >= 720:
        return "720p"
    elif height >= 480:
        return "480p"
    elif height > 0:
        return f"{height}p"
    else:
        return "-"


def format_file_size(size_bytes: int | None) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes.

    Returns:
        Formatted string (e.g., "4.2 GB", "128 MB", "1.5 KB").
    """
    if size_bytes is None:
        return "-"
    sign = "-" if size_bytes < 0 else ""
    size = abs(size_bytes)
    if size >= 1024**3:
        return f"{sign}{size / (1024**3):.1f} GB"
    elif size >= 1024**2:
        return f"{sign}{size / (1024**2):.1f} MB"
    elif size >= 1024:
        return f"{sign}{size / 1024:.1f} KB"
    else:
        return f"{sign}{size} B"


def format_duration(seconds: float | None) -> str:
    """Format a duration as H:MM:SS, or "-" when unknown."""
    if seconds is None:
        return "-"
    total = int(round(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


def format_bitrate(kbps: int | None) -> str:
    """Format a bitrate in kbps as Mbps with one decimal."""
    if kbps is None:
        return "-"
    return f"{kbps / 1000:.1f} Mbps"


def format_percent(part: float, whole: float) -> str:
    """Format ``part`` as a percentage of ``whole``."""
    if whole <= 0:
        return "-"
    return f"{part / whole * 100:.1f}%"


def display_width(text: str) -> int:
    """Terminal column width of ``text``; wide (CJK, emoji) characters count 2."""
    width = wcswidth(text)
    # wcswidth returns -1 if string contains non-printable characters
    return width if width >= 0 else len(text)


def pad_to_width(text: str, width: int) -> str:
    """Left-align ``text`` in ``width`` terminal columns."""
    return text + " " * max(0, width - display_width(text))


def _fit(text: str, max_width: int) -> str:
    fitted = ""
    for char in text:
        if display_width(fitted + char) > max_width:
            break
        fitted += char
    return fitted


def truncate_filename(filename: str, max_length: int = 40) -> str:
    """Truncate filename preserving start and extension.

    Lengths are terminal columns, so wide characters count double. If
    truncation is needed, shows: beginning…extension

    Examples:
        >>> truncate_filename("some-very-long-movie-name.mkv", 25)
        'some-very-long-movie….mkv'
        >>> truncate_filename("short.mp4", 40)
        'short.mp4'
    """
    if not filename or display_width(filename) <= max_length:
        return filename

    dot_index = filename.rfind(".")
    if dot_index > 0:
        extension = filename[dot_index:]
        base = filename[:dot_index]
    else:
        extension = ""
        base = filename

    available_for_base = max_length - display_width(extension) - 1
    if available_for_base < 1:
        return _fit(filename, max_length - 1) + "…"

    return _fit(base, available_for_base) + "…" + extension
