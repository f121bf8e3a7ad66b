"""Media metadata extraction."""

from vconvert.exceptions import ProbeError
from vconvert.introspector.ffprobe import FFprobeProber
from vconvert.introspector.interface import MediaProber
from vconvert.introspector.parsers import parse_ffprobe_output

__all__ = [
    "FFprobeProber",
    "MediaProber",
    "ProbeError",
    "parse_ffprobe_output",
]
