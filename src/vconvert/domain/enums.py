"""Domain enums for vconvert.

Values are stored verbatim in the catalog, so existing members must not be
renamed.
"""

from enum import Enum


class ConversionStatus(Enum):
    """Lifecycle state of a catalog record.

    PENDING records are eligible for conversion. CONVERTED, SKIPPED and
    FAILED are the outcomes of a conversion attempt. UNPROBED marks a path
    that was discovered but whose metadata could not be read.
    """

    PENDING = "pending"  # Newly scanned or reset after a change
    CONVERTED = "converted"  # Output verified and source disposed of
    SKIPPED = "skipped"  # Excluded by policy or output already exists
    FAILED = "failed"  # Encoder error or verification failure
    UNPROBED = "unprobed"  # Probe failed, metrics unknown


class ConversionAction(Enum):
    """What the converter does with a selected record."""

    TRANSCODE = "transcode"  # Full re-encode to HEVC
    REMUX = "remux"  # Container change only, video stream copied
    RENAME = "rename"  # Already HEVC/MP4, only the file name label changes
    SKIP = "skip"


class SortField(Enum):
    """Field a work set can be ordered by."""

    BITRATE = "bitrate"
    SIZE = "size"
    DURATION = "duration"
    RESOLUTION = "resolution"  # width * height
    IMPACT = "impact"  # (bitrate / fps) * duration
    NAME = "name"


class SortDirection(Enum):
    """Sort direction."""

    ASCENDING = "asc"
    DESCENDING = "desc"


class DisposalMode(Enum):
    """What happens to a source file after a verified conversion."""

    TRASH = "trash"
    DELETE = "delete"
