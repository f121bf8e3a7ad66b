"""Domain models and enums for vconvert.

Usage:
    from vconvert.domain import VideoRecord, FilterSpec, SortKey
    from vconvert.domain import ConversionStatus, ConversionAction
"""

from .enums import (
    ConversionAction,
    ConversionStatus,
    DisposalMode,
    SortDirection,
    SortField,
)
from .models import (
    SORT_NAMES,
    FilterSpec,
    ProbeResult,
    SortKey,
    VideoRecord,
)

__all__ = [
    # Models
    "VideoRecord",
    "ProbeResult",
    "FilterSpec",
    "SortKey",
    "SORT_NAMES",
    # Enums
    "ConversionStatus",
    "ConversionAction",
    "DisposalMode",
    "SortField",
    "SortDirection",
]
