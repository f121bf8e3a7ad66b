"""Filter and sort engine for selecting a conversion work set."""

from vconvert.selection.engine import (
    filter_records,
    matches_filter,
    select_records,
    sort_records,
)

__all__ = [
    "filter_records",
    "matches_filter",
    "select_records",
    "sort_records",
]
