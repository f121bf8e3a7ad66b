"""Pure filter and sort functions over catalog records.

Nothing in this module touches the filesystem or the catalog. The catalog's
query operation and the CLI both route through these functions, so the
semantics are defined in one place:

- Filtering is a conjunction of every bound in a FilterSpec. A record whose
  value is unknown (None) fails any bound on that value.
- Sorting is a total order. Ties are broken by path ascending. Records with
  an unknown sort value are placed last regardless of direction.
- ``max_count`` is applied after sorting and selects a prefix.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from vconvert.domain import FilterSpec, SortField, SortKey, VideoRecord

SortValue = float | int | str | None

_SORT_VALUES: dict[SortField, Callable[[VideoRecord], SortValue]] = {
    SortField.BITRATE: lambda r: r.bitrate_kbps,
    SortField.SIZE: lambda r: r.size_bytes,
    SortField.DURATION: lambda r: r.duration_seconds,
    SortField.RESOLUTION: lambda r: r.pixels,
    SortField.IMPACT: lambda r: r.impact,
    SortField.NAME: lambda r: r.name.casefold(),
}


def _within(
    value: float | int | None, lower: float | int | None, upper: float | int | None
) -> bool:
    if lower is None and upper is None:
        return True
    if value is None:
        return False
    if lower is not None and value < lower:
        return False
    if upper is not None and value > upper:
        return False
    return True


def matches_filter(record: VideoRecord, spec: FilterSpec) -> bool:
    """Check whether a record satisfies every bound of a filter.

    Args:
        record: Catalog record to test.
        spec: Filter bounds; None bounds are ignored.

    Returns:
        True if all bounds hold and the extension is allowed.
    """
    if spec.extensions and record.container_extension.lower() not in spec.extensions:
        return False
    if not _within(record.bitrate_kbps, spec.min_bitrate, spec.max_bitrate):
        return False
    if not _within(record.duration_seconds, spec.min_duration, spec.max_duration):
        return False
    return True


def filter_records(
    records: Iterable[VideoRecord], spec: FilterSpec
) -> list[VideoRecord]:
    """Return the records matching ``spec``, in input order."""
    return [record for record in records if matches_filter(record, spec)]


def sort_records(
    records: Iterable[VideoRecord], sort_key: SortKey
) -> list[VideoRecord]:
    """Sort records by a SortKey.

    Args:
        records: Records to sort.
        sort_key: Field and direction.

    Returns:
        New list; equal values keep path-ascending order, unknown values last.
    """
    value_of = _SORT_VALUES[sort_key.field]
    by_path = sorted(records, key=lambda r: r.path)

    known = [r for r in by_path if value_of(r) is not None]
    unknown = [r for r in by_path if value_of(r) is None]

    # list.sort is stable for reverse=True too, so path order survives ties
    known.sort(key=value_of, reverse=sort_key.descending)  # type: ignore[arg-type]
    return known + unknown


def select_records(
    records: Iterable[VideoRecord],
    spec: FilterSpec,
    sort_key: SortKey,
    limit: int | None = None,
) -> list[VideoRecord]:
    """Filter, sort and truncate records into a work set.

    Args:
        records: Candidate records.
        spec: Filter bounds; ``spec.max_count`` caps the result.
        sort_key: Order of the result.
        limit: Optional additional cap; the smaller of the two wins.

    Returns:
        The selected prefix of the sorted, filtered records.
    """
    selected = sort_records(filter_records(records, spec), sort_key)
    caps = [cap for cap in (limit, spec.max_count) if cap is not None]
    if caps:
        selected = selected[: max(min(caps), 0)]
    return selected
