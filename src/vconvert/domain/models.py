"""Domain models for vconvert.

All models are frozen dataclasses. The catalog is the only component that
holds mutable state; everything else passes these values around.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

from vconvert.domain.enums import ConversionStatus, SortDirection, SortField


@dataclass(frozen=True)
class ProbeResult:
    """Technical metadata extracted from one media file.

    Numeric fields are None when the probing tool did not report a usable
    value. They are never negative.
    """

    path: Path
    codec: str
    container_extension: str
    size_bytes: int | None = None
    bitrate_kbps: int | None = None
    duration_seconds: float | None = None
    width: int | None = None
    height: int | None = None
    frames_per_second: float | None = None


@dataclass(frozen=True)
class VideoRecord:
    """One catalog entry, keyed by absolute file path."""

    path: str
    container_extension: str
    size_bytes: int | None = None
    bitrate_kbps: int | None = None
    duration_seconds: float | None = None
    width: int | None = None
    height: int | None = None
    codec: str | None = None
    frames_per_second: float | None = None
    modified_at: str | None = None  # ISO-8601 UTC mtime of the source
    last_scanned_at: str | None = None  # ISO-8601 UTC
    status: ConversionStatus = ConversionStatus.PENDING
    probe_error: str | None = None
    note: str | None = None

    @property
    def name(self) -> str:
        """File name without directory."""
        return Path(self.path).name

    @property
    def pixels(self) -> int | None:
        """Frame area (width * height), or None if either is unknown."""
        if self.width is None or self.height is None:
            return None
        return self.width * self.height

    @property
    def impact(self) -> float | None:
        """Bits per frame times duration; larger means more space to reclaim."""
        if (
            self.bitrate_kbps is None
            or self.duration_seconds is None
            or not self.frames_per_second
        ):
            return None
        return (self.bitrate_kbps / self.frames_per_second) * self.duration_seconds

    def with_status(
        self, status: ConversionStatus, note: str | None = None
    ) -> VideoRecord:
        """Return a copy with a new status and note."""
        return replace(self, status=status, note=note)

    @classmethod
    def from_probe(
        cls,
        result: ProbeResult,
        *,
        modified_at: str | None = None,
        scanned_at: str | None = None,
    ) -> VideoRecord:
        """Build a PENDING record from a probe result."""
        return cls(
            path=str(result.path),
            container_extension=result.container_extension,
            size_bytes=result.size_bytes,
            bitrate_kbps=result.bitrate_kbps,
            duration_seconds=result.duration_seconds,
            width=result.width,
            height=result.height,
            codec=result.codec,
            frames_per_second=result.frames_per_second,
            modified_at=modified_at,
            last_scanned_at=scanned_at,
        )


@dataclass(frozen=True)
class FilterSpec:
    """Selection bounds. None means unconstrained; all bounds are inclusive.

    An empty ``extensions`` set allows every extension.
    """

    min_bitrate: int | None = None
    max_bitrate: int | None = None
    min_duration: float | None = None
    max_duration: float | None = None
    extensions: frozenset[str] = field(default_factory=frozenset)
    max_count: int | None = None

    def __post_init__(self) -> None:
        # Normalize so callers may pass any iterable of mixed-case names
        normalized = frozenset(ext.lower().lstrip(".") for ext in self.extensions)
        object.__setattr__(self, "extensions", normalized)


# Textual sort names accepted on the command line and in the config file.
_SORT_ALIASES: dict[str, tuple[SortField, SortDirection]] = {
    "bitrate": (SortField.BITRATE, SortDirection.DESCENDING),
    "bitrate_asc": (SortField.BITRATE, SortDirection.ASCENDING),
    "size": (SortField.SIZE, SortDirection.DESCENDING),
    "size_asc": (SortField.SIZE, SortDirection.ASCENDING),
    "duration": (SortField.DURATION, SortDirection.DESCENDING),
    "duration_asc": (SortField.DURATION, SortDirection.ASCENDING),
    "resolution": (SortField.RESOLUTION, SortDirection.DESCENDING),
    "resolution_asc": (SortField.RESOLUTION, SortDirection.ASCENDING),
    "impact": (SortField.IMPACT, SortDirection.DESCENDING),
    "name": (SortField.NAME, SortDirection.ASCENDING),
    "name_desc": (SortField.NAME, SortDirection.DESCENDING),
}

SORT_NAMES: tuple[str, ...] = tuple(_SORT_ALIASES)


@dataclass(frozen=True)
class SortKey:
    """Sort field plus direction."""

    field: SortField = SortField.NAME
    direction: SortDirection = SortDirection.ASCENDING

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESCENDING

    @classmethod
    def parse(cls, value: str) -> SortKey:
        """Parse a sort name such as ``bitrate`` or ``size-asc``.

        Args:
            value: Sort name, case-insensitive, hyphens or underscores.

        Returns:
            Matching SortKey.

        Raises:
            ValueError: If the name is not a known sort order.
        """
        key = value.strip().lower().replace("-", "_")
        try:
            sort_field, direction = _SORT_ALIASES[key]
        except KeyError:
            raise ValueError(
                f"Unknown sort order '{value}'. "
                f"Must be one of: {', '.join(SORT_NAMES)}"
            ) from None
        return cls(field=sort_field, direction=direction)

    def __str__(self) -> str:
        for name, (sort_field, direction) in _SORT_ALIASES.items():
            if sort_field is self.field and direction is self.direction:
                return name
        return f"{self.field.value}_{self.direction.value}"
