"""Aggregate view types returned by the catalog."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExtensionStats:
    """Record count and total size for one container extension."""

    extension: str
    count: int
    size_bytes: int


@dataclass(frozen=True)
class CatalogStats:
    """Aggregate view over the whole catalog."""

    total_records: int = 0
    total_size_bytes: int = 0
    by_extension: list[ExtensionStats] = field(default_factory=list)
    by_status: dict[str, int] = field(default_factory=dict)
