"""Counters for one conversion run."""

from __future__ import annotations

from dataclasses import dataclass, field

from vconvert.domain import ConversionAction


@dataclass
class RunStats:
    """Aggregate outcome of ``ConversionOrchestrator.run``.

    ``original_bytes`` and ``output_bytes`` cover transcodes and remuxes
    only; renames do not change the size of anything.
    """

    converted: int = 0
    remuxed: int = 0
    renamed: int = 0
    skipped: int = 0
    failed: int = 0
    dry_run: int = 0
    original_bytes: int = 0
    output_bytes: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)
    interrupted: bool = False

    @property
    def space_saved_bytes(self) -> int:
        return self.original_bytes - self.output_bytes

    @property
    def processed(self) -> int:
        """Records that reached a final outcome in this run."""
        return self.converted + self.remuxed + self.renamed + self.skipped + self.failed

    def record_success(
        self, action: ConversionAction, original_size: int, output_size: int
    ) -> None:
        if action is ConversionAction.RENAME:
            self.renamed += 1
            return
        if action is ConversionAction.REMUX:
            self.remuxed += 1
        else:
            self.converted += 1
        self.original_bytes += original_size
        self.output_bytes += output_size

    def record_failure(self, path: str, reason: str) -> None:
        self.failed += 1
        self.failures.append((path, reason))
