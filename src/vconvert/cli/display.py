"""Terminal rendering of catalog contents and run results."""

from __future__ import annotations

from pathlib import Path

import click

from vconvert.converter import RecordOutcome, RunStats
from vconvert.core.formatting import (
    format_bitrate,
    format_duration,
    format_file_size,
    format_percent,
    get_resolution_label,
    pad_to_width,
    truncate_filename,
)
from vconvert.db import CatalogStats
from vconvert.domain import ConversionStatus, VideoRecord
from vconvert.scanner import ScanResult

STATUS_COLORS: dict[ConversionStatus, str] = {
    ConversionStatus.PENDING: "yellow",
    ConversionStatus.CONVERTED: "green",
    ConversionStatus.SKIPPED: "bright_black",
    ConversionStatus.FAILED: "red",
    ConversionStatus.UNPROBED: "magenta",
}

NAME_WIDTH = 48


def _record_row(record: VideoRecord) -> str:
    status = click.style(
        f"{record.status.value:<9}", fg=STATUS_COLORS.get(record.status)
    )
    return (
        f"  {pad_to_width(truncate_filename(record.name, NAME_WIDTH), NAME_WIDTH)} "
        f"{record.container_extension:<5} "
        f"{record.codec or '-':<6} "
        f"{get_resolution_label(record.width, record.height):>6} "
        f"{format_bitrate(record.bitrate_kbps):>10} "
        f"{format_duration(record.duration_seconds):>9} "
        f"{format_file_size(record.size_bytes):>9}  "
        f"{status}"
    )


def show_records(records: list[VideoRecord], limit: int = 0) -> None:
    """Print catalog rows, at most ``limit`` of them (0 = all)."""
    shown = records if limit <= 0 else records[:limit]
    header = (
        f"  {'File':<{NAME_WIDTH}} {'Ext':<5} {'Codec':<6} {'Res':>6} "
        f"{'Bitrate':>10} {'Duration':>9} {'Size':>9}  Status"
    )
    click.echo(header)
    click.echo("-" * len(header))
    for record in shown:
        click.echo(_record_row(record))
    if len(shown) < len(records):
        click.echo(f"  ... {len(records) - len(shown):,} more (see --display-limit)")


def show_catalog(
    matching: list[VideoRecord], stats: CatalogStats, limit: int = 0
) -> None:
    """Print catalog totals, extension counts and the files a run would select.

    Args:
        matching: Records selected by the current filter and sort.
        stats: Aggregate catalog view.
        limit: Maximum rows of ``matching`` to print (0 = all).
    """
    if stats.total_records == 0:
        click.echo("Catalog is empty.")
        return

    click.echo(
        f"{stats.total_records:,} file(s), "
        f"{format_file_size(stats.total_size_bytes)} total"
    )
    statuses = ", ".join(
        f"{count:,} {status}" for status, count in sorted(stats.by_status.items())
    )
    if statuses:
        click.echo(f"By status: {statuses}")
    click.echo("")
    show_extensions(stats)

    click.echo("")
    click.echo(click.style("Matching files", bold=True))
    if not matching:
        click.echo("  (no files match the current filter)")
        return
    show_records(matching, limit)


def show_extensions(stats: CatalogStats) -> None:
    """Print per-extension counts and sizes."""
    if not stats.by_extension:
        click.echo("Catalog is empty.")
        return
    click.echo(f"  {'Ext':<6} {'Files':>8} {'Size':>10} {'Share':>7}")
    click.echo("-" * 36)
    for ext in stats.by_extension:
        click.echo(
            f"  {ext.extension:<6} {ext.count:>8,} "
            f"{format_file_size(ext.size_bytes):>10} "
            f"{format_percent(ext.size_bytes, stats.total_size_bytes):>7}"
        )
    click.echo("-" * 36)
    click.echo(
        f"  {'total':<6} {stats.total_records:>8,} "
        f"{format_file_size(stats.total_size_bytes):>10}"
    )


def show_outcome(index: int, total: int, outcome: RecordOutcome) -> None:
    """Print one line per processed record."""
    color = STATUS_COLORS.get(outcome.status)
    name = truncate_filename(Path(outcome.path).name, NAME_WIDTH)
    click.echo(
        f"[{index}/{total}] {name}: "
        + click.style(f"{outcome.action.value} - {outcome.reason}", fg=color)
    )


def show_scan_summary(result: ScanResult) -> None:
    click.echo(
        f"Scanned {result.files_found:,} file(s): {result.files_probed:,} probed, "
        f"{result.files_unchanged:,} unchanged, {result.files_failed:,} failed "
        f"({result.elapsed_seconds:.1f}s)"
    )


def show_run_summary(stats: RunStats, dry_run: bool = False) -> None:
    """Print the end-of-run summary, including every failure."""
    click.echo("")
    click.echo("Conversion Summary")
    click.echo("-" * 30)
    if dry_run:
        click.echo(f"  Would process:      {stats.dry_run:,}")
    else:
        click.echo(f"  Transcoded:         {stats.converted:,}")
        click.echo(f"  Remuxed:            {stats.remuxed:,}")
        click.echo(f"  Renamed:            {stats.renamed:,}")
    click.echo(f"  Skipped:            {stats.skipped:,}")
    click.echo(f"  Failed:             {stats.failed:,}")
    if stats.original_bytes:
        click.echo(f"  Size Before:        {format_file_size(stats.original_bytes)}")
        click.echo(f"  Size After:         {format_file_size(stats.output_bytes)}")
        click.echo(
            f"  Space Saved:        {format_file_size(stats.space_saved_bytes)} "
            f"({format_percent(stats.space_saved_bytes, stats.original_bytes)})"
        )
    if stats.interrupted:
        click.echo(click.style("  Run was interrupted", fg="yellow"))

    if stats.failures:
        click.echo("")
        click.echo(click.style("Failures", fg="red"))
        for path, reason in stats.failures:
            click.echo(f"  {path}: {reason}")
