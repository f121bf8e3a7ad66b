"""Command-line interface for vconvert."""

from __future__ import annotations

import dataclasses
import logging
import sys
from pathlib import Path

import click

from vconvert import __version__
from vconvert.cli.display import (
    show_catalog,
    show_extensions,
    show_outcome,
    show_run_summary,
    show_scan_summary,
)
from vconvert.cli.exit_codes import ExitCode
from vconvert.cli.options import RunOptions, resolve_options
from vconvert.cli.output import error_exit, warning_output
from vconvert.config import AppConfig, get_config
from vconvert.converter import ConversionOrchestrator
from vconvert.db import Catalog
from vconvert.domain import SORT_NAMES, SortKey
from vconvert.exceptions import (
    CatalogError,
    ConfigError,
    ScanRootError,
    ToolNotFoundError,
)
from vconvert.executor import FFmpegTool
from vconvert.introspector import FFprobeProber
from vconvert.logging import configure_logging
from vconvert.scanner import ScannerOrchestrator

logger = logging.getLogger(__name__)


def _configure_logging(
    config: AppConfig,
    verbose: bool,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Apply CLI logging overrides on top of the configured settings."""
    overrides: dict[str, object] = {}
    if log_level:
        overrides["level"] = log_level
    elif verbose or config.convert.verbose:
        overrides["level"] = "debug"
    if log_file:
        overrides["file"] = log_file
    if log_json:
        overrides["format"] = "json"
    try:
        logging_config = dataclasses.replace(config.logging, **overrides)
    except ValueError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR)
    configure_logging(logging_config)


class _Services:
    """Lazily created collaborators; tests pre-populate them via ``ctx.obj``."""

    def __init__(self, config: AppConfig, injected: dict) -> None:
        self._config = config
        self.catalog: Catalog | None = injected.get("catalog")
        self.owns_catalog = self.catalog is None
        self._prober = injected.get("prober")
        self._tool = injected.get("tool")

    def open_catalog(self) -> Catalog:
        if self.catalog is None:
            self.catalog = Catalog.open(self._config.database_path)
        return self.catalog

    @property
    def prober(self):
        if self._prober is None:
            self._prober = FFprobeProber(
                self._config.tools.ffprobe, timeout=self._config.scan.probe_timeout
            )
        return self._prober

    @property
    def tool(self):
        if self._tool is None:
            self._tool = FFmpegTool(self.prober, ffmpeg_path=self._config.tools.ffmpeg)
        return self._tool

    def close(self) -> None:
        if self.owns_catalog and self.catalog is not None:
            self.catalog.close()


def _convert(
    services: _Services,
    options: RunOptions,
    root: Path | None,
    workers: int,
) -> ExitCode:
    """Scan (unless catalog-only), select the work set and run it."""
    catalog = services.open_catalog()
    scanned_paths: list[str] | None = None

    if root is None:
        removed = catalog.remove_missing()
        if removed:
            click.echo(f"Removed {removed:,} missing file(s) from the catalog")
    else:
        scanner = ScannerOrchestrator(
            catalog,
            services.prober,
            extensions=options.extensions,
            workers=workers,
        )
        scan_result = scanner.scan(
            root,
            recursive=options.recurse,
            include=options.include,
            exclude=options.exclude,
        )
        show_scan_summary(scan_result)
        if scan_result.interrupted:
            click.echo("Scan interrupted, nothing converted.")
            return ExitCode.INTERRUPTED
        scanned_paths = scan_result.paths

    work = catalog.query(
        options.filter_spec,
        options.sort_key,
        statuses=options.settings.eligible_statuses,
        paths=scanned_paths,
    )
    if not work:
        click.echo("No files to process.")
        return ExitCode.SUCCESS

    click.echo(f"Processing {len(work):,} file(s), sorted by {options.sort_key}")
    orchestrator = ConversionOrchestrator(
        catalog, services.tool, options.settings, on_outcome=show_outcome
    )
    stats = orchestrator.run(work)
    show_run_summary(stats, dry_run=options.settings.dry_run)
    return ExitCode.INTERRUPTED if stats.interrupted else ExitCode.SUCCESS


def _show(services: _Services, options: RunOptions) -> ExitCode:
    catalog = services.open_catalog()
    matching = catalog.query(
        options.filter_spec,
        options.sort_key,
        statuses=options.settings.eligible_statuses,
    )
    show_catalog(matching, catalog.stats(), options.display_limit)
    return ExitCode.SUCCESS


def _validate_sort(ctx, param, value):
    """Validate the sort name, accepting hyphens and any case."""
    if value is None:
        return None
    try:
        return str(SortKey.parse(value))
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument(
    "path", required=False, type=click.Path(path_type=Path, file_okay=True)
)
@click.option(
    "-a", "--all", "all_types", is_flag=True, help="Convert all known video types."
)
@click.option(
    "-o", "--other", "other_types", is_flag=True, help="All known types except MP4."
)
@click.option(
    "-t",
    "--extension",
    "extensions",
    multiple=True,
    metavar="EXT",
    help="Extension to convert (repeatable).",
)
@click.option(
    "-b", "--bitrate", type=click.IntRange(min=0), help="Minimum bitrate in kbps."
)
@click.option(
    "-B", "--max-bitrate", type=click.IntRange(min=0), help="Maximum bitrate in kbps."
)
@click.option(
    "-u",
    "--min-duration",
    type=click.FloatRange(min=0),
    help="Minimum duration in seconds.",
)
@click.option(
    "-U",
    "--max-duration",
    type=click.FloatRange(min=0),
    help="Maximum duration in seconds.",
)
@click.option(
    "-c", "--count", type=click.IntRange(min=0), help="Maximum files to process."
)
@click.option(
    "-s",
    "--sort",
    callback=_validate_sort,
    metavar="ORDER",
    help=f"Sort order: {', '.join(SORT_NAMES)}.",
)
@click.option(
    "-L",
    "--display-limit",
    type=click.IntRange(min=0),
    help="Rows shown by --show-db (0 = all).",
)
@click.option(
    "-d", "--delete", is_flag=True, help="Delete sources instead of trashing."
)
@click.option("-p", "--print", "dry_run", is_flag=True, help="Print, don't convert.")
@click.option("-f", "--force", is_flag=True, help="Overwrite existing outputs.")
@click.option(
    "-n", "--include", multiple=True, metavar="PAT", help="Include name pattern."
)
@click.option(
    "-e", "--exclude", multiple=True, metavar="PAT", help="Exclude name pattern."
)
@click.option("-r", "--recurse", is_flag=True, help="Recurse into subdirectories.")
@click.option("-k", "--skip-convert", is_flag=True, help="Do not transcode.")
@click.option("-m", "--skip-remux", is_flag=True, help="Do not remux.")
@click.option(
    "-D", "--from-db", is_flag=True, help="Select from the catalog without scanning."
)
@click.option("-C", "--clear-db", is_flag=True, help="Remove every catalog entry.")
@click.option("-S", "--show-db", is_flag=True, help="Show catalog contents.")
@click.option(
    "-E", "--list-extensions", is_flag=True, help="Show per-extension counts."
)
@click.option(
    "--retry-failed", is_flag=True, help="Retry files whose conversion failed."
)
@click.option(
    "--workers", type=click.IntRange(min=1), help="Concurrent probes while scanning."
)
@click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Catalog file.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Config file.",
)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Override log level.",
)
@click.option(
    "--log-file", type=click.Path(path_type=Path, dir_okay=False), help="Log file."
)
@click.option("--log-json", is_flag=True, help="Log as JSON lines.")
@click.version_option(__version__, "-V", "--version")
@click.pass_context
def main(
    ctx: click.Context,
    path: Path | None,
    all_types: bool,
    other_types: bool,
    extensions: tuple[str, ...],
    bitrate: int | None,
    max_bitrate: int | None,
    min_duration: float | None,
    max_duration: float | None,
    count: int | None,
    sort: str | None,
    display_limit: int | None,
    delete: bool,
    dry_run: bool,
    force: bool,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
    recurse: bool,
    skip_convert: bool,
    skip_remux: bool,
    from_db: bool,
    clear_db: bool,
    show_db: bool,
    list_extensions: bool,
    retry_failed: bool,
    workers: int | None,
    db_path: Path | None,
    config_path: Path | None,
    verbose: bool,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Convert video files to HEVC in MP4 using ffmpeg.

    Scans PATH (default: the current directory), records every video in the
    catalog, and converts the files that match the filters. Use --from-db to
    work from the catalog without scanning.
    """
    if sum((from_db, clear_db, show_db, list_extensions)) > 1:
        raise click.UsageError(
            "--from-db, --clear-db, --show-db and --list-extensions "
            "are mutually exclusive"
        )
    if extensions and (all_types or other_types):
        raise click.UsageError("--extension cannot be combined with --all/--other")
    if all_types and other_types:
        raise click.UsageError("--all and --other are mutually exclusive")

    try:
        config = get_config(config_path=config_path, database_path=db_path)
    except ConfigError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR)

    _configure_logging(config, verbose, log_level, log_file, log_json)
    logger.info(
        "vconvert %s starting: catalog=%s, config=%s",
        __version__,
        config.database_path,
        config.config_path,
    )

    try:
        options = resolve_options(
            config.convert,
            extensions=extensions,
            all_types=all_types,
            other_types=other_types,
            bitrate=bitrate,
            max_bitrate=max_bitrate,
            min_duration=min_duration,
            max_duration=max_duration,
            count=count,
            sort=sort,
            display_limit=display_limit,
            delete=delete,
            dry_run=dry_run,
            force=force,
            include=include,
            exclude=exclude,
            recurse=recurse,
            skip_convert=skip_convert,
            skip_remux=skip_remux,
            retry_failed=retry_failed,
        )
    except ConfigError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR)

    if path is not None and (from_db or clear_db or show_db or list_extensions):
        warning_output(f"PATH is ignored in catalog-only mode: {path}")

    services = _Services(config, ctx.obj or {})
    try:
        if clear_db:
            removed = services.open_catalog().clear()
            click.echo(f"Cleared {removed:,} entries from the catalog")
            code = ExitCode.SUCCESS
        elif show_db:
            code = _show(services, options)
        elif list_extensions:
            show_extensions(services.open_catalog().stats())
            code = ExitCode.SUCCESS
        else:
            root = None if from_db else (path or Path.cwd())
            code = _convert(services, options, root, workers or config.scan.workers)
    except ScanRootError as e:
        error_exit(str(e), ExitCode.TARGET_NOT_FOUND)
    except ToolNotFoundError as e:
        error_exit(str(e), ExitCode.TOOL_NOT_AVAILABLE)
    except CatalogError as e:
        error_exit(f"Catalog error: {e}", ExitCode.DATABASE_ERROR)
    except KeyboardInterrupt:
        click.echo("\nInterrupted.", err=True)
        sys.exit(ExitCode.INTERRUPTED)
    finally:
        services.close()

    ctx.exit(int(code))
