"""Scanner orchestrator: discovery, parallel probing and catalog upserts."""

from __future__ import annotations

import logging
import signal
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from vconvert.core.codecs import DEFAULT_EXTENSIONS
from vconvert.domain import ConversionStatus, ProbeResult, VideoRecord
from vconvert.exceptions import ProbeError
from vconvert.logging import file_context
from vconvert.scanner.discovery import discover_videos

if TYPE_CHECKING:
    from vconvert.db import Catalog
    from vconvert.introspector.interface import MediaProber

logger = logging.getLogger(__name__)

# Statuses a successful re-probe of a changed file resets to PENDING
_RESET_ON_CHANGE = frozenset({ConversionStatus.FAILED, ConversionStatus.UNPROBED})


@dataclass
class ScannedFile:
    """A discovered file with the stat data used for change detection."""

    path: Path
    size: int
    modified_at: str  # ISO-8601 UTC


@dataclass
class ScanResult:
    """Outcome of scanning one root."""

    files_found: int = 0
    files_probed: int = 0
    files_unchanged: int = 0
    files_failed: int = 0
    paths: list[str] = field(default_factory=list)
    errors: list[tuple[str, str]] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    interrupted: bool = False


def mtime_to_iso(mtime: float) -> str:
    """Convert an ``st_mtime`` value to an ISO-8601 UTC string."""
    return datetime.fromtimestamp(mtime, tz=timezone.utc).isoformat()


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def file_needs_rescan(
    existing_record: VideoRecord | None,
    current_mtime: str,
    current_size: int,
) -> bool:
    """Determine if a file needs to be probed again.

    Uses mtime + size comparison. Records whose last probe failed, and
    records that were never probed, always need a rescan.

    Args:
        existing_record: Catalog record (None if new file).
        current_mtime: Current modification time as ISO-8601 UTC.
        current_size: Current file size in bytes.

    Returns:
        True if the file must be probed, False if unchanged.
    """
    if existing_record is None:
        return True
    if existing_record.probe_error or existing_record.codec is None:
        return True
    if existing_record.modified_at != current_mtime:
        return True
    if existing_record.size_bytes != current_size:
        return True
    return False


def status_after_rescan(existing_record: VideoRecord | None) -> ConversionStatus | None:
    """Status to write when a changed file was probed successfully.

    FAILED and UNPROBED records go back to PENDING so the changed file is
    retried; every other status is preserved (None).
    """
    if existing_record is not None and existing_record.status in _RESET_ON_CHANGE:
        return ConversionStatus.PENDING
    return None


class ScannerOrchestrator:
    """Coordinates file discovery, probing and catalog writes.

    Probes run on a bounded thread pool. Results are written from the
    calling thread through the catalog's write lock, so the catalog only
    ever has one writer.
    """

    def __init__(
        self,
        catalog: Catalog,
        prober: MediaProber,
        *,
        extensions: Iterable[str] | None = None,
        workers: int = 4,
        follow_symlinks: bool = False,
    ) -> None:
        """Initialize the scanner.

        Args:
            catalog: Catalog receiving the upserts.
            prober: Metadata extractor, called from worker threads.
            extensions: Extensions to scan for.
            workers: Maximum concurrent probes.
            follow_symlinks: Whether to follow symbolic links.
        """
        self.catalog = catalog
        self.prober = prober
        self.extensions = tuple(extensions or DEFAULT_EXTENSIONS)
        self.workers = max(1, workers)
        self.follow_symlinks = follow_symlinks
        self._interrupt_event = threading.Event()

    def _create_signal_handler(self) -> Callable[[int, object], None]:
        """Create a signal handler that only sets the interrupt flag."""

        def handler(signum: int, frame: object) -> None:
            logger.info("Interrupt received, finishing probes in flight...")
            self._interrupt_event.set()

        return handler

    def _is_interrupted(self) -> bool:
        return self._interrupt_event.is_set()

    def interrupt(self) -> None:
        """Request the scan to stop after the probes in flight."""
        self._interrupt_event.set()

    def _probe(self, scanned: ScannedFile) -> ProbeResult:
        with file_context(scanned.path, action="probe"):
            logger.debug("Probing")
            return self.prober.probe(scanned.path)

    def scan(
        self,
        root: Path,
        *,
        recursive: bool = False,
        include: Iterable[str] | None = None,
        exclude: Iterable[str] | None = None,
        install_signal_handler: bool = True,
    ) -> ScanResult:
        """Scan ``root`` and bring the catalog up to date.

        Args:
            root: Directory (or single file) to scan.
            recursive: Descend into subdirectories.
            include: Name patterns a file must match one of.
            exclude: Name patterns that drop a file.
            install_signal_handler: Install a SIGINT handler for the
                duration of the scan (only possible on the main thread).

        Returns:
            ScanResult with counts, discovered paths and per-file errors.

        Raises:
            ScanRootError: If ``root`` is missing or unreadable.
            CatalogError: If the catalog cannot be written.
        """
        self._interrupt_event.clear()
        start_time = time.monotonic()
        result = ScanResult()

        old_handler = None
        on_main_thread = threading.current_thread() is threading.main_thread()
        if install_signal_handler and on_main_thread:
            old_handler = signal.signal(signal.SIGINT, self._create_signal_handler())

        try:
            to_probe: list[ScannedFile] = []
            for path in discover_videos(
                root,
                recursive=recursive,
                extensions=self.extensions,
                include=include,
                exclude=exclude,
                follow_symlinks=self.follow_symlinks,
            ):
                if self._is_interrupted():
                    break
                try:
                    stat = path.stat()
                except OSError as e:
                    logger.warning("Cannot stat %s: %s", path, e)
                    result.errors.append((str(path), str(e)))
                    continue

                scanned = ScannedFile(
                    path=path,
                    size=stat.st_size,
                    modified_at=mtime_to_iso(stat.st_mtime),
                )
                result.files_found += 1
                result.paths.append(str(path))

                existing = self.catalog.get(str(path))
                if file_needs_rescan(existing, scanned.modified_at, scanned.size):
                    to_probe.append(scanned)
                else:
                    result.files_unchanged += 1

            if not self._is_interrupted():
                self._probe_and_persist(to_probe, result)
        finally:
            if old_handler is not None:
                signal.signal(signal.SIGINT, old_handler)

        result.interrupted = self._is_interrupted()
        result.elapsed_seconds = time.monotonic() - start_time
        logger.info(
            "Scan of %s: %d found, %d probed, %d unchanged, %d failed (%.1fs)",
            root,
            result.files_found,
            result.files_probed,
            result.files_unchanged,
            result.files_failed,
            result.elapsed_seconds,
        )
        return result

    def _probe_and_persist(self, files: list[ScannedFile], result: ScanResult) -> None:
        """Probe files on the pool and upsert each result as it completes."""
        if not files:
            return

        with ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="vconvert-probe"
        ) as pool:
            pending: dict[Future[ProbeResult], ScannedFile] = {}
            queue = list(reversed(files))

            # Keep at most ``workers`` probes in flight so an interrupt
            # leaves little queued work behind
            while queue or pending:
                while (
                    queue
                    and len(pending) < self.workers
                    and not self._is_interrupted()
                ):
                    scanned = queue.pop()
                    pending[pool.submit(self._probe, scanned)] = scanned

                if not pending:
                    break

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    scanned = pending.pop(future)
                    self._persist(scanned, future, result)

    def _persist(
        self, scanned: ScannedFile, future: Future[ProbeResult], result: ScanResult
    ) -> None:
        scanned_at = now_iso()
        try:
            probe = future.result()
        except ProbeError as e:
            logger.warning("Probe failed for %s: %s", scanned.path, e)
            result.files_failed += 1
            result.errors.append((str(scanned.path), str(e)))
            self.catalog.mark_probe_failed(
                scanned.path, str(e), scanned_at, size_bytes=scanned.size
            )
            return

        existing = self.catalog.get(str(scanned.path))
        record = VideoRecord.from_probe(
            probe, modified_at=scanned.modified_at, scanned_at=scanned_at
        )
        # Change detection compares against stat, not the container header
        record = replace(record, size_bytes=scanned.size)
        self.catalog.upsert(record, status=status_after_rescan(existing))
        result.files_probed += 1
