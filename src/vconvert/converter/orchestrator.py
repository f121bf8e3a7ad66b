"""Conversion orchestrator: the per-record state machine.

Records are processed strictly one at a time. Each record ends in exactly
one catalog transition (CONVERTED, SKIPPED or FAILED) unless the run is a
dry run or the encoder is aborted, in which case the status is left alone.
A failure on one record never stops the batch.

Cancellation is two-stage. The first SIGINT asks the run to stop before the
next record; the encoder already running is allowed to finish. A second
SIGINT terminates that encoder and discards its partial output.
"""

from __future__ import annotations

import logging
import os
import shlex
import signal
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from vconvert.converter.decisions import (
    ActionDecision,
    ConversionSettings,
    decide_action,
)
from vconvert.converter.stats import RunStats
from vconvert.core.codecs import target_output_path
from vconvert.domain import ConversionAction, ConversionStatus, VideoRecord
from vconvert.exceptions import ConversionError
from vconvert.executor.commands import QUALITY_RETRY_STEP, quality_level
from vconvert.executor.disposal import dispose_source
from vconvert.executor.interface import EncodeRequest
from vconvert.executor.validation import (
    VerificationResult,
    check_disk_space,
    cleanup_temp_file,
    create_temp_output,
    promote_temp_output,
    verify_output,
)
from vconvert.logging import file_context

if TYPE_CHECKING:
    from vconvert.db import Catalog
    from vconvert.executor.interface import MediaTool

logger = logging.getLogger(__name__)

_DONE_NOTES = {
    ConversionAction.TRANSCODE: "transcoded to {name}",
    ConversionAction.REMUX: "remuxed to {name}",
    ConversionAction.RENAME: "renamed to {name}",
}


class EncodeAborted(Exception):
    """The running encoder was terminated by a second interrupt."""

    pass


@dataclass(frozen=True)
class RecordOutcome:
    """What happened to one record during a run."""

    path: str
    action: ConversionAction
    status: ConversionStatus
    reason: str
    output_path: Path | None = None


OutcomeCallback = Callable[[int, int, RecordOutcome], None]


class ConversionOrchestrator:
    """Drives the media tool over a work set and records the outcomes.

    Usage:
        orchestrator = ConversionOrchestrator(catalog, FFmpegTool(prober), settings)
        stats = orchestrator.run(work_set)
    """

    def __init__(
        self,
        catalog: Catalog,
        tool: MediaTool,
        settings: ConversionSettings | None = None,
        on_outcome: OutcomeCallback | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            catalog: Catalog receiving status updates after each record.
            tool: Media tool used to encode and verify.
            settings: Run-wide switches.
            on_outcome: Called with (index, total, outcome) after each record.
        """
        self.catalog = catalog
        self.tool = tool
        self.settings = settings or ConversionSettings()
        self.on_outcome = on_outcome
        self._stop_event = threading.Event()
        self._abort_event = threading.Event()

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def _create_signal_handler(self) -> Callable[[int, object], None]:
        def handler(signum: int, frame: object) -> None:
            if self._stop_event.is_set():
                logger.warning("Second interrupt, aborting current file...")
                self._abort_event.set()
            else:
                logger.warning(
                    "Interrupt received, finishing current file "
                    "(press Ctrl+C again to abort it)"
                )
                self._stop_event.set()

        return handler

    def interrupt(self) -> None:
        """Stop before the next record."""
        self._stop_event.set()

    def abort(self) -> None:
        """Stop now, terminating the running encoder."""
        self._stop_event.set()
        self._abort_event.set()

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def run(
        self,
        records: Iterable[VideoRecord],
        *,
        install_signal_handler: bool = True,
    ) -> RunStats:
        """Process ``records`` in order.

        Args:
            records: Work set, already filtered and sorted.
            install_signal_handler: Install the two-stage SIGINT handler for
                the duration of the run (main thread only).

        Returns:
            RunStats for the run.

        Raises:
            CatalogError: If a status update cannot be written.
            ToolNotFoundError: If the encoder is not available.
        """
        work = list(records)
        stats = RunStats()
        self._stop_event.clear()
        self._abort_event.clear()

        old_handler = None
        on_main_thread = threading.current_thread() is threading.main_thread()
        if install_signal_handler and on_main_thread:
            old_handler = signal.signal(signal.SIGINT, self._create_signal_handler())

        try:
            for index, record in enumerate(work, start=1):
                if self._stop_event.is_set():
                    stats.interrupted = True
                    logger.info(
                        "Stopped, %d record(s) left unprocessed",
                        len(work) - index + 1,
                    )
                    break
                with file_context(record.path):
                    outcome = self._process_record(record, stats)
                if self.on_outcome is not None:
                    self.on_outcome(index, len(work), outcome)
        finally:
            if old_handler is not None:
                signal.signal(signal.SIGINT, old_handler)

        if self._stop_event.is_set():
            stats.interrupted = True
        logger.info(
            "Run finished: %d converted, %d remuxed, %d renamed, "
            "%d skipped, %d failed",
            stats.converted,
            stats.remuxed,
            stats.renamed,
            stats.skipped,
            stats.failed,
        )
        return stats

    def _process_record(self, record: VideoRecord, stats: RunStats) -> RecordOutcome:
        if record.status not in self.settings.eligible_statuses:
            logger.debug("Not eligible (status %s)", record.status.value)
            return RecordOutcome(
                record.path,
                ConversionAction.SKIP,
                record.status,
                f"status is {record.status.value}",
            )

        decision = decide_action(record, self.settings)
        try:
            with file_context(record.path, action=decision.action.value):
                return self._convert(record, decision, stats)
        except EncodeAborted:
            stats.interrupted = True
            self.catalog.set_note(record.path, "interrupted")
            return RecordOutcome(
                record.path, decision.action, record.status, "interrupted"
            )
        except ConversionError as e:
            logger.error(
                "%s failed: %s",
                decision.action.value,
                e.reason,
                extra={
                    "action": decision.action.value,
                    "status": ConversionStatus.FAILED.value,
                },
            )
            stats.record_failure(record.path, e.reason)
            if self.settings.dry_run:
                return RecordOutcome(
                    record.path, decision.action, record.status, e.reason
                )
            self.catalog.update_status(record.path, ConversionStatus.FAILED, e.reason)
            return RecordOutcome(
                record.path, decision.action, ConversionStatus.FAILED, e.reason
            )

    def _convert(
        self, record: VideoRecord, decision: ActionDecision, stats: RunStats
    ) -> RecordOutcome:
        source = Path(record.path)
        if not source.exists():
            raise ConversionError(source, "source file missing")

        if decision.skip:
            return self._skip(record, decision.action, decision.reason, stats)

        target = target_output_path(source)
        if target == source:
            return self._skip(
                record, decision.action, "output would replace source", stats
            )
        if target.exists() and not self.settings.force:
            return self._skip(record, decision.action, "output exists", stats)

        if self.settings.dry_run:
            return self._describe(record, decision, source, target, stats)
        if decision.action is ConversionAction.RENAME:
            return self._rename(record, source, target, stats)
        return self._encode(record, decision.action, source, target, stats)

    def _skip(
        self,
        record: VideoRecord,
        action: ConversionAction,
        reason: str,
        stats: RunStats,
    ) -> RecordOutcome:
        logger.info(
            "Skipping: %s", reason, extra={"status": ConversionStatus.SKIPPED.value}
        )
        stats.skipped += 1
        if self.settings.dry_run:
            return RecordOutcome(record.path, action, record.status, reason)
        self.catalog.update_status(record.path, ConversionStatus.SKIPPED, reason)
        return RecordOutcome(record.path, action, ConversionStatus.SKIPPED, reason)

    def _describe(
        self,
        record: VideoRecord,
        decision: ActionDecision,
        source: Path,
        target: Path,
        stats: RunStats,
    ) -> RecordOutcome:
        """Dry run: log what would happen and note it on the record."""
        if decision.action is ConversionAction.RENAME:
            logger.info("Would rename %s -> %s", source.name, target.name)
        else:
            request = self._request(record, source, target, decision.action)
            logger.info("Would run: %s", shlex.join(self.tool.command_for(request)))
        note = f"would {decision.action.value}"
        self.catalog.set_note(record.path, note)
        stats.dry_run += 1
        return RecordOutcome(record.path, decision.action, record.status, note, target)

    def _rename(
        self, record: VideoRecord, source: Path, target: Path, stats: RunStats
    ) -> RecordOutcome:
        try:
            os.replace(source, target)
        except OSError as e:
            raise ConversionError(source, f"rename failed: {e}") from e
        logger.info(
            "Renamed to %s",
            target.name,
            extra={"status": ConversionStatus.CONVERTED.value},
        )
        note = _DONE_NOTES[ConversionAction.RENAME].format(name=target.name)
        self.catalog.update_status(record.path, ConversionStatus.CONVERTED, note)
        stats.record_success(ConversionAction.RENAME, 0, 0)
        return RecordOutcome(
            record.path,
            ConversionAction.RENAME,
            ConversionStatus.CONVERTED,
            note,
            target,
        )

    def _request(
        self,
        record: VideoRecord,
        source: Path,
        output: Path,
        action: ConversionAction,
        quality: int | None = None,
    ) -> EncodeRequest:
        if action is ConversionAction.TRANSCODE and quality is None:
            quality = quality_level(record.bitrate_kbps, record.width, record.height)
        return EncodeRequest(
            source=source,
            output=output,
            action=action,
            source_extension=record.container_extension,
            quality=quality,
            hardware_accel=self.settings.hardware_accel,
            timeout=self.settings.encoder_timeout,
        )

    def _encode(
        self,
        record: VideoRecord,
        action: ConversionAction,
        source: Path,
        target: Path,
        stats: RunStats,
    ) -> RecordOutcome:
        try:
            original_size = source.stat().st_size
        except OSError as e:
            raise ConversionError(source, f"cannot stat source: {e}") from e

        space_error = check_disk_space(source, original_size)
        if space_error:
            raise ConversionError(source, space_error)

        temp_output = create_temp_output(target)
        cleanup_temp_file(temp_output)

        request = self._request(record, source, temp_output, action)
        verification = self._encode_and_verify(record, request)

        if (
            action is ConversionAction.TRANSCODE
            and verification.size_bytes > original_size
            and request.quality is not None
        ):
            retry_quality = request.quality + QUALITY_RETRY_STEP
            logger.warning(
                "Output (%d bytes) is larger than source (%d bytes), "
                "re-encoding at quality %d",
                verification.size_bytes,
                original_size,
                retry_quality,
            )
            cleanup_temp_file(temp_output)
            request = self._request(
                record, source, temp_output, action, quality=retry_quality
            )
            verification = self._encode_and_verify(record, request)

        try:
            promote_temp_output(temp_output, target)
        except OSError as e:
            cleanup_temp_file(temp_output)
            raise ConversionError(source, f"cannot move output into place: {e}") from e

        note = _DONE_NOTES[action].format(name=target.name)
        self.catalog.update_status(record.path, ConversionStatus.CONVERTED, note)
        stats.record_success(action, original_size, verification.size_bytes)
        logger.info(
            "%s: %d -> %d bytes",
            note,
            original_size,
            verification.size_bytes,
            extra={
                "status": ConversionStatus.CONVERTED.value,
                "quality": request.quality,
                "source_bytes": original_size,
                "output_bytes": verification.size_bytes,
            },
        )

        disposal = dispose_source(source, self.settings.disposal)
        if not disposal.success:
            note = f"{note}; {disposal.error_message}"
            self.catalog.set_note(record.path, note)

        return RecordOutcome(
            record.path, action, ConversionStatus.CONVERTED, note, target
        )

    def _encode_and_verify(
        self, record: VideoRecord, request: EncodeRequest
    ) -> VerificationResult:
        """Run one encode and check its output.

        Raises:
            EncodeAborted: If the encoder was terminated by an abort.
            ConversionError: If the encoder failed or the output is unusable.
        """
        if request.quality is not None:
            logger.info("Transcoding at quality %d", request.quality)
        else:
            logger.info("Remuxing")

        result = self.tool.transcode(request, cancel=self._abort_event)
        if result.cancelled:
            cleanup_temp_file(request.output)
            raise EncodeAborted
        if not result.success:
            cleanup_temp_file(request.output)
            raise ConversionError(request.source, result.error or "encoder failed")

        verification = verify_output(
            self.tool, request.output, record.duration_seconds
        )
        if not verification.valid:
            cleanup_temp_file(request.output)
            raise ConversionError(
                request.source, verification.error or "output verification failed"
            )
        return verification
