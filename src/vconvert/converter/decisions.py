"""Per-record conversion decisions.

Pure functions: the decision depends only on the record and the settings,
never on the filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from vconvert.core.codecs import TARGET_EXTENSION, has_target_label, is_target_codec
from vconvert.domain import (
    ConversionAction,
    ConversionStatus,
    DisposalMode,
    VideoRecord,
)


@dataclass(frozen=True)
class ConversionSettings:
    """Run-wide switches for the conversion orchestrator.

    Attributes:
        force: Overwrite existing output files.
        dry_run: Describe the work without running anything.
        disposal: What to do with a source after a verified conversion.
        skip_convert: Treat TRANSCODE decisions as skips.
        skip_remux: Treat REMUX decisions as skips.
        retry_failed: Process FAILED records like PENDING ones.
        hardware_accel: Use the CUDA filter chain for transcodes.
        encoder_timeout: Seconds before an encoder is killed, None = no limit.
    """

    force: bool = False
    dry_run: bool = False
    disposal: DisposalMode = DisposalMode.TRASH
    skip_convert: bool = False
    skip_remux: bool = False
    retry_failed: bool = False
    hardware_accel: bool = True
    encoder_timeout: float | None = None

    @property
    def eligible_statuses(self) -> frozenset[ConversionStatus]:
        """Statuses the orchestrator will act on."""
        statuses = {ConversionStatus.PENDING, ConversionStatus.SKIPPED}
        if self.retry_failed:
            statuses.add(ConversionStatus.FAILED)
        return frozenset(statuses)


@dataclass(frozen=True)
class ActionDecision:
    """What to do with one record, and why."""

    action: ConversionAction
    reason: str

    @property
    def skip(self) -> bool:
        return self.action is ConversionAction.SKIP


def decide_action(
    record: VideoRecord, settings: ConversionSettings | None = None
) -> ActionDecision:
    """Decide how to bring a record to HEVC in an MP4 container.

    - HEVC in MP4 with the ``x265`` label: nothing to do.
    - HEVC in MP4 without the label: rename only.
    - HEVC in another container: remux (stream copy).
    - Anything else: transcode.

    Args:
        record: Catalog record with a known codec.
        settings: Skip switches; defaults apply when omitted.

    Returns:
        ActionDecision; ``reason`` is suitable for the record note.
    """
    settings = settings or ConversionSettings()
    is_mp4 = record.container_extension.lower() == TARGET_EXTENSION

    if is_target_codec(record.codec):
        if is_mp4:
            if has_target_label(Path(record.path)):
                return ActionDecision(ConversionAction.SKIP, "already converted")
            return ActionDecision(ConversionAction.RENAME, "hevc already, add label")
        if settings.skip_remux:
            return ActionDecision(ConversionAction.SKIP, "remux skipped")
        return ActionDecision(
            ConversionAction.REMUX, f"hevc in {record.container_extension}"
        )

    if settings.skip_convert:
        return ActionDecision(ConversionAction.SKIP, "transcode skipped")
    return ActionDecision(ConversionAction.TRANSCODE, f"codec {record.codec}")
