"""Conversion of selected catalog records to HEVC/MP4."""

from vconvert.converter.decisions import (
    ActionDecision,
    ConversionSettings,
    decide_action,
)
from vconvert.converter.orchestrator import (
    ConversionOrchestrator,
    EncodeAborted,
    RecordOutcome,
)
from vconvert.converter.stats import RunStats

__all__ = [
    "ActionDecision",
    "ConversionOrchestrator",
    "ConversionSettings",
    "EncodeAborted",
    "RecordOutcome",
    "RunStats",
    "decide_action",
]
