"""Video discovery and catalog population."""

from vconvert.scanner.discovery import discover_videos, should_include_file
from vconvert.scanner.orchestrator import (
    ScannerOrchestrator,
    ScanResult,
    file_needs_rescan,
)

__all__ = [
    "ScanResult",
    "ScannerOrchestrator",
    "discover_videos",
    "file_needs_rescan",
    "should_include_file",
]
