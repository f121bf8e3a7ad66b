"""MediaProber interface for video metadata extraction."""

from pathlib import Path
from typing import Protocol

from vconvert.domain import ProbeResult


class MediaProber(Protocol):
    """Protocol for metadata extraction implementations.

    Implementations run an external inspection tool and must never modify
    the file they inspect.
    """

    def probe(self, path: Path) -> ProbeResult:
        """Extract metadata from a video file.

        Args:
            path: Path to the video file.

        Returns:
            ProbeResult with the fields the tool reported.

        Raises:
            ProbeError: If the file cannot be probed.
        """
        ...
