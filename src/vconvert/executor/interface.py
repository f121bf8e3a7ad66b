"""Media tool capability interface and tool lookup.

The converter talks to external media tools only through ``MediaTool``, so
it can be driven by a fake in tests without spawning processes.
"""

from __future__ import annotations

import os
import shutil
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from vconvert.domain import ConversionAction, ProbeResult
from vconvert.exceptions import ToolNotFoundError


@dataclass(frozen=True)
class EncodeRequest:
    """Everything needed to produce one output file.

    Attributes:
        source: Input file.
        output: File the encoder writes (a temporary path, renamed later).
        action: TRANSCODE or REMUX.
        source_extension: Container extension of the source.
        quality: Constant-quality level for TRANSCODE, None for REMUX.
        hardware_accel: Use the CUDA upload/scale filter chain.
        timeout: Seconds before the encoder is killed, None for no limit.
    """

    source: Path
    output: Path
    action: ConversionAction
    source_extension: str
    quality: int | None = None
    hardware_accel: bool = True
    timeout: float | None = None


@dataclass(frozen=True)
class EncodeResult:
    """Outcome of one encoder run (including any internal retry)."""

    success: bool
    return_code: int
    command: list[str] = field(default_factory=list)
    stderr_tail: list[str] = field(default_factory=list)
    error: str | None = None
    cancelled: bool = False


class MediaTool(Protocol):
    """Capability interface for probing and encoding."""

    def probe(self, path: Path) -> ProbeResult:
        """Extract metadata; raises ProbeError on failure."""
        ...

    def transcode(
        self, request: EncodeRequest, cancel: threading.Event | None = None
    ) -> EncodeResult:
        """Run the encoder for ``request``.

        Setting ``cancel`` terminates the running process; the partial output
        is removed and the result is marked cancelled.
        """
        ...

    def command_for(self, request: EncodeRequest) -> list[str]:
        """Return the command ``transcode`` would run first, for dry runs."""
        ...


def get_tool_path(name: str, configured: Path | None = None) -> Path | None:
    """Resolve an external tool.

    Precedence: explicit ``configured`` path, ``VCONVERT_<NAME>_PATH``,
    then the system PATH.

    Args:
        name: Tool name, e.g. "ffmpeg".
        configured: Path from the config file or CLI.

    Returns:
        Path to the executable, or None if not found.
    """
    if configured is not None:
        return configured
    env_value = os.environ.get(f"VCONVERT_{name.upper()}_PATH")
    if env_value:
        return Path(env_value).expanduser()
    found = shutil.which(name)
    return Path(found) if found else None


def require_tool(name: str, configured: Path | None = None) -> Path:
    """Resolve an external tool or raise ToolNotFoundError."""
    path = get_tool_path(name, configured)
    if path is None:
        raise ToolNotFoundError(name)
    return path
