"""External media tool execution: ffmpeg runs, output checks, disposal."""

from vconvert.executor.commands import (
    QUALITY_RETRY_STEP,
    build_remux_command,
    build_transcode_command,
    quality_level,
)
from vconvert.executor.disposal import DisposalResult, dispose_source
from vconvert.executor.ffmpeg import FFmpegTool
from vconvert.executor.interface import (
    EncodeRequest,
    EncodeResult,
    MediaTool,
    get_tool_path,
    require_tool,
)
from vconvert.executor.validation import (
    MIN_DURATION_RATIO,
    VerificationResult,
    check_disk_space,
    cleanup_temp_file,
    create_temp_output,
    promote_temp_output,
    verify_output,
)

__all__ = [
    "QUALITY_RETRY_STEP",
    "MIN_DURATION_RATIO",
    "DisposalResult",
    "EncodeRequest",
    "EncodeResult",
    "FFmpegTool",
    "MediaTool",
    "VerificationResult",
    "build_remux_command",
    "build_transcode_command",
    "check_disk_space",
    "cleanup_temp_file",
    "create_temp_output",
    "dispose_source",
    "get_tool_path",
    "promote_temp_output",
    "quality_level",
    "require_tool",
    "verify_output",
]
