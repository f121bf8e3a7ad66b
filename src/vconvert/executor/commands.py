"""FFmpeg command building for HEVC conversion.

Pure functions: no subprocesses, no filesystem access.
"""

from __future__ import annotations

from pathlib import Path

from vconvert.core.codecs import AUDIO_COPY_CONTAINERS

# Hardware encoder settings
VIDEO_ENCODER = "hevc_nvenc"
ENCODER_PRESET = "p5"
LOOKAHEAD_FRAMES = "48"
CUDA_FILTER_CHAIN = "hwupload_cuda,scale_cuda=format=nv12"
FALLBACK_AUDIO_BITRATE = "128k"

# Reconvert step used when an output comes out larger than its source
QUALITY_RETRY_STEP = 2


def quality_level(
    bitrate_kbps: int | None, width: int | None, height: int | None
) -> int:
    """Pick the constant-quality level for a source.

    Higher bitrates get a lower (better) level. 4K sources use a separate,
    slightly higher table because they compress better per pixel.

    Args:
        bitrate_kbps: Source video bitrate, None if unknown.
        width: Source width in pixels.
        height: Source height in pixels.

    Returns:
        The ``-cq`` value to pass to the encoder.
    """
    mbps = (bitrate_kbps or 0) / 1000
    is_4k = max(width or 0, height or 0) >= 2160

    if is_4k:
        if mbps > 26:
            return 30
        if mbps > 18:
            return 31
        if mbps > 10:
            return 32
        return 33

    if mbps > 16:
        return 28
    if mbps > 12:
        return 29
    if mbps > 6:
        return 30
    return 31


def _audio_args(source_extension: str, force_reencode: bool = False) -> list[str]:
    if not force_reencode and source_extension.lower() in AUDIO_COPY_CONTAINERS:
        return ["-c:a", "copy"]
    return ["-c:a", "aac", "-b:a", FALLBACK_AUDIO_BITRATE]


def build_transcode_command(
    ffmpeg: Path,
    source: Path,
    output: Path,
    quality: int,
    source_extension: str,
    hardware_accel: bool = True,
) -> list[str]:
    """Build the ffmpeg arguments for a full HEVC re-encode.

    Args:
        ffmpeg: ffmpeg executable.
        source: Input file.
        output: Output file.
        quality: Constant-quality level (see ``quality_level``).
        source_extension: Source container; mp4/mkv audio is copied.
        hardware_accel: Upload frames to the GPU and scale there.

    Returns:
        Argument list suitable for subprocess.
    """
    cmd = [
        str(ffmpeg),
        "-hide_banner",
        "-nostdin",
        "-stats",
        "-loglevel",
        "info",
        "-y",
        "-probesize",
        "50M",
        "-analyzeduration",
        "1M",
    ]
    if hardware_accel:
        cmd.extend(["-extra_hw_frames", "64"])
    cmd.extend(["-i", str(source)])
    if hardware_accel:
        cmd.extend(["-vf", CUDA_FILTER_CHAIN])
    cmd.extend(
        [
            "-c:v",
            VIDEO_ENCODER,
            "-rc:v",
            "vbr",
            "-cq:v",
            str(quality),
            "-preset",
            ENCODER_PRESET,
            "-b:v",
            "0",
            "-rc-lookahead",
            LOOKAHEAD_FRAMES,
            "-spatial_aq",
            "1",
            "-temporal_aq",
            "1",
            "-tag:v",
            "hvc1",
        ]
    )
    cmd.extend(_audio_args(source_extension))
    cmd.append(str(output))
    return cmd


def build_remux_command(
    ffmpeg: Path,
    source: Path,
    output: Path,
    reencode_audio: bool = False,
) -> list[str]:
    """Build the ffmpeg arguments for a container change to MP4.

    Copies the first video stream and all audio streams; drops subtitles,
    attachments and data streams, which MP4 cannot always carry.

    Args:
        ffmpeg: ffmpeg executable.
        source: Input file.
        output: Output file.
        reencode_audio: Convert audio to AAC instead of copying it.

    Returns:
        Argument list suitable for subprocess.
    """
    cmd = [
        str(ffmpeg),
        "-hide_banner",
        "-nostdin",
        "-loglevel",
        "error",
        "-stats",
        "-y",
        "-i",
        str(source),
        "-map",
        "0:v:0",
        "-map",
        "0:a?",
        "-map",
        "-0:t",
        "-map",
        "-0:d",
        "-sn",
        "-c:v",
        "copy",
    ]
    if reencode_audio:
        cmd.extend(["-c:a", "aac", "-b:a", FALLBACK_AUDIO_BITRATE])
    else:
        cmd.extend(["-c:a", "copy"])
    cmd.extend(["-movflags", "+faststart", "-tag:v", "hvc1", str(output)])
    return cmd
