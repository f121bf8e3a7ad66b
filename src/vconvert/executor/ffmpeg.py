"""FFmpeg implementation of the MediaTool capability."""

from __future__ import annotations

import logging
import queue
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path

from vconvert.domain import ConversionAction, ProbeResult
from vconvert.executor.commands import build_remux_command, build_transcode_command
from vconvert.executor.interface import EncodeRequest, EncodeResult, require_tool
from vconvert.executor.validation import cleanup_temp_file
from vconvert.introspector.interface import MediaProber

logger = logging.getLogger(__name__)

# Lines of ffmpeg stderr kept for failure diagnostics
STDERR_TAIL_LINES = 20


@dataclass
class ProcessOutcome:
    """Raw result of one ffmpeg process."""

    return_code: int
    stderr_lines: list[str] = field(default_factory=list)
    cancelled: bool = False
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.return_code == 0 and not self.cancelled and not self.timed_out


class FFmpegTool:
    """Runs ffmpeg for transcodes and remuxes, and ffprobe for verification.

    A failed hardware transcode is retried once without the CUDA filter
    chain. A failed remux is retried once with AAC audio, for sources whose
    audio codec MP4 cannot carry.
    """

    STDERR_DRAIN_TIMEOUT: float = 5.0
    POLL_INTERVAL: float = 0.5

    def __init__(self, prober: MediaProber, ffmpeg_path: Path | None = None) -> None:
        """Initialize the tool.

        Args:
            prober: Prober used for ``probe`` (output verification).
            ffmpeg_path: Explicit ffmpeg path; resolved lazily otherwise.
        """
        self._prober = prober
        self._tool_path = ffmpeg_path

    @property
    def tool_path(self) -> Path:
        """Path to ffmpeg, verifying availability.

        Raises:
            ToolNotFoundError: If ffmpeg is not available.
        """
        if self._tool_path is None:
            self._tool_path = require_tool("ffmpeg")
        return self._tool_path

    def probe(self, path: Path) -> ProbeResult:
        return self._prober.probe(path)

    def command_for(self, request: EncodeRequest) -> list[str]:
        if request.action is ConversionAction.REMUX:
            return build_remux_command(self.tool_path, request.source, request.output)
        if request.action is ConversionAction.TRANSCODE:
            if request.quality is None:
                raise ValueError("TRANSCODE request requires a quality level")
            return build_transcode_command(
                self.tool_path,
                request.source,
                request.output,
                request.quality,
                request.source_extension,
                hardware_accel=request.hardware_accel,
            )
        raise ValueError(f"ffmpeg cannot perform {request.action.value}")

    def _fallback_command(self, request: EncodeRequest) -> list[str] | None:
        """Second attempt after a failure, or None if there is none."""
        if request.action is ConversionAction.REMUX:
            return build_remux_command(
                self.tool_path, request.source, request.output, reencode_audio=True
            )
        if request.action is ConversionAction.TRANSCODE and request.hardware_accel:
            return build_transcode_command(
                self.tool_path,
                request.source,
                request.output,
                request.quality or 0,
                request.source_extension,
                hardware_accel=False,
            )
        return None

    def transcode(
        self, request: EncodeRequest, cancel: threading.Event | None = None
    ) -> EncodeResult:
        """Run ffmpeg for a request, retrying once with the fallback command.

        The output file is removed whenever the run does not succeed.

        Args:
            request: What to encode and where.
            cancel: Event that terminates the running process when set.

        Returns:
            EncodeResult of the last attempt.
        """
        cmd = self.command_for(request)
        description = f"{request.action.value} {request.source.name}"
        outcome = self._run_ffmpeg(cmd, description, request.timeout, cancel)

        if not outcome.success and not outcome.cancelled:
            fallback = self._fallback_command(request)
            if fallback is not None:
                logger.warning(
                    "%s failed (exit %d), retrying with fallback settings",
                    description,
                    outcome.return_code,
                    extra={"returncode": outcome.return_code},
                )
                cleanup_temp_file(request.output)
                cmd = fallback
                outcome = self._run_ffmpeg(cmd, description, request.timeout, cancel)

        tail = outcome.stderr_lines[-STDERR_TAIL_LINES:]
        if outcome.success:
            return EncodeResult(
                success=True, return_code=0, command=cmd, stderr_tail=tail
            )

        cleanup_temp_file(request.output)
        if outcome.cancelled:
            error = "cancelled by operator"
        elif outcome.timed_out:
            error = f"timed out after {request.timeout}s"
        else:
            last_line = tail[-1].strip() if tail else ""
            error = f"ffmpeg exited with code {outcome.return_code}"
            if last_line:
                error = f"{error}: {last_line}"
        return EncodeResult(
            success=False,
            return_code=outcome.return_code,
            command=cmd,
            stderr_tail=tail,
            error=error,
            cancelled=outcome.cancelled,
        )

    def _run_ffmpeg(
        self,
        cmd: list[str],
        description: str,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> ProcessOutcome:
        """Run an FFmpeg command with threaded stderr reading.

        The process runs in its own session so a terminal Ctrl+C reaches
        vconvert only; termination is driven by ``cancel`` and ``timeout``.

        Args:
            cmd: FFmpeg command arguments.
            description: Description for logging.
            timeout: Maximum seconds for the process. None = no limit.
            cancel: Terminates the process when set.

        Returns:
            ProcessOutcome with exit code and captured stderr.
        """
        logger.debug("Running: %s", " ".join(cmd))
        try:
            process = subprocess.Popen(  # nosec B603 - argument list, no shell
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
                start_new_session=True,
            )
        except OSError as e:
            logger.error("Could not start ffmpeg for %s: %s", description, e)
            return ProcessOutcome(return_code=-1, stderr_lines=[str(e)])

        stderr_output: list[str] = []
        stderr_queue: queue.Queue[str | None] = queue.Queue()

        def read_stderr() -> None:
            """Read stderr lines and put them in the queue."""
            try:
                assert process.stderr is not None
                for line in process.stderr:
                    stderr_queue.put(line)
            except (ValueError, OSError) as e:
                # Pipe closed or process terminated
                logger.debug("Stderr reader stopped: %s", e)
            finally:
                stderr_queue.put(None)

        reader_thread = threading.Thread(target=read_stderr, daemon=True)
        reader_thread.start()

        cancelled = False
        timed_out = False
        start_time = time.monotonic()

        while process.poll() is None:
            if cancel is not None and cancel.is_set():
                cancelled = True
                break
            if timeout is not None and time.monotonic() - start_time >= timeout:
                timed_out = True
                break
            try:
                line = stderr_queue.get(timeout=self.POLL_INTERVAL)
            except queue.Empty:
                continue
            if line is None:
                # stderr closed; the process is exiting
                process.wait()
                break
            stderr_output.append(line)

        if cancelled or timed_out:
            reason = "cancelled" if cancelled else f"timed out after {timeout}s"
            logger.warning("%s %s, stopping ffmpeg", description, reason)
            process.terminate()
            try:
                process.wait(timeout=self.STDERR_DRAIN_TIMEOUT)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()

        reader_thread.join(timeout=self.STDERR_DRAIN_TIMEOUT)
        while True:
            try:
                line = stderr_queue.get_nowait()
            except queue.Empty:
                break
            if line is None:
                break
            stderr_output.append(line)

        return_code = process.wait()
        if return_code != 0 and not (cancelled or timed_out):
            logger.debug(
                "%s exited with %d: %s",
                description,
                return_code,
                "".join(stderr_output[-5:]).strip(),
                extra={"returncode": return_code},
            )
        return ProcessOutcome(
            return_code=return_code,
            stderr_lines=stderr_output,
            cancelled=cancelled,
            timed_out=timed_out,
        )
