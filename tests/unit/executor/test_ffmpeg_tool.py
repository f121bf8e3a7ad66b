"""Unit tests for FFmpegTool."""

import threading
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from vconvert.domain import ConversionAction
from vconvert.executor import EncodeRequest, FFmpegTool
from vconvert.executor.ffmpeg import ProcessOutcome

FFMPEG = Path("/usr/bin/ffmpeg")


@pytest.fixture
def tool():
    return FFmpegTool(prober=MagicMock(), ffmpeg_path=FFMPEG)


def _request(temp_dir, action=ConversionAction.TRANSCODE, **kwargs):
    values = {
        "source": temp_dir / "movie.mkv",
        "output": temp_dir / ".movie.x265.vconvert-tmp.mp4",
        "action": action,
        "source_extension": "mkv",
        "quality": 30 if action is ConversionAction.TRANSCODE else None,
    }
    values.update(kwargs)
    return EncodeRequest(**values)


class TestCommandFor:
    def test_transcode(self, tool, temp_dir):
        cmd = tool.command_for(_request(temp_dir))
        assert cmd[0] == str(FFMPEG)
        assert "hevc_nvenc" in cmd

    def test_transcode_without_quality(self, tool, temp_dir):
        with pytest.raises(ValueError, match="quality"):
            tool.command_for(_request(temp_dir, quality=None))

    def test_rename_not_supported(self, tool, temp_dir):
        with pytest.raises(ValueError, match="cannot perform"):
            tool.command_for(_request(temp_dir, action=ConversionAction.RENAME))


class TestTranscode:
    """Tests for FFmpegTool.transcode with the process runner patched."""

    def test_success_on_first_attempt(self, tool, temp_dir):
        with patch.object(
            tool, "_run_ffmpeg", return_value=ProcessOutcome(0, ["frame=1\n"])
        ) as run:
            result = tool.transcode(_request(temp_dir))

        assert result.success
        assert result.error is None
        assert run.call_count == 1

    def test_hardware_failure_retries_in_software(self, tool, temp_dir):
        outcomes = [ProcessOutcome(1, ["CUDA error\n"]), ProcessOutcome(0)]
        with patch.object(tool, "_run_ffmpeg", side_effect=outcomes) as run:
            result = tool.transcode(_request(temp_dir))

        assert result.success
        assert run.call_count == 2
        second_cmd = run.call_args_list[1].args[0]
        assert "-vf" not in second_cmd
        assert result.command == second_cmd

    def test_software_failure_not_retried(self, tool, temp_dir):
        request = _request(temp_dir, hardware_accel=False)
        with patch.object(
            tool, "_run_ffmpeg", return_value=ProcessOutcome(1, ["bad input\n"])
        ) as run:
            result = tool.transcode(request)

        assert not result.success
        assert run.call_count == 1
        assert result.error == "ffmpeg exited with code 1: bad input"

    def test_remux_failure_retries_with_aac(self, tool, temp_dir):
        outcomes = [ProcessOutcome(1), ProcessOutcome(0)]
        request = _request(temp_dir, action=ConversionAction.REMUX)
        with patch.object(tool, "_run_ffmpeg", side_effect=outcomes) as run:
            result = tool.transcode(request)

        assert result.success
        second_cmd = run.call_args_list[1].args[0]
        assert second_cmd[second_cmd.index("-c:a") + 1] == "aac"

    def test_failure_removes_partial_output(self, tool, temp_dir):
        request = _request(temp_dir, hardware_accel=False)
        request.output.write_bytes(b"partial")
        with patch.object(tool, "_run_ffmpeg", return_value=ProcessOutcome(1)):
            result = tool.transcode(request)

        assert not result.success
        assert result.error == "ffmpeg exited with code 1"
        assert not request.output.exists()

    def test_cancelled_is_not_retried(self, tool, temp_dir):
        cancel = threading.Event()
        cancel.set()
        with patch.object(
            tool, "_run_ffmpeg", return_value=ProcessOutcome(-15, cancelled=True)
        ) as run:
            result = tool.transcode(_request(temp_dir), cancel=cancel)

        assert run.call_count == 1
        assert result.cancelled
        assert result.error == "cancelled by operator"

    def test_timeout_message(self, tool, temp_dir):
        request = _request(temp_dir, hardware_accel=False, timeout=30)
        with patch.object(
            tool, "_run_ffmpeg", return_value=ProcessOutcome(-15, timed_out=True)
        ):
            result = tool.transcode(request)

        assert not result.success
        assert result.error == "timed out after 30s"


class TestRunFfmpeg:
    def test_missing_executable(self, temp_dir):
        tool = FFmpegTool(prober=MagicMock(), ffmpeg_path=temp_dir / "no-ffmpeg")
        outcome = tool._run_ffmpeg([str(temp_dir / "no-ffmpeg")], "test")

        assert not outcome.success
        assert outcome.return_code == -1
