"""Unit tests for per-record conversion decisions."""

import pytest

from vconvert.converter import ConversionSettings, decide_action
from vconvert.domain import ConversionAction, ConversionStatus


class TestDecideAction:
    """Tests for decide_action."""

    def test_h264_is_transcoded(self, record_factory):
        decision = decide_action(record_factory("/v/a.mkv", codec="h264"))
        assert decision.action is ConversionAction.TRANSCODE
        assert decision.reason == "codec h264"
        assert not decision.skip

    def test_hevc_in_mkv_is_remuxed(self, record_factory):
        decision = decide_action(record_factory("/v/a.mkv", codec="hevc"))
        assert decision.action is ConversionAction.REMUX
        assert decision.reason == "hevc in mkv"

    def test_hevc_alias_detected(self, record_factory):
        decision = decide_action(record_factory("/v/a.avi", codec="H265"))
        assert decision.action is ConversionAction.REMUX

    def test_unlabelled_hevc_mp4_is_renamed(self, record_factory):
        decision = decide_action(record_factory("/v/a.mp4", codec="hevc"))
        assert decision.action is ConversionAction.RENAME

    def test_labelled_hevc_mp4_is_skipped(self, record_factory):
        decision = decide_action(record_factory("/v/a.x265.mp4", codec="hevc"))
        assert decision.skip
        assert decision.reason == "already converted"

    def test_skip_convert(self, record_factory):
        settings = ConversionSettings(skip_convert=True)
        decision = decide_action(record_factory("/v/a.mkv"), settings)
        assert decision.skip
        assert decision.reason == "transcode skipped"

    def test_skip_remux(self, record_factory):
        settings = ConversionSettings(skip_remux=True)
        decision = decide_action(record_factory("/v/a.mkv", codec="hevc"), settings)
        assert decision.skip
        assert decision.reason == "remux skipped"

    def test_skip_remux_does_not_affect_transcode(self, record_factory):
        settings = ConversionSettings(skip_remux=True)
        decision = decide_action(record_factory("/v/a.mkv"), settings)
        assert decision.action is ConversionAction.TRANSCODE


class TestEligibleStatuses:
    def test_default(self):
        assert ConversionSettings().eligible_statuses == {
            ConversionStatus.PENDING,
            ConversionStatus.SKIPPED,
        }

    def test_retry_failed(self):
        statuses = ConversionSettings(retry_failed=True).eligible_statuses
        assert ConversionStatus.FAILED in statuses

    @pytest.mark.parametrize(
        "status", [ConversionStatus.CONVERTED, ConversionStatus.UNPROBED]
    )
    def test_never_eligible(self, status):
        settings = ConversionSettings(retry_failed=True)
        assert status not in settings.eligible_statuses
