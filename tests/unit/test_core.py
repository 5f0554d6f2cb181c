"""Unit tests for orchestrator helpers."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from agispeak.agi.models import AudioFormat
from agispeak.core import (
    answer_if_needed,
    build_request,
    detect_format,
    parse_interrupt_keys,
    parse_speed,
)
from agispeak.errors import AGICommandError, AGIHangup
from test_helpers import make_client, sent_commands


class TestParseInterruptKeys:
    """Test interrupt key specifications."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("any", "0123456789*#"),
            ("ANY", "0123456789*#"),
            ("", ""),
            (None, ""),
            ("12#", "12#"),
            ("1a2b1", "12"),
        ],
    )
    def test_parse(self, value: str | None, expected: str) -> None:
        assert parse_interrupt_keys(value) == expected


class TestParseSpeed:
    """Test speed multiplier parsing."""

    @pytest.mark.parametrize(
        "value,expected", [(None, 1.0), ("", 1.0), ("1", 1.0), ("1.25", 1.25), (2, 2.0)]
    )
    def test_valid(self, value, expected: float) -> None:
        assert parse_speed(value) == expected

    @pytest.mark.parametrize("value", ["fast", "0", "-1", "nan", "inf"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_speed(value)


class TestBuildRequest:
    """Test turning raw arguments into a normalized request."""

    def test_defaults(self, make_config) -> None:
        """Test that omitted arguments use config and neutral defaults."""
        request = build_request("  Hello   (world) ", None, None, None, make_config())

        assert request.text == "Hello world."
        assert request.voice == "en_US-amy"
        assert request.keys == ""
        assert request.speed == 1.0

    def test_blank_voice_uses_default(self, make_config) -> None:
        """Test that an empty dialplan argument counts as omitted."""
        request = build_request("Hi", "  ", "any", "1.5", make_config())

        assert request.voice == "en_US-amy"
        assert request.keys == "0123456789*#"
        assert request.speed == 1.5

    def test_empty_text_rejected(self, make_config) -> None:
        with pytest.raises(ValueError, match="No text to speak"):
            build_request("[]", None, None, None, make_config())

    def test_request_is_immutable(self, make_config) -> None:
        request = build_request("Hi", None, None, None, make_config())
        with pytest.raises(AttributeError):
            request.text = "changed"


class TestAnswerIfNeeded:
    """Test the ringing-channel answer rule."""

    def test_answers_ringing_channel(self) -> None:
        client, stdout = make_client(["200 result=4", "200 result=0"])
        answer_if_needed(client)
        assert sent_commands(stdout) == ["CHANNEL STATUS", "ANSWER"]

    @pytest.mark.parametrize("status", [0, 2, 6])
    def test_other_status_not_answered(self, status: int) -> None:
        client, stdout = make_client([f"200 result={status}"])
        answer_if_needed(client)
        assert sent_commands(stdout) == ["CHANNEL STATUS"]

    def test_unparseable_status_not_fatal(self) -> None:
        """Test that a bad status reply skips ANSWER without raising."""
        client, stdout = make_client(["510 Invalid or unknown command"])
        answer_if_needed(client)
        assert sent_commands(stdout) == ["CHANNEL STATUS"]

    def test_answer_failure_is_fatal(self) -> None:
        client, _ = make_client(["200 result=4", "200 result=-1"])
        with pytest.raises(AGICommandError):
            answer_if_needed(client)

    def test_hangup_propagates(self) -> None:
        client, _ = make_client(["HANGUP"])
        with pytest.raises(AGIHangup):
            answer_if_needed(client)


class TestDetectFormat:
    """Test reading the native format from the channel."""

    def test_reads_native_format(self) -> None:
        client, stdout = make_client(["200 result=1 (g722)"])

        assert detect_format(client) == AudioFormat("sln16", 16000)
        assert sent_commands(stdout) == [
            "GET FULL VARIABLE ${CHANNEL(audionativeformat)}"
        ]

    def test_unset_falls_back(self) -> None:
        client, _ = make_client(["200 result=0"])
        assert detect_format(client) == AudioFormat("sln", 8000)

    def test_protocol_error_falls_back(self) -> None:
        client, _ = make_client(["garbage"])
        assert detect_format(client) == AudioFormat("sln", 8000)
