"""Tests for assistant system instructions."""

import pytest

from src.config import DEFAULT_PERSONA
from src.prompts import (
    build_reply_instruction,
    build_transcription_instruction,
    describe_language,
)


class TestDescribeLanguage:
    """Tests for language tag descriptions."""

    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("en-IN", "English"),
            ("hi", "Hindi"),
            ("hi-IN", "Hindi"),
            ("TA-in", "Tamil"),
            ("mr_IN", "Marathi"),
            ("hinglish", "a mix of Hindi and English (Hinglish)"),
        ],
    )
    def test_known_codes(self, code, expected):
        assert describe_language(code) == expected

    def test_unknown_code_returned_as_is(self):
        assert describe_language("fr-CA") == "fr-CA"

    def test_blank_code(self):
        assert describe_language("  ") == "English"


class TestInstructions:
    """Tests for the reply and transcription instructions."""

    def test_reply_instruction_appends_language(self):
        instruction = build_reply_instruction(DEFAULT_PERSONA, "bn-IN")
        assert instruction.startswith(DEFAULT_PERSONA.strip())
        assert instruction.endswith(" Respond in Bengali.")

    def test_reply_instruction_without_language(self):
        assert build_reply_instruction("  You are Rev.  ") == "You are Rev."

    def test_transcription_instruction(self):
        instruction = build_transcription_instruction("te-IN")
        assert "Transcribe" in instruction
        assert "Telugu" in instruction
        assert "Respond in" not in instruction
