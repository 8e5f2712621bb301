"""Tests for logging helpers."""

from src.logging_config import REDACTED, mask_secret, redacting_filter, truncate_for_log


def make_record(message: str) -> dict:
    return {"message": message, "name": "src.test", "extra": {}}


class TestRedactingFilter:
    def test_secret_replaced(self) -> None:
        record = make_record("POST /models/x:generateContent?key=AIzaSecret123 failed")

        assert redacting_filter(["AIzaSecret123"])(record) is True
        assert record["message"] == f"POST /models/x:generateContent?key={REDACTED} failed"

    def test_blank_secrets_ignored(self) -> None:
        record = make_record("nothing to hide")

        redacting_filter([None, "", "  "])(record)

        assert record["message"] == "nothing to hide"

    def test_module_name_defaulted(self) -> None:
        """Records from the unbound logger still carry a name for the format."""
        record = make_record("hello")

        redacting_filter([])(record)

        assert record["extra"]["name"] == "src.test"


class TestMaskSecret:
    def test_long_secret_keeps_prefix(self) -> None:
        assert mask_secret("AIzaSyD-example-key-value") == "AIza****"

    def test_short_secret_fully_masked(self) -> None:
        assert mask_secret("abcd1234") == "****"

    def test_unset(self) -> None:
        assert mask_secret(None) == "<unset>"
        assert mask_secret("") == "<unset>"


class TestTruncateForLog:
    def test_short_text_unchanged(self) -> None:
        assert truncate_for_log("hello") == "hello"

    def test_newlines_flattened(self) -> None:
        assert truncate_for_log("line one\nline two") == "line one line two"

    def test_long_text_truncated(self) -> None:
        result = truncate_for_log("x" * 200, limit=10)
        assert result == "xxxxxxxxxx..."
