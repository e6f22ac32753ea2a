"""Tests for input sanitization and format checks."""

import pytest

from cancelflow.security.sanitize import (
    MAX_INPUT_LENGTH,
    is_valid_uuid,
    sanitize_input,
    validate_cancellation_reason,
    validate_price,
)


class TestSanitizeInput:
    """Tests for sanitize_input."""

    def test_strips_whitespace_and_brackets(self) -> None:
        assert sanitize_input("  <b>hello</b>  ") == "bhello/b"

    def test_removes_javascript_marker_case_insensitively(self) -> None:
        assert sanitize_input("JaVaScRiPt:alert(1)") == "alert(1)"

    def test_removes_event_handlers(self) -> None:
        assert sanitize_input('img src=x onerror=alert(1)') == "img src=x alert(1)"

    def test_spliced_marker_is_removed(self) -> None:
        """Removing an inner marker must not leave a new one behind."""
        result = sanitize_input("javajavascript:script:alert(1)")
        assert "javascript:" not in result.lower()

    def test_truncates(self) -> None:
        assert len(sanitize_input("a" * (MAX_INPUT_LENGTH + 50))) == MAX_INPUT_LENGTH

    @pytest.mark.parametrize("value", [None, "", 42, ["<x>"]])
    def test_non_strings_yield_empty(self, value: object) -> None:
        assert sanitize_input(value) == ""

    @pytest.mark.parametrize(
        "value",
        [
            "plain text",
            "<<script>>alert('x')<</script>>",
            "onclick=onmouseover=go()",
            "  javascript:JAVASCRIPT:void(0)  ",
            "<" * 10 + " padded " + ">" * 10,
            "x" * 1200 + "<",
            "jajavascript:vascript:",
            "ononclick=click=",
        ],
    )
    def test_idempotent(self, value: str) -> None:
        once = sanitize_input(value)
        assert sanitize_input(once) == once

    @pytest.mark.parametrize(
        "value",
        ["<script>", "jav<ascript:", "oncl<ick=", "ONLOAD=x", "javascript:javascript:"],
    )
    def test_output_has_no_markers(self, value: str) -> None:
        result = sanitize_input(value)
        assert "<" not in result and ">" not in result
        assert "javascript:" not in result.lower()
        assert "onclick=" not in result.lower()
        assert "onload=" not in result.lower()


class TestIsValidUuid:
    """Tests for is_valid_uuid."""

    @pytest.mark.parametrize(
        "value",
        [
            "550e8400-e29b-41d4-a716-446655440001",
            "550E8400-E29B-11D4-8716-446655440001",
            "123e4567-e89b-52d3-b456-426614174000",
        ],
    )
    def test_accepts_rfc4122(self, value: str) -> None:
        assert is_valid_uuid(value) is True

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "not-a-uuid",
            "550e8400-e29b-61d4-a716-446655440001",  # version 6
            "550e8400-e29b-41d4-c716-446655440001",  # variant bits
            "550e8400e29b41d4a716446655440001",
            "550e8400-e29b-41d4-a716-4466554400012",
            None,
        ],
    )
    def test_rejects_others(self, value: object) -> None:
        assert is_valid_uuid(value) is False


class TestValidateCancellationReason:
    """Tests for validate_cancellation_reason."""

    def test_returns_sanitized_reason(self) -> None:
        assert validate_cancellation_reason(" <Too expensive> ") == "Too expensive"

    @pytest.mark.parametrize("reason", [None, "", "ab", "<<>>a", "x" * 501])
    def test_rejects_out_of_range(self, reason: object) -> None:
        assert validate_cancellation_reason(reason) is None

    def test_bounds_inclusive(self) -> None:
        assert validate_cancellation_reason("abc") == "abc"
        assert validate_cancellation_reason("x" * 500) == "x" * 500


class TestValidatePrice:
    """Tests for validate_price."""

    @pytest.mark.parametrize("price", ["0", "10", "12.5", "12.50", " 7.99 "])
    def test_accepts_amounts(self, price: str) -> None:
        assert validate_price(price) is True

    @pytest.mark.parametrize("price", ["", "-1", "1.234", "ten", "1,000", ".5", None])
    def test_rejects_others(self, price: object) -> None:
        assert validate_price(price) is False
