"""Tests for the formatting pipeline."""

import pytest

from promptgen.core.content import FormatOptions
from promptgen.rendering.formatting import apply_format


class TestApplyFormat:
    """Tests for apply_format."""

    def test_no_options(self):
        assert apply_format(" raw ", None) == " raw "

    def test_trim_case_suffix(self):
        options = FormatOptions(trim=True, case="upper", suffix="!")
        assert apply_format(" Hello ", options) == "HELLO!"

    @pytest.mark.parametrize(
        "case,expected",
        [
            ("upper", "HELLO WORLD"),
            ("lower", "hello world"),
            ("title", "Hello World"),
            ("sentence", "Hello world"),
        ],
    )
    def test_case(self, case, expected):
        assert apply_format("hELLO wORLD", FormatOptions(case=case)) == expected

    def test_replace_every_occurrence_in_order(self):
        options = FormatOptions.model_validate({
            "replace": [{"from": "a", "to": "b"}, {"from": "b", "to": "c"}],
        })
        assert apply_format("aab", options) == "ccc"

    def test_truncate_reserves_ellipsis(self):
        assert apply_format("abcdefghij", FormatOptions(truncate=6)) == "abc..."

    def test_truncate_shorter_than_ellipsis(self):
        assert apply_format("abcdefghij", FormatOptions(truncate=2)) == "..."

    def test_truncate_not_needed(self):
        assert apply_format("abc", FormatOptions(truncate=6)) == "abc"

    def test_prefix_applied_after_truncate(self):
        options = FormatOptions(truncate=5, prefix=">> ")
        assert apply_format("abcdefgh", options) == ">> ab..."

    def test_trim_before_truncate(self):
        options = FormatOptions(trim=True, truncate=4)
        assert apply_format("   abcd   ", options) == "abcd"
