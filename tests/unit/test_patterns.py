"""Unit tests for exclusion pattern validation."""

import re
import time

import pytest

from tocsmith.outline.patterns import (
    compile_exclusions,
    compile_pattern,
    probe_finishes,
    validate_pattern,
)
from tocsmith.services.exceptions import InvalidPattern


class TestValidatePattern:
    """Test validate_pattern checks."""

    def test_simple_pattern_is_valid(self):
        """Test that an ordinary anchored pattern is accepted."""
        result = validate_pattern("^Draft")
        assert result.is_valid
        assert result.error is None

    def test_alternation_group_is_valid(self):
        """Test that a repeated alternation group is not mistaken for nesting."""
        assert validate_pattern("(foo|bar)+").is_valid

    def test_empty_pattern_rejected(self):
        """Test that empty and whitespace patterns are rejected."""
        assert validate_pattern("").error == "Empty pattern"
        assert validate_pattern("   ").error == "Empty pattern"

    def test_long_pattern_rejected(self):
        """Test the length limit."""
        result = validate_pattern("x" * 101)
        assert not result.is_valid
        assert result.error == "Pattern too long"

    def test_pattern_at_length_limit_accepted(self):
        """Test that exactly 100 characters is still allowed."""
        assert validate_pattern("x" * 100).is_valid

    @pytest.mark.parametrize("pattern", [
        "(a*)+",
        "(a+)+",
        "(.*)+",
        "(.+)*",
        "(.*?)+",
        "(\\w+)*",
        "([^]*)+",
        "a{1000,2000}",
        "(?=a(?=b))",
        "(?!a(?!b))",
    ])
    def test_dangerous_shapes_rejected(self, pattern):
        """Test that catastrophic backtracking shapes are refused up front."""
        result = validate_pattern(pattern)
        assert not result.is_valid
        assert result.error == "Pattern contains potentially dangerous constructs"

    def test_invalid_regex_rejected(self):
        """Test that a pattern that does not compile is reported."""
        result = validate_pattern("[unclosed")
        assert not result.is_valid
        assert result.error.startswith("Invalid regex:")

    def test_catastrophic_pattern_rejected_within_budget(self):
        """Test a backtracking pattern the shape checks miss is stopped by the timed search."""
        started = time.monotonic()
        result = validate_pattern("(a|a)+b")
        elapsed = time.monotonic() - started

        assert not result.is_valid
        assert result.error == "Pattern execution too slow"
        assert elapsed < 5.0


class TestProbeFinishes:
    """Test the worker process running the timed search."""

    def test_fast_search_finishes(self):
        assert probe_finishes("^Draft")

    def test_runaway_search_terminated(self):
        """Test the worker is killed at the budget instead of running to completion."""
        started = time.monotonic()
        assert not probe_finishes("(a|a)+b", budget=0.05)
        assert time.monotonic() - started < 5.0


class TestCompilePattern:
    """Test compile_pattern and compile_exclusions."""

    def test_compiled_pattern_is_case_insensitive(self):
        """Test that exclusions ignore case."""
        compiled = compile_pattern("^draft")
        assert compiled.search("DRAFT notes")
        assert compiled.flags & re.IGNORECASE

    def test_rejected_pattern_raises(self):
        """Test that compile_pattern raises InvalidPattern with the reason."""
        with pytest.raises(InvalidPattern) as exc_info:
            compile_pattern("(a*)+")
        assert exc_info.value.pattern == "(a*)+"
        assert "dangerous" in exc_info.value.reason

    def test_rejected_patterns_are_skipped(self):
        """Test that one bad pattern does not prevent the others."""
        compiled = compile_exclusions(["(a*)+", "^Draft", "[bad"])
        assert [p.pattern for p in compiled] == ["^Draft"]

    def test_no_patterns(self):
        """Test the empty list."""
        assert compile_exclusions([]) == []
