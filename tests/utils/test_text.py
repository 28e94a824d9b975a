"""
Tests for text helpers.
"""

from notegraph.utils import make_snippet, normalize_whitespace, preprocess_text


class TestPreprocessText:
    """Tests for query/text preprocessing."""

    def test_collapses_whitespace(self):
        """Test that whitespace runs collapse to one space."""
        assert preprocess_text("  cat \n\n on\tmat  ") == "cat on mat"

    def test_preserves_case(self):
        """Test that case is kept."""
        assert preprocess_text("Feline On A Rug") == "Feline On A Rug"

    def test_empty(self):
        """Test empty and whitespace-only input."""
        assert preprocess_text("") == ""
        assert preprocess_text("   \n ") == ""
        assert preprocess_text(None) == ""


class TestNormalizeWhitespace:
    """Tests for whitespace removal."""

    def test_removes_all_whitespace(self):
        """Test that every whitespace character is removed."""
        assert normalize_whitespace("a b\n\nc\td") == "abcd"


class TestMakeSnippet:
    """Tests for snippet creation."""

    def test_truncates(self):
        """Test snippets are cut to the requested length."""
        assert make_snippet("x" * 500) == "x" * 160
        assert make_snippet("abcdef", length=3) == "abc"

    def test_short_text_unchanged(self):
        """Test short text is returned whole."""
        assert make_snippet("short") == "short"
