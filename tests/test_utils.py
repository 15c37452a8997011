"""Tests for utils module."""

import pytest

from utils import parse_assignment, truncate


class TestTruncate:
    """Tests for truncate function."""

    def test_short_text_unchanged(self) -> None:
        assert truncate("Acme") == "Acme"

    def test_exact_length_unchanged(self) -> None:
        assert truncate("a" * 72) == "a" * 72

    def test_long_text_ellipsis(self) -> None:
        result = truncate("a" * 100, 10)
        assert result == "aaaaaaa..."
        assert len(result) == 10


class TestParseAssignment:
    """Tests for parse_assignment function."""

    def test_simple(self) -> None:
        assert parse_assignment("Artist=Jane Doe") == ("Artist", "Jane Doe")

    def test_value_may_contain_equals(self) -> None:
        assert parse_assignment("Comment=a=b") == ("Comment", "a=b")

    def test_empty_value(self) -> None:
        assert parse_assignment("Artist=") == ("Artist", "")

    def test_name_is_stripped(self) -> None:
        assert parse_assignment(" Make =Acme") == ("Make", "Acme")

    @pytest.mark.parametrize("text", ["Artist", "=Jane", ""])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_assignment(text)
