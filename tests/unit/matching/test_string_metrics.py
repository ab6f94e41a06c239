"""Unit tests for mpi_matcher.matching.string_metrics module."""

import pytest

from mpi_matcher.matching.string_metrics import levenshtein_distance, round_half_up, similarity


class TestRoundHalfUp:
    """Test the rounding used for every percentage score."""

    @pytest.mark.parametrize(
        "value,expected",
        [(2.5, 3), (62.5, 63), (92.5, 93), (95.4, 95), (0.0, 0), (99.99, 100)],
    )
    def test_half_rounds_up(self, value, expected):
        """Test that .5 rounds up rather than to the nearest even number."""
        assert round_half_up(value) == expected


class TestLevenshteinDistance:
    """Test edit distance calculation."""

    def test_classic_example(self):
        """Test kitten/sitting needs three edits."""
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_identical_strings(self):
        """Test identical strings have distance zero."""
        assert levenshtein_distance("Mensah", "Mensah") == 0

    def test_case_and_whitespace_ignored(self):
        """Test that comparison is case-insensitive and trims whitespace."""
        assert levenshtein_distance("  KOFI ", "kofi") == 0

    def test_empty_side(self):
        """Test that distance to an empty string is the other length."""
        assert levenshtein_distance("", "ama") == 3
        assert levenshtein_distance("ama", "") == 3

    def test_non_string_treated_as_empty(self):
        """Test that None and numbers are treated as empty strings."""
        assert levenshtein_distance(None, "abc") == 3
        assert levenshtein_distance(123, None) == 0

    def test_symmetry(self):
        """Test that distance does not depend on argument order."""
        assert levenshtein_distance("Owusu", "Owuso") == levenshtein_distance("Owuso", "Owusu")


class TestSimilarity:
    """Test similarity percentage calculation."""

    def test_identical_strings(self):
        """Test identical strings score 100."""
        assert similarity("Kwame", "Kwame") == 100

    def test_equal_after_trimming(self):
        """Test that case and surrounding whitespace do not matter."""
        assert similarity("Kofi", " kofi ") == 100

    def test_one_edit(self):
        """Test a single deletion on a six letter name."""
        assert similarity("Mensah", "Mensa") == 83

    def test_rounding_half_up(self):
        """Test that 62.5 rounds to 63."""
        assert similarity("abcdefgh", "abcdexyz") == 63

    def test_both_empty(self):
        """Test that two empty strings are identical."""
        assert similarity("", "") == 100
        assert similarity("  ", "") == 100

    def test_one_side_empty(self):
        """Test that one empty side scores 0."""
        assert similarity("abc", "") == 0
        assert similarity("", "abc") == 0

    def test_missing_values(self):
        """Test that None or non-string input scores 0."""
        assert similarity(None, "abc") == 0
        assert similarity("abc", None) == 0
        assert similarity(None, None) == 0
        assert similarity(42, "42") == 0

    def test_completely_different(self):
        """Test strings with nothing in common."""
        assert similarity("abc", "xyz") == 0

    def test_range(self):
        """Test that results stay within 0-100."""
        for a, b in [("John", "Jon"), ("Ama", "Kwame"), ("a", "ab")]:
            assert 0 <= similarity(a, b) <= 100
