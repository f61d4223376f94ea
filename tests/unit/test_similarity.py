"""Unit tests for the string similarity helpers."""

import pytest

from skiptrace.normalization.similarity import (
    are_similar,
    find_fuzzy_matches,
    jaccard_similarity,
    levenshtein_distance,
    normalize_text,
    similarity_ratio,
)


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ("kitten", "sitting", 3),
        ("", "abc", 3),
        ("abc", "", 3),
        ("same", "same", 0),
        ("A", "a", 1),
    ],
)
def test_levenshtein_distance(a, b, expected):
    """Classic edit distance, case-sensitive."""
    assert levenshtein_distance(a, b) == expected


def test_similarity_ratio_ignores_case():
    assert similarity_ratio("John Smith", "JOHN SMITH") == 1.0


def test_similarity_ratio_two_empty_strings_is_one():
    assert similarity_ratio("", "") == 1.0


def test_similarity_ratio_value():
    assert similarity_ratio("kitten", "sitting") == pytest.approx(1 - 3 / 7)


def test_are_similar_threshold():
    """One edit in ten characters clears the default 0.8 but not 0.95."""
    assert are_similar("John Smith", "Jon Smith")
    assert not are_similar("John Smith", "Jon Smith", threshold=0.95)


def test_find_fuzzy_matches_preserves_order():
    assert find_fuzzy_matches("Smith", ["Smyth", "Jones", "smith"]) == ["Smyth", "smith"]


def test_normalize_text():
    assert normalize_text("  Hello,   World!  ") == "hello world"


def test_jaccard_similarity():
    assert jaccard_similarity("a b c", "b c d") == pytest.approx(0.5)
    assert jaccard_similarity("Hello, world", "hello WORLD!") == 1.0


def test_jaccard_similarity_empty_inputs():
    """No tokens on either side means no overlap, not a division error."""
    assert jaccard_similarity("", "") == 0.0
    assert jaccard_similarity("!!!", "  ") == 0.0
