"""
Property-based tests for similarity, confidence clamping, and deduplication.

Run with: pytest tests/unit/test_properties.py -v
"""

import pytest

# Skip all tests if hypothesis not installed
hypothesis = pytest.importorskip("hypothesis")

from hypothesis import given, settings, strategies as st

from skiptrace.normalization.schema import Entity, EntityType, SearchResult
from skiptrace.normalization.similarity import similarity_ratio
from skiptrace.scoring.confidence import MAX_CONFIDENCE, MIN_CONFIDENCE, combine_confidence
from skiptrace.scoring.dedupe import deduplicate_results

short_text = st.text(max_size=30)
scores = st.floats(min_value=-500, max_value=500, allow_nan=False)


class TestSimilarityProperty:
    @given(a=short_text, b=short_text)
    @settings(max_examples=100, deadline=None)
    def test_symmetric(self, a, b):
        """similarity_ratio(a, b) == similarity_ratio(b, a)."""
        assert similarity_ratio(a, b) == similarity_ratio(b, a)

    @given(a=short_text, b=short_text)
    @settings(max_examples=100, deadline=None)
    def test_bounded(self, a, b):
        assert 0.0 <= similarity_ratio(a, b) <= 1.0

    @given(a=short_text)
    @settings(max_examples=50, deadline=None)
    def test_identity(self, a):
        assert similarity_ratio(a, a) == 1.0


class TestConfidenceClampProperty:
    @given(value=scores)
    @settings(max_examples=100, deadline=None)
    def test_entity_confidence_stays_in_range(self, value):
        """Whatever score is supplied, the stored confidence is within [0, 100]."""
        entity = Entity(type=EntityType.PHONE, value="(217) 555-0199", confidence=value)
        assert 0 <= entity.confidence <= 100
        assert 0 <= entity.with_confidence(value + 50).confidence <= 100

    @given(original=scores, recalculated=scores)
    @settings(max_examples=100, deadline=None)
    def test_combined_confidence_stays_in_range(self, original, recalculated):
        combined = combine_confidence(original, recalculated)
        assert round(MIN_CONFIDENCE * 100) <= combined <= round(MAX_CONFIDENCE * 100)


result_strategy = st.builds(
    SearchResult,
    title=st.sampled_from(["John Smith", "John Smith.", "Jane Doe", "Public records", "Springfield IL"]),
    snippet=st.sampled_from(
        [
            "John Smith lives in Springfield",
            "John Smith lives in Springfield.",
            "Jane Doe, age 41",
            "Court records for Bryan County",
            "",
        ]
    ),
    confidence=st.integers(min_value=0, max_value=100),
)


class TestDeduplicationProperty:
    @given(results=st.lists(result_strategy, max_size=12))
    @settings(max_examples=75, deadline=None)
    def test_idempotent(self, results):
        """Running the fold twice is a no-op."""
        once = deduplicate_results(results)
        twice = deduplicate_results(once)
        assert [result.id for result in twice] == [result.id for result in once]
