"""Unit tests for accuracy roll-ups and confidence intervals."""

import pytest

from skiptrace.normalization.schema import Entity, EntityType, SearchResult
from skiptrace.scoring.accuracy import aggregate_accuracy, calculate_accuracy_metrics, calculate_confidence_interval
from skiptrace.settings import get_settings


def _results(*confidences):
    return [SearchResult(title=f"r{index}", confidence=value) for index, value in enumerate(confidences)]


def test_metrics_for_mixed_results():
    entities = [
        Entity(type=EntityType.PHONE, value="(217) 555-0199", confidence=90, verified=True),
        Entity(type=EntityType.AGE, value="34", confidence=85, verified=True),
        Entity(type=EntityType.RELATIVE, value="Jane Smith", confidence=55),
    ]

    metrics = calculate_accuracy_metrics(_results(80, 60, 70, 90), entities)

    assert metrics.overall_confidence == 75
    assert metrics.high_confidence_results == 3
    assert metrics.data_quality_score == 75
    assert metrics.total_results == 4
    assert metrics.verified_entities == 2
    assert metrics.completeness == pytest.approx(40.0)


def test_metrics_for_empty_input():
    metrics = calculate_accuracy_metrics([], [])
    assert metrics.overall_confidence == 0
    assert metrics.data_quality_score == 0
    assert metrics.total_results == 0
    assert metrics.completeness == 0.0


def test_completeness_saturates():
    assert calculate_accuracy_metrics(_results(*[50] * 12), []).completeness == 100.0


def test_expected_result_count_from_settings():
    base = get_settings()
    settings = base.model_copy(update={"scoring": base.scoring.model_copy(update={"expected_result_count": 4})})
    assert calculate_accuracy_metrics(_results(50, 50), [], settings=settings).completeness == pytest.approx(50.0)


def test_aggregate_accuracy_alias():
    results = _results(80, 60)
    assert aggregate_accuracy(results, []) == calculate_accuracy_metrics(results, [])


@pytest.mark.parametrize(
    ("confidence", "lower", "upper"),
    [(0.95, 56.14, 83.86), (0.99, 51.76, 88.24)],
)
def test_confidence_interval(confidence, lower, upper):
    interval = calculate_confidence_interval([60, 80], confidence)
    assert interval.mean == 70.0
    assert interval.lower == pytest.approx(lower)
    assert interval.upper == pytest.approx(upper)


def test_confidence_interval_degenerate_inputs():
    assert calculate_confidence_interval([]).mean == 0.0
    single = calculate_confidence_interval([42])
    assert (single.mean, single.lower, single.upper) == (42.0, 42.0, 42.0)
