"""Session-level accuracy roll-ups."""

from __future__ import annotations

import math
from typing import Sequence

from skiptrace.normalization.schema import AccuracyMetrics, ConfidenceInterval, Entity, SearchResult
from skiptrace.settings import Settings, get_settings

Z_SCORE_95 = 1.96
Z_SCORE_99 = 2.58


def calculate_accuracy_metrics(
    results: Sequence[SearchResult],
    entities: Sequence[Entity],
    *,
    settings: Settings | None = None,
) -> AccuracyMetrics:
    """Summarize result confidence and entity verification for one search.

    ``completeness`` saturates at 100 once ``scoring.expected_result_count``
    results are in hand.
    """
    scoring = (settings or get_settings()).scoring
    total = len(results)
    high = sum(1 for result in results if result.confidence >= scoring.high_confidence_threshold)

    if total:
        overall = round(sum(result.confidence for result in results) / total)
        quality = round(high / total * 100)
    else:
        overall = quality = 0

    return AccuracyMetrics(
        overall_confidence=overall,
        data_quality_score=quality,
        total_results=total,
        high_confidence_results=high,
        verified_entities=sum(1 for entity in entities if entity.verified),
        completeness=min(100.0, total / scoring.expected_result_count * 100),
    )


def aggregate_accuracy(
    results: Sequence[SearchResult],
    entities: Sequence[Entity],
    *,
    settings: Settings | None = None,
) -> AccuracyMetrics:
    return calculate_accuracy_metrics(results, entities, settings=settings)


def calculate_confidence_interval(scores: Sequence[float], confidence: float = 0.95) -> ConfidenceInterval:
    """Normal-approximation interval around the mean of ``scores``.

    Uses the population variance and a z-score (1.96 for 0.95, otherwise
    2.58), which is only reasonable for larger samples; small samples get an
    optimistic interval. Values are rounded to two decimals.
    """
    if not scores:
        return ConfidenceInterval(mean=0.0, lower=0.0, upper=0.0)

    count = len(scores)
    mean = sum(scores) / count
    variance = sum((score - mean) ** 2 for score in scores) / count
    margin = (Z_SCORE_95 if confidence == 0.95 else Z_SCORE_99) * math.sqrt(variance / count)
    return ConfidenceInterval(
        mean=round(mean, 2),
        lower=round(mean - margin, 2),
        upper=round(mean + margin, 2),
    )


__all__ = ["aggregate_accuracy", "calculate_accuracy_metrics", "calculate_confidence_interval"]
