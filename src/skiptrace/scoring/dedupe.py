"""Near-duplicate folding for results and corroboration for entities.

Both passes are meant to run once, after every source has been extracted,
over the complete accumulated set. Running them per source would make the
corroboration counts depend on arrival order.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

from skiptrace.errors import ContractViolationError
from skiptrace.normalization.schema import Entity, EntityType, SearchResult, clamp_score
from skiptrace.normalization.similarity import are_similar, normalize_text
from skiptrace.observability import get_observability
from skiptrace.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)


def _require_sequence(items: object, item_type: type, label: str) -> None:
    if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
        raise ContractViolationError(f"{label} must be a sequence, got {type(items).__name__}")
    for item in items:
        if not isinstance(item, item_type):
            raise ContractViolationError(f"{label} must contain {item_type.__name__}, got {type(item).__name__}")


def deduplicate_results(
    results: Sequence[SearchResult],
    *,
    settings: Settings | None = None,
) -> List[SearchResult]:
    """Fold near-duplicate results, keeping the most confident of each group.

    A result duplicates an accepted one when their snippets are similar at
    ``scoring.snippet_similarity_threshold`` (0.8) or their titles at
    ``scoring.title_similarity_threshold`` (0.9). A newcomer that beats every
    accepted result it duplicates takes the first one's slot and evicts the
    rest; otherwise it is dropped. The accepted set therefore stays pairwise
    dissimilar, so a second pass returns the same list.

    Raises:
        ContractViolationError: If ``results`` is not a sequence of
            :class:`SearchResult`.
    """
    _require_sequence(results, SearchResult, "results")
    scoring = (settings or get_settings()).scoring

    unique: List[SearchResult] = []
    for result in results:
        matches = [
            index
            for index, existing in enumerate(unique)
            if are_similar(existing.snippet, result.snippet, scoring.snippet_similarity_threshold)
            or are_similar(existing.title, result.title, scoring.title_similarity_threshold)
        ]
        if not matches:
            unique.append(result)
            continue
        if result.confidence > max(unique[index].confidence for index in matches):
            LOGGER.debug("Result %s supersedes %d near-duplicate(s)", result.id, len(matches))
            unique[matches[0]] = result
            for index in reversed(matches[1:]):
                del unique[index]
        else:
            LOGGER.debug("Dropped near-duplicate result %s", result.id)

    get_observability(component="dedupe", settings=settings).emit_event(
        "dedupe.completed",
        received=len(results),
        kept=len(unique),
    )
    return unique


def cross_verify_entities(
    entities: Sequence[Entity],
    *,
    boost: int | None = None,
    settings: Settings | None = None,
) -> List[Entity]:
    """Collapse repeated ``(type, normalized value)`` entities into one corroborated entity.

    Singletons pass through unchanged. A group of N keeps its most confident
    member (first wins ties), adds ``boost * (N - 1)`` clamped to 100 and is
    marked verified. Output follows the order in which groups were first seen.
    """
    _require_sequence(entities, Entity, "entities")
    if boost is None:
        boost = (settings or get_settings()).scoring.corroboration_boost

    groups: Dict[Tuple[EntityType, str], List[Entity]] = {}
    for entity in entities:
        groups.setdefault((entity.type, normalize_text(entity.value)), []).append(entity)

    verified: List[Entity] = []
    for group in groups.values():
        if len(group) == 1:
            verified.append(group[0])
            continue
        best = max(group, key=lambda entity: entity.confidence)
        verified.append(
            best.with_confidence(
                clamp_score(best.confidence + boost * (len(group) - 1)),
                verified=True,
                metadata={**best.metadata, "corroborations": len(group)},
            )
        )
    LOGGER.debug("Cross-verified %d entities into %d", len(entities), len(verified))
    return verified


__all__ = ["cross_verify_entities", "deduplicate_results"]
