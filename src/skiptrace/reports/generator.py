"""Skip-trace report generator.

This module turns the raw search results of one session into a
:class:`~skiptrace.normalization.schema.SkipTraceReport` by:
1. Extracting entities from every result (comprehensive path, uncapped).
2. Scoring each result for relevance and lead confidence.
3. Folding near-duplicate results and ranking the survivors.
4. Cross-verifying entities once, over the complete accumulated set, then
   enriching them with reference-data metadata.
5. Rolling up accuracy metrics, the location chain, phone and address
   intelligence, the geographic pattern and investigator recommendations.

Reports can be saved as JSON or rendered to Markdown through a Jinja2
template.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Callable, Iterable, List, Sequence

from skiptrace.extraction.address_intel import (
    analyze_address_batch,
    geographic_recommendations,
    summarize_geography,
)
from skiptrace.extraction.ner_rules import ExtractionOptions, extract_entities
from skiptrace.extraction.patterns import LOCATION_PATTERNS
from skiptrace.extraction.phone_intel import analyze_phone_batch, phone_recommendations
from skiptrace.normalization.reference_data import ReferenceData, get_reference_data
from skiptrace.normalization.schema import (
    Entity,
    EntityType,
    GeographicPattern,
    LocationChain,
    PhoneIntelligence,
    SearchContext,
    SearchResult,
    SkipTraceReport,
)
from skiptrace.normalization.similarity import normalize_text
from skiptrace.observability import get_observability
from skiptrace.reports.template_engine import TemplateEngine
from skiptrace.scoring.accuracy import calculate_accuracy_metrics, calculate_confidence_interval
from skiptrace.scoring.confidence import combine_confidence, cross_reference_entities
from skiptrace.scoring.dedupe import cross_verify_entities, deduplicate_results
from skiptrace.scoring.relevance import PEOPLE_SEARCH_SITES, rank_results, score_relevance, score_result_confidence
from skiptrace.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)

MAX_PREVIOUS_LOCATIONS = 3
LOW_CORROBORATION_SHARE = 50
DEFAULT_TEMPLATE = "skiptrace_report.md.j2"


def analyze_location_chain(results: Sequence[SearchResult]) -> LocationChain:
    """Find the subject's most likely current location and earlier ones.

    Every ``City, ST`` style mention is weighted by ``recency + confidence`` of
    the result it came from. ``results`` is read as a newest-first feed, so the
    first result carries the highest recency. Mentions are deduplicated
    case-insensitively.
    """
    sightings = []
    total = len(results)
    for index, result in enumerate(results):
        recency = total - index
        for pattern in LOCATION_PATTERNS.values():
            for match in pattern.finditer(result.snippet):
                sightings.append((match.group(1).strip(), result.confidence, recency))

    sightings.sort(key=lambda item: item[1] + item[2], reverse=True)

    unique = []
    seen = set()
    for location, confidence, _ in sightings:
        key = normalize_text(location)
        if key in seen:
            continue
        seen.add(key)
        unique.append((location, confidence))

    if not unique:
        return LocationChain()
    return LocationChain(
        current_location=unique[0][0],
        previous_locations=[location for location, _ in unique[1 : 1 + MAX_PREVIOUS_LOCATIONS]],
        location_confidence=unique[0][1],
    )


def generate_recommendations(
    context: SearchContext,
    results: Sequence[SearchResult],
    entities: Sequence[Entity],
    location_chain: LocationChain,
    phone_intelligence: Iterable[PhoneIntelligence] = (),
    geographic_pattern: GeographicPattern | None = None,
    *,
    reference: ReferenceData | None = None,
) -> List[str]:
    """Suggest investigator follow-ups from what the search did and did not find."""
    recommendations: List[str] = []

    current = location_chain.current_location
    if current and normalize_text(current) != normalize_text(context.location):
        recommendations.append(f"Subject may have moved to {current}. Check records in this new location.")
    if location_chain.previous_locations:
        recommendations.append(
            f"Previous locations found: {', '.join(location_chain.previous_locations)}."
            " Consider checking historical records."
        )

    verified = [entity for entity in entities if entity.verified]
    if not entities or len(verified) / len(entities) * 100 < LOW_CORROBORATION_SHARE:
        recommendations.append(
            "Low data correlation detected. Consider expanding search to include maiden names,"
            " nicknames, or middle initials."
        )

    phones = [entity.value for entity in verified if entity.type == EntityType.PHONE]
    if len(phones) > 1:
        recommendations.append(f"Multiple phone numbers found: {', '.join(phones)}. Cross-reference for current contact.")

    if not any(site in result.source.lower() or site in result.url.lower() for result in results for site in PEOPLE_SEARCH_SITES):
        recommendations.append(
            "Consider checking people search databases (TruePeopleSearch, Spokeo, WhitePages)"
            " for more comprehensive results."
        )

    recommendations.extend(phone_recommendations(phone_intelligence))
    if geographic_pattern is not None:
        recommendations.extend(geographic_recommendations(geographic_pattern, reference=reference))
    return recommendations


class ReportGenerator:
    """High-level report builder.

    Args:
        settings: Optional settings; defaults to the process-wide settings.
        reference: Optional geographic tables; defaults to the configured ones.
        template_engine: Optional template engine used by :meth:`render_markdown`.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        reference: ReferenceData | None = None,
        template_engine: TemplateEngine | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.reference = reference or get_reference_data(self.settings)
        self.templates = template_engine or TemplateEngine()
        self.options = ExtractionOptions.comprehensive(self.settings)
        self._observability = get_observability(component="reports", settings=self.settings)

    # ---- Per-result scoring ----
    def score_result(self, result: SearchResult, context: SearchContext) -> SearchResult:
        """Extract entities from ``result`` and attach fresh relevance/confidence scores.

        A confidence already carried by the result is merged with the fresh one
        via :func:`combine_confidence`, so re-scoring never erodes it.
        """
        options = dataclasses.replace(self.options, source=result.source or self.options.source)
        entities = extract_entities(result.text, context, options, reference=self.reference)
        with_entities = result.model_copy(update={"extracted_entities": entities})

        recalculated = score_result_confidence(with_entities, result.query, context, reference=self.reference)
        confidence = combine_confidence(result.confidence, recalculated) if result.confidence else recalculated
        relevance = score_relevance(result.text, context, source=result.source or result.url, reference=self.reference)
        return with_entities.model_copy(update={"confidence": confidence, "relevance_score": relevance})

    # ---- Report assembly ----
    def generate(
        self,
        context: SearchContext,
        results: Sequence[SearchResult],
        *,
        progress: Callable[[Sequence[SearchResult]], Iterable[SearchResult]] | None = None,
    ) -> SkipTraceReport:
        """Run the full pipeline over one session's results.

        Args:
            context: The search subject.
            results: Every result gathered for the session, in arrival order.
            progress: Optional wrapper around the per-result loop (e.g. ``tqdm``).

        Returns:
            The compiled :class:`SkipTraceReport`.
        """
        iterable = progress(results) if progress else results
        with self._observability.stage("score", received=len(results)) as stage:
            scored = [self.score_result(result, context) for result in iterable]
            unique = deduplicate_results(scored, settings=self.settings)
            ranked = rank_results(unique)
            stage["kept"] = len(ranked)

        with self._observability.stage("verify") as stage:
            pooled = [entity for result in unique for entity in result.extracted_entities]
            corroborated = cross_verify_entities(pooled, settings=self.settings)
            entities = cross_reference_entities(
                corroborated,
                reference=self.reference,
                threshold=self.settings.extraction.verification_threshold,
            )
            entities.sort(key=lambda entity: entity.confidence, reverse=True)
            stage.update(pooled=len(pooled), entities=len(entities))

        location_chain = analyze_location_chain(unique)
        phones = [entity.value for entity in entities if entity.type == EntityType.PHONE]
        phone_intelligence = analyze_phone_batch(phones, context, reference=self.reference)

        # Entities are confidence-ordered, so the strongest address is read as current.
        addresses = [entity.value for entity in entities if entity.type == EntityType.ADDRESS]
        geographic_pattern = None
        with self._observability.stage("geography", addresses=len(addresses)) as stage:
            address_intelligence = analyze_address_batch(addresses, context, reference=self.reference)
            if address_intelligence:
                geographic_pattern = summarize_geography(address_intelligence, reference=self.reference)
                stage["movement"] = geographic_pattern.movement_pattern

        report = SkipTraceReport(
            context=context,
            results=ranked,
            entities=entities,
            metrics=calculate_accuracy_metrics(ranked, entities, settings=self.settings),
            confidence_interval=calculate_confidence_interval([result.confidence for result in ranked]),
            location_chain=location_chain,
            phone_intelligence=phone_intelligence,
            address_intelligence=address_intelligence,
            geographic_pattern=geographic_pattern,
            recommendations=generate_recommendations(
                context,
                ranked,
                entities,
                location_chain,
                phone_intelligence,
                geographic_pattern,
                reference=self.reference,
            ),
        )

        LOGGER.info("Generated report %s for %s", report.report_id, context.name)
        self._observability.emit_event(
            "report.generated",
            report_id=report.report_id,
            results=len(ranked),
            duplicates_dropped=len(scored) - len(unique),
            entities=len(entities),
            overall_confidence=report.metrics.overall_confidence,
        )
        self._observability.increment("reports.generated")
        return report

    # ---- Output ----
    def render_markdown(self, report: SkipTraceReport, template_name: str = DEFAULT_TEMPLATE) -> str:
        """Render ``report`` as Markdown through a Jinja2 template."""
        return self.templates.render(template_name, {"report": report})

    def save(self, report: SkipTraceReport, path: Path | str) -> Path:
        """Write ``report`` to ``path`` as JSON (``.md`` paths get Markdown)."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.suffix.lower() == ".md":
            target.write_text(self.render_markdown(report), encoding="utf-8")
        else:
            target.write_text(report.model_dump_json(indent=2), encoding="utf-8")
        LOGGER.info("Saved report %s to %s", report.report_id, target)
        return target


__all__ = ["ReportGenerator", "analyze_location_chain", "generate_recommendations"]
