"""Relevance and result-level confidence scoring.

``score_relevance`` answers "how well does this snippet match the subject";
``score_result_confidence`` answers "how much do we trust this result as a
lead". Both are transparent additive heuristics on the 0-100 scale so an
investigator can see why a result ranked where it did.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Sequence, Tuple

from skiptrace.extraction.patterns import ADDRESS_PATTERNS, AGE_PATTERN, FORMATTED_PHONE, PHONE_SHAPE
from skiptrace.normalization.reference_data import ReferenceData, get_reference_data
from skiptrace.normalization.schema import EntityType, SearchContext, SearchResult, clamp_score
from skiptrace.normalization.similarity import normalize_text

LOGGER = logging.getLogger(__name__)

# --- Relevance weights ---
NAME_TOKEN_WEIGHT = 25
NAME_STEM_WEIGHT = 10
CITY_WEIGHT = 15
STATE_WEIGHT = 10
PROXIMITY_WEIGHT = 15
PHONE_EXACT_WEIGHT = 20
PHONE_AREA_CODE_WEIGHT = 10
EMAIL_EXACT_WEIGHT = 20
EMAIL_PARTIAL_WEIGHT = 10
MAX_DENSITY_BONUS = 10
PATTERN_BONUS = 5

# --- Result confidence weights ---
RESULT_BASE = 50
QUERY_IN_TITLE_BOOST = 20
QUERY_IN_SNIPPET_BOOST = 15
SOCIAL_DOMAIN_BOOST = 10
LOCATION_MATCH_BOOST = 20
PROXIMITY_BOOST = 15
AREA_CODE_MENTION_BOOST = 12
MATCHING_PHONE_BOOST = 18
PEOPLE_SEARCH_BOOST = 10

PEOPLE_SEARCH_SITES = (
    "whitepages",
    "spokeo",
    "fastpeoplesearch",
    "truepeoplesearch",
    "peoplesearchnow",
    "truthfinder",
    "beenverified",
    "radaris",
    "intelius",
)
SOCIAL_SITES = ("linkedin", "facebook", "twitter", "instagram")
SOCIAL_DOMAINS = tuple(f"{site}.com" for site in SOCIAL_SITES)
GOVERNMENT_MARKERS = (".gov", ".edu")
GENEALOGY_SITES = ("familysearch", "ancestry", "findagrave")

# First matching tier wins; bonuses never stack.
CREDIBILITY_TIERS: Tuple[Tuple[int, Tuple[str, ...]], ...] = (
    (10, PEOPLE_SEARCH_SITES),
    (7, SOCIAL_SITES),
    (5, GOVERNMENT_MARKERS),
    (3, GENEALOGY_SITES),
)


def _has_phrase(phrase: str, normalized_text: str) -> bool:
    phrase = normalize_text(phrase)
    if not phrase:
        return False
    return re.search(rf"\b{re.escape(phrase)}\b", normalized_text) is not None


def _state_terms(state: str | None, reference: ReferenceData) -> List[str]:
    if not state:
        return []
    terms = [state]
    region = reference.lookup_state(state)
    if region is not None:
        terms.extend([region.state, region.state_name])
    return terms


def _phone_digits(text: str) -> List[str]:
    digits = []
    for match in PHONE_SHAPE.finditer(text):
        value = re.sub(r"\D", "", match.group(0))
        if len(value) == 10:
            digits.append(value)
    return digits


def keyword_density(text: str, keywords: Iterable[str]) -> float:
    """Percentage of words in ``text`` that are words of ``keywords``."""
    words = normalize_text(text).split()
    if not words:
        return 0.0
    count = 0
    for keyword in keywords:
        for word in normalize_text(keyword).split():
            count += words.count(word)
    return count / len(words) * 100


def credibility_bonus(*texts: str | None) -> int:
    """Bonus for the first credibility tier whose keyword appears in any text."""
    haystack = " ".join(text.lower() for text in texts if text)
    for bonus, keywords in CREDIBILITY_TIERS:
        if any(keyword in haystack for keyword in keywords):
            return bonus
    return 0


def score_relevance(
    snippet: str,
    context: SearchContext,
    *,
    source: str | None = None,
    reference: ReferenceData | None = None,
) -> int:
    """Score how well ``snippet`` matches the search subject, in [0, 100].

    Args:
        snippet: Result text (snippet, or title plus snippet).
        context: The search subject.
        source: Optional source name or URL, checked for credibility keywords
            alongside the snippet.
        reference: Geographic tables used for state names and proximity terms.
    """
    if not snippet:
        return 0
    reference = reference or get_reference_data()
    normalized = normalize_text(snippet)
    score = 0.0

    for token in normalize_text(context.name).split():
        if len(token) <= 2:
            continue
        if re.search(rf"\b{re.escape(token)}\b", normalized):
            score += NAME_TOKEN_WEIGHT
        elif re.search(rf"\b{re.escape(token[:-1])}", normalized):
            score += NAME_STEM_WEIGHT

    if context.city and _has_phrase(context.city, normalized):
        score += CITY_WEIGHT
    if any(_has_phrase(term, normalized) for term in _state_terms(context.state, reference)):
        score += STATE_WEIGHT
    if any(_has_phrase(term, normalized) for term in reference.proximity_terms(context.state, context.city)):
        score += PROXIMITY_WEIGHT

    wanted = context.phone_digits
    if wanted:
        found = _phone_digits(snippet)
        if wanted in found:
            score += PHONE_EXACT_WEIGHT
        elif any(digits[:3] == wanted[:3] for digits in found):
            score += PHONE_AREA_CODE_WEIGHT

    if context.email:
        lowered = snippet.lower()
        local_part = context.email.split("@", 1)[0].lower()
        if context.email.lower() in lowered:
            score += EMAIL_EXACT_WEIGHT
        elif local_part and re.search(rf"\b{re.escape(local_part)}\b", lowered):
            score += EMAIL_PARTIAL_WEIGHT

    keywords = [value for value in (context.name, context.city, context.state) if value]
    score += min(keyword_density(snippet, keywords) * 2, MAX_DENSITY_BONUS)

    if ADDRESS_PATTERNS["street"].search(snippet) or ADDRESS_PATTERNS["po_box"].search(snippet):
        score += PATTERN_BONUS
    if PHONE_SHAPE.search(snippet):
        score += PATTERN_BONUS
    if AGE_PATTERN.search(snippet):
        score += PATTERN_BONUS

    score += credibility_bonus(source, snippet)
    return clamp_score(score)


def score_result_confidence(
    result: SearchResult,
    query: str | None,
    context: SearchContext,
    *,
    reference: ReferenceData | None = None,
) -> int:
    """Score trust in a result as a lead for ``context``, in [0, 100]."""
    reference = reference or get_reference_data()
    title = result.title.lower()
    snippet = result.snippet.lower()
    text = f"{title}\n{snippet}"
    location_text = result.url.lower()
    score = RESULT_BASE

    query_lower = (query or "").strip().lower()
    if query_lower:
        if query_lower in title:
            score += QUERY_IN_TITLE_BOOST
        if query_lower in snippet:
            score += QUERY_IN_SNIPPET_BOOST
    if any(domain in location_text or domain in result.source.lower() for domain in SOCIAL_DOMAINS):
        score += SOCIAL_DOMAIN_BOOST

    normalized = normalize_text(text)
    if context.city and context.state:
        state_terms = _state_terms(context.state, reference)
        if _has_phrase(context.city, normalized) and any(_has_phrase(term, normalized) for term in state_terms):
            score += LOCATION_MATCH_BOOST
        if any(_has_phrase(term, normalized) for term in reference.proximity_terms(context.state, context.city)):
            score += PROXIMITY_BOOST

    area_code = context.phone_digits[:3]
    if area_code:
        if area_code in text:
            score += AREA_CODE_MENTION_BOOST
        raw = [match.group(0) for match in FORMATTED_PHONE.finditer(result.snippet)]
        raw.extend(entity.value for entity in result.extracted_entities if entity.type == EntityType.PHONE)
        phones = {re.sub(r"\D", "", phone)[-10:] for phone in raw}
        matching = sum(1 for phone in phones if phone[:3] == area_code)
        score += matching * MATCHING_PHONE_BOOST

    if any(site in result.source.lower() or site in location_text for site in PEOPLE_SEARCH_SITES):
        score += PEOPLE_SEARCH_BOOST
    return clamp_score(score)


def rank_results(results: Sequence[SearchResult]) -> List[SearchResult]:
    """Order results by ``confidence + relevance_score``, best first (stable)."""
    return sorted(results, key=lambda result: result.confidence + result.relevance_score, reverse=True)


__all__ = [
    "CREDIBILITY_TIERS",
    "credibility_bonus",
    "keyword_density",
    "rank_results",
    "score_relevance",
    "score_result_confidence",
]
