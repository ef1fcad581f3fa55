"""
Relevance retriever — deterministic lexical scoring over facts.

There is no embedding model.  A query is lower-cased, split on
whitespace and expanded through a fixed table of five synonym clusters;
each fact is then scored by substring and whole-word matches against its
content and metric name, plus a handful of priority boosts:

=====================================  =======
Condition                              Score
=====================================  =======
term is a substring of content         +2
term is a substring of metric          +3
term is a whole word of content        +1
term is a whole word of metric         +2
"sleep debt" query, tracking fact      +50
"sleep debt" query, analysis fact      +45
current-snapshot fact                  +5
recency rank below 3                   +3
temporal query, recency 0 / 1 / 2      +20 / +10 / +5
=====================================  =======

Boosts stack.  Facts scoring zero or less are discarded; the rest are
returned best-first, ties kept in knowledge-base order.
"""

from __future__ import annotations

from typing import Sequence

from app.core.logging import get_logger
from app.schemas.facts import Fact, FactSource, ScoredFact

log = get_logger(__name__)

# ======================================================================
# Configuration
# ======================================================================

# (trigger words, expansion vocabulary)
SYNONYM_CLUSTERS: list[tuple[frozenset[str], tuple[str, ...]]] = [
    (
        frozenset({"sleep", "sleeping", "slept", "rest", "bed"}),
        ("sleep", "asleep", "duration", "efficiency", "performance", "rem", "deep", "light", "awake", "bed"),
    ),
    (
        frozenset({"debt", "owe", "deficit", "behind", "surplus", "excess"}),
        ("debt", "deficit", "surplus", "need", "owe", "behind", "excess", "balance"),
    ),
    (
        frozenset({"recovery", "recover", "readiness", "ready"}),
        ("recovery", "score", "hrv", "variability", "resting"),
    ),
    (
        frozenset({"strain", "workout", "exercise", "activity", "training"}),
        ("strain", "day", "exertion", "calories", "burned", "energy"),
    ),
    (
        frozenset({"heart", "hr", "bpm", "pulse"}),
        ("heart", "rate", "bpm", "resting", "average", "max", "hrv", "variability"),
    ),
]

TEMPORAL_PHRASES: tuple[str, ...] = (
    "last night", "yesterday", "today", "most recent", "latest", "current", "now",
)

SLEEP_DEBT_PHRASE = "sleep debt"

DEFAULT_MAX_RESULTS = 10

_TERM_SCORES = {
    "content_substring": 2.0,
    "metric_substring": 3.0,
    "content_word": 1.0,
    "metric_word": 2.0,
}

_SOURCE_BOOSTS: dict[str, float] = {
    FactSource.SLEEP_DEBT_TRACKING: 50.0,
    FactSource.SLEEP_DEBT_ANALYSIS: 45.0,
}

_CURRENT_METRICS_BOOST = 5.0
_RECENT_BOOST = 3.0
_RECENT_BOOST_BELOW = 3

# recency rank → bonus when the query asks about "now".
_TEMPORAL_BOOSTS: dict[int, float] = {0: 20.0, 1: 10.0, 2: 5.0}


# ======================================================================
# Query analysis
# ======================================================================


def expand_query(query: str) -> list[str]:
    """Tokenise *query* and union in every triggered synonym cluster.

    Order is preserved (query tokens first) and duplicates removed.
    """
    words = query.lower().split()
    expanded = list(words)
    for triggers, vocabulary in SYNONYM_CLUSTERS:
        if any(w in triggers for w in words):
            expanded.extend(vocabulary)
    return list(dict.fromkeys(expanded))


def has_temporal_intent(query: str) -> bool:
    """``True`` if the query asks about the most recent data."""
    lowered = query.lower()
    return any(phrase in lowered for phrase in TEMPORAL_PHRASES)


# ======================================================================
# Scoring
# ======================================================================


def score_fact(fact: Fact, terms: Sequence[str], query: str, temporal: bool) -> float:
    """Relevance of one fact for an already-expanded query."""
    score = 0.0
    content = fact.content.lower()
    metric = fact.metric.lower()
    content_words = content.split()
    metric_words = metric.split()

    for term in terms:
        if term in content:
            score += _TERM_SCORES["content_substring"]
        if term in metric:
            score += _TERM_SCORES["metric_substring"]
        if term in content_words:
            score += _TERM_SCORES["content_word"]
        if term in metric_words:
            score += _TERM_SCORES["metric_word"]

    if SLEEP_DEBT_PHRASE in query.lower():
        score += _SOURCE_BOOSTS.get(fact.source, 0.0)

    if fact.source == FactSource.CURRENT_METRICS:
        score += _CURRENT_METRICS_BOOST
    if fact.recency is not None and fact.recency < _RECENT_BOOST_BELOW:
        score += _RECENT_BOOST

    if temporal and fact.recency is not None:
        score += _TEMPORAL_BOOSTS.get(fact.recency, 0.0)

    return score


def score_facts(query: str, facts: Sequence[Fact]) -> list[ScoredFact]:
    """Score every fact for *query*, in knowledge-base order."""
    terms = expand_query(query)
    temporal = has_temporal_intent(query)
    log.debug("query_expanded", query=query, terms=terms, temporal=temporal)
    return [ScoredFact(fact=f, score=score_fact(f, terms, query, temporal)) for f in facts]


# ======================================================================
# Main entry point
# ======================================================================


def retrieve_scored(
    query: str,
    facts: Sequence[Fact],
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[ScoredFact]:
    """Like :func:`retrieve` but keeps the scores."""
    if not facts or max_results <= 0:
        return []
    scored = [s for s in score_facts(query, facts) if s.score > 0]
    # sorted() is stable: equal scores keep knowledge-base order.
    ranked = sorted(scored, key=lambda s: -s.score)[:max_results]
    log.debug(
        "facts_retrieved",
        query=query,
        candidates=len(scored),
        returned=len(ranked),
    )
    return ranked


def retrieve(
    query: str,
    facts: Sequence[Fact],
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[Fact]:
    """Return the *max_results* most relevant facts for *query*.

    An empty result means the knowledge base holds nothing relevant; the
    caller must decline to answer rather than fall back to general
    knowledge.
    """
    return [s.fact for s in retrieve_scored(query, facts, max_results)]
