"""
Context summarizer — retrieved facts → grounding text.

The rendered summary is the exact payload handed to the text-generation
collaborator.  Facts are grouped by metric (first-occurrence order) and
each line carries the fact sentence, its value and, when a threshold
table applies, an interpretation such as ``Green (high recovery)``.

Only fact content is rendered; row date labels stay in metadata.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Optional, Sequence

from app.coach.retriever import retrieve
from app.core.logging import get_logger
from app.schemas.facts import Fact, GroundingContext

log = get_logger(__name__)

SUMMARY_MAX_RESULTS = 8

SUMMARY_HEADER = (
    "Your personal health data with metric interpretation "
    "(most recent data points listed first):"
)

# (metric keyword, [(lower bound inclusive, label), ...] highest first)
_INTERPRETATIONS: list[tuple[str, list[tuple[float, str]]]] = [
    ("recovery", [
        (67.0, "Green (high recovery, ready for higher strain)"),
        (34.0, "Yellow (moderate recovery, moderate activity recommended)"),
        (float("-inf"), "Red (low recovery, prioritize rest)"),
    ]),
    ("sleep performance", [
        (80.0, "Good (meeting sleep needs)"),
        (float("-inf"), "Below optimal (sleep optimization recommended)"),
    ]),
    ("strain", [
        (18.0, "All-out exertion (18-21)"),
        (14.0, "High exertion (14-17)"),
        (10.0, "Moderate exertion (10-13)"),
        (float("-inf"), "Light exertion (0-9)"),
    ]),
    ("efficiency", [
        (85.0, "Optimal sleep efficiency"),
        (float("-inf"), "Room for sleep efficiency improvement"),
    ]),
    ("oxygen", [
        (95.0, "Normal blood oxygen levels"),
        (float("-inf"), "Below optimal blood oxygen (may indicate sleep/breathing issues)"),
    ]),
]

_LEADING_NUMBER = re.compile(r"^\s*([-+]?\d+(?:\.\d+)?)")


def _leading_number(text: str) -> Optional[float]:
    match = _LEADING_NUMBER.match(text)
    return float(match.group(1)) if match else None


def interpret_metric(metric: str, value: float) -> Optional[str]:
    """Threshold interpretation of *value*, or ``None`` if no table applies."""
    lowered = metric.lower()
    for keyword, bands in _INTERPRETATIONS:
        if keyword in lowered:
            for lower, label in bands:
                if value >= lower:
                    return label
    return None


def _render_line(fact: Fact) -> str:
    number = _leading_number(fact.value)
    interpretation = interpret_metric(fact.metric, number) if number is not None else None
    detail = f"{fact.value}, {interpretation}" if interpretation else fact.value
    return f"- {fact.content} [{detail}] (Source: {fact.source})"


def render_summary(evidence: Sequence[Fact]) -> str:
    """Render grouped evidence blocks."""
    grouped: dict[str, list[Fact]] = {}
    for fact in evidence:
        grouped.setdefault(fact.metric, []).append(fact)

    parts = [SUMMARY_HEADER, ""]
    for metric, facts in grouped.items():
        parts.append(f"**{metric}:**")
        parts.extend(_render_line(f) for f in facts)
        parts.append("")
    return "\n".join(parts).strip()


def summarize(
    query: str,
    facts: Sequence[Fact],
    max_results: int = SUMMARY_MAX_RESULTS,
) -> GroundingContext:
    """Retrieve evidence for *query* and render the grounding context."""
    evidence = retrieve(query, facts, max_results)
    summary = render_summary(evidence) if evidence else ""
    sources = dict(Counter(f.source for f in evidence))
    log.debug("grounding_context_built", query=query, evidence=len(evidence), sources=sources)
    return GroundingContext(evidence=evidence, rendered_summary=summary, sources=sources)
