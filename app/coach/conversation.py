"""
Conversation gate and prompt assembly.

Decides, for one user message, whether the text-generation collaborator
is needed at all:

1. **Small talk** (greetings, thanks, "ok", goodbyes) gets a canned reply
   unless the message also mentions a health keyword.
2. **No evidence** (retrieval found nothing relevant) gets a fixed
   "can't find that in your data" reply.  The assistant never answers
   from general knowledge.
3. Otherwise a system prompt is assembled around the grounding context.

The network call itself belongs to the collaborator.
"""

from __future__ import annotations

import random
from typing import Optional, Sequence

from app.coach.summarizer import SUMMARY_MAX_RESULTS, summarize
from app.core.logging import get_logger
from app.schemas.coach import CoachTurn, MetricFocus, Utterance
from app.schemas.facts import Fact, GroundingContext

log = get_logger(__name__)

# ======================================================================
# Phrase tables
# ======================================================================

_EXACT_PHRASES: dict[Utterance, frozenset[str]] = {
    Utterance.GREETING: frozenset({
        "hey", "hello", "hi", "hey coach", "hello coach", "hi coach",
        "hey there", "hello there", "hi there", "sup", "yo", "what's up",
        "good morning", "good afternoon", "good evening",
    }),
    Utterance.GRATITUDE: frozenset({
        "thank you", "thanks", "thank you coach", "thanks coach",
        "appreciate it", "much appreciated",
    }),
    Utterance.ACKNOWLEDGMENT: frozenset({
        "ok", "okay", "got it", "understood", "sounds good", "cool",
        "nice", "awesome", "great", "perfect",
    }),
    Utterance.FAREWELL: frozenset({
        "bye", "goodbye", "see you", "talk later", "catch you later",
        "bye coach", "goodbye coach",
    }),
}

# Checked in this order: a message in several tables takes the first.
_SMALL_TALK_ORDER = (
    Utterance.GRATITUDE,
    Utterance.ACKNOWLEDGMENT,
    Utterance.FAREWELL,
    Utterance.GREETING,
)

HEALTH_KEYWORDS: tuple[str, ...] = (
    "sleep", "recovery", "strain", "heart", "hrv", "performance", "health",
    "data", "metrics", "score", "last night", "today", "yesterday", "week",
    "month", "how am i", "how is my", "what about my", "tell me about",
    "analyze", "show me",
)

_CANNED_REPLIES: dict[Utterance, list[str]] = {
    Utterance.GRATITUDE: [
        "You're very welcome! Keep optimizing.",
        "My pleasure! Stay consistent and keep an eye on your recovery.",
        "Glad I could help! Your data is doing the talking.",
    ],
    Utterance.ACKNOWLEDGMENT: [
        "Great! Anything else you'd like to explore about your health data?",
        "Perfect! Let me know if you have more questions about your metrics.",
        "Sounds good! Feel free to ask about any other metric.",
    ],
    Utterance.FAREWELL: [
        "Take care! Sleep well and recover hard.",
        "See you later! I'll be here when your next data comes in.",
        "Talk soon! Keep listening to your body.",
    ],
    Utterance.GREETING: [
        "Hey there! What would you like to know about your health data today?",
        "Hello! I'm here to help analyze your metrics. What's on your mind?",
        "Hi! Ready to dive into your health insights? Ask me anything about your data.",
    ],
}

NO_EVIDENCE_REPLY = (
    "I couldn't find relevant data in your records to answer that question. "
    "Could you try rephrasing, or ask about a metric that is in your data?"
)

_PROMPT_TEMPLATE = """\
You are an expert health and fitness coach analysing the user's own biometric data.
The data below comes from their personal export; the most recent data points are listed first.{focus}

METRIC INTERPRETATION GUIDE:
- Sleep Performance %: below 80% suggests sleep optimization is needed
- Recovery Score %: Red (1-33%) rest priority, Yellow (34-66%) moderate activity, Green (67-99%) ready for higher strain
- Day Strain (0-21): Light 0-9, Moderate 10-13, High 14-17, All-out 18-21
- HRV (ms): higher values typically indicate better recovery capacity
- Sleep Efficiency %: above 85% is optimal
- Blood Oxygen %: should stay above 95%

RULES:
- Use ONLY the data in the context below. If the answer is not there, say you need more specific data.
- NEVER mention exact dates. Use relative references such as "last night", "recently", "your average".
- For sleep debt questions quote the exact debt numbers from the context in hours and minutes.
- Convert decimal hours to hours and minutes and round other numbers to whole values.
- Keep the answer to 4-5 sentences and speak directly to the user.

CONTEXT FROM THE USER'S DATA:
{summary}"""

_FOCUS_TEMPLATE = """

METRIC FOCUS: The user is viewing their {title} metric (current value: {value}). \
Questions such as "is this good?" refer to this metric."""


# ======================================================================
# Classification
# ======================================================================


def mentions_health(query: str) -> bool:
    lowered = query.lower()
    return any(keyword in lowered for keyword in HEALTH_KEYWORDS)


def classify_utterance(query: str) -> Utterance:
    """Classify *query* as small talk or a health question."""
    normalized = query.strip().lower()
    if mentions_health(normalized):
        return Utterance.HEALTH_QUESTION
    for kind in _SMALL_TALK_ORDER:
        if normalized in _EXACT_PHRASES[kind]:
            return kind
    return Utterance.HEALTH_QUESTION


def casual_reply(kind: Utterance, rng: Optional[random.Random] = None) -> str:
    """Pick a canned reply for a small-talk utterance."""
    replies = _CANNED_REPLIES.get(kind)
    if not replies:
        raise ValueError(f"No canned reply for '{kind.value}'")
    return (rng or random).choice(replies)


# ======================================================================
# Prompt assembly
# ======================================================================


def build_system_prompt(context: GroundingContext, metric_focus: Optional[MetricFocus] = None) -> str:
    """System prompt wrapping the grounding summary."""
    focus = ""
    if metric_focus is not None:
        focus = _FOCUS_TEMPLATE.format(title=metric_focus.title, value=metric_focus.value)
    return _PROMPT_TEMPLATE.format(focus=focus, summary=context.rendered_summary)


def _focused_query(query: str, metric_focus: Optional[MetricFocus]) -> str:
    # A vague question about a focused card should retrieve that card's metric.
    if metric_focus is None:
        return query
    return f"{query} {metric_focus.title}"


def prepare_coach_turn(
    query: str,
    facts: Sequence[Fact],
    metric_focus: Optional[MetricFocus] = None,
    max_results: int = SUMMARY_MAX_RESULTS,
    rng: Optional[random.Random] = None,
) -> CoachTurn:
    """Prepare everything the generation collaborator needs for *query*."""
    utterance = classify_utterance(query)
    if utterance is not Utterance.HEALTH_QUESTION:
        return CoachTurn(utterance=utterance, grounded=False, reply=casual_reply(utterance, rng))

    context = summarize(_focused_query(query, metric_focus), facts, max_results)
    if not context.evidence:
        log.info("no_relevant_evidence", query=query)
        return CoachTurn(utterance=utterance, grounded=False, reply=NO_EVIDENCE_REPLY, context=context)

    return CoachTurn(
        utterance=utterance,
        grounded=True,
        system_prompt=build_system_prompt(context, metric_focus),
        context=context,
    )
