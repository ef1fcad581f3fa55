"""Tests for the conversation gate and prompt assembly."""

import random

import pytest

from app.coach.conversation import (
    NO_EVIDENCE_REPLY,
    build_system_prompt,
    casual_reply,
    classify_utterance,
    prepare_coach_turn,
)
from app.coach.knowledge_base import build_knowledge_base
from app.schemas.coach import MetricFocus, Utterance
from app.schemas.facts import Fact, GroundingContext
from app.schemas.metrics import MetricRow


def _facts() -> list[Fact]:
    rows = [
        MetricRow.from_mapping({
            "date": f"2026-02-{14 - i:02d}",
            "recovery score %": 60.0 + i,
            "asleep duration (min)": 430.0 + i,
            "sleep performance %": 82.0,
        })
        for i in range(5)
    ]
    return build_knowledge_base(rows)


# ======================================================================
# Classification
# ======================================================================


class TestClassifyUtterance:
    @pytest.mark.parametrize(
        "query, expected",
        [
            ("hey coach", Utterance.GREETING),
            ("  Hello  ", Utterance.GREETING),
            ("good morning", Utterance.GREETING),
            ("Thanks", Utterance.GRATITUDE),
            ("thank you coach", Utterance.GRATITUDE),
            ("ok", Utterance.ACKNOWLEDGMENT),
            ("sounds good", Utterance.ACKNOWLEDGMENT),
            ("bye", Utterance.FAREWELL),
            ("catch you later", Utterance.FAREWELL),
        ],
    )
    def test_small_talk(self, query, expected):
        assert classify_utterance(query) is expected

    @pytest.mark.parametrize(
        "query",
        [
            "hey coach how did I sleep",
            "thanks, what about my recovery?",
            "ok show me my strain",
            "what's the weather like",
        ],
    )
    def test_health_questions(self, query):
        assert classify_utterance(query) is Utterance.HEALTH_QUESTION


class TestCasualReply:
    def test_deterministic_with_seeded_rng(self):
        first = casual_reply(Utterance.GREETING, random.Random(7))
        second = casual_reply(Utterance.GREETING, random.Random(7))
        assert first == second

    def test_reply_matches_kind(self):
        reply = casual_reply(Utterance.FAREWELL, random.Random(1))
        assert reply in {
            "Take care! Sleep well and recover hard.",
            "See you later! I'll be here when your next data comes in.",
            "Talk soon! Keep listening to your body.",
        }

    def test_health_question_has_no_canned_reply(self):
        with pytest.raises(ValueError):
            casual_reply(Utterance.HEALTH_QUESTION)


# ======================================================================
# Prompt assembly
# ======================================================================


class TestBuildSystemPrompt:
    def test_wraps_summary(self):
        context = GroundingContext(evidence=[], rendered_summary="SUMMARY BLOCK")
        prompt = build_system_prompt(context)

        assert prompt.endswith("SUMMARY BLOCK")
        assert "NEVER mention exact dates" in prompt
        assert "METRIC INTERPRETATION GUIDE" in prompt
        assert "METRIC FOCUS" not in prompt

    def test_metric_focus(self):
        context = GroundingContext(evidence=[], rendered_summary="SUMMARY BLOCK")
        focus = MetricFocus(id="recovery", title="Recovery", value="65%")
        prompt = build_system_prompt(context, focus)

        assert "METRIC FOCUS: The user is viewing their Recovery metric (current value: 65%)." in prompt


class TestPrepareCoachTurn:
    def test_small_talk_short_circuits(self):
        turn = prepare_coach_turn("hey coach", _facts(), rng=random.Random(0))

        assert turn.utterance is Utterance.GREETING
        assert not turn.grounded
        assert turn.reply
        assert turn.system_prompt is None
        assert turn.context is None

    def test_no_evidence(self):
        old = Fact(content="On day 12, your day strain was 12", metric="day strain", value="12", recency=11)
        turn = prepare_coach_turn("tell me about xyzzy", [old])

        assert turn.utterance is Utterance.HEALTH_QUESTION
        assert not turn.grounded
        assert turn.reply == NO_EVIDENCE_REPLY
        assert turn.context.evidence == []

    def test_no_facts_at_all(self):
        turn = prepare_coach_turn("how did I sleep last night?", [])
        assert turn.reply == NO_EVIDENCE_REPLY

    def test_grounded_turn(self):
        turn = prepare_coach_turn("how did I sleep last night?", _facts())

        assert turn.grounded
        assert turn.reply is None
        assert turn.context.evidence
        assert turn.context.rendered_summary in turn.system_prompt
        assert "2026-02" not in turn.system_prompt

    def test_evidence_limit(self):
        turn = prepare_coach_turn("how is my recovery", _facts(), max_results=2)
        assert len(turn.context.evidence) == 2

    def test_metric_focus_reaches_prompt(self):
        focus = MetricFocus(id="recovery", title="Recovery", value="65%")
        turn = prepare_coach_turn("is this good?", _facts(), metric_focus=focus)

        assert turn.grounded
        assert "METRIC FOCUS" in turn.system_prompt
        assert any(f.metric == "recovery score %" for f in turn.context.evidence)
