"""Tests for the knowledge base builder.

Pure unit tests: rows are built in memory, no CSV or API involved.
"""

import re

import pytest

from app.coach.knowledge_base import (
    build_knowledge_base,
    classify_debt,
    format_field_value,
    is_calendar_date,
    knowledge_base_stats,
    time_context,
)
from app.schemas.facts import FactSource
from app.schemas.metrics import MetricRow, NamedValue, format_minutes


# ======================================================================
# Helpers
# ======================================================================


def _row(date=None, source=None, **values) -> MetricRow:
    """Build a row; keyword names use '_' for spaces."""
    data = {k.replace("_", " "): v for k, v in values.items()}
    if date is not None:
        data["date"] = date
    if source is not None:
        data["_source_file"] = source
    return MetricRow.from_mapping(data)


def _debt_rows(*debts) -> list[MetricRow]:
    return [MetricRow.from_mapping({"sleep debt (min)": d}) for d in debts]


# ======================================================================
# Duration formatting
# ======================================================================


class TestFormatMinutes:
    @pytest.mark.parametrize(
        "minutes, expected",
        [
            (452, "7h 32m"),
            (0, "0h 0m"),
            (120, "2h 0m"),
            (61.4, "1h 1m"),
            (59.6, "1h 0m"),
            (479.7, "8h 0m"),
        ],
    )
    def test_renders_hours_and_minutes(self, minutes, expected):
        assert format_minutes(minutes) == expected

    def test_minutes_always_in_range(self):
        pattern = re.compile(r"^(\d+)h (\d+)m$")
        for tenths in range(0, 6000, 7):
            minutes = tenths / 10
            rendered = format_minutes(minutes)
            match = pattern.match(rendered)
            assert match, rendered
            assert 0 <= int(match.group(2)) <= 59

    def test_hours_are_floor_of_minutes(self):
        for minutes in (0, 59, 60, 119, 121, 452, 600):
            hours = int(format_minutes(minutes).split("h")[0])
            assert hours == minutes // 60


class TestFormatFieldValue:
    def test_duration_field_converted(self):
        assert format_field_value("asleep duration (min)", 452.0) == "7h 32m"

    def test_whole_number_rendered_without_decimal(self):
        assert format_field_value("recovery score %", 72.0) == "72"

    def test_fraction_kept(self):
        assert format_field_value("day strain", 12.5) == "12.5"

    def test_non_numeric_duration_left_as_text(self):
        assert format_field_value("sleep need (min)", "n/a") == "n/a"


# ======================================================================
# Time context
# ======================================================================


class TestTimeContext:
    @pytest.mark.parametrize(
        "index, phrase",
        [(0, "most recently"), (1, "recently"), (2, "in recent days"), (6, "in recent days"), (7, None)],
    )
    def test_phrases(self, index, phrase):
        assert time_context(index) == phrase

    @pytest.mark.parametrize(
        "label",
        [
            "2026-02-14",
            "02/14/2026",
            "Feb 14, 2026",
            "2026-02-14T07:00:00",
            "2025-02-26 22:31:00",
            "2025-02-26T22:31:00Z",
            "02/26/2025 10:31 PM",
        ],
    )
    def test_calendar_dates_detected(self, label):
        assert is_calendar_date(label)

    @pytest.mark.parametrize("label", ["Week 3", "cycle 12", "cycle 12:30", "1:30", ""])
    def test_other_labels_not_dates(self, label):
        assert not is_calendar_date(label)


# ======================================================================
# Row facts
# ======================================================================


class TestRowFacts:
    def test_most_recent_row(self):
        facts = build_knowledge_base([_row(recovery_score_pct=72.0)])

        assert len(facts) == 1
        fact = facts[0]
        assert fact.content == "most recently, your recovery score pct was 72"
        assert fact.metric == "recovery score pct"
        assert fact.value == "72"
        assert fact.recency == 0
        assert fact.source == FactSource.CSV_DATA

    def test_duration_fact_rendered(self):
        facts = build_knowledge_base([MetricRow.from_mapping({"asleep duration (min)": 452.0})])

        assert facts[0].content == "most recently, your asleep duration (min) was 7h 32m"
        assert facts[0].value == "7h 32m"

    def test_relative_phrases_by_index(self):
        rows = [MetricRow.from_mapping({"day strain": float(i)}) for i in range(3)]
        contents = [f.content for f in build_knowledge_base(rows)]

        assert contents[0].startswith("most recently,")
        assert contents[1].startswith("recently,")
        assert contents[2].startswith("in recent days,")

    def test_old_rows_never_render_calendar_dates(self):
        rows = [
            MetricRow.from_mapping({"date": f"2026-02-{20 - i:02d}", "day strain": 10.0})
            for i in range(9)
        ]
        facts = build_knowledge_base(rows)

        assert facts[7].content == "On day 8, your day strain was 10"
        assert facts[8].content == "On day 9, your day strain was 10"
        assert all("2026" not in f.content for f in facts)
        assert facts[7].label == "2026-02-13"

    def test_old_rows_use_non_calendar_label(self):
        rows = [MetricRow.from_mapping({"date": f"Week {i}", "day strain": 10.0}) for i in range(8)]
        facts = build_knowledge_base(rows)

        assert facts[7].content == "On Week 7, your day strain was 10"

    def test_blank_values_skipped(self):
        row = MetricRow.from_mapping({"recovery score %": "", "day strain": None, "hrv": 55.0})
        facts = build_knowledge_base([row])

        assert [f.metric for f in facts] == ["hrv"]

    def test_timestamp_cells_skipped(self):
        row = MetricRow.from_mapping({
            "cycle start time": "2025-02-26 22:31:00",
            "sleep onset": "2025-02-26T23:05:00Z",
            "recovery score %": 64.0,
        })
        facts = build_knowledge_base([row])

        assert [f.metric for f in facts] == ["recovery score %"]

    def test_provenance_fields_are_not_facts(self):
        row = _row(date="2026-02-14", source="physio.csv", day_strain=11.0)
        facts = build_knowledge_base([row])

        assert len(facts) == 1
        assert facts[0].metric == "day strain"
        assert facts[0].source == "physio.csv"


# ======================================================================
# Snapshot facts
# ======================================================================


class TestSnapshotFacts:
    def test_snapshots_follow_row_facts(self):
        rows = [MetricRow.from_mapping({"day strain": 11.0})]
        snapshots = [NamedValue(title="Recovery", value="65%", subtitle="7-day average")]

        facts = build_knowledge_base(rows, snapshots)

        assert len(facts) == 2
        snap = facts[1]
        assert snap.content == "Your current Recovery is 65% - 7-day average"
        assert snap.source == FactSource.CURRENT_METRICS
        assert snap.recency == -1
        assert snap.metric == "Recovery"


# ======================================================================
# Sleep debt block
# ======================================================================


class TestSleepDebtFacts:
    @pytest.mark.parametrize(
        "minutes, label",
        [
            (90, "significant debt"),
            (45, "moderate debt"),
            (30, "balanced"),
            (0, "balanced"),
            (-40, "slight surplus"),
            (-60, "significant surplus"),
            (-120, "significant surplus"),
        ],
    )
    def test_classify_debt(self, minutes, label):
        assert classify_debt(minutes) == label

    def test_tracking_and_trend_facts(self):
        facts = build_knowledge_base(_debt_rows(90.0, 48.0, 0.0, -42.0, -90.0))
        tracking = [f for f in facts if f.source == FactSource.SLEEP_DEBT_TRACKING]
        analysis = [f for f in facts if f.source == FactSource.SLEEP_DEBT_ANALYSIS]

        assert [f.content for f in tracking] == [
            "Sleep debt most recent night: +1.5 hours (significant debt)",
            "Sleep debt 1 day ago: +0.8 hours (moderate debt)",
            "Sleep debt 2 days ago: +0.0 hours (balanced)",
            "Sleep debt 3 days ago: -0.7 hours (slight surplus)",
            "Sleep debt 4 days ago: -1.5 hours (significant surplus)",
        ]
        assert [f.recency for f in tracking] == [0, 1, 2, 3, 4]
        assert len(analysis) == 1
        assert analysis[0].content == (
            "Sleep debt 7-day trend: 0.1 hours total, 0.0 hours average daily (maintaining balance)"
        )
        assert analysis[0].recency == 0

    def test_accumulating_trend(self):
        facts = build_knowledge_base(_debt_rows(60.0, 60.0, 60.0))
        trend = facts[-1]

        assert trend.metric == "Sleep Debt Trend"
        assert "accumulating debt" in trend.content

    def test_surplus_trend(self):
        facts = build_knowledge_base(_debt_rows(-60.0, -60.0))
        assert "building surplus" in facts[-1].content

    def test_window_limited_to_seven_nights(self):
        facts = build_knowledge_base(_debt_rows(*([30.0] * 10)))
        tracking = [f for f in facts if f.source == FactSource.SLEEP_DEBT_TRACKING]

        assert len(tracking) == 7

    def test_non_numeric_debt_ignored(self):
        rows = _debt_rows("n/a", 60.0)
        tracking = [f for f in build_knowledge_base(rows) if f.source == FactSource.SLEEP_DEBT_TRACKING]

        assert len(tracking) == 1
        assert tracking[0].content.startswith("Sleep debt most recent night: +1.0 hours")

    def test_no_debt_column_no_block(self):
        facts = build_knowledge_base([MetricRow.from_mapping({"day strain": 12.0})])
        assert all(f.source == FactSource.CSV_DATA for f in facts)


# ======================================================================
# Determinism and stats
# ======================================================================


class TestBuildKnowledgeBase:
    def test_empty_rows(self):
        assert build_knowledge_base([]) == []

    def test_building_twice_is_identical(self):
        rows = [
            _row(date="2026-02-14", recovery_score_pct=70.0, day_strain=12.0),
            MetricRow.from_mapping({"sleep debt (min)": 40.0, "asleep duration (min)": 410.0}),
        ]
        assert build_knowledge_base(rows) == build_knowledge_base(rows)

    def test_stats(self):
        rows = [
            MetricRow.from_mapping({"day strain": 12.0, "sleep debt (min)": 40.0}),
            MetricRow.from_mapping({"day strain": 10.0}),
        ]
        stats = knowledge_base_stats(build_knowledge_base(rows))

        # 3 row facts, 1 tracking fact, 1 trend fact
        assert stats.total_facts == 5
        assert stats.unique_metrics == 4
        assert stats.sources == [
            FactSource.CSV_DATA,
            FactSource.SLEEP_DEBT_TRACKING,
            FactSource.SLEEP_DEBT_ANALYSIS,
        ]
