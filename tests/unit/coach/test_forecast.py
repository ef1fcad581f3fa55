"""Tests for the trend/forecast engine.

Series are passed newest-first, keyed by export column, exactly as
:func:`series_from_table` produces them.
"""

import pytest

from app.coach.forecast import (
    ForecastConfig,
    _strain_recovery_risk,
    assess_injury_risk,
    predict,
    predict_from_table,
    predict_performance_readiness,
    predict_recovery,
    predict_sleep_debt,
    series_from_table,
)
from app.schemas.metrics import MetricKind, MetricTable
from app.schemas.prediction import PredictionKind


# ======================================================================
# Helpers
# ======================================================================


def _series(**columns) -> dict[str, list[float]]:
    """Series keyed by export column from MetricKind names (newest first)."""
    return {MetricKind[name].column: [float(v) for v in values] for name, values in columns.items()}


def _stable_series(days: int) -> dict[str, list[float]]:
    return _series(
        RECOVERY=[60] * days,
        DAY_STRAIN=[10] * days,
        SLEEP_PERFORMANCE=[80] * days,
        HRV=[50] * days,
        SLEEP_NEED=[480] * days,
        ASLEEP_DURATION=[450] * days,
    )


# ======================================================================
# Recovery
# ======================================================================


class TestPredictRecovery:
    def test_neutral_week_predicts_baseline(self):
        prediction = predict_recovery(_series(
            RECOVERY=[60] * 7, DAY_STRAIN=[10] * 7, SLEEP_PERFORMANCE=[80] * 7,
        ))

        assert prediction.kind is PredictionKind.RECOVERY
        assert prediction.predicted_value == 60
        assert 0.5 <= prediction.confidence <= 0.95
        assert prediction.timeframe == "tomorrow"
        assert prediction.recommendations[0] == "Moderate training intensity recommended"

    def test_insufficient_data_placeholder(self):
        prediction = predict_recovery(_series(RECOVERY=[60] * 6))

        assert prediction.is_placeholder
        assert prediction.predicted_value == 0
        assert prediction.reasoning == "Insufficient data"
        assert prediction.recommendations == []

    def test_high_strain_and_poor_sleep_lower_recovery(self):
        prediction = predict_recovery(_series(
            RECOVERY=[60] * 7, DAY_STRAIN=[16] * 7, SLEEP_PERFORMANCE=[60] * 7,
        ))

        assert prediction.predicted_value == 42
        assert prediction.recommendations[0] == "Consider a rest day or light activity"

    def test_light_strain_and_great_sleep_raise_recovery(self):
        prediction = predict_recovery(_series(
            RECOVERY=[80] * 7, DAY_STRAIN=[6] * 7, SLEEP_PERFORMANCE=[90] * 7,
        ))

        assert prediction.predicted_value == 88
        assert prediction.recommendations[0] == "Good day for higher intensity training"

    def test_recent_momentum(self):
        # baseline 60, last three 70: +30% of the difference
        prediction = predict_recovery(_series(RECOVERY=[70, 70, 70, 52.5, 52.5, 52.5, 52.5]))
        assert prediction.predicted_value == 63

    def test_clamped_to_floor(self):
        prediction = predict_recovery(_series(
            RECOVERY=[15] * 7, DAY_STRAIN=[16] * 7, SLEEP_PERFORMANCE=[60] * 7,
        ))
        assert prediction.predicted_value == 10

    def test_missing_adjustment_series_are_neutral(self):
        prediction = predict_recovery(_series(RECOVERY=[60] * 7))
        assert prediction.predicted_value == 60


# ======================================================================
# Sleep debt
# ======================================================================


class TestPredictSleepDebt:
    def test_debt_from_deficits(self):
        prediction = predict_sleep_debt(_series(SLEEP_NEED=[480] * 7, ASLEEP_DURATION=[450] * 7))

        assert prediction.kind is PredictionKind.SLEEP_DEBT
        assert prediction.predicted_value == 420
        assert prediction.reasoning.startswith("Current debt: +3.5h.")
        assert prediction.recommendations[0] == "Significant sleep debt accumulated"

    def test_explicit_debt_column_wins(self):
        prediction = predict_sleep_debt(_series(
            SLEEP_NEED=[480] * 7, ASLEEP_DURATION=[450] * 7, SLEEP_DEBT=[90] * 7,
        ))

        assert prediction.predicted_value == 300
        assert prediction.recommendations[0] == "Moderate sleep debt building up"

    def test_zero_debt_reading_falls_back_to_deficits(self):
        prediction = predict_sleep_debt(_series(
            SLEEP_NEED=[480] * 7, ASLEEP_DURATION=[450] * 7, SLEEP_DEBT=[0] * 7,
        ))
        assert prediction.predicted_value == 420

    def test_balanced_sleep(self):
        prediction = predict_sleep_debt(_series(SLEEP_NEED=[450] * 5, ASLEEP_DURATION=[452] * 5))

        assert prediction.predicted_value == -24
        assert prediction.recommendations[0] == "Excellent sleep balance"

    def test_surplus(self):
        prediction = predict_sleep_debt(_series(SLEEP_NEED=[420] * 7, ASLEEP_DURATION=[440] * 7))

        assert prediction.predicted_value == -280
        assert prediction.recommendations[0] == "Great sleep surplus"

    def test_insufficient(self):
        prediction = predict_sleep_debt(_series(SLEEP_NEED=[480] * 4, ASLEEP_DURATION=[450] * 7))

        assert prediction.is_placeholder
        assert prediction.reasoning == "Insufficient sleep data"


# ======================================================================
# Performance readiness
# ======================================================================


class TestPredictPerformance:
    def test_average_recovery_with_neutral_inputs(self):
        prediction = predict_performance_readiness(_series(RECOVERY=[70] * 5))

        assert prediction.predicted_value == 70
        assert prediction.timeframe == "next 3 days"
        assert prediction.recommendations[0] == "Good for moderate-high intensity"
        assert "HRV trend: stable" in prediction.reasoning

    def test_rising_hrv_and_high_strain(self):
        prediction = predict_performance_readiness(_series(
            RECOVERY=[70] * 5,
            HRV=[60, 58, 56, 54, 52],
            DAY_STRAIN=[17] * 5,
        ))

        assert prediction.predicted_value == 65
        assert "HRV trend: improving" in prediction.reasoning

    def test_falling_hrv_and_light_strain(self):
        prediction = predict_performance_readiness(_series(
            RECOVERY=[90] * 5,
            HRV=[52, 54, 56, 58, 60],
            DAY_STRAIN=[5] * 5,
        ))

        assert prediction.predicted_value == 90
        assert "HRV trend: declining" in prediction.reasoning
        assert prediction.recommendations[0] == "Excellent performance window"

    def test_insufficient(self):
        assert predict_performance_readiness(_series(RECOVERY=[70] * 4)).is_placeholder


# ======================================================================
# Injury risk
# ======================================================================


class TestAssessInjuryRisk:
    def test_rising_recovery_with_neutral_strain_is_low_risk(self):
        # recovery oldest -> newest: 40, 42, 45, 70, 72, 75, 80
        prediction = assess_injury_risk(_series(
            RECOVERY=[80, 75, 72, 70, 45, 42, 40],
            DAY_STRAIN=[10] * 7,
            SLEEP_PERFORMANCE=[80] * 7,
        ))

        assert prediction.kind is PredictionKind.INJURY_RISK
        assert prediction.predicted_value == 0
        assert prediction.confidence == 0.5
        assert prediction.reasoning.startswith("0 consecutive high-risk days")
        assert prediction.recommendations[0] == "Low injury risk"

    def test_three_day_streak(self):
        prediction = assess_injury_risk(_series(
            RECOVERY=[30, 30, 30, 80, 80, 80, 80],
            DAY_STRAIN=[16, 16, 16, 10, 10, 10, 10],
        ))

        assert prediction.predicted_value == 70
        assert prediction.reasoning.startswith("3 consecutive high-risk days")
        assert prediction.recommendations[0] == "Moderate injury risk detected"

    def test_streak_bonus_applied_once(self):
        risk, longest = _strain_recovery_risk(
            [30, 30, 30, 80, 30, 30, 30],
            [16, 16, 16, 16, 16, 16, 16],
        )

        # six risky days plus a single streak bonus
        assert risk == 6 * 15 + 25
        assert longest == 3

    def test_pairs_only_overlapping_readings(self):
        risk, longest = _strain_recovery_risk([30, 30], [16, 16, 16, 16])

        assert risk == 2 * 15
        assert longest == 2

    def test_risk_capped(self):
        prediction = assess_injury_risk(_series(
            RECOVERY=[30] * 7,
            DAY_STRAIN=[16] * 7,
            HRV=[40, 45, 50, 55, 60, 65, 70],
        ))

        assert prediction.predicted_value == 100
        assert "HRV trend: declining" in prediction.reasoning
        assert prediction.recommendations[0] == "High injury risk, consider rest days"

    def test_strain_spike(self):
        prediction = assess_injury_risk(_series(
            RECOVERY=[80] * 7,
            DAY_STRAIN=[20, 20, 20, 5, 5, 5, 5],
        ))
        assert prediction.predicted_value == 15

    def test_separate_risky_days(self):
        prediction = assess_injury_risk(_series(
            RECOVERY=[30, 80, 30, 80, 30, 80, 80],
            DAY_STRAIN=[15, 10, 15, 10, 15, 10, 10],
        ))

        assert prediction.predicted_value == 45
        assert prediction.reasoning.startswith("1 consecutive high-risk days")

    def test_insufficient(self):
        prediction = assess_injury_risk(_series(RECOVERY=[60] * 7, DAY_STRAIN=[10] * 6))
        assert prediction.is_placeholder


# ======================================================================
# predict
# ======================================================================


class TestPredict:
    def test_two_stable_weeks_yield_all_predictions(self):
        predictions = predict(_stable_series(14))

        assert [p.kind for p in predictions] == [
            PredictionKind.RECOVERY,
            PredictionKind.SLEEP_DEBT,
            PredictionKind.PERFORMANCE,
            PredictionKind.INJURY_RISK,
        ]
        assert all(p.confidence == pytest.approx(0.9) for p in predictions)

    def test_one_week_filtered_out(self):
        assert predict(_stable_series(7)) == []

    def test_low_confidence_injury_risk_not_surfaced(self):
        series = _series(
            RECOVERY=[80, 75, 72, 70, 45, 42, 40],
            DAY_STRAIN=[10] * 7,
            SLEEP_PERFORMANCE=[80] * 7,
        )
        kinds = [p.kind for p in predict(series)]
        assert PredictionKind.INJURY_RISK not in kinds

    def test_threshold_configurable(self):
        assert predict(_stable_series(14), ForecastConfig(acceptance_threshold=0.9)) == []
        assert len(predict(_stable_series(7), ForecastConfig(acceptance_threshold=0.4))) == 4

    def test_empty_input(self):
        assert predict({}) == []


class TestPredictFromTable:
    def test_series_from_table_window(self):
        records = [{"recovery score %": 60.0 + i, "day strain": "bad"} for i in range(40)]
        series = series_from_table(MetricTable.from_records(records), window_days=30)

        assert len(series["recovery score %"]) == 30
        assert series["recovery score %"][0] == 60.0
        assert series["day strain"] == []

    def test_end_to_end(self):
        records = [
            {
                "recovery score %": 60.0,
                "day strain": 10.0,
                "sleep performance %": 80.0,
                "heart rate variability (ms)": 50.0,
                "sleep need (min)": 480.0,
                "asleep duration (min)": 450.0,
            }
            for _ in range(14)
        ]
        predictions = predict_from_table(MetricTable.from_records(records))

        assert len(predictions) == 4
        assert predictions[0].predicted_value == 60
