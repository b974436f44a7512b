"""
Trigger Ranker and Mood Series Tests
"""

import pytest
from datetime import date

from clinical_analytics.contracts.base import ErrorCode
from clinical_analytics.core.mood import build_mood_series, day_label
from clinical_analytics.core.triggers import TriggerConfig, rank_triggers
from clinical_analytics.observability import LogCollector


class TestTriggerRanking:

    @pytest.fixture
    def pivot(self):
        return {
            "days": ["Monday", "Tuesday"],
            "triggersByDay": {
                "Monday": {"stress": 2.25, "food": 1},
                "Tuesday": {"stress": 1.0, "body": 0.25},
            },
        }

    def test_sums_across_days_and_ranks(self, pivot):
        ranked = rank_triggers(pivot)

        assert [(t.trigger, t.intensity) for t in ranked] == [
            ("Stress", 3.3), ("Food", 1.0), ("Body", 0.3)
        ]

    def test_keeps_top_n(self):
        pivot = {"triggersByDay": {"Monday": {f"t{i}": float(i) for i in range(8)}}}

        ranked = rank_triggers(pivot)

        assert len(ranked) == 6
        assert ranked[0].trigger == "T7"
        assert ranked[-1].trigger == "T2"

    def test_custom_top_n(self, pivot):
        assert len(rank_triggers(pivot, TriggerConfig(top_n=1))) == 1

    def test_invalid_intensity_skipped(self):
        collector = LogCollector("triggers")
        pivot = {"triggersByDay": {"Monday": {"stress": "high", "food": 2}}}

        ranked = rank_triggers(pivot, collector=collector)

        assert [t.trigger for t in ranked] == ["Food"]
        assert collector.get_entries(error_code=ErrorCode.INVALID_INTENSITY)

    def test_int_beyond_float_range_skipped(self):
        collector = LogCollector("triggers")
        pivot = {"triggersByDay": {"Monday": {"stress": 10 ** 400, "food": 1}}}

        ranked = rank_triggers(pivot, collector=collector)

        assert [t.trigger for t in ranked] == ["Food"]
        assert collector.get_entries(error_code=ErrorCode.INVALID_INTENSITY)

    def test_ranked_on_raw_sums_before_rounding(self):
        pivot = {"triggersByDay": {"Monday": {"food": 2.01, "stress": 2.04}}}

        ranked = rank_triggers(pivot)

        assert [(t.trigger, t.intensity) for t in ranked] == [("Stress", 2.0), ("Food", 2.0)]

    def test_overflowing_sum_does_not_raise(self):
        pivot = {"triggersByDay": {"Monday": {"stress": 1e308}, "Tuesday": {"stress": 1e308}}}

        ranked = rank_triggers(pivot)

        assert ranked[0].trigger == "Stress"

    def test_day_without_mapping_ignored(self):
        pivot = {"triggersByDay": {"Monday": None, "Friday": {"stress": 1}}}

        assert [t.trigger for t in rank_triggers(pivot)] == ["Stress"]

    @pytest.mark.parametrize("payload", [None, [], "x", {"days": []}, {"triggersByDay": []}])
    def test_degraded_payload_yields_empty(self, payload):
        assert rank_triggers(payload) == ()


class TestMoodSeries:

    def test_points_per_date_with_ragged_arrays(self):
        series = {
            "dates": ["2024-03-07", "2024-03-08", "bad"],
            "valenceScores": [1.5, -2],
            "emotions": ["calm", "sad", "tired"],
            "movingAverage": [1.5],
        }

        points = build_mood_series(series)

        assert [p.label for p in points] == ["Mar 7", "Mar 8", "bad"]
        assert [p.valence for p in points] == [1.5, -2.0, None]
        assert [p.moving_average for p in points] == [1.5, None, None]
        assert [p.emotion for p in points] == ["calm", "sad", "tired"]
        assert points[0].date == date(2024, 3, 7)
        assert points[2].date is None

    def test_unrepresentable_numbers_become_none(self):
        points = build_mood_series({
            "dates": ["2024-03-07"],
            "valenceScores": [10 ** 400],
            "movingAverage": [float("nan")],
        })

        assert points[0].valence is None
        assert points[0].moving_average is None

    def test_unparseable_date_audited(self):
        collector = LogCollector("mood")

        build_mood_series({"dates": ["bad"]}, collector=collector)

        assert collector.get_entries(error_code=ErrorCode.INVALID_TIMESTAMP)

    def test_day_label(self):
        assert day_label(date(2024, 12, 25)) == "Dec 25"

    @pytest.mark.parametrize("payload", [None, [], "x", {}])
    def test_degraded_payload_yields_empty(self, payload):
        assert build_mood_series(payload) == ()
