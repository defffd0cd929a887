"""Tests for metric extraction and daily alignment."""

from datetime import date, datetime

import pytest

from fitness_analytics.exceptions import UnknownMetricError
from fitness_analytics.metrics import (
    METRICS,
    available_metrics,
    build_daily_records,
    extract_paired,
    extract_series,
    metric_value,
)
from fitness_analytics.models import HeartRateStats, WorkoutIntensity

from conftest import make_snapshot, make_workout


class TestBuildDailyRecords:
    """Tests for joining workouts with health snapshots."""

    def test_pairs_same_and_next_day(self):
        """Test each workout gets its own day and the following day."""
        workouts = [make_workout("w-1", when=datetime(2024, 5, 2, 18, 0))]
        snapshots = [
            make_snapshot(date(2024, 5, 1), sleep_hours=6.0),
            make_snapshot(date(2024, 5, 2), sleep_hours=7.0),
            make_snapshot(date(2024, 5, 3), sleep_hours=8.0),
        ]
        record = build_daily_records(workouts, snapshots)[0]
        assert record.health.sleep_hours == 7.0
        assert record.next_day_health.sleep_hours == 8.0

    def test_sorted_by_date(self):
        workouts = [
            make_workout("late", when=datetime(2024, 5, 9)),
            make_workout("early", when=datetime(2024, 5, 1)),
        ]
        records = build_daily_records(workouts, [])
        assert [r.workout.id for r in records] == ["early", "late"]

    def test_weekly_workouts_trailing_seven_days(self):
        """Test the trailing count includes the workout's own day."""
        workouts = [
            make_workout(f"w-{d}", when=datetime(2024, 5, d, 7, 0))
            for d in (1, 3, 5, 9)
        ]
        records = build_daily_records(workouts, [])
        assert [r.weekly_workouts for r in records] == [1, 2, 3, 3]

    def test_missing_snapshots(self):
        record = build_daily_records([make_workout()], [])[0]
        assert record.health is None
        assert record.next_day_health is None

    def test_empty(self):
        assert build_daily_records([], []) == []


class TestExtractSeries:
    """Tests for single-metric extraction."""

    def test_workout_metric(self):
        workouts = [
            make_workout("a", when=datetime(2024, 5, 1), intensity=WorkoutIntensity.LOW),
            make_workout("b", when=datetime(2024, 5, 2), intensity=WorkoutIntensity.EXTREME),
        ]
        series = extract_series(build_daily_records(workouts, []), "intensity")
        assert series.name == "intensity"
        assert series.values == [1.0, 4.0]

    def test_skips_missing_values(self):
        """Test records without the metric are skipped."""
        workouts = [
            make_workout("a", when=datetime(2024, 5, 1)),
            make_workout("b", when=datetime(2024, 5, 2)),
        ]
        snapshots = [make_snapshot(date(2024, 5, 2), hrv=62.0)]
        series = extract_series(build_daily_records(workouts, snapshots), "hrv")
        assert series.values == [62.0]
        assert series.timestamps == [datetime(2024, 5, 2)]

    def test_skips_non_finite_values(self):
        workouts = [make_workout("a", when=datetime(2024, 5, 1))]
        snapshots = [make_snapshot(date(2024, 5, 1), hrv=float("nan"))]
        assert len(extract_series(build_daily_records(workouts, snapshots), "hrv")) == 0

    def test_derived_metrics(self):
        """Test work rate, training load and heart rate."""
        workout = make_workout(
            minutes=50, calories=400, intensity=WorkoutIntensity.HIGH,
            heart_rate=HeartRateStats(average=150, maximum=182),
        )
        record = build_daily_records([workout], [])[0]
        assert metric_value(record, "work_rate") == pytest.approx(8.0)
        assert metric_value(record, "training_load") == pytest.approx(150.0)
        assert metric_value(record, "average_heart_rate") == 150.0

    def test_zero_duration_has_no_work_rate(self):
        record = build_daily_records([make_workout(minutes=0)], [])[0]
        assert metric_value(record, "work_rate") is None

    def test_readiness_metrics(self):
        """Test same-day and next-day readiness."""
        workouts = [make_workout(when=datetime(2024, 5, 1, 7, 0))]
        snapshots = [
            make_snapshot(date(2024, 5, 1), sleep_hours=8.0, stress_level=0.0, energy_level=100.0),
            make_snapshot(date(2024, 5, 2), sleep_hours=0.0, stress_level=100.0, energy_level=0.0),
        ]
        record = build_daily_records(workouts, snapshots)[0]
        assert metric_value(record, "readiness") == pytest.approx(1.0)
        assert metric_value(record, "next_day_readiness") == pytest.approx(0.0)

    def test_readiness_missing_without_inputs(self):
        """Test a snapshot with no sleep, stress or energy has no readiness."""
        workouts = [make_workout(when=datetime(2024, 5, 1))]
        snapshots = [make_snapshot(date(2024, 5, 1), hrv=55.0)]
        record = build_daily_records(workouts, snapshots)[0]
        assert metric_value(record, "readiness") is None

    def test_empty_records(self):
        assert len(extract_series([], "sleep_hours")) == 0

    def test_unknown_metric(self):
        with pytest.raises(UnknownMetricError) as exc_info:
            extract_series([], "vo2max")
        assert exc_info.value.details["metric"] == "vo2max"


class TestExtractPaired:
    """Tests for index-aligned pairs."""

    def test_drops_incomplete_pairs(self):
        """Test a record is dropped when either side is missing."""
        workouts = [make_workout(f"w-{d}", when=datetime(2024, 5, d)) for d in (1, 2, 3)]
        snapshots = [
            make_snapshot(date(2024, 5, 1), sleep_hours=7.0),
            make_snapshot(date(2024, 5, 3), sleep_hours=8.0),
        ]
        a, b = extract_paired(build_daily_records(workouts, snapshots), "sleep_hours", "duration_minutes")
        assert len(a) == len(b) == 2
        assert a.timestamps == b.timestamps
        assert a.values == [7.0, 8.0]

    def test_unknown_metric_either_side(self):
        with pytest.raises(UnknownMetricError):
            extract_paired([], "sleep_hours", "mood")
        with pytest.raises(UnknownMetricError):
            extract_paired([], "mood", "sleep_hours")


class TestRegistry:
    def test_all_metric_families_registered(self):
        names = available_metrics()
        for name in ("duration_minutes", "weekly_workouts", "hydration_l", "next_day_energy"):
            assert name in names
        assert len(names) == len(METRICS)
