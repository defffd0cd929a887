"""
Metric extraction from workout and health records.

Every workout becomes one ``DailyRecord`` carrying the health snapshot for
the same calendar day, the snapshot for the following day and the number of
workouts in the trailing week. Metric accessors read one number off a
record; series built from the same records stay index aligned.
"""

import math
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from fitness_analytics.classifier import readiness
from fitness_analytics.exceptions import UnknownMetricError
from fitness_analytics.models import HealthSnapshot, Workout
from fitness_analytics.series import MetricSeries


@dataclass(frozen=True)
class DailyRecord:
    """A workout joined with the health context around it."""
    workout: Workout
    health: Optional[HealthSnapshot] = None
    next_day_health: Optional[HealthSnapshot] = None
    weekly_workouts: int = 1

    @property
    def date(self) -> datetime:
        return self.workout.date

    @property
    def day(self) -> date:
        return self.workout.date.date()


def build_daily_records(
    workouts: Iterable[Workout],
    snapshots: Iterable[HealthSnapshot],
) -> List[DailyRecord]:
    """
    Join workouts with health snapshots by calendar day.

    Args:
        workouts: Workout history in any order
        snapshots: Health snapshots in any order; the last one wins per day

    Returns:
        One record per workout, sorted by workout date
    """
    ordered = sorted(workouts, key=lambda w: w.date)
    by_day: Dict[date, HealthSnapshot] = {}
    for snapshot in snapshots:
        by_day[snapshot.date] = snapshot

    days = [w.date.date() for w in ordered]
    records = []
    for workout, day in zip(ordered, days):
        week_start = day - timedelta(days=6)
        weekly = bisect_right(days, day) - bisect_left(days, week_start)
        records.append(DailyRecord(
            workout=workout,
            health=by_day.get(day),
            next_day_health=by_day.get(day + timedelta(days=1)),
            weekly_workouts=weekly,
        ))
    return records


MetricAccessor = Callable[[DailyRecord], Optional[float]]


def _from_health(attribute: str, next_day: bool = False) -> MetricAccessor:
    def accessor(record: DailyRecord) -> Optional[float]:
        snapshot = record.next_day_health if next_day else record.health
        if snapshot is None:
            return None
        return getattr(snapshot, attribute)
    return accessor


def _readiness_of(snapshot: Optional[HealthSnapshot]) -> Optional[float]:
    if snapshot is None:
        return None
    inputs = (snapshot.sleep_hours, snapshot.stress_level, snapshot.energy_level)
    if all(value is None for value in inputs):
        return None
    return readiness(*inputs)


def _work_rate(record: DailyRecord) -> Optional[float]:
    minutes = record.workout.duration_minutes
    if minutes <= 0:
        return None
    return record.workout.calories / minutes


def _average_heart_rate(record: DailyRecord) -> Optional[float]:
    heart_rate = record.workout.heart_rate
    return heart_rate.average if heart_rate else None


WORKOUT_METRICS: Dict[str, MetricAccessor] = {
    "duration_minutes": lambda r: r.workout.duration_minutes,
    "calories": lambda r: r.workout.calories,
    "intensity": lambda r: float(r.workout.intensity.level),
    "form_score": lambda r: r.workout.form_score,
    "average_heart_rate": _average_heart_rate,
    "work_rate": _work_rate,
    "training_load": lambda r: r.workout.intensity.level * r.workout.duration_minutes,
    "weekly_workouts": lambda r: float(r.weekly_workouts),
}

HEALTH_METRICS: Dict[str, MetricAccessor] = {
    "sleep_hours": _from_health("sleep_hours"),
    "sleep_quality": _from_health("sleep_quality"),
    "bedtime_hour": _from_health("bedtime_hour"),
    "stress_level": _from_health("stress_level"),
    "energy_level": _from_health("energy_level"),
    "hrv": _from_health("hrv"),
    "resting_hr": _from_health("resting_hr"),
    "protein_g": _from_health("protein_g"),
    "hydration_l": _from_health("hydration_l"),
    "readiness": lambda r: _readiness_of(r.health),
}

NEXT_DAY_METRICS: Dict[str, MetricAccessor] = {
    "next_day_readiness": lambda r: _readiness_of(r.next_day_health),
    "next_day_hrv": _from_health("hrv", next_day=True),
    "next_day_resting_hr": _from_health("resting_hr", next_day=True),
    "next_day_energy": _from_health("energy_level", next_day=True),
}

METRICS: Dict[str, MetricAccessor] = {
    **WORKOUT_METRICS,
    **HEALTH_METRICS,
    **NEXT_DAY_METRICS,
}


def available_metrics() -> List[str]:
    return sorted(METRICS)


def _accessor(metric: str) -> MetricAccessor:
    try:
        return METRICS[metric]
    except KeyError:
        raise UnknownMetricError(metric) from None


def _finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def metric_value(record: DailyRecord, metric: str) -> Optional[float]:
    """Read one metric off a record; None when missing or non-finite."""
    value = _accessor(metric)(record)
    return float(value) if _finite(value) else None


def extract_series(records: Sequence[DailyRecord], metric: str) -> MetricSeries:
    """Series of ``metric`` over the records that carry it."""
    accessor = _accessor(metric)
    points = []
    for record in records:
        value = accessor(record)
        if _finite(value):
            points.append((record.date, float(value)))
    return MetricSeries(name=metric, points=tuple(points))


def extract_paired(
    records: Sequence[DailyRecord],
    metric_a: str,
    metric_b: str,
) -> Tuple[MetricSeries, MetricSeries]:
    """
    Two index-aligned series over the same records.

    A record is kept only when both metrics are present and finite, so
    position ``i`` in either series always refers to the same workout.
    """
    accessor_a = _accessor(metric_a)
    accessor_b = _accessor(metric_b)
    points_a = []
    points_b = []
    for record in records:
        value_a = accessor_a(record)
        value_b = accessor_b(record)
        if _finite(value_a) and _finite(value_b):
            points_a.append((record.date, float(value_a)))
            points_b.append((record.date, float(value_b)))
    return (
        MetricSeries(name=metric_a, points=tuple(points_a)),
        MetricSeries(name=metric_b, points=tuple(points_b)),
    )
