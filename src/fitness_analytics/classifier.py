"""
Readiness, fatigue, trend and risk classification.

Pure functions over recent history. Nothing here raises on empty or short
input; each classifier has a neutral fallback (readiness 0.5, moderate
fatigue, stable trend).
"""

import math
import statistics
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional

from fitness_analytics.models import HealthSnapshot, OrderedEnum, Workout
from fitness_analytics.periods import to_naive
from fitness_analytics.series import SeriesLike, as_values


class FatigueLevel(OrderedEnum):
    """Accumulated fatigue, lowest first."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"


class PerformanceTrend(str, Enum):
    """Direction of recent performance."""
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class RiskLevel(OrderedEnum):
    """Risk bucket for injury/overtraining style scores."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"


# Readiness weights: sleep, inverse stress, energy
READINESS_WEIGHTS = {
    "sleep": 0.4,
    "stress": 0.3,
    "energy": 0.3,
}
TARGET_SLEEP_HOURS = 8.0
NEUTRAL_READINESS = 0.5

# Fatigue blend
WORKOUT_FATIGUE_WEIGHT = 0.7
HEALTH_FATIGUE_WEIGHT = 0.3

# Bucket thresholds shared by fatigue and risk
BUCKET_THRESHOLDS = (0.25, 0.5, 0.75)

# Trend needs a relative change above this fraction of the first-half mean
TREND_THRESHOLD = 0.10
MIN_TREND_SAMPLES = 3

# A week holding this many full-length extreme sessions counts as load 1.0
WEEKLY_LOAD_CAPACITY = 3.0
FULL_SESSION_MINUTES = 90.0


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _usable(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def _normalized(value: Optional[float], scale: float) -> float:
    if not _usable(value) or scale <= 0:
        return NEUTRAL_READINESS
    return _clamp(value / scale)


def readiness(
    sleep_hours: Optional[float],
    stress_level: Optional[float],
    energy_level: Optional[float],
) -> float:
    """
    Readiness to train in [0, 1].

    Weighted sum of normalized sleep (hours / 8), inverse stress (0-100) and
    energy (0-100). Each component is clamped before weighting, so
    out-of-range raw inputs still produce a bounded score. Missing inputs
    contribute a neutral 0.5.

    Args:
        sleep_hours: Last night's sleep in hours
        stress_level: Stress on a 0-100 scale
        energy_level: Energy on a 0-100 scale

    Returns:
        Readiness score in [0, 1]
    """
    sleep_norm = _normalized(sleep_hours, TARGET_SLEEP_HOURS)
    stress_norm = _normalized(stress_level, 100.0)
    energy_norm = _normalized(energy_level, 100.0)

    score = (
        READINESS_WEIGHTS["sleep"] * sleep_norm
        + READINESS_WEIGHTS["stress"] * (1.0 - stress_norm)
        + READINESS_WEIGHTS["energy"] * energy_norm
    )
    return _clamp(score)


def snapshot_readiness(snapshot: Optional[HealthSnapshot]) -> float:
    """Readiness for a health snapshot, neutral when there is none."""
    if snapshot is None:
        return NEUTRAL_READINESS
    return readiness(snapshot.sleep_hours, snapshot.stress_level, snapshot.energy_level)


def workout_load(workout: Workout) -> float:
    """Load of a single session in [0, 1]: intensity share times duration share."""
    intensity_share = workout.intensity.level / 4.0
    duration_share = _clamp(workout.duration_minutes / FULL_SESSION_MINUTES)
    return intensity_share * duration_share


def recent_workout_load(
    workouts: Iterable[Workout],
    now: Optional[datetime] = None,
    days: int = 7,
) -> float:
    """Summed session load over the trailing window, normalized to [0, 1]."""
    workouts = list(workouts)
    if not workouts:
        return 0.0
    now = to_naive(now) if now is not None else max(to_naive(w.date) for w in workouts)
    cutoff = now - timedelta(days=days)
    total = sum(workout_load(w) for w in workouts if cutoff < to_naive(w.date) <= now)
    return _clamp(total / WEEKLY_LOAD_CAPACITY)


def health_strain(snapshot: Optional[HealthSnapshot]) -> Optional[float]:
    """Physiological strain in [0, 1]: high stress, short sleep, low energy.

    Missing and non-finite inputs are skipped. Returns None when the
    snapshot carries none of the three inputs.
    """
    if snapshot is None:
        return None
    components = []
    if _usable(snapshot.stress_level):
        components.append(_clamp(snapshot.stress_level / 100.0))
    if _usable(snapshot.sleep_hours):
        components.append(1.0 - _clamp(snapshot.sleep_hours / TARGET_SLEEP_HOURS))
    if _usable(snapshot.energy_level):
        components.append(1.0 - _clamp(snapshot.energy_level / 100.0))
    if not components:
        return None
    return statistics.mean(components)


def _bucket(score: float, levels: List) -> "OrderedEnum":
    for threshold, level in zip(BUCKET_THRESHOLDS, levels):
        if score < threshold:
            return level
    return levels[-1]


def fatigue_score(
    recent_workout_load: Optional[float],
    health_strain: Optional[float],
) -> Optional[float]:
    """Blended fatigue score in [0, 1], or None without any input."""
    if recent_workout_load is None and health_strain is None:
        return None
    if recent_workout_load is None:
        return _clamp(health_strain)
    if health_strain is None:
        return _clamp(recent_workout_load)
    return _clamp(
        WORKOUT_FATIGUE_WEIGHT * recent_workout_load
        + HEALTH_FATIGUE_WEIGHT * health_strain
    )


def fatigue_level(
    recent_workout_load: Optional[float],
    health_strain: Optional[float],
) -> FatigueLevel:
    """
    Fatigue bucket from a 0.7/0.3 blend of workout load and health strain.

    Thresholds 0.25 / 0.5 / 0.75 separate low, moderate, high and very high.
    With neither input the result is moderate.
    """
    score = fatigue_score(recent_workout_load, health_strain)
    if score is None:
        return FatigueLevel.MODERATE
    return _bucket(score, FatigueLevel.ordered())


def performance_trend(series: SeriesLike) -> PerformanceTrend:
    """
    Compare the means of the first and second halves of a series.

    The change must exceed 10% of the first-half mean (absolute) to count as
    improving or declining. Fewer than three samples is always stable.
    """
    values = [v for v in as_values(series) if math.isfinite(v)]
    if len(values) < MIN_TREND_SAMPLES:
        return PerformanceTrend.STABLE

    half = len(values) // 2
    first_mean = statistics.mean(values[:half])
    second_mean = statistics.mean(values[-half:])

    change = second_mean - first_mean
    threshold = abs(first_mean) * TREND_THRESHOLD
    if change > threshold:
        return PerformanceTrend.IMPROVING
    if change < -threshold:
        return PerformanceTrend.DECLINING
    return PerformanceTrend.STABLE


def risk_level(score: Optional[float]) -> RiskLevel:
    """Bucket a 0-1 risk score; missing scores are moderate."""
    if score is None or not math.isfinite(score):
        return RiskLevel.MODERATE
    return _bucket(_clamp(score), RiskLevel.ordered())


class TrendDirection(str, Enum):
    """Direction of a fitted linear trend."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


# Slopes within this fraction of the mean per sample count as flat
FLAT_SLOPE_FRACTION = 0.01


def trend_direction(slope: float, mean: float) -> TrendDirection:
    """Classify a per-sample slope relative to the series mean."""
    tolerance = abs(mean) * FLAT_SLOPE_FRACTION
    if slope > tolerance:
        return TrendDirection.INCREASING
    if slope < -tolerance:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE
