"""
Heuristic workout predictions.

Each prediction starts from a baseline taken from the user's own history and
applies multipliers for readiness, fatigue and the user's profile. Nothing
here runs a trained model; the combiners are deterministic so that the same
history always yields the same prediction.

Use cases built on the combiners:
- Workout performance (duration, calories, difficulty, form)
- Recovery time after a workout
- Goal achievement timeline
- Injury risk
- Training schedule (sessions per week)
- Nutrition needs around a workout
- Form improvement for an exercise
"""

import math
import statistics
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Union

from fitness_analytics.classifier import (
    FatigueLevel,
    PerformanceTrend,
    RiskLevel,
    fatigue_score,
    risk_level,
)
from fitness_analytics.correlation import linear_slope
from fitness_analytics.models import (
    Difficulty,
    FitnessGoal,
    FitnessLevel,
    UserProfile,
    Workout,
    WorkoutIntensity,
)
from fitness_analytics.periods import to_naive


# Floors for predicted values
MIN_DURATION_MINUTES = 15.0
MIN_CALORIES = 50.0

FATIGUE_MULTIPLIERS = {
    FatigueLevel.LOW: 1.0,
    FatigueLevel.MODERATE: 1.1,
    FatigueLevel.HIGH: 1.2,
    FatigueLevel.VERY_HIGH: 1.3,
}

FITNESS_LEVEL_MULTIPLIERS = {
    FitnessLevel.BEGINNER: 0.8,
    FitnessLevel.INTERMEDIATE: 1.0,
    FitnessLevel.ADVANCED: 1.2,
    FitnessLevel.EXPERT: 1.4,
    FitnessLevel.MASTER: 1.6,
}

GOAL_MULTIPLIERS = {
    FitnessGoal.STRENGTH: 1.1,
    FitnessGoal.ENDURANCE: 1.05,
    FitnessGoal.WEIGHT_LOSS: 1.15,
}

FATIGUE_ADJUSTMENTS = {
    FatigueLevel.LOW: 0.0,
    FatigueLevel.MODERATE: -0.1,
    FatigueLevel.HIGH: -0.2,
    FatigueLevel.VERY_HIGH: -0.3,
}

TREND_ADJUSTMENTS = {
    PerformanceTrend.IMPROVING: 0.1,
    PerformanceTrend.STABLE: 0.0,
    PerformanceTrend.DECLINING: -0.1,
}

READINESS_ADJUSTMENT_WEIGHT = 0.4
DIFFICULTY_STEP_THRESHOLD = 0.2

DEFAULT_FORM_SCORE = 0.8
FORM_BOUNDS = (0.1, 1.0)
FORM_TREND_BOUNDS = (0.5, 1.5)
MASTERY_FORM_SCORE = 0.9
FORM_HORIZON_WEEKS = 4

# Confidence: base plus history volume plus recency
CONFIDENCE_BASE = 0.2
CONFIDENCE_HISTORY_WEIGHT = 0.5
CONFIDENCE_RECENCY_WEIGHT = 0.3
CONFIDENCE_FULL_HISTORY = 20

# Recovery hours by session intensity
RECOVERY_BASE_HOURS = {
    WorkoutIntensity.LOW: 12.0,
    WorkoutIntensity.MODERATE: 24.0,
    WorkoutIntensity.HIGH: 36.0,
    WorkoutIntensity.EXTREME: 48.0,
}
MIN_RECOVERY_HOURS = 8.0

# Sessions per week by fitness level
BASE_SESSIONS_PER_WEEK = {
    FitnessLevel.BEGINNER: 3,
    FitnessLevel.INTERMEDIATE: 4,
    FitnessLevel.ADVANCED: 5,
    FitnessLevel.EXPERT: 5,
    FitnessLevel.MASTER: 6,
}
SESSIONS_PER_WEEK_BOUNDS = (2, 6)

# Nutrition (per kg of body weight)
PROTEIN_G_PER_KG = {
    FitnessGoal.MUSCLE_GAIN: 2.0,
    FitnessGoal.STRENGTH: 1.8,
    FitnessGoal.ENDURANCE: 1.6,
    FitnessGoal.WEIGHT_LOSS: 1.8,
}
DEFAULT_PROTEIN_G_PER_KG = 1.4
CARBS_G_PER_KG = {
    WorkoutIntensity.LOW: 3.0,
    WorkoutIntensity.MODERATE: 5.0,
    WorkoutIntensity.HIGH: 6.0,
    WorkoutIntensity.EXTREME: 8.0,
}
FAT_G_PER_KG = 1.0
BASE_HYDRATION_L_PER_KG = 0.035
TRAINING_HYDRATION_L_PER_HOUR = 0.75

# Injury risk factor weights
INJURY_RISK_WEIGHTS = {
    "overtraining": 0.3,
    "form": 0.25,
    "recovery": 0.25,
    "load": 0.2,
}

PredictedValue = Union[float, str]


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


@dataclass
class PredictionFactor:
    """One input that moved a prediction away from its baseline."""
    name: str
    value: float
    impact: float  # multiplier or additive adjustment applied
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "value": round(self.value, 4),
            "impact": round(self.impact, 4),
            "description": self.description,
        }


@dataclass
class PredictionResult:
    """Prediction for a single attribute."""
    attribute: str
    baseline_value: PredictedValue
    adjusted_value: PredictedValue
    confidence: float
    contributing_factors: List[PredictionFactor] = field(default_factory=list)

    def to_dict(self) -> dict:
        def _out(value: PredictedValue) -> PredictedValue:
            return round(value, 2) if isinstance(value, float) else value

        return {
            "attribute": self.attribute,
            "baseline_value": _out(self.baseline_value),
            "adjusted_value": _out(self.adjusted_value),
            "confidence": round(self.confidence, 3),
            "contributing_factors": [f.to_dict() for f in self.contributing_factors],
        }


# =============================================================================
# Multipliers
# =============================================================================

def readiness_multiplier(readiness: float) -> float:
    """0.5 at zero readiness, 1.0 at neutral, 1.5 at full readiness."""
    return 0.5 + _clamp(readiness)


def fatigue_multiplier(level: FatigueLevel) -> float:
    return FATIGUE_MULTIPLIERS[level]


def fitness_level_multiplier(level: FitnessLevel) -> float:
    return FITNESS_LEVEL_MULTIPLIERS[level]


def goal_multiplier(goals: Sequence[FitnessGoal]) -> float:
    multiplier = 1.0
    for goal in set(goals):
        multiplier *= GOAL_MULTIPLIERS.get(goal, 1.0)
    return multiplier


def user_multiplier(profile: UserProfile) -> float:
    """Fitness level times goals; intermediate with no goals is 1.0."""
    return fitness_level_multiplier(profile.fitness_level) * goal_multiplier(profile.goals)


def experience_multiplier(profile: UserProfile) -> float:
    """Fitness level multiplier averaged with neutral, so 0.9 to 1.3."""
    return (fitness_level_multiplier(profile.fitness_level) + 1.0) / 2.0


def days_since_last(workouts: Sequence[Workout], now: Optional[datetime] = None) -> Optional[float]:
    if not workouts:
        return None
    now = to_naive(now or datetime.now())
    last = max(to_naive(w.date) for w in workouts)
    return max(0.0, (now - last).total_seconds() / 86400.0)


def prediction_confidence(history_size: int, days_since_last_workout: Optional[float]) -> float:
    """
    Confidence in [0, 1] from how much history there is and how fresh it is.

    Grows with history size (saturating at 20 workouts) and shrinks as the
    last workout recedes: recency = 1 / (1 + days / 7). With no history at
    all only the base remains.
    """
    volume = min(max(history_size, 0) / CONFIDENCE_FULL_HISTORY, 1.0)
    if days_since_last_workout is None:
        recency = 0.0
    else:
        recency = 1.0 / (1.0 + max(days_since_last_workout, 0.0) / 7.0)
    return min(
        1.0,
        CONFIDENCE_BASE
        + CONFIDENCE_HISTORY_WEIGHT * volume
        + CONFIDENCE_RECENCY_WEIGHT * recency,
    )


# =============================================================================
# Per-attribute combiners
# =============================================================================

def _readiness_factor(readiness: float) -> PredictionFactor:
    return PredictionFactor(
        name="readiness",
        value=readiness,
        impact=readiness_multiplier(readiness),
        description="Sleep, stress and energy before the session",
    )


def _fatigue_factor(level: FatigueLevel) -> PredictionFactor:
    return PredictionFactor(
        name="fatigue",
        value=float(level.rank),
        impact=fatigue_multiplier(level),
        description=f"Accumulated fatigue is {level.value}",
    )


def predict_duration(
    baseline_minutes: float,
    readiness: float,
    fatigue: FatigueLevel,
    confidence: float,
    floor: float = MIN_DURATION_MINUTES,
) -> PredictionResult:
    """Expected session length in minutes, never below ``floor``."""
    adjusted = baseline_minutes * readiness_multiplier(readiness) * fatigue_multiplier(fatigue)
    return PredictionResult(
        attribute="duration_minutes",
        baseline_value=float(baseline_minutes),
        adjusted_value=max(floor, adjusted),
        confidence=confidence,
        contributing_factors=[_readiness_factor(readiness), _fatigue_factor(fatigue)],
    )


def predict_calories(
    baseline_calories: float,
    readiness: float,
    fatigue: FatigueLevel,
    profile: UserProfile,
    confidence: float,
    floor: float = MIN_CALORIES,
) -> PredictionResult:
    """Expected energy expenditure in kcal, never below ``floor``."""
    personal = user_multiplier(profile)
    adjusted = (
        baseline_calories
        * readiness_multiplier(readiness)
        * fatigue_multiplier(fatigue)
        * personal
    )
    return PredictionResult(
        attribute="calories",
        baseline_value=float(baseline_calories),
        adjusted_value=max(floor, adjusted),
        confidence=confidence,
        contributing_factors=[
            _readiness_factor(readiness),
            _fatigue_factor(fatigue),
            PredictionFactor(
                name="profile",
                value=float(profile.fitness_level.rank),
                impact=personal,
                description="Fitness level and goals",
            ),
        ],
    )


def difficulty_adjustment(fatigue: FatigueLevel, trend: PerformanceTrend, readiness: float) -> float:
    """Net difficulty adjustment; beyond +/-0.2 the difficulty moves one step."""
    return (
        FATIGUE_ADJUSTMENTS[fatigue]
        + TREND_ADJUSTMENTS[trend]
        + READINESS_ADJUSTMENT_WEIGHT * (_clamp(readiness) - 0.5)
    )


def predict_difficulty(
    baseline: Difficulty,
    fatigue: FatigueLevel,
    trend: PerformanceTrend,
    readiness: float,
    confidence: float,
) -> PredictionResult:
    """
    Step the planned difficulty up or down by at most one level.

    The scale saturates: a beginner session never steps below beginner and a
    master session never steps above master.
    """
    adjustment = difficulty_adjustment(fatigue, trend, readiness)
    if adjustment < -DIFFICULTY_STEP_THRESHOLD:
        adjusted = baseline.step_down()
    elif adjustment > DIFFICULTY_STEP_THRESHOLD:
        adjusted = baseline.step_up()
    else:
        adjusted = baseline

    return PredictionResult(
        attribute="difficulty",
        baseline_value=baseline.value,
        adjusted_value=adjusted.value,
        confidence=confidence,
        contributing_factors=[
            PredictionFactor("fatigue", float(fatigue.rank), FATIGUE_ADJUSTMENTS[fatigue]),
            PredictionFactor("trend", 0.0, TREND_ADJUSTMENTS[trend], f"Performance is {trend.value}"),
            PredictionFactor(
                "readiness", readiness,
                READINESS_ADJUSTMENT_WEIGHT * (_clamp(readiness) - 0.5),
            ),
        ],
    )


def recent_form_trend(form_scores: Sequence[float]) -> float:
    """Second-half over first-half mean form, 1.0 with too little data."""
    values = [v for v in form_scores if v is not None and math.isfinite(v)]
    if len(values) < 3:
        return 1.0
    half = len(values) // 2
    first = statistics.mean(values[:half])
    second = statistics.mean(values[-half:])
    if first <= 0:
        return 1.0
    return _clamp(second / first, *FORM_TREND_BOUNDS)


def predict_form_quality(
    recent_form_scores: Sequence[float],
    profile: UserProfile,
    confidence: float,
) -> PredictionResult:
    """Expected form score in [0.1, 1.0]."""
    scores = [s for s in recent_form_scores if s is not None and math.isfinite(s)]
    baseline = statistics.mean(scores) if scores else DEFAULT_FORM_SCORE
    experience = experience_multiplier(profile)
    trend_ratio = recent_form_trend(scores)
    adjusted = _clamp(baseline * experience * trend_ratio, *FORM_BOUNDS)
    return PredictionResult(
        attribute="form_score",
        baseline_value=float(baseline),
        adjusted_value=adjusted,
        confidence=confidence,
        contributing_factors=[
            PredictionFactor("experience", float(profile.fitness_level.rank), experience),
            PredictionFactor("form_trend", trend_ratio, trend_ratio, "Recent form trajectory"),
        ],
    )


# =============================================================================
# Use-case bundles
# =============================================================================

@dataclass
class WorkoutPerformancePrediction:
    """How a planned workout is expected to go."""
    workout_id: str
    duration: PredictionResult
    calories: PredictionResult
    difficulty: PredictionResult
    form: PredictionResult
    readiness: float
    fatigue_level: FatigueLevel
    performance_trend: PerformanceTrend
    confidence: float
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "workout_id": self.workout_id,
            "duration": self.duration.to_dict(),
            "calories": self.calories.to_dict(),
            "difficulty": self.difficulty.to_dict(),
            "form": self.form.to_dict(),
            "readiness": round(self.readiness, 3),
            "fatigue_level": self.fatigue_level.value,
            "performance_trend": self.performance_trend.value,
            "confidence": round(self.confidence, 3),
            "recommendations": self.recommendations,
        }


def workout_recommendations(readiness: float, fatigue: FatigueLevel, trend: PerformanceTrend) -> List[str]:
    recommendations = []
    if fatigue in (FatigueLevel.HIGH, FatigueLevel.VERY_HIGH):
        recommendations.append("Fatigue is elevated: keep intensity controlled and extend the warm-up")
    if readiness < 0.4:
        recommendations.append("Readiness is low: consider a shorter or easier session")
    elif readiness > 0.75 and fatigue is FatigueLevel.LOW:
        recommendations.append("Well recovered: a good day to push")
    if trend is PerformanceTrend.DECLINING:
        recommendations.append("Performance is trending down: plan a lighter week soon")
    if not recommendations:
        recommendations.append("Train as planned")
    return recommendations


def predict_workout_performance(
    workout: Workout,
    history: Sequence[Workout],
    profile: UserProfile,
    readiness: float,
    fatigue: FatigueLevel,
    trend: PerformanceTrend,
    confidence: float,
    min_duration: float = MIN_DURATION_MINUTES,
    min_calories: float = MIN_CALORIES,
) -> WorkoutPerformancePrediction:
    """
    Predict a planned workout from recent history.

    The planned workout's own duration and calories are the baselines; when
    the plan leaves them at zero the recent history averages are used.
    """
    baseline_minutes = workout.duration_minutes
    if baseline_minutes <= 0 and history:
        baseline_minutes = statistics.mean(w.duration_minutes for w in history)
    baseline_calories = workout.calories
    if baseline_calories <= 0 and history:
        baseline_calories = statistics.mean(w.calories for w in history)

    return WorkoutPerformancePrediction(
        workout_id=workout.id,
        duration=predict_duration(baseline_minutes, readiness, fatigue, confidence, min_duration),
        calories=predict_calories(baseline_calories, readiness, fatigue, profile, confidence, min_calories),
        difficulty=predict_difficulty(workout.difficulty, fatigue, trend, readiness, confidence),
        form=predict_form_quality([w.form_score for w in history], profile, confidence),
        readiness=readiness,
        fatigue_level=fatigue,
        performance_trend=trend,
        confidence=confidence,
        recommendations=workout_recommendations(readiness, fatigue, trend),
    )


@dataclass
class RecoveryTimePrediction:
    """Time to recover from a workout."""
    workout_id: str
    recovery_hours: float
    hours_until_fresh: float
    next_easy_workout: datetime
    next_hard_workout: datetime
    workout_intensity: WorkoutIntensity
    fatigue_level: FatigueLevel
    recovery_capacity: float
    recovery_activities: List[str]
    confidence: float
    recovery: Optional[PredictionResult] = None

    def to_dict(self) -> dict:
        return {
            "workout_id": self.workout_id,
            "recovery": self.recovery.to_dict() if self.recovery else None,
            "recovery_hours": round(self.recovery_hours, 1),
            "hours_until_fresh": round(self.hours_until_fresh, 1),
            "next_easy_workout": self.next_easy_workout.isoformat(),
            "next_hard_workout": self.next_hard_workout.isoformat(),
            "workout_intensity": self.workout_intensity.value,
            "fatigue_level": self.fatigue_level.value,
            "recovery_capacity": round(self.recovery_capacity, 3),
            "recovery_activities": self.recovery_activities,
            "confidence": round(self.confidence, 3),
        }


def recovery_hours(
    intensity: WorkoutIntensity,
    fatigue: FatigueLevel,
    recovery_capacity: float,
    profile: UserProfile,
) -> float:
    """Base hours for the intensity, scaled by fatigue and capacity, floor 8 h.

    Capacity is readiness in [0, 1]: 0.5 leaves the base unchanged, full
    capacity halves it and none adds half again. Fitter users recover
    faster via the experience multiplier.
    """
    capacity_factor = 1.5 - _clamp(recovery_capacity)
    hours = (
        RECOVERY_BASE_HOURS[intensity]
        * fatigue_multiplier(fatigue)
        * capacity_factor
        / experience_multiplier(profile)
    )
    return max(MIN_RECOVERY_HOURS, hours)


def recovery_estimate(
    intensity: WorkoutIntensity,
    fatigue: FatigueLevel,
    recovery_capacity: float,
    profile: UserProfile,
    confidence: float,
) -> PredictionResult:
    """Recovery hours with the base for the intensity and each scaling factor."""
    capacity = _clamp(recovery_capacity)
    experience = experience_multiplier(profile)
    return PredictionResult(
        attribute="recovery_hours",
        baseline_value=RECOVERY_BASE_HOURS[intensity],
        adjusted_value=recovery_hours(intensity, fatigue, recovery_capacity, profile),
        confidence=confidence,
        contributing_factors=[
            _fatigue_factor(fatigue),
            PredictionFactor("recovery_capacity", capacity, 1.5 - capacity, "Readiness going in"),
            PredictionFactor(
                "experience",
                float(profile.fitness_level.rank),
                1.0 / experience,
                f"Fitness level is {profile.fitness_level.value}",
            ),
        ],
    )


def _recovery_activities(hours: float) -> List[str]:
    if hours >= 48:
        return [
            "Complete rest today",
            "Light stretching or yoga",
            "Extra sleep (aim for 9+ hours)",
            "Hydration focus",
        ]
    if hours >= 30:
        return [
            "Active recovery: easy walk or swim",
            "Foam rolling and mobility work",
            "Nutrition focus - protein and carbs",
        ]
    if hours >= 16:
        return ["Light cross-training", "Stretching routine"]
    return ["Normal training can resume", "Maintain good sleep habits"]


def predict_recovery_time(
    workout: Workout,
    profile: UserProfile,
    fatigue: FatigueLevel,
    recovery_capacity: float,
    confidence: float,
) -> RecoveryTimePrediction:
    estimate = recovery_estimate(workout.intensity, fatigue, recovery_capacity, profile, confidence)
    hours = estimate.adjusted_value
    fresh = hours * 1.5
    return RecoveryTimePrediction(
        workout_id=workout.id,
        recovery_hours=hours,
        hours_until_fresh=fresh,
        next_easy_workout=workout.date + timedelta(hours=hours / 2),
        next_hard_workout=workout.date + timedelta(hours=fresh),
        workout_intensity=workout.intensity,
        fatigue_level=fatigue,
        recovery_capacity=recovery_capacity,
        recovery_activities=_recovery_activities(hours),
        confidence=confidence,
        recovery=estimate,
    )


@dataclass
class GoalAchievementPrediction:
    """Projected timeline for reaching a goal value."""
    goal_id: str
    metric: str
    current_value: Optional[float]
    target_value: float
    progress_rate_per_day: float
    consistency_score: float
    predicted_days: Optional[float]
    predicted_date: Optional[date]
    success_probability: float
    confidence: float
    recommendations: List[str] = field(default_factory=list)
    timeline: Optional[PredictionResult] = None  # None without progress towards the target

    def to_dict(self) -> dict:
        return {
            "goal_id": self.goal_id,
            "timeline": self.timeline.to_dict() if self.timeline else None,
            "metric": self.metric,
            "current_value": self.current_value,
            "target_value": self.target_value,
            "progress_rate_per_day": round(self.progress_rate_per_day, 4),
            "consistency_score": round(self.consistency_score, 3),
            "predicted_days": round(self.predicted_days, 1) if self.predicted_days is not None else None,
            "predicted_date": self.predicted_date.isoformat() if self.predicted_date else None,
            "success_probability": round(self.success_probability, 3),
            "confidence": round(self.confidence, 3),
            "recommendations": self.recommendations,
        }


def predict_goal_achievement(
    goal_id: str,
    metric: str,
    target_value: float,
    timestamps: Sequence[datetime],
    values: Sequence[float],
    consistency: float,
    confidence: float,
    deadline: Optional[date] = None,
    today: Optional[date] = None,
) -> GoalAchievementPrediction:
    """
    Project when ``metric`` reaches ``target_value``.

    The rate is the least-squares slope of the metric per day. The raw time
    to target is stretched by inconsistency: at half the expected cadence it
    takes twice as long. No movement towards the target means no timeline.
    """
    today = today or date.today()
    consistency = _clamp(consistency)
    current = values[-1] if values else None

    rate = 0.0
    if len(values) >= 2:
        origin = to_naive(timestamps[0])
        days = [(to_naive(t) - origin).total_seconds() / 86400.0 for t in timestamps]
        rate = linear_slope(values, days)

    raw_days = None
    if current is not None:
        remaining = target_value - current
        if remaining == 0:
            raw_days = 0.0
        elif rate != 0 and (remaining > 0) == (rate > 0):
            raw_days = remaining / rate

    predicted_days = None
    timeline = None
    if raw_days is not None:
        stretch = 1.0 / max(consistency, 0.25)
        predicted_days = raw_days * stretch
        timeline = PredictionResult(
            attribute="days_to_goal",
            baseline_value=raw_days,
            adjusted_value=predicted_days,
            confidence=confidence,
            contributing_factors=[
                PredictionFactor("progress_rate", rate, 1.0, f"{metric} change per day"),
                PredictionFactor("consistency", consistency, stretch, "Share of expected sessions done"),
            ],
        )

    predicted_date = None
    if predicted_days is not None:
        predicted_date = today + timedelta(days=math.ceil(predicted_days))

    if predicted_days is None:
        probability = 0.1 + 0.2 * consistency
    elif deadline is not None:
        days_left = max((deadline - today).days, 0)
        pace = 1.0 if predicted_days == 0 else min(1.0, days_left / predicted_days)
        probability = 0.2 + 0.5 * pace + 0.3 * consistency
    else:
        probability = 0.5 + 0.4 * consistency

    recommendations = []
    if predicted_days is None:
        recommendations.append(f"No progress towards the {metric} target yet; revisit the plan")
    if consistency < 0.5:
        recommendations.append("Train more consistently; missed sessions stretch the timeline")
    if deadline is not None and predicted_date is not None and predicted_date > deadline:
        recommendations.append("At the current pace the deadline will be missed")
    if not recommendations:
        recommendations.append("On track; keep the current routine")

    return GoalAchievementPrediction(
        goal_id=goal_id,
        metric=metric,
        current_value=current,
        target_value=target_value,
        progress_rate_per_day=rate,
        consistency_score=consistency,
        predicted_days=predicted_days,
        predicted_date=predicted_date,
        success_probability=_clamp(probability),
        confidence=confidence,
        recommendations=recommendations,
        timeline=timeline,
    )


@dataclass
class InjuryRiskPrediction:
    """Injury risk from the four contributing risk factors."""
    risk_score: float
    risk_level: RiskLevel
    overtraining_risk: float
    form_risk: float
    recovery_risk: float
    load_risk: float
    acute_chronic_ratio: float
    confidence: float
    recommendations: List[str] = field(default_factory=list)
    risk: Optional[PredictionResult] = None

    def to_dict(self) -> dict:
        return {
            "risk": self.risk.to_dict() if self.risk else None,
            "risk_score": round(self.risk_score, 3),
            "risk_level": self.risk_level.value,
            "factors": {
                "overtraining": round(self.overtraining_risk, 3),
                "form": round(self.form_risk, 3),
                "recovery": round(self.recovery_risk, 3),
                "load": round(self.load_risk, 3),
            },
            "acute_chronic_ratio": round(self.acute_chronic_ratio, 2),
            "confidence": round(self.confidence, 3),
            "recommendations": self.recommendations,
        }


def _session_load(workout: Workout) -> float:
    return workout.intensity.level * workout.duration_minutes


def acute_chronic_ratio(workouts: Sequence[Workout], now: Optional[datetime] = None) -> float:
    """Last 7 days of load over the 28-day weekly average; 1.0 without load."""
    if not workouts:
        return 1.0
    now = to_naive(now) if now is not None else max(to_naive(w.date) for w in workouts)
    acute = sum(_session_load(w) for w in workouts if now - timedelta(days=7) < to_naive(w.date) <= now)
    chronic = sum(
        _session_load(w) for w in workouts if now - timedelta(days=28) < to_naive(w.date) <= now
    ) / 4.0
    if chronic <= 0:
        return 1.0
    return acute / chronic


def load_risk(ratio: float) -> float:
    """
    Risk score for an acute:chronic workload ratio.

    - <0.8: Undertraining
    - 0.8-1.3: Sweet spot
    - 1.3-1.5: Caution zone
    - >1.5: Danger zone
    """
    if ratio < 0.8:
        return 0.3
    if ratio <= 1.3:
        return 0.1
    if ratio <= 1.5:
        return 0.6
    return 0.9


def predict_injury_risk(
    workouts: Sequence[Workout],
    workout_load: float,
    health_strain: Optional[float],
    readiness: float,
    confidence: float,
    now: Optional[datetime] = None,
) -> InjuryRiskPrediction:
    overtraining = fatigue_score(workout_load, health_strain) or 0.0
    forms = [w.form_score for w in workouts if w.form_score is not None]
    form = 1.0 - statistics.mean(forms) if forms else 1.0 - DEFAULT_FORM_SCORE
    recovery = 1.0 - _clamp(readiness)
    ratio = acute_chronic_ratio(workouts, now)
    load = load_risk(ratio)

    factors = [
        PredictionFactor("overtraining", overtraining, INJURY_RISK_WEIGHTS["overtraining"] * overtraining,
                         "Blend of recent workout load and health strain"),
        PredictionFactor("form", form, INJURY_RISK_WEIGHTS["form"] * form, "Shortfall from perfect form"),
        PredictionFactor("recovery", recovery, INJURY_RISK_WEIGHTS["recovery"] * recovery,
                         "Missing readiness"),
        PredictionFactor("load", load, INJURY_RISK_WEIGHTS["load"] * load,
                         f"Acute:chronic workload ratio {ratio:.2f}"),
    ]
    score = _clamp(sum(f.impact for f in factors))
    level = risk_level(score)

    recommendations = []
    if ratio > 1.5:
        recommendations.append("Reduce training load immediately. Add rest days.")
    elif ratio > 1.3:
        recommendations.append("Reduce training intensity or add recovery days")
    elif ratio < 0.8:
        recommendations.append("Consider gradually increasing training load to maintain fitness")
    if form > 0.35:
        recommendations.append("Form is slipping: lower the load and focus on technique")
    if recovery > 0.6:
        recommendations.append("Prioritise sleep and stress management before hard sessions")
    if not recommendations:
        recommendations.append("Risk factors are under control")

    return InjuryRiskPrediction(
        risk_score=score,
        risk_level=level,
        overtraining_risk=overtraining,
        form_risk=form,
        recovery_risk=recovery,
        load_risk=load,
        acute_chronic_ratio=ratio,
        confidence=confidence,
        recommendations=recommendations,
        # Baseline is the workload zone risk on its own
        risk=PredictionResult(
            attribute="risk_score",
            baseline_value=load,
            adjusted_value=score,
            confidence=confidence,
            contributing_factors=factors,
        ),
    )


@dataclass
class TrainingSchedulePrediction:
    """Recommended weekly training frequency."""
    current_sessions_per_week: float
    recommended_sessions_per_week: int
    rest_days: int
    fatigue_level: FatigueLevel
    confidence: float
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "current_sessions_per_week": round(self.current_sessions_per_week, 1),
            "recommended_sessions_per_week": self.recommended_sessions_per_week,
            "rest_days": self.rest_days,
            "fatigue_level": self.fatigue_level.value,
            "confidence": round(self.confidence, 3),
            "recommendations": self.recommendations,
        }


def current_sessions_per_week(workouts: Sequence[Workout], now: Optional[datetime] = None) -> float:
    if not workouts:
        return 0.0
    now = to_naive(now) if now is not None else max(to_naive(w.date) for w in workouts)
    recent = [w for w in workouts if now - timedelta(days=28) < to_naive(w.date) <= now]
    return len(recent) / 4.0


def recommended_sessions_per_week(profile: UserProfile, fatigue: FatigueLevel, readiness: float) -> int:
    """Level-based weekly sessions, trimmed for fatigue and low readiness, 2 to 6."""
    sessions = BASE_SESSIONS_PER_WEEK[profile.fitness_level]
    if fatigue in (FatigueLevel.HIGH, FatigueLevel.VERY_HIGH):
        sessions -= 1
    if readiness < 0.4:
        sessions -= 1
    low, high = SESSIONS_PER_WEEK_BOUNDS
    return max(low, min(high, sessions))


def predict_training_schedule(
    workouts: Sequence[Workout],
    profile: UserProfile,
    fatigue: FatigueLevel,
    readiness: float,
    confidence: float,
    now: Optional[datetime] = None,
) -> TrainingSchedulePrediction:
    current = current_sessions_per_week(workouts, now)
    recommended = recommended_sessions_per_week(profile, fatigue, readiness)

    recommendations = []
    if current < recommended - 0.5:
        recommendations.append(f"Build up gradually towards {recommended} sessions per week")
    elif current > recommended + 0.5:
        recommendations.append(f"Cut back to {recommended} sessions per week and protect rest days")
    else:
        recommendations.append("Current frequency matches your capacity")
    if recommended >= 5:
        recommendations.append("Alternate hard and easy days")

    return TrainingSchedulePrediction(
        current_sessions_per_week=current,
        recommended_sessions_per_week=recommended,
        rest_days=7 - recommended,
        fatigue_level=fatigue,
        confidence=confidence,
        recommendations=recommendations,
    )


@dataclass
class NutritionPrediction:
    """Macronutrient and fluid targets around a workout."""
    workout_id: str
    energy_expenditure: float
    protein_g: float
    carbs_g: float
    fat_g: float
    hydration_l: float
    confidence: float
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "workout_id": self.workout_id,
            "energy_expenditure": round(self.energy_expenditure),
            "protein_g": round(self.protein_g),
            "carbs_g": round(self.carbs_g),
            "fat_g": round(self.fat_g),
            "hydration_l": round(self.hydration_l, 2),
            "confidence": round(self.confidence, 3),
            "recommendations": self.recommendations,
        }


def protein_per_kg(goals: Sequence[FitnessGoal]) -> float:
    rates = [PROTEIN_G_PER_KG[g] for g in goals if g in PROTEIN_G_PER_KG]
    return max(rates) if rates else DEFAULT_PROTEIN_G_PER_KG


def predict_nutrition_needs(
    workout: Workout,
    profile: UserProfile,
    energy_expenditure: float,
    confidence: float,
) -> NutritionPrediction:
    weight = profile.body_weight_kg
    hours = workout.duration_minutes / 60.0
    protein = weight * protein_per_kg(profile.goals)
    carbs = weight * CARBS_G_PER_KG[workout.intensity]
    fat = weight * FAT_G_PER_KG
    hydration = weight * BASE_HYDRATION_L_PER_KG + hours * TRAINING_HYDRATION_L_PER_HOUR

    recommendations = [f"Spread about {round(protein)} g of protein over the day"]
    if workout.intensity in (WorkoutIntensity.HIGH, WorkoutIntensity.EXTREME):
        recommendations.append("Take in carbohydrates within an hour after the session")
    if hours >= 1.0:
        recommendations.append("Drink during the session, not only after it")

    return NutritionPrediction(
        workout_id=workout.id,
        energy_expenditure=energy_expenditure,
        protein_g=protein,
        carbs_g=carbs,
        fat_g=fat,
        hydration_l=hydration,
        confidence=confidence,
        recommendations=recommendations,
    )


@dataclass
class FormImprovementPrediction:
    """Expected form progression for one exercise."""
    exercise: str
    current_form: float
    form_trend_per_session: float
    sessions_per_week: float
    predicted_form: float
    horizon_weeks: int
    sessions_to_mastery: Optional[int]
    confidence: float
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "exercise": self.exercise,
            "current_form": round(self.current_form, 3),
            "form_trend_per_session": round(self.form_trend_per_session, 4),
            "sessions_per_week": round(self.sessions_per_week, 1),
            "predicted_form": round(self.predicted_form, 3),
            "horizon_weeks": self.horizon_weeks,
            "sessions_to_mastery": self.sessions_to_mastery,
            "confidence": round(self.confidence, 3),
            "recommendations": self.recommendations,
        }


def predict_form_improvement(
    exercise: str,
    sessions: Sequence[Workout],
    profile: UserProfile,
    confidence: float,
    now: Optional[datetime] = None,
) -> FormImprovementPrediction:
    """
    Project form for ``exercise`` four weeks out.

    The per-session slope of form is extrapolated over the sessions expected
    at the current practice frequency, scaled by experience and clamped to
    [0.1, 1.0].
    """
    ordered = sorted(sessions, key=lambda w: to_naive(w.date))
    scores = [w.form_score for w in ordered if w.form_score is not None]
    current = scores[-1] if scores else DEFAULT_FORM_SCORE
    slope = linear_slope(scores) if len(scores) >= 2 else 0.0
    frequency = current_sessions_per_week(ordered, now)

    upcoming = frequency * FORM_HORIZON_WEEKS
    predicted = _clamp(current + slope * upcoming * experience_multiplier(profile), *FORM_BOUNDS)

    if current >= MASTERY_FORM_SCORE:
        to_mastery = 0
    elif slope > 0:
        to_mastery = math.ceil((MASTERY_FORM_SCORE - current) / slope)
    else:
        to_mastery = None

    recommendations = []
    if frequency < 1.0:
        recommendations.append(f"Practise {exercise} at least once a week")
    if slope < 0:
        recommendations.append("Form is regressing: reduce load and film a set to review")
    elif to_mastery is None and current < MASTERY_FORM_SCORE:
        recommendations.append("Form has plateaued: add technique drills")
    if not recommendations:
        recommendations.append("Keep the current practice routine")

    return FormImprovementPrediction(
        exercise=exercise,
        current_form=current,
        form_trend_per_session=slope,
        sessions_per_week=frequency,
        predicted_form=predicted,
        horizon_weeks=FORM_HORIZON_WEEKS,
        sessions_to_mastery=to_mastery,
        confidence=confidence,
        recommendations=recommendations,
    )
