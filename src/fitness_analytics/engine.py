"""
Analytics engine.

Orchestrates collaborator fetch, metric extraction, computation and caching.
The engine owns its caches; the records it reads belong to the callers and
are never modified. All public operations are coroutines that only suspend
on collaborator calls and cache locks; the computations themselves are
synchronous and pure.
"""

import logging
import statistics
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import (
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
    runtime_checkable,
)

from fitness_analytics.cache import (
    AnalysisKind,
    CachedResult,
    CacheKey,
    PredictionKind,
    ResultCache,
    compute_fingerprint,
)
from fitness_analytics.classifier import (
    FatigueLevel,
    PerformanceTrend,
    TrendDirection,
    fatigue_level,
    health_strain,
    performance_trend,
    recent_workout_load,
    snapshot_readiness,
    trend_direction,
)
from fitness_analytics.config import Settings, get_settings
from fitness_analytics.correlation import (
    CorrelationResult,
    LabeledCorrelation,
    correlate,
    linear_slope,
)
from fitness_analytics.exceptions import (
    DataUnavailableError,
    UnknownMetricError,
    UnsupportedAnalysisError,
    UserNotFoundError,
    ValidationError,
    WorkoutNotFoundError,
)
from fitness_analytics.insights import Insight, generate_insights
from fitness_analytics.metrics import (
    METRICS,
    WORKOUT_METRICS,
    DailyRecord,
    build_daily_records,
    extract_paired,
    extract_series,
)
from fitness_analytics.models import (
    GoalTarget,
    HealthSnapshot,
    ProgressOverview,
    User,
    Workout,
)
from fitness_analytics.periods import (
    AnalyticsPeriod,
    PeriodWindow,
    consistency_ratio,
    filter_by_period,
    to_naive,
)
from fitness_analytics.prediction import (
    FormImprovementPrediction,
    GoalAchievementPrediction,
    InjuryRiskPrediction,
    NutritionPrediction,
    RecoveryTimePrediction,
    TrainingSchedulePrediction,
    WorkoutPerformancePrediction,
    days_since_last,
    predict_calories,
    predict_form_improvement,
    predict_goal_achievement,
    predict_injury_risk,
    predict_nutrition_needs,
    predict_recovery_time,
    predict_training_schedule,
    predict_workout_performance,
    prediction_confidence,
)


E = TypeVar("E")


# =============================================================================
# Collaborator protocols
# =============================================================================

@runtime_checkable
class UserRepository(Protocol):
    async def get_user(self, user_id: str) -> Optional[User]:
        ...


@runtime_checkable
class WorkoutRepository(Protocol):
    async def get_workouts(self, user_id: str, limit: int) -> Optional[List[Workout]]:
        """Most recent workouts, any order."""
        ...


@runtime_checkable
class HealthDataProvider(Protocol):
    async def get_health_history(
        self, user_id: str, start: date, end: date
    ) -> Optional[List[HealthSnapshot]]:
        """Daily snapshots with ``start <= date <= end``."""
        ...


@runtime_checkable
class ProgressProvider(Protocol):
    async def get_progress_overview(self, user_id: str) -> Optional[ProgressOverview]:
        ...


# =============================================================================
# Analysis table
# =============================================================================

# Each analysis correlates three (driver, outcome) metric pairs
CORRELATION_PAIRS: Dict[AnalysisKind, Tuple[Tuple[str, str], ...]] = {
    AnalysisKind.SLEEP_PERFORMANCE: (
        ("sleep_hours", "intensity"),
        ("sleep_quality", "form_score"),
        ("bedtime_hour", "duration_minutes"),
    ),
    AnalysisKind.NUTRITION_RECOVERY: (
        ("protein_g", "next_day_readiness"),
        ("hydration_l", "next_day_energy"),
        ("protein_g", "next_day_resting_hr"),
    ),
    AnalysisKind.STRESS_PERFORMANCE: (
        ("stress_level", "intensity"),
        ("stress_level", "form_score"),
        ("stress_level", "next_day_readiness"),
    ),
    AnalysisKind.WORKOUT_FREQUENCY: (
        ("weekly_workouts", "form_score"),
        ("weekly_workouts", "next_day_readiness"),
        ("weekly_workouts", "work_rate"),
    ),
    AnalysisKind.FORM_PROGRESS: (
        ("form_score", "calories"),
        ("form_score", "duration_minutes"),
        ("form_score", "training_load"),
    ),
    AnalysisKind.HEART_RATE_VARIABILITY: (
        ("hrv", "intensity"),
        ("hrv", "form_score"),
        ("hrv", "average_heart_rate"),
    ),
    AnalysisKind.RECOVERY_SLEEP: (
        ("sleep_hours", "next_day_readiness"),
        ("sleep_quality", "next_day_hrv"),
        ("bedtime_hour", "next_day_energy"),
    ),
}


# =============================================================================
# Results
# =============================================================================

@dataclass
class CorrelationAnalysis:
    """Result of one correlation analysis over a period."""
    user_id: str
    kind: AnalysisKind
    period: AnalyticsPeriod
    window: PeriodWindow
    correlations: List[LabeledCorrelation]
    insights: List[Insight]
    sample_size: int
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def primary(self) -> CorrelationResult:
        """The analysis headline: its first factor pair."""
        return self.correlations[0].result if self.correlations else CorrelationResult()

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "kind": self.kind.value,
            "period": self.period.value,
            "window": self.window.to_dict(),
            "correlations": [c.to_dict() for c in self.correlations],
            "insights": [i.to_dict() for i in self.insights],
            "sample_size": self.sample_size,
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass
class CorrelationImpact:
    """Expected change in one metric for a given change in another."""
    factor_a: str
    factor_b: str
    change: float
    expected_change: float
    coefficient: float
    confidence: float
    sample_size: int

    def to_dict(self) -> dict:
        return {
            "factor_a": self.factor_a,
            "factor_b": self.factor_b,
            "change": self.change,
            "expected_change": round(self.expected_change, 4),
            "coefficient": round(self.coefficient, 4),
            "confidence": round(self.confidence, 3),
            "sample_size": self.sample_size,
        }


@dataclass
class ProgressAnalysis:
    """Progress of one metric over a period."""
    user_id: str
    metric: str
    period: AnalyticsPeriod
    consistency_score: float
    improvement_rate: float
    trend_slope: float
    trend_direction: TrendDirection
    sample_size: int
    overview: Optional[ProgressOverview] = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "metric": self.metric,
            "period": self.period.value,
            "consistency_score": round(self.consistency_score, 3),
            "improvement_rate": round(self.improvement_rate, 4),
            "trend_slope": round(self.trend_slope, 4),
            "trend_direction": self.trend_direction.value,
            "sample_size": self.sample_size,
            "overview": self.overview.model_dump(mode="json") if self.overview else None,
        }


PredictionBundle = Union[
    WorkoutPerformancePrediction,
    RecoveryTimePrediction,
    GoalAchievementPrediction,
    InjuryRiskPrediction,
    TrainingSchedulePrediction,
    NutritionPrediction,
    FormImprovementPrediction,
]


@dataclass
class _PredictionContext:
    """Everything a prediction reads, fetched once per request."""
    user: User
    workouts: List[Workout]
    history: List[Workout]
    latest_health: Optional[HealthSnapshot]
    readiness: float
    workout_load: float
    health_strain: Optional[float]
    fatigue: FatigueLevel
    trend: PerformanceTrend
    confidence: float
    fingerprint_payload: dict


def _coerce(enum_type: Type[E], value: Union[E, str], field_name: str) -> E:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        if field_name == "period":
            raise ValidationError(f"Unknown period '{value}'", field="period") from None
        raise UnsupportedAnalysisError(str(value)) from None


def _dump(records: Sequence) -> list:
    return [r.model_dump(mode="json") for r in records]


class AnalyticsEngine:
    """
    Correlation analysis and prediction over a user's fitness data.

    Results are memoized per ``(user, kind, period or subject)`` and reused
    only while the fetched inputs are unchanged.
    """

    def __init__(
        self,
        users: UserRepository,
        workouts: WorkoutRepository,
        health: HealthDataProvider,
        progress: Optional[ProgressProvider] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._users = users
        self._workouts = workouts
        self._health = health
        self._progress = progress
        self._settings = settings or get_settings()
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

        self._analysis_cache: ResultCache[CorrelationAnalysis] = ResultCache("analysis")
        self._progress_cache: ResultCache[ProgressAnalysis] = ResultCache("progress")
        self._prediction_cache: ResultCache[PredictionBundle] = ResultCache("prediction")

    @property
    def settings(self) -> Settings:
        return self._settings

    def _now(self) -> datetime:
        return to_naive(self._clock())

    @property
    def is_processing(self) -> bool:
        return (
            self._analysis_cache.is_processing
            or self._progress_cache.is_processing
            or self._prediction_cache.is_processing
        )

    # -------------------------------------------------------------------------
    # Collaborator access
    # -------------------------------------------------------------------------

    async def _call(self, source: str, call: Awaitable[Optional[E]]) -> Optional[E]:
        try:
            return await call
        except Exception as e:
            self._logger.warning(f"{source} failed: {e}")
            raise

    async def _fetch_user(self, user_id: str) -> User:
        user = await self._call("user_store", self._users.get_user(user_id))
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def _fetch_workouts(self, user_id: str, limit: Optional[int] = None) -> List[Workout]:
        limit = limit or self._settings.workout_history_limit
        workouts = await self._call("workout_history", self._workouts.get_workouts(user_id, limit))
        if workouts is None:
            raise DataUnavailableError("workout_history")
        # Aware dates compare against the naive clock by wall-clock time
        workouts = [
            w.model_copy(update={"date": to_naive(w.date)}) if w.date.tzinfo is not None else w
            for w in workouts
        ]
        return sorted(workouts, key=lambda w: w.date)

    async def _fetch_health(self, user_id: str, start: date, end: date) -> List[HealthSnapshot]:
        snapshots = await self._call(
            "health_data", self._health.get_health_history(user_id, start, end)
        )
        if snapshots is None:
            raise DataUnavailableError("health_data")
        return sorted(snapshots, key=lambda s: s.date)

    async def _fetch_progress(self, user_id: str) -> Optional[ProgressOverview]:
        if self._progress is None:
            return None
        return await self._call("progress", self._progress.get_progress_overview(user_id))

    # -------------------------------------------------------------------------
    # Correlation analysis
    # -------------------------------------------------------------------------

    async def _period_records(
        self, user_id: str, period: AnalyticsPeriod, now: datetime
    ) -> Tuple[PeriodWindow, List[Workout], List[HealthSnapshot], List[DailyRecord]]:
        window = period.window(now)
        workouts = await self._fetch_workouts(user_id)
        # One extra day so the last workout has its next-day snapshot
        snapshots = await self._fetch_health(
            user_id, window.start.date(), window.end.date() + timedelta(days=1)
        )
        in_period = filter_by_period(workouts, period, now)
        return window, in_period, snapshots, build_daily_records(in_period, snapshots)

    async def analyze(
        self,
        user_id: str,
        period: Union[AnalyticsPeriod, str],
        kind: Union[AnalysisKind, str],
    ) -> CachedResult[CorrelationAnalysis]:
        """
        Run one correlation analysis for a user over a period.

        Args:
            user_id: User to analyze
            period: Analytics window (week, month, quarter, year)
            kind: Which analysis to run

        Returns:
            CachedResult holding the CorrelationAnalysis

        Raises:
            UserNotFoundError: The user store has no such user
            DataUnavailableError: A collaborator returned nothing
            UnsupportedAnalysisError: Unknown analysis kind
        """
        period = _coerce(AnalyticsPeriod, period, "period")
        kind = _coerce(AnalysisKind, kind, "kind")
        now = self._now()

        await self._fetch_user(user_id)
        window, workouts, snapshots, records = await self._period_records(user_id, period, now)
        fingerprint = compute_fingerprint({
            "window": window.to_dict(),
            "workouts": _dump(workouts),
            "health": _dump(snapshots),
        })

        async def compute() -> CorrelationAnalysis:
            correlations = [
                LabeledCorrelation(a, b, correlate(*extract_paired(records, a, b)))
                for a, b in CORRELATION_PAIRS[kind]
            ]
            analysis = CorrelationAnalysis(
                user_id=user_id,
                kind=kind,
                period=period,
                window=window,
                correlations=correlations,
                insights=generate_insights(correlations, self._settings.significance_level),
                sample_size=len(records),
                generated_at=now,
            )
            self._logger.info(
                f"Analyzed {kind.value} for user {user_id} over {period.value}: "
                f"{len(records)} records, {len(analysis.insights)} insights"
            )
            return analysis

        key = CacheKey(user_id, kind.value, period.value)
        result = await self._analysis_cache.get_or_compute(key, compute, fingerprint)
        self._logger.debug(f"analyze {key} was_cached={result.was_cached}")
        return result

    async def generate_correlation_insights(
        self,
        user_id: str,
        period: Union[AnalyticsPeriod, str],
    ) -> List[Insight]:
        """Insights across every analysis, strongest first, one per factor pair."""
        insights: Dict[Tuple[str, str], Insight] = {}
        for kind in AnalysisKind:
            analysis = (await self.analyze(user_id, period, kind)).value
            for insight in analysis.insights:
                insights.setdefault((insight.factor_a, insight.factor_b), insight)
        return sorted(
            insights.values(),
            key=lambda i: (i.priority.weight, abs(i.coefficient)),
            reverse=True,
        )

    async def predict_correlation_impact(
        self,
        user_id: str,
        factor_a: str,
        factor_b: str,
        change: float,
        period: Union[AnalyticsPeriod, str] = AnalyticsPeriod.QUARTER,
    ) -> CorrelationImpact:
        """
        Expected change in ``factor_b`` when ``factor_a`` moves by ``change``.

        Uses the regression implied by the correlation: r * (sd_b / sd_a) *
        change. Confidence is 1 - p of the underlying correlation.
        """
        period = _coerce(AnalyticsPeriod, period, "period")
        await self._fetch_user(user_id)
        _, _, _, records = await self._period_records(user_id, period, self._now())

        series_a, series_b = extract_paired(records, factor_a, factor_b)
        result = correlate(series_a, series_b)
        expected = 0.0
        if len(series_a) >= 2:
            sd_a = statistics.stdev(series_a.values)
            sd_b = statistics.stdev(series_b.values)
            if sd_a > 0:
                expected = result.coefficient * (sd_b / sd_a) * change

        return CorrelationImpact(
            factor_a=factor_a,
            factor_b=factor_b,
            change=change,
            expected_change=expected,
            coefficient=result.coefficient,
            confidence=1.0 - result.p_value,
            sample_size=result.sample_size,
        )

    async def analyze_progress(
        self,
        user_id: str,
        period: Union[AnalyticsPeriod, str],
        metric: str = "form_score",
    ) -> CachedResult[ProgressAnalysis]:
        """Consistency, improvement rate and linear trend of ``metric``."""
        period = _coerce(AnalyticsPeriod, period, "period")
        now = self._now()

        await self._fetch_user(user_id)
        window, workouts, snapshots, records = await self._period_records(user_id, period, now)
        overview = await self._fetch_progress(user_id)
        fingerprint = compute_fingerprint({
            "window": window.to_dict(),
            "workouts": _dump(workouts),
            "health": _dump(snapshots),
            "overview": overview.model_dump(mode="json") if overview else None,
        })

        async def compute() -> ProgressAnalysis:
            series = extract_series(records, metric)
            values = series.values
            improvement = 0.0
            if len(values) >= 2 and values[0] != 0:
                improvement = (values[-1] - values[0]) / abs(values[0])
            slope = linear_slope(series)
            mean = statistics.mean(values) if values else 0.0
            return ProgressAnalysis(
                user_id=user_id,
                metric=metric,
                period=period,
                consistency_score=consistency_ratio(len(workouts), period),
                improvement_rate=improvement,
                trend_slope=slope,
                trend_direction=trend_direction(slope, mean),
                sample_size=len(series),
                overview=overview,
            )

        key = CacheKey(user_id, metric, period.value)
        return await self._progress_cache.get_or_compute(key, compute, fingerprint)

    # -------------------------------------------------------------------------
    # Predictions
    # -------------------------------------------------------------------------

    async def _prediction_context(
        self, user_id: str, exclude_workout_id: Optional[str] = None
    ) -> _PredictionContext:
        now = self._now()
        user = await self._fetch_user(user_id)
        workouts = await self._fetch_workouts(user_id)
        snapshots = await self._fetch_health(user_id, (now - timedelta(days=7)).date(), now.date())

        completed = [w for w in workouts if w.id != exclude_workout_id and w.date <= now]
        history = completed[-self._settings.recent_workout_limit:]
        latest = snapshots[-1] if snapshots else None

        load = recent_workout_load(history, now)
        strain = health_strain(latest)
        return _PredictionContext(
            user=user,
            workouts=workouts,
            history=history,
            latest_health=latest,
            readiness=snapshot_readiness(latest),
            workout_load=load,
            health_strain=strain,
            fatigue=fatigue_level(load, strain),
            trend=performance_trend([float(w.intensity.level) for w in history]),
            confidence=prediction_confidence(len(history), days_since_last(history, now)),
            fingerprint_payload={
                "user": user.model_dump(mode="json"),
                "workouts": _dump(workouts),
                "health": _dump(snapshots),
                "now": now.date().isoformat(),
            },
        )

    @staticmethod
    def _find_workout(workouts: Sequence[Workout], workout_id: str) -> Workout:
        for workout in workouts:
            if workout.id == workout_id:
                return workout
        raise WorkoutNotFoundError(workout_id)

    async def _cached_prediction(
        self,
        user_id: str,
        kind: PredictionKind,
        subject: str,
        context: _PredictionContext,
        build: Callable[[], PredictionBundle],
        extra: Optional[dict] = None,
    ) -> CachedResult[PredictionBundle]:
        fingerprint = compute_fingerprint({**context.fingerprint_payload, "extra": extra or {}})

        async def compute() -> PredictionBundle:
            prediction = build()
            self._logger.info(f"Predicted {kind.value} for user {user_id} ({subject or '-'})")
            return prediction

        key = CacheKey(user_id, kind.value, subject)
        return await self._prediction_cache.get_or_compute(key, compute, fingerprint)

    async def predict_workout_performance(
        self, user_id: str, workout_id: str
    ) -> CachedResult[WorkoutPerformancePrediction]:
        ctx = await self._prediction_context(user_id, exclude_workout_id=workout_id)
        workout = self._find_workout(ctx.workouts, workout_id)
        return await self._cached_prediction(
            user_id, PredictionKind.WORKOUT_PERFORMANCE, workout_id, ctx,
            lambda: predict_workout_performance(
                workout, ctx.history, ctx.user.profile, ctx.readiness, ctx.fatigue,
                ctx.trend, ctx.confidence,
                min_duration=self._settings.min_duration_minutes,
                min_calories=self._settings.min_calories,
            ),
        )

    async def predict_recovery_time(
        self, user_id: str, workout_id: str
    ) -> CachedResult[RecoveryTimePrediction]:
        ctx = await self._prediction_context(user_id, exclude_workout_id=workout_id)
        workout = self._find_workout(ctx.workouts, workout_id)
        return await self._cached_prediction(
            user_id, PredictionKind.RECOVERY_TIME, workout_id, ctx,
            lambda: predict_recovery_time(
                workout, ctx.user.profile, ctx.fatigue, ctx.readiness, ctx.confidence,
            ),
        )

    async def predict_goal_achievement(
        self, user_id: str, goal: GoalTarget
    ) -> CachedResult[GoalAchievementPrediction]:
        ctx = await self._prediction_context(user_id)
        now = self._now()
        overview = await self._fetch_progress(user_id)
        if overview is not None:
            consistency = overview.consistency_score
        else:
            recent = [w for w in ctx.workouts if now - timedelta(days=30) < w.date <= now]
            consistency = consistency_ratio(len(recent), AnalyticsPeriod.MONTH)

        if goal.metric not in METRICS:
            raise UnknownMetricError(goal.metric)
        records = build_daily_records(ctx.workouts, [])
        if goal.metric not in WORKOUT_METRICS:
            # Health metrics need the snapshots alongside each workout
            snapshots = await self._fetch_health(
                user_id, ctx.workouts[0].date.date() if ctx.workouts else now.date(), now.date()
            )
            records = build_daily_records(ctx.workouts, snapshots)
        series = extract_series(records, goal.metric)

        return await self._cached_prediction(
            user_id, PredictionKind.GOAL_ACHIEVEMENT, goal.goal_id, ctx,
            lambda: predict_goal_achievement(
                goal_id=goal.goal_id,
                metric=goal.metric,
                target_value=goal.target_value,
                timestamps=series.timestamps,
                values=series.values,
                consistency=consistency,
                confidence=ctx.confidence,
                deadline=goal.deadline,
                today=now.date(),
            ),
            extra={
                "goal": goal.model_dump(mode="json"),
                "series": series.to_dict(),
                "consistency": consistency,
            },
        )

    async def predict_injury_risk(self, user_id: str) -> CachedResult[InjuryRiskPrediction]:
        ctx = await self._prediction_context(user_id)
        now = self._now()
        return await self._cached_prediction(
            user_id, PredictionKind.INJURY_RISK, "", ctx,
            lambda: predict_injury_risk(
                ctx.history, ctx.workout_load, ctx.health_strain, ctx.readiness,
                ctx.confidence, now,
            ),
        )

    async def predict_training_schedule(self, user_id: str) -> CachedResult[TrainingSchedulePrediction]:
        ctx = await self._prediction_context(user_id)
        now = self._now()
        return await self._cached_prediction(
            user_id, PredictionKind.TRAINING_SCHEDULE, "", ctx,
            lambda: predict_training_schedule(
                ctx.history, ctx.user.profile, ctx.fatigue, ctx.readiness, ctx.confidence, now,
            ),
        )

    async def predict_nutrition_needs(
        self, user_id: str, workout_id: str
    ) -> CachedResult[NutritionPrediction]:
        ctx = await self._prediction_context(user_id, exclude_workout_id=workout_id)
        workout = self._find_workout(ctx.workouts, workout_id)

        def build() -> NutritionPrediction:
            baseline = workout.calories
            if baseline <= 0 and ctx.history:
                baseline = statistics.mean(w.calories for w in ctx.history)
            expenditure = predict_calories(
                baseline, ctx.readiness, ctx.fatigue, ctx.user.profile, ctx.confidence,
                self._settings.min_calories,
            ).adjusted_value
            return predict_nutrition_needs(workout, ctx.user.profile, expenditure, ctx.confidence)

        return await self._cached_prediction(
            user_id, PredictionKind.NUTRITION_NEEDS, workout_id, ctx, build,
        )

    async def predict_form_improvement(
        self, user_id: str, exercise: str
    ) -> CachedResult[FormImprovementPrediction]:
        ctx = await self._prediction_context(user_id)
        now = self._now()
        sessions = [w for w in ctx.workouts if w.date <= now and w.includes_exercise(exercise)]
        return await self._cached_prediction(
            user_id, PredictionKind.FORM_IMPROVEMENT, exercise.lower(), ctx,
            lambda: predict_form_improvement(
                exercise, sessions, ctx.user.profile, ctx.confidence, now,
            ),
        )

    async def predict(
        self,
        user_id: str,
        subject_id: Optional[str],
        kind: Union[PredictionKind, str],
        goal: Optional[GoalTarget] = None,
    ) -> CachedResult[PredictionBundle]:
        """
        Dispatch a prediction by kind.

        ``subject_id`` is a workout id for workout performance, recovery time
        and nutrition needs, an exercise name for form improvement and a goal
        id for goal achievement (with ``goal`` carrying the target). Injury
        risk and training schedule ignore it.
        """
        kind = _coerce(PredictionKind, kind, "kind")

        if kind is PredictionKind.INJURY_RISK:
            return await self.predict_injury_risk(user_id)
        if kind is PredictionKind.TRAINING_SCHEDULE:
            return await self.predict_training_schedule(user_id)

        if not subject_id:
            raise ValidationError(f"{kind.value} requires a subject_id", field="subject_id")

        if kind is PredictionKind.WORKOUT_PERFORMANCE:
            return await self.predict_workout_performance(user_id, subject_id)
        if kind is PredictionKind.RECOVERY_TIME:
            return await self.predict_recovery_time(user_id, subject_id)
        if kind is PredictionKind.NUTRITION_NEEDS:
            return await self.predict_nutrition_needs(user_id, subject_id)
        if kind is PredictionKind.FORM_IMPROVEMENT:
            return await self.predict_form_improvement(user_id, subject_id)

        if goal is None:
            raise ValidationError("goal_achievement requires a goal target", field="goal")
        if goal.goal_id != subject_id:
            goal = goal.model_copy(update={"goal_id": subject_id})
        return await self.predict_goal_achievement(user_id, goal)

    # -------------------------------------------------------------------------
    # Cache management
    # -------------------------------------------------------------------------

    def cache_status(self, user_id: str) -> dict:
        """Per-key status of every cached or in-flight result for a user."""
        entries = []
        for cache in (self._analysis_cache, self._progress_cache, self._prediction_cache):
            for key in cache.keys_for(user_id):
                entries.append({**key.to_dict(), "cache": cache.name, "status": cache.status(key).value})
        return {
            "user_id": user_id,
            "is_processing": self.is_processing,
            "entries": entries,
        }

    async def invalidate_user(self, user_id: str) -> int:
        removed = 0
        for cache in (self._analysis_cache, self._progress_cache, self._prediction_cache):
            removed += await cache.invalidate_user(user_id)
        return removed

    async def clear_cache(self) -> None:
        for cache in (self._analysis_cache, self._progress_cache, self._prediction_cache):
            await cache.clear()
