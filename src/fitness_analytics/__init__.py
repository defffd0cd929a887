"""Fitness metric correlation and predictive analytics engine."""

__version__ = "0.1.0"

from fitness_analytics.cache import (
    AnalysisKind,
    CachedResult,
    CacheKey,
    CacheStatus,
    PredictionKind,
    ResultCache,
)
from fitness_analytics.classifier import (
    FatigueLevel,
    PerformanceTrend,
    RiskLevel,
    TrendDirection,
    fatigue_level,
    health_strain,
    performance_trend,
    readiness,
    recent_workout_load,
    risk_level,
)
from fitness_analytics.correlation import (
    ConfidenceInterval,
    CorrelationResult,
    CorrelationStrength,
    LabeledCorrelation,
    classify_strength,
    confidence_interval,
    correlate,
    linear_slope,
    pearson,
    significance,
)
from fitness_analytics.engine import (
    AnalyticsEngine,
    CorrelationAnalysis,
    CorrelationImpact,
    HealthDataProvider,
    ProgressAnalysis,
    ProgressProvider,
    UserRepository,
    WorkoutRepository,
)
from fitness_analytics.exceptions import (
    DataUnavailableError,
    ErrorCode,
    FitnessAnalyticsError,
    NotFoundError,
    UnknownMetricError,
    UnsupportedAnalysisError,
    UserNotFoundError,
    ValidationError,
    WorkoutNotFoundError,
)
from fitness_analytics.insights import Insight, InsightPriority, generate_insights
from fitness_analytics.metrics import DailyRecord, build_daily_records, extract_paired, extract_series
from fitness_analytics.models import (
    Difficulty,
    FitnessGoal,
    FitnessLevel,
    GoalTarget,
    HealthSnapshot,
    HeartRateStats,
    ProgressOverview,
    User,
    UserProfile,
    Workout,
    WorkoutIntensity,
)
from fitness_analytics.periods import AnalyticsPeriod, PeriodWindow, filter_by_period
from fitness_analytics.prediction import PredictionFactor, PredictionResult
from fitness_analytics.series import MetricSeries

__all__ = [
    "__version__",
    # Records
    "Difficulty",
    "FitnessGoal",
    "FitnessLevel",
    "GoalTarget",
    "HealthSnapshot",
    "HeartRateStats",
    "ProgressOverview",
    "User",
    "UserProfile",
    "Workout",
    "WorkoutIntensity",
    # Series and periods
    "MetricSeries",
    "AnalyticsPeriod",
    "PeriodWindow",
    "filter_by_period",
    "DailyRecord",
    "build_daily_records",
    "extract_series",
    "extract_paired",
    # Correlation
    "ConfidenceInterval",
    "CorrelationResult",
    "CorrelationStrength",
    "LabeledCorrelation",
    "classify_strength",
    "confidence_interval",
    "correlate",
    "linear_slope",
    "pearson",
    "significance",
    "Insight",
    "InsightPriority",
    "generate_insights",
    # Classification
    "FatigueLevel",
    "PerformanceTrend",
    "RiskLevel",
    "TrendDirection",
    "fatigue_level",
    "health_strain",
    "performance_trend",
    "readiness",
    "recent_workout_load",
    "risk_level",
    # Prediction
    "PredictionFactor",
    "PredictionResult",
    # Cache
    "AnalysisKind",
    "PredictionKind",
    "CacheKey",
    "CacheStatus",
    "CachedResult",
    "ResultCache",
    # Engine
    "AnalyticsEngine",
    "CorrelationAnalysis",
    "CorrelationImpact",
    "ProgressAnalysis",
    "UserRepository",
    "WorkoutRepository",
    "HealthDataProvider",
    "ProgressProvider",
    # Errors
    "ErrorCode",
    "FitnessAnalyticsError",
    "ValidationError",
    "UnknownMetricError",
    "UnsupportedAnalysisError",
    "NotFoundError",
    "UserNotFoundError",
    "WorkoutNotFoundError",
    "DataUnavailableError",
]
