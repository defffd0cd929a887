"""Analytics API routes: correlations, insights, progress and predictions."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from fitness_analytics.api.deps import get_engine
from fitness_analytics.engine import AnalyticsEngine
from fitness_analytics.models import GoalTarget
from fitness_analytics.periods import AnalyticsPeriod


router = APIRouter()
logger = logging.getLogger(__name__)


# =============================================================================
# Correlations
# =============================================================================

@router.get("/{user_id}/correlations/{kind}")
async def get_correlation_analysis(
    user_id: str,
    kind: str,
    period: AnalyticsPeriod = Query(AnalyticsPeriod.MONTH, description="Analytics window"),
    engine: AnalyticsEngine = Depends(get_engine),
):
    """Run one correlation analysis for a user."""
    result = await engine.analyze(user_id, period, kind)
    return result.to_dict()


@router.get("/{user_id}/insights")
async def get_correlation_insights(
    user_id: str,
    period: AnalyticsPeriod = Query(AnalyticsPeriod.MONTH, description="Analytics window"),
    engine: AnalyticsEngine = Depends(get_engine),
):
    """Insights across every correlation analysis, strongest first."""
    insights = await engine.generate_correlation_insights(user_id, period)
    return {
        "user_id": user_id,
        "period": period.value,
        "insights": [i.to_dict() for i in insights],
    }


@router.get("/{user_id}/impact")
async def get_correlation_impact(
    user_id: str,
    factor_a: str = Query(..., description="Metric being changed"),
    factor_b: str = Query(..., description="Metric expected to respond"),
    change: float = Query(..., description="Change applied to factor_a"),
    period: AnalyticsPeriod = Query(AnalyticsPeriod.QUARTER),
    engine: AnalyticsEngine = Depends(get_engine),
):
    """Expected change in one metric when another moves."""
    impact = await engine.predict_correlation_impact(user_id, factor_a, factor_b, change, period)
    return impact.to_dict()


@router.get("/{user_id}/progress")
async def get_progress_analysis(
    user_id: str,
    metric: str = Query("form_score"),
    period: AnalyticsPeriod = Query(AnalyticsPeriod.MONTH),
    engine: AnalyticsEngine = Depends(get_engine),
):
    """Consistency and trend of one metric over a period."""
    result = await engine.analyze_progress(user_id, period, metric)
    return result.to_dict()


# =============================================================================
# Predictions
# =============================================================================

@router.get("/{user_id}/predictions/{kind}")
async def get_prediction(
    user_id: str,
    kind: str,
    subject_id: Optional[str] = Query(None, description="Workout id, exercise name or goal id"),
    metric: Optional[str] = Query(None, description="Goal metric (goal_achievement only)"),
    target: Optional[float] = Query(None, description="Goal target value (goal_achievement only)"),
    deadline: Optional[date] = Query(None, description="Goal deadline (goal_achievement only)"),
    engine: AnalyticsEngine = Depends(get_engine),
):
    """Run one prediction for a user."""
    goal = None
    if metric is not None and target is not None:
        goal = GoalTarget(
            goal_id=subject_id or "goal",
            metric=metric,
            target_value=target,
            deadline=deadline,
        )
    result = await engine.predict(user_id, subject_id, kind, goal=goal)
    return result.to_dict()


# =============================================================================
# Cache
# =============================================================================

@router.get("/{user_id}/cache")
async def get_cache_status(
    user_id: str,
    engine: AnalyticsEngine = Depends(get_engine),
):
    """Cached and in-flight results for a user."""
    return engine.cache_status(user_id)


@router.delete("/{user_id}/cache")
async def invalidate_cache(
    user_id: str,
    engine: AnalyticsEngine = Depends(get_engine),
):
    """Drop every cached result for a user."""
    removed = await engine.invalidate_user(user_id)
    logger.info(f"Invalidated {removed} cached results for user {user_id}")
    return {"user_id": user_id, "removed": removed}
