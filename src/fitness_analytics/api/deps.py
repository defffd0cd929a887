"""Dependency injection for API routes."""

from fastapi import Request

from fitness_analytics.engine import AnalyticsEngine
from fitness_analytics.exceptions import DataUnavailableError


def get_engine(request: Request) -> AnalyticsEngine:
    """Get the engine attached to the application."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise DataUnavailableError(
            "analytics_engine",
            message="Analytics engine is not configured",
        )
    return engine
