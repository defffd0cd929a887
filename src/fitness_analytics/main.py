"""FastAPI application factory for the analytics engine."""

from typing import Optional

from fastapi import FastAPI

from fitness_analytics import __version__
from fitness_analytics.api import register_exception_handlers, router
from fitness_analytics.config import configure_logging
from fitness_analytics.engine import AnalyticsEngine


def create_app(engine: Optional[AnalyticsEngine] = None) -> FastAPI:
    """
    Build the application.

    Args:
        engine: Engine wired to the data collaborators. Without one every
            analytics route answers 503 until ``app.state.engine`` is set.
    """
    configure_logging()

    app = FastAPI(
        title="Fitness Analytics",
        description="Correlation analysis and predictions over fitness data",
        version=__version__,
    )
    app.state.engine = engine

    register_exception_handlers(app)
    app.include_router(router, prefix="/api/v1/analytics", tags=["analytics"])

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": __version__}

    return app
