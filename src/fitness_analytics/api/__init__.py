"""HTTP surface for the analytics engine."""

from fitness_analytics.api.exception_handlers import register_exception_handlers
from fitness_analytics.api.routes import router

__all__ = ["router", "register_exception_handlers"]
