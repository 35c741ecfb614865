"""API route modules."""
from .schedules import router as schedules_router
from .alerts import router as alerts_router
from .insights import router as insights_router
from .monitoring import router as monitoring_router

__all__ = [
    "schedules_router",
    "alerts_router",
    "insights_router",
    "monitoring_router",
]
