"""Pydantic models for wellbeing API requests and responses."""
from .schedules import (
    CreateScheduleRequest,
    ForecastResponse,
    OptimalTimeSlotResponse,
    ScheduleChangeResponse,
    SchedulePerformanceResponse,
    ScheduleRecommendationResponse,
    SmartScheduleResponse,
)
from .alerts import (
    AlertFeedbackRequest,
    ContextualAlertResponse,
    MonitorResponse,
    MonitorStatusResponse,
)
from .insights import (
    EmotionalStateResponse,
    InterventionFeedbackRequest,
    InterventionRequest,
    InterventionResponse,
    WellbeingInsightResponse,
)

__all__ = [
    "CreateScheduleRequest",
    "ForecastResponse",
    "OptimalTimeSlotResponse",
    "ScheduleChangeResponse",
    "SchedulePerformanceResponse",
    "ScheduleRecommendationResponse",
    "SmartScheduleResponse",
    "AlertFeedbackRequest",
    "ContextualAlertResponse",
    "MonitorResponse",
    "MonitorStatusResponse",
    "EmotionalStateResponse",
    "InterventionFeedbackRequest",
    "InterventionRequest",
    "InterventionResponse",
    "WellbeingInsightResponse",
]
