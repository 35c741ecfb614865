"""Contextual alert and monitoring models."""
from pydantic import BaseModel, Field
from typing import List, Optional

from wellbeing_engine import AlertSeverity, AlertType


class InterventionPlanResponse(BaseModel):
    immediate: List[str]
    short_term: List[str]
    long_term: List[str]


class ContextualAlertResponse(BaseModel):
    """A stored alert with its detected pattern and suggested intervention."""

    id: Optional[str] = None
    user_id: str
    type: AlertType
    severity: AlertSeverity
    pattern: dict
    intervention_suggested: InterventionPlanResponse
    detected_at: str
    notification_sent: bool
    user_responded: bool
    effectiveness: Optional[int] = None


class AlertFeedbackRequest(BaseModel):
    """How helpful an alert was, from 1 to 5."""

    effectiveness: int = Field(ge=1, le=5)


class MonitorResponse(BaseModel):
    """Alerts raised by one on-demand monitoring pass for a user."""

    user_id: str
    stress_alerts: List[ContextualAlertResponse]
    mood_alerts: List[ContextualAlertResponse]


class MonitorStatusResponse(BaseModel):
    """Response model for monitor scheduler status."""

    scheduler_running: bool
    interval_hours: Optional[float] = None
    cached_cycles: int
    latest_cycle: Optional[dict] = None
