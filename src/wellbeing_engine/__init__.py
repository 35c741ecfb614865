"""
Wellbeing Engine.

Adaptive monitoring and scheduling for meditation practice: detects stress
and mood patterns, raises contextual alerts, ranks optimal practice times,
maintains a personalized schedule and forecasts upcoming recommendations.
"""

from .engine import WellbeingEngine
from .errors import InsufficientDataError, ScheduleNotFoundError
from .forecaster import ForecastResult
from .insights import EmotionalState, InsightPeriod, WellbeingInsight
from .models import (
    AlertSeverity,
    AlertType,
    ContextualAlert,
    InterventionContext,
    Level,
    MeditationSession,
    MoodEntry,
    NotificationType,
    OptimalTimeSlot,
    SchedulePreferences,
    ScheduleRecommendation,
    ScheduleType,
    SmartSchedule,
)
from .notifier import FileNotifier, HttpNotifier
from .store import SQLiteWellbeingStore

__all__ = [
    "WellbeingEngine",
    "InsufficientDataError",
    "ScheduleNotFoundError",
    "ForecastResult",
    "EmotionalState",
    "InsightPeriod",
    "WellbeingInsight",
    "AlertSeverity",
    "AlertType",
    "ContextualAlert",
    "InterventionContext",
    "Level",
    "MeditationSession",
    "MoodEntry",
    "NotificationType",
    "OptimalTimeSlot",
    "SchedulePreferences",
    "ScheduleRecommendation",
    "ScheduleType",
    "SmartSchedule",
    "FileNotifier",
    "HttpNotifier",
    "SQLiteWellbeingStore",
]
