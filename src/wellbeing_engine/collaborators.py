"""
Collaborator interfaces consumed by the wellbeing engine.

The engine reads history, persists derived records, and delivers
notifications and reminders only through these protocols. Concrete
implementations live in ``store.py`` and ``notifier.py``; tests supply
in-memory fakes.
"""

from typing import Any, Dict, List, Optional, Protocol

from .models import (
    ContextualAlert,
    InterventionRecord,
    MeditationSession,
    MoodEntry,
    NotificationType,
    OptimalTimeSlot,
    ReminderRequest,
    SmartSchedule,
)


class HistoryReader(Protocol):
    """Read access to a user's recorded history.

    Both methods return records newest first and return fewer records than
    requested when history is short.
    """

    def get_sessions(self, user_id: str, limit: int) -> List[MeditationSession]:
        ...

    def get_mood_entries(self, user_id: str, limit: int) -> List[MoodEntry]:
        ...


class WellbeingStore(Protocol):
    """Persistence for slots, schedules, alerts and interventions."""

    def save_time_slots(self, user_id: str, slots: List[OptimalTimeSlot]) -> None:
        ...

    def save_schedule(self, schedule: SmartSchedule) -> str:
        """Insert a new schedule and return its id."""
        ...

    def replace_schedule(self, schedule: SmartSchedule) -> None:
        """Overwrite an existing schedule in a single update.

        Raises:
            ScheduleNotFoundError: If no schedule with ``schedule.id`` exists
        """
        ...

    def get_active_schedule(self, user_id: str) -> Optional[SmartSchedule]:
        """Return the most recently created schedule for the user."""
        ...

    def get_schedule(self, schedule_id: str) -> Optional[SmartSchedule]:
        ...

    def save_alert(self, alert: ContextualAlert) -> str:
        ...

    def mark_alert_notified(self, alert_id: str) -> None:
        ...

    def record_alert_response(self, alert_id: str, effectiveness: int) -> bool:
        """Store user feedback on an alert; False when the alert is unknown."""
        ...

    def list_alerts(
        self, user_id: Optional[str] = None, limit: int = 50
    ) -> List[ContextualAlert]:
        ...

    def save_intervention(self, record: InterventionRecord) -> str:
        ...

    def record_intervention_feedback(
        self, intervention_id: str, feedback: Dict[str, Any]
    ) -> bool:
        ...


class InterventionNotifier(Protocol):
    """Delivers a notification to the user; returns True when delivered."""

    def notify(self, user_id: str, notification_type: NotificationType) -> bool:
        ...


class ReminderScheduler(Protocol):
    """Registers recurring practice reminders."""

    def create_reminder(self, user_id: str, reminder: ReminderRequest) -> bool:
        ...
