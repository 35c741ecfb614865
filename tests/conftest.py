"""
Pytest fixtures for wellbeing engine tests.
"""
import copy
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from dotenv import load_dotenv

from wellbeing_engine import ScheduleNotFoundError, WellbeingEngine
from wellbeing_engine.models import (
    ContextualAlert,
    InterventionRecord,
    MeditationSession,
    MoodEntry,
    OptimalTimeSlot,
    SmartSchedule,
)

# Load environment variables
load_dotenv()

# Monday 2024-12-09 10:00 UTC
NOW = datetime(2024, 12, 9, 10, 0, tzinfo=timezone.utc)


# ============================================================================
# In-memory collaborators
# ============================================================================


class InMemoryStore:
    """History reader and wellbeing store backed by plain dictionaries.

    Records are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self):
        self.sessions: Dict[str, List[MeditationSession]] = {}
        self.moods: Dict[str, List[MoodEntry]] = {}
        self.time_slots: Dict[str, List[OptimalTimeSlot]] = {}
        self.schedules: Dict[str, SmartSchedule] = {}
        self.alerts: Dict[str, ContextualAlert] = {}
        self.interventions: Dict[str, InterventionRecord] = {}
        self.replace_calls = 0

    # History

    def add_session(self, session: MeditationSession) -> None:
        self.sessions.setdefault(session.user_id, []).append(session)

    def add_mood_entry(self, entry: MoodEntry) -> None:
        self.moods.setdefault(entry.user_id, []).append(entry)

    def get_sessions(self, user_id: str, limit: int) -> List[MeditationSession]:
        sessions = sorted(self.sessions.get(user_id, []), key=lambda s: s.timestamp, reverse=True)
        return sessions[:limit]

    def get_mood_entries(self, user_id: str, limit: int) -> List[MoodEntry]:
        moods = sorted(self.moods.get(user_id, []), key=lambda m: m.timestamp, reverse=True)
        return moods[:limit]

    def list_user_ids(self) -> List[str]:
        return sorted(set(self.sessions) | set(self.moods))

    # Slots and schedules

    def save_time_slots(self, user_id: str, slots: List[OptimalTimeSlot]) -> None:
        self.time_slots[user_id] = copy.deepcopy(slots)

    def save_schedule(self, schedule: SmartSchedule) -> str:
        schedule_id = schedule.id or f"schedule-{len(self.schedules) + 1}"
        stored = copy.deepcopy(schedule)
        stored.id = schedule_id
        self.schedules[schedule_id] = stored
        return schedule_id

    def replace_schedule(self, schedule: SmartSchedule) -> None:
        if schedule.id not in self.schedules:
            raise ScheduleNotFoundError(schedule.id)
        self.replace_calls += 1
        self.schedules[schedule.id] = copy.deepcopy(schedule)

    def get_active_schedule(self, user_id: str) -> Optional[SmartSchedule]:
        # dicts keep insertion order, so the last match is the newest schedule
        candidates = [s for s in self.schedules.values() if s.user_id == user_id]
        return copy.deepcopy(candidates[-1]) if candidates else None

    def get_schedule(self, schedule_id: str) -> Optional[SmartSchedule]:
        schedule = self.schedules.get(schedule_id)
        return copy.deepcopy(schedule) if schedule else None

    # Alerts

    def save_alert(self, alert: ContextualAlert) -> str:
        alert_id = alert.id or f"alert-{len(self.alerts) + 1}"
        stored = copy.deepcopy(alert)
        stored.id = alert_id
        self.alerts[alert_id] = stored
        return alert_id

    def mark_alert_notified(self, alert_id: str) -> None:
        self.alerts[alert_id].notification_sent = True

    def record_alert_response(self, alert_id: str, effectiveness: int) -> bool:
        alert = self.alerts.get(alert_id)
        if alert is None:
            return False
        alert.user_responded = True
        alert.effectiveness = effectiveness
        return True

    def list_alerts(self, user_id: Optional[str] = None, limit: int = 50) -> List[ContextualAlert]:
        alerts = [a for a in self.alerts.values() if user_id is None or a.user_id == user_id]
        alerts = sorted(alerts, key=lambda a: a.detected_at, reverse=True)
        return copy.deepcopy(alerts[:limit])

    # Interventions

    def save_intervention(self, record: InterventionRecord) -> str:
        record_id = record.id or f"intervention-{len(self.interventions) + 1}"
        stored = copy.deepcopy(record)
        stored.id = record_id
        self.interventions[record_id] = stored
        return record_id

    def record_intervention_feedback(self, intervention_id: str, feedback: Dict[str, Any]) -> bool:
        record = self.interventions.get(intervention_id)
        if record is None:
            return False
        record.feedback = dict(feedback)
        record.completed = True
        return True


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def notifier():
    """Notifier mock that reports every delivery as successful."""
    mock = MagicMock()
    mock.notify.return_value = True
    mock.create_reminder.return_value = True
    return mock


@pytest.fixture
def engine(store, notifier):
    return WellbeingEngine(
        history=store, store=store, notifier=notifier, reminders=notifier, clock=lambda: NOW
    )


@pytest.fixture
def make_session():
    """Factory for sessions; ``at`` defaults to the fixed clock."""
    def _make(
        hour: Optional[int] = None,
        quality: int = 4,
        at: Optional[datetime] = None,
        days_ago: int = 0,
        user_id: str = "user-1",
        techniques: tuple = ("mindfulness",),
        mood_before: Optional[int] = None,
        mood_after: Optional[int] = None,
        stress_level: Optional[int] = None,
    ) -> MeditationSession:
        timestamp = at or NOW
        timestamp = timestamp - timedelta(days=days_ago)
        if hour is not None:
            timestamp = timestamp.replace(hour=hour, minute=0)
        return MeditationSession(
            id=str(uuid.uuid4()),
            user_id=user_id,
            timestamp=timestamp,
            duration_minutes=15,
            quality=quality,
            techniques=techniques,
            mood_before=mood_before,
            mood_after=mood_after,
            stress_level=stress_level,
        )
    return _make


@pytest.fixture
def make_mood():
    """Factory for mood check-ins; unspecified dimensions are neutral."""
    def _make(
        overall: int = 3,
        stress: int = 2,
        anxiety: int = 2,
        energy: int = 3,
        focus: int = 3,
        happiness: int = 3,
        at: Optional[datetime] = None,
        hours_ago: float = 0,
        user_id: str = "user-1",
    ) -> MoodEntry:
        return MoodEntry(
            id=str(uuid.uuid4()),
            user_id=user_id,
            timestamp=(at or NOW) - timedelta(hours=hours_ago),
            overall=overall,
            energy=energy,
            anxiety=anxiety,
            happiness=happiness,
            stress=stress,
            focus=focus,
        )
    return _make


@pytest.fixture
def mood_series(make_mood):
    """Daily check-ins, newest first, one value per day for ``field``."""
    def _series(values: List[int], field: str = "overall", **kwargs) -> List[MoodEntry]:
        return [
            make_mood(hours_ago=24 * i, **{field: value}, **kwargs)
            for i, value in enumerate(values)
        ]
    return _series
