"""
Tests for the SQLite wellbeing store.

These tests verify:
1. Sessions and check-ins come back newest first and limited
2. Schedules round-trip and the most recently created one is active
3. Replacing an unknown schedule raises ScheduleNotFoundError
4. Saved time slots replace the user's previous slots
5. Alert status columns are updated in place
6. Intervention feedback is stored and marks the record completed
7. The engine runs end to end on a file-backed store

Usage:
    pytest tests/test_store.py -v
"""
import sqlite3
from datetime import timedelta

import pytest

from wellbeing_engine import ScheduleNotFoundError, WellbeingEngine
from wellbeing_engine.alert_generator import design_intervention
from wellbeing_engine.models import (
    InterventionContext,
    InterventionRecord,
    Level,
    SchedulePreferences,
)
from wellbeing_engine.schedule_manager import ScheduleManager
from wellbeing_engine.schedule_optimizer import ScheduleOptimizer
from wellbeing_engine.store import SQLiteWellbeingStore


@pytest.fixture
def db(tmp_path):
    """Store on a temporary file; each call opens its own connection."""
    sqlite_store = SQLiteWellbeingStore(str(tmp_path / "wellbeing.db"))
    sqlite_store.initialize()
    return sqlite_store


@pytest.fixture
def schedule(db, now):
    slots = ScheduleOptimizer().default_time_slots("user-1", now)
    return ScheduleManager(db).create_smart_schedule("user-1", SchedulePreferences(), slots, now)


# ============================================================================
# History
# ============================================================================


class TestHistory:
    """Test session and check-in reads."""

    def test_sessions_newest_first(self, db, make_session):
        for days_ago in (3, 0, 1):
            db.add_session(make_session(hour=7, days_ago=days_ago, techniques=("breathing", "body_scan")))

        sessions = db.get_sessions("user-1", 2)

        assert len(sessions) == 2
        assert sessions[0].timestamp > sessions[1].timestamp
        assert sessions[0].techniques == ("breathing", "body_scan")

    def test_session_optional_fields(self, db, make_session):
        db.add_session(make_session(mood_before=2, mood_after=4))
        session = db.get_sessions("user-1", 1)[0]

        assert session.mood_change == 2
        assert session.stress_level is None

    def test_moods_per_user(self, db, make_mood):
        db.add_mood_entry(make_mood(stress=5, user_id="user-1"))
        db.add_mood_entry(make_mood(stress=1, user_id="user-2", hours_ago=2))

        moods = db.get_mood_entries("user-1", 10)
        assert [m.stress for m in moods] == [5]

    def test_list_user_ids(self, db, make_session, make_mood):
        db.add_session(make_session(user_id="user-b"))
        db.add_mood_entry(make_mood(user_id="user-a"))
        db.add_mood_entry(make_mood(user_id="user-b", hours_ago=1))

        assert db.list_user_ids() == ["user-a", "user-b"]

    def test_duplicate_session_id(self, db, make_session):
        """A duplicate primary key should surface as a sqlite3 error."""
        session = make_session()
        db.add_session(session)
        with pytest.raises(sqlite3.IntegrityError):
            db.add_session(session)


# ============================================================================
# Schedules
# ============================================================================


class TestSchedules:
    """Test schedule persistence."""

    def test_round_trip(self, db, schedule):
        loaded = db.get_schedule(schedule.id)

        assert loaded.id == schedule.id
        assert loaded.slot_times == ["07:00", "12:00", "19:00"]
        assert loaded.schedule_type == schedule.schedule_type
        assert loaded.time_slots[0].personal_factors.energy_level == Level.HIGH

    def test_active_schedule_is_latest(self, db, schedule, now):
        slots = ScheduleOptimizer().default_time_slots("user-1", now)
        newer = ScheduleManager(db).create_smart_schedule(
            "user-1", SchedulePreferences(max_sessions_per_day=1), slots, now + timedelta(hours=1)
        )

        assert db.get_active_schedule("user-1").id == newer.id

    def test_replace_updates_active(self, db, schedule, now):
        schedule.updated_at = now + timedelta(days=1)
        schedule.time_slots = schedule.time_slots[:1]
        db.replace_schedule(schedule)

        assert db.get_active_schedule("user-1").slot_times == ["07:00"]

    def test_updating_older_schedule_keeps_newest_active(self, db, schedule, now):
        """Refreshing an old schedule's effectiveness should not reactivate it."""
        slots = ScheduleOptimizer().default_time_slots("user-1", now)
        manager = ScheduleManager(db)
        newer = manager.create_smart_schedule(
            "user-1", SchedulePreferences(max_sessions_per_day=2), slots, now + timedelta(hours=1)
        )

        manager.update_schedule_effectiveness(schedule, [], now + timedelta(days=2))

        assert db.get_active_schedule("user-1").id == newer.id
        assert db.get_schedule(schedule.id).updated_at == now + timedelta(days=2)

    def test_replace_unknown(self, db, schedule):
        schedule.id = "missing"
        with pytest.raises(ScheduleNotFoundError):
            db.replace_schedule(schedule)

    def test_no_schedule(self, db):
        assert db.get_active_schedule("user-1") is None
        assert db.get_schedule("missing") is None

    def test_save_time_slots(self, db, now):
        slots = ScheduleOptimizer().default_time_slots("user-1", now)
        db.save_time_slots("user-1", slots)
        db.save_time_slots("user-1", slots)

        with sqlite3.connect(db.db_path) as conn:
            count = conn.execute("SELECT COUNT(*) FROM optimal_time_slots").fetchone()[0]
        assert count == 3

    def test_time_slots_replaced_wholesale(self, db, now):
        optimizer = ScheduleOptimizer()
        db.save_time_slots("user-1", optimizer.default_time_slots("user-1", now))
        db.save_time_slots("user-2", optimizer.default_time_slots("user-2", now))

        db.save_time_slots("user-1", optimizer.default_time_slots("user-1", now)[:1])

        with sqlite3.connect(db.db_path) as conn:
            rows = conn.execute(
                "SELECT user_id, time_slot FROM optimal_time_slots ORDER BY user_id, time_slot"
            ).fetchall()
        assert rows == [
            ("user-1", "07:00"),
            ("user-2", "07:00"),
            ("user-2", "12:00"),
            ("user-2", "19:00"),
        ]


# ============================================================================
# Alerts and Interventions
# ============================================================================


class TestAlertsAndInterventions:

    @pytest.fixture
    def engine(self, db, notifier, now):
        return WellbeingEngine(history=db, store=db, notifier=notifier, clock=lambda: now)

    def test_alert_status_columns(self, db, engine, make_mood):
        db.add_mood_entry(make_mood(stress=5))
        alert = engine.monitor_stress_patterns("user-1")[0]

        assert engine.record_alert_response(alert.id, 2) is True
        loaded = db.get_alert(alert.id)

        assert loaded.notification_sent is True
        assert loaded.user_responded is True
        assert loaded.effectiveness == 2
        assert loaded.pattern.stress_level == 5

    def test_list_alerts_newest_first(self, db, engine, make_mood, now):
        db.add_mood_entry(make_mood(stress=5, user_id="user-1"))
        db.add_mood_entry(make_mood(stress=5, user_id="user-2"))
        first = engine.monitor_stress_patterns("user-1")[0]
        engine.clock = lambda: now + timedelta(minutes=5)
        second = engine.monitor_stress_patterns("user-2")[0]

        assert [a.id for a in db.list_alerts()] == [second.id, first.id]
        assert [a.id for a in db.list_alerts(user_id="user-1")] == [first.id]
        assert len(db.list_alerts(limit=1)) == 1

    def test_unknown_alert_response(self, db):
        assert db.record_alert_response("missing", 3) is False
        assert db.get_alert("missing") is None

    def test_intervention_feedback(self, db, now):
        record = InterventionRecord(
            user_id="user-1",
            context=InterventionContext.FATIGUE,
            urgency=Level.LOW,
            intervention=design_intervention(InterventionContext.FATIGUE),
            created_at=now,
        )
        record_id = db.save_intervention(record)

        assert db.get_intervention_feedback(record_id) is None
        assert db.record_intervention_feedback(record_id, {"helpful": False, "rating": 2}) is True
        assert db.get_intervention_feedback(record_id) == {"helpful": False, "rating": 2}
        assert db.record_intervention_feedback("missing", {"rating": 2}) is False


class TestEngineOnSQLite:
    """Run the full schedule lifecycle against a file-backed store."""

    def test_schedule_lifecycle(self, db, notifier, make_session, now):
        engine = WellbeingEngine(history=db, store=db, notifier=notifier, reminders=notifier, clock=lambda: now)
        schedule = engine.create_smart_schedule("user-1")
        for days_ago in range(10):
            db.add_session(make_session(hour=15, quality=2, days_ago=days_ago))

        adapted = engine.adapt_schedule_based_on_performance("user-1")

        assert adapted.id == schedule.id
        assert db.get_active_schedule("user-1").slot_times == ["15:00", "07:30", "21:30"]
        assert len(db.list_user_ids()) == 1
