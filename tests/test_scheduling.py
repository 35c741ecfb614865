"""
Unit tests for time slot ranking and schedule management.

These tests verify:
1. Slot confidence ramps over ten sessions and is capped at 0.9
2. Ranked slots merge history buckets with circadian anchors, at most six
3. Low-data defaults are 07:00, 12:00 and 19:00 at 0.5
4. Schedules keep at most max_sessions_per_day slots and register reminders
5. Adherence uses a one-hour tolerance around each slot
6. Adaptation triggers below 60% adherence or 3.5 average quality
7. Schedule replacement of an unknown schedule raises KeyError

Usage:
    pytest tests/test_scheduling.py -v
"""
from unittest.mock import MagicMock

import pytest

from wellbeing_engine.circadian import CircadianEstimator
from wellbeing_engine.lifestyle import LifestyleEstimator
from wellbeing_engine.models import Level, SchedulePreferences, ScheduleType, SmartSchedule
from wellbeing_engine.schedule_manager import (
    LOW_ADHERENCE,
    LOW_QUALITY,
    ScheduleManager,
    is_adherent,
)
from wellbeing_engine.schedule_optimizer import (
    ScheduleOptimizer,
    assess_personal_factors,
    slot_confidence,
    suggest_technique_for_time,
)
from wellbeing_engine.time_effectiveness import TimeEffectivenessAnalyzer


def rank(sessions, now):
    """Run the full ranking pipeline over sessions."""
    return ScheduleOptimizer().calculate_optimal_time_slots(
        TimeEffectivenessAnalyzer().analyze_time_effectiveness(sessions),
        CircadianEstimator().estimate_circadian_rhythm("user-1", sessions, now),
        LifestyleEstimator().estimate_lifestyle("user-1", sessions),
        now,
    )


@pytest.fixture
def default_slots(now):
    return ScheduleOptimizer().default_time_slots("user-1", now)


# ============================================================================
# Schedule Optimizer
# ============================================================================


class TestSlotConfidence:

    @pytest.mark.parametrize("sessions,expected", [(0, 0.0), (3, 0.3), (9, 0.9), (20, 0.9)])
    def test_ramp_and_cap(self, sessions, expected):
        assert slot_confidence(sessions) == pytest.approx(expected)


class TestScheduleOptimizer:
    """Test slot ranking."""

    def test_dominant_hour(self, make_session, now):
        """Twenty good sessions at 07:00 should rank first at 0.9."""
        sessions = [make_session(hour=7, quality=5, days_ago=d) for d in range(20)]
        slots = rank(sessions, now)

        assert slots[0].time_slot == "07:00"
        assert slots[0].confidence == pytest.approx(0.9)
        assert slots[0].based_on_sessions == 20
        # Early type anchors follow at the fixed confidence
        assert [s.time_slot for s in slots[1:]] == ["06:30", "20:30"]
        assert all(s.confidence == pytest.approx(0.7) for s in slots[1:])
        assert slots[1].based_on_sessions == 0

    def test_at_most_six_slots(self, make_session, now):
        """Five buckets plus two anchors should be cut to six."""
        sessions = [make_session(hour=h, quality=4, days_ago=h) for h in (6, 9, 11, 13, 15, 17, 20)]
        slots = rank(sessions, now)

        assert len(slots) == 6
        # Anchors at 0.7 outrank single-session buckets at 0.1
        assert [s.time_slot for s in slots[:2]] == ["07:30", "21:30"]

    def test_equal_quality_keeps_earlier_slot(self, make_session, now):
        """Buckets with the same mean quality should rank by time."""
        sessions = [make_session(hour=h, quality=3, days_ago=h) for h in (16, 14, 8, 13, 11, 12)]
        bucket_times = [s.time_slot for s in rank(sessions, now) if s.based_on_sessions]

        assert bucket_times == ["08:00", "11:00", "12:00", "13:00"]

    def test_confidence_never_exceeds_cap(self, make_session, now):
        sessions = [make_session(hour=h % 24, quality=5, days_ago=d) for d in range(30) for h in (7, 12)]
        assert all(0 <= s.confidence <= 0.9 for s in rank(sessions, now))

    def test_default_slots(self, default_slots):
        assert [s.time_slot for s in default_slots] == ["07:00", "12:00", "19:00"]
        assert all(s.confidence == 0.5 for s in default_slots)
        assert default_slots[0].personal_factors.energy_level == Level.HIGH
        assert default_slots[2].environmental.natural_light is False

    def test_personal_factors_regular_worker(self, make_session):
        """Office hours of a regular worker should have low availability."""
        sessions = [make_session(hour=10, days_ago=d) for d in (0, 4, 5, 6)]
        lifestyle = LifestyleEstimator().estimate_lifestyle("user-1", sessions)

        factors = assess_personal_factors(14, lifestyle)
        assert factors.availability == Level.LOW
        assert factors.stress_level == Level.HIGH
        assert factors.energy_level == Level.LOW

    @pytest.mark.parametrize("time_slot,technique", [
        ("07:00", "mindfulness"),
        ("12:00", "breathing"),
        ("16:00", "stress_relief"),
        ("21:30", "body_scan"),
        ("02:00", "mindfulness"),
    ])
    def test_technique_for_time(self, time_slot, technique):
        assert suggest_technique_for_time(time_slot) == technique


# ============================================================================
# Schedule Manager
# ============================================================================


class TestAdherence:

    def test_within_one_hour(self, make_session):
        assert is_adherent(make_session(hour=8), ["07:00"])
        assert is_adherent(make_session(hour=6), ["07:00"])
        assert is_adherent(make_session(hour=8), ["07:30"])

    def test_outside_window(self, make_session):
        assert not is_adherent(make_session(hour=9), ["07:00", "12:00"])


class TestScheduleCreation:
    """Test schedule building and reminders."""

    def test_defaults(self, store, default_slots, now):
        schedule = ScheduleManager(store).build_schedule(
            "user-1", SchedulePreferences(), default_slots, now
        )

        assert schedule.schedule_type == ScheduleType.DAILY
        assert schedule.personal_preferences.preferred_duration == 15
        assert schedule.personal_preferences.preferred_techniques == ["mindfulness", "breathing"]
        assert schedule.personal_preferences.minimum_gap == 4
        assert schedule.effectiveness.adherence_rate == 0
        assert schedule.id is None

    def test_truncates_to_max_sessions(self, store, default_slots, now):
        preferences = SchedulePreferences(max_sessions_per_day=2, daily_duration=20)
        schedule = ScheduleManager(store).build_schedule("user-1", preferences, default_slots, now)

        assert schedule.slot_times == ["07:00", "12:00"]
        assert schedule.personal_preferences.preferred_duration == 20

    def test_initial_recommendations(self, store, make_session, now):
        """High confidence history slots should give high priority."""
        sessions = [make_session(hour=7, quality=5, days_ago=d) for d in range(20)]
        recommendations = ScheduleManager(store).initial_recommendations(rank(sessions, now))

        assert len(recommendations) == 3
        assert recommendations[0].priority == Level.HIGH
        assert recommendations[0].reason == "Optimal time based on your session history"
        assert recommendations[1].priority == Level.MEDIUM
        assert recommendations[1].reason == "Optimal time based on circadian rhythm analysis"

    def test_create_saves_and_schedules_reminders(self, store, notifier, default_slots, now):
        schedule = ScheduleManager(store, notifier).create_smart_schedule(
            "user-1", SchedulePreferences(preferred_techniques=["body_scan"]), default_slots, now
        )

        assert schedule.id in store.schedules
        assert notifier.create_reminder.call_count == 3
        _, reminder = notifier.create_reminder.call_args_list[0].args
        assert reminder.optimal_time == "07:00"
        assert reminder.preferred_technique == "body_scan"

    def test_reminder_failure_keeps_schedule(self, store, default_slots, now):
        reminders = MagicMock()
        reminders.create_reminder.return_value = False
        schedule = ScheduleManager(store, reminders).create_smart_schedule(
            "user-1", SchedulePreferences(), default_slots, now
        )
        assert schedule.id in store.schedules


class TestSchedulePerformance:
    """Test adherence analysis and adjustment."""

    @pytest.fixture
    def schedule(self, store, default_slots, now):
        return ScheduleManager(store).create_smart_schedule(
            "user-1", SchedulePreferences(), default_slots, now
        )

    def test_full_adherence(self, store, schedule, make_session):
        sessions = [make_session(hour=7, quality=4, days_ago=d) for d in range(5)]
        performance = ScheduleManager(store).analyze_schedule_performance(schedule, sessions)

        assert performance.adherence_rate == 100
        assert performance.avg_quality == 4
        assert performance.needs_adjustment is False
        assert performance.suggested_changes == []

    def test_missed_slots(self, store, schedule, make_session):
        """Sessions at 15:00 with quality 2 should fail both checks."""
        sessions = [make_session(hour=15, quality=2, days_ago=d) for d in range(5)]
        performance = ScheduleManager(store).analyze_schedule_performance(schedule, sessions)

        assert performance.adherence_rate == 0
        assert performance.avg_quality == 0
        assert performance.needs_adjustment is True
        assert performance.adjustment_reasons == [LOW_ADHERENCE, LOW_QUALITY]
        assert [c.confidence for c in performance.suggested_changes] == [0.8, 0.7]

    def test_no_sessions(self, store, schedule):
        performance = ScheduleManager(store).analyze_schedule_performance(schedule, [])
        assert performance.adherence_rate == 0
        assert performance.needs_adjustment is True

    def test_adjust_replaces_slots(self, store, schedule, make_session, now):
        sessions = [make_session(hour=15, quality=2, days_ago=d) for d in range(10)]
        adjusted = ScheduleManager(store).adjust_schedule(schedule, rank(sessions, now), now)

        assert adjusted.slot_times == ["15:00", "07:30", "21:30"]
        assert store.schedules[schedule.id].slot_times == ["15:00", "07:30", "21:30"]
        assert store.replace_calls == 1

    def test_adjust_unknown_schedule(self, store, default_slots, now):
        unsaved = SmartSchedule(user_id="user-1", schedule_type=ScheduleType.DAILY, time_slots=[], id="missing")
        with pytest.raises(KeyError):
            ScheduleManager(store).adjust_schedule(unsaved, default_slots, now)

    def test_effectiveness(self, store, schedule, make_session, now):
        sessions = [
            make_session(hour=7, quality=5, mood_before=2, mood_after=4, stress_level=2),
            make_session(hour=12, quality=3, mood_before=3, mood_after=3, stress_level=4, days_ago=1),
            make_session(hour=15, quality=1, days_ago=2),
            make_session(hour=19, quality=4, days_ago=3),
        ]
        updated = ScheduleManager(store).update_schedule_effectiveness(schedule, sessions, now)

        assert updated.effectiveness.adherence_rate == pytest.approx(75)
        assert updated.effectiveness.avg_session_quality == pytest.approx(4)
        assert updated.effectiveness.mood_improvement_rate == pytest.approx(100 / 3)
        assert updated.effectiveness.stress_reduction_rate == pytest.approx(100 / 3)
        assert store.schedules[schedule.id].effectiveness.adherence_rate == pytest.approx(75)
