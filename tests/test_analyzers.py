"""
Unit tests for the history analyzers.

These tests verify:
1. Sessions are bucketed by hour with running means
2. Mood improvement only averages sessions that carry both ratings
3. Circadian type follows the better of the morning and evening windows
4. Circadian anchors and sleep assumptions follow the type
5. Lifestyle work type and hours follow practice timing

Usage:
    pytest tests/test_analyzers.py -v
"""
import pytest

from wellbeing_engine.circadian import CircadianEstimator
from wellbeing_engine.lifestyle import LifestyleEstimator
from wellbeing_engine.time_effectiveness import TimeEffectivenessAnalyzer


# ============================================================================
# Time Effectiveness
# ============================================================================


class TestTimeEffectiveness:
    """Test hourly bucketing of sessions."""

    def test_empty_history(self):
        """No sessions should give an empty mapping."""
        assert TimeEffectivenessAnalyzer().analyze_time_effectiveness([]) == {}

    def test_buckets_by_hour(self, make_session):
        """Sessions should be grouped under HH:00 labels."""
        sessions = [
            make_session(hour=7, quality=4),
            make_session(hour=7, quality=2, days_ago=1),
            make_session(hour=19, quality=5),
        ]
        analysis = TimeEffectivenessAnalyzer().analyze_time_effectiveness(sessions)

        assert set(analysis) == {"07:00", "19:00"}
        assert analysis["07:00"].sessions == 2
        assert analysis["07:00"].avg_quality == pytest.approx(3.0)
        assert analysis["19:00"].avg_quality == pytest.approx(5.0)
        assert analysis["07:00"].completion_rate == 1.0

    def test_mood_improvement_ignores_missing_ratings(self, make_session):
        """Sessions without both mood ratings should not dilute the mean."""
        sessions = [
            make_session(hour=8, mood_before=2, mood_after=4),
            make_session(hour=8, mood_before=3, mood_after=3, days_ago=1),
            make_session(hour=8, days_ago=2),
        ]
        data = TimeEffectivenessAnalyzer().analyze_time_effectiveness(sessions)["08:00"]

        assert data.sessions == 3
        assert data.mood_samples == 2
        assert data.mood_improvement == pytest.approx(1.0)


# ============================================================================
# Circadian Rhythm
# ============================================================================


class TestCircadianEstimator:
    """Test circadian type inference."""

    def test_no_sessions_is_regular(self, now):
        """Without history the regular baseline should be returned."""
        analysis = CircadianEstimator().estimate_circadian_rhythm("user-1", [], now)

        assert analysis.natural_rhythm.morning_type == "regular"
        assert analysis.natural_rhythm.energy_peaks == []
        assert analysis.recommendations.morning_meditation.recommended_time == "07:30"
        assert analysis.recommendations.evening_winddown.recommended_time == "21:30"
        assert analysis.sleep_pattern.average_bedtime == "23:00"

    def test_early_type(self, make_session, now):
        """Clearly better mornings should classify as early."""
        sessions = [make_session(hour=7, quality=5, days_ago=d) for d in range(3)]
        sessions += [make_session(hour=20, quality=2, days_ago=d) for d in range(3)]
        analysis = CircadianEstimator().estimate_circadian_rhythm("user-1", sessions, now)

        assert analysis.natural_rhythm.morning_type == "early"
        assert analysis.recommendations.morning_meditation.recommended_time == "06:30"
        assert analysis.recommendations.evening_winddown.recommended_time == "20:30"
        assert analysis.sleep_pattern.average_wake_time == "06:00"

    def test_late_type(self, make_session, now):
        """Clearly better evenings should classify as late."""
        sessions = [make_session(hour=21, quality=5), make_session(hour=9, quality=3, days_ago=1)]
        analysis = CircadianEstimator().estimate_circadian_rhythm("user-1", sessions, now)

        assert analysis.natural_rhythm.morning_type == "late"
        assert analysis.recommendations.morning_meditation.recommended_time == "08:30"
        assert analysis.sleep_pattern.average_bedtime == "24:00"

    def test_small_margin_stays_regular(self, make_session, now):
        """A difference of 0.5 or less should not assign a type."""
        sessions = [make_session(hour=8, quality=4), make_session(hour=19, quality=4, days_ago=1)]
        analysis = CircadianEstimator().estimate_circadian_rhythm("user-1", sessions, now)

        assert analysis.natural_rhythm.morning_type == "regular"

    def test_energy_peaks_ranked_by_quality(self, make_session, now):
        """Peaks should be the three best hours, earlier hour winning ties."""
        sessions = [
            make_session(hour=15, quality=5),
            make_session(hour=9, quality=5, days_ago=1),
            make_session(hour=12, quality=3, days_ago=2),
            make_session(hour=18, quality=4, days_ago=3),
        ]
        analysis = CircadianEstimator().estimate_circadian_rhythm("user-1", sessions, now)

        assert analysis.natural_rhythm.energy_peaks == ["09:00", "15:00", "18:00"]

    def test_to_dict_is_serializable(self, now):
        data = CircadianEstimator().estimate_circadian_rhythm("user-1", [], now).to_dict()

        assert data["recommendations"]["midday_refresh"]["recommended_time"] == "12:30"
        assert data["last_analyzed"] == now.isoformat()


# ============================================================================
# Lifestyle
# ============================================================================


class TestLifestyleEstimator:
    """Test work schedule inference."""

    def test_regular_work_week(self, make_session, now):
        """Practice on four or more weekdays should mean a regular schedule."""
        # The fixed clock is a Monday; 4-6 days back are Thursday to Tuesday
        sessions = [make_session(hour=10, days_ago=d) for d in (0, 4, 5, 6)]
        pattern = LifestyleEstimator().estimate_lifestyle("user-1", sessions)

        assert pattern.work_schedule.type == "regular"
        assert pattern.work_schedule.work_days == [1, 2, 3, 4]
        assert pattern.work_schedule.work_start == "09:00"
        assert pattern.work_schedule.work_end == "17:00"

    def test_flexible_schedule(self, make_session):
        """Fewer weekdays and no office-hour sessions should be flexible."""
        sessions = [make_session(hour=7), make_session(hour=20, days_ago=1)]
        pattern = LifestyleEstimator().estimate_lifestyle("user-1", sessions)

        assert pattern.work_schedule.type == "flexible"
        assert pattern.work_schedule.work_days == [1]
        assert pattern.work_schedule.work_start == "08:00"
        assert pattern.work_schedule.work_end == "18:00"

    def test_fixed_rhythms(self):
        """Social and stress rhythms should carry the standard times."""
        pattern = LifestyleEstimator().estimate_lifestyle("user-1", [])

        assert pattern.stress_patterns.stressful_times == ["09:00", "14:00", "17:00"]
        assert pattern.social_patterns.quiet_times == ["06:00", "22:00"]
        assert pattern.to_dict()["user_id"] == "user-1"
