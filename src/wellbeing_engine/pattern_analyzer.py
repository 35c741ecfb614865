"""
Stress and mood pattern detection.

Detectors run independently over overlapping windows of recent history and
may all fire for the same data: acute and chronic stress are separate
findings, as are the primary mood trend and the sustained-low-mood sweep.
All inputs are ordered newest first.
"""

import logging
import statistics
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from .errors import InsufficientDataError
from .models import (
    MeditationSession,
    MoodDuration,
    MoodEntry,
    MoodPattern,
    MoodState,
    MoodTrend,
    StressContext,
    StressPattern,
    StressSeverity,
    day_of_week,
    ensure_timezone_aware,
)

logger = logging.getLogger(__name__)

MULTIPLE_EPISODES = "Multiple high stress episodes in 24h"
FOCUS_DIFFICULTY = "Difficulty in meditation focus"
SUSTAINED_STRESS = "Sustained elevated stress levels"
WEEKDAY_STRESS = "Weekday stress pattern"


def calculate_variance(values: Sequence[float]) -> float:
    """Population variance: mean squared deviation from the mean."""
    if not values:
        return 0.0
    return statistics.pvariance(values)


def time_of_day(moment: datetime) -> str:
    if moment.hour < 12:
        return "morning"
    if moment.hour < 17:
        return "afternoon"
    return "evening"


class PatternAnalyzer:
    """
    Rule-based detection of stress and mood patterns.

    Thresholds are on the 1-5 self-report scale.
    """

    HIGH_STRESS = 4
    EPISODE_WINDOW = timedelta(hours=24)
    MIN_EPISODES = 2
    LOW_FOCUS_QUALITY = 3
    SUSTAINED_STRESS_MEAN = 3.5

    CHRONIC_WINDOW = 7
    CHRONIC_MEAN = 3.5
    CHRONIC_HIGH_DAYS = 4

    MIN_TREND_ENTRIES = 3
    RECENT_MOOD_ENTRIES = 7
    FLUCTUATION_VARIANCE = 1.0
    TREND_DELTA = 0.5

    LOW_MOOD_WINDOW = 5
    LOW_MOOD_MEAN = 2.5

    CHRONIC_RECOMMENDATIONS = [
        "Consider speaking with a healthcare professional",
        "Increase meditation frequency to daily practice",
        "Try longer meditation sessions (20+ minutes)",
        "Explore stress management techniques beyond meditation",
    ]

    LOW_MOOD_RECOMMENDATIONS = [
        "Consider increasing meditation frequency",
        "Try loving-kindness meditation for mood boost",
        "Reach out to support network if needed",
    ]

    # ========================================================================
    # Stress
    # ========================================================================

    def analyze_stress_levels(
        self,
        sessions: List[MeditationSession],
        moods: List[MoodEntry],
        now: datetime,
    ) -> Optional[StressPattern]:
        """
        Detect an acute stress pattern from the latest signals.

        Returns:
            A StressPattern when the stress level reaches 4 or any trigger
            fires, else None.
        """
        if not sessions and not moods:
            return None

        now = ensure_timezone_aware(now)
        latest_session = sessions[0] if sessions else None
        latest_mood = moods[0] if moods else None

        stress_level = 0.0
        if latest_session is not None and latest_session.stress_level is not None:
            stress_level = max(stress_level, latest_session.stress_level)
        if latest_mood is not None:
            stress_level = max(stress_level, latest_mood.stress)

        triggers: List[str] = []

        recent_high = [
            m for m in moods
            if m.stress >= self.HIGH_STRESS
            and now - ensure_timezone_aware(m.timestamp) < self.EPISODE_WINDOW
        ]
        if len(recent_high) >= self.MIN_EPISODES:
            triggers.append(MULTIPLE_EPISODES)

        if latest_session is not None and latest_session.quality < self.LOW_FOCUS_QUALITY:
            triggers.append(FOCUS_DIFFICULTY)

        if len(moods) >= 3:
            avg_stress = statistics.mean(m.stress for m in moods[:3])
            if avg_stress >= self.SUSTAINED_STRESS_MEAN:
                triggers.append(SUSTAINED_STRESS)

        if stress_level < self.HIGH_STRESS and not triggers:
            return None

        user_id = latest_session.user_id if latest_session else latest_mood.user_id
        severity = self.determine_severity(stress_level, len(triggers))

        logger.debug(
            f"[PATTERNS] Acute stress for {user_id}: level={stress_level}, "
            f"triggers={len(triggers)}, severity={severity.value}"
        )

        return StressPattern(
            user_id=user_id,
            detected_at=now,
            stress_level=stress_level,
            triggers=triggers,
            context=StressContext(
                time_of_day=time_of_day(now),
                day_of_week=day_of_week(now),
                recent_activities=["meditation_session"] if sessions else [],
                environmental_factors=[],
            ),
            recommendations=self._stress_recommendations(stress_level, triggers),
            severity=severity,
        )

    @staticmethod
    def determine_severity(stress_level: float, trigger_count: int) -> StressSeverity:
        if stress_level >= 4.5 or trigger_count >= 3:
            return StressSeverity.SEVERE
        if stress_level >= 4 or trigger_count >= 2:
            return StressSeverity.HIGH
        if stress_level >= 3 or trigger_count >= 1:
            return StressSeverity.MODERATE
        return StressSeverity.LOW

    def _stress_recommendations(self, stress_level: float, triggers: List[str]) -> List[str]:
        recommendations = []
        if stress_level >= self.HIGH_STRESS:
            recommendations.append("Immediate stress relief: 4-7-8 breathing technique")
            recommendations.append("Body scan meditation to release tension")
        if MULTIPLE_EPISODES in triggers:
            recommendations.append("Consider shorter, more frequent meditation breaks")
            recommendations.append("Mindful transitions between activities")
        recommendations.append("Daily stress-prevention meditation")
        recommendations.append("Identify and address stress triggers when possible")
        return recommendations

    def detect_chronic_stress(
        self, moods: List[MoodEntry], now: datetime
    ) -> Optional[StressPattern]:
        """
        Detect stress persisting across the last seven check-ins.

        Flags when mean stress is at least 3.5 or when four or more of the
        seven entries report stress of 4 or above.
        """
        if len(moods) < self.CHRONIC_WINDOW:
            return None

        window = moods[: self.CHRONIC_WINDOW]
        avg_stress = statistics.mean(m.stress for m in window)
        high_days = sum(1 for m in window if m.stress >= self.HIGH_STRESS)

        if avg_stress < self.CHRONIC_MEAN and high_days < self.CHRONIC_HIGH_DAYS:
            return None

        logger.debug(
            f"[PATTERNS] Chronic stress for {window[0].user_id}: "
            f"mean={avg_stress:.2f}, high_days={high_days}"
        )

        return StressPattern(
            user_id=window[0].user_id,
            detected_at=ensure_timezone_aware(now),
            stress_level=avg_stress,
            triggers=[
                "Chronic stress pattern detected",
                f"{high_days} high stress days in past week",
            ],
            context=StressContext(
                time_of_day="multiple",
                day_of_week=-1,
                recent_activities=[],
                environmental_factors=["chronic_stress_pattern"],
            ),
            recommendations=list(self.CHRONIC_RECOMMENDATIONS),
            severity=StressSeverity.SEVERE,
            kind="chronic",
        )

    # ========================================================================
    # Mood
    # ========================================================================

    def analyze_mood_trends(self, moods: List[MoodEntry], now: datetime) -> MoodPattern:
        """
        Classify the recent mood trend.

        Raises:
            InsufficientDataError: With fewer than three entries
        """
        if len(moods) < self.MIN_TREND_ENTRIES:
            raise InsufficientDataError("mood trend analysis", self.MIN_TREND_ENTRIES, len(moods))

        latest = moods[0]
        mood_state = MoodState.from_entry(latest)
        trend = self.calculate_mood_trend(moods)
        recent = moods[: self.RECENT_MOOD_ENTRIES]

        logger.debug(f"[PATTERNS] Mood trend for {latest.user_id}: {trend.value}")

        return MoodPattern(
            user_id=latest.user_id,
            detected_at=ensure_timezone_aware(now),
            mood_state=mood_state,
            trend=trend,
            duration=self._duration(len(recent)),
            triggers=self._mood_triggers(recent),
            recommendations=self._mood_recommendations(mood_state, trend),
        )

    def calculate_mood_trend(self, moods: List[MoodEntry]) -> MoodTrend:
        """
        Classify the trend of ``overall`` scores.

        Volatility is checked first so that a swinging series is reported
        as fluctuating whatever the recent/older delta is.
        """
        if len(moods) < self.MIN_TREND_ENTRIES:
            return MoodTrend.STABLE

        variance = calculate_variance([m.overall for m in moods[:5]])
        if variance > self.FLUCTUATION_VARIANCE:
            return MoodTrend.FLUCTUATING

        older = moods[3:6]
        if older:
            recent_mean = statistics.mean(m.overall for m in moods[:3])
            older_mean = statistics.mean(m.overall for m in older)
            delta = recent_mean - older_mean
            if delta > self.TREND_DELTA:
                return MoodTrend.IMPROVING
            if delta < -self.TREND_DELTA:
                return MoodTrend.DECLINING

        return MoodTrend.STABLE

    @staticmethod
    def _duration(entry_count: int) -> MoodDuration:
        if entry_count <= 3:
            return MoodDuration.SHORT_TERM
        if entry_count <= 10:
            return MoodDuration.MEDIUM_TERM
        return MoodDuration.LONG_TERM

    @staticmethod
    def _mood_triggers(moods: List[MoodEntry]) -> List[str]:
        triggers = []
        weekend = [m.overall for m in moods if m.day_of_week in (0, 6)]
        weekday = [m.overall for m in moods if 1 <= m.day_of_week <= 5]
        if weekend and weekday:
            if statistics.mean(weekday) < statistics.mean(weekend) - 0.5:
                triggers.append(WEEKDAY_STRESS)
        return triggers

    @staticmethod
    def _mood_recommendations(mood_state: MoodState, trend: MoodTrend) -> List[str]:
        recommendations = []
        if mood_state.overall <= 2:
            recommendations.append("Loving-kindness meditation for mood boost")
            recommendations.append("Gratitude practice - 3 things you're grateful for")
        if mood_state.anxiety >= 4:
            recommendations.append("Grounding techniques for anxiety relief")
            recommendations.append("Present moment awareness meditation")
        if trend == MoodTrend.DECLINING:
            recommendations.append("Increase meditation frequency")
            recommendations.append("Connect with support network")
        return recommendations

    def detect_concerning_mood_patterns(
        self, moods: List[MoodEntry], now: datetime
    ) -> List[MoodPattern]:
        """Sweep for sustained low mood across the last five entries."""
        patterns: List[MoodPattern] = []
        if len(moods) < self.LOW_MOOD_WINDOW:
            return patterns

        window = moods[: self.LOW_MOOD_WINDOW]
        avg_overall = statistics.mean(m.overall for m in window)

        if avg_overall <= self.LOW_MOOD_MEAN:
            logger.debug(
                f"[PATTERNS] Sustained low mood for {window[0].user_id}: "
                f"mean={avg_overall:.2f}"
            )
            patterns.append(
                MoodPattern(
                    user_id=window[0].user_id,
                    detected_at=ensure_timezone_aware(now),
                    mood_state=MoodState.average(window),
                    trend=MoodTrend.DECLINING,
                    duration=MoodDuration.MEDIUM_TERM,
                    triggers=["Sustained low mood pattern"],
                    recommendations=list(self.LOW_MOOD_RECOMMENDATIONS),
                    kind="sustained_low",
                )
            )

        return patterns
