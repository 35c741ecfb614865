"""
Emotional state inference, periodic wellbeing insights and context-aware
practice recommendations.
"""

import logging
import statistics
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional

from .models import (
    PRIORITY_ORDER,
    ContextualFactors,
    Level,
    MeditationSession,
    MoodEntry,
    ScheduleRecommendation,
    SmartSchedule,
    ensure_timezone_aware,
    hour_slot,
    to_jsonable,
)
from .pattern_analyzer import PatternAnalyzer, calculate_variance

logger = logging.getLogger(__name__)


class InsightPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


PERIOD_DAYS = {InsightPeriod.DAILY: 1, InsightPeriod.WEEKLY: 7, InsightPeriod.MONTHLY: 30}


@dataclass
class EmotionalState:
    current_state: str  # high_stress, anxious, low_mood, low_energy, balanced, neutral, unknown
    confidence: float
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return to_jsonable(self)


@dataclass
class InsightSummary:
    stress_patterns: List[str]
    mood_trends: List[str]
    effective_techniques: List[str]
    optimal_times: List[str]
    risk_factors: List[str]


@dataclass
class InsightRecommendations:
    immediate: List[str]
    behavioral: List[str]
    lifestyle: List[str]


@dataclass
class WellbeingInsight:
    """Summary of a user's practice and mood over a period."""

    user_id: str
    period: InsightPeriod
    insights: InsightSummary
    recommendations: InsightRecommendations
    generated_at: datetime = field(default_factory=ensure_timezone_aware)

    def to_dict(self) -> dict:
        return to_jsonable(self)


# Rules are checked in order; the first match decides the state
EMOTIONAL_STATE_RULES = [
    ("high_stress", lambda m: m.stress >= 4, [
        "Try breathing meditation to calm the nervous system",
        "Consider a body scan to release physical tension",
    ]),
    ("anxious", lambda m: m.anxiety >= 4, [
        "Grounding techniques can help with anxiety",
        "Mindfulness meditation for present moment awareness",
    ]),
    ("low_mood", lambda m: m.overall <= 2, [
        "Loving-kindness meditation for a mood boost",
        "Gratitude practice can shift perspective",
    ]),
    ("low_energy", lambda m: m.energy <= 2, [
        "Energizing breath work to restore vitality",
        "Walking meditation for a gentle energy boost",
    ]),
    ("balanced", lambda m: m.overall >= 4 and m.stress <= 2, [
        "Maintain balance with daily mindfulness practice",
        "A good time to explore deeper meditation techniques",
    ]),
]

NEUTRAL_RECOMMENDATIONS = ["Good foundation to build a stronger meditation habit"]
UNKNOWN_RECOMMENDATIONS = ["Log a mood check-in to get better insight"]


def detect_emotional_state(
    latest_mood: Optional[MoodEntry], recent_sessions: List[MeditationSession]
) -> EmotionalState:
    """
    Classify the user's current emotional state from the latest check-in.

    Confidence starts at 0.7, rises by 0.2 when recent sessions average a
    quality of 4 or more, drops by 0.1 when they average 2 or less, and is
    clamped to [0.3, 0.9].
    """
    if latest_mood is None:
        return EmotionalState("unknown", 0.0, list(UNKNOWN_RECOMMENDATIONS))

    state, recommendations = "neutral", NEUTRAL_RECOMMENDATIONS
    for name, matches, advice in EMOTIONAL_STATE_RULES:
        if matches(latest_mood):
            state, recommendations = name, advice
            break

    confidence = 0.7
    if recent_sessions:
        avg_quality = statistics.mean(s.quality for s in recent_sessions)
        if avg_quality >= 4:
            confidence += 0.2
        if avg_quality <= 2:
            confidence -= 0.1

    return EmotionalState(
        current_state=state,
        confidence=round(min(0.9, max(0.3, confidence)), 2),
        recommendations=list(recommendations),
    )


class InsightGenerator:
    """Builds periodic wellbeing insights from practice and mood history."""

    MIN_CONSISTENT_SESSIONS = 7
    VOLATILITY_VARIANCE = 1.5

    def __init__(self, analyzer: Optional[PatternAnalyzer] = None):
        self.analyzer = analyzer or PatternAnalyzer()

    def generate_wellbeing_insights(
        self,
        user_id: str,
        period: InsightPeriod,
        sessions: List[MeditationSession],
        moods: List[MoodEntry],
        now: datetime,
    ) -> WellbeingInsight:
        now = ensure_timezone_aware(now)
        cutoff = now - timedelta(days=PERIOD_DAYS[period])

        period_sessions = [s for s in sessions if ensure_timezone_aware(s.timestamp) >= cutoff]
        period_moods = [m for m in moods if ensure_timezone_aware(m.timestamp) >= cutoff]

        summary = InsightSummary(
            stress_patterns=self._stress_patterns(period_moods),
            mood_trends=self._mood_trends(period_moods),
            effective_techniques=self._effective_techniques(period_sessions),
            optimal_times=self._optimal_times(period_sessions),
            risk_factors=self._risk_factors(period_sessions, period_moods),
        )

        logger.debug(
            f"[PATTERNS] {period.value} insights for {user_id}: "
            f"{len(period_sessions)} sessions, {len(period_moods)} moods"
        )

        return WellbeingInsight(
            user_id=user_id,
            period=period,
            insights=summary,
            recommendations=self._recommendations(summary),
            generated_at=now,
        )

    @staticmethod
    def _stress_patterns(moods: List[MoodEntry]) -> List[str]:
        patterns = []
        if not moods:
            return patterns
        if statistics.mean(m.stress for m in moods) >= 3.5:
            patterns.append("Elevated average stress levels")
        high_days = sum(1 for m in moods if m.stress >= 4)
        if high_days >= 3:
            patterns.append(f"{high_days} high stress days detected")
        return patterns

    def _mood_trends(self, moods: List[MoodEntry]) -> List[str]:
        trends = []
        if len(moods) < 3:
            return trends
        trends.append(f"Overall mood trend: {self.analyzer.calculate_mood_trend(moods).value}")
        avg_overall = statistics.mean(m.overall for m in moods)
        if avg_overall >= 4:
            trends.append("Generally positive mood levels")
        if avg_overall <= 2.5:
            trends.append("Below average mood levels")
        return trends

    @staticmethod
    def _effective_techniques(sessions: List[MeditationSession]) -> List[str]:
        qualities: Dict[str, List[int]] = {}
        for session in sessions:
            for technique in session.techniques:
                qualities.setdefault(technique, []).append(session.quality)
        ranked = sorted(qualities.items(), key=lambda item: (-statistics.mean(item[1]), item[0]))
        return [technique for technique, _ in ranked[:3]]

    @staticmethod
    def _optimal_times(sessions: List[MeditationSession]) -> List[str]:
        improvements: Dict[int, List[int]] = {}
        for session in sessions:
            if session.mood_change is not None:
                improvements.setdefault(session.hour, []).append(session.mood_change)
        ranked = sorted(improvements.items(), key=lambda item: (-statistics.mean(item[1]), item[0]))
        return [hour_slot(hour) for hour, _ in ranked[:2]]

    def _risk_factors(
        self, sessions: List[MeditationSession], moods: List[MoodEntry]
    ) -> List[str]:
        risks = []
        if len(sessions) < self.MIN_CONSISTENT_SESSIONS:
            risks.append("Inconsistent meditation practice")
        if sessions and statistics.mean(s.quality for s in sessions) < 3:
            risks.append("Below average session quality")
        if len(moods) >= 5:
            if calculate_variance([m.overall for m in moods[:5]]) > self.VOLATILITY_VARIANCE:
                risks.append("High mood volatility")
        return risks

    @staticmethod
    def _recommendations(summary: InsightSummary) -> InsightRecommendations:
        immediate: List[str] = []
        behavioral: List[str] = []
        lifestyle: List[str] = []

        if any("high" in p for p in summary.stress_patterns):
            immediate.append("Practice breathing meditation 2x today")
            immediate.append("Take mindful breaks every 2 hours")
        if any("declining" in t for t in summary.mood_trends):
            immediate.append("Try loving-kindness meditation")
            immediate.append("Connect with support network")

        if summary.effective_techniques:
            behavioral.append(
                f"Focus on {summary.effective_techniques[0]} - it works best for you"
            )
        if summary.optimal_times:
            behavioral.append(
                f"Schedule meditation at {summary.optimal_times[0]} for best results"
            )
        behavioral.append("Build consistent daily practice, even if just 5 minutes")

        if any("inconsistent" in r.lower() for r in summary.risk_factors):
            lifestyle.append("Create a dedicated meditation space at home")
            lifestyle.append("Set a daily reminder for meditation time")
        lifestyle.append("Consider a meditation retreat or workshop to deepen practice")

        return InsightRecommendations(immediate=immediate, behavioral=behavioral, lifestyle=lifestyle)


# ============================================================================
# Context-aware recommendations
# ============================================================================


def next_available_time(schedule: Optional[SmartSchedule], current_hour: int) -> str:
    """First scheduled hour after ``current_hour``, else the earliest slot, else 07:00."""
    hours = sorted(slot.hour for slot in schedule.time_slots) if schedule else []
    later = [h for h in hours if h > current_hour]
    if later:
        return hour_slot(later[0])
    if hours:
        return hour_slot(hours[0])
    return "07:00"


def energy_boost_time(current_hour: int) -> str:
    if 14 <= current_hour <= 16:
        return f"{current_hour:02d}:30"
    return hour_slot((current_hour + 1) % 24)


def dynamic_recommendations(
    emotional_state: EmotionalState,
    schedule: Optional[SmartSchedule],
    recent_moods: List[MoodEntry],
    now: datetime,
) -> List[ScheduleRecommendation]:
    """
    Combine the current emotional state with recent mood rhythms.

    Returns:
        Recommendations ordered by priority, high first
    """
    current_hour = ensure_timezone_aware(now).hour
    recommendations: List[ScheduleRecommendation] = []

    if emotional_state.current_state == "high_stress":
        recommendations.append(
            ScheduleRecommendation(
                recommended_time=next_available_time(schedule, current_hour),
                duration=10,
                technique="breathing",
                reason="Stress relief needed - a short breathing session can help right away",
                priority=Level.HIGH,
                contextual_factors=ContextualFactors(
                    stress_level_prediction="High stress detected, urgent intervention needed"
                ),
            )
        )

    if emotional_state.current_state == "low_energy":
        recommendations.append(
            ScheduleRecommendation(
                recommended_time=energy_boost_time(current_hour),
                duration=8,
                technique="energizing_breath",
                reason="Energy boost needed - energizing breathwork can restore vitality",
                priority=Level.MEDIUM,
                contextual_factors=ContextualFactors(
                    energy_level_prediction="Low energy detected, energizing practice recommended"
                ),
            )
        )

    morning = [m.overall for m in recent_moods if m.hour < 12]
    if morning and statistics.mean(morning) < 3:
        recommendations.append(
            ScheduleRecommendation(
                recommended_time="07:30",
                duration=12,
                technique="gratitude",
                reason="Morning mood boost - a gratitude practice can start your day positively",
                priority=Level.MEDIUM,
                contextual_factors=ContextualFactors(
                    stress_level_prediction="Morning meditation can prevent stress buildup"
                ),
            )
        )

    evening = [m.stress for m in recent_moods if m.hour >= 17]
    if evening and statistics.mean(evening) >= 3.5:
        recommendations.append(
            ScheduleRecommendation(
                recommended_time="20:30",
                duration=18,
                technique="body_scan",
                reason="Evening stress relief - a body scan can release the day's tension",
                priority=Level.HIGH,
                contextual_factors=ContextualFactors(
                    stress_level_prediction="High evening stress pattern detected"
                ),
            )
        )

    return sorted(recommendations, key=lambda r: PRIORITY_ORDER[r.priority], reverse=True)
