"""
Smart schedule lifecycle: creation, performance review, adaptation and
effectiveness tracking.

A schedule's time slots are always replaced as a whole; nothing here
merges old and new slots.
"""

import logging
import statistics
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .collaborators import ReminderScheduler, WellbeingStore
from .models import (
    Level,
    MeditationSession,
    OptimalTimeSlot,
    PersonalPreferences,
    ReminderRequest,
    ScheduleEffectiveness,
    SchedulePreferences,
    ScheduleRecommendation,
    SmartSchedule,
    ensure_timezone_aware,
    slot_hour,
    to_jsonable,
)
from .schedule_optimizer import suggest_technique_for_time

logger = logging.getLogger(__name__)

LOW_ADHERENCE = "Low adherence to scheduled times"
LOW_QUALITY = "Low session quality at scheduled times"


@dataclass
class ScheduleChange:
    type: str  # time, duration, technique, frequency
    current: str
    suggested: str
    reason: str
    confidence: float


@dataclass
class SchedulePerformance:
    """How closely recent practice followed a schedule."""

    adherence_rate: float  # 0-100
    avg_quality: float  # over adherent sessions only
    sessions_analyzed: int
    needs_adjustment: bool
    adjustment_reasons: List[str] = field(default_factory=list)
    suggested_changes: List[ScheduleChange] = field(default_factory=list)

    def to_dict(self) -> dict:
        return to_jsonable(self)


def is_adherent(session: MeditationSession, slot_times: List[str]) -> bool:
    """True when the session hour is within one hour of any slot hour."""
    return any(abs(slot_hour(t) - session.hour) <= 1 for t in slot_times)


class ScheduleManager:
    """
    Creates and maintains smart schedules.

    Configuration:
        MIN_ADHERENCE: Adherence percentage below which a schedule is adapted
        MIN_QUALITY: Adherent-session mean quality below which it is adapted
    """

    MIN_ADHERENCE = 60
    MIN_QUALITY = 3.5
    RECENT_SESSIONS = 30
    INITIAL_RECOMMENDATIONS = 3
    HIGH_PRIORITY_CONFIDENCE = 0.7
    STRESS_REDUCED_BELOW = 3

    def __init__(
        self,
        store: WellbeingStore,
        reminders: Optional[ReminderScheduler] = None,
    ):
        self.store = store
        self.reminders = reminders

    # ========================================================================
    # Creation
    # ========================================================================

    def build_schedule(
        self,
        user_id: str,
        preferences: SchedulePreferences,
        optimal_slots: List[OptimalTimeSlot],
        now: Optional[datetime] = None,
    ) -> SmartSchedule:
        """Assemble an unsaved schedule from ranked slots and preferences."""
        now = ensure_timezone_aware(now)
        max_sessions = preferences.max_sessions_per_day or 3

        return SmartSchedule(
            user_id=user_id,
            schedule_type=preferences.schedule_type,
            time_slots=list(optimal_slots[:max_sessions]),
            personal_preferences=PersonalPreferences(
                preferred_duration=preferences.daily_duration or 15,
                preferred_techniques=list(
                    preferences.preferred_techniques or ["mindfulness", "breathing"]
                ),
                minimum_gap=4,
                max_sessions_per_day=max_sessions,
            ),
            effectiveness=ScheduleEffectiveness(),
            next_recommendations=self.initial_recommendations(optimal_slots),
            created_at=now,
            updated_at=now,
        )

    def create_smart_schedule(
        self,
        user_id: str,
        preferences: SchedulePreferences,
        optimal_slots: List[OptimalTimeSlot],
        now: Optional[datetime] = None,
    ) -> SmartSchedule:
        """
        Build, persist and register reminders for a new schedule.

        Returns:
            The saved schedule, carrying the id assigned by the store
        """
        schedule = self.build_schedule(user_id, preferences, optimal_slots, now)
        schedule.id = self.store.save_schedule(schedule)

        logger.info(
            f"[SCHEDULE] Created {schedule.schedule_type.value} schedule {schedule.id} "
            f"for {user_id}: slots={schedule.slot_times}"
        )

        self._schedule_reminders(schedule)
        return schedule

    def initial_recommendations(
        self, optimal_slots: List[OptimalTimeSlot]
    ) -> List[ScheduleRecommendation]:
        recommendations = []
        for slot in optimal_slots[: self.INITIAL_RECOMMENDATIONS]:
            source = "your session history" if slot.based_on_sessions > 0 else "circadian rhythm analysis"
            recommendations.append(
                ScheduleRecommendation(
                    recommended_time=slot.time_slot,
                    duration=15,
                    technique=suggest_technique_for_time(slot.time_slot),
                    reason=f"Optimal time based on {source}",
                    priority=Level.HIGH if slot.confidence > self.HIGH_PRIORITY_CONFIDENCE else Level.MEDIUM,
                )
            )
        return recommendations

    def _schedule_reminders(self, schedule: SmartSchedule) -> None:
        if self.reminders is None:
            return

        technique = schedule.personal_preferences.preferred_techniques[0]
        for slot in schedule.time_slots:
            created = self.reminders.create_reminder(
                schedule.user_id,
                ReminderRequest(
                    optimal_time=slot.time_slot,
                    confidence=slot.confidence,
                    preferred_technique=technique,
                ),
            )
            if not created:
                logger.warning(
                    f"[SCHEDULE] Reminder for {schedule.user_id} at {slot.time_slot} was not created"
                )

    # ========================================================================
    # Performance and adaptation
    # ========================================================================

    def analyze_schedule_performance(
        self, schedule: SmartSchedule, sessions: List[MeditationSession]
    ) -> SchedulePerformance:
        slot_times = schedule.slot_times
        adherent = [s for s in sessions if is_adherent(s, slot_times)]

        adherence_rate = len(adherent) / len(sessions) * 100 if sessions else 0.0
        avg_quality = statistics.mean(s.quality for s in adherent) if adherent else 0.0

        reasons: List[str] = []
        changes: List[ScheduleChange] = []

        if adherence_rate < self.MIN_ADHERENCE:
            reasons.append(LOW_ADHERENCE)
            changes.append(
                ScheduleChange(
                    type="time",
                    current="Current scheduled times",
                    suggested="More convenient time slots",
                    reason=LOW_ADHERENCE,
                    confidence=0.8,
                )
            )

        if avg_quality < self.MIN_QUALITY:
            reasons.append(LOW_QUALITY)
            changes.append(
                ScheduleChange(
                    type="time",
                    current="Current scheduled times",
                    suggested="Times when user is more focused",
                    reason=LOW_QUALITY,
                    confidence=0.7,
                )
            )

        return SchedulePerformance(
            adherence_rate=adherence_rate,
            avg_quality=avg_quality,
            sessions_analyzed=len(sessions),
            needs_adjustment=bool(reasons),
            adjustment_reasons=reasons,
            suggested_changes=changes,
        )

    def adjust_schedule(
        self,
        schedule: SmartSchedule,
        optimal_slots: List[OptimalTimeSlot],
        now: Optional[datetime] = None,
    ) -> SmartSchedule:
        """Replace every time slot of ``schedule`` with freshly ranked ones."""
        max_sessions = schedule.personal_preferences.max_sessions_per_day
        old_slots = schedule.slot_times

        schedule.time_slots = list(optimal_slots[:max_sessions])
        schedule.updated_at = ensure_timezone_aware(now)
        self.store.replace_schedule(schedule)

        logger.info(
            f"[SCHEDULE] Replaced slots of schedule {schedule.id}: "
            f"{old_slots} -> {schedule.slot_times}"
        )
        return schedule

    # ========================================================================
    # Effectiveness
    # ========================================================================

    def calculate_schedule_effectiveness(
        self, slot_times: List[str], sessions: List[MeditationSession]
    ) -> ScheduleEffectiveness:
        adherent = [s for s in sessions if is_adherent(s, slot_times)]
        if not adherent:
            return ScheduleEffectiveness()

        n = len(adherent)
        improved = sum(1 for s in adherent if (s.mood_change or 0) > 0)
        calmer = sum(
            1 for s in adherent
            if s.stress_level is not None and s.stress_level < self.STRESS_REDUCED_BELOW
        )

        return ScheduleEffectiveness(
            adherence_rate=n / len(sessions) * 100,
            avg_session_quality=statistics.mean(s.quality for s in adherent),
            mood_improvement_rate=improved / n * 100,
            stress_reduction_rate=calmer / n * 100,
        )

    def update_schedule_effectiveness(
        self,
        schedule: SmartSchedule,
        sessions: List[MeditationSession],
        now: Optional[datetime] = None,
    ) -> SmartSchedule:
        schedule.effectiveness = self.calculate_schedule_effectiveness(
            schedule.slot_times, sessions
        )
        schedule.updated_at = ensure_timezone_aware(now)
        self.store.replace_schedule(schedule)

        logger.info(
            f"[SCHEDULE] Effectiveness of {schedule.id}: "
            f"adherence={schedule.effectiveness.adherence_rate:.0f}%, "
            f"quality={schedule.effectiveness.avg_session_quality:.2f}"
        )
        return schedule
