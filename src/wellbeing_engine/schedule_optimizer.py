"""
Optimal time slot ranking.

Combines hourly effectiveness, the circadian estimate and the lifestyle
estimate into a ranked list of candidate practice times.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from .circadian import CircadianAnalysis
from .lifestyle import LifestylePattern
from .models import (
    EnvironmentalFactors,
    Level,
    OptimalTimeSlot,
    PersonalFactors,
    SlotEffectiveness,
    ensure_timezone_aware,
    hour_slot,
    slot_hour,
)
from .time_effectiveness import TimeEffectivenessData

logger = logging.getLogger(__name__)

MAX_CONFIDENCE = 0.9


def slot_confidence(sessions: int) -> float:
    """Linear ramp over the first ten sessions, capped at 0.9."""
    return min(MAX_CONFIDENCE, sessions / 10)


def suggest_technique_for_time(time_slot: str) -> str:
    hour = slot_hour(time_slot)
    if 6 <= hour <= 9:
        return "mindfulness"
    if 10 <= hour <= 14:
        return "breathing"
    if 15 <= hour <= 18:
        return "stress_relief"
    if 19 <= hour <= 22:
        return "body_scan"
    return "mindfulness"


def environmental_factors(hour: int) -> EnvironmentalFactors:
    return EnvironmentalFactors(
        is_quiet_time=hour < 8 or hour > 20,
        natural_light=6 <= hour <= 18,
        low_activity=hour < 9 or 12 <= hour <= 14 or hour > 19,
    )


def assess_personal_factors(hour: int, lifestyle: LifestylePattern) -> PersonalFactors:
    """Energy by time of day, stress and availability from the lifestyle estimate."""
    slot = hour_slot(hour)

    energy = Level.MEDIUM
    if 7 <= hour <= 10:
        energy = Level.HIGH
    elif 14 <= hour <= 16:
        energy = Level.LOW

    stress = Level.MEDIUM
    if slot in lifestyle.stress_patterns.stressful_times:
        stress = Level.HIGH
    elif slot in lifestyle.stress_patterns.relaxed_times:
        stress = Level.LOW

    availability = Level.MEDIUM
    if 9 <= hour <= 17 and lifestyle.work_schedule.type == "regular":
        availability = Level.LOW
    elif slot in lifestyle.social_patterns.busy_times:
        availability = Level.LOW
    elif slot in lifestyle.social_patterns.quiet_times:
        availability = Level.HIGH

    return PersonalFactors(energy_level=energy, stress_level=stress, availability=availability)


class ScheduleOptimizer:
    """
    Ranks candidate practice times.

    History-backed slots come from the best hourly buckets; the circadian
    morning and evening anchors are added at a fixed confidence when they
    are not already present.
    """

    TOP_BUCKETS = 5
    MAX_SLOTS = 6
    MIN_SESSIONS = 5
    ANCHOR_CONFIDENCE = 0.7
    DEFAULT_CONFIDENCE = 0.5
    DEFAULT_TIMES = ["07:00", "12:00", "19:00"]
    DEFAULT_ENERGY = {"07:00": Level.HIGH, "12:00": Level.MEDIUM, "19:00": Level.LOW}

    def calculate_optimal_time_slots(
        self,
        time_analysis: Dict[str, TimeEffectivenessData],
        circadian: CircadianAnalysis,
        lifestyle: LifestylePattern,
        now: Optional[datetime] = None,
    ) -> List[OptimalTimeSlot]:
        created_at = ensure_timezone_aware(now)
        user_id = circadian.user_id

        # Best average quality first, earlier slot wins a tie
        ranked = sorted(
            time_analysis.items(), key=lambda item: (-item[1].avg_quality, item[0])
        )[: self.TOP_BUCKETS]

        slots: List[OptimalTimeSlot] = []
        for time_slot, data in ranked:
            hour = slot_hour(time_slot)
            slots.append(
                OptimalTimeSlot(
                    user_id=user_id,
                    time_slot=time_slot,
                    confidence=slot_confidence(data.sessions),
                    effectiveness=SlotEffectiveness(
                        mood_improvement=data.mood_improvement,
                        stress_reduction=0.5,
                        session_quality=data.avg_quality,
                        completion=data.completion_rate,
                    ),
                    based_on_sessions=data.sessions,
                    environmental=environmental_factors(hour),
                    personal_factors=assess_personal_factors(hour, lifestyle),
                    created_at=created_at,
                )
            )

        anchors = [
            circadian.recommendations.morning_meditation,
            circadian.recommendations.evening_winddown,
        ]
        for anchor in anchors:
            time_slot = anchor.recommended_time
            if any(slot.time_slot == time_slot for slot in slots):
                continue
            slots.append(
                OptimalTimeSlot(
                    user_id=user_id,
                    time_slot=time_slot,
                    confidence=self.ANCHOR_CONFIDENCE,
                    effectiveness=SlotEffectiveness(
                        mood_improvement=0.5,
                        stress_reduction=0.6,
                        session_quality=4,
                        completion=0.8,
                    ),
                    based_on_sessions=0,
                    environmental=EnvironmentalFactors(
                        is_quiet_time=True,
                        natural_light=not (time_slot < "08:00" or time_slot > "20:00"),
                        low_activity=True,
                    ),
                    personal_factors=PersonalFactors(
                        energy_level=Level.HIGH if time_slot < "12:00" else Level.MEDIUM,
                        stress_level=Level.LOW,
                        availability=Level.HIGH,
                    ),
                    created_at=created_at,
                )
            )

        # sorted() is stable, so equal confidences keep insertion order
        slots = sorted(slots, key=lambda s: s.confidence, reverse=True)[: self.MAX_SLOTS]

        logger.debug(
            f"[SCHEDULE] Ranked {len(slots)} slots for {user_id}: "
            f"{[(s.time_slot, round(s.confidence, 2)) for s in slots]}"
        )
        return slots

    def default_time_slots(
        self, user_id: str, now: Optional[datetime] = None
    ) -> List[OptimalTimeSlot]:
        """Fixed low-data fallback: 07:00, 12:00 and 19:00 at confidence 0.5."""
        created_at = ensure_timezone_aware(now)
        return [
            OptimalTimeSlot(
                user_id=user_id,
                time_slot=time_slot,
                confidence=self.DEFAULT_CONFIDENCE,
                effectiveness=SlotEffectiveness(
                    mood_improvement=0.5,
                    stress_reduction=0.5,
                    session_quality=3.5,
                    completion=0.7,
                ),
                based_on_sessions=0,
                environmental=EnvironmentalFactors(
                    is_quiet_time=time_slot in ("07:00", "19:00"),
                    natural_light=time_slot != "19:00",
                    low_activity=True,
                ),
                personal_factors=PersonalFactors(
                    energy_level=self.DEFAULT_ENERGY[time_slot],
                    stress_level=Level.MEDIUM,
                    availability=Level.MEDIUM,
                ),
                created_at=created_at,
            )
            for time_slot in self.DEFAULT_TIMES
        ]
