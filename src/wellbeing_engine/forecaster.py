"""
Forward-looking schedule prediction from weekday and hour-of-day history.
"""

import logging
import statistics
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from .models import (
    ContextualFactors,
    Level,
    MeditationSession,
    MoodEntry,
    ScheduleRecommendation,
    SmartSchedule,
    day_name,
    day_of_week,
    ensure_timezone_aware,
    hour_slot,
    to_jsonable,
)
from .schedule_optimizer import suggest_technique_for_time

logger = logging.getLogger(__name__)


@dataclass
class ForecastResult:
    """Predicted recommendations for the coming days."""

    predicted_schedule: List[ScheduleRecommendation]
    confidence: float
    factors: List[str]
    generated_at: datetime = field(default_factory=ensure_timezone_aware)

    def to_dict(self) -> dict:
        return {
            "predicted_schedule": [r.to_dict() for r in self.predicted_schedule],
            "confidence": self.confidence,
            "factors": list(self.factors),
            "generated_at": to_jsonable(self.generated_at),
        }


class PredictiveForecaster:
    """
    Predicts practice times per future day.

    Each weekday with history gets its own two best hours; weekdays without
    history fall back to the first slot of the active schedule.
    """

    BASE_CONFIDENCE = 0.3
    SESSION_THRESHOLDS = (10, 25, 50)
    THRESHOLD_STEP = 0.2
    COVERAGE_WEIGHT = 0.1
    MAX_CONFIDENCE = 0.9
    HOURS_PER_DAY = 2
    HIGH_PRIORITY_QUALITY = 4
    STRESSFUL_DAY_MEAN = 3.5

    def predict_optimal_schedule(
        self,
        sessions: List[MeditationSession],
        moods: List[MoodEntry],
        schedule: Optional[SmartSchedule],
        start: datetime,
        days_ahead: int = 7,
    ) -> ForecastResult:
        start = ensure_timezone_aware(start)

        # weekday -> hour -> qualities
        table: Dict[int, Dict[int, List[int]]] = {}
        for session in sessions:
            table.setdefault(session.day_of_week, {}).setdefault(session.hour, []).append(
                session.quality
            )

        stress_by_day: Dict[int, List[int]] = {}
        for mood in moods:
            stress_by_day.setdefault(mood.day_of_week, []).append(mood.stress)

        predicted: List[ScheduleRecommendation] = []
        for offset in range(days_ahead):
            day = day_of_week(start + timedelta(days=offset))
            predicted.extend(
                self._predict_day(day, table.get(day), schedule, stress_by_day.get(day))
            )

        confidence = self.calculate_confidence(len(sessions), len(table))
        factors = [
            "Weekday preference patterns",
            "Time preference patterns",
            f"Weekday coverage: {len(table)}/7 days",
            f"Based on {len(sessions)} sessions",
        ]
        if any(
            statistics.mean(values) >= self.STRESSFUL_DAY_MEAN
            for values in stress_by_day.values()
        ):
            factors.append("Mood stress patterns")

        logger.debug(
            f"[FORECAST] {len(predicted)} recommendations over {days_ahead} days, "
            f"confidence={confidence:.2f}"
        )

        return ForecastResult(
            predicted_schedule=predicted,
            confidence=confidence,
            factors=factors,
            generated_at=start,
        )

    def _predict_day(
        self,
        day: int,
        hours: Optional[Dict[int, List[int]]],
        schedule: Optional[SmartSchedule],
        day_stress: Optional[List[int]],
    ) -> List[ScheduleRecommendation]:
        factors = ContextualFactors()
        if day_stress and statistics.mean(day_stress) >= self.STRESSFUL_DAY_MEAN:
            factors.stress_level_prediction = (
                f"Stress tends to run high on {day_name(day)} "
                f"(average {statistics.mean(day_stress):.1f}/5)"
            )

        if hours:
            # Best mean quality first, earlier hour wins a tie
            ranked: List[Tuple[int, List[int]]] = sorted(
                hours.items(), key=lambda item: (-statistics.mean(item[1]), item[0])
            )
            recommendations = []
            for hour, qualities in ranked[: self.HOURS_PER_DAY]:
                time_slot = hour_slot(hour)
                mean_quality = statistics.mean(qualities)
                recommendations.append(
                    ScheduleRecommendation(
                        recommended_time=time_slot,
                        day_of_week=day,
                        duration=15,
                        technique=suggest_technique_for_time(time_slot),
                        reason=(
                            f"Predicted optimal time based on your {len(qualities)} "
                            f"previous sessions on {day_name(day)}"
                        ),
                        priority=Level.HIGH if mean_quality >= self.HIGH_PRIORITY_QUALITY else Level.MEDIUM,
                        contextual_factors=replace(factors),
                    )
                )
            return recommendations

        if schedule is not None and schedule.time_slots:
            return [
                ScheduleRecommendation(
                    recommended_time=schedule.time_slots[0].time_slot,
                    day_of_week=day,
                    duration=15,
                    technique="mindfulness",
                    reason="Based on your preferred schedule",
                    priority=Level.MEDIUM,
                    contextual_factors=factors,
                )
            ]

        return []

    def calculate_confidence(self, total_sessions: int, covered_weekdays: int) -> float:
        """Monotone in sample size and weekday coverage, capped at 0.9."""
        confidence = self.BASE_CONFIDENCE
        for threshold in self.SESSION_THRESHOLDS:
            if total_sessions >= threshold:
                confidence += self.THRESHOLD_STEP
        confidence += covered_weekdays / 7 * self.COVERAGE_WEIGHT
        return min(self.MAX_CONFIDENCE, confidence)
