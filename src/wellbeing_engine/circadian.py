"""
Circadian rhythm estimation from session history.

Compares practice quality in the morning and evening windows to classify a
user as an early, regular or late type and derives sleep assumptions and
anchor recommendations from that type.
"""

import logging
import statistics
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from .models import (
    Level,
    MeditationSession,
    ScheduleRecommendation,
    ensure_timezone_aware,
    hour_slot,
    to_jsonable,
)

logger = logging.getLogger(__name__)


@dataclass
class NaturalRhythm:
    morning_type: str  # early, regular, late
    energy_peaks: List[str]
    low_energy_periods: List[str]
    optimal_focus_times: List[str]


@dataclass
class SleepPattern:
    average_bedtime: str
    average_wake_time: str
    sleep_quality: float
    consistency: float


@dataclass
class CircadianRecommendations:
    morning_meditation: ScheduleRecommendation
    midday_refresh: ScheduleRecommendation
    evening_winddown: ScheduleRecommendation


@dataclass
class CircadianAnalysis:
    """Inferred daily rhythm for a user."""

    user_id: str
    natural_rhythm: NaturalRhythm
    sleep_pattern: SleepPattern
    recommendations: CircadianRecommendations
    last_analyzed: datetime = field(default_factory=ensure_timezone_aware)

    def to_dict(self) -> dict:
        result = to_jsonable(self)
        result["recommendations"] = {
            "morning_meditation": self.recommendations.morning_meditation.to_dict(),
            "midday_refresh": self.recommendations.midday_refresh.to_dict(),
            "evening_winddown": self.recommendations.evening_winddown.to_dict(),
        }
        return result


class CircadianEstimator:
    """
    Infers a circadian type from when sessions go best.

    The morning window covers hours 06-10 and the evening window 18-22
    (inclusive). A type is only assigned when one window beats the other by
    more than ``TYPE_MARGIN`` quality points.
    """

    MORNING_HOURS = range(6, 11)
    EVENING_HOURS = range(18, 23)
    TYPE_MARGIN = 0.5
    LOW_ENERGY_PERIODS = ["14:00", "16:00"]

    SLEEP_BY_TYPE = {
        "early": ("22:00", "06:00"),
        "regular": ("23:00", "07:00"),
        "late": ("24:00", "08:00"),
    }

    MORNING_ANCHORS = {"early": "06:30", "regular": "07:30", "late": "08:30"}
    EVENING_ANCHORS = {"early": "20:30", "regular": "21:30", "late": "22:30"}

    def estimate_circadian_rhythm(
        self,
        user_id: str,
        sessions: List[MeditationSession],
        now: Optional[datetime] = None,
    ) -> CircadianAnalysis:
        """
        Estimate the user's circadian rhythm.

        With no sessions the ``regular`` baseline is returned.
        """
        by_hour: Dict[int, List[int]] = {}
        for session in sessions:
            by_hour.setdefault(session.hour, []).append(session.quality)

        morning = self._window_mean(by_hour, self.MORNING_HOURS)
        evening = self._window_mean(by_hour, self.EVENING_HOURS)

        if morning > evening + self.TYPE_MARGIN:
            morning_type = "early"
        elif evening > morning + self.TYPE_MARGIN:
            morning_type = "late"
        else:
            morning_type = "regular"

        # Best mean quality first, earlier hour wins a tie
        ranked = sorted(
            by_hour.items(), key=lambda item: (-statistics.mean(item[1]), item[0])
        )
        energy_peaks = [hour_slot(hour) for hour, _ in ranked[:3]]

        bedtime, wake_time = self.SLEEP_BY_TYPE[morning_type]

        logger.debug(
            f"[SCHEDULE] Circadian estimate for {user_id}: type={morning_type}, "
            f"morning={morning:.2f}, evening={evening:.2f}, peaks={energy_peaks}"
        )

        return CircadianAnalysis(
            user_id=user_id,
            natural_rhythm=NaturalRhythm(
                morning_type=morning_type,
                energy_peaks=energy_peaks,
                low_energy_periods=list(self.LOW_ENERGY_PERIODS),
                optimal_focus_times=list(energy_peaks),
            ),
            sleep_pattern=SleepPattern(
                average_bedtime=bedtime,
                average_wake_time=wake_time,
                sleep_quality=4,
                consistency=0.8,
            ),
            recommendations=self._recommendations(morning_type),
            last_analyzed=ensure_timezone_aware(now),
        )

    @staticmethod
    def _window_mean(by_hour: Dict[int, List[int]], hours: range) -> float:
        qualities = [q for hour in hours for q in by_hour.get(hour, [])]
        return statistics.mean(qualities) if qualities else 0.0

    def _recommendations(self, morning_type: str) -> CircadianRecommendations:
        return CircadianRecommendations(
            morning_meditation=ScheduleRecommendation(
                recommended_time=self.MORNING_ANCHORS[morning_type],
                duration=15,
                technique="mindfulness",
                reason="Start the day with intention",
                priority=Level.HIGH,
            ),
            midday_refresh=ScheduleRecommendation(
                recommended_time="12:30",
                duration=10,
                technique="breathing",
                reason="Midday energy reset",
                priority=Level.MEDIUM,
            ),
            evening_winddown=ScheduleRecommendation(
                recommended_time=self.EVENING_ANCHORS[morning_type],
                duration=20,
                technique="body_scan",
                reason="Prepare for restful sleep",
                priority=Level.HIGH,
            ),
        )
