"""
Lifestyle estimation from session history.

Infers a coarse work schedule from the weekdays and hours a user practices
on, and pairs it with typical social, activity and stress rhythms.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from .models import MeditationSession, to_jsonable

logger = logging.getLogger(__name__)


@dataclass
class WorkSchedule:
    type: str  # regular, flexible
    work_days: List[int]
    work_start: str
    work_end: str
    break_times: List[str]


@dataclass
class SocialPatterns:
    busy_times: List[str]
    quiet_times: List[str]
    family_time: List[str]


@dataclass
class ActivityLevel:
    morning_activity: str
    afternoon_activity: str
    evening_activity: str


@dataclass
class StressTimes:
    stressful_times: List[str]
    relaxed_times: List[str]
    peak_stress_days: List[int]


@dataclass
class LifestylePattern:
    """Inferred weekly rhythm for a user."""

    user_id: str
    work_schedule: WorkSchedule
    social_patterns: SocialPatterns = field(
        default_factory=lambda: SocialPatterns(
            busy_times=["09:00", "17:00", "19:00"],
            quiet_times=["06:00", "22:00"],
            family_time=["18:00", "20:00"],
        )
    )
    activity_level: ActivityLevel = field(
        default_factory=lambda: ActivityLevel(
            morning_activity="medium",
            afternoon_activity="high",
            evening_activity="medium",
        )
    )
    stress_patterns: StressTimes = field(
        default_factory=lambda: StressTimes(
            stressful_times=["09:00", "14:00", "17:00"],
            relaxed_times=["07:00", "12:00", "21:00"],
            peak_stress_days=[1, 3, 5],
        )
    )

    def to_dict(self) -> dict:
        return to_jsonable(self)


class LifestyleEstimator:
    """Derives a lifestyle pattern from practice timing."""

    WEEKDAYS = range(1, 6)  # Monday..Friday with Sunday = 0
    REGULAR_WORK_DAYS = 4
    OFFICE_HOURS = range(9, 18)

    def estimate_lifestyle(
        self, user_id: str, sessions: List[MeditationSession]
    ) -> LifestylePattern:
        work_days = sorted(
            {s.day_of_week for s in sessions if s.day_of_week in self.WEEKDAYS}
        )
        work_type = "regular" if len(work_days) >= self.REGULAR_WORK_DAYS else "flexible"

        if any(s.hour in self.OFFICE_HOURS for s in sessions):
            work_start, work_end = "09:00", "17:00"
        else:
            work_start, work_end = "08:00", "18:00"

        logger.debug(
            f"[SCHEDULE] Lifestyle estimate for {user_id}: {work_type} "
            f"work days={work_days} hours={work_start}-{work_end}"
        )

        return LifestylePattern(
            user_id=user_id,
            work_schedule=WorkSchedule(
                type=work_type,
                work_days=work_days,
                work_start=work_start,
                work_end=work_end,
                break_times=["12:00", "15:00"],
            ),
        )
