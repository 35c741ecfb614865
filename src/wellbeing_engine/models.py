"""
Data records for the Wellbeing Engine.

Meditation sessions and mood check-ins are immutable inputs supplied by the
history store. Time slots, schedules, recommendations, patterns and alerts
are derived records; every record serializes with ``to_dict()`` into a
JSON-safe dictionary (ISO timestamps, enum values as strings).

Day-of-week values use 0 = Sunday .. 6 = Saturday throughout.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def ensure_timezone_aware(dt: Optional[datetime] = None) -> datetime:
    """Return ``dt`` as an aware datetime, treating naive values as UTC."""
    if dt is None:
        return datetime.now(timezone.utc)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def day_of_week(ts: datetime) -> int:
    """Sunday-based weekday index for a timestamp."""
    return ts.isoweekday() % 7


def day_name(day: int) -> str:
    if 0 <= day < len(DAY_NAMES):
        return DAY_NAMES[day]
    return "Unknown"


def hour_slot(hour: int) -> str:
    """Format an hour as an ``HH:00`` slot label."""
    return f"{hour:02d}:00"


def slot_hour(time_slot: str) -> int:
    """Extract the hour from an ``HH:MM`` slot label."""
    return int(time_slot.split(":")[0])


def to_jsonable(value: Any) -> Any:
    """Recursively convert records, enums and datetimes for serialization."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def _parse_datetime(value: Union[str, datetime, None]) -> datetime:
    if value is None:
        return utc_now()
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class Level(str, Enum):
    """Coarse low/medium/high scale used for factors and priorities."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_ORDER = {Level.HIGH: 3, Level.MEDIUM: 2, Level.LOW: 1}


class ScheduleType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    FLEXIBLE = "flexible"
    INTENSIVE = "intensive"


class AlertType(str, Enum):
    """Kinds of contextual alerts raised by the monitors."""

    STRESS_SPIKE = "stress_spike"
    MOOD_DECLINE = "mood_decline"
    ANXIETY_PEAK = "anxiety_peak"
    ENERGY_CRASH = "energy_crash"
    FOCUS_DROP = "focus_drop"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class StressSeverity(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"


class MoodTrend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    FLUCTUATING = "fluctuating"


class MoodDuration(str, Enum):
    SHORT_TERM = "short_term"
    MEDIUM_TERM = "medium_term"
    LONG_TERM = "long_term"


class NotificationType(str, Enum):
    """Notification kinds understood by the delivery collaborator."""

    STRESS_DETECTED = "stress_detected"
    MOOD_LOW = "mood_low"
    ENERGY_LOW = "energy_low"
    ANXIETY_HIGH = "anxiety_high"


class InterventionContext(str, Enum):
    HIGH_STRESS = "high_stress"
    LOW_MOOD = "low_mood"
    ANXIETY_SPIKE = "anxiety_spike"
    FATIGUE = "fatigue"


# ============================================================================
# Inputs
# ============================================================================


@dataclass(frozen=True)
class MeditationSession:
    """A completed meditation session as recorded by the app."""

    id: str
    user_id: str
    timestamp: datetime
    duration_minutes: int
    quality: int  # 1-5 self rating
    techniques: Tuple[str, ...] = ()
    mood_before: Optional[int] = None
    mood_after: Optional[int] = None
    stress_level: Optional[int] = None  # post-session self report, 1-5

    @property
    def hour(self) -> int:
        return self.timestamp.hour

    @property
    def day_of_week(self) -> int:
        return day_of_week(self.timestamp)

    @property
    def mood_change(self) -> Optional[int]:
        if self.mood_before is None or self.mood_after is None:
            return None
        return self.mood_after - self.mood_before

    def to_dict(self) -> dict:
        return to_jsonable(self)


@dataclass(frozen=True)
class MoodEntry:
    """A single mood check-in; every dimension is on a 1-5 scale."""

    id: str
    user_id: str
    timestamp: datetime
    overall: int
    energy: int
    anxiety: int
    happiness: int
    stress: int
    focus: int

    @property
    def hour(self) -> int:
        return self.timestamp.hour

    @property
    def day_of_week(self) -> int:
        return day_of_week(self.timestamp)

    def to_dict(self) -> dict:
        return to_jsonable(self)


# ============================================================================
# Time slots and schedules
# ============================================================================


@dataclass
class SlotEffectiveness:
    mood_improvement: float
    stress_reduction: float
    session_quality: float
    completion: float


@dataclass
class EnvironmentalFactors:
    is_quiet_time: bool
    natural_light: bool
    low_activity: bool


@dataclass
class PersonalFactors:
    energy_level: Level = Level.MEDIUM
    stress_level: Level = Level.MEDIUM
    availability: Level = Level.MEDIUM


@dataclass
class OptimalTimeSlot:
    """A ranked candidate time for practice, backed by historical evidence."""

    user_id: str
    time_slot: str  # HH:MM
    confidence: float  # 0-0.9
    effectiveness: SlotEffectiveness
    based_on_sessions: int
    environmental: EnvironmentalFactors
    personal_factors: PersonalFactors
    day_of_week: int = -1  # -1 = any day
    id: str = ""
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        # Stable per user, time and weekday
        if not self.id:
            self.id = f"{self.user_id}:{self.time_slot}"
            if self.day_of_week >= 0:
                self.id += f":{self.day_of_week}"

    @property
    def hour(self) -> int:
        return slot_hour(self.time_slot)

    def to_dict(self) -> dict:
        return to_jsonable(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OptimalTimeSlot":
        personal = data.get("personal_factors", {})
        return cls(
            id=data.get("id", ""),
            user_id=data["user_id"],
            time_slot=data["time_slot"],
            day_of_week=data.get("day_of_week", -1),
            confidence=data["confidence"],
            effectiveness=SlotEffectiveness(**data["effectiveness"]),
            based_on_sessions=data.get("based_on_sessions", 0),
            environmental=EnvironmentalFactors(**data["environmental"]),
            personal_factors=PersonalFactors(
                energy_level=Level(personal.get("energy_level", "medium")),
                stress_level=Level(personal.get("stress_level", "medium")),
                availability=Level(personal.get("availability", "medium")),
            ),
            created_at=_parse_datetime(data.get("created_at")),
        )


@dataclass
class ContextualFactors:
    weather_consideration: Optional[str] = None
    stress_level_prediction: Optional[str] = None
    energy_level_prediction: Optional[str] = None

    def to_dict(self) -> dict:
        # Only the factors that were actually set
        return {k: v for k, v in to_jsonable(self).items() if v is not None}


@dataclass
class ScheduleRecommendation:
    """A suggested practice: when, how long, which technique and why."""

    recommended_time: str
    duration: int
    technique: str
    reason: str
    priority: Level
    day_of_week: Optional[int] = None
    contextual_factors: ContextualFactors = field(default_factory=ContextualFactors)

    def to_dict(self) -> dict:
        result = to_jsonable(self)
        result["contextual_factors"] = self.contextual_factors.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleRecommendation":
        return cls(
            recommended_time=data["recommended_time"],
            duration=data["duration"],
            technique=data["technique"],
            reason=data["reason"],
            priority=Level(data["priority"]),
            day_of_week=data.get("day_of_week"),
            contextual_factors=ContextualFactors(**data.get("contextual_factors", {})),
        )


@dataclass
class AdaptiveSettings:
    auto_adjust: bool = True
    respect_quiet_hours: bool = True
    consider_mood_patterns: bool = True
    adapt_to_lifestyle: bool = True


@dataclass
class PersonalPreferences:
    preferred_duration: int = 15  # minutes
    preferred_techniques: List[str] = field(
        default_factory=lambda: ["mindfulness", "breathing"]
    )
    minimum_gap: int = 4  # hours between sessions
    max_sessions_per_day: int = 3


@dataclass
class ScheduleEffectiveness:
    adherence_rate: float = 0.0  # 0-100
    avg_session_quality: float = 0.0
    mood_improvement_rate: float = 0.0
    stress_reduction_rate: float = 0.0


@dataclass
class SchedulePreferences:
    """Caller-supplied options for creating a smart schedule."""

    schedule_type: ScheduleType = ScheduleType.DAILY
    daily_duration: Optional[int] = None
    max_sessions_per_day: Optional[int] = None
    preferred_techniques: Optional[List[str]] = None


@dataclass
class SmartSchedule:
    """A user's personalized practice schedule."""

    user_id: str
    schedule_type: ScheduleType
    time_slots: List[OptimalTimeSlot]
    adaptive_settings: AdaptiveSettings = field(default_factory=AdaptiveSettings)
    personal_preferences: PersonalPreferences = field(default_factory=PersonalPreferences)
    effectiveness: ScheduleEffectiveness = field(default_factory=ScheduleEffectiveness)
    next_recommendations: List[ScheduleRecommendation] = field(default_factory=list)
    id: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def slot_times(self) -> List[str]:
        return [slot.time_slot for slot in self.time_slots]

    def to_dict(self) -> dict:
        result = to_jsonable(self)
        result["next_recommendations"] = [r.to_dict() for r in self.next_recommendations]
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SmartSchedule":
        return cls(
            id=data.get("id"),
            user_id=data["user_id"],
            schedule_type=ScheduleType(data["schedule_type"]),
            time_slots=[OptimalTimeSlot.from_dict(s) for s in data.get("time_slots", [])],
            adaptive_settings=AdaptiveSettings(**data.get("adaptive_settings", {})),
            personal_preferences=PersonalPreferences(**data.get("personal_preferences", {})),
            effectiveness=ScheduleEffectiveness(**data.get("effectiveness", {})),
            next_recommendations=[
                ScheduleRecommendation.from_dict(r)
                for r in data.get("next_recommendations", [])
            ],
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )


# ============================================================================
# Patterns and alerts
# ============================================================================


@dataclass
class StressContext:
    time_of_day: str  # morning, afternoon, evening, multiple
    day_of_week: int  # -1 when the pattern spans several days
    recent_activities: List[str] = field(default_factory=list)
    environmental_factors: List[str] = field(default_factory=list)


@dataclass
class StressPattern:
    """Stress finding from one analysis pass."""

    user_id: str
    detected_at: datetime
    stress_level: float
    triggers: List[str]
    context: StressContext
    recommendations: List[str]
    severity: StressSeverity
    kind: str = "acute"  # acute or chronic

    def to_dict(self) -> dict:
        return to_jsonable(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StressPattern":
        return cls(
            user_id=data["user_id"],
            detected_at=_parse_datetime(data.get("detected_at")),
            stress_level=data["stress_level"],
            triggers=list(data.get("triggers", [])),
            context=StressContext(**data["context"]),
            recommendations=list(data.get("recommendations", [])),
            severity=StressSeverity(data["severity"]),
            kind=data.get("kind", "acute"),
        )


@dataclass
class MoodState:
    overall: float
    energy: float
    anxiety: float
    happiness: float
    stress: float
    focus: float

    @classmethod
    def from_entry(cls, entry: MoodEntry) -> "MoodState":
        return cls(
            overall=entry.overall,
            energy=entry.energy,
            anxiety=entry.anxiety,
            happiness=entry.happiness,
            stress=entry.stress,
            focus=entry.focus,
        )

    @classmethod
    def average(cls, entries: List[MoodEntry]) -> "MoodState":
        n = len(entries)
        return cls(
            overall=sum(e.overall for e in entries) / n,
            energy=sum(e.energy for e in entries) / n,
            anxiety=sum(e.anxiety for e in entries) / n,
            happiness=sum(e.happiness for e in entries) / n,
            stress=sum(e.stress for e in entries) / n,
            focus=sum(e.focus for e in entries) / n,
        )


@dataclass
class MoodPattern:
    """Mood finding from one analysis pass."""

    user_id: str
    detected_at: datetime
    mood_state: MoodState
    trend: MoodTrend
    duration: MoodDuration
    triggers: List[str]
    recommendations: List[str]
    kind: str = "trend"  # trend or sustained_low

    def to_dict(self) -> dict:
        return to_jsonable(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MoodPattern":
        return cls(
            user_id=data["user_id"],
            detected_at=_parse_datetime(data.get("detected_at")),
            mood_state=MoodState(**data["mood_state"]),
            trend=MoodTrend(data["trend"]),
            duration=MoodDuration(data["duration"]),
            triggers=list(data.get("triggers", [])),
            recommendations=list(data.get("recommendations", [])),
            kind=data.get("kind", "trend"),
        )


Pattern = Union[StressPattern, MoodPattern]


def pattern_from_dict(data: Dict[str, Any]) -> Pattern:
    if "mood_state" in data:
        return MoodPattern.from_dict(data)
    return StressPattern.from_dict(data)


@dataclass
class InterventionPlan:
    immediate: List[str]
    short_term: List[str]
    long_term: List[str]


@dataclass
class ContextualAlert:
    """An alert raised for a detected stress or mood episode."""

    user_id: str
    type: AlertType
    severity: AlertSeverity
    pattern: Pattern
    intervention_suggested: InterventionPlan
    detected_at: datetime = field(default_factory=utc_now)
    notification_sent: bool = False
    user_responded: bool = False
    effectiveness: Optional[int] = None  # 1-5 user feedback
    id: Optional[str] = None

    def to_dict(self) -> dict:
        return to_jsonable(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContextualAlert":
        return cls(
            id=data.get("id"),
            user_id=data["user_id"],
            type=AlertType(data["type"]),
            severity=AlertSeverity(data["severity"]),
            pattern=pattern_from_dict(data["pattern"]),
            intervention_suggested=InterventionPlan(**data["intervention_suggested"]),
            detected_at=_parse_datetime(data.get("detected_at")),
            notification_sent=bool(data.get("notification_sent", False)),
            user_responded=bool(data.get("user_responded", False)),
            effectiveness=data.get("effectiveness"),
        )


@dataclass
class InterventionRecord:
    """A manually requested intervention and any feedback it received."""

    user_id: str
    context: InterventionContext
    urgency: Level
    intervention: InterventionPlan
    created_at: datetime = field(default_factory=utc_now)
    completed: bool = False
    feedback: Optional[Dict[str, Any]] = None
    id: Optional[str] = None

    def to_dict(self) -> dict:
        return to_jsonable(self)


@dataclass
class ReminderRequest:
    """Recurring practice reminder handed to the reminder collaborator."""

    optimal_time: str
    confidence: float
    preferred_technique: str
    days_since_last_session: int = 0

    def to_dict(self) -> dict:
        return to_jsonable(self)
