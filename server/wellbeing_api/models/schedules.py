"""Schedule and forecast models."""
from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional

from wellbeing_engine import ScheduleType

LevelName = Literal["low", "medium", "high"]


class SlotEffectivenessResponse(BaseModel):
    mood_improvement: float
    stress_reduction: float
    session_quality: float
    completion: float


class EnvironmentalFactorsResponse(BaseModel):
    is_quiet_time: bool
    natural_light: bool
    low_activity: bool


class PersonalFactorsResponse(BaseModel):
    energy_level: LevelName
    stress_level: LevelName
    availability: LevelName


class OptimalTimeSlotResponse(BaseModel):
    """A ranked practice time for a user."""

    id: str
    user_id: str
    time_slot: str
    day_of_week: int = Field(ge=-1, le=6)
    confidence: float = Field(ge=0, le=1)
    effectiveness: SlotEffectivenessResponse
    based_on_sessions: int
    environmental: EnvironmentalFactorsResponse
    personal_factors: PersonalFactorsResponse
    created_at: str


class ScheduleRecommendationResponse(BaseModel):
    """A suggested practice with its reason and priority."""

    recommended_time: str
    duration: int
    technique: str
    reason: str
    priority: LevelName
    day_of_week: Optional[int] = None
    contextual_factors: Dict[str, str] = {}


class SmartScheduleResponse(BaseModel):
    """A user's adaptive meditation schedule."""

    id: Optional[str] = None
    user_id: str
    schedule_type: ScheduleType
    time_slots: List[OptimalTimeSlotResponse]
    adaptive_settings: Dict[str, bool]
    personal_preferences: dict
    effectiveness: Dict[str, float]
    next_recommendations: List[ScheduleRecommendationResponse]
    created_at: str
    updated_at: str


class ScheduleChangeResponse(BaseModel):
    type: str
    current: str
    suggested: str
    reason: str
    confidence: float


class SchedulePerformanceResponse(BaseModel):
    """How closely recent practice followed the active schedule."""

    adherence_rate: float = Field(ge=0, le=100)
    avg_quality: float
    sessions_analyzed: int
    needs_adjustment: bool
    adjustment_reasons: List[str]
    suggested_changes: List[ScheduleChangeResponse]


class ForecastResponse(BaseModel):
    """Predicted recommendations for the coming days."""

    predicted_schedule: List[ScheduleRecommendationResponse]
    confidence: float = Field(ge=0, le=1)
    factors: List[str]
    generated_at: str


class CreateScheduleRequest(BaseModel):
    """Request model for creating a smart schedule."""

    schedule_type: ScheduleType = ScheduleType.DAILY
    daily_duration: Optional[int] = Field(None, ge=1, le=180)
    max_sessions_per_day: Optional[int] = Field(None, ge=1, le=10)
    preferred_techniques: Optional[List[str]] = None
