"""Emotional state, insight and intervention models."""
from pydantic import BaseModel, Field
from typing import List, Optional

from wellbeing_engine import InsightPeriod, InterventionContext, Level


class EmotionalStateResponse(BaseModel):
    current_state: str
    confidence: float = Field(ge=0, le=1)
    recommendations: List[str]


class InsightSummaryResponse(BaseModel):
    stress_patterns: List[str]
    mood_trends: List[str]
    effective_techniques: List[str]
    optimal_times: List[str]
    risk_factors: List[str]


class InsightRecommendationsResponse(BaseModel):
    immediate: List[str]
    behavioral: List[str]
    lifestyle: List[str]


class WellbeingInsightResponse(BaseModel):
    """Summary of practice and mood over a period."""

    user_id: str
    period: InsightPeriod
    insights: InsightSummaryResponse
    recommendations: InsightRecommendationsResponse
    generated_at: str


class InterventionRequest(BaseModel):
    """Request model for a contextual intervention."""

    context: InterventionContext
    urgency: Level = Level.MEDIUM


class InterventionResponse(BaseModel):
    id: Optional[str] = None
    user_id: str
    context: InterventionContext
    urgency: Level
    intervention: dict
    created_at: str
    completed: bool
    feedback: Optional[dict] = None


class InterventionFeedbackRequest(BaseModel):
    """User feedback on an intervention."""

    helpful: bool
    rating: int = Field(ge=1, le=5)
    followed_suggestion: bool
    additional_notes: Optional[str] = None
