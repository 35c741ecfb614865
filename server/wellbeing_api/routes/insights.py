"""Emotional state, wellbeing insight and intervention routes."""
from fastapi import APIRouter, Depends, HTTPException, Query

from wellbeing_engine import InsightPeriod, WellbeingEngine

from ..dependencies import get_alert_queue, get_engine
from ..models.insights import (
    EmotionalStateResponse,
    InterventionFeedbackRequest,
    InterventionRequest,
    InterventionResponse,
    WellbeingInsightResponse,
)
from ..services.alert_queue import AlertQueue, publish_intervention_created

router = APIRouter(prefix="/api/wellbeing", tags=["Insights"])


@router.get("/users/{user_id}/emotional-state", response_model=EmotionalStateResponse)
def get_emotional_state(user_id: str, engine: WellbeingEngine = Depends(get_engine)):
    return engine.detect_emotional_state(user_id).to_dict()


@router.get("/users/{user_id}/insights", response_model=WellbeingInsightResponse)
def get_insights(
    user_id: str,
    period: InsightPeriod = Query(InsightPeriod.WEEKLY, description="Reporting period"),
    engine: WellbeingEngine = Depends(get_engine),
):
    """Stress patterns, mood trends, effective techniques and risk factors."""
    return engine.generate_wellbeing_insights(user_id, period).to_dict()


@router.post("/users/{user_id}/interventions", response_model=InterventionResponse, status_code=201)
def create_intervention(
    user_id: str,
    request: InterventionRequest,
    engine: WellbeingEngine = Depends(get_engine),
    queue: AlertQueue = Depends(get_alert_queue),
):
    """Record a contextual intervention and notify the user."""
    record = engine.create_contextual_intervention(user_id, request.context, request.urgency)
    publish_intervention_created(record, queue)
    return record.to_dict()


@router.post("/interventions/{intervention_id}/feedback")
def record_intervention_feedback(
    intervention_id: str,
    request: InterventionFeedbackRequest,
    engine: WellbeingEngine = Depends(get_engine),
):
    if not engine.track_intervention_effectiveness(intervention_id, request.model_dump()):
        raise HTTPException(status_code=404, detail=f"Intervention {intervention_id} not found")
    return {"status": "recorded", "intervention_id": intervention_id}
