"""Schedule API routes.

Optimal practice times, smart schedules, adaptation and forecasts.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from wellbeing_engine import SchedulePreferences, WellbeingEngine

from ..dependencies import get_alert_queue, get_engine
from ..models.schedules import (
    CreateScheduleRequest,
    ForecastResponse,
    OptimalTimeSlotResponse,
    SchedulePerformanceResponse,
    ScheduleRecommendationResponse,
    SmartScheduleResponse,
)
from ..services.alert_queue import AlertQueue, publish_schedule_adapted

router = APIRouter(prefix="/api/wellbeing", tags=["Schedules"])


def _no_schedule(user_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"No active schedule for user {user_id}")


@router.get("/users/{user_id}/optimal-times", response_model=list[OptimalTimeSlotResponse])
def get_optimal_times(user_id: str, engine: WellbeingEngine = Depends(get_engine)):
    """
    Rank the user's best practice times.

    Users with fewer than five sessions get the three default slots.
    """
    return [slot.to_dict() for slot in engine.analyze_optimal_times(user_id)]


@router.post("/users/{user_id}/schedule", response_model=SmartScheduleResponse, status_code=201)
def create_schedule(
    user_id: str,
    request: Optional[CreateScheduleRequest] = None,
    engine: WellbeingEngine = Depends(get_engine),
):
    """Create and store a smart schedule from the user's optimal times."""
    request = request or CreateScheduleRequest()
    preferences = SchedulePreferences(
        schedule_type=request.schedule_type,
        daily_duration=request.daily_duration,
        max_sessions_per_day=request.max_sessions_per_day,
        preferred_techniques=request.preferred_techniques,
    )
    return engine.create_smart_schedule(user_id, preferences).to_dict()


@router.get("/users/{user_id}/schedule", response_model=SmartScheduleResponse)
def get_schedule(user_id: str, engine: WellbeingEngine = Depends(get_engine)):
    schedule = engine.store.get_active_schedule(user_id)
    if schedule is None:
        raise _no_schedule(user_id)
    return schedule.to_dict()


@router.get("/users/{user_id}/schedule/performance", response_model=SchedulePerformanceResponse)
def get_schedule_performance(user_id: str, engine: WellbeingEngine = Depends(get_engine)):
    """Adherence and quality of recent sessions against the active schedule."""
    performance = engine.analyze_schedule_performance(user_id)
    if performance is None:
        raise _no_schedule(user_id)
    return performance.to_dict()


@router.post("/users/{user_id}/schedule/adapt", response_model=SmartScheduleResponse)
def adapt_schedule(
    user_id: str,
    engine: WellbeingEngine = Depends(get_engine),
    queue: AlertQueue = Depends(get_alert_queue),
):
    """
    Re-optimize the active schedule when recent practice drifts from it.

    The schedule is returned unchanged when adherence and quality are fine.
    """
    before = engine.store.get_active_schedule(user_id)
    schedule = engine.adapt_schedule_based_on_performance(user_id)
    if schedule is None:
        raise _no_schedule(user_id)

    if before is not None and before.slot_times != schedule.slot_times:
        publish_schedule_adapted(schedule, before.slot_times, queue)
    return schedule.to_dict()


@router.post("/schedules/{schedule_id}/effectiveness", response_model=SmartScheduleResponse)
def update_schedule_effectiveness(schedule_id: str, engine: WellbeingEngine = Depends(get_engine)):
    """Recompute and store the schedule's effectiveness figures."""
    schedule = engine.update_schedule_effectiveness(schedule_id)
    if schedule is None:
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")
    return schedule.to_dict()


@router.get("/users/{user_id}/forecast", response_model=ForecastResponse)
def get_forecast(
    user_id: str,
    days_ahead: int = Query(7, ge=1, le=30, description="Number of days to forecast"),
    engine: WellbeingEngine = Depends(get_engine),
):
    """Predict recommended practice times for the coming days."""
    return engine.predict_optimal_schedule(user_id, days_ahead).to_dict()


@router.get("/users/{user_id}/recommendations", response_model=list[ScheduleRecommendationResponse])
def get_recommendations(user_id: str, engine: WellbeingEngine = Depends(get_engine)):
    """Context-aware recommendations for right now, highest priority first."""
    return [r.to_dict() for r in engine.generate_dynamic_recommendations(user_id)]
