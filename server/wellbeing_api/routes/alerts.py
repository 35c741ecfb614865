"""Contextual alert API routes.

Includes on-demand monitoring, stored alerts with feedback, and real-time
events via SSE.
"""
import json
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from wellbeing_engine import WellbeingEngine

from ..dependencies import get_alert_queue, get_engine
from ..models.alerts import AlertFeedbackRequest, ContextualAlertResponse, MonitorResponse
from ..services.alert_queue import AlertQueue, publish_alert_created

router = APIRouter(prefix="/api/wellbeing", tags=["Alerts"])


@router.post("/users/{user_id}/monitor", response_model=MonitorResponse)
def monitor_user(
    user_id: str,
    engine: WellbeingEngine = Depends(get_engine),
    queue: AlertQueue = Depends(get_alert_queue),
):
    """
    Run stress and mood monitoring for one user.

    Every alert raised is stored and published to the event stream.
    """
    stress_alerts = engine.monitor_stress_patterns(user_id)
    mood_alerts = engine.monitor_mood_patterns(user_id)
    for alert in stress_alerts + mood_alerts:
        publish_alert_created(alert, queue)

    return {
        "user_id": user_id,
        "stress_alerts": [a.to_dict() for a in stress_alerts],
        "mood_alerts": [a.to_dict() for a in mood_alerts],
    }


@router.get("/alerts", response_model=list[ContextualAlertResponse])
def list_alerts(
    user_id: Optional[str] = Query(None, description="Only alerts for this user"),
    limit: int = Query(50, ge=1, le=200, description="Maximum number of alerts"),
    engine: WellbeingEngine = Depends(get_engine),
):
    """Stored alerts, newest first."""
    return [a.to_dict() for a in engine.store.list_alerts(user_id=user_id, limit=limit)]


@router.post("/alerts/{alert_id}/feedback")
def record_alert_feedback(
    alert_id: str,
    request: AlertFeedbackRequest,
    engine: WellbeingEngine = Depends(get_engine),
):
    """Record how helpful an alert was."""
    if not engine.record_alert_response(alert_id, request.effectiveness):
        raise HTTPException(status_code=404, detail=f"Alert {alert_id} not found")
    return {"status": "recorded", "alert_id": alert_id}


# ============================================================================
# Real-Time Events (SSE)
# ============================================================================


@router.get("/alerts/stream")
async def stream_events(
    include_history: bool = Query(True, description="Include recent events on connect"),
    history_count: int = Query(10, ge=0, le=50, description="Number of historical events"),
    queue: AlertQueue = Depends(get_alert_queue),
):
    """
    Stream real-time wellbeing events via Server-Sent Events (SSE).

    Events include:
    - Contextual alerts raised by monitoring
    - Notifications delivered to users
    - Schedule adaptations
    - Contextual interventions

    The stream never closes - clients should handle reconnection.

    Usage with curl:
        curl -N http://localhost:8083/api/wellbeing/alerts/stream
    """
    async def event_generator():
        async for event in queue.subscribe(
            include_history=include_history,
            history_count=history_count
        ):
            data = json.dumps(event.to_dict())
            yield f"event: {event.event_type.value}\ndata: {data}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )


@router.get("/alerts/live/history")
async def get_event_history(
    count: int = Query(50, ge=1, le=100, description="Number of events to return"),
    queue: AlertQueue = Depends(get_alert_queue),
):
    """Recent streamed events, newest first."""
    return [event.to_dict() for event in queue.get_history(count)]


@router.get("/alerts/live/stats")
async def get_event_stats(queue: AlertQueue = Depends(get_alert_queue)):
    """Counts of events by type, current subscribers and history size."""
    return queue.get_stats()
