"""Monitoring API routes.

Runs monitoring cycles across users on demand and controls the background
scheduler.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from automation import MonitorScheduler

from ..dependencies import get_monitor
from ..models.alerts import MonitorStatusResponse

router = APIRouter(prefix="/api/monitoring", tags=["Monitoring"])


@router.post("/run")
def run_monitoring_cycle(
    user_id: Optional[List[str]] = Query(None, description="Users to monitor (default: all)"),
    monitor: MonitorScheduler = Depends(get_monitor),
):
    """
    Run one monitoring cycle now.

    Stress and mood monitoring followed by schedule adaptation for every
    user. Failures are reported per user.
    """
    return monitor.run_cycle(user_id).to_dict()


@router.get("/cycles")
def list_cycles(monitor: MonitorScheduler = Depends(get_monitor)):
    """Recent cycles, newest first."""
    return monitor.get_all_cycles()


@router.get("/status", response_model=MonitorStatusResponse)
def get_monitor_status(monitor: MonitorScheduler = Depends(get_monitor)):
    return monitor.get_status()


@router.post("/start", response_model=MonitorStatusResponse)
def start_monitoring(
    interval_hours: float = Query(6, gt=0, le=168, description="Hours between cycles"),
    monitor: MonitorScheduler = Depends(get_monitor),
):
    monitor.start_scheduler(interval_hours)
    return monitor.get_status()


@router.post("/stop", response_model=MonitorStatusResponse)
def stop_monitoring(monitor: MonitorScheduler = Depends(get_monitor)):
    monitor.stop_scheduler()
    return monitor.get_status()
