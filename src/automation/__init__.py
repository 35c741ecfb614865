"""Wellbeing Automation Module.

Provides scheduled and on-demand monitoring cycles across users.
"""

from .monitor_scheduler import CycleStatus, MonitorCycle, MonitorScheduler

__all__ = ["CycleStatus", "MonitorCycle", "MonitorScheduler"]
