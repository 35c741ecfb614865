"""
Wellbeing Monitor Scheduler.

Runs the per-user monitoring cycle (stress monitoring, mood monitoring and
schedule adaptation) on demand or periodically in the background. Users
are processed one after another; a failure for one user is logged and
recorded without affecting the others.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from wellbeing_engine import ContextualAlert, SmartSchedule, WellbeingEngine

logger = logging.getLogger(__name__)


class CycleStatus(str, Enum):
    """Status of a monitoring cycle."""

    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"


@dataclass
class UserCycleResult:
    """Outcome of one user's monitoring pass."""

    user_id: str
    stress_alerts: int = 0
    mood_alerts: int = 0
    schedule_adapted: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "stress_alerts": self.stress_alerts,
            "mood_alerts": self.mood_alerts,
            "schedule_adapted": self.schedule_adapted,
            "error": self.error,
        }


@dataclass
class MonitorCycle:
    """A single run over all monitored users."""

    id: str
    started_at: datetime
    status: CycleStatus = CycleStatus.RUNNING
    finished_at: Optional[datetime] = None
    results: List[UserCycleResult] = field(default_factory=list)

    @property
    def failed_users(self) -> List[str]:
        return [r.user_id for r in self.results if r.error]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "status": self.status.value,
            "users": len(self.results),
            "failed_users": self.failed_users,
            "results": [r.to_dict() for r in self.results],
        }


class MonitorScheduler:
    """
    Manages scheduled and on-demand monitoring cycles.

    Features:
    - Manual trigger for an immediate cycle
    - Background scheduling on a daemon timer
    - In-memory history of recent cycles
    """

    def __init__(
        self,
        engine: WellbeingEngine,
        list_users: Callable[[], List[str]],
        history_size: int = 10,
        on_alert: Optional[Callable[[ContextualAlert], None]] = None,
        on_adapted: Optional[Callable[[SmartSchedule, List[str]], None]] = None,
    ):
        """
        Initialize the monitor scheduler.

        Args:
            engine: Engine whose monitoring operations are run
            list_users: Returns the ids of users to monitor
            history_size: Maximum number of cycles to keep
            on_alert: Called with every alert raised during a cycle
            on_adapted: Called with an adapted schedule and its previous times
        """
        self.engine = engine
        self.list_users = list_users
        self.history_size = history_size
        self.on_alert = on_alert
        self.on_adapted = on_adapted

        self._cycles: List[MonitorCycle] = []
        self._lock = threading.Lock()
        self._cycle_lock = threading.Lock()

        self._scheduler_timer: Optional[threading.Timer] = None
        self._scheduler_running = False
        self._interval_hours: Optional[float] = None

        logger.info(f"[MONITOR] Initialized with history_size={history_size}")

    def run_cycle(self, user_ids: Optional[List[str]] = None) -> MonitorCycle:
        """
        Run one monitoring pass.

        Args:
            user_ids: Users to process (defaults to every known user)

        Returns:
            The finished cycle with one result per user
        """
        # One cycle at a time
        with self._cycle_lock:
            cycle = MonitorCycle(id=str(uuid.uuid4()), started_at=datetime.now(timezone.utc))
            users = user_ids if user_ids is not None else self.list_users()
            logger.info(f"[MONITOR] Starting cycle {cycle.id} for {len(users)} users")

            for user_id in users:
                cycle.results.append(self._run_user(user_id))

            cycle.finished_at = datetime.now(timezone.utc)
            cycle.status = (
                CycleStatus.COMPLETED_WITH_ERRORS if cycle.failed_users else CycleStatus.COMPLETED
            )

            with self._lock:
                self._cycles.insert(0, cycle)
                while len(self._cycles) > self.history_size:
                    self._cycles.pop()

            logger.info(
                f"[MONITOR] Cycle {cycle.id} {cycle.status.value}: "
                f"{len(users)} users, {len(cycle.failed_users)} failed"
            )
            return cycle

    def _run_user(self, user_id: str) -> UserCycleResult:
        result = UserCycleResult(user_id=user_id)
        try:
            # Publish each batch as soon as it is saved
            stress_alerts = self.engine.monitor_stress_patterns(user_id)
            result.stress_alerts = len(stress_alerts)
            self._publish_alerts(stress_alerts)

            mood_alerts = self.engine.monitor_mood_patterns(user_id)
            result.mood_alerts = len(mood_alerts)
            self._publish_alerts(mood_alerts)

            before = self.engine.store.get_active_schedule(user_id)
            after = self.engine.adapt_schedule_based_on_performance(user_id)
            result.schedule_adapted = (
                before is not None
                and after is not None
                and before.slot_times != after.slot_times
            )
            if result.schedule_adapted and self.on_adapted:
                self.on_adapted(after, before.slot_times)
        except Exception as e:
            result.error = str(e)
            logger.error(f"[MONITOR] Monitoring failed for {user_id}: {e}")
        return result

    def _publish_alerts(self, alerts: List[ContextualAlert]) -> None:
        if self.on_alert:
            for alert in alerts:
                self.on_alert(alert)

    def get_latest_cycle(self) -> Optional[MonitorCycle]:
        with self._lock:
            return self._cycles[0] if self._cycles else None

    def get_all_cycles(self) -> List[Dict]:
        with self._lock:
            return [c.to_dict() for c in self._cycles]

    def get_status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "scheduler_running": self._scheduler_running,
                "interval_hours": self._interval_hours,
                "cached_cycles": len(self._cycles),
                "latest_cycle": self._cycles[0].to_dict() if self._cycles else None,
            }

    def start_scheduler(self, interval_hours: float = 6) -> None:
        """
        Start background monitoring.

        Args:
            interval_hours: Hours between cycles
        """
        if self._scheduler_running:
            logger.warning("[MONITOR] Scheduler already running")
            return

        self._scheduler_running = True
        self._interval_hours = interval_hours
        self._schedule_next(interval_hours)
        logger.info(f"[MONITOR] Started with interval={interval_hours}h")

    def stop_scheduler(self) -> None:
        """Stop the background scheduler."""
        self._scheduler_running = False
        if self._scheduler_timer:
            self._scheduler_timer.cancel()
            self._scheduler_timer = None
        logger.info("[MONITOR] Stopped")

    def _schedule_next(self, interval_hours: float) -> None:
        if not self._scheduler_running:
            return

        def run_and_reschedule():
            if not self._scheduler_running:
                return

            try:
                self.run_cycle()
            except Exception as e:
                logger.error(f"[MONITOR] Scheduled cycle failed: {e}")

            self._schedule_next(interval_hours)

        self._scheduler_timer = threading.Timer(interval_hours * 3600, run_and_reschedule)
        self._scheduler_timer.daemon = True
        self._scheduler_timer.start()
