"""
Wellbeing Engine facade.

Wires the analyzers, schedule manager, forecaster and alert generator to
the injected collaborators. Each public method is an independent per-user
operation: it reads history, computes, and writes its own records.

Usage:
    engine = WellbeingEngine(history=store, store=store, notifier=notifier)
    slots = engine.analyze_optimal_times("user-1")
    alerts = engine.monitor_stress_patterns("user-1")
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .alert_generator import (
    CONTEXT_NOTIFICATION,
    AlertGenerator,
    design_intervention,
    select_mood_alert_type,
    should_alert_mood,
    should_alert_stress,
)
from .circadian import CircadianEstimator
from .collaborators import (
    HistoryReader,
    InterventionNotifier,
    ReminderScheduler,
    WellbeingStore,
)
from .errors import InsufficientDataError
from .forecaster import ForecastResult, PredictiveForecaster
from .insights import (
    EmotionalState,
    InsightGenerator,
    InsightPeriod,
    WellbeingInsight,
    detect_emotional_state,
    dynamic_recommendations,
)
from .lifestyle import LifestyleEstimator
from .models import (
    AlertType,
    ContextualAlert,
    InterventionContext,
    InterventionRecord,
    Level,
    OptimalTimeSlot,
    SchedulePreferences,
    ScheduleRecommendation,
    SmartSchedule,
    utc_now,
)
from .pattern_analyzer import PatternAnalyzer
from .schedule_manager import ScheduleManager, SchedulePerformance
from .schedule_optimizer import ScheduleOptimizer
from .time_effectiveness import TimeEffectivenessAnalyzer

logger = logging.getLogger(__name__)


def validate_rating(value: int, name: str = "rating") -> int:
    """Ratings are whole numbers from 1 to 5."""
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise ValueError(f"{name} must be an integer between 1 and 5, got {value!r}")
    return value


class WellbeingEngine:
    """
    Adaptive monitoring and scheduling for a single meditation app backend.

    History limits per operation mirror how much context each analysis
    needs: stress monitoring looks at the last 10 sessions and 20
    check-ins, schedule adaptation at the last 30 sessions.
    """

    OPTIMAL_TIMES_SESSIONS = 100
    MIN_SESSIONS_FOR_ANALYSIS = 5
    STRESS_SESSIONS = 10
    STRESS_MOODS = 20
    MOOD_ENTRIES = 30
    ADAPT_SESSIONS = 30
    FORECAST_SESSIONS = 50
    FORECAST_MOODS = 30
    RECOMMENDATION_MOODS = 7
    EMOTION_SESSIONS = 5
    INSIGHT_HISTORY = 100

    def __init__(
        self,
        history: HistoryReader,
        store: WellbeingStore,
        notifier: InterventionNotifier,
        reminders: Optional[ReminderScheduler] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the engine.

        Args:
            history: Source of sessions and mood check-ins
            store: Persistence for derived records
            notifier: Delivery of user notifications
            reminders: Optional reminder registration for new schedules
            clock: Returns the current time (defaults to UTC now)
        """
        self.history = history
        self.store = store
        self.notifier = notifier
        self.clock = clock or utc_now

        self.time_analyzer = TimeEffectivenessAnalyzer()
        self.circadian = CircadianEstimator()
        self.lifestyle = LifestyleEstimator()
        self.patterns = PatternAnalyzer()
        self.optimizer = ScheduleOptimizer()
        self.schedules = ScheduleManager(store, reminders)
        self.forecaster = PredictiveForecaster()
        self.insights = InsightGenerator(self.patterns)
        self.alerts = AlertGenerator(store, notifier)

    # ========================================================================
    # Scheduling
    # ========================================================================

    def analyze_optimal_times(self, user_id: str) -> List[OptimalTimeSlot]:
        """
        Rank the best practice times for a user and persist them.

        With fewer than five sessions the fixed defaults are returned and
        nothing is persisted.
        """
        now = self.clock()
        sessions = self.history.get_sessions(user_id, self.OPTIMAL_TIMES_SESSIONS)

        if len(sessions) < self.MIN_SESSIONS_FOR_ANALYSIS:
            logger.info(
                f"[SCHEDULE] {user_id} has {len(sessions)} sessions, using default slots"
            )
            return self.optimizer.default_time_slots(user_id, now)

        slots = self.optimizer.calculate_optimal_time_slots(
            self.time_analyzer.analyze_time_effectiveness(sessions),
            self.circadian.estimate_circadian_rhythm(user_id, sessions, now),
            self.lifestyle.estimate_lifestyle(user_id, sessions),
            now,
        )
        self.store.save_time_slots(user_id, slots)
        return slots

    def create_smart_schedule(
        self, user_id: str, preferences: Optional[SchedulePreferences] = None
    ) -> SmartSchedule:
        slots = self.analyze_optimal_times(user_id)
        return self.schedules.create_smart_schedule(
            user_id, preferences or SchedulePreferences(), slots, self.clock()
        )

    def analyze_schedule_performance(self, user_id: str) -> Optional[SchedulePerformance]:
        schedule = self.store.get_active_schedule(user_id)
        if schedule is None:
            return None
        sessions = self.history.get_sessions(user_id, self.ADAPT_SESSIONS)
        return self.schedules.analyze_schedule_performance(schedule, sessions)

    def adapt_schedule_based_on_performance(self, user_id: str) -> Optional[SmartSchedule]:
        """
        Re-optimize the active schedule when recent practice drifts from it.

        Returns:
            The adapted or unchanged schedule, or None when the user has no
            schedule
        """
        schedule = self.store.get_active_schedule(user_id)
        if schedule is None:
            return None

        sessions = self.history.get_sessions(user_id, self.ADAPT_SESSIONS)
        performance = self.schedules.analyze_schedule_performance(schedule, sessions)

        if not performance.needs_adjustment:
            logger.debug(
                f"[SCHEDULE] Schedule {schedule.id} on track: "
                f"adherence={performance.adherence_rate:.0f}%"
            )
            return schedule

        logger.info(
            f"[SCHEDULE] Adapting schedule {schedule.id}: "
            f"{', '.join(performance.adjustment_reasons)}"
        )
        slots = self.analyze_optimal_times(user_id)
        return self.schedules.adjust_schedule(schedule, slots, self.clock())

    def update_schedule_effectiveness(self, schedule_id: str) -> Optional[SmartSchedule]:
        schedule = self.store.get_schedule(schedule_id)
        if schedule is None:
            return None
        sessions = self.history.get_sessions(schedule.user_id, self.ADAPT_SESSIONS)
        return self.schedules.update_schedule_effectiveness(schedule, sessions, self.clock())

    def predict_optimal_schedule(self, user_id: str, days_ahead: int = 7) -> ForecastResult:
        if days_ahead < 1:
            raise ValueError(f"days_ahead must be positive, got {days_ahead}")

        sessions = self.history.get_sessions(user_id, self.FORECAST_SESSIONS)
        moods = self.history.get_mood_entries(user_id, self.FORECAST_MOODS)
        schedule = self.store.get_active_schedule(user_id)

        return self.forecaster.predict_optimal_schedule(
            sessions, moods, schedule, self.clock(), days_ahead
        )

    def generate_dynamic_recommendations(self, user_id: str) -> List[ScheduleRecommendation]:
        schedule = self.store.get_active_schedule(user_id)
        moods = self.history.get_mood_entries(user_id, self.RECOMMENDATION_MOODS)
        state = self.detect_emotional_state(user_id)
        return dynamic_recommendations(state, schedule, moods, self.clock())

    # ========================================================================
    # Monitoring
    # ========================================================================

    def monitor_stress_patterns(self, user_id: str) -> List[ContextualAlert]:
        """
        Check for acute and chronic stress and raise alerts.

        Both detectors run on every pass and may both raise an alert.
        """
        now = self.clock()
        sessions = self.history.get_sessions(user_id, self.STRESS_SESSIONS)
        moods = self.history.get_mood_entries(user_id, self.STRESS_MOODS)

        alerts: List[ContextualAlert] = []

        acute = self.patterns.analyze_stress_levels(sessions, moods, now)
        if acute is not None and should_alert_stress(acute):
            alerts.append(self.alerts.create_alert(user_id, AlertType.STRESS_SPIKE, acute, now))

        chronic = self.patterns.detect_chronic_stress(moods, now)
        if chronic is not None:
            alerts.append(self.alerts.create_alert(user_id, AlertType.STRESS_SPIKE, chronic, now))

        return alerts

    def monitor_mood_patterns(self, user_id: str) -> List[ContextualAlert]:
        """Check the mood trend and the sustained-low sweep and raise alerts."""
        now = self.clock()
        moods = self.history.get_mood_entries(user_id, self.MOOD_ENTRIES)

        try:
            trend = self.patterns.analyze_mood_trends(moods, now)
        except InsufficientDataError as e:
            logger.debug(f"[PATTERNS] Skipping mood monitoring for {user_id}: {e}")
            return []

        alerts: List[ContextualAlert] = []
        if should_alert_mood(trend):
            alert_type = select_mood_alert_type(trend)
            alerts.append(self.alerts.create_alert(user_id, alert_type, trend, now))

        for pattern in self.patterns.detect_concerning_mood_patterns(moods, now):
            alerts.append(self.alerts.create_alert(user_id, AlertType.MOOD_DECLINE, pattern, now))

        return alerts

    def record_alert_response(self, alert_id: str, effectiveness: int) -> bool:
        validate_rating(effectiveness, "effectiveness")
        recorded = self.store.record_alert_response(alert_id, effectiveness)
        if recorded:
            logger.info(f"[ALERTS] Alert {alert_id} rated {effectiveness}/5")
        return recorded

    # ========================================================================
    # Insights and interventions
    # ========================================================================

    def detect_emotional_state(self, user_id: str) -> EmotionalState:
        moods = self.history.get_mood_entries(user_id, 1)
        sessions = self.history.get_sessions(user_id, self.EMOTION_SESSIONS)
        return detect_emotional_state(moods[0] if moods else None, sessions)

    def generate_wellbeing_insights(
        self, user_id: str, period: InsightPeriod = InsightPeriod.WEEKLY
    ) -> WellbeingInsight:
        sessions = self.history.get_sessions(user_id, self.INSIGHT_HISTORY)
        moods = self.history.get_mood_entries(user_id, self.INSIGHT_HISTORY)
        return self.insights.generate_wellbeing_insights(
            user_id, InsightPeriod(period), sessions, moods, self.clock()
        )

    def create_contextual_intervention(
        self,
        user_id: str,
        context: InterventionContext,
        urgency: Level = Level.MEDIUM,
    ) -> InterventionRecord:
        """Record an intervention for the user and notify them about it."""
        context = InterventionContext(context)
        record = InterventionRecord(
            user_id=user_id,
            context=context,
            urgency=Level(urgency),
            intervention=design_intervention(context),
            created_at=self.clock(),
        )
        record.id = self.store.save_intervention(record)
        logger.info(
            f"[ALERTS] Intervention {record.id} ({context.value}, {record.urgency.value}) for {user_id}"
        )

        notification_type = CONTEXT_NOTIFICATION[context]
        try:
            if not self.notifier.notify(user_id, notification_type):
                logger.warning(f"[ALERTS] Intervention notice for {user_id} was not delivered")
        except Exception as e:
            logger.warning(f"[ALERTS] Intervention notice for {user_id} failed: {e}")

        return record

    def track_intervention_effectiveness(
        self, intervention_id: str, feedback: Dict[str, Any]
    ) -> bool:
        """
        Attach user feedback to an intervention.

        Args:
            intervention_id: Id returned by create_contextual_intervention
            feedback: ``helpful``, ``rating`` (1-5), ``followed_suggestion``
                and optional ``additional_notes``

        Raises:
            ValueError: If the rating is missing or outside 1-5
        """
        validate_rating(feedback.get("rating"))
        recorded = self.store.record_intervention_feedback(intervention_id, dict(feedback))
        if recorded:
            logger.info(
                f"[ALERTS] Intervention {intervention_id} feedback: "
                f"rating={feedback['rating']}, helpful={feedback.get('helpful')}"
            )
        else:
            logger.warning(f"[ALERTS] Unknown intervention {intervention_id}")
        return recorded
