"""
Contextual alert generation.

Gates, severity thresholds, intervention suggestions and notification
kinds are kept as lookup tables so they can be tuned independently of the
detectors.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from .collaborators import InterventionNotifier, WellbeingStore
from .models import (
    AlertSeverity,
    AlertType,
    ContextualAlert,
    InterventionContext,
    InterventionPlan,
    MoodPattern,
    MoodTrend,
    NotificationType,
    Pattern,
    StressPattern,
    StressSeverity,
    ensure_timezone_aware,
)

logger = logging.getLogger(__name__)


# A stress pattern becomes an alert at level 4 or high/severe severity
STRESS_ALERT_LEVEL = 4
STRESS_ALERT_SEVERITIES = {StressSeverity.HIGH, StressSeverity.SEVERE}

# A mood pattern becomes an alert on low overall, a declining trend or high anxiety
MOOD_ALERT_OVERALL = 2
MOOD_ALERT_ANXIETY = 4

# First matching rule picks the alert type for a mood pattern
MOOD_ALERT_TYPES: List[Tuple[Callable[[MoodPattern], bool], AlertType]] = [
    (lambda p: p.mood_state.anxiety >= 4, AlertType.ANXIETY_PEAK),
    (lambda p: p.mood_state.energy <= 2, AlertType.ENERGY_CRASH),
    (lambda p: p.mood_state.focus <= 2, AlertType.FOCUS_DROP),
]

# Alert type -> (pattern measure, threshold test, severity when it holds)
SEVERITY_RULES: Dict[AlertType, Tuple[Callable[[Pattern], Optional[float]], Callable[[float], bool], AlertSeverity]] = {
    AlertType.ANXIETY_PEAK: (
        lambda p: p.mood_state.anxiety if isinstance(p, MoodPattern) else None,
        lambda v: v >= 4.5,
        AlertSeverity.CRITICAL,
    ),
    AlertType.STRESS_SPIKE: (
        lambda p: p.stress_level if isinstance(p, StressPattern) else None,
        lambda v: v >= 4.5,
        AlertSeverity.HIGH,
    ),
    AlertType.MOOD_DECLINE: (
        lambda p: p.mood_state.overall if isinstance(p, MoodPattern) else None,
        lambda v: v <= 1.5,
        AlertSeverity.HIGH,
    ),
    AlertType.ENERGY_CRASH: (
        lambda p: p.mood_state.energy if isinstance(p, MoodPattern) else None,
        lambda v: v <= 1.5,
        AlertSeverity.MEDIUM,
    ),
}

ALERT_CONTEXT: Dict[AlertType, InterventionContext] = {
    AlertType.STRESS_SPIKE: InterventionContext.HIGH_STRESS,
    AlertType.MOOD_DECLINE: InterventionContext.LOW_MOOD,
    AlertType.ANXIETY_PEAK: InterventionContext.ANXIETY_SPIKE,
    AlertType.ENERGY_CRASH: InterventionContext.FATIGUE,
    AlertType.FOCUS_DROP: InterventionContext.FATIGUE,
}

ALERT_NOTIFICATION: Dict[AlertType, NotificationType] = {
    AlertType.STRESS_SPIKE: NotificationType.STRESS_DETECTED,
    AlertType.MOOD_DECLINE: NotificationType.MOOD_LOW,
    AlertType.ANXIETY_PEAK: NotificationType.ANXIETY_HIGH,
    AlertType.ENERGY_CRASH: NotificationType.ENERGY_LOW,
    AlertType.FOCUS_DROP: NotificationType.ENERGY_LOW,
}

CONTEXT_NOTIFICATION: Dict[InterventionContext, NotificationType] = {
    InterventionContext.HIGH_STRESS: NotificationType.STRESS_DETECTED,
    InterventionContext.LOW_MOOD: NotificationType.MOOD_LOW,
    InterventionContext.ANXIETY_SPIKE: NotificationType.ANXIETY_HIGH,
    InterventionContext.FATIGUE: NotificationType.ENERGY_LOW,
}

INTERVENTION_LIBRARY: Dict[InterventionContext, Dict[str, List[str]]] = {
    InterventionContext.HIGH_STRESS: {
        "immediate": [
            "4-7-8 breathing technique (inhale 4, hold 7, exhale 8)",
            "Progressive muscle relaxation from feet to head",
            "Mindful walking for 5 minutes somewhere quiet",
        ],
        "short_term": [
            "Daily 15-minute stress-relief meditation",
            "Body scan meditation before sleep",
            "Mindfulness breaks every 2 hours",
        ],
        "long_term": [
            "Explore stress management techniques",
            "Build stronger meditation habit",
            "Consider professional support if needed",
        ],
    },
    InterventionContext.LOW_MOOD: {
        "immediate": [
            "Loving-kindness meditation for yourself",
            "Gratitude practice: write down 3 things you are grateful for",
            "Gentle movement or mindful stretching",
        ],
        "short_term": [
            "Daily compassion meditation",
            "Connect with the people you care about",
            "Journaling for emotional processing",
        ],
        "long_term": [
            "Build support network",
            "Explore creative outlets",
            "Consider counseling if mood persists",
        ],
    },
    InterventionContext.ANXIETY_SPIKE: {
        "immediate": [
            "Grounding technique: 5 things you see, 4 you hear, 3 you touch",
            "Deep breathing with the exhale longer than the inhale",
            "Mindful observation of present moment",
        ],
        "short_term": [
            "Regular anxiety-relief meditation",
            "Build mindfulness throughout daily activities",
            "Create calming bedtime routine",
        ],
        "long_term": [
            "Learn anxiety management strategies",
            "Build resilience through consistent practice",
            "Professional support for persistent anxiety",
        ],
    },
    InterventionContext.FATIGUE: {
        "immediate": [
            "Energizing breath work (kapalabhati or bellows breath)",
            "Mindful stretching to wake up the body",
            "Brief walking meditation outdoors",
        ],
        "short_term": [
            "Morning meditation routine for energy boost",
            "Midday energy restoration practice",
            "Better sleep hygiene with evening wind-down",
        ],
        "long_term": [
            "Optimize daily energy through meditation",
            "Balance activity and rest mindfully",
            "Address underlying fatigue causes",
        ],
    },
}

NOTIFY_SEVERITIES = {AlertSeverity.HIGH, AlertSeverity.CRITICAL}


def should_alert_stress(pattern: StressPattern) -> bool:
    return (
        pattern.stress_level >= STRESS_ALERT_LEVEL
        or pattern.severity in STRESS_ALERT_SEVERITIES
    )


def should_alert_mood(pattern: MoodPattern) -> bool:
    return (
        pattern.mood_state.overall <= MOOD_ALERT_OVERALL
        or pattern.trend == MoodTrend.DECLINING
        or pattern.mood_state.anxiety >= MOOD_ALERT_ANXIETY
    )


def select_mood_alert_type(pattern: MoodPattern) -> AlertType:
    for matches, alert_type in MOOD_ALERT_TYPES:
        if matches(pattern):
            return alert_type
    return AlertType.MOOD_DECLINE


def determine_alert_severity(alert_type: AlertType, pattern: Pattern) -> AlertSeverity:
    rule = SEVERITY_RULES.get(alert_type)
    if rule is None:
        return AlertSeverity.LOW
    measure, holds, severity = rule
    value = measure(pattern)
    if value is not None and holds(value):
        return severity
    return AlertSeverity.LOW


def design_intervention(context: InterventionContext) -> InterventionPlan:
    entry = INTERVENTION_LIBRARY.get(context, INTERVENTION_LIBRARY[InterventionContext.HIGH_STRESS])
    return InterventionPlan(
        immediate=list(entry["immediate"]),
        short_term=list(entry["short_term"]),
        long_term=list(entry["long_term"]),
    )


class AlertGenerator:
    """
    Builds, persists and dispatches contextual alerts.

    Persistence failures propagate so the analysis run aborts instead of
    losing an alert. Notification failures are logged and leave the stored
    alert with ``notification_sent = False``.
    """

    def __init__(self, store: WellbeingStore, notifier: InterventionNotifier):
        self.store = store
        self.notifier = notifier

    def create_alert(
        self,
        user_id: str,
        alert_type: AlertType,
        pattern: Pattern,
        now: Optional[datetime] = None,
    ) -> ContextualAlert:
        severity = determine_alert_severity(alert_type, pattern)
        alert = ContextualAlert(
            user_id=user_id,
            type=alert_type,
            severity=severity,
            pattern=pattern,
            intervention_suggested=design_intervention(ALERT_CONTEXT[alert_type]),
            detected_at=ensure_timezone_aware(now),
        )

        alert.id = self.store.save_alert(alert)
        logger.info(
            f"[ALERTS] Created {alert_type.value} alert {alert.id} "
            f"for {user_id} (severity={severity.value})"
        )

        if severity in NOTIFY_SEVERITIES:
            self._dispatch(alert)

        return alert

    def _dispatch(self, alert: ContextualAlert) -> None:
        notification_type = ALERT_NOTIFICATION[alert.type]
        try:
            delivered = self.notifier.notify(alert.user_id, notification_type)
        except Exception as e:
            logger.warning(
                f"[ALERTS] Notification {notification_type.value} for alert "
                f"{alert.id} failed: {e}"
            )
            return

        if delivered:
            self.store.mark_alert_notified(alert.id)
            alert.notification_sent = True
            logger.info(f"[ALERTS] Notified {alert.user_id}: {notification_type.value}")
        else:
            logger.warning(
                f"[ALERTS] Notification {notification_type.value} for alert "
                f"{alert.id} was not delivered"
            )
