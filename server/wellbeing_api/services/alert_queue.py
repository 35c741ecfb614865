"""Thread-safe in-memory event queue for real-time wellbeing notifications.

This module provides a publish-subscribe mechanism for contextual alerts,
delivered notifications, schedule adaptations and interventions that can be
streamed to connected clients via SSE.
"""
import asyncio
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, AsyncIterator, Optional

from wellbeing_engine.models import (
    ContextualAlert,
    InterventionRecord,
    NotificationType,
    ReminderRequest,
    SmartSchedule,
)
from wellbeing_engine.notifier import NOTIFICATION_CONTENT


class EventType(str, Enum):
    """Types of streamed wellbeing events."""
    ALERT_CREATED = "alert_created"
    NOTIFICATION_SENT = "notification_sent"
    SCHEDULE_ADAPTED = "schedule_adapted"
    INTERVENTION_CREATED = "intervention_created"


@dataclass
class StreamEvent:
    """Real-time event raised by the engine or the monitor scheduler."""

    event_type: EventType
    user_id: str
    title: str
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    severity: str = "info"  # info, low, medium, high, critical

    # Additional context for specific event types
    alert_id: Optional[str] = None
    schedule_id: Optional[str] = None
    intervention_id: Optional[str] = None
    data: Optional[dict] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "id": self.id,
            "event_type": self.event_type.value,
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "severity": self.severity,
        }

        if self.alert_id:
            result["alert_id"] = self.alert_id
        if self.schedule_id:
            result["schedule_id"] = self.schedule_id
        if self.intervention_id:
            result["intervention_id"] = self.intervention_id
        if self.data:
            result["data"] = self.data

        return result


class AlertQueue:
    """Thread-safe in-memory queue for real-time wellbeing events.

    Supports multiple SSE subscribers and maintains a history buffer
    for new connections to catch up on recent events.
    """

    def __init__(self, max_history: int = 100):
        """Initialize the event queue.

        Args:
            max_history: Maximum number of events to keep in history buffer.
        """
        self._history: deque[StreamEvent] = deque(maxlen=max_history)
        self._subscribers: list[asyncio.Queue] = []
        self._lock = threading.Lock()
        self._stats = {
            "total_published": 0,
            "total_subscribers": 0,
            "events_by_type": {},
        }

    def publish(self, event: StreamEvent) -> None:
        """Publish an event to all subscribers.

        Thread-safe method that can be called from any thread.
        """
        with self._lock:
            self._history.append(event)

            self._stats["total_published"] += 1
            event_type = event.event_type.value
            self._stats["events_by_type"][event_type] = \
                self._stats["events_by_type"].get(event_type, 0) + 1

            # Subscribers that cannot keep up are dropped
            dead_subscribers = []
            for queue in self._subscribers:
                try:
                    queue.put_nowait(event)
                except asyncio.QueueFull:
                    dead_subscribers.append(queue)

            for queue in dead_subscribers:
                self._subscribers.remove(queue)

    async def subscribe(
        self,
        include_history: bool = True,
        history_count: int = 10
    ) -> AsyncIterator[StreamEvent]:
        """Subscribe to real-time events via async generator.

        Args:
            include_history: Whether to yield recent events first.
            history_count: Number of recent events to include from history.

        Yields:
            StreamEvent objects as they arrive.
        """
        queue: asyncio.Queue[StreamEvent] = asyncio.Queue(maxsize=100)

        with self._lock:
            self._subscribers.append(queue)
            self._stats["total_subscribers"] += 1

            if include_history and history_count > 0:
                for event in list(self._history)[-history_count:]:
                    queue.put_nowait(event)

        try:
            while True:
                event = await queue.get()
                yield event
        finally:
            with self._lock:
                if queue in self._subscribers:
                    self._subscribers.remove(queue)

    def get_history(self, count: int = 50) -> list[StreamEvent]:
        """Get recent events from history, newest first."""
        with self._lock:
            return list(self._history)[-count:][::-1]

    def get_stats(self) -> dict:
        with self._lock:
            return {
                **self._stats,
                "events_by_type": dict(self._stats["events_by_type"]),
                "current_subscribers": len(self._subscribers),
                "history_size": len(self._history),
            }

    def clear_history(self) -> None:
        """Clear the event history buffer."""
        with self._lock:
            self._history.clear()


# Global singleton instance
alert_queue = AlertQueue()


# Convenience functions for publishing specific event types

def publish_alert_created(alert: ContextualAlert, queue: Optional[AlertQueue] = None) -> StreamEvent:
    """Publish a newly stored contextual alert.

    Args:
        alert: The stored alert
        queue: Target queue (defaults to the global queue)

    Returns:
        The published StreamEvent
    """
    label = alert.type.value.replace("_", " ")
    event = StreamEvent(
        event_type=EventType.ALERT_CREATED,
        user_id=alert.user_id,
        title=f"Alert: {label.title()}",
        message=f"{alert.severity.value.capitalize()} {label} detected",
        severity=alert.severity.value,
        alert_id=alert.id,
        data={
            "notification_sent": alert.notification_sent,
            "immediate": list(alert.intervention_suggested.immediate),
        },
    )
    (queue or alert_queue).publish(event)
    return event


def publish_notification_sent(
    user_id: str, notification_type: NotificationType, queue: Optional[AlertQueue] = None
) -> StreamEvent:
    """Publish a notification that was delivered to a user."""
    notification_type = NotificationType(notification_type)
    content = NOTIFICATION_CONTENT[notification_type]
    event = StreamEvent(
        event_type=EventType.NOTIFICATION_SENT,
        user_id=user_id,
        title=content["title"],
        message=content["message"],
        severity=content["priority"],
        data={"type": notification_type.value, "category": content["category"]},
    )
    (queue or alert_queue).publish(event)
    return event


def publish_schedule_adapted(
    schedule: SmartSchedule, previous_times: list[str], queue: Optional[AlertQueue] = None
) -> StreamEvent:
    """Publish a schedule whose time slots were replaced."""
    event = StreamEvent(
        event_type=EventType.SCHEDULE_ADAPTED,
        user_id=schedule.user_id,
        title="Schedule Adapted",
        message=f"Practice times moved from {', '.join(previous_times) or 'none'} "
                f"to {', '.join(schedule.slot_times)}",
        schedule_id=schedule.id,
        data={"previous": list(previous_times), "current": schedule.slot_times},
    )
    (queue or alert_queue).publish(event)
    return event


def publish_intervention_created(
    record: InterventionRecord, queue: Optional[AlertQueue] = None
) -> StreamEvent:
    """Publish a newly recorded intervention."""
    event = StreamEvent(
        event_type=EventType.INTERVENTION_CREATED,
        user_id=record.user_id,
        title=f"Intervention: {record.context.value.replace('_', ' ').title()}",
        message="; ".join(record.intervention.immediate),
        severity=record.urgency.value,
        intervention_id=record.id,
    )
    (queue or alert_queue).publish(event)
    return event


class QueueNotifier:
    """Delivers through another notifier and streams successful deliveries.

    Reminder registration is forwarded unchanged.
    """

    def __init__(self, delegate: Any, queue: Optional[AlertQueue] = None):
        self.delegate = delegate
        self.queue = queue or alert_queue

    def notify(self, user_id: str, notification_type: NotificationType) -> bool:
        delivered = self.delegate.notify(user_id, notification_type)
        if delivered:
            publish_notification_sent(user_id, notification_type, self.queue)
        return delivered

    def create_reminder(self, user_id: str, reminder: ReminderRequest) -> bool:
        return self.delegate.create_reminder(user_id, reminder)
