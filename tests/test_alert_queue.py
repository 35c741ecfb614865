"""
Unit tests for the real-time wellbeing event queue.

These tests verify:
1. Published events are kept in a bounded history, newest first
2. Subscribers receive recent history and then live events
3. Subscribers that cannot keep up are dropped
4. Publishers build events from engine records
5. QueueNotifier streams only delivered notifications

Usage:
    pytest tests/test_alert_queue.py -v
"""
import asyncio
from unittest.mock import MagicMock

import pytest

from server.wellbeing_api.services.alert_queue import (
    AlertQueue,
    EventType,
    QueueNotifier,
    StreamEvent,
    publish_alert_created,
    publish_intervention_created,
    publish_notification_sent,
    publish_schedule_adapted,
)
from wellbeing_engine.models import InterventionContext, Level, NotificationType, ReminderRequest


@pytest.fixture
def queue():
    return AlertQueue(max_history=5)


def make_event(title="Test", event_type=EventType.ALERT_CREATED):
    return StreamEvent(event_type=event_type, user_id="user-1", title=title, message="Testing")


# ============================================================================
# Queue
# ============================================================================


class TestAlertQueue:
    """Test publishing, history and stats."""

    def test_event_to_dict_omits_empty_context(self):
        data = make_event().to_dict()

        assert data["event_type"] == "alert_created"
        assert data["severity"] == "info"
        assert "alert_id" not in data
        assert "data" not in data

    def test_history_newest_first(self, queue):
        for i in range(3):
            queue.publish(make_event(title=f"event-{i}"))

        assert [e.title for e in queue.get_history()] == ["event-2", "event-1", "event-0"]
        assert [e.title for e in queue.get_history(count=1)] == ["event-2"]

    def test_history_bounded(self, queue):
        for i in range(8):
            queue.publish(make_event(title=f"event-{i}"))

        assert len(queue.get_history()) == 5
        assert queue.get_stats()["total_published"] == 8

    def test_stats_by_type(self, queue):
        queue.publish(make_event())
        queue.publish(make_event(event_type=EventType.SCHEDULE_ADAPTED))
        queue.publish(make_event(event_type=EventType.SCHEDULE_ADAPTED))

        stats = queue.get_stats()
        assert stats["events_by_type"] == {"alert_created": 1, "schedule_adapted": 2}
        assert stats["current_subscribers"] == 0
        assert stats["history_size"] == 3

    def test_clear_history(self, queue):
        queue.publish(make_event())
        queue.clear_history()

        assert queue.get_history() == []
        assert queue.get_stats()["total_published"] == 1


class TestSubscribe:
    """Test async subscribers."""

    @pytest.mark.asyncio
    async def test_history_then_live(self, queue):
        for i in range(3):
            queue.publish(make_event(title=f"event-{i}"))

        stream = queue.subscribe(history_count=2)
        first = await stream.__anext__()
        second = await stream.__anext__()
        queue.publish(make_event(title="live"))
        third = await asyncio.wait_for(stream.__anext__(), timeout=1.0)

        assert [first.title, second.title, third.title] == ["event-1", "event-2", "live"]
        assert queue.get_stats()["current_subscribers"] == 1

        await stream.aclose()
        assert queue.get_stats()["current_subscribers"] == 0

    @pytest.mark.asyncio
    async def test_without_history(self, queue):
        queue.publish(make_event(title="old"))

        stream = queue.subscribe(include_history=False)

        async def next_event():
            return await stream.__anext__()

        pending = asyncio.create_task(next_event())
        await asyncio.sleep(0)
        queue.publish(make_event(title="new"))
        event = await asyncio.wait_for(pending, timeout=1.0)

        assert event.title == "new"
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_slow_subscriber_dropped(self):
        """A subscriber whose buffer is full should be removed."""
        queue = AlertQueue(max_history=200)
        queue.publish(make_event(title="first"))
        stream = queue.subscribe(history_count=1)
        await stream.__anext__()

        for i in range(101):
            queue.publish(make_event(title=f"flood-{i}"))

        assert queue.get_stats()["current_subscribers"] == 0
        await stream.aclose()


# ============================================================================
# Publishers
# ============================================================================


class TestPublishers:
    """Test events built from engine records."""

    def test_alert_created(self, queue, engine, store, make_mood):
        store.add_mood_entry(make_mood(stress=5))
        alert = engine.monitor_stress_patterns("user-1")[0]

        event = publish_alert_created(alert, queue)

        assert event.title == "Alert: Stress Spike"
        assert event.severity == "high"
        assert event.alert_id == alert.id
        assert event.data["notification_sent"] is True
        assert queue.get_history()[0] is event

    def test_notification_sent(self, queue):
        event = publish_notification_sent("user-1", "mood_low", queue)

        assert event.event_type == EventType.NOTIFICATION_SENT
        assert event.title == "Need a mood boost?"
        assert event.severity == "medium"
        assert event.data == {"type": "mood_low", "category": "mood_check"}

    def test_schedule_adapted(self, queue, engine):
        schedule = engine.create_smart_schedule("user-1")

        event = publish_schedule_adapted(schedule, ["06:00"], queue)

        assert event.schedule_id == schedule.id
        assert event.message == "Practice times moved from 06:00 to 07:00, 12:00, 19:00"
        assert event.data["current"] == ["07:00", "12:00", "19:00"]

    def test_intervention_created(self, queue, engine):
        record = engine.create_contextual_intervention("user-1", InterventionContext.LOW_MOOD, Level.HIGH)

        event = publish_intervention_created(record, queue)

        assert event.title == "Intervention: Low Mood"
        assert event.severity == "high"
        assert event.intervention_id == record.id
        assert event.message == "; ".join(record.intervention.immediate)


class TestQueueNotifier:
    """Test the streaming notifier wrapper."""

    def test_delivered_notification_streamed(self, queue):
        delegate = MagicMock()
        delegate.notify.return_value = True

        assert QueueNotifier(delegate, queue).notify("user-1", NotificationType.ANXIETY_HIGH) is True

        history = queue.get_history()
        assert len(history) == 1
        assert history[0].data["type"] == "anxiety_high"

    def test_undelivered_notification_not_streamed(self, queue):
        delegate = MagicMock()
        delegate.notify.return_value = False

        assert QueueNotifier(delegate, queue).notify("user-1", NotificationType.ANXIETY_HIGH) is False
        assert queue.get_history() == []

    def test_reminders_forwarded(self, queue):
        delegate = MagicMock()
        delegate.create_reminder.return_value = True
        reminder = ReminderRequest(optimal_time="07:00", confidence=0.5, preferred_technique="mindfulness")

        assert QueueNotifier(delegate, queue).create_reminder("user-1", reminder) is True
        delegate.create_reminder.assert_called_once_with("user-1", reminder)
        assert queue.get_history() == []
