"""Shared service instances for FastAPI dependency injection.

Each provider builds its object once per process. Tests replace them with
``app.dependency_overrides``.
"""
import logging
from functools import lru_cache

from automation import MonitorScheduler
from wellbeing_engine import FileNotifier, HttpNotifier, SQLiteWellbeingStore, WellbeingEngine

from .config import get_settings
from .services.alert_queue import (
    AlertQueue,
    QueueNotifier,
    alert_queue,
    publish_alert_created,
    publish_schedule_adapted,
)

logger = logging.getLogger(__name__)


@lru_cache
def get_store() -> SQLiteWellbeingStore:
    """FastAPI dependency: provides the SQLite store with its schema created."""
    settings = get_settings()
    store = SQLiteWellbeingStore(settings.db_path)
    store.initialize()
    return store


@lru_cache
def get_notifier() -> QueueNotifier:
    """FastAPI dependency: provides the notifier that also feeds the SSE stream."""
    settings = get_settings()
    if settings.notification_url:
        delegate = HttpNotifier(settings.notification_url, timeout=settings.http_timeout)
        logger.info(f"[API] Delivering notifications to {settings.notification_url}")
    else:
        delegate = FileNotifier(settings.notification_path)
        logger.info(f"[API] Writing notifications to {settings.notification_path}")
    return QueueNotifier(delegate, alert_queue)


@lru_cache
def get_engine() -> WellbeingEngine:
    """FastAPI dependency: provides the wellbeing engine."""
    store = get_store()
    notifier = get_notifier()
    return WellbeingEngine(history=store, store=store, notifier=notifier, reminders=notifier)


def get_alert_queue() -> AlertQueue:
    """FastAPI dependency: provides the process-wide event queue."""
    return alert_queue


@lru_cache
def get_monitor() -> MonitorScheduler:
    """FastAPI dependency: provides the background monitor scheduler."""
    return MonitorScheduler(
        get_engine(),
        get_store().list_user_ids,
        on_alert=publish_alert_created,
        on_adapted=publish_schedule_adapted,
    )
