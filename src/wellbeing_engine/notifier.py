"""
Notification and reminder delivery.

HttpNotifier posts to an external notification service. FileNotifier
appends one line per notification to a log file that can be followed with
``tail -f`` during development. Both report delivery with a boolean and
never raise on delivery failure.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from .models import NotificationType, ReminderRequest

logger = logging.getLogger(__name__)

# Message content per notification kind
NOTIFICATION_CONTENT = {
    NotificationType.STRESS_DETECTED: {
        "title": "High stress detected",
        "message": "Take 5 minutes for a breathing meditation to settle your mind.",
        "priority": "high",
        "category": "stress_alert",
    },
    NotificationType.MOOD_LOW: {
        "title": "Need a mood boost?",
        "message": "Try a loving-kindness meditation. Self-compassion matters.",
        "priority": "medium",
        "category": "mood_check",
    },
    NotificationType.ENERGY_LOW: {
        "title": "Energy running low?",
        "message": "Energizing breath work can restore your energy in 10 minutes.",
        "priority": "medium",
        "category": "mood_check",
    },
    NotificationType.ANXIETY_HIGH: {
        "title": "Anxiety running high?",
        "message": "A body scan meditation can help calm the nervous system.",
        "priority": "high",
        "category": "stress_alert",
    },
}


def build_notification(
    user_id: str, notification_type: NotificationType, sent_at: Optional[datetime] = None
) -> Dict[str, Any]:
    notification_type = NotificationType(notification_type)
    content = NOTIFICATION_CONTENT[notification_type]
    return {
        "user_id": user_id,
        "type": notification_type.value,
        "title": content["title"],
        "message": content["message"],
        "priority": content["priority"],
        "category": content["category"],
        "sent_at": (sent_at or datetime.now(timezone.utc)).isoformat(),
    }


class HttpNotifier:
    """Delivers notifications and reminders to an HTTP notification service."""

    def __init__(self, base_url: str, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def notify(self, user_id: str, notification_type: NotificationType) -> bool:
        payload = build_notification(user_id, notification_type)
        return self._post("/notifications", payload, f"{payload['type']} for {user_id}")

    def create_reminder(self, user_id: str, reminder: ReminderRequest) -> bool:
        payload = {"user_id": user_id, **reminder.to_dict()}
        return self._post("/reminders", payload, f"reminder {reminder.optimal_time} for {user_id}")

    def _post(self, path: str, payload: Dict[str, Any], label: str) -> bool:
        try:
            response = httpx.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)

            if response.status_code in (200, 201, 202):
                logger.info(f"[NOTIFY] Delivered {label}")
                return True
            else:
                logger.warning(f"[NOTIFY] Status {response.status_code} for {label}: {response.text}")
                return False

        except httpx.ConnectError:
            logger.warning(f"[NOTIFY] Notification service not available at {self.base_url}")
            return False
        except Exception as e:
            logger.error(f"[NOTIFY] Failed to deliver {label}: {e}")
            return False


class FileNotifier:
    """Appends notifications and reminders to a log file."""

    def __init__(self, path: str):
        self.path = path

    def notify(self, user_id: str, notification_type: NotificationType) -> bool:
        notification = build_notification(user_id, notification_type)
        line = (
            f"[{notification['sent_at']}] [{notification['priority'].upper()}] "
            f"{user_id} {notification['type']}: {notification['title']} - "
            f"{notification['message']}\n"
        )
        return self._append(line)

    def create_reminder(self, user_id: str, reminder: ReminderRequest) -> bool:
        line = (
            f"[{datetime.now(timezone.utc).isoformat()}] [REMINDER] {user_id} "
            f"daily at {reminder.optimal_time}: {reminder.preferred_technique} "
            f"(confidence {reminder.confidence:.2f})\n"
        )
        return self._append(line)

    def _append(self, line: str) -> bool:
        try:
            with open(self.path, "a") as f:
                f.write(line)
            logger.info(f"[NOTIFY] Written to {self.path}")
            return True
        except IOError as e:
            logger.error(f"[NOTIFY] Failed to write to {self.path}: {e}")
            return False
