"""
SQLite persistence for wellbeing history and derived records.

One database file holds the recorded sessions and mood check-ins (read
through the HistoryReader methods) alongside the slots, schedules, alerts
and interventions the engine writes. Structured records are stored as JSON
documents next to the columns used for lookup and ordering.
"""

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, List, Optional

from .errors import ScheduleNotFoundError
from .models import (
    ContextualAlert,
    InterventionRecord,
    MeditationSession,
    MoodEntry,
    OptimalTimeSlot,
    SmartSchedule,
    ensure_timezone_aware,
)

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS meditation_sessions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    epoch REAL NOT NULL,
    duration_minutes INTEGER NOT NULL,
    quality INTEGER NOT NULL,
    techniques TEXT NOT NULL DEFAULT '[]',
    mood_before INTEGER,
    mood_after INTEGER,
    stress_level INTEGER
);
CREATE INDEX IF NOT EXISTS idx_sessions_user ON meditation_sessions (user_id, epoch);

CREATE TABLE IF NOT EXISTS mood_entries (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    epoch REAL NOT NULL,
    overall INTEGER NOT NULL,
    energy INTEGER NOT NULL,
    anxiety INTEGER NOT NULL,
    happiness INTEGER NOT NULL,
    stress INTEGER NOT NULL,
    focus INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_moods_user ON mood_entries (user_id, epoch);

CREATE TABLE IF NOT EXISTS optimal_time_slots (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    time_slot TEXT NOT NULL,
    day_of_week INTEGER NOT NULL,
    confidence REAL NOT NULL,
    data TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS smart_schedules (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    data TEXT NOT NULL,
    updated_epoch REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_schedules_user ON smart_schedules (user_id);
CREATE INDEX IF NOT EXISTS idx_slots_user ON optimal_time_slots (user_id);

CREATE TABLE IF NOT EXISTS contextual_alerts (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    type TEXT NOT NULL,
    severity TEXT NOT NULL,
    detected_epoch REAL NOT NULL,
    data TEXT NOT NULL,
    notification_sent INTEGER NOT NULL DEFAULT 0,
    user_responded INTEGER NOT NULL DEFAULT 0,
    effectiveness INTEGER
);

CREATE TABLE IF NOT EXISTS contextual_interventions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    context TEXT NOT NULL,
    urgency TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TEXT NOT NULL,
    completed INTEGER NOT NULL DEFAULT 0,
    feedback TEXT
);
"""


def _epoch(ts: datetime) -> float:
    return ensure_timezone_aware(ts).timestamp()


class SQLiteWellbeingStore:
    """
    SQLite-backed history reader and wellbeing store.

    Every call opens its own connection and commits on success, so a
    failed write never leaves a partially updated record. ``sqlite3.Error``
    propagates to the caller.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row  # Enable dict-like row access
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"[STORE] {self.db_path}: {e}")
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create tables and indexes if they do not exist."""
        with self._connect() as conn:
            conn.executescript(SCHEMA)
        logger.info(f"[STORE] Initialized schema at {self.db_path}")

    # ========================================================================
    # History
    # ========================================================================

    def add_session(self, session: MeditationSession) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO meditation_sessions (id, user_id, timestamp, epoch, "
                "duration_minutes, quality, techniques, mood_before, mood_after, stress_level) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    session.id,
                    session.user_id,
                    session.timestamp.isoformat(),
                    _epoch(session.timestamp),
                    session.duration_minutes,
                    session.quality,
                    json.dumps(list(session.techniques)),
                    session.mood_before,
                    session.mood_after,
                    session.stress_level,
                ),
            )

    def add_mood_entry(self, entry: MoodEntry) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO mood_entries (id, user_id, timestamp, epoch, overall, "
                "energy, anxiety, happiness, stress, focus) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    entry.id,
                    entry.user_id,
                    entry.timestamp.isoformat(),
                    _epoch(entry.timestamp),
                    entry.overall,
                    entry.energy,
                    entry.anxiety,
                    entry.happiness,
                    entry.stress,
                    entry.focus,
                ),
            )

    def get_sessions(self, user_id: str, limit: int) -> List[MeditationSession]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM meditation_sessions WHERE user_id = ? "
                "ORDER BY epoch DESC LIMIT ?",
                (user_id, limit),
            ).fetchall()
        return [
            MeditationSession(
                id=row["id"],
                user_id=row["user_id"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
                duration_minutes=row["duration_minutes"],
                quality=row["quality"],
                techniques=tuple(json.loads(row["techniques"])),
                mood_before=row["mood_before"],
                mood_after=row["mood_after"],
                stress_level=row["stress_level"],
            )
            for row in rows
        ]

    def get_mood_entries(self, user_id: str, limit: int) -> List[MoodEntry]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM mood_entries WHERE user_id = ? ORDER BY epoch DESC LIMIT ?",
                (user_id, limit),
            ).fetchall()
        return [
            MoodEntry(
                id=row["id"],
                user_id=row["user_id"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
                overall=row["overall"],
                energy=row["energy"],
                anxiety=row["anxiety"],
                happiness=row["happiness"],
                stress=row["stress"],
                focus=row["focus"],
            )
            for row in rows
        ]

    def list_user_ids(self) -> List[str]:
        """Users with any recorded session or check-in."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT user_id FROM meditation_sessions "
                "UNION SELECT user_id FROM mood_entries ORDER BY user_id"
            ).fetchall()
        return [row["user_id"] for row in rows]

    # ========================================================================
    # Slots and schedules
    # ========================================================================

    def save_time_slots(self, user_id: str, slots: List[OptimalTimeSlot]) -> None:
        """Replace the user's stored slots with ``slots`` in one transaction."""
        with self._connect() as conn:
            conn.execute("DELETE FROM optimal_time_slots WHERE user_id = ?", (user_id,))
            conn.executemany(
                "INSERT INTO optimal_time_slots "
                "(id, user_id, time_slot, day_of_week, confidence, data, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        slot.id,
                        user_id,
                        slot.time_slot,
                        slot.day_of_week,
                        slot.confidence,
                        json.dumps(slot.to_dict()),
                        slot.created_at.isoformat(),
                    )
                    for slot in slots
                ],
            )
        logger.debug(f"[STORE] Saved {len(slots)} time slots for {user_id}")

    def save_schedule(self, schedule: SmartSchedule) -> str:
        schedule_id = schedule.id or str(uuid.uuid4())
        schedule.id = schedule_id
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO smart_schedules (id, user_id, data, updated_epoch) VALUES (?, ?, ?, ?)",
                (
                    schedule_id,
                    schedule.user_id,
                    json.dumps(schedule.to_dict()),
                    _epoch(schedule.updated_at),
                ),
            )
        return schedule_id

    def replace_schedule(self, schedule: SmartSchedule) -> None:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE smart_schedules SET data = ?, updated_epoch = ? WHERE id = ?",
                (json.dumps(schedule.to_dict()), _epoch(schedule.updated_at), schedule.id),
            )
            if cursor.rowcount == 0:
                raise ScheduleNotFoundError(schedule.id)

    def get_active_schedule(self, user_id: str) -> Optional[SmartSchedule]:
        # Newest by insertion; updating an older schedule does not reactivate it
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, data FROM smart_schedules WHERE user_id = ? "
                "ORDER BY rowid DESC LIMIT 1",
                (user_id,),
            ).fetchone()
        return self._row_to_schedule(row) if row else None

    def get_schedule(self, schedule_id: str) -> Optional[SmartSchedule]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, data FROM smart_schedules WHERE id = ?", (schedule_id,)
            ).fetchone()
        return self._row_to_schedule(row) if row else None

    @staticmethod
    def _row_to_schedule(row: sqlite3.Row) -> SmartSchedule:
        data = json.loads(row["data"])
        data["id"] = row["id"]
        return SmartSchedule.from_dict(data)

    # ========================================================================
    # Alerts
    # ========================================================================

    def save_alert(self, alert: ContextualAlert) -> str:
        alert_id = alert.id or str(uuid.uuid4())
        alert.id = alert_id
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO contextual_alerts (id, user_id, type, severity, detected_epoch, "
                "data, notification_sent, user_responded, effectiveness) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    alert_id,
                    alert.user_id,
                    alert.type.value,
                    alert.severity.value,
                    _epoch(alert.detected_at),
                    json.dumps(alert.to_dict()),
                    int(alert.notification_sent),
                    int(alert.user_responded),
                    alert.effectiveness,
                ),
            )
        return alert_id

    def mark_alert_notified(self, alert_id: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE contextual_alerts SET notification_sent = 1 WHERE id = ?", (alert_id,)
            )

    def record_alert_response(self, alert_id: str, effectiveness: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE contextual_alerts SET user_responded = 1, effectiveness = ? WHERE id = ?",
                (effectiveness, alert_id),
            )
            return cursor.rowcount > 0

    def get_alert(self, alert_id: str) -> Optional[ContextualAlert]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM contextual_alerts WHERE id = ?", (alert_id,)
            ).fetchone()
        return self._row_to_alert(row) if row else None

    def list_alerts(
        self, user_id: Optional[str] = None, limit: int = 50
    ) -> List[ContextualAlert]:
        query = "SELECT * FROM contextual_alerts"
        params: List[Any] = []
        if user_id is not None:
            query += " WHERE user_id = ?"
            params.append(user_id)
        query += " ORDER BY detected_epoch DESC, rowid DESC LIMIT ?"
        params.append(limit)

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_alert(row) for row in rows]

    @staticmethod
    def _row_to_alert(row: sqlite3.Row) -> ContextualAlert:
        data = json.loads(row["data"])
        # Status columns are updated in place and win over the snapshot
        data.update(
            id=row["id"],
            notification_sent=bool(row["notification_sent"]),
            user_responded=bool(row["user_responded"]),
            effectiveness=row["effectiveness"],
        )
        return ContextualAlert.from_dict(data)

    # ========================================================================
    # Interventions
    # ========================================================================

    def save_intervention(self, record: InterventionRecord) -> str:
        record_id = record.id or str(uuid.uuid4())
        record.id = record_id
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO contextual_interventions "
                "(id, user_id, context, urgency, data, created_at, completed) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    record_id,
                    record.user_id,
                    record.context.value,
                    record.urgency.value,
                    json.dumps(record.to_dict()),
                    ensure_timezone_aware(record.created_at).astimezone(timezone.utc).isoformat(),
                    int(record.completed),
                ),
            )
        return record_id

    def record_intervention_feedback(
        self, intervention_id: str, feedback: Dict[str, Any]
    ) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE contextual_interventions SET feedback = ?, completed = 1 WHERE id = ?",
                (json.dumps(feedback), intervention_id),
            )
            return cursor.rowcount > 0

    def get_intervention_feedback(self, intervention_id: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT feedback FROM contextual_interventions WHERE id = ?",
                (intervention_id,),
            ).fetchone()
        if row is None or row["feedback"] is None:
            return None
        return json.loads(row["feedback"])
