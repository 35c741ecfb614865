#!/usr/bin/env python3
"""
Seed the wellbeing database with simulated meditation history.

Generates meditation sessions and mood check-ins for one or more users
following a scenario, so the API and monitor have something to analyze.

Usage (after ``pip install -e .``):
    python scripts/seed_history.py --scenario morning --users 3 --days 21
"""
import argparse
import random
import sys
import uuid
from datetime import datetime, timedelta, timezone

from dotenv import load_dotenv

from server.wellbeing_api.config import get_settings
from wellbeing_engine import MeditationSession, MoodEntry, SQLiteWellbeingStore

load_dotenv()

TECHNIQUES = ["mindfulness", "breathing", "body_scan", "loving_kindness", "walking"]

# Scenario profiles: practice hours, quality range, mood and stress ranges
SCENARIOS = {
    "random": {
        "hours": list(range(6, 23)),
        "quality": (1, 5),
        "overall": (1, 5),
        "stress": (1, 5),
    },
    "morning": {
        "hours": [6, 7, 7, 8],
        "quality": (3, 5),
        "overall": (3, 5),
        "stress": (1, 3),
    },
    "stressed": {
        "hours": [8, 12, 13, 18, 21],
        "quality": (1, 3),
        "overall": (2, 4),
        "stress": (4, 5),
    },
    "low-mood": {
        "hours": [10, 15, 20],
        "quality": (2, 4),
        "overall": (1, 2),
        "stress": (2, 4),
    },
}


def _rating(bounds: tuple) -> int:
    return random.randint(*bounds)


def generate_session(user_id: str, day: datetime, profile: dict) -> MeditationSession:
    """Create one session on the given day at one of the scenario's hours."""
    timestamp = day.replace(
        hour=random.choice(profile["hours"]), minute=random.randint(0, 59), second=0, microsecond=0
    )
    mood_before = _rating(profile["overall"])
    return MeditationSession(
        id=str(uuid.uuid4()),
        user_id=user_id,
        timestamp=timestamp,
        duration_minutes=random.choice([5, 10, 15, 20, 30]),
        quality=_rating(profile["quality"]),
        techniques=tuple(random.sample(TECHNIQUES, k=random.randint(1, 2))),
        mood_before=mood_before,
        mood_after=min(5, mood_before + random.randint(0, 2)),
        stress_level=_rating(profile["stress"]),
    )


def generate_mood_entry(user_id: str, day: datetime, profile: dict) -> MoodEntry:
    timestamp = day.replace(hour=random.randint(7, 22), minute=random.randint(0, 59), second=0, microsecond=0)
    return MoodEntry(
        id=str(uuid.uuid4()),
        user_id=user_id,
        timestamp=timestamp,
        overall=_rating(profile["overall"]),
        energy=random.randint(1, 5),
        anxiety=_rating(profile["stress"]),
        happiness=_rating(profile["overall"]),
        stress=_rating(profile["stress"]),
        focus=random.randint(1, 5),
    )


def seed_user(store: SQLiteWellbeingStore, user_id: str, scenario: str, days: int) -> tuple:
    """
    Write simulated history for one user.

    Returns:
        Tuple of (sessions written, mood entries written)
    """
    profile = SCENARIOS[scenario]
    today = datetime.now(timezone.utc)
    sessions = moods = 0

    for offset in range(days, 0, -1):
        day = today - timedelta(days=offset)
        # Most days have a session, some have two
        for _ in range(random.choice([0, 1, 1, 1, 2])):
            store.add_session(generate_session(user_id, day, profile))
            sessions += 1
        if random.random() < 0.8:
            store.add_mood_entry(generate_mood_entry(user_id, day, profile))
            moods += 1

    return sessions, moods


def main():
    parser = argparse.ArgumentParser(
        description="Seed simulated meditation history for the Wellbeing API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Three users with random practice over the last two weeks
  python scripts/seed_history.py --users 3

  # A consistent morning practitioner over four weeks
  python scripts/seed_history.py --scenario morning --days 28 --prefix morning

  # A stressed user, to trigger stress alerts
  python scripts/seed_history.py --scenario stressed --users 1 --prefix stressed

  # Reproducible data into a specific database
  python scripts/seed_history.py --seed 42 --db /tmp/wellbeing.db
        """,
    )
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        default="random",
        help="Practice and mood profile to simulate (default: random)",
    )
    parser.add_argument(
        "--users",
        type=int,
        default=3,
        help="Number of users to create (default: 3)",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=14,
        help="Days of history per user (default: 14)",
    )
    parser.add_argument(
        "--prefix",
        default="user",
        help="User id prefix (default: user)",
    )
    parser.add_argument(
        "--db",
        help="Database path (default: WELLBEING_DATA_PATH/wellbeing.db)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for reproducible data",
    )

    args = parser.parse_args()

    if args.users < 1:
        parser.error("--users must be at least 1")
    if args.days < 1:
        parser.error("--days must be at least 1")

    if args.seed is not None:
        random.seed(args.seed)

    db_path = args.db or get_settings().db_path

    print("=" * 60)
    print("Wellbeing History Seeder")
    print("=" * 60)
    print(f"[INFO] Database: {db_path}")
    print(f"[INFO] Scenario: {args.scenario}, {args.days} days")

    try:
        store = SQLiteWellbeingStore(db_path)
        store.initialize()

        for n in range(1, args.users + 1):
            user_id = f"{args.prefix}-{n}"
            sessions, moods = seed_user(store, user_id, args.scenario, args.days)
            print(f"  {user_id}: {sessions} sessions, {moods} mood entries")

        print("\n[INFO] Seeding complete")

    except KeyboardInterrupt:
        print("\n[INFO] Interrupted by user")
    except Exception as e:
        print(f"\n[ERROR] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
