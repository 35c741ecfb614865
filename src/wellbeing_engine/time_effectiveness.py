"""
Time-of-day effectiveness analysis.

Groups meditation sessions into hourly buckets and keeps running means of
session quality and mood improvement for each bucket.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

from .models import MeditationSession, hour_slot, to_jsonable

logger = logging.getLogger(__name__)


@dataclass
class TimeEffectivenessData:
    """Aggregated statistics for one ``HH:00`` bucket."""

    sessions: int = 0
    avg_quality: float = 0.0
    mood_improvement: float = 0.0
    completion_rate: float = 0.0
    mood_samples: int = 0  # sessions that carried both mood ratings

    def add(self, session: MeditationSession) -> None:
        """Fold one session into the running means."""
        self.sessions += 1
        n = self.sessions
        self.avg_quality = (self.avg_quality * (n - 1) + session.quality) / n

        change = session.mood_change
        if change is not None:
            self.mood_samples += 1
            m = self.mood_samples
            self.mood_improvement = (self.mood_improvement * (m - 1) + change) / m

        # Every recorded session counts as completed
        self.completion_rate = 1.0

    def to_dict(self) -> dict:
        return to_jsonable(self)


class TimeEffectivenessAnalyzer:
    """Aggregates sessions into per-hour quality and completion statistics."""

    def analyze_time_effectiveness(
        self, sessions: List[MeditationSession]
    ) -> Dict[str, TimeEffectivenessData]:
        """
        Bucket sessions by hour of day.

        Args:
            sessions: Sessions in any order

        Returns:
            Mapping of ``HH:00`` slot to its statistics. Empty input gives an
            empty mapping.
        """
        analysis: Dict[str, TimeEffectivenessData] = {}

        for session in sessions:
            slot = hour_slot(session.hour)
            if slot not in analysis:
                analysis[slot] = TimeEffectivenessData()
            analysis[slot].add(session)

        logger.debug(
            f"[SCHEDULE] Time effectiveness: {len(sessions)} sessions "
            f"across {len(analysis)} hourly buckets"
        )
        return analysis
