"""
Visit Statistics
================

Running visit counters for the active session.

Counter sources:
    total_entries / quick_exits   -> adopted from upstream (non-zero only)
    active_female / active_male   -> recounted from the live set every merge
    cumulative_dwell_time /
    completed_visits              -> accumulated on entity retirement
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VisitStatistics:
    """
    Immutable view of the visit counters.

    Attributes:
        total_entries: Cumulative entries reported upstream
        quick_exits: Cumulative quick exits reported upstream
        active_female: Live entities classified FEMALE
        active_male: Live entities classified MALE
        cumulative_dwell_time: Sum of completed visit durations (seconds)
        completed_visits: Number of retired entities
    """

    total_entries: int = 0
    quick_exits: int = 0
    active_female: int = 0
    active_male: int = 0
    cumulative_dwell_time: float = 0.0
    completed_visits: int = 0

    @property
    def active_count(self) -> int:
        return self.active_female + self.active_male

    @property
    def average_dwell_seconds(self) -> int:
        """Whole seconds per completed visit, 0 before the first visit."""
        if self.completed_visits == 0:
            return 0
        return int(self.cumulative_dwell_time // self.completed_visits)

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "total_entries": self.total_entries,
            "quick_exits": self.quick_exits,
            "active_female": self.active_female,
            "active_male": self.active_male,
            "active_count": self.active_count,
            "cumulative_dwell_time": round(self.cumulative_dwell_time, 3),
            "completed_visits": self.completed_visits,
            "average_dwell_seconds": self.average_dwell_seconds,
        }
