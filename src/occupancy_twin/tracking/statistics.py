"""
Statistics Aggregator
=====================

Running visit counters fed by the registry and upstream counters.

Update rules:
    - total_entries / quick_exits: overwritten only by NON-ZERO upstream
      values. Upstream zeroes its counters between polling windows; those
      zeroes are ignored so the displayed totals never regress.
    - active_female / active_male: recounted from the live set each merge
    - cumulative_dwell_time / completed_visits: monotonic, one increment
      per retired entity
"""

import logging
from dataclasses import replace
from typing import Iterable

from occupancy_twin.models.entity import Gender, TrackedEntity
from occupancy_twin.models.stats import VisitStatistics


logger = logging.getLogger(__name__)


class StatisticsAggregator:
    """
    Mutable owner of VisitStatistics.

    Example:
        stats = StatisticsAggregator()
        stats.adopt_counters(entries=42, quick_exits=3)
        stats.adopt_counters(entries=0, quick_exits=0)
        stats.snapshot().total_entries   # still 42
    """

    def __init__(self) -> None:
        self._stats = VisitStatistics()

    def adopt_counters(self, entries: int, quick_exits: int) -> None:
        """Adopt upstream cumulative counters that are non-zero."""
        changes = {}
        if entries > 0:
            changes["total_entries"] = entries
        if quick_exits > 0:
            changes["quick_exits"] = quick_exits
        if changes:
            self._stats = replace(self._stats, **changes)

    def recount_active(self, entities: Iterable[TrackedEntity]) -> None:
        """Recompute active gender counts from scratch."""
        female = 0
        male = 0
        for entity in entities:
            if entity.gender is Gender.FEMALE:
                female += 1
            else:
                male += 1
        self._stats = replace(self._stats, active_female=female, active_male=male)

    def record_retirement(self, dwell_seconds: float) -> None:
        """
        Fold one completed visit into the totals.

        Negative durations (clock stepped backwards) count as zero dwell.
        """
        dwell = max(0.0, dwell_seconds)
        self._stats = replace(
            self._stats,
            cumulative_dwell_time=self._stats.cumulative_dwell_time + dwell,
            completed_visits=self._stats.completed_visits + 1,
        )

    def snapshot(self) -> VisitStatistics:
        """Current counters (immutable)."""
        return self._stats

    def reset(self) -> None:
        self._stats = VisitStatistics()
        logger.info("StatisticsAggregator reset")
