"""
Statistics Aggregator Tests
===========================
"""

import pytest

from occupancy_twin.models.stats import VisitStatistics
from occupancy_twin.tracking import StatisticsAggregator


class TestCounterAdoption:
    """Upstream counters are adopted only when non-zero."""

    def test_zero_does_not_regress_totals(self):
        stats = StatisticsAggregator()
        stats.adopt_counters(entries=42, quick_exits=5)
        stats.adopt_counters(entries=0, quick_exits=0)

        assert stats.snapshot().total_entries == 42
        assert stats.snapshot().quick_exits == 5

    def test_non_zero_overwrites_even_if_lower(self):
        stats = StatisticsAggregator()
        stats.adopt_counters(entries=42, quick_exits=5)
        stats.adopt_counters(entries=7, quick_exits=0)

        assert stats.snapshot().total_entries == 7
        assert stats.snapshot().quick_exits == 5


class TestRetirements:
    """Completed visits accumulate."""

    def test_accumulates(self):
        stats = StatisticsAggregator()
        stats.record_retirement(12.5)
        stats.record_retirement(7.5)

        snapshot = stats.snapshot()
        assert snapshot.completed_visits == 2
        assert snapshot.cumulative_dwell_time == pytest.approx(20.0)
        assert snapshot.average_dwell_seconds == 10

    def test_negative_dwell_counts_as_zero(self):
        stats = StatisticsAggregator()
        stats.record_retirement(-3.0)

        assert stats.snapshot().completed_visits == 1
        assert stats.snapshot().cumulative_dwell_time == 0.0

    def test_snapshot_is_immutable(self):
        stats = StatisticsAggregator()
        before = stats.snapshot()
        stats.record_retirement(1.0)

        assert before.completed_visits == 0
        assert stats.snapshot().completed_visits == 1


class TestVisitStatistics:
    """Derived figures."""

    def test_average_before_first_visit(self):
        assert VisitStatistics().average_dwell_seconds == 0

    def test_average_is_floored(self):
        stats = VisitStatistics(cumulative_dwell_time=10.0, completed_visits=3)
        assert stats.average_dwell_seconds == 3

    def test_to_dict(self):
        stats = VisitStatistics(total_entries=3, active_female=1, active_male=2)
        data = stats.to_dict()

        assert data["active_count"] == 3
        assert data["total_entries"] == 3
        assert data["average_dwell_seconds"] == 0
