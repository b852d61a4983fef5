"""
Spatial Tests
=============

Grid indexing and heatmap accumulation.
"""

import numpy as np
import pytest

from occupancy_twin.models.entity import Point
from occupancy_twin.spatial import GridIndexer, HeatmapAccumulator


class TestGridIndexer:
    """Tests for coordinate -> cell mapping."""

    def test_dimensions_round_up(self):
        grid = GridIndexer(width=1516, height=1016, grid_size=25)
        assert grid.cols == 61
        assert grid.rows == 41
        assert grid.shape == (41, 61)

    def test_exact_multiple(self):
        assert GridIndexer(width=100, height=100).shape == (4, 4)

    def test_cell_for(self):
        grid = GridIndexer(width=100, height=100)

        assert grid.cell_for(Point(10, 10)) == (0, 0)
        assert grid.cell_for(Point(25, 0)) == (1, 0)
        assert grid.cell_for(Point(99.9, 60)) == (3, 2)

    @pytest.mark.parametrize(
        "point",
        [Point(-0.1, 10), Point(10, -5), Point(100, 10), Point(10, 100), Point(float("inf"), 0)],
    )
    def test_out_of_bounds(self, point):
        assert GridIndexer(width=100, height=100).cell_for(point) is None

    def test_invalid_extent(self):
        with pytest.raises(ValueError):
            GridIndexer(width=0, height=100)
        with pytest.raises(ValueError):
            GridIndexer(width=100, height=100, grid_size=0)


class TestHeatmapAccumulator:
    """Tests for accumulation and publishing."""

    def test_starts_at_zero(self):
        heatmap = HeatmapAccumulator(GridIndexer(width=100, height=100))
        assert heatmap.snapshot.shape == (4, 4)
        assert not heatmap.snapshot.any()

    def test_add_is_invisible_until_published(self):
        heatmap = HeatmapAccumulator(GridIndexer(width=100, height=100))
        heatmap.add(1, 2, 0.5)

        assert heatmap.value_at(1, 2) == pytest.approx(0.5)
        assert heatmap.snapshot[2, 1] == 0.0

        snapshot = heatmap.publish_snapshot()
        assert snapshot[2, 1] == pytest.approx(0.5)
        assert heatmap.publish_count == 1

    def test_snapshot_is_read_only_copy(self):
        heatmap = HeatmapAccumulator(GridIndexer(width=100, height=100))
        heatmap.add(0, 0, 1.0)
        snapshot = heatmap.publish_snapshot()

        with pytest.raises(ValueError):
            snapshot[0, 0] = 5.0

        heatmap.add(0, 0, 1.0)
        assert snapshot[0, 0] == pytest.approx(1.0)

    def test_negative_amount_ignored(self):
        heatmap = HeatmapAccumulator(GridIndexer(width=100, height=100))
        heatmap.add(0, 0, 1.0)
        heatmap.add(0, 0, -5.0)
        assert heatmap.value_at(0, 0) == pytest.approx(1.0)

    def test_add_outside_grid_raises(self):
        heatmap = HeatmapAccumulator(GridIndexer(width=100, height=100))
        with pytest.raises(IndexError):
            heatmap.add(4, 0, 1.0)

    def test_reset_resizes_and_zeroes(self):
        heatmap = HeatmapAccumulator(GridIndexer(width=100, height=100))
        heatmap.add(3, 3, 2.0)
        heatmap.publish_snapshot()

        heatmap.reset(GridIndexer(width=200, height=100))

        assert heatmap.snapshot.shape == (4, 8)
        assert np.all(heatmap.snapshot == 0.0)
        assert heatmap.get_metrics()["total_intensity"] == 0.0
        assert heatmap.publish_count == 0
