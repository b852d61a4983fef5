"""
Heatmap Accumulator
===================

Session-long, time-weighted utilization map.

Two copies of the grid exist:
    - accumulator: mutated every tick, never exposed
    - snapshot: read-only copy refreshed by publish_snapshot()

Accumulation NEVER decays. The grid is only zeroed by reset(), which
happens when the active facility changes.
"""

import logging
from typing import Optional

import numpy as np

from occupancy_twin.spatial.grid import GridIndexer


logger = logging.getLogger(__name__)


class HeatmapAccumulator:
    """
    Owner of the heatmap intensity array.

    Attributes:
        grid: Indexer describing the current facility extent
        publish_count: Number of snapshots published since reset

    Example:
        heatmap = HeatmapAccumulator(GridIndexer(width=100, height=100))
        heatmap.add(0, 0, 0.02)
        snapshot = heatmap.publish_snapshot()
        snapshot[0, 0]   # 0.02
    """

    def __init__(self, grid: GridIndexer) -> None:
        """
        Initialize an all-zero accumulator sized for the grid.

        Args:
            grid: Indexer for the active facility
        """
        self._grid = grid
        self._accumulator = np.zeros(grid.shape, dtype=np.float64)
        self._snapshot = self._freeze(self._accumulator)
        self._publish_count = 0

        logger.info(
            f"HeatmapAccumulator initialized: {grid.rows}x{grid.cols} cells "
            f"(grid_size={grid.grid_size})"
        )

    @staticmethod
    def _freeze(values: np.ndarray) -> np.ndarray:
        frozen = values.copy()
        frozen.setflags(write=False)
        return frozen

    @property
    def grid(self) -> GridIndexer:
        return self._grid

    @property
    def publish_count(self) -> int:
        return self._publish_count

    @property
    def snapshot(self) -> np.ndarray:
        """Latest published snapshot (read-only array)."""
        return self._snapshot

    def add(self, col: int, row: int, amount: float) -> None:
        """
        Add intensity to one cell.

        Negative amounts are ignored so cells stay monotonic.

        Raises:
            IndexError: If (col, row) is outside the grid
        """
        if amount <= 0:
            return
        if not (0 <= col < self._grid.cols and 0 <= row < self._grid.rows):
            raise IndexError(f"Cell ({col}, {row}) outside {self._grid.shape} grid")
        self._accumulator[row, col] += amount

    def value_at(self, col: int, row: int) -> float:
        """Current (unpublished) accumulator value of one cell."""
        return float(self._accumulator[row, col])

    def publish_snapshot(self) -> np.ndarray:
        """
        Copy the accumulator into a new read-only snapshot.

        Returns:
            The new snapshot (rows x cols, float64, not writeable)
        """
        self._snapshot = self._freeze(self._accumulator)
        self._publish_count += 1
        return self._snapshot

    def reset(self, grid: Optional[GridIndexer] = None) -> None:
        """
        Discard all accumulated intensity.

        Args:
            grid: New extent to resize to. Keeps the current one if None.
        """
        if grid is not None:
            self._grid = grid
        self._accumulator = np.zeros(self._grid.shape, dtype=np.float64)
        self._snapshot = self._freeze(self._accumulator)
        self._publish_count = 0
        logger.info(
            f"HeatmapAccumulator reset: {self._grid.rows}x{self._grid.cols} cells"
        )

    def get_metrics(self) -> dict:
        """Get accumulator metrics for observability."""
        return {
            "rows": self._grid.rows,
            "cols": self._grid.cols,
            "grid_size": self._grid.grid_size,
            "total_intensity": round(float(self._accumulator.sum()), 4),
            "max_intensity": round(float(self._accumulator.max(initial=0.0)), 4),
            "publish_count": self._publish_count,
        }
