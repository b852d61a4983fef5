"""
Spatial Module
==============

Floor-plan indexing and space-utilization aggregation.

Components:
    - GridIndexer: Continuous coordinates -> (col, row) cell
    - HeatmapAccumulator: Cumulative per-cell intensity with published snapshots
"""

from occupancy_twin.spatial.grid import DEFAULT_GRID_SIZE, GridIndexer
from occupancy_twin.spatial.heatmap import HeatmapAccumulator

__all__ = [
    "DEFAULT_GRID_SIZE",
    "GridIndexer",
    "HeatmapAccumulator",
]
