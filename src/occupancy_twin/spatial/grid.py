"""
Grid Indexer
============

Maps continuous floor-plan coordinates to heatmap cells.

Grid layout:
    cols = ceil(width / grid_size)
    rows = ceil(height / grid_size)
    cell(x, y) = (floor(x / grid_size), floor(y / grid_size))

Cells are addressed as (col, row). Points outside [0, cols) x [0, rows)
have no cell.

Design Rules:
    - Stateless and pure
    - Out-of-bounds is a normal result (None), never an error
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from occupancy_twin.models.entity import Point


DEFAULT_GRID_SIZE = 25


@dataclass(frozen=True, slots=True)
class GridIndexer:
    """
    Cell index calculator for one facility extent.

    Attributes:
        width: Facility width in floor-plan units
        height: Facility height in floor-plan units
        grid_size: Edge length of one square cell

    Example:
        grid = GridIndexer(width=100, height=100)
        grid.shape           # (4, 4)
        grid.cell_for(Point(10, 10))   # (0, 0)
    """

    width: float
    height: float
    grid_size: float = DEFAULT_GRID_SIZE

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be positive")
        if self.grid_size <= 0:
            raise ValueError("grid_size must be positive")

    @property
    def cols(self) -> int:
        return math.ceil(self.width / self.grid_size)

    @property
    def rows(self) -> int:
        return math.ceil(self.height / self.grid_size)

    @property
    def shape(self) -> Tuple[int, int]:
        """(rows, cols), matching numpy array layout."""
        return self.rows, self.cols

    def cell_for(self, point: Point) -> Optional[Tuple[int, int]]:
        """
        Find the cell containing a point.

        Args:
            point: Floor-plan position

        Returns:
            (col, row) of the containing cell, or None if out of bounds
        """
        if not (math.isfinite(point.x) and math.isfinite(point.y)):
            return None

        col = math.floor(point.x / self.grid_size)
        row = math.floor(point.y / self.grid_size)

        if 0 <= col < self.cols and 0 <= row < self.rows:
            return col, row
        return None
