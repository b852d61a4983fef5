"""
Interpolation Stepper
=====================

Per-frame easing of display positions toward reported targets.

Snapshots arrive irregularly; the render loop ticks at a fixed rate.
The stepper bridges the two by moving every entity a constant fraction
of its remaining distance per frame (exponential approach):

    fraction(n) = 1 - (1 - lerp_factor) ** n

where n is the number of elapsed frames. For n == 1 this is exactly
lerp_factor; for any n >= 0 it is in [0, 1), so positions never
overshoot. Once both |dx| and |dy| are within snap_threshold the
entity stops moving.

The same pass warms the heatmap cell under each entity's display
position by heat_per_frame * n.
"""

import logging
from typing import Iterable

from occupancy_twin.models.entity import Point, TrackedEntity
from occupancy_twin.spatial.heatmap import HeatmapAccumulator


logger = logging.getLogger(__name__)


class InterpolationStepper:
    """
    Advances entity display positions and feeds the heatmap.

    Attributes:
        heatmap: Accumulator warmed by each entity's cell
        lerp_factor: Fraction of remaining distance covered per frame
        snap_threshold: Per-axis distance below which motion stops
        trail_spacing: Minimum distance between trail points
        trail_max_length: Maximum number of trail points kept
        heat_per_frame: Intensity added per entity per frame

    Example:
        stepper = InterpolationStepper(heatmap)
        stepper.advance(registry.entities(), elapsed_frames=1.0)
    """

    def __init__(
        self,
        heatmap: HeatmapAccumulator,
        lerp_factor: float = 0.15,
        snap_threshold: float = 0.5,
        trail_spacing: float = 30.0,
        trail_max_length: int = 16,
        heat_per_frame: float = 0.02,
    ) -> None:
        if not 0 < lerp_factor <= 1:
            raise ValueError("lerp_factor must be in (0, 1]")
        if snap_threshold < 0:
            raise ValueError("snap_threshold must be non-negative")
        if trail_max_length < 1:
            raise ValueError("trail_max_length must be >= 1")
        if heat_per_frame < 0:
            raise ValueError("heat_per_frame must be non-negative")

        self.heatmap = heatmap
        self.lerp_factor = lerp_factor
        self.snap_threshold = snap_threshold
        self.trail_spacing = trail_spacing
        self.trail_max_length = trail_max_length
        self.heat_per_frame = heat_per_frame

        self._tick_count: int = 0

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def advance(self, entities: Iterable[TrackedEntity], elapsed_frames: float) -> None:
        """
        Run one render tick.

        Args:
            entities: Live entities (mutated in place)
            elapsed_frames: Frames elapsed since the previous tick.
                Non-positive values are a no-op.
        """
        if not elapsed_frames > 0:
            return

        self._tick_count += 1
        fraction = 1.0 - (1.0 - self.lerp_factor) ** elapsed_frames
        heat = self.heat_per_frame * elapsed_frames

        for entity in entities:
            self._move(entity, fraction)

            cell = self.heatmap.grid.cell_for(entity.display_position)
            if cell is not None:
                self.heatmap.add(cell[0], cell[1], heat)

    def _move(self, entity: TrackedEntity, fraction: float) -> None:
        pos = entity.display_position
        target = entity.target_position
        dx = target.x - pos.x
        dy = target.y - pos.y

        if abs(dx) <= self.snap_threshold and abs(dy) <= self.snap_threshold:
            return

        pos = Point(pos.x + dx * fraction, pos.y + dy * fraction)
        entity.display_position = pos

        trail = entity.trail
        if not trail or pos.distance_to(trail[-1]) > self.trail_spacing:
            trail.append(pos)
            # keep the newest trail_max_length points
            if len(trail) > self.trail_max_length:
                del trail[: len(trail) - self.trail_max_length]
