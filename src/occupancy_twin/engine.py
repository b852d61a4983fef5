"""
Twin Engine
===========

Single owner of all mutable occupancy state for one facility.

Two independent clocks drive the engine:
    on_snapshot(update)     <- irregular push-channel arrivals
    on_tick(elapsed_frames) <- fixed-rate render loop

Both entry points, reset() and every read-only view take the same
re-entrant lock, so a merge, a tick and a facility switch never
interleave. Under a single asyncio event loop the lock is uncontended.

Owned state:
    - EntityRegistry (live entities)
    - StatisticsAggregator (visit counters)
    - HeatmapAccumulator (cumulative utilization)
    - latest camera image

Example:
    engine = TwinEngine(facility, settings.engine)
    engine.on_snapshot(decode_snapshot(raw))
    engine.on_tick(1.0)
    output = engine.output()
"""

import logging
import threading
import time
from typing import List, Optional

import numpy as np

from occupancy_twin.config import EngineConfig
from occupancy_twin.models.entity import SnapshotUpdate
from occupancy_twin.models.facility import Facility
from occupancy_twin.models.output import (
    EntityView,
    HeatmapView,
    StatisticsView,
    TwinOutput,
)
from occupancy_twin.models.stats import VisitStatistics
from occupancy_twin.spatial.grid import GridIndexer
from occupancy_twin.spatial.heatmap import HeatmapAccumulator
from occupancy_twin.tracking.registry import EntityRegistry, RegistryDelta
from occupancy_twin.tracking.statistics import StatisticsAggregator
from occupancy_twin.tracking.stepper import InterpolationStepper


logger = logging.getLogger(__name__)


class TwinEngine:
    """
    Occupancy model for the active facility.

    Attributes:
        facility: Active facility
        config: Engine tuning parameters
    """

    def __init__(self, facility: Facility, config: Optional[EngineConfig] = None) -> None:
        self.config = config if config is not None else EngineConfig()
        self.facility = facility

        self._lock = threading.RLock()
        self._statistics = StatisticsAggregator()
        self._registry = EntityRegistry(statistics=self._statistics)
        self._heatmap = HeatmapAccumulator(self._grid_for(facility))
        self._stepper = InterpolationStepper(
            heatmap=self._heatmap,
            lerp_factor=self.config.lerp_factor,
            snap_threshold=self.config.snap_threshold,
            trail_spacing=self.config.trail_spacing,
            trail_max_length=self.config.trail_max_length,
            heat_per_frame=self.config.heat_per_frame,
        )

        self._latest_image: Optional[bytes] = None
        self._snapshot_count: int = 0
        self._ticks_since_publish: int = 0

        logger.info(f"TwinEngine initialized for facility '{facility.id}'")

    def _grid_for(self, facility: Facility) -> GridIndexer:
        return GridIndexer(
            width=facility.width,
            height=facility.height,
            grid_size=self.config.grid_size,
        )

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def on_snapshot(self, update: SnapshotUpdate, now: Optional[float] = None) -> RegistryDelta:
        """
        Merge one decoded snapshot.

        Args:
            update: Decoded snapshot
            now: Wall-clock seconds (defaults to time.time())

        Returns:
            RegistryDelta for the merge
        """
        if now is None:
            now = time.time()

        with self._lock:
            self._snapshot_count += 1
            if update.image is not None:
                self._latest_image = update.image
            self._statistics.adopt_counters(update.entries, update.quick_exits)
            return self._registry.merge(update, now)

    def on_tick(self, elapsed_frames: float) -> bool:
        """
        Advance the animation by elapsed_frames frames.

        Returns:
            True if this tick published a new heatmap snapshot
        """
        with self._lock:
            self._stepper.advance(self._registry.entities(), elapsed_frames)

            self._ticks_since_publish += 1
            if self._ticks_since_publish >= self.config.publish_every_n_ticks:
                self._ticks_since_publish = 0
                self._heatmap.publish_snapshot()
                return True
            return False

    def frames_for(self, elapsed_ms: float) -> float:
        """Convert wall-clock milliseconds into nominal render frames."""
        return max(0.0, elapsed_ms) / self.config.frame_interval_ms

    def reset(self, facility: Optional[Facility] = None) -> None:
        """
        Discard entities and heatmap, optionally switching facility.

        Visit statistics survive a reset; entities discarded here are
        NOT counted as completed visits.
        """
        with self._lock:
            if facility is not None:
                self.facility = facility
            self._registry.clear()
            self._heatmap.reset(self._grid_for(self.facility))
            self._ticks_since_publish = 0
            logger.info(
                f"TwinEngine reset for facility '{self.facility.id}' "
                f"({self._heatmap.grid.rows}x{self._heatmap.grid.cols} grid)"
            )

    def publish_snapshot(self) -> None:
        """Publish the heatmap immediately, outside the tick cadence."""
        with self._lock:
            self._heatmap.publish_snapshot()
            self._ticks_since_publish = 0

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def latest_image(self) -> Optional[bytes]:
        with self._lock:
            return self._latest_image

    @property
    def statistics(self) -> VisitStatistics:
        with self._lock:
            return self._statistics.snapshot()

    @property
    def live_count(self) -> int:
        with self._lock:
            return len(self._registry)

    def entity_views(self) -> List[EntityView]:
        with self._lock:
            return [EntityView.from_entity(e) for e in self._registry.entities()]

    def heatmap_view(self) -> HeatmapView:
        with self._lock:
            snapshot = self._heatmap.snapshot
            grid = self._heatmap.grid
            return HeatmapView(
                rows=grid.rows,
                cols=grid.cols,
                grid_size=grid.grid_size,
                max_value=float(snapshot.max(initial=0.0)),
                cells=snapshot.tolist(),
            )

    def heatmap_snapshot(self) -> np.ndarray:
        """Latest published heatmap as a read-only numpy array."""
        with self._lock:
            return self._heatmap.snapshot

    def output(self) -> TwinOutput:
        """Assemble the full read-only payload."""
        with self._lock:
            return TwinOutput(
                timestamp=time.time(),
                facility_id=self.facility.id,
                entities=self.entity_views(),
                heatmap=self.heatmap_view(),
                statistics=StatisticsView.from_statistics(self.statistics),
            )

    def get_metrics(self) -> dict:
        """Get engine metrics for observability."""
        with self._lock:
            return {
                "facility_id": self.facility.id,
                "snapshots_merged": self._snapshot_count,
                "ticks": self._stepper.tick_count,
                "live_entities": len(self._registry),
                "heatmap": self._heatmap.get_metrics(),
                "statistics": self.statistics.to_dict(),
            }
