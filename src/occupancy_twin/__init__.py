"""
OccupancyTwin
=============

Live occupancy model for monitored retail spaces.

This package turns sparse, irregular snapshots of already-tracked people
into a continuously animated occupancy model: smoothed display positions,
per-visit dwell accounting and a cumulative utilization heatmap.

Components:
    - stream: Push-channel consumer, snapshot decoder and buffer
    - tracking: Entity registry, interpolation stepper, visit statistics
    - spatial: Grid indexing and heatmap accumulation
    - engine: TwinEngine, the single owner of all mutable state
    - main: FastAPI service exposing read-only views

Example:
    from occupancy_twin.config import settings
    from occupancy_twin.engine import TwinEngine
    from occupancy_twin.stream import decode_snapshot

    engine = TwinEngine(settings.get_facility("coldroom1"), settings.engine)
    update = decode_snapshot(raw_message)
    if update is not None:
        engine.on_snapshot(update)
    engine.on_tick(1.0)
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
