"""
Tracking Module
===============

Identity lifecycle, smoothing and visit accounting.

Components:
    - EntityRegistry: Merges snapshots into the live entity set
    - InterpolationStepper: Per-frame easing + heatmap warming
    - StatisticsAggregator: Visit counters
"""

from occupancy_twin.tracking.registry import EntityRegistry, RegistryDelta, RetiredVisit
from occupancy_twin.tracking.statistics import StatisticsAggregator
from occupancy_twin.tracking.stepper import InterpolationStepper

__all__ = [
    "EntityRegistry",
    "RegistryDelta",
    "RetiredVisit",
    "StatisticsAggregator",
    "InterpolationStepper",
]
