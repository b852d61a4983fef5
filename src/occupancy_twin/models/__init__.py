"""
Data Models
===========

Data models for the occupancy twin engine.

This module re-exports all data models for convenient access.

Models:
    Input:
        - DeviceMessage, DeviceData, PlanRecord: Push-channel wire schema

    Entity:
        - Point: Immutable floor-plan coordinate
        - Gender, LifecycleState: Enumerations
        - DecodedPerson, SnapshotUpdate: Decoder output
        - TrackedEntity: Live engine-side entity

    Facility:
        - Facility, FloorPoint: Floor-plan extents

    Statistics:
        - VisitStatistics: Visit counters

    Output:
        - EntityView, HeatmapView, StatisticsView, TwinOutput
"""

from occupancy_twin.models.input import DeviceData, DeviceMessage, PlanRecord
from occupancy_twin.models.entity import (
    DecodedPerson,
    Gender,
    LifecycleState,
    Point,
    SnapshotUpdate,
    TrackedEntity,
)
from occupancy_twin.models.facility import Facility, FloorPoint
from occupancy_twin.models.stats import VisitStatistics
from occupancy_twin.models.output import (
    EntityView,
    HeatmapView,
    StatisticsView,
    TwinOutput,
)

__all__ = [
    # Input
    "DeviceMessage",
    "DeviceData",
    "PlanRecord",
    # Entity
    "Point",
    "Gender",
    "LifecycleState",
    "DecodedPerson",
    "SnapshotUpdate",
    "TrackedEntity",
    # Facility
    "Facility",
    "FloorPoint",
    # Statistics
    "VisitStatistics",
    # Output
    "EntityView",
    "HeatmapView",
    "StatisticsView",
    "TwinOutput",
]
