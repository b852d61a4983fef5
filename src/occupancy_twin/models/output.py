"""
Output Models
=============

Read-only output contract handed to the rendering layer.

Output Contract:
    {
        "timestamp": 1770500938.284,
        "facility_id": "coldroom1",
        "entities": [
            {
                "id": "17",
                "x": 512.3, "y": 300.1,
                "heading": 90.0,
                "gender": "FEMALE",
                "age": "25-34",
                "state": "WALKING",
                "trail": [{"x": 500.0, "y": 290.0}]
            }
        ],
        "heatmap": {
            "rows": 41, "cols": 61, "grid_size": 25,
            "max_value": 3.42,
            "cells": [[0.0, ...], ...]
        },
        "statistics": {
            "total_entries": 42,
            "quick_exits": 3,
            ...
        }
    }

Design Rules:
    - Outputs are snapshots; nothing here references live engine state
    - The rendering layer never writes back through these models
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from occupancy_twin.models.entity import Gender, LifecycleState, TrackedEntity
from occupancy_twin.models.facility import FloorPoint
from occupancy_twin.models.stats import VisitStatistics


class EntityView(BaseModel):
    """
    Render-ready view of one tracked entity.

    Attributes:
        id: Track identifier
        x: Display X (interpolated)
        y: Display Y (interpolated)
        heading: Facing angle in degrees
        gender: Normalized gender
        age: Upstream age bucket
        state: Lifecycle state
        trail: Recent display positions, oldest first
    """

    id: str
    x: float
    y: float
    heading: float
    gender: Gender
    age: Optional[str] = None
    state: LifecycleState = LifecycleState.WALKING
    trail: List[FloorPoint] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, entity: TrackedEntity) -> "EntityView":
        return cls(
            id=entity.id,
            x=entity.display_position.x,
            y=entity.display_position.y,
            heading=entity.heading,
            gender=entity.gender,
            age=entity.age,
            state=entity.lifecycle_state,
            trail=[FloorPoint(x=p.x, y=p.y) for p in entity.trail],
        )


class HeatmapView(BaseModel):
    """
    Published heatmap snapshot.

    Cells are row-major: cells[row][col] covers the floor-plan square
    [col * grid_size, (col + 1) * grid_size) x [row * grid_size, ...).
    """

    rows: int = Field(..., ge=0)
    cols: int = Field(..., ge=0)
    grid_size: float = Field(..., gt=0)
    max_value: float = Field(default=0.0, ge=0.0)
    cells: List[List[float]] = Field(default_factory=list)


class StatisticsView(BaseModel):
    """Visit counters plus derived figures."""

    total_entries: int = Field(default=0, ge=0)
    quick_exits: int = Field(default=0, ge=0)
    active_female: int = Field(default=0, ge=0)
    active_male: int = Field(default=0, ge=0)
    active_count: int = Field(default=0, ge=0)
    cumulative_dwell_time: float = Field(
        default=0.0,
        ge=0.0,
        description="Seconds summed over completed visits",
    )
    completed_visits: int = Field(default=0, ge=0)
    average_dwell_seconds: int = Field(default=0, ge=0)

    @classmethod
    def from_statistics(cls, stats: VisitStatistics) -> "StatisticsView":
        return cls.model_validate(stats.to_dict())


class TwinOutput(BaseModel):
    """
    Complete read-only payload for one publish.

    Attributes:
        timestamp: Wall-clock seconds when the payload was assembled
        facility_id: Active facility
        entities: Live entities
        heatmap: Latest published heatmap snapshot
        statistics: Current visit statistics
    """

    timestamp: float
    facility_id: str
    entities: List[EntityView] = Field(default_factory=list)
    heatmap: HeatmapView
    statistics: StatisticsView
