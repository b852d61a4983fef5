"""
Facility Models
===============

Floor-plan extents for the monitored facilities.

Design Philosophy:
    Facilities are EXPLICITLY DECLARED geometry, NOT discovered at runtime.
    They are loaded from configuration and only the extent (width, height)
    matters to the engine. Racks, islands and other fixtures belong to the
    rendering layer.

Example Facility:
    {
        "id": "coldroom1",
        "name": "Makro St.57 (Bangphil-Coldroom1)",
        "width": 1516,
        "height": 1016,
        "entrance": {"x": 758, "y": 980}
    }
"""

from typing import Optional

from pydantic import BaseModel, Field


class FloorPoint(BaseModel):
    """Point in floor-plan units, used for configured landmarks."""

    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")


class Facility(BaseModel):
    """
    A monitored space.

    Attributes:
        id: Unique facility identifier
        name: Human-readable name
        width: Floor-plan width
        height: Floor-plan height
        entrance: Optional entrance location (display only)
    """

    id: str = Field(..., min_length=1, description="Unique facility identifier")

    name: str = Field(default="", description="Human-readable name")

    width: float = Field(..., gt=0, description="Floor-plan width")

    height: float = Field(..., gt=0, description="Floor-plan height")

    entrance: Optional[FloorPoint] = Field(
        default=None,
        description="Entrance location",
    )
