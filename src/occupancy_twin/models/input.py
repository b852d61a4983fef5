"""
Input Message Schema
====================

Pydantic models for messages pushed by the tracking backend.

Input Contract (from the tracking backend):
    {
        "type": "device_data",
        "deviceId": "cam-01",
        "data": {
            "area": "coldroom1",
            "entry_number": 42,
            "short_dwell_number": 3,
            "video_image": [{"cam-01": "<base64 JPEG>"}],
            "plan_data": [
                {
                    "track_id": "17",
                    "position": [512.0, 300.5],
                    "orientation": [0.0, 1.0],
                    "gender": "Female",
                    "age": "25-34",
                    "bbox": [10, 20, 60, 180]
                }
            ]
        }
    }

Guarantees (from the tracking backend):
    - entry_number / short_dwell_number are cumulative for a polling window
    - track_id is stable while a person stays in view
    - plan_data lists everyone currently detected

Any message that does not conform to this schema is rejected by the
snapshot decoder and dropped.
"""

import math
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEVICE_DATA_TYPE = "device_data"


class PlanRecord(BaseModel):
    """
    One tracked person as reported upstream.

    Attributes:
        track_id: Stable track identifier (numbers are coerced to str)
        position: Floor-plan position [x, y]
        orientation: Facing vector [x, y]
        gender: Free-form gender label
        age: Free-form age bucket
        bbox: Camera-space bounding box (unused by the engine)
    """

    track_id: str = Field(..., min_length=1, description="Stable track identifier")

    position: List[float] = Field(
        ...,
        min_length=2,
        description="Floor-plan position [x, y]",
    )

    orientation: List[float] = Field(
        ...,
        min_length=2,
        description="Facing vector [x, y]",
    )

    gender: Optional[str] = Field(default=None, description="Gender label, e.g. 'Female'")

    age: Optional[str] = Field(default=None, description="Age bucket")

    bbox: Optional[List[Optional[float]]] = Field(default=None, description="Bounding box")

    @field_validator("track_id", "age", mode="before")
    @classmethod
    def _coerce_to_str(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("position", "orientation")
    @classmethod
    def _require_finite(cls, value: List[float]) -> List[float]:
        if not all(math.isfinite(v) for v in value[:2]):
            raise ValueError("vector components must be finite")
        return value


class DeviceData(BaseModel):
    """Payload of a device_data message."""

    area: Optional[str] = Field(default=None, description="Upstream area label")

    entry_number: int = Field(
        default=0,
        ge=0,
        description="Cumulative entry count",
    )

    short_dwell_number: int = Field(
        default=0,
        ge=0,
        description="Cumulative quick-exit count",
    )

    video_image: List[Dict[str, Optional[str]]] = Field(
        default_factory=list,
        description="Camera frames as {name: base64 JPEG}",
    )

    plan_data: List[PlanRecord] = Field(
        default_factory=list,
        description="People currently detected",
    )

    @field_validator("video_image", "plan_data", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value


class DeviceMessage(BaseModel):
    """
    Wrapper for every message on the push channel.

    Only messages whose type is "device_data" carry a snapshot.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "type": "device_data",
                "deviceId": "cam-01",
                "data": {
                    "entry_number": 42,
                    "short_dwell_number": 3,
                    "video_image": [],
                    "plan_data": [],
                },
            }
        },
    )

    type: str = Field(..., description="Message type tag")

    device_id: Optional[str] = Field(
        default=None,
        alias="deviceId",
        description="Reporting device identifier",
    )

    data: Optional[DeviceData] = Field(default=None, description="Snapshot payload")
