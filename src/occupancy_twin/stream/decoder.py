"""
Snapshot Decoder
================

Validates one push-channel message and normalizes it into a SnapshotUpdate.

Normalization:
    position [x, y]     -> Point(x, y)
    orientation [x, y]  -> heading = degrees(atan2(y, x))
    gender label        -> Gender (case-insensitive, default MALE)
    video_image[0]      -> raw JPEG bytes (first value of the first entry)

Design Rules:
    - This is the ONLY place wire payloads are interpreted
    - Never raises: malformed messages are logged and return None
    - A bad camera image drops the image, not the snapshot
"""

import base64
import binascii
import json
import logging
import math
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from occupancy_twin.models.entity import DecodedPerson, Gender, Point, SnapshotUpdate
from occupancy_twin.models.input import (
    DEVICE_DATA_TYPE,
    DeviceData,
    DeviceMessage,
    PlanRecord,
)


logger = logging.getLogger(__name__)


RawMessage = Union[str, bytes, bytearray, Dict[str, Any]]


def heading_from_orientation(x: float, y: float) -> float:
    """Orientation vector to heading in degrees, range (-180, 180]."""
    return math.degrees(math.atan2(y, x))


def decode_person(record: PlanRecord) -> DecodedPerson:
    """Normalize one validated plan record."""
    return DecodedPerson(
        id=record.track_id,
        position=Point(record.position[0], record.position[1]),
        heading=heading_from_orientation(record.orientation[0], record.orientation[1]),
        gender=Gender.from_label(record.gender),
        age=record.age,
    )


def decode_image(video_image: List[Dict[str, Optional[str]]]) -> Optional[bytes]:
    """
    Decode the first camera image in a snapshot.

    Accepts plain base64 as well as "data:image/jpeg;base64,..." URLs.
    Line breaks inside the payload (MIME-style base64) are ignored.

    Returns:
        JPEG bytes, or None if absent or undecodable
    """
    if not video_image:
        return None

    values = list(video_image[0].values())
    if not values or not values[0]:
        return None

    encoded = values[0]
    if encoded.startswith("data:") and "," in encoded:
        encoded = encoded.split(",", 1)[1]
    encoded = "".join(encoded.split())
    if not encoded:
        return None

    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Dropping undecodable camera image: {e}")
        return None


def decode_snapshot(raw: RawMessage) -> Optional[SnapshotUpdate]:
    """
    Parse, validate and normalize one inbound message.

    Args:
        raw: JSON text/bytes, or an already-parsed dict

    Returns:
        SnapshotUpdate, or None if the message is malformed or is not a
        device_data message
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error(f"Failed to decode message bytes: {e}")
            return None

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse message JSON: {e}")
            return None

    if not isinstance(raw, dict):
        logger.error(f"Invalid message structure: expected object, got {type(raw).__name__}")
        return None

    try:
        message = DeviceMessage.model_validate(raw)
    except ValidationError as e:
        logger.error(f"Invalid message structure: {e.error_count()} error(s): {e.errors()[:3]}")
        return None

    if message.type != DEVICE_DATA_TYPE:
        logger.debug(f"Ignoring message of type '{message.type}'")
        return None

    if message.data is None:
        logger.warning("device_data message without data payload")
        return None

    return _normalize(message.data)


def _normalize(data: DeviceData) -> SnapshotUpdate:
    return SnapshotUpdate(
        entries=data.entry_number,
        quick_exits=data.short_dwell_number,
        people=tuple(decode_person(record) for record in data.plan_data),
        image=decode_image(data.video_image),
    )
