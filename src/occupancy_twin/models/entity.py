"""
Entity Models
=============

Internal representation of people tracked inside a monitored facility.

Core Concepts:
    - Point: Immutable floor-plan coordinate
    - Gender / LifecycleState: Closed enumerations
    - DecodedPerson / SnapshotUpdate: Normalized output of the snapshot decoder
    - TrackedEntity: Live, engine-side state for one person

Coordinates are in FLOOR-PLAN UNITS, the same units as facility
width/height. Origin is top-left, X grows rightward, Y grows downward.

Lifecycle:
    created  -> first snapshot containing the id
    updated  -> every later snapshot containing the id
    retired  -> first snapshot WITHOUT the id (dwell time is recorded)
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True, slots=True)
class Point:
    """
    2D point in floor-plan units.

    Attributes:
        x: Horizontal coordinate
        y: Vertical coordinate
    """

    x: float
    y: float

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


class Gender(str, Enum):
    """Gender reported by upstream classification."""

    MALE = "MALE"
    FEMALE = "FEMALE"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "Gender":
        """
        Map an upstream gender label to an enum member.

        Matching is case-insensitive. Anything other than "female"
        (including None) resolves to MALE.
        """
        if label is not None and label.strip().lower() == "female":
            return cls.FEMALE
        return cls.MALE


class LifecycleState(str, Enum):
    """
    Behavioural state of a tracked entity.

    Only WALKING is assigned today. BROWSING and EXITING are reserved
    for browsing-zone logic.
    """

    WALKING = "WALKING"
    BROWSING = "BROWSING"
    EXITING = "EXITING"


@dataclass(frozen=True, slots=True)
class DecodedPerson:
    """
    One normalized person record from an inbound snapshot.

    Attributes:
        id: Stable track identifier assigned upstream
        position: Reported floor-plan position
        heading: Orientation in degrees (atan2 of the orientation vector)
        gender: Normalized gender
        age: Upstream age bucket, passed through as-is
    """

    id: str
    position: Point
    heading: float
    gender: Gender
    age: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SnapshotUpdate:
    """
    Normalized snapshot, the ONLY shape the registry accepts.

    Attributes:
        entries: Cumulative entry count reported upstream
        quick_exits: Cumulative quick-exit (short dwell) count
        image: Decoded camera image bytes, if the message carried one
        people: Everyone currently detected, in message order
    """

    entries: int
    quick_exits: int
    people: Tuple[DecodedPerson, ...]
    image: Optional[bytes] = None

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the image."""
        return (
            f"SnapshotUpdate(entries={self.entries}, "
            f"quick_exits={self.quick_exits}, "
            f"people={len(self.people)}, "
            f"image={'yes' if self.image else 'no'})"
        )


@dataclass(slots=True)
class TrackedEntity:
    """
    Live state for one person inside the facility.

    Mutated in place by the registry (target, heading, age) and by the
    interpolation stepper (display position, trail).

    Attributes:
        id: Stable identifier, unique across the live set
        display_position: Interpolated, render-ready position
        target_position: Last reported true position
        heading: Degrees, snapped on each update
        gender: Normalized gender
        age: Upstream age bucket
        entry_timestamp: Wall-clock seconds when first observed
        lifecycle_state: Behavioural state
        trail: Recent display positions, oldest first
    """

    id: str
    display_position: Point
    target_position: Point
    heading: float
    gender: Gender
    age: Optional[str]
    entry_timestamp: float
    lifecycle_state: LifecycleState = LifecycleState.WALKING
    trail: List[Point] = field(default_factory=list)

    @classmethod
    def from_person(cls, person: DecodedPerson, now: float) -> "TrackedEntity":
        """Create a new entity parked at its first reported position."""
        return cls(
            id=person.id,
            display_position=person.position,
            target_position=person.position,
            heading=person.heading,
            gender=person.gender,
            age=person.age,
            entry_timestamp=now,
            trail=[person.position],
        )

    def to_dict(self) -> dict:
        """Export as dictionary for serialization."""
        return {
            "id": self.id,
            "display_position": self.display_position.to_dict(),
            "target_position": self.target_position.to_dict(),
            "heading": round(self.heading, 2),
            "gender": self.gender.value,
            "age": self.age,
            "entry_timestamp": self.entry_timestamp,
            "lifecycle_state": self.lifecycle_state.value,
            "trail": [p.to_dict() for p in self.trail],
        }
