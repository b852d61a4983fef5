"""
Test Configuration
==================

Pytest fixtures and test configuration for the occupancy twin.
"""

import pytest


def make_person(
    track_id="1",
    x=10.0,
    y=10.0,
    ox=1.0,
    oy=0.0,
    gender="Male",
    age="25-34",
):
    """Build one plan_data record as sent by the tracking backend."""
    return {
        "track_id": track_id,
        "position": [x, y],
        "orientation": [ox, oy],
        "gender": gender,
        "age": age,
        "bbox": [0, 0, 10, 10],
    }


def make_message(people=(), entries=0, quick_exits=0, video_image=None, type_="device_data"):
    """Build a full push-channel message."""
    return {
        "type": type_,
        "deviceId": "cam-01",
        "data": {
            "area": "test",
            "entry_number": entries,
            "short_dwell_number": quick_exits,
            "video_image": video_image or [],
            "plan_data": list(people),
        },
    }


@pytest.fixture
def sample_message():
    """Provide a sample device_data message for testing."""
    return make_message(
        people=[
            make_person("7", x=120.0, y=80.0, ox=0.0, oy=1.0, gender="Female", age="18-24"),
            make_person("9", x=300.0, y=40.0, ox=-1.0, oy=0.0, gender="male", age="35-44"),
        ],
        entries=42,
        quick_exits=3,
        video_image=[{"cam-01": "aGVsbG8="}],
    )


@pytest.fixture
def small_facility():
    """A 100x100 facility (4x4 grid at the default cell size)."""
    from occupancy_twin.models.facility import Facility

    return Facility(id="small", name="Small Room", width=100, height=100)


@pytest.fixture
def wide_facility():
    """A 200x100 facility (4 rows x 8 cols)."""
    from occupancy_twin.models.facility import Facility

    return Facility(id="wide", name="Wide Room", width=200, height=100)


@pytest.fixture
def engine(small_facility):
    """Engine on the small facility with default tuning."""
    from occupancy_twin.config import EngineConfig
    from occupancy_twin.engine import TwinEngine

    return TwinEngine(small_facility, EngineConfig())
