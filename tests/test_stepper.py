"""
Interpolation Stepper Tests
===========================
"""

import pytest

from occupancy_twin.models.entity import Gender, Point, TrackedEntity
from occupancy_twin.spatial import GridIndexer, HeatmapAccumulator
from occupancy_twin.tracking import InterpolationStepper


def entity_at(x, y, target=None):
    start = Point(x, y)
    return TrackedEntity(
        id="e",
        display_position=start,
        target_position=target or start,
        heading=0.0,
        gender=Gender.MALE,
        age=None,
        entry_timestamp=0.0,
        trail=[start],
    )


@pytest.fixture
def heatmap():
    return HeatmapAccumulator(GridIndexer(width=100, height=100))


@pytest.fixture
def stepper(heatmap):
    return InterpolationStepper(heatmap)


class TestInterpolation:
    """Display positions ease toward their targets."""

    def test_single_frame_moves_fifteen_percent(self, stepper):
        entity = entity_at(0, 0, target=Point(100, 40))
        stepper.advance([entity], 1.0)

        assert entity.display_position.x == pytest.approx(15.0)
        assert entity.display_position.y == pytest.approx(6.0)

    def test_monotonic_convergence_then_freeze(self, stepper):
        entity = entity_at(0, 0, target=Point(100, 0))
        distances = [entity.display_position.distance_to(entity.target_position)]

        for _ in range(200):
            stepper.advance([entity], 1.0)
            distances.append(entity.display_position.distance_to(entity.target_position))

        moving = [d for d in distances if d > 0.5]
        assert all(b < a for a, b in zip(moving, moving[1:]))
        assert entity.display_position.x <= 100.0

        frozen = entity.display_position
        stepper.advance([entity], 1.0)
        assert entity.display_position == frozen
        assert abs(frozen.x - 100.0) <= 0.5

    def test_within_threshold_does_not_move(self, stepper):
        entity = entity_at(10, 10, target=Point(10.4, 9.6))
        stepper.advance([entity], 1.0)
        assert entity.display_position == Point(10, 10)

    def test_elapsed_frames_are_frame_rate_independent(self, heatmap):
        a = entity_at(0, 0, target=Point(100, 0))
        b = entity_at(0, 0, target=Point(100, 0))

        InterpolationStepper(heatmap).advance([a], 2.0)
        single = InterpolationStepper(heatmap)
        single.advance([b], 1.0)
        single.advance([b], 1.0)

        assert a.display_position.x == pytest.approx(b.display_position.x)

    def test_large_elapsed_never_overshoots(self, stepper):
        entity = entity_at(0, 0, target=Point(100, 0))
        stepper.advance([entity], 500.0)
        assert entity.display_position.x <= 100.0

    def test_non_positive_elapsed_is_noop(self, stepper, heatmap):
        entity = entity_at(0, 0, target=Point(100, 0))
        stepper.advance([entity], 0.0)
        stepper.advance([entity], -3.0)

        assert entity.display_position == Point(0, 0)
        assert heatmap.value_at(0, 0) == 0.0
        assert stepper.tick_count == 0


class TestTrail:
    """Trail spacing and boundedness."""

    def test_appends_only_past_spacing(self, stepper):
        entity = entity_at(0, 0, target=Point(300, 0))
        stepper.advance([entity], 1.0)
        assert entity.trail == [Point(0, 0), entity.display_position]

        short = entity_at(0, 0, target=Point(20, 0))
        stepper.advance([short], 1.0)
        assert short.trail == [Point(0, 0)]

    def test_trail_is_bounded(self, stepper):
        entity = entity_at(0, 0)
        for i in range(100):
            x = 5000.0 if i % 2 == 0 else 0.0
            entity.target_position = Point(x, 0)
            stepper.advance([entity], 1.0)
            assert len(entity.trail) <= 16

        assert len(entity.trail) == 16

    def test_empty_trail_gets_seeded(self, stepper):
        entity = entity_at(0, 0, target=Point(10, 0))
        entity.trail.clear()
        stepper.advance([entity], 1.0)
        assert entity.trail == [entity.display_position]


class TestHeatmapWarming:
    """The stepper warms the cell under each entity."""

    def test_stationary_entity_warms_one_cell(self, stepper, heatmap):
        entity = entity_at(10, 10)
        for _ in range(50):
            stepper.advance([entity], 1.0)

        assert heatmap.value_at(0, 0) == pytest.approx(1.0)
        assert heatmap.get_metrics()["total_intensity"] == pytest.approx(1.0)

    def test_heat_scales_with_elapsed_frames(self, stepper, heatmap):
        stepper.advance([entity_at(60, 60)], 3.0)
        assert heatmap.value_at(2, 2) == pytest.approx(0.06)

    def test_out_of_bounds_entity_still_moves(self, stepper, heatmap):
        entity = entity_at(150, 10, target=Point(250, 10))
        stepper.advance([entity], 1.0)

        assert entity.display_position.x == pytest.approx(165.0)
        assert heatmap.get_metrics()["total_intensity"] == 0.0

    def test_cells_are_monotonic(self, stepper, heatmap):
        entity = entity_at(5, 5, target=Point(95, 95))
        previous = heatmap.publish_snapshot()
        for _ in range(40):
            stepper.advance([entity], 1.0)
            current = heatmap.publish_snapshot()
            assert (current >= previous).all()
            previous = current
