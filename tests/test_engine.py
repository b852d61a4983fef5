"""
Twin Engine Tests
=================

End-to-end scenarios through decode -> merge -> tick -> publish.
"""

import threading

import numpy as np
import pytest

from conftest import make_message, make_person
from occupancy_twin.config import EngineConfig
from occupancy_twin.engine import TwinEngine
from occupancy_twin.stream import decode_snapshot


def feed(engine, people=(), now=0.0, **kwargs):
    update = decode_snapshot(make_message(people, **kwargs))
    assert update is not None
    return engine.on_snapshot(update, now=now)


class TestScenarios:
    """Scenarios from the occupancy model contract."""

    def test_stationary_entity_heats_single_cell(self, engine):
        assert engine.heatmap_view().rows == 4
        assert engine.heatmap_view().cols == 4

        feed(engine, [make_person("1", x=10, y=10)])
        for _ in range(50):
            engine.on_tick(1.0)
        engine.publish_snapshot()

        snapshot = engine.heatmap_snapshot()
        assert snapshot[0, 0] == pytest.approx(1.0)
        assert snapshot.sum() == pytest.approx(1.0)

    def test_entries_zero_keeps_previous_total(self, engine):
        feed(engine, entries=42)
        feed(engine, entries=0)
        assert engine.statistics.total_entries == 42

    def test_female_label_counted_as_female(self, engine):
        feed(engine, [make_person("1", gender="Female")])

        assert engine.entity_views()[0].gender.value == "FEMALE"
        assert engine.statistics.active_female == 1
        assert engine.statistics.active_male == 0

    def test_retirement_after_three_updates(self, engine):
        for t in (100.0, 101.0, 102.0):
            feed(engine, [make_person("1")], now=t)
        feed(engine, [], now=107.0)

        assert engine.statistics.completed_visits == 1
        assert engine.statistics.cumulative_dwell_time == pytest.approx(7.0)
        assert engine.live_count == 0

    def test_silent_entity_keeps_easing_and_heating(self, engine):
        feed(engine, [make_person("1", x=10, y=10)], now=0.0)
        feed(engine, [make_person("1", x=90, y=10)], now=1.0)

        for _ in range(100):
            engine.on_tick(1.0)

        view = engine.entity_views()[0]
        assert view.x == pytest.approx(90.0, abs=0.5)
        assert engine.get_metrics()["heatmap"]["total_intensity"] == pytest.approx(2.0)


class TestPublishing:
    """Heatmap snapshots follow the publish cadence."""

    def test_publishes_every_n_ticks(self, small_facility):
        engine = TwinEngine(small_facility, EngineConfig(publish_every_n_ticks=3))
        feed(engine, [make_person("1", x=10, y=10)])

        assert engine.on_tick(1.0) is False
        assert engine.on_tick(1.0) is False
        assert engine.heatmap_snapshot()[0, 0] == 0.0
        assert engine.on_tick(1.0) is True
        assert engine.heatmap_snapshot()[0, 0] == pytest.approx(0.06)

    def test_frames_for(self, engine):
        assert engine.frames_for(16.67) == pytest.approx(1.0)
        assert engine.frames_for(-5.0) == 0.0


class TestFacilitySwitch:
    """reset() discards entities and heatmap atomically."""

    def test_reset_zeroes_heatmap_and_entities(self, engine, wide_facility):
        feed(engine, [make_person("1", x=10, y=10)], entries=5)
        for _ in range(10):
            engine.on_tick(1.0)
        engine.publish_snapshot()
        assert engine.heatmap_snapshot().sum() > 0

        engine.reset(wide_facility)

        assert engine.facility.id == "wide"
        assert engine.live_count == 0
        assert engine.heatmap_snapshot().shape == (4, 8)
        assert np.all(engine.heatmap_snapshot() == 0.0)
        assert engine.get_metrics()["heatmap"]["total_intensity"] == 0.0
        assert engine.statistics.total_entries == 5
        assert engine.statistics.completed_visits == 0

    def test_ids_after_reset_start_fresh(self, engine):
        feed(engine, [make_person("1")], now=10.0)
        engine.reset()

        delta = feed(engine, [make_person("1")], now=20.0)
        assert delta.created == ("1",)
        assert delta.retired == ()


class TestOutputs:
    """Read-only views."""

    def test_output_payload(self, engine, sample_message):
        engine.on_snapshot(decode_snapshot(sample_message), now=0.0)
        output = engine.output()

        assert output.facility_id == "small"
        assert {e.id for e in output.entities} == {"7", "9"}
        assert output.statistics.total_entries == 42
        assert output.statistics.active_count == 2
        assert output.heatmap.rows == 4
        assert len(output.heatmap.cells) == 4

    def test_latest_image_retained(self, engine, sample_message):
        engine.on_snapshot(decode_snapshot(sample_message), now=0.0)
        feed(engine, now=1.0)
        assert engine.latest_image == b"hello"

    def test_entity_views_are_copies(self, engine):
        feed(engine, [make_person("1", x=10, y=10)])
        view = engine.entity_views()[0]
        view.x = 999.0

        assert engine.entity_views()[0].x == 10.0

    def test_heatmap_snapshot_is_array(self, engine):
        snapshot = engine.heatmap_snapshot()

        assert isinstance(snapshot, np.ndarray)
        assert snapshot.shape == (4, 4)

    def test_views_wait_for_engine_lock(self, engine):
        """Views block while another thread is inside an engine entry point."""
        results = []

        def read_views():
            results.append((
                engine.live_count,
                engine.statistics,
                engine.latest_image,
                engine.heatmap_snapshot(),
            ))

        reader = threading.Thread(target=read_views)
        with engine._lock:
            reader.start()
            reader.join(timeout=0.2)
            assert reader.is_alive()
            assert results == []

        reader.join(timeout=5.0)
        assert not reader.is_alive()
        assert len(results) == 1
