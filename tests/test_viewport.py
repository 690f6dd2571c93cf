"""Tests for chart/viewport.py: zoom/pan state, boundaries and correction."""

import math

import numpy as np
import pytest

from logscope.chart.viewport import (
    DrawingArea,
    ViewportSnapshot,
    ViewportState,
    right_boundary,
    scaled_width,
)


class TestBoundaries:
    """Test the pan boundaries derived from zoom and width."""

    def test_native_scale_allows_no_pan(self):
        assert scaled_width(100, 1) == 100
        assert right_boundary(100, 1) == 0

    def test_zoomed_in(self):
        assert scaled_width(100, 2) == 200
        assert right_boundary(100, 2) == -100
        assert right_boundary(100, 3) == -200

    def test_fractional_width_never_positive(self):
        assert right_boundary(100.4, 1) == 0

    def test_state_properties(self):
        state = ViewportState(area_width=300, zoom=1.5)
        assert state.left_boundary == 0
        assert state.scaled_width == 450
        assert state.right_boundary == -150


class TestDrawingArea:
    def test_canvas_height_defaults_to_height(self):
        assert DrawingArea(100, 80).canvas_height == 80

    def test_from_canvas_reserves_gutter(self):
        area = DrawingArea.from_canvas(200, 130)
        assert (area.width, area.height, area.canvas_height) == (200, 100, 130)

    def test_tiny_canvas(self):
        assert DrawingArea.from_canvas(100, 20).height == 0

    def test_negative_size_rejected(self):
        with pytest.raises(ValueError):
            DrawingArea(-1, 10)


class TestCheckPan:
    """Test the pan clamp, which looks at the current pan value."""

    def test_current_past_left_boundary(self):
        state = ViewportState(area_width=100, zoom=2, strict_clamp=False)
        assert state.check_pan(10, -5) == 0

    def test_current_past_right_boundary(self):
        state = ViewportState(area_width=100, zoom=2, strict_clamp=False)
        assert state.check_pan(-150, -140) == -100

    def test_lagging_check_accepts_proposed_value(self):
        state = ViewportState(area_width=100, zoom=2, strict_clamp=False)
        assert state.check_pan(-50, -120) == -120

    def test_lagging_overshoot_is_corrected_on_next_mutation(self):
        state = ViewportState(area_width=100, zoom=2, pan=-90, strict_clamp=False)
        state.pan_by(-50)
        assert state.pan == -140
        state.pan_by(5)
        assert state.pan == -100

    def test_strict_clamp_bounds_proposed_value(self):
        state = ViewportState(area_width=100, zoom=2)
        assert state.check_pan(-50, -120) == -100
        assert state.check_pan(-50, 30) == 0
        assert state.check_pan(-50, -60) == -60

    def test_pan_stays_in_bounds_for_any_sequence(self):
        rng = np.random.default_rng(7)
        state = ViewportState(area_width=100, zoom=3)
        for delta in rng.normal(0, 80, size=500):
            state.pan_by(float(delta))
            assert state.right_boundary <= state.pan <= state.left_boundary

    def test_non_finite_delta_ignored(self):
        state = ViewportState(area_width=100, zoom=2, pan=-10)
        assert not state.pan_by(float("nan"))
        assert state.pan == -10


class TestZoom:
    """Test zoom mutation and snapping."""

    def test_zoom_in(self):
        state = ViewportState(area_width=100)
        assert state.zoom_by(0.5)
        assert state.zoom == 1.5

    def test_zoom_below_one_snaps_and_resets_pan(self):
        state = ViewportState(area_width=100, zoom=1.2, pan=-10)
        assert state.zoom_by(-0.5)
        assert (state.zoom, state.pan) == (1.0, 0.0)

    def test_zoom_out_at_native_scale_is_no_change(self):
        state = ViewportState(area_width=100)
        assert not state.zoom_by(-0.1)
        assert state.zoom == 1.0

    def test_reset(self):
        state = ViewportState(area_width=100, zoom=4, pan=-250)
        state.reset_to_initial_state()
        assert (state.zoom, state.pan) == (1.0, 0.0)


class TestSnapshot:
    """Test validity checks and correction of settled state."""

    def test_valid(self):
        assert ViewportSnapshot(zoom=2, pan=-50, area_width=100).is_valid()

    def test_zoom_below_one_corrects_to_initial(self):
        corrected = ViewportSnapshot(zoom=0.5, pan=-30, area_width=100).corrected()
        assert (corrected.zoom, corrected.pan) == (1.0, 0.0)

    def test_pan_clamped_to_nearest_boundary(self):
        assert ViewportSnapshot(zoom=2, pan=10, area_width=100).corrected().pan == 0
        assert ViewportSnapshot(zoom=2, pan=-500, area_width=100).corrected().pan == -100

    def test_non_finite_zoom(self):
        snapshot = ViewportSnapshot(zoom=math.nan, pan=0, area_width=100)
        assert not snapshot.is_valid()
        assert snapshot.corrected().zoom == 1.0

    def test_effective_zoom_never_below_one(self):
        assert ViewportSnapshot(zoom=0.25, pan=0, area_width=100).effective_zoom == 1.0

    def test_state_round_trip(self):
        state = ViewportState(area_width=100, zoom=0.5, pan=20)
        assert not state.is_valid()
        state.apply(state.snapshot().corrected())
        assert state.is_valid()
        assert (state.zoom, state.pan) == (1.0, 0.0)

    def test_resize_changes_boundaries(self):
        state = ViewportState(area_width=100, zoom=2)
        state.resize(300)
        assert state.right_boundary == -300
