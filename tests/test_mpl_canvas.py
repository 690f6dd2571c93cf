"""Tests for chart/mpl_canvas.py: painting instructions and translating events."""

from types import SimpleNamespace

import pytest
from matplotlib.backend_bases import KeyEvent, MouseEvent
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from logscope.chart.engine import ChartEngine
from logscope.chart.input_controller import (
    KEY_LEFT,
    KeyDown,
    PointerButton,
    PointerMove,
    WheelInput,
)
from logscope.chart.mpl_canvas import MatplotlibChart, _parse_font, _to_mpl_color


@pytest.fixture
def engine(temp_buffer, temp_fields):
    return ChartEngine(temp_buffer, temp_fields, canvas_width=100, canvas_height=130)


@pytest.fixture
def chart(engine):
    fig = Figure(figsize=(1.0, 1.3), dpi=100)
    FigureCanvasAgg(fig)
    chart = MatplotlibChart(engine, fig=fig)
    yield chart
    chart.close()


class TestPainting:
    """Test that instructions become matplotlib artists."""

    def test_draw_uses_canvas_pixel_coordinates(self, chart):
        chart.draw()
        assert chart.ax.get_xlim() == (0, 100)
        assert chart.ax.get_ylim() == (130, 0)
        assert len(chart.ax.lines) == 1

    def test_draw_with_readout(self, chart, engine):
        engine.handle(PointerMove(x=60))
        chart.draw()
        # trace plus guide line, two labels each with a shadow
        assert len(chart.ax.lines) == 2
        assert len(chart.ax.texts) == 4
        assert "temp: 15 (C)" in [t.get_text() for t in chart.ax.texts]

    def test_redraw_replaces_artists(self, chart):
        chart.draw()
        chart.draw()
        assert len(chart.ax.lines) == 1

    def test_invalid_state_is_corrected_before_painting(self, chart, engine):
        engine.viewport.set_zoom(0.5)
        instructions = chart.draw()
        assert not instructions.skipped
        assert engine.zoom == 1.0
        assert len(chart.ax.lines) == 1


class TestEventTranslation:
    """Test matplotlib events to input events."""

    def test_wheel(self, chart):
        assert chart._wheel(SimpleNamespace(step=1, key=None)) == WheelInput(delta_y=-100)
        assert chart._wheel(SimpleNamespace(step=-2, key="shift")) == WheelInput(
            delta_x=200
        )

    def test_motion_tracks_movement(self, chart):
        chart.draw()
        first = chart._motion(SimpleNamespace(inaxes=chart.ax, xdata=40.0))
        second = chart._motion(SimpleNamespace(inaxes=chart.ax, xdata=30.0))
        assert first == PointerMove(x=40.0, movement_x=0.0)
        assert second == PointerMove(x=30.0, movement_x=-10.0)

    def test_motion_outside_axes_ignored(self, chart):
        assert chart._motion(SimpleNamespace(inaxes=None, xdata=None)) is None

    def test_only_primary_button(self, chart):
        assert chart._button(SimpleNamespace(button=1), True) == PointerButton(True)
        assert chart._button(SimpleNamespace(button=3), True) is None

    def test_arrow_keys(self, chart):
        assert chart._key(SimpleNamespace(key="left")) == KeyDown(KEY_LEFT)
        assert chart._key(SimpleNamespace(key="x")) is None

    def test_resize_updates_engine(self, chart, engine):
        chart.fig.set_size_inches(2.0, 1.3)
        chart._on_resize(None)
        assert engine.area.width == pytest.approx(200)
        assert engine.area.height == pytest.approx(100)


class TestSubscription:
    """Test the event-source side against real matplotlib callbacks."""

    def test_key_press_reaches_engine(self, chart, engine):
        chart.connect()
        canvas = chart.fig.canvas
        canvas.callbacks.process("key_press_event", KeyEvent("key_press_event", canvas, "up"))
        assert engine.zoom == pytest.approx(1.1)

    def test_scroll_reaches_engine(self, chart, engine):
        chart.connect()
        canvas = chart.fig.canvas
        event = MouseEvent("scroll_event", canvas, 50, 65, step=1)
        canvas.callbacks.process("scroll_event", event)
        assert engine.zoom == pytest.approx(1.1)

    def test_close_disconnects(self, chart, engine):
        chart.connect()
        chart.close()
        canvas = chart.fig.canvas
        canvas.callbacks.process("key_press_event", KeyEvent("key_press_event", canvas, "up"))
        assert engine.zoom == 1.0
        assert not engine.controller.is_attached

    def test_unsubscribe(self, chart):
        token = chart.subscribe(lambda event: False)
        assert token in chart._subscriptions
        chart.unsubscribe(token)
        assert chart._subscriptions == {}


class TestHelpers:
    def test_font(self):
        assert _parse_font("14px Arial", 100) == (pytest.approx(10.08), "Arial")

    def test_unrecognised_font_uses_defaults(self):
        size, family = _parse_font("bold", 100)
        assert size > 0
        assert isinstance(family, str)

    def test_colors(self):
        assert _to_mpl_color("hsl(0, 100%, 50%)") == pytest.approx((1.0, 0.0, 0.0))
        assert _to_mpl_color("#fff") == "#fff"
