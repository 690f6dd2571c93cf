"""
Viewport transform and windowing engine for interactive time-series charts.

Everything here is a pure in-memory computation over a borrowed record
buffer; painting is left to a rendering collaborator such as
:class:`~logscope.chart.mpl_canvas.MatplotlibChart`.
"""

from logscope.chart.aggregation import FieldAggregator
from logscope.chart.coordinate_manager import CoordinateManager
from logscope.chart.cursor import CursorResolver, Readout
from logscope.chart.engine import ChartEngine, RenderOptions, render
from logscope.chart.input_controller import (
    InputController,
    KeyDown,
    PointerButton,
    PointerMove,
    TouchMove,
    TouchStart,
    WheelInput,
)
from logscope.chart.instructions import (
    Colors,
    DrawInstructions,
    GuideLine,
    Polyline,
    TextLabel,
)
from logscope.chart.projection import TraceProjector
from logscope.chart.records import FieldRange, FieldSelection, LogBuffer
from logscope.chart.viewport import DrawingArea, ViewportSnapshot, ViewportState
from logscope.chart.windowing import Window, Windower

__all__ = [
    "ChartEngine",
    "render",
    "RenderOptions",
    "LogBuffer",
    "FieldSelection",
    "FieldRange",
    "FieldAggregator",
    "ViewportState",
    "ViewportSnapshot",
    "DrawingArea",
    "InputController",
    "WheelInput",
    "PointerMove",
    "PointerButton",
    "TouchStart",
    "TouchMove",
    "KeyDown",
    "Windower",
    "Window",
    "CoordinateManager",
    "TraceProjector",
    "CursorResolver",
    "Readout",
    "DrawInstructions",
    "Polyline",
    "TextLabel",
    "GuideLine",
    "Colors",
]
