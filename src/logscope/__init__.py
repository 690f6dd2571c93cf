"""
LogScope: interactive charting of large, irregularly-sampled log records.

Maps zoom/pan state and a record buffer to line traces, a cursor readout
and the inverse pixel-to-record lookup.
"""

# Import from chart subpackage
from logscope.chart.engine import ChartEngine, RenderOptions, render
from logscope.chart.input_controller import (
    KeyDown,
    PointerButton,
    PointerMove,
    TouchMove,
    TouchStart,
    WheelInput,
)
from logscope.chart.instructions import DrawInstructions
from logscope.chart.records import FieldRange, FieldSelection, LogBuffer
from logscope.chart.viewport import DrawingArea, ViewportState
from logscope.logs import configure_logging

__all__ = [
    # Engine
    "ChartEngine",
    "render",
    "RenderOptions",
    "DrawInstructions",
    # Data model
    "LogBuffer",
    "FieldSelection",
    "FieldRange",
    "ViewportState",
    "DrawingArea",
    # Input events
    "WheelInput",
    "PointerMove",
    "PointerButton",
    "TouchStart",
    "TouchMove",
    "KeyDown",
    "configure_logging",
]
