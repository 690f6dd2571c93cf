from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from loguru import logger

from .aggregation import FieldAggregator
from .coordinate_manager import CoordinateManager
from .cursor import CursorResolver
from .input_controller import EventSource, InputController, InputEvent
from .instructions import DrawInstructions
from .projection import TraceProjector
from .records import (
    FieldRange,
    FieldSelection,
    LogBuffer,
    SymbolResolver,
    default_resolver,
    validate_selection,
)
from .viewport import DrawingArea, ViewportSnapshot, ViewportState
from .windowing import Windower


@dataclass(frozen=True)
class RenderOptions:
    """Per-frame rendering switches and styling."""

    decimation: bool = False
    max_resolution: Optional[int] = None
    show_markers: bool = False
    debug_overlay: bool = False
    font: str = "14px Arial"
    min_line_width: float = 1.25
    text_offset: float = CursorResolver.DEFAULT_TEXT_OFFSET
    line_spacing: float = CursorResolver.DEFAULT_LINE_SPACING
    time_precision: int = CursorResolver.DEFAULT_TIME_PRECISION
    time_unit: str = CursorResolver.DEFAULT_TIME_UNIT

    def line_width(self, area: DrawingArea) -> float:
        return max(self.min_line_width, area.height / 400)


def render(
    viewport: ViewportSnapshot,
    buffer: LogBuffer,
    field_ranges: Dict[str, FieldRange],
    fields: Sequence[FieldSelection],
    area: DrawingArea,
    options: RenderOptions = RenderOptions(),
    cursor_x: Optional[float] = None,
) -> DrawInstructions:
    """
    Compute the draw instructions for one frame.

    Pure: nothing is mutated. An invalid viewport is not drawn; the
    returned instructions carry the corrected zoom/pan with
    ``skipped=True`` so the caller can adopt them before the next frame.

    Parameters
    ----------
    viewport : ViewportSnapshot
        Settled zoom/pan state.
    buffer : LogBuffer
        Full record buffer.
    field_ranges : Dict[str, FieldRange]
        Aggregated ranges for ``fields``.
    fields : Sequence[FieldSelection]
        Selected fields, in display order.
    area : DrawingArea
        Plot geometry; ``area.width`` must match ``viewport.area_width``.
    options : RenderOptions
        Rendering switches.
    cursor_x : Optional[float], default=None
        Pointer position for the readout.

    Returns
    -------
    DrawInstructions
        Polylines, labels and guides for the rendering collaborator.
    """
    line_width = options.line_width(area)

    if not viewport.is_valid():
        corrected = viewport.corrected()
        logger.info(
            f"Invalid viewport zoom={viewport.zoom}, pan={viewport.pan}; "
            f"snapping to zoom={corrected.zoom}, pan={corrected.pan} and skipping frame"
        )
        return DrawInstructions(
            zoom=corrected.zoom,
            pan=corrected.pan,
            skipped=True,
            font=options.font,
            line_width=line_width,
        )

    windower = Windower(decimation=options.decimation, max_resolution=options.max_resolution)
    window = windower.window(viewport, len(buffer))
    coords = CoordinateManager(viewport, area)
    projector = TraceProjector(show_markers=options.show_markers)

    instructions = DrawInstructions(
        zoom=viewport.zoom,
        pan=viewport.pan,
        window=window,
        font=options.font,
        line_width=line_width,
    )
    instructions.polylines = projector.project(
        buffer, window, fields, field_ranges, coords, line_width
    )
    instructions.guides.extend(projector.marker_guides(buffer, window, coords))

    resolver = CursorResolver(
        text_offset=options.text_offset,
        line_spacing=options.line_spacing,
        time_precision=options.time_precision,
        time_unit=options.time_unit,
        debug_overlay=options.debug_overlay,
    )
    readout = resolver.resolve(
        cursor_x, buffer, window, fields, field_ranges, coords
    )
    if readout is not None:
        instructions.labels.extend(readout.labels)
        instructions.guides.append(readout.guide)

    return instructions


class ChartEngine:
    """
    Interactive time-series chart engine.

    Owns the viewport state, the input controller and the memoized field
    aggregation; turns them into draw instructions with :func:`render`.
    """

    # Default styling constants
    DEFAULT_BOTTOM_GUTTER = 30
    DEFAULT_FONT = "14px Arial"
    DEFAULT_MIN_LINE_WIDTH = 1.25

    def __init__(
        self,
        buffer: LogBuffer,
        fields: Sequence[FieldSelection],
        canvas_width: float,
        canvas_height: float,
        bottom_gutter: float = DEFAULT_BOTTOM_GUTTER,
        decimation: bool = False,
        max_resolution: Optional[int] = None,
        show_markers: bool = False,
        debug_overlay: bool = False,
        strict_pan_clamp: bool = True,
        wheel_zoom_divisor: float = InputController.DEFAULT_WHEEL_ZOOM_DIVISOR,
        key_zoom_step: float = InputController.DEFAULT_KEY_ZOOM_STEP,
        key_pan_step: float = InputController.DEFAULT_KEY_PAN_STEP,
        resolver: SymbolResolver = default_resolver,
        font: str = DEFAULT_FONT,
        min_line_width: float = DEFAULT_MIN_LINE_WIDTH,
        text_offset: float = CursorResolver.DEFAULT_TEXT_OFFSET,
        line_spacing: float = CursorResolver.DEFAULT_LINE_SPACING,
        time_precision: int = CursorResolver.DEFAULT_TIME_PRECISION,
        time_unit: str = CursorResolver.DEFAULT_TIME_UNIT,
    ):
        """
        Initialise the chart engine.

        Parameters
        ----------
        buffer : LogBuffer
            Record buffer to display.
        fields : Sequence[FieldSelection]
            Selected fields, in display order.
        canvas_width, canvas_height : float
            Canvas size in pixels.
        bottom_gutter : float, default=30
            Pixels kept free below the plot for the time label.
        decimation : bool, default=False
            Down-sample the window when several records share a pixel.
        max_resolution : Optional[int], default=None
            Upper bound for the decimation stride.
        show_markers : bool, default=False
            Draw dashed guides at marker records.
        debug_overlay : bool, default=False
            Add the cursor index/position debug label.
        strict_pan_clamp : bool, default=True
            Bound accepted pan values to the valid range on every mutation.
        wheel_zoom_divisor, key_zoom_step, key_pan_step : float
            Input sensitivity, see :class:`InputController`.
        resolver : SymbolResolver, default=default_resolver
            Resolves symbolic field ``scale``/``transform`` values.
        font : str, default="14px Arial"
            Font passed on to the rendering collaborator.
        min_line_width : float, default=1.25
            Lower bound of the trace line width.
        text_offset : float, default=10.0
            Horizontal gap between the cursor guide and its readout labels.
        line_spacing : float, default=20.0
            Vertical distance between readout lines.
        time_precision : int, default=3
            Decimal digits of the time label.
        time_unit : str, default="s"
            Suffix of the time label.
        """
        self.buffer = buffer
        self.fields = validate_selection(fields)
        self.bottom_gutter = bottom_gutter
        self.area = DrawingArea.from_canvas(canvas_width, canvas_height, bottom_gutter)
        self.options = RenderOptions(
            decimation=decimation,
            max_resolution=max_resolution,
            show_markers=show_markers,
            debug_overlay=debug_overlay,
            font=font,
            min_line_width=min_line_width,
            text_offset=text_offset,
            line_spacing=line_spacing,
            time_precision=time_precision,
            time_unit=time_unit,
        )

        self.aggregator = FieldAggregator(resolver=resolver)
        self.viewport = ViewportState(
            area_width=self.area.width, strict_clamp=strict_pan_clamp
        )
        self.controller = InputController(
            self.viewport,
            wheel_zoom_divisor=wheel_zoom_divisor,
            key_zoom_step=key_zoom_step,
            key_pan_step=key_pan_step,
        )

        unknown = buffer.unknown_keys(self.fields)
        if unknown:
            logger.debug(f"Ignoring unselected record keys: {unknown}")

        self.last_instructions: Optional[DrawInstructions] = None

    @property
    def zoom(self) -> float:
        return self.viewport.zoom

    @property
    def pan(self) -> float:
        return self.viewport.pan

    @property
    def field_ranges(self) -> Dict[str, FieldRange]:
        return self.aggregator.field_ranges(self.buffer, self.fields)

    def handle(self, event: InputEvent) -> bool:
        """Apply an input event; True if a re-render is needed."""
        return self.controller.handle(event)

    def attach(self, source: EventSource) -> None:
        self.controller.attach(source)

    def detach(self) -> None:
        self.controller.detach()

    def set_data(self, buffer: LogBuffer) -> None:
        """Replace the record buffer; ranges are recomputed on the next render."""
        self.buffer = buffer
        logger.info(f"Data replaced: {len(buffer)} records")

    def set_fields(self, fields: Sequence[FieldSelection]) -> None:
        self.fields = validate_selection(fields)
        logger.info(f"Field selection changed: {[f.name for f in self.fields]}")

    def resize(self, canvas_width: float, canvas_height: float) -> None:
        self.area = DrawingArea.from_canvas(canvas_width, canvas_height, self.bottom_gutter)
        self.viewport.resize(self.area.width)
        logger.debug(f"Resized drawing area to {self.area.width}x{self.area.height}")

    def render(self) -> DrawInstructions:
        """
        Render one frame from the current settled state.

        A correction reported by :func:`render` is adopted immediately, so
        the following frame draws from a valid viewport.
        """
        instructions = render(
            self.viewport.snapshot(),
            self.buffer,
            self.field_ranges,
            self.fields,
            self.area,
            self.options,
            cursor_x=self.controller.cursor_x,
        )
        if instructions.skipped:
            self.viewport.apply(
                ViewportSnapshot(
                    zoom=instructions.zoom,
                    pan=instructions.pan,
                    area_width=self.area.width,
                )
            )
        self.last_instructions = instructions
        return instructions

    def home(self) -> None:
        """Return to the full view."""
        self.viewport.reset_to_initial_state()
