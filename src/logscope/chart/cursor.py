import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from loguru import logger

from .coordinate_manager import CoordinateManager
from .instructions import ALIGN_LEFT, ALIGN_RIGHT, Colors, GuideLine, TextLabel
from .number_ops import format_number, hsl_string, round_half_up
from .records import FieldRange, FieldSelection, LogBuffer
from .windowing import Window


@dataclass
class Readout:
    """Values shown for the record under the pointer."""

    window_index: int
    buffer_index: int
    time: Optional[float]
    values: Dict[str, str] = field(default_factory=dict)
    labels: List[TextLabel] = field(default_factory=list)
    guide: Optional[GuideLine] = None


class CursorResolver:
    """
    Resolves a pointer position to the nearest visible record and lays out
    the live value readout next to a vertical guide line.
    """

    # Layout constants
    DEFAULT_TEXT_OFFSET = 10.0
    DEFAULT_LINE_SPACING = 20.0
    DEFAULT_TIME_PRECISION = 3
    DEFAULT_TIME_UNIT = "s"

    def __init__(
        self,
        text_offset: float = DEFAULT_TEXT_OFFSET,
        line_spacing: float = DEFAULT_LINE_SPACING,
        time_precision: int = DEFAULT_TIME_PRECISION,
        time_unit: str = DEFAULT_TIME_UNIT,
        debug_overlay: bool = False,
    ):
        self.text_offset = text_offset
        self.line_spacing = line_spacing
        self.time_precision = time_precision
        self.time_unit = time_unit
        self.debug_overlay = debug_overlay

    def resolve_index(
        self, x: float, buffer: LogBuffer, window: Window, coords: CoordinateManager
    ) -> Optional[int]:
        """
        Window index of the record to read for pointer ``x``.

        Markers are substituted by the closest preceding field record.
        Returns None when the pointer falls outside the window.
        """
        index = coords.pixel_to_index(x, len(window))
        buffer_index = window.buffer_index(index)
        if buffer_index is None:
            logger.info(f"Out of bounds: cursor index {index} (window length {len(window)})")
            return None

        while buffer.is_marker(buffer_index):
            # take previous data point for markers
            index -= 1
            buffer_index = window.buffer_index(index)
            if buffer_index is None:
                logger.info(f"No field record before marker at cursor x={x}")
                return None
        return index

    def format_value(
        self,
        buffer: LogBuffer,
        buffer_index: int,
        selection: FieldSelection,
        field_range: FieldRange,
    ) -> str:
        """Display text of one field value, scale and transform applied."""
        if not selection.is_numeric:
            raw = buffer.value(buffer_index, selection.name)
            return "-" if raw is None else str(raw)
        numeric = buffer.column(selection.name)[buffer_index]
        return format_number(field_range.display_value(numeric), field_range.format)

    def resolve(
        self,
        x: Optional[float],
        buffer: LogBuffer,
        window: Window,
        fields: Sequence[FieldSelection],
        field_ranges: Dict[str, FieldRange],
        coords: CoordinateManager,
    ) -> Optional[Readout]:
        """
        Build the readout for pointer ``x``.

        Parameters
        ----------
        x : Optional[float]
            Pointer position in plot pixels, None when no pointer is known.
        buffer : LogBuffer
            Full record buffer.
        window : Window
            Current visible window.
        fields : Sequence[FieldSelection]
            Selected fields, in display order.
        field_ranges : Dict[str, FieldRange]
            Aggregated ranges for ``fields``.
        coords : CoordinateManager
            Coordinate transforms for this frame.

        Returns
        -------
        Optional[Readout]
            None when nothing should be drawn for the readout.
        """
        if x is None:
            return None
        index = self.resolve_index(x, buffer, window, coords)
        if index is None:
            return None
        buffer_index = window.buffer_index(index)
        area = coords.area

        if x > area.width / 2:
            # flip text to the left side of the indicator
            align = ALIGN_RIGHT
            left = x - self.text_offset
        else:
            align = ALIGN_LEFT
            left = x + self.text_offset

        time = buffer.times[buffer_index]
        readout = Readout(
            window_index=index,
            buffer_index=buffer_index,
            time=None if math.isnan(time) else float(time),
            guide=GuideLine(x=x, y_start=0.0, y_end=float(area.canvas_height)),
        )

        top = 0.0
        for field_index, selection in enumerate(fields):
            field_range = field_ranges[selection.name]
            value = self.format_value(buffer, buffer_index, selection, field_range)
            units = f" ({field_range.units})" if field_range.units else ""
            text = f"{selection.name}: {value}{units}"
            top += self.line_spacing
            readout.values[selection.name] = value
            readout.labels.append(
                TextLabel(
                    text=text,
                    x=left,
                    y=top,
                    color=hsl_string(field_index, len(fields)),
                    align=align,
                )
            )

        time_text = format_number(
            None if readout.time is None else round_half_up(readout.time, self.time_precision),
            None,
        )
        readout.labels.append(
            TextLabel(
                text=f"{time_text}{self.time_unit}",
                x=left,
                y=area.height + self.line_spacing,
                color=Colors.GREY.value,
                align=align,
            )
        )

        if self.debug_overlay:
            readout.labels.append(
                TextLabel(
                    text=f"{index} - {x:g}",
                    x=left,
                    y=area.height - self.line_spacing,
                    color=Colors.RED.value,
                    align=align,
                )
            )

        return readout
