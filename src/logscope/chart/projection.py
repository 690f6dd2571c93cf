import math
from typing import Dict, List, Sequence, Tuple

import numpy as np
from loguru import logger
from numba import njit

from .coordinate_manager import CoordinateManager
from .instructions import Colors, GuideLine, Polyline
from .number_ops import hsl_string
from .records import FieldRange, FieldSelection, LogBuffer
from .windowing import Window


@njit
def _remap_numba(
    value: float, in_min: float, in_max: float, out_min: float, out_max: float
) -> float:
    if in_max == in_min:
        return out_min
    return (value - in_min) * (out_max - out_min) / (in_max - in_min) + out_min


@njit
def _project_trace_numba(
    values: np.ndarray,
    is_field: np.ndarray,
    index_scale: float,
    v_min: float,
    v_max: float,
    area_height: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Numba-optimized projection of one field column onto pixel vertices.

    The first vertex is the un-rounded start position of window record 0.
    Every ``field`` record with a value then adds a rounded vertex; markers
    and missing values add nothing, so the line carries on from the last
    field vertex.

    Parameters
    ----------
    values : np.ndarray
        Field values for the window, NaN where missing.
    is_field : np.ndarray
        True where the window record is a ``field`` sample.
    index_scale : float
        Pixels per window index.
    v_min, v_max : float
        Field scale bounds.
    area_height : float
        Plot height in pixels.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        Pixel x and y coordinates.
    """
    n = len(values)
    xs = np.empty(n + 1, dtype=np.float64)
    ys = np.empty(n + 1, dtype=np.float64)
    count = 0

    if n > 0 and not np.isnan(values[0]):
        xs[0] = 0.0
        ys[0] = area_height - _remap_numba(values[0], v_min, v_max, 0.0, area_height)
        count = 1

    for i in range(n):
        if not is_field[i]:
            continue
        val = values[i]
        if np.isnan(val):
            continue
        y = area_height - _remap_numba(val, v_min, v_max, 0.0, area_height)
        xs[count] = math.floor(i * index_scale + 0.5)
        ys[count] = math.floor(y + 0.5)
        count += 1

    return xs[:count], ys[:count]


class TraceProjector:
    """
    Maps the visible window of each selected field to a pixel polyline.
    """

    def __init__(self, show_markers: bool = False):
        """
        Initialise the projector.

        Parameters
        ----------
        show_markers : bool, default=False
            Emit a dashed guide at each marker record in the window.
        """
        self.show_markers = show_markers

    def project_field(
        self,
        buffer: LogBuffer,
        window: Window,
        field_range: FieldRange,
        coords: CoordinateManager,
        color: str,
        line_width: float,
    ) -> Polyline:
        """Polyline for one numeric field."""
        values = np.ascontiguousarray(window.values(buffer.column(field_range.name)))
        is_field = np.ascontiguousarray(window.values(buffer.is_field))
        xs, ys = _project_trace_numba(
            values,
            is_field,
            coords.index_scale(len(window)),
            field_range.min,
            field_range.max,
            float(coords.area.height),
        )
        return Polyline(
            field=field_range.name,
            color=color,
            xs=xs,
            ys=ys,
            line_width=line_width,
        )

    def project(
        self,
        buffer: LogBuffer,
        window: Window,
        fields: Sequence[FieldSelection],
        field_ranges: Dict[str, FieldRange],
        coords: CoordinateManager,
        line_width: float,
    ) -> List[Polyline]:
        """
        Polylines for every numeric field in ``fields``.

        Colours are assigned by position in the selection so a field keeps
        its colour regardless of which other fields are numeric.
        """
        if window.is_empty:
            logger.debug("Empty window, nothing to project")
            return []

        polylines = []
        for field_index, field in enumerate(fields):
            if not field.is_numeric:
                continue
            polylines.append(
                self.project_field(
                    buffer,
                    window,
                    field_ranges[field.name],
                    coords,
                    hsl_string(field_index, len(fields)),
                    line_width,
                )
            )

        logger.debug(
            f"Projected {len(polylines)} polyline(s), index scale {coords.index_scale(len(window)):.4f}: "
            + ", ".join(f"{p.field}={len(p)}" for p in polylines)
        )
        return polylines

    def marker_guides(
        self, buffer: LogBuffer, window: Window, coords: CoordinateManager
    ) -> List[GuideLine]:
        """Dashed red guides at marker positions, empty unless enabled."""
        if not self.show_markers or window.is_empty:
            return []
        marker_positions = np.flatnonzero(window.values(buffer.is_marker_mask))
        xs = coords.index_to_pixel(marker_positions, len(window))
        return [
            GuideLine(
                x=float(x),
                y_start=0.0,
                y_end=float(coords.area.canvas_height),
                color=Colors.RED.value,
                dash=(5.0, 5.0),
            )
            for x in np.atleast_1d(xs)
        ]
