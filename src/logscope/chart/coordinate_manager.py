import math
from typing import Union

import numpy as np
from loguru import logger

from .number_ops import remap, round_half_up
from .viewport import DrawingArea, ViewportSnapshot


class CoordinateManager:
    """
    Handles coordinate transformations between window indices, values and pixels.

    Centralises all coordinate conversion logic so the projector and the
    cursor resolver cannot drift apart.
    """

    def __init__(self, viewport: ViewportSnapshot, area: DrawingArea):
        """
        Initialise the coordinate manager.

        Parameters
        ----------
        viewport : ViewportSnapshot
            Settled viewport state for the current frame.
        area : DrawingArea
            Pixel geometry of the plot area.
        """
        self.viewport = viewport
        self.area = area

    def index_scale(self, window_length: int) -> float:
        """Pixels per window index; 0 for an empty window."""
        if window_length <= 0:
            return 0.0
        return self.area.width / (window_length / self.viewport.effective_zoom)

    def index_to_pixel(
        self, window_index: Union[int, np.ndarray], window_length: int
    ) -> Union[float, np.ndarray]:
        """Horizontal pixel for a window index, rounded half up."""
        return round_half_up(window_index * self.index_scale(window_length))

    def pixel_to_index(self, x: float, window_length: int) -> int:
        """
        Nearest window index for horizontal pixel ``x``.

        ``x == 0`` maps to the first record and ``x == area.width`` to the
        last; negative positions clamp to 0. Positions past the right edge
        yield indices past the window, which callers treat as out of bounds,
        and so do non-finite positions.
        """
        if not math.isfinite(x):
            return max(window_length, 0)
        if x < 0:
            return 0
        position = remap(x, 0, self.area.width, 0, window_length - 1)
        if not math.isfinite(position):
            return max(window_length, 0)
        index = int(round_half_up(position))
        logger.debug(f"Pixel {x} -> window index {index} (window length {window_length})")
        return index

    def value_to_pixel(
        self, value: Union[float, np.ndarray], v_min: float, v_max: float
    ) -> Union[float, np.ndarray]:
        """Vertical pixel for a value; larger values sit higher on screen."""
        return self.area.height - remap(value, v_min, v_max, 0, self.area.height)
