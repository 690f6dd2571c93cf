from dataclasses import dataclass
from typing import Optional

import numpy as np
from loguru import logger

from .number_ops import round_half_up
from .viewport import ViewportSnapshot


@dataclass(frozen=True, eq=False)
class Window:
    """
    The records visible for one viewport.

    ``indices`` are buffer indices of the visible records after decimation;
    window index ``i`` refers to ``indices[i]``.
    """

    start_index: float
    max_index: float
    resolution: int
    indices: np.ndarray

    def __len__(self) -> int:
        return len(self.indices)

    @property
    def is_empty(self) -> bool:
        return len(self.indices) == 0

    def buffer_index(self, window_index: int) -> Optional[int]:
        """Buffer index for ``window_index``, None when out of the window."""
        if window_index < 0 or window_index >= len(self.indices):
            return None
        return int(self.indices[window_index])

    def values(self, column: np.ndarray) -> np.ndarray:
        """Slice a full-buffer column down to this window."""
        return column[self.indices]


class Windower:
    """
    Selects the visible slice of the buffer for a viewport.

    Optionally down-samples the slice by keeping every ``resolution``-th
    record to bound the draw cost of very large buffers.
    """

    def __init__(self, decimation: bool = False, max_resolution: Optional[int] = None):
        """
        Initialise the windower.

        Parameters
        ----------
        decimation : bool, default=False
            Keep every N-th record when more than one record falls on a pixel.
        max_resolution : Optional[int], default=None
            Upper bound for the decimation stride.
        """
        self.decimation = decimation
        self.max_resolution = max_resolution

    @staticmethod
    def max_index(last_index: int, zoom: float) -> float:
        """Number of records visible; shrinks as zoom grows."""
        return max(last_index, 0) / max(zoom, 1.0)

    @staticmethod
    def start_index(pan: float, max_index: float, area_width: float) -> float:
        """First visible record index; advances as pan moves left of the origin."""
        if pan >= 0 or area_width <= 0:
            return 0.0
        return -(pan * max_index / area_width)

    @staticmethod
    def pixels_on_screen(start_index: float, max_index: float, area_width: float) -> float:
        """Records per horizontal pixel for the current view."""
        if area_width <= 0:
            return 1.0
        return round_half_up((max_index - start_index + 1) / area_width)

    def resolution(self, start_index: float, max_index: float, area_width: float) -> int:
        """Decimation stride, 1 when decimation is disabled."""
        if not self.decimation:
            return 1
        pixels = self.pixels_on_screen(start_index, max_index, area_width)
        if pixels <= 1:
            return 1
        stride = int(pixels)
        if self.max_resolution is not None:
            stride = min(stride, max(1, self.max_resolution))
        return stride

    def window(self, viewport: ViewportSnapshot, buffer_length: int) -> Window:
        """
        Compute the visible window.

        The slice ``[start, start + max_index)`` uses truncated bounds and is
        clipped to the buffer, so it never reads out of range.

        Parameters
        ----------
        viewport : ViewportSnapshot
            Settled zoom/pan state.
        buffer_length : int
            Number of records in the buffer.

        Returns
        -------
        Window
            Visible records, possibly decimated.
        """
        area_width = viewport.area_width
        max_index = self.max_index(buffer_length - 1, viewport.zoom)
        start_index = self.start_index(viewport.pan, max_index, area_width)

        start = min(int(start_index), buffer_length)
        stop = min(int(start_index + max_index), buffer_length)
        indices = np.arange(start, max(start, stop), dtype=np.int64)

        resolution = self.resolution(start_index, max_index, area_width)
        if resolution > 1:
            # skip n-th element to reduce number of data points
            indices = indices[::resolution]

        logger.debug(
            f"Window: start={start_index:.3f}, max={max_index:.3f}, slice=[{start}, {stop}), "
            f"resolution={resolution}, length={len(indices)}"
        )
        return Window(
            start_index=start_index,
            max_index=max_index,
            resolution=resolution,
            indices=indices,
        )
