import math
from dataclasses import dataclass, replace
from typing import Optional

from loguru import logger

from .number_ops import round_half_up

# Zoom never shrinks past native scale
MIN_ZOOM = 1.0
LEFT_BOUNDARY = 0.0


def scaled_width(area_width: float, zoom: float) -> float:
    """Width of the full data set in pixels at ``zoom``."""
    return round_half_up(area_width * zoom)


def right_boundary(area_width: float, zoom: float) -> float:
    """Most negative pan allowed at ``zoom``, never above the left boundary."""
    return min(LEFT_BOUNDARY, -(scaled_width(area_width, zoom) - area_width))


@dataclass(frozen=True)
class DrawingArea:
    """
    Pixel geometry of the plot.

    ``width``/``height`` are the plot area; ``canvas_height`` includes the
    bottom gutter reserved for the time label.
    """

    width: float
    height: float
    canvas_height: Optional[float] = None

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Drawing area must not be negative, got {self.width}x{self.height}."
            )
        if self.canvas_height is None:
            object.__setattr__(self, "canvas_height", self.height)

    @classmethod
    def from_canvas(
        cls, canvas_width: float, canvas_height: float, bottom_gutter: float = 30
    ) -> "DrawingArea":
        return cls(
            width=canvas_width,
            height=max(0.0, canvas_height - bottom_gutter),
            canvas_height=canvas_height,
        )


@dataclass(frozen=True)
class ViewportSnapshot:
    """Settled zoom/pan state observed by one render pass."""

    zoom: float
    pan: float
    area_width: float

    @property
    def effective_zoom(self) -> float:
        return max(self.zoom, MIN_ZOOM)

    @property
    def left_boundary(self) -> float:
        return LEFT_BOUNDARY

    @property
    def right_boundary(self) -> float:
        return right_boundary(self.area_width, self.zoom)

    def is_valid(self) -> bool:
        return (
            math.isfinite(self.zoom)
            and math.isfinite(self.pan)
            and self.zoom >= MIN_ZOOM
            and self.right_boundary <= self.pan <= LEFT_BOUNDARY
        )

    def corrected(self) -> "ViewportSnapshot":
        """
        Nearest valid state.

        ``zoom < 1`` (or non-finite) resets to ``zoom=1, pan=0``; an
        out-of-range pan is clamped to the nearest boundary.
        """
        if not math.isfinite(self.zoom) or self.zoom < MIN_ZOOM:
            return replace(self, zoom=MIN_ZOOM, pan=0.0)
        if not math.isfinite(self.pan):
            return replace(self, pan=0.0)
        if self.pan > LEFT_BOUNDARY:
            return replace(self, pan=LEFT_BOUNDARY)
        if self.pan < self.right_boundary:
            return replace(self, pan=self.right_boundary)
        return self


class ViewportState:
    """
    Holds the zoom factor and pan offset of the chart.

    All mutations go through this class so the pan bound
    ``right_boundary <= pan <= 0`` is maintained in one place.
    """

    def __init__(
        self,
        area_width: float = 0.0,
        zoom: float = MIN_ZOOM,
        pan: float = 0.0,
        strict_clamp: bool = True,
    ):
        """
        Initialise viewport state.

        Parameters
        ----------
        area_width : float, default=0.0
            Width of the drawing area in pixels.
        zoom : float, default=1.0
            Initial zoom factor.
        pan : float, default=0.0
            Initial pan offset in pixels (<= 0 scrolls right).
        strict_clamp : bool, default=True
            Also bound accepted pan values to the valid range. When False,
            only the lagging check on the current pan applies.
        """
        self.area_width = float(area_width)
        self.zoom = float(zoom)
        self.pan = float(pan)
        self.strict_clamp = strict_clamp

    @property
    def left_boundary(self) -> float:
        return LEFT_BOUNDARY

    @property
    def right_boundary(self) -> float:
        return right_boundary(self.area_width, self.zoom)

    @property
    def scaled_width(self) -> float:
        return scaled_width(self.area_width, self.zoom)

    def snapshot(self) -> ViewportSnapshot:
        return ViewportSnapshot(zoom=self.zoom, pan=self.pan, area_width=self.area_width)

    def apply(self, snapshot: ViewportSnapshot) -> None:
        """Adopt a (corrected) snapshot produced by a render pass."""
        self.zoom = snapshot.zoom
        self.pan = snapshot.pan

    def check_pan(self, current: float, value: float) -> float:
        """
        Clamp a proposed pan value.

        The check looks at the *current* pan: if it already lies beyond a
        boundary the result is that boundary, otherwise the proposed value
        is accepted.
        """
        if current > LEFT_BOUNDARY:
            return LEFT_BOUNDARY
        boundary = self.right_boundary
        if current < boundary:
            return boundary
        if self.strict_clamp:
            return min(LEFT_BOUNDARY, max(boundary, value))
        return value

    def pan_by(self, delta: float) -> bool:
        """Shift pan by ``delta`` pixels. Returns True if pan changed."""
        if not math.isfinite(delta):
            logger.warning(f"Ignoring non-finite pan delta {delta}")
            return False
        new_pan = self.check_pan(self.pan, self.pan + delta)
        changed = new_pan != self.pan
        self.pan = new_pan
        return changed

    def zoom_by(self, delta: float) -> bool:
        """
        Change zoom by ``delta``.

        A result below 1 snaps to ``zoom=1, pan=0``. Returns True if the
        state changed.
        """
        if not math.isfinite(delta):
            logger.warning(f"Ignoring non-finite zoom delta {delta}")
            return False
        old = (self.zoom, self.pan)
        new_zoom = self.zoom + delta
        if new_zoom < MIN_ZOOM:
            self.zoom = MIN_ZOOM
            self.pan = 0.0
        else:
            self.zoom = new_zoom
        return (self.zoom, self.pan) != old

    def set_zoom(self, zoom: float) -> None:
        """Set zoom directly; invalid values are corrected by the next render."""
        self.zoom = float(zoom)

    def set_pan(self, pan: float) -> None:
        """Set pan directly; invalid values are corrected by the next render."""
        self.pan = float(pan)

    def resize(self, area_width: float) -> None:
        self.area_width = float(area_width)

    def is_valid(self) -> bool:
        return self.snapshot().is_valid()

    def reset_to_initial_state(self) -> None:
        """Back to native scale, no pan."""
        self.zoom = MIN_ZOOM
        self.pan = 0.0
        logger.info("Viewport reset to zoom=1, pan=0")
