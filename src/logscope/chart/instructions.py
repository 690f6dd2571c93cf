from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from .windowing import Window


class Colors(str, Enum):
    RED = "#f32450"
    CYAN = "#8dd3c7"
    YELLOW = "#ffff00"
    PURPLE = "#bebada"
    GREEN = "#77de3c"
    BLUE = "#2fe3ff"
    GREY = "#334455"
    WHITE = "#fff"
    BG = "#222629"


ALIGN_LEFT = "left"
ALIGN_RIGHT = "right"


@dataclass(eq=False)
class Polyline:
    """Connected pixel vertices for one field, in draw order."""

    field: str
    color: str
    xs: np.ndarray
    ys: np.ndarray
    line_width: float = 1.25

    def __len__(self) -> int:
        return len(self.xs)

    @property
    def points(self) -> List[Tuple[float, float]]:
        return list(zip(self.xs.tolist(), self.ys.tolist()))


@dataclass(frozen=True)
class TextLabel:
    """
    Positioned text; a shadow copy in ``shadow_color`` is drawn first,
    offset by ``shadow_offset`` pixels down and right.
    """

    text: str
    x: float
    y: float
    color: str
    align: str = ALIGN_LEFT
    shadow_color: Optional[str] = Colors.BG.value
    shadow_offset: float = 2.0


@dataclass(frozen=True)
class GuideLine:
    """Vertical line from ``y_start`` to ``y_end`` at ``x``."""

    x: float
    y_start: float
    y_end: float
    color: str = Colors.WHITE.value
    dash: Tuple[float, ...] = (5.0, 5.0)


@dataclass(eq=False)
class DrawInstructions:
    """
    Everything the rendering collaborator needs for one frame.

    ``zoom``/``pan`` are the settled values after any correction. When
    ``skipped`` is True the viewport was invalid and nothing should be
    drawn this frame.
    """

    zoom: float
    pan: float
    skipped: bool = False
    polylines: List[Polyline] = field(default_factory=list)
    labels: List[TextLabel] = field(default_factory=list)
    guides: List[GuideLine] = field(default_factory=list)
    window: Optional[Window] = None
    font: str = "14px Arial"
    line_width: float = 1.25

    def polyline(self, name: str) -> Optional[Polyline]:
        for line in self.polylines:
            if line.field == name:
                return line
        return None
