import re
from typing import Any, Dict, List, Optional, Tuple

import matplotlib as mpl
import matplotlib.pyplot as plt
from loguru import logger

from .engine import ChartEngine
from .input_controller import (
    KEY_DOWN,
    KEY_LEFT,
    KEY_RIGHT,
    KEY_UP,
    InputHandler,
    KeyDown,
    PointerButton,
    PointerMove,
    WheelInput,
)
from .instructions import Colors, DrawInstructions
from .number_ops import hsl_to_rgb


def _to_mpl_color(color: str):
    """Matplotlib has no hsl() colours; convert those to RGB."""
    if color.startswith("hsl"):
        return hsl_to_rgb(color)
    return color


def _parse_font(font: str, dpi: float) -> Tuple[float, str]:
    """Split a CSS-like ``"14px Arial"`` into a point size and family."""
    match = re.match(r"^\s*([\d.]+)px\s+(.+)$", font)
    if match is None:
        logger.warning(f"Unrecognised font {font!r}, using matplotlib defaults")
        return mpl.rcParams["font.size"], mpl.rcParams["font.family"][0]
    return float(match.group(1)) * 72.0 / dpi, match.group(2).strip()


class MatplotlibChart:
    """
    Paints chart draw instructions on a matplotlib figure and feeds
    matplotlib input events back into the engine.

    The axes fill the whole figure and use canvas pixel coordinates with
    the origin at the top-left, so instructions are drawn unchanged.
    """

    # Pixels of horizontal/vertical wheel delta per scroll step
    SCROLL_STEP_DELTA = 100.0
    KEY_MAP = {"up": KEY_UP, "down": KEY_DOWN, "left": KEY_LEFT, "right": KEY_RIGHT}

    def __init__(
        self,
        engine: ChartEngine,
        fig: Optional[mpl.figure.Figure] = None,
        dpi: float = 100.0,
    ):
        """
        Initialise the chart figure.

        Parameters
        ----------
        engine : ChartEngine
            Engine providing draw instructions.
        fig : Optional[mpl.figure.Figure], default=None
            Figure to draw into. If None, a pyplot figure sized to the
            engine's canvas is created.
        dpi : float, default=100.0
            Resolution used when creating the figure.
        """
        self.engine = engine
        self._owns_figure = fig is None
        if fig is None:
            area = engine.area
            fig = plt.figure(
                figsize=(max(area.width, 1) / dpi, max(area.canvas_height, 1) / dpi),
                dpi=dpi,
            )
        self.fig = fig
        self.fig.patch.set_facecolor(Colors.BG.value)
        self.ax = self.fig.add_axes((0.0, 0.0, 1.0, 1.0))
        self.ax.set_axis_off()

        self._artists: List[mpl.artist.Artist] = []
        self._subscriptions: Dict[int, List[int]] = {}
        self._last_x: Optional[float] = None

    # EventSource protocol

    def subscribe(self, handler: InputHandler) -> int:
        """Connect matplotlib callbacks that forward input to ``handler``."""

        def dispatch(event) -> None:
            if event is not None and handler(event):
                self.draw()

        canvas = self.fig.canvas
        cids = [
            canvas.mpl_connect("scroll_event", lambda e: dispatch(self._wheel(e))),
            canvas.mpl_connect("motion_notify_event", lambda e: dispatch(self._motion(e))),
            canvas.mpl_connect("button_press_event", lambda e: dispatch(self._button(e, True))),
            canvas.mpl_connect("button_release_event", lambda e: dispatch(self._button(e, False))),
            canvas.mpl_connect("key_press_event", lambda e: dispatch(self._key(e))),
            canvas.mpl_connect("resize_event", self._on_resize),
        ]
        token = cids[0]
        self._subscriptions[token] = cids
        logger.debug(f"Connected {len(cids)} matplotlib callbacks")
        return token

    def unsubscribe(self, token: Any) -> None:
        for cid in self._subscriptions.pop(token, []):
            self.fig.canvas.mpl_disconnect(cid)
        logger.debug("Disconnected matplotlib callbacks")

    # Event translation

    def _wheel(self, event) -> Optional[WheelInput]:
        delta = -float(event.step) * self.SCROLL_STEP_DELTA
        if event.key is not None and "shift" in event.key:
            return WheelInput(delta_x=delta)
        return WheelInput(delta_y=delta)

    def _motion(self, event) -> Optional[PointerMove]:
        if event.inaxes is not self.ax or event.xdata is None:
            return None
        x = float(event.xdata)
        movement_x = 0.0 if self._last_x is None else x - self._last_x
        self._last_x = x
        return PointerMove(x=x, movement_x=movement_x)

    def _button(self, event, pressed: bool) -> Optional[PointerButton]:
        if event.button != 1:
            return None
        return PointerButton(pressed=pressed)

    def _key(self, event) -> Optional[KeyDown]:
        key = self.KEY_MAP.get(event.key)
        if key is None:
            return None
        return KeyDown(key=key)

    def _on_resize(self, event) -> None:
        width, height = self.fig.get_size_inches() * self.fig.dpi
        self.engine.resize(float(width), float(height))
        self.draw()

    # Drawing

    def connect(self) -> None:
        """Attach the engine's input controller to this figure."""
        self.engine.attach(self)

    def close(self) -> None:
        """Detach input and release the figure."""
        self.engine.detach()
        self._clear()
        if self._owns_figure:
            plt.close(self.fig)

    def _clear(self) -> None:
        for artist in self._artists:
            artist.remove()
        self._artists.clear()

    def draw(self) -> DrawInstructions:
        """Render a frame and paint it."""
        instructions = self.engine.render()
        if instructions.skipped:
            # the engine adopted a corrected viewport, draw from it
            instructions = self.engine.render()
        self.paint(instructions)
        self.fig.canvas.draw_idle()
        return instructions

    def paint(self, instructions: DrawInstructions) -> None:
        """Replace the figure contents with ``instructions``."""
        self._clear()
        area = self.engine.area
        self.ax.set_xlim(0, area.width)
        self.ax.set_ylim(area.canvas_height, 0)
        if instructions.skipped:
            return

        for line in instructions.polylines:
            (artist,) = self.ax.plot(
                line.xs,
                line.ys,
                color=_to_mpl_color(line.color),
                linewidth=line.line_width,
            )
            self._artists.append(artist)

        for guide in instructions.guides:
            (artist,) = self.ax.plot(
                [guide.x, guide.x],
                [guide.y_start, guide.y_end],
                color=_to_mpl_color(guide.color),
                linestyle=(0, guide.dash),
                linewidth=1.0,
            )
            self._artists.append(artist)

        size, family = _parse_font(instructions.font, self.fig.dpi)
        for label in instructions.labels:
            if label.shadow_color is not None:
                self._artists.append(
                    self.ax.text(
                        label.x + label.shadow_offset,
                        label.y + label.shadow_offset,
                        label.text,
                        color=_to_mpl_color(label.shadow_color),
                        ha=label.align,
                        va="baseline",
                        fontsize=size,
                        family=family,
                    )
                )
            self._artists.append(
                self.ax.text(
                    label.x,
                    label.y,
                    label.text,
                    color=_to_mpl_color(label.color),
                    ha=label.align,
                    va="baseline",
                    fontsize=size,
                    family=family,
                )
            )

        logger.debug(
            f"Painted {len(instructions.polylines)} lines, {len(instructions.guides)} guides, {len(instructions.labels)} labels"
        )

    def show(self) -> None:
        """Connect input, draw and display the figure."""
        self.connect()
        self.draw()
        plt.show()
