import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Protocol, Tuple, Union

from loguru import logger

from .viewport import ViewportState

KEY_UP = "ArrowUp"
KEY_DOWN = "ArrowDown"
KEY_LEFT = "ArrowLeft"
KEY_RIGHT = "ArrowRight"
DIRECTION_KEYS = (KEY_UP, KEY_DOWN, KEY_LEFT, KEY_RIGHT)


@dataclass(frozen=True)
class WheelInput:
    """Wheel or trackpad scroll, in the browser's delta convention."""

    delta_x: float = 0.0
    delta_y: float = 0.0


@dataclass(frozen=True)
class PointerMove:
    """Pointer moved to ``x`` (plot pixels) by ``movement_x`` since the last move."""

    x: float
    movement_x: float = 0.0


@dataclass(frozen=True)
class PointerButton:
    pressed: bool


@dataclass(frozen=True)
class TouchStart:
    pass


@dataclass(frozen=True)
class TouchMove:
    """Single-touch position in page coordinates."""

    page_x: float
    page_y: float = 0.0


@dataclass(frozen=True)
class KeyDown:
    key: str


InputEvent = Union[WheelInput, PointerMove, PointerButton, TouchStart, TouchMove, KeyDown]
InputHandler = Callable[[InputEvent], Any]


class EventSource(Protocol):
    """Something that delivers input events to subscribed handlers."""

    def subscribe(self, handler: InputHandler) -> Any: ...

    def unsubscribe(self, token: Any) -> None: ...


class InputController:
    """
    Translates wheel/drag/touch/keyboard input into viewport mutations.

    Also tracks the pointer position used for the cursor readout.
    """

    # Default interaction constants
    DEFAULT_WHEEL_ZOOM_DIVISOR = 1000.0
    DEFAULT_KEY_ZOOM_STEP = 0.1
    DEFAULT_KEY_PAN_STEP = 20.0

    def __init__(
        self,
        viewport: ViewportState,
        wheel_zoom_divisor: float = DEFAULT_WHEEL_ZOOM_DIVISOR,
        key_zoom_step: float = DEFAULT_KEY_ZOOM_STEP,
        key_pan_step: float = DEFAULT_KEY_PAN_STEP,
        on_change: Optional[Callable[[], Any]] = None,
    ):
        """
        Initialise the controller.

        Parameters
        ----------
        viewport : ViewportState
            State mutated by input.
        wheel_zoom_divisor : float, default=1000.0
            Vertical wheel delta per unit of zoom.
        key_zoom_step : float, default=0.1
            Zoom change per up/down key press.
        key_pan_step : float, default=20.0
            Pan change in pixels per left/right key press.
        on_change : Optional[Callable[[], Any]], default=None
            Called after an event changed viewport or cursor state.
        """
        self.viewport = viewport
        self.wheel_zoom_divisor = wheel_zoom_divisor
        self.key_zoom_step = key_zoom_step
        self.key_pan_step = key_pan_step
        self.on_change = on_change

        self.cursor_x: Optional[float] = None
        self.is_pointer_down = False
        self.previous_touch: Optional[Tuple[float, float]] = None

        self._source: Optional[EventSource] = None
        self._token: Any = None

    def handle(self, event: InputEvent) -> bool:
        """
        Apply one input event.

        Returns
        -------
        bool
            True if zoom, pan or cursor position changed.
        """
        if isinstance(event, WheelInput):
            changed = self._on_wheel(event)
        elif isinstance(event, PointerMove):
            changed = self._on_pointer_move(event)
        elif isinstance(event, PointerButton):
            self.is_pointer_down = event.pressed
            changed = False
        elif isinstance(event, TouchStart):
            self.previous_touch = None
            changed = False
        elif isinstance(event, TouchMove):
            changed = self._on_touch_move(event)
        elif isinstance(event, KeyDown):
            changed = self._on_key(event)
        else:
            logger.warning(f"Ignoring unsupported input event {event!r}")
            return False

        if changed:
            logger.debug(
                f"{type(event).__name__}: zoom={self.viewport.zoom:.4f}, pan={self.viewport.pan:.2f}, cursor={self.cursor_x}"
            )
            if self.on_change is not None:
                self.on_change()
        return changed

    __call__ = handle

    def _on_wheel(self, event: WheelInput) -> bool:
        # Trackpads report two axes, only the dominant one acts
        if abs(event.delta_y) > abs(event.delta_x):
            return self.viewport.zoom_by(-event.delta_y / self.wheel_zoom_divisor)
        if abs(event.delta_x) > abs(event.delta_y):
            return self.viewport.pan_by(-event.delta_x)
        return False

    def _on_pointer_move(self, event: PointerMove) -> bool:
        if not math.isfinite(event.x):
            logger.warning(f"Ignoring non-finite pointer position {event.x}")
            return False
        changed = event.x != self.cursor_x
        self.cursor_x = event.x
        if self.is_pointer_down:
            changed = self.viewport.pan_by(event.movement_x) or changed
        return changed

    def _on_touch_move(self, event: TouchMove) -> bool:
        changed = False
        if self.previous_touch is not None:
            movement_x = event.page_x - self.previous_touch[0]
            changed = self.viewport.pan_by(movement_x)
        self.previous_touch = (event.page_x, event.page_y)
        return changed

    def _on_key(self, event: KeyDown) -> bool:
        if event.key == KEY_UP:
            return self.viewport.zoom_by(self.key_zoom_step)
        if event.key == KEY_DOWN:
            return self.viewport.zoom_by(-self.key_zoom_step)
        if event.key == KEY_LEFT:
            return self.viewport.pan_by(self.key_pan_step)
        if event.key == KEY_RIGHT:
            return self.viewport.pan_by(-self.key_pan_step)
        return False

    def attach(self, source: EventSource) -> None:
        """Subscribe to ``source``; any previous subscription is dropped first."""
        if self._source is not None:
            self.detach()
        self._token = source.subscribe(self.handle)
        self._source = source
        logger.debug(f"Input controller attached to {type(source).__name__}")

    def detach(self) -> None:
        """Remove the current subscription, if any."""
        if self._source is None:
            return
        try:
            self._source.unsubscribe(self._token)
        finally:
            logger.debug(f"Input controller detached from {type(self._source).__name__}")
            self._source = None
            self._token = None

    @property
    def is_attached(self) -> bool:
        return self._source is not None

    @contextmanager
    def attached(self, source: EventSource) -> Iterator["InputController"]:
        """Scope a subscription: it is always removed on exit."""
        self.attach(source)
        try:
            yield self
        finally:
            self.detach()
