"""Touch gesture recognition for the on-screen display of the player."""

from __future__ import annotations

import enum
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

# Distance from the touch start point beyond which a touch becomes a pan.
MAX_DELTA_MOVEMENT = 24
# Time needed to recognise a long press; also the double-tap window.
LONG_TIME_MS = 200
LONG_TIME_US = LONG_TIME_MS * 1000


class OsdGestureType(enum.Enum):
    NONE = enum.auto()
    TAP = enum.auto()
    DOUBLE_TAP_START = enum.auto()
    DOUBLE_TAP_END = enum.auto()
    LONG_PRESS_START = enum.auto()
    LONG_PRESS_CANCEL = enum.auto()
    LONG_PRESS_END = enum.auto()
    LEFT_VERTICAL_PAN_START = enum.auto()
    LEFT_VERTICAL_PAN_UPDATE = enum.auto()
    LEFT_VERTICAL_PAN_CANCEL = enum.auto()
    LEFT_VERTICAL_PAN_END = enum.auto()
    RIGHT_VERTICAL_PAN_START = enum.auto()
    RIGHT_VERTICAL_PAN_UPDATE = enum.auto()
    RIGHT_VERTICAL_PAN_CANCEL = enum.auto()
    RIGHT_VERTICAL_PAN_END = enum.auto()
    HORIZONTAL_PAN_START = enum.auto()
    HORIZONTAL_PAN_UPDATE = enum.auto()
    HORIZONTAL_PAN_CANCEL = enum.auto()
    HORIZONTAL_PAN_END = enum.auto()


class GestureState(enum.Enum):
    INTERRUPTED = enum.auto()
    UNSURE = enum.auto()
    START = enum.auto()
    STAY = enum.auto()
    END = enum.auto()
    FAILED = enum.auto()


class TouchPhase(enum.Enum):
    START = enum.auto()
    STAY = enum.auto()
    END = enum.auto()
    NONE = enum.auto()


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2

    def contains(self, point: Point) -> bool:
        return (
            self.x <= point.x <= self.x + self.width
            and self.y <= point.y <= self.y + self.height
        )


@dataclass(frozen=True)
class OsdGestureStatus:
    osd_gesture_type: OsdGestureType
    state: GestureState
    position: Point
    delta_x: float
    delta_y: float


_CANCELLED = {
    OsdGestureType.LONG_PRESS_START: OsdGestureType.LONG_PRESS_CANCEL,
    OsdGestureType.LEFT_VERTICAL_PAN_START: OsdGestureType.LEFT_VERTICAL_PAN_CANCEL,
    OsdGestureType.LEFT_VERTICAL_PAN_UPDATE: OsdGestureType.LEFT_VERTICAL_PAN_CANCEL,
    OsdGestureType.RIGHT_VERTICAL_PAN_START: OsdGestureType.RIGHT_VERTICAL_PAN_CANCEL,
    OsdGestureType.RIGHT_VERTICAL_PAN_UPDATE: OsdGestureType.RIGHT_VERTICAL_PAN_CANCEL,
    OsdGestureType.HORIZONTAL_PAN_START: OsdGestureType.HORIZONTAL_PAN_CANCEL,
    OsdGestureType.HORIZONTAL_PAN_UPDATE: OsdGestureType.HORIZONTAL_PAN_CANCEL,
}

_HORIZONTAL = (OsdGestureType.HORIZONTAL_PAN_START, OsdGestureType.HORIZONTAL_PAN_UPDATE)
_LEFT = (OsdGestureType.LEFT_VERTICAL_PAN_START, OsdGestureType.LEFT_VERTICAL_PAN_UPDATE)
_RIGHT = (OsdGestureType.RIGHT_VERTICAL_PAN_START, OsdGestureType.RIGHT_VERTICAL_PAN_UPDATE)

_PAN_END = {
    **{t: OsdGestureType.HORIZONTAL_PAN_END for t in _HORIZONTAL},
    **{t: OsdGestureType.LEFT_VERTICAL_PAN_END for t in _LEFT},
    **{t: OsdGestureType.RIGHT_VERTICAL_PAN_END for t in _RIGHT},
}


def _cancelled(gesture: OsdGestureType) -> OsdGestureType:
    """The matching cancel event for a gesture in progress."""
    return _CANCELLED.get(gesture, gesture)


def _monotonic_us() -> int:
    return time.monotonic_ns() // 1000


def _timer_scheduler(delay_ms: int, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay_ms / 1000.0, callback)
    timer.daemon = True
    timer.start()
    return timer


class OsdGestureRecognizer:
    """Turns touch phases into tap, double tap, long press and pan events.

    ``respond`` receives an :class:`OsdGestureStatus` for every event.
    ``clock`` returns the current time in microseconds. ``scheduler`` is
    called as ``scheduler(delay_ms, callback)`` and returns a handle with a
    ``cancel()`` method; it delays the single-tap event so that a second
    tap can turn it into a double tap.
    """

    def __init__(
        self,
        respond: Callable[[OsdGestureStatus], Any],
        clock: Optional[Callable[[], int]] = None,
        scheduler: Optional[Callable[[int, Callable[[], None]], Any]] = None,
    ) -> None:
        self._respond = respond
        self._clock = clock or _monotonic_us
        self._scheduler = scheduler or _timer_scheduler
        self._pending: Any = None
        self.enabled = True
        self.state = GestureState.FAILED
        self._last_state = GestureState.FAILED
        self.osd_gesture_type = OsdGestureType.NONE
        self.position = Point()
        self.delta = Point()
        self.delta_x = 0.0
        self.delta_y = 0.0
        self.start_time = 0
        self.end_time = -1 - LONG_TIME_US

    def get_current_status(self) -> OsdGestureStatus:
        return OsdGestureStatus(
            osd_gesture_type=self.osd_gesture_type,
            state=self.state,
            position=self.position,
            delta_x=self.delta_x,
            delta_y=self.delta_y,
        )

    def _fire(self) -> None:
        self._respond(self.get_current_status())

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def recognition_loop(self, phase: TouchPhase, position: Point, frame: Rect) -> GestureState:
        """Feed one frame of touch input; returns the recogniser state."""
        if not self.enabled or phase is TouchPhase.NONE:
            return GestureState.FAILED

        if phase is not TouchPhase.START and self.state in (GestureState.INTERRUPTED, GestureState.FAILED):
            if self.state is not self._last_state:
                self.osd_gesture_type = _cancelled(self.osd_gesture_type)
                self._fire()
            self._last_state = self.state
            return self.state

        if phase is TouchPhase.START:
            self._on_start(position)
        elif phase is TouchPhase.STAY:
            self._on_stay(position, frame)
        else:
            self._on_end()

        self._last_state = self.state
        return self.state

    def _on_start(self, position: Point) -> None:
        self.start_time = self._clock()
        if self.start_time - self.end_time < LONG_TIME_US:
            self._cancel_pending()
            self.osd_gesture_type = OsdGestureType.DOUBLE_TAP_START
        else:
            self.osd_gesture_type = OsdGestureType.NONE
        self.state = GestureState.UNSURE
        self.position = position
        self._fire()

    def _on_stay(self, position: Point, frame: Rect) -> None:
        gesture = self.osd_gesture_type
        if not frame.contains(position):
            self.state = GestureState.FAILED
            self.osd_gesture_type = _cancelled(gesture)
        elif gesture is OsdGestureType.NONE:
            self.delta = position - self.position
            if abs(self.delta.x) > MAX_DELTA_MOVEMENT:
                self.osd_gesture_type = OsdGestureType.HORIZONTAL_PAN_START
            elif abs(self.delta.y) > MAX_DELTA_MOVEMENT:
                if position.x < frame.mid_x:
                    self.osd_gesture_type = OsdGestureType.LEFT_VERTICAL_PAN_START
                else:
                    self.osd_gesture_type = OsdGestureType.RIGHT_VERTICAL_PAN_START
            elif self._clock() - self.start_time > LONG_TIME_US:
                self.osd_gesture_type = OsdGestureType.LONG_PRESS_START
            else:
                return
        elif gesture in _HORIZONTAL:
            self.delta = position - self.position
            self.delta_x = self.delta.x / frame.width
            self.osd_gesture_type = OsdGestureType.HORIZONTAL_PAN_UPDATE
        elif gesture in _LEFT:
            self.delta = position - self.position
            self.delta_y = -self.delta.y / frame.height
            self.osd_gesture_type = OsdGestureType.LEFT_VERTICAL_PAN_UPDATE
        elif gesture in _RIGHT:
            self.delta = position - self.position
            self.delta_y = -self.delta.y / frame.height
            self.osd_gesture_type = OsdGestureType.RIGHT_VERTICAL_PAN_UPDATE
        else:
            return
        self._fire()

    def _on_end(self) -> None:
        self.end_time = self._clock()
        self.state = GestureState.END
        gesture = self.osd_gesture_type

        if gesture is OsdGestureType.DOUBLE_TAP_START:
            self.osd_gesture_type = OsdGestureType.DOUBLE_TAP_END
            self._fire()
        elif gesture is OsdGestureType.LONG_PRESS_START:
            self.osd_gesture_type = OsdGestureType.LONG_PRESS_END
            self._fire()
        elif gesture in _PAN_END:
            # A touch right after a drag must not count as a double tap.
            self.end_time = 0
            self.osd_gesture_type = _PAN_END[gesture]
            self._fire()
        else:
            self.osd_gesture_type = OsdGestureType.TAP
            self._cancel_pending()
            self._pending = self._scheduler(LONG_TIME_MS, self._fire)