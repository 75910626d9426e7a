"""Scrolling comment (danmaku) layout: parsing, filtering and per-frame placement."""

from __future__ import annotations

import copy
import enum
import re
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from finplayer.misc import split

SCROLL_LINES = 20
_INT_RE = re.compile(r"\s*[+-]?\d+")
_FLOAT_RE = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _atoi(text: str) -> int:
    match = _INT_RE.match(text)
    return int(match.group()) if match else 0


def _atof(text: str) -> float:
    match = _FLOAT_RE.match(text)
    return float(match.group()) if match else 0.0


def _ratio(a: float, b: float) -> float:
    return a / b if b else 0.0


class DanmakuFontStyle(enum.IntEnum):
    STROKE = 0
    INCLINE = 1
    SHADOW = 2
    PURE = 3


@dataclass
class DanmakuStyle:
    """Display settings; percentages are integers as stored in the config."""

    on: bool = True
    area: int = 100
    alpha: int = 80
    font_size: int = 30
    font: DanmakuFontStyle = DanmakuFontStyle.SHADOW
    line_height: int = 120
    speed: int = 100
    render_quality: int = 100


@dataclass
class DanmakuFilter:
    level: int = 0
    show_top: bool = True
    show_bottom: bool = True
    show_scroll: bool = True
    show_color: bool = True
    show_advanced: bool = True


@dataclass
class DanmakuItem:
    """One comment. Type 4 is bottom, 5 is top, 7 advanced, others scroll."""

    msg: str
    time: float = 0.0
    type: int = -1
    font_size: float = 1.0
    font_color: int = 0xFFFFFF
    level: int = 0
    is_default_color: bool = True
    color: tuple[int, int, int] = (255, 255, 255)
    color_alpha: float = 1.0
    border_color: tuple[int, int, int] = (0, 0, 0)
    border_alpha: float = 0.5
    showing: bool = field(default=False, compare=False)
    can_show: bool = field(default=True, compare=False)
    length: float = field(default=0.0, compare=False)
    speed: float = field(default=0.0, compare=False)
    line: int = field(default=0, compare=False)
    start_time: float = field(default=0.0, compare=False)

    @classmethod
    def from_attributes(cls, content: str, attributes: str, alpha: int = 80) -> "DanmakuItem":
        """Build an item from a comma-separated attribute string.

        Fewer than nine attributes yield an invalid item of type -1.
        """
        attrs = split(attributes, ",")
        if len(attrs) < 9:
            return cls(msg=content, type=-1)
        font_color = _atoi(attrs[3])
        r = (font_color >> 16) & 0xFF
        g = (font_color >> 8) & 0xFF
        b = font_color & 0xFF
        border = (255, 255, 255) if (r * 299 + g * 587 + b * 114) < 60000 else (0, 0, 0)
        return cls(
            msg=content,
            time=_atof(attrs[0]),
            type=_atoi(attrs[1]),
            font_size=_atoi(attrs[2]) / 25.0,
            font_color=font_color,
            level=_atoi(attrs[8]),
            is_default_color=(r & g & b) == 0xFF,
            color=(r, g, b),
            color_alpha=alpha * 0.01,
            border_color=border,
            border_alpha=alpha * 0.005,
        )


@dataclass(frozen=True)
class Placement:
    """Where to draw an item this frame, relative to the video area."""

    item: DanmakuItem
    x: float
    y: float
    font_size: float


def _default_measure(msg: str, size: float) -> float:
    return len(msg) * size


class DanmakuCore:
    """Holds the loaded comments and lays them out frame by frame."""

    def __init__(self, style: Optional[DanmakuStyle] = None, danmaku_filter: Optional[DanmakuFilter] = None) -> None:
        self.style = style or DanmakuStyle()
        self.filter = danmaku_filter or DanmakuFilter()
        self._lock = threading.Lock()
        self._data: list[DanmakuItem] = []
        self.loaded = False
        self._index = 0
        self.video_speed = 1.0
        self._reset_lines()

    def _reset_lines(self) -> None:
        self.line_num = SCROLL_LINES
        self._scroll_lines = [[0.0, 0.0] for _ in range(SCROLL_LINES)]
        self._center_lines = [0.0] * SCROLL_LINES
        self.line_height = self.style.font_size * self.style.line_height * 0.01

    def reset(self, speed: float = 1.0) -> None:
        """Drop all comments and line bookkeeping."""
        with self._lock:
            self._reset_lines()
            self._data = []
            self.loaded = False
            self._index = 0
            self.video_speed = speed

    def load(self, items: Iterable[DanmakuItem], window_height: float = 720, speed: float = 1.0) -> None:
        """Replace the comments with copies of ``items`` sorted by time."""
        with self._lock:
            self._data = sorted((copy.copy(i) for i in items), key=lambda i: i.time)
            if self._data:
                self.loaded = True
        self.refresh(window_height, speed)

    def refresh(self, window_height: float = 720, speed: float = 1.0) -> None:
        """Restart layout after a seek, style change or resize."""
        style = self.style
        with self._lock:
            self.video_speed = speed
            self._index = 0
            for item in self._data:
                item.showing = False
                item.can_show = True
                item.color_alpha = style.alpha * 0.01
                item.border_alpha = style.alpha * 0.005
            self.line_num = int(window_height // style.font_size)
            while len(self._scroll_lines) < self.line_num:
                self._scroll_lines.append([0.0, 0.0])
                self._center_lines.append(0.0)
            self.line_height = style.font_size * style.line_height * 0.01
            for k in range(self.line_num):
                self._scroll_lines[k] = [0.0, 0.0]
                self._center_lines[k] = 0.0

    def set_speed(self, speed: float, now: float, playback_time: float) -> None:
        """Change playback speed keeping scrolling comments where they are.

        ``now`` is the wall clock in microseconds.
        """
        with self._lock:
            factor = self.video_speed / speed
            self.video_speed = speed
            for item in self._data[self._index:]:
                if item.type in (4, 5) or not item.can_show:
                    continue
                if item.time > playback_time:
                    return
                item.start_time = now - (now - item.start_time) * factor

    def get_data(self) -> list[DanmakuItem]:
        with self._lock:
            return [copy.copy(i) for i in self._data]

    def _passes_filter(self, item: DanmakuItem) -> bool:
        flt = self.filter
        if item.level < flt.level:
            return False
        if item.type == 4:
            shown = flt.show_bottom
        elif item.type == 5:
            shown = flt.show_top
        elif item.type == 7:
            shown = flt.show_advanced
        else:
            shown = flt.show_scroll
        if not shown:
            return False
        if not item.is_default_color and not flt.show_color:
            return False
        return item.type >= 0

    def frame(
        self,
        playback_time: float,
        now: float,
        width: float,
        height: float,
        paused: bool = False,
        measure: Optional[Callable[[str, float], float]] = None,
    ) -> list[Placement]:
        """Advance the layout and return the comments to draw this frame.

        ``now`` is the wall clock in microseconds; ``measure(msg, font_size)``
        returns the drawn width of a text.
        """
        style = self.style
        if not style.on or not self.loaded or not self._data:
            return []
        measure = measure or _default_measure
        scroll_time = 0.12 * style.speed
        center_time = 0.04 * style.speed
        placements: list[Placement] = []

        with self._lock:
            lines = min(int(height / self.line_height * style.area * 0.01), self.line_num)
            start = self._index
            for j, item in enumerate(self._data[start:], start):
                if not item.can_show:
                    continue
                size = style.font_size * item.font_size

                if item.showing:
                    if item.type in (4, 5):
                        if item.time > playback_time or item.time + center_time < playback_time:
                            item.can_show = False
                            continue
                        placements.append(
                            Placement(item, width / 2 - item.length / 2, item.line * self.line_height + 5, size)
                        )
                        continue
                    if item.type == 7:
                        item.can_show = False
                        continue
                    if paused:
                        position = item.speed * (playback_time - item.time)
                        item.start_time = now - (playback_time - item.time) / self.video_speed * 1e6
                    else:
                        position = item.speed * (now - item.start_time) * self.video_speed / 1e6
                    if position > width + item.length:
                        item.showing = False
                        self._index = j + 1
                        continue
                    placements.append(Placement(item, width - position, item.line * self.line_height + 5, size))
                    continue

                if item.time >= playback_time:
                    break
                if item.type in (4, 5):
                    if item.time + center_time < playback_time:
                        continue
                elif item.time + scroll_time < playback_time:
                    self._index = j + 1
                    continue

                item.can_show = False
                if not self._passes_filter(item):
                    continue
                if item.type == 7:
                    # Advanced comments need animation data this layout does not carry.
                    continue

                item.length = measure(item.msg, size)
                item.speed = _ratio(width + item.length, scroll_time)
                item.showing = True
                self._assign_line(item, lines, width, playback_time, now, scroll_time, center_time)

        return placements

    def _assign_line(
        self,
        item: DanmakuItem,
        lines: int,
        width: float,
        playback_time: float,
        now: float,
        scroll_time: float,
        center_time: float,
    ) -> None:
        for k in range(lines):
            if item.type in (4, 5):
                line = lines - k - 1 if item.type == 4 else k
                if item.time < self._center_lines[line]:
                    continue
                item.line = line
                self._center_lines[line] = item.time + center_time
                item.can_show = True
                return
            shown_at, gone_at = self._scroll_lines[k]
            if item.time < shown_at or item.time + _ratio(width, item.speed) < gone_at:
                continue
            item.line = k
            self._scroll_lines[k] = [item.time + _ratio(item.length, item.speed), item.time + scroll_time]
            item.can_show = True
            item.start_time = now
            if playback_time - item.time > 0.2:
                item.start_time -= (playback_time - item.time) / self.video_speed * 1e6
            return