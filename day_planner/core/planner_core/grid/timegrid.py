"""Time <-> pixel mapping for the scrollable day track."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Tuple

from .window import ScheduleWindow

DEFAULT_VISIBLE_MINUTES = 4 * 60


def minutes_of_day(moment: datetime) -> int:
    """Minutes since local midnight for ``moment``.

    Aware datetimes are converted to the local wall clock first; naive ones
    are taken as already local.
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.hour * 60 + moment.minute


@dataclass(frozen=True)
class TimeGrid:
    """Linear mapping between minutes-of-day and offsets on a track.

    The track renders ``[visible_start, visible_end)`` over ``track_height``
    pixels. Every method is pure; scrolling produces a new grid via
    :meth:`scrolled_to`.
    """
    window: ScheduleWindow
    visible_start: int
    visible_end: int
    track_height: float
    min_block_height: float = 30.0

    def __post_init__(self):
        lo, hi = self.window.day_start_minutes, self.window.day_end_minutes
        if not lo <= self.visible_start <= self.visible_end <= hi:
            raise ValueError(
                f"visible window [{self.visible_start}, {self.visible_end}) "
                f"is outside the day [{lo}, {hi}]"
            )

    @classmethod
    def full_day(cls, window: ScheduleWindow, track_height: float, min_block_height: float = 30.0) -> "TimeGrid":
        """Grid whose visible range is the whole schedule window."""
        return cls(window, window.day_start_minutes, window.day_end_minutes, track_height, min_block_height)

    @classmethod
    def for_now(
        cls,
        window: ScheduleWindow,
        now: datetime,
        track_height: float,
        visible_minutes: int = DEFAULT_VISIBLE_MINUTES,
        min_block_height: float = 30.0,
    ) -> "TimeGrid":
        """Grid scrolled to the window returned by :func:`visible_window_for_now`."""
        start, end = visible_window_for_now(window, now, visible_minutes)
        return cls(window, start, end, track_height, min_block_height)

    @property
    def visible_minutes(self) -> int:
        return self.visible_end - self.visible_start

    def scrolled_to(self, visible_start: int, visible_end: int) -> "TimeGrid":
        return replace(self, visible_start=visible_start, visible_end=visible_end)

    def time_to_offset(self, minutes: float) -> float:
        if self.visible_minutes <= 0:
            return 0.0
        fraction = (minutes - self.visible_start) / self.visible_minutes
        return max(0.0, min(self.track_height, fraction * self.track_height))

    def offset_to_time(self, pixels: float) -> float:
        # Not clamped: callers clamp after snapping.
        if self.visible_minutes <= 0 or self.track_height <= 0:
            return float(self.visible_start)
        return self.visible_start + pixels / self.track_height * self.visible_minutes

    def delta_to_minutes(self, pixel_delta: float) -> float:
        """Convert a pointer displacement into a minute displacement."""
        return self.offset_to_time(pixel_delta) - self.visible_start

    def minutes_to_delta(self, minute_delta: float) -> float:
        """Inverse of :meth:`delta_to_minutes`, unclamped."""
        if self.visible_minutes <= 0:
            return 0.0
        return minute_delta / self.visible_minutes * self.track_height

    def duration_to_height(self, duration_minutes: float) -> float:
        if self.visible_minutes <= 0:
            return 0.0
        height = duration_minutes / self.visible_minutes * self.track_height
        return max(self.min_block_height, height)

    def snap(self, minutes: float) -> int:
        return self.window.snap(minutes)

    def is_visible(self, start_minutes: int, end_minutes: int) -> bool:
        """True when ``[start, end)`` intersects the visible range."""
        return end_minutes > self.visible_start and start_minutes < self.visible_end


def visible_window_for_now(
    window: ScheduleWindow,
    now: datetime,
    visible_minutes: int = DEFAULT_VISIBLE_MINUTES,
) -> Tuple[int, int]:
    """Fixed-length visible range containing ``now``, floored to the hour.

    The range is shifted (never shrunk) to stay inside the schedule window,
    unless the window itself is shorter, in which case the whole window is
    returned.
    """
    if visible_minutes >= window.length_minutes:
        return window.day_start_minutes, window.day_end_minutes

    hour_start = (minutes_of_day(now) // 60) * 60
    latest_start = window.day_end_minutes - visible_minutes
    start = max(window.day_start_minutes, min(hour_start, latest_start))
    return start, start + visible_minutes
