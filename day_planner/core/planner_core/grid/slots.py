"""Slot indexing and clock-label helpers for the planner track."""

import re
from datetime import datetime

from .timegrid import minutes_of_day
from .window import ScheduleWindow

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def format_minutes(minutes: int) -> str:
    """Render minutes-of-day as ``HH:MM``; 1440 wraps to ``00:00``."""
    hours = (minutes // 60) % 24
    return f"{hours:02d}:{minutes % 60:02d}"


def parse_clock(text: str) -> int:
    """Parse ``HH:MM`` into minutes-of-day. ``24:00`` is accepted as end of day."""
    match = _CLOCK_RE.match(text)
    if not match:
        raise ValueError(f"Expected HH:MM, got {text!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    total = hours * 60 + minutes
    if minutes >= 60 or total > 24 * 60:
        raise ValueError(f"Not a valid time of day: {text!r}")
    return total


def slot_count(window: ScheduleWindow) -> int:
    return window.length_minutes // window.snap_step_minutes


def slot_label(window: ScheduleWindow, index: int) -> str:
    return format_minutes(window.day_start_minutes + index * window.snap_step_minutes)


def slot_index(window: ScheduleWindow, minutes: int) -> int:
    """0-based slot holding ``minutes``, or -1 outside the day."""
    if not window.contains(minutes):
        return -1
    return (minutes - window.day_start_minutes) // window.snap_step_minutes


def current_slot_index(window: ScheduleWindow, now: datetime) -> int:
    """Slot for ``now``; before the day it is the first slot, after it the last."""
    minutes = minutes_of_day(now)
    if minutes < window.day_start_minutes:
        return 0
    if minutes >= window.day_end_minutes:
        return slot_count(window) - 1
    return slot_index(window, minutes)
