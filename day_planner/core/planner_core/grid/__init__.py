"""Time grid mapping for the day planner."""

from .window import ScheduleWindow, MINUTES_PER_DAY
from .timegrid import TimeGrid, visible_window_for_now, minutes_of_day, DEFAULT_VISIBLE_MINUTES
from .slots import (
    format_minutes,
    parse_clock,
    slot_count,
    slot_label,
    slot_index,
    current_slot_index,
)

__all__ = [
    "ScheduleWindow",
    "MINUTES_PER_DAY",
    "TimeGrid",
    "visible_window_for_now",
    "minutes_of_day",
    "DEFAULT_VISIBLE_MINUTES",
    "format_minutes",
    "parse_clock",
    "slot_count",
    "slot_label",
    "slot_index",
    "current_slot_index",
]
