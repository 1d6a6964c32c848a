"""Schedule window configuration and snapping rules."""

import math

from pydantic import BaseModel, ConfigDict, model_validator

MINUTES_PER_DAY = 24 * 60


class ScheduleWindow(BaseModel):
    """The bounded daily range events may occupy, plus its grid step."""

    model_config = ConfigDict(frozen=True)

    day_start_minutes: int = 20 * 60
    day_end_minutes: int = MINUTES_PER_DAY
    snap_step_minutes: int = 30
    min_event_duration_minutes: int = 30

    @model_validator(mode="after")
    def _check_bounds(self) -> "ScheduleWindow":
        if not 0 <= self.day_start_minutes < self.day_end_minutes <= MINUTES_PER_DAY:
            raise ValueError(
                f"day range must satisfy 0 <= start < end <= {MINUTES_PER_DAY}, "
                f"got [{self.day_start_minutes}, {self.day_end_minutes})"
            )
        if self.snap_step_minutes <= 0:
            raise ValueError("snap step must be positive")
        if self.length_minutes % self.snap_step_minutes:
            raise ValueError(
                f"snap step {self.snap_step_minutes} does not divide "
                f"window length {self.length_minutes}"
            )
        if self.min_event_duration_minutes < self.snap_step_minutes:
            raise ValueError("minimum event duration must be at least one snap step")
        if self.min_event_duration_minutes > self.length_minutes:
            raise ValueError("minimum event duration exceeds the window length")
        return self

    @property
    def length_minutes(self) -> int:
        return self.day_end_minutes - self.day_start_minutes

    @property
    def min_aligned_duration(self) -> int:
        """Smallest grid-aligned duration that satisfies the minimum."""
        steps = math.ceil(self.min_event_duration_minutes / self.snap_step_minutes)
        return steps * self.snap_step_minutes

    def clamp(self, minutes: float) -> float:
        """Clamp a minute value into [day_start, day_end]."""
        return max(self.day_start_minutes, min(self.day_end_minutes, minutes))

    def round_to_grid(self, minutes: float) -> int:
        """Round to the nearest grid line (halves round up), without clamping.

        Grid lines are measured from ``day_start_minutes`` so a window starting
        off the hour still snaps onto its own slots.
        """
        steps = math.floor((minutes - self.day_start_minutes) / self.snap_step_minutes + 0.5)
        return self.day_start_minutes + steps * self.snap_step_minutes

    def snap(self, minutes: float) -> int:
        """Round to the nearest grid line, then clamp into the day."""
        return int(self.clamp(self.round_to_grid(minutes)))

    def snap_duration(self, duration_minutes: float) -> int:
        """Round a duration to a whole number of steps, never negative."""
        steps = math.floor(duration_minutes / self.snap_step_minutes + 0.5)
        return max(0, steps * self.snap_step_minutes)

    def is_aligned(self, minutes: int) -> bool:
        return (minutes - self.day_start_minutes) % self.snap_step_minutes == 0

    def contains(self, minutes: float) -> bool:
        """True when ``minutes`` can be the start of an event."""
        return self.day_start_minutes <= minutes < self.day_end_minutes
