"""Error kinds raised by the planner core."""


class PlannerError(Exception):
    """Base exception for planner core errors."""
    pass


class InvalidRange(PlannerError):
    """A time or duration violates the window, bounds, or minimum-duration rules."""
    pass


class NotFound(PlannerError):
    """An operation referenced an event id that is not in the store."""

    def __init__(self, event_id: str):
        super().__init__(f"No event with id {event_id!r}")
        self.event_id = event_id


class ReentrantMutation(PlannerError):
    """A store mutation was requested while another one was still in flight."""
    pass
