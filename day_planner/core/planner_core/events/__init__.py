"""Event model and store for the day planner."""

from .errors import PlannerError, InvalidRange, NotFound, ReentrantMutation
from .schemas import PlannerEvent
from .store import EventStore, DEFAULT_RETENTION

__all__ = [
    "PlannerError",
    "InvalidRange",
    "NotFound",
    "ReentrantMutation",
    "PlannerEvent",
    "EventStore",
    "DEFAULT_RETENTION",
]
