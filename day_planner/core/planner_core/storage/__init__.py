"""Persistence collaborator for planner events."""

from .store import PlannerStorage, storage_key, PLANNER_EVENTS_KEY

__all__ = [
    "PlannerStorage",
    "storage_key",
    "PLANNER_EVENTS_KEY",
]
