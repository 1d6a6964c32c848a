"""Pointer and keyboard interaction for the day planner."""

from .drag import DragController, DragMode, DragState, DragOutcome, DragSession, DragResult, Proposal
from .editor import InlineEditor, EditOutcome

__all__ = [
    "DragController",
    "DragMode",
    "DragState",
    "DragOutcome",
    "DragSession",
    "DragResult",
    "Proposal",
    "InlineEditor",
    "EditOutcome",
]
