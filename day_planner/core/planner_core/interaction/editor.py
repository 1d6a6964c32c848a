"""Inline title editing for a single planner event."""

import logging
from enum import Enum
from typing import Optional

from ..events import EventStore, InvalidRange, NotFound, ReentrantMutation

logger = logging.getLogger(__name__)


class EditOutcome(Enum):
    RENAMED = "renamed"
    DELETED = "deleted"
    UNCHANGED = "unchanged"
    CANCELLED = "cancelled"


class InlineEditor:
    """Transient edit state for one event's title.

    Confirming an empty title deletes the event; events are never left
    without a name once edited.
    """

    def __init__(self, store: EventStore, event_id: str):
        self.store = store
        self.event_id = event_id
        self.is_editing = False
        self.draft: Optional[str] = None

    def begin(self) -> bool:
        """Enter edit state with the stored title as the draft."""
        event = self.store.find(self.event_id)
        if event is None:
            logger.warning(f"Cannot edit missing planner event {self.event_id}")
            return False
        self.is_editing = True
        self.draft = event.title
        return True

    def set_draft(self, text: str) -> None:
        if self.is_editing:
            self.draft = text

    def confirm(self, text: Optional[str] = None) -> EditOutcome:
        """Commit ``text`` (or the current draft) and leave edit state."""
        if not self.is_editing:
            return EditOutcome.UNCHANGED
        raw = self.draft if text is None else text
        self._exit()

        trimmed = (raw or "").strip()
        try:
            if not trimmed:
                removed = self.store.delete(self.event_id)
                return EditOutcome.DELETED if removed else EditOutcome.UNCHANGED

            current = self.store.get(self.event_id)
            if trimmed == current.title:
                return EditOutcome.UNCHANGED
            self.store.update(self.event_id, title=trimmed)
            return EditOutcome.RENAMED
        except (NotFound, InvalidRange, ReentrantMutation) as e:
            logger.warning(f"Title edit declined: {e}")
            return EditOutcome.UNCHANGED

    def cancel(self) -> EditOutcome:
        """Discard the draft; the stored title is untouched."""
        if not self.is_editing:
            return EditOutcome.UNCHANGED
        self._exit()
        return EditOutcome.CANCELLED

    def _exit(self) -> None:
        self.is_editing = False
        self.draft = None
