"""Day planner session: wires the store, grid, gestures and title editing."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, UTC
from typing import List, Optional, Tuple

from .config import PlannerConfig
from .events import EventStore, InvalidRange, NotFound, PlannerEvent, ReentrantMutation
from .grid import ScheduleWindow, TimeGrid
from .interaction import DragController, DragMode, DragSession, EditOutcome, InlineEditor
from .storage import PLANNER_EVENTS_KEY, PlannerStorage, storage_key

logger = logging.getLogger(__name__)

DURATION_OPTIONS = (15, 30, 60)
DEFAULT_TITLE = "Event"


def duration_options(window: ScheduleWindow) -> Tuple[int, ...]:
    """Form durations that land on the grid and meet the minimum length."""
    return tuple(
        d for d in DURATION_OPTIONS
        if d % window.snap_step_minutes == 0 and d >= window.min_event_duration_minutes
    )


def local_date(moment: datetime) -> date:
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.date()


@dataclass(frozen=True)
class EventBlock:
    """An event positioned on the visible track."""
    event: PlannerEvent
    top: float
    height: float
    selected: bool = False
    editing: bool = False


class DayPlanner:
    """Focus owner for the planner widget.

    Holds the selection, the single open title editor and the focus target
    the renderer should honour after each mutation. All changes to events go
    through the store.
    """

    def __init__(self, store: EventStore, grid: TimeGrid, live_drag_updates: bool = False):
        self.store = store
        self.grid = grid
        self.drag = DragController(store, grid, live_updates=live_drag_updates)
        self.selected_event_id: Optional[str] = None
        self.focus_target: Optional[str] = None
        self._editor: Optional[InlineEditor] = None

    @classmethod
    def open(
        cls,
        config: PlannerConfig,
        storage: PlannerStorage,
        now: Optional[datetime] = None,
    ) -> "DayPlanner":
        """Load today's events from ``storage`` and scroll to ``now``.

        Event lists left under other days' keys are removed first. Expired
        events are swept during the load and the cleaned records are written
        back before anything else reads them.
        """
        now = now or datetime.now(UTC)
        window = config.to_window()
        key = storage_key(local_date(now))

        stale = [
            k for k in storage.keys()
            if k.startswith(f"{PLANNER_EVENTS_KEY}:") and k != key
        ]
        if stale:
            storage.remove(*stale)
            logger.info(f"Removed {len(stale)} past planner day(s) from storage")

        def persist(records):
            storage.write(key, records)

        store = EventStore.load(
            storage.read(key),
            window,
            now=now,
            retention=config.retention,
            persist=persist,
        )
        grid = TimeGrid.for_now(
            window,
            now,
            config.track_height_px,
            config.visible_window_minutes,
            config.min_block_height_px,
        )
        return cls(store, grid, live_drag_updates=config.live_drag_updates)

    @property
    def editor(self) -> Optional[InlineEditor]:
        return self._editor

    @property
    def editing_event_id(self) -> Optional[str]:
        return self._editor.event_id if self._editor else None

    def scroll_to(self, visible_start: int, visible_end: int) -> TimeGrid:
        """Change the visible range; gestures already in flight keep their grid."""
        self.grid = self.grid.scrolled_to(visible_start, visible_end)
        self.drag.grid = self.grid
        return self.grid

    def layout(self) -> List[EventBlock]:
        """Positioned blocks for every event intersecting the visible range."""
        grid = self.grid
        return [
            EventBlock(
                event=event,
                top=grid.time_to_offset(event.start_minutes),
                height=grid.duration_to_height(event.duration_minutes),
                selected=event.id == self.selected_event_id,
                editing=event.id == self.editing_event_id,
            )
            for event in self.store.list_in_range(grid.visible_start, grid.visible_end)
        ]

    def find_event(self, id_or_prefix: str) -> PlannerEvent:
        """Resolve an event by full id or unique id prefix."""
        exact = self.store.find(id_or_prefix)
        if exact is not None:
            return exact
        matches = [e for e in self.store.list_all() if e.id.startswith(id_or_prefix)]
        if not matches:
            raise NotFound(id_or_prefix)
        if len(matches) > 1:
            raise ValueError(f"Event id prefix {id_or_prefix!r} is ambiguous")
        return matches[0]

    def select(self, event_id: Optional[str]) -> None:
        self.selected_event_id = event_id
        self.focus_target = event_id

    def click_slot(self, minutes: int) -> Optional[PlannerEvent]:
        """Create an untitled one-slot event and open its title editor."""
        try:
            event = self.store.create(minutes, self.store.window.min_aligned_duration, "")
        except (InvalidRange, ReentrantMutation) as e:
            logger.warning(f"Slot click declined: {e}")
            return None
        self.select(event.id)
        self.begin_edit(event.id)
        return event

    def add_event(self, start_minutes: int, duration_minutes: int = 30, title: str = "") -> PlannerEvent:
        """Create an event from the inline creation form.

        Only durations from :func:`duration_options` are offered, so the
        stored length is always the one requested.

        Raises:
            ValueError: If the duration is not one of the offered options
            InvalidRange: If the event does not fit the day
        """
        offered = duration_options(self.store.window)
        if duration_minutes not in offered:
            raise ValueError(f"Duration must be one of {offered}, got {duration_minutes}")
        event = self.store.create(start_minutes, duration_minutes, title.strip() or DEFAULT_TITLE)
        self.select(event.id)
        return event

    def delete_event(self, event_id: str) -> bool:
        if self.editing_event_id == event_id:
            self._editor = None
        removed = self.store.delete(event_id)
        self._forget(event_id)
        return removed

    def press_delete_key(self) -> bool:
        """Delete the selected event, unless a title is being edited."""
        if self._editor is not None or self.selected_event_id is None:
            return False
        return self.delete_event(self.selected_event_id)

    def begin_edit(self, event_id: str) -> Optional[InlineEditor]:
        """Open the title editor on ``event_id``.

        An editor open on another event is confirmed first, the same way a
        text field commits when it loses focus.
        """
        if self.drag.session is not None:
            return None
        if self._editor is not None:
            if self._editor.event_id == event_id:
                return self._editor
            self.confirm_edit()

        editor = InlineEditor(self.store, event_id)
        if not editor.begin():
            return None
        self._editor = editor
        self.focus_target = event_id
        return editor

    def confirm_edit(self, text: Optional[str] = None) -> EditOutcome:
        editor = self._editor
        if editor is None:
            return EditOutcome.UNCHANGED
        self._editor = None
        outcome = editor.confirm(text)
        if outcome is EditOutcome.DELETED:
            self._forget(editor.event_id)
        elif self.focus_target == editor.event_id:
            self.focus_target = None
        return outcome

    def cancel_edit(self) -> EditOutcome:
        editor = self._editor
        if editor is None:
            return EditOutcome.UNCHANGED
        self._editor = None
        # Focus returns to the block itself.
        self.focus_target = editor.event_id
        return editor.cancel()

    def begin_drag(self, event_id: str, mode: DragMode, pointer_position: float) -> Optional[DragSession]:
        """Pointer-down on an event body or edge handle; ignored while editing."""
        if self._editor is not None:
            return None
        session = self.drag.begin_drag(event_id, mode, pointer_position)
        if session is not None:
            self.select(event_id)
        return session

    def _forget(self, event_id: str) -> None:
        if self.selected_event_id == event_id:
            self.selected_event_id = None
        if self.focus_target == event_id:
            self.focus_target = None
