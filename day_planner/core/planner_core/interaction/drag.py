"""Pointer gesture state machine for moving, resizing and drag-creating events."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..events import EventStore, InvalidRange, NotFound, PlannerEvent, ReentrantMutation
from ..grid import TimeGrid, format_minutes

logger = logging.getLogger(__name__)


class DragMode(Enum):
    """What a gesture does to its event."""
    MOVE = "move"
    RESIZE_START = "resize_start"
    RESIZE_END = "resize_end"
    CREATE = "create"


class DragState(Enum):
    IDLE = "idle"
    ACTIVE = "active"


class DragOutcome(Enum):
    """How a gesture ended."""
    COMMITTED = "committed"
    UNCHANGED = "unchanged"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


@dataclass(frozen=True)
class DragSession:
    """Origin of one gesture, captured at pointer-down and never refreshed."""
    event_id: Optional[str]
    mode: DragMode
    anchor_pointer_position: float
    original_start: int
    original_duration: int
    grid: TimeGrid

    @property
    def original_end(self) -> int:
        return self.original_start + self.original_duration


@dataclass(frozen=True)
class Proposal:
    """Snapped start/duration the gesture would commit right now."""
    start_minutes: int
    duration_minutes: int

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes


@dataclass(frozen=True)
class DragResult:
    outcome: DragOutcome
    event: Optional[PlannerEvent] = None


class DragController:
    """Drives one pointer gesture at a time against an :class:`EventStore`.

    The controller is either idle (no session) or active (a session plus the
    last valid proposal). Stored events are only touched through the store's
    ``create``/``update`` on commit, or on every valid move when
    ``live_updates`` is enabled.
    """

    def __init__(self, store: EventStore, grid: TimeGrid, live_updates: bool = False):
        self.store = store
        self.grid = grid
        self.live_updates = live_updates
        self._session: Optional[DragSession] = None
        self._proposal: Optional[Proposal] = None
        self._live_applied = False

    @property
    def state(self) -> DragState:
        return DragState.ACTIVE if self._session is not None else DragState.IDLE

    @property
    def session(self) -> Optional[DragSession]:
        return self._session

    @property
    def proposal(self) -> Optional[Proposal]:
        return self._proposal

    def begin_drag(self, event_id: str, mode: DragMode, pointer_position: float) -> Optional[DragSession]:
        """Start moving or resizing ``event_id`` from ``pointer_position``.

        Returns:
            The new session, or None if the event no longer exists
        """
        if mode is DragMode.CREATE:
            raise ValueError("Use begin_create() for drag-create gestures")
        try:
            event = self.store.get(event_id)
        except NotFound as e:
            logger.warning(f"Ignoring drag start: {e}")
            return None

        return self._start(DragSession(
            event_id=event.id,
            mode=mode,
            anchor_pointer_position=pointer_position,
            original_start=event.start_minutes,
            original_duration=event.duration_minutes,
            grid=self.grid,
        ))

    def begin_create(self, pointer_position: float) -> DragSession:
        """Start a drag-create gesture on empty track at ``pointer_position``."""
        start = self.grid.snap(self.grid.offset_to_time(pointer_position))
        return self._start(DragSession(
            event_id=None,
            mode=DragMode.CREATE,
            anchor_pointer_position=pointer_position,
            original_start=start,
            original_duration=0,
            grid=self.grid,
        ))

    def _start(self, session: DragSession) -> DragSession:
        if self._session is not None:
            logger.warning("Pointer-down during an active gesture; cancelling the stale one")
            self.cancel_drag()
        self._session = session
        self._proposal = None
        self._live_applied = False
        if session.mode is DragMode.CREATE:
            self._proposal = self._propose(session, session.anchor_pointer_position)
        logger.debug(f"Began {session.mode.value} gesture for {session.event_id}")
        return session

    def on_pointer_move(self, pointer_position: float) -> Optional[Proposal]:
        """Recompute the proposal for the current pointer position.

        A position that violates the gesture's constraints leaves the previous
        proposal in place.

        Returns:
            The current proposal (None if no valid one exists yet)
        """
        session = self._session
        if session is None:
            return None

        proposal = self._propose(session, pointer_position)
        if proposal is None:
            logger.debug(f"Rejected {session.mode.value} proposal at pointer {pointer_position}")
            return self._proposal

        self._proposal = proposal
        if self.live_updates and session.mode is not DragMode.CREATE:
            self._apply(session, proposal)
            self._live_applied = True
        return proposal

    def end_drag(self, pointer_position: Optional[float] = None) -> DragResult:
        """Finish the gesture, committing the last valid proposal.

        Args:
            pointer_position: Pointer-up position, processed as a final move

        Returns:
            Outcome and the resulting event (if any)
        """
        if self._session is None:
            return DragResult(DragOutcome.UNCHANGED)
        if pointer_position is not None:
            self.on_pointer_move(pointer_position)

        session, proposal = self._session, self._proposal
        self._clear()

        if session.mode is DragMode.CREATE:
            if proposal is None:
                return DragResult(DragOutcome.UNCHANGED)
            try:
                event = self.store.create(proposal.start_minutes, proposal.duration_minutes, "")
            except (InvalidRange, ReentrantMutation) as e:
                logger.warning(f"Drag-create declined: {e}")
                return DragResult(DragOutcome.REJECTED)
            return DragResult(DragOutcome.COMMITTED, event)

        if proposal is None or (
            proposal.start_minutes == session.original_start
            and proposal.duration_minutes == session.original_duration
        ):
            return DragResult(DragOutcome.UNCHANGED, self.store.find(session.event_id))

        event = self._apply(session, proposal)
        if event is None:
            return DragResult(DragOutcome.REJECTED, self.store.find(session.event_id))
        return DragResult(DragOutcome.COMMITTED, event)

    def cancel_drag(self) -> DragResult:
        """Abandon the gesture without committing its proposal."""
        session = self._session
        if session is None:
            return DragResult(DragOutcome.UNCHANGED)
        live_applied = self._live_applied
        self._clear()

        if live_applied:
            self._apply(session, Proposal(session.original_start, session.original_duration))
        logger.debug(f"Cancelled {session.mode.value} gesture for {session.event_id}")
        event = self.store.find(session.event_id) if session.event_id else None
        return DragResult(DragOutcome.CANCELLED, event)

    def _clear(self) -> None:
        self._session = None
        self._proposal = None
        self._live_applied = False

    def _apply(self, session: DragSession, proposal: Proposal) -> Optional[PlannerEvent]:
        try:
            return self.store.update(
                session.event_id,
                start_minutes=proposal.start_minutes,
                duration_minutes=proposal.duration_minutes,
            )
        except (InvalidRange, NotFound, ReentrantMutation) as e:
            logger.warning(f"Declined {session.mode.value} commit: {e}")
            return None

    def _propose(self, session: DragSession, pointer_position: float) -> Optional[Proposal]:
        grid = session.grid
        window = grid.window
        delta = grid.delta_to_minutes(pointer_position - session.anchor_pointer_position)
        min_duration = window.min_event_duration_minutes

        if session.mode is DragMode.MOVE:
            duration = session.original_duration
            start = window.snap(session.original_start + delta)
            # Shift both edges back at a boundary; duration never shrinks.
            if start < window.day_start_minutes:
                start = window.day_start_minutes
            if start + duration > window.day_end_minutes:
                start = window.day_end_minutes - duration
            return Proposal(start, duration)

        # Resize edges are bounds-checked before any clamping.
        if session.mode is DragMode.RESIZE_START:
            start = window.round_to_grid(session.original_start + delta)
            if start < window.day_start_minutes or start > session.original_end - min_duration:
                return None
            return Proposal(start, session.original_end - start)

        if session.mode is DragMode.RESIZE_END:
            end = window.round_to_grid(session.original_end + delta)
            if end < session.original_start + min_duration or end > window.day_end_minutes:
                return None
            return Proposal(session.original_start, end - session.original_start)

        # CREATE: span from the anchor slot to the pointer, in either direction.
        anchor = session.original_start
        current = window.snap(anchor + delta)
        lo, hi = min(anchor, current), max(anchor, current)
        if hi - lo < min_duration:
            hi = lo + window.min_aligned_duration
        if hi > window.day_end_minutes:
            hi = window.day_end_minutes
            lo = hi - window.min_aligned_duration
        logger.debug(f"Drag-create spans {format_minutes(lo)}-{format_minutes(hi)}")
        return Proposal(lo, hi - lo)
