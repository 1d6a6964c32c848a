"""In-memory event store for the active day with full-snapshot persistence."""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, UTC
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional
from uuid import uuid4

from pydantic import ValidationError

from ..grid import ScheduleWindow, format_minutes
from .errors import InvalidRange, NotFound, ReentrantMutation
from .schemas import PlannerEvent

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(hours=12)

PersistCallback = Callable[[List[Dict[str, Any]]], None]
Clock = Callable[[], datetime]

_UNSET: Any = object()


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _as_aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


class EventStore:
    """Authoritative collection of today's planner events.

    Every mutation validates the window invariants, then hands the complete
    updated record sequence to ``persist`` before the change becomes visible.
    If ``persist`` raises, the store is left untouched.
    """

    def __init__(
        self,
        window: ScheduleWindow,
        events: Iterable[PlannerEvent] = (),
        persist: Optional[PersistCallback] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize event store.

        Args:
            window: Day range and grid rules every event must satisfy
            events: Initial events, assumed already valid
            persist: Receives the full record sequence after each mutation
            clock: Source of ``created_at`` timestamps (default: UTC now)
        """
        self.window = window
        self._events: Dict[str, PlannerEvent] = {event.id: event for event in events}
        self._persist = persist
        self._clock = clock or _utc_now
        self._mutating = False

    @classmethod
    def load(
        cls,
        records: Optional[Iterable[Dict[str, Any]]],
        window: ScheduleWindow,
        now: Optional[datetime] = None,
        retention: timedelta = DEFAULT_RETENTION,
        persist: Optional[PersistCallback] = None,
        clock: Optional[Clock] = None,
    ) -> "EventStore":
        """Build a store from raw persisted records.

        Records inside the window but off the grid (or shorter than the
        minimum) are snapped onto it; records that still cannot fit, or that
        fail validation, are dropped. Expired events are then swept. If
        anything was snapped or removed the cleaned sequence is persisted
        immediately.

        Args:
            records: Raw record sequence from the persistence collaborator
            window: Schedule window the events must fit
            now: Reference time for the expiry sweep (default: clock now)
            retention: Maximum event age kept by the sweep
            persist: Persistence callback for subsequent mutations
            clock: Timestamp source for new events

        Returns:
            Store ready for use
        """
        store = cls(window, persist=persist, clock=clock)
        changed = 0

        for record in records or []:
            try:
                event = PlannerEvent.model_validate(record)
            except ValidationError as e:
                logger.warning(f"Dropping invalid planner record {record!r}: {e}")
                changed += 1
                continue
            try:
                store._check_invariants(event.start_minutes, event.duration_minutes)
            except InvalidRange as e:
                fitted = store._fit_to_grid(event)
                changed += 1
                if fitted is None:
                    logger.warning(f"Dropping invalid planner record {record!r}: {e}")
                    continue
                logger.warning(
                    f"Snapped planner record {event.id} to "
                    f"{format_minutes(fitted.start_minutes)} for {fitted.duration_minutes}m: {e}"
                )
                event = fitted
            if event.id in store._events:
                logger.warning(f"Dropping duplicate planner record with id {event.id}")
                changed += 1
                continue
            store._events[event.id] = event

        if changed:
            with store._mutation():
                store._commit(dict(store._events))

        store.sweep_expired(now or store._clock(), retention)
        return store

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        if self._mutating:
            raise ReentrantMutation("Store mutation requested while another mutation is in flight")
        self._mutating = True
        try:
            yield
        finally:
            self._mutating = False

    def _commit(self, events: Dict[str, PlannerEvent]) -> None:
        if self._persist is not None:
            self._persist([event.to_record() for event in events.values()])
        self._events = events

    def _check_invariants(self, start_minutes: int, duration_minutes: int) -> None:
        window = self.window
        if not window.contains(start_minutes):
            raise InvalidRange(
                f"Start {format_minutes(start_minutes)} is outside "
                f"{format_minutes(window.day_start_minutes)}-{format_minutes(window.day_end_minutes)}"
            )
        if start_minutes + duration_minutes > window.day_end_minutes:
            raise InvalidRange(
                f"Event ending at {format_minutes(start_minutes + duration_minutes)} "
                f"runs past {format_minutes(window.day_end_minutes)}"
            )
        if duration_minutes < window.min_event_duration_minutes:
            raise InvalidRange(
                f"Duration {duration_minutes}m is below the minimum "
                f"{window.min_event_duration_minutes}m"
            )
        if not window.is_aligned(start_minutes) or duration_minutes % window.snap_step_minutes:
            raise InvalidRange(
                f"Start {start_minutes} / duration {duration_minutes} are not aligned "
                f"to the {window.snap_step_minutes}m grid"
            )

    def _fit_to_grid(self, event: PlannerEvent) -> Optional[PlannerEvent]:
        """Snap a stored event that starts inside the window onto the grid.

        Durations round to whole steps and grow to the minimum; the end is
        clamped to the day. Returns None when the event cannot be made valid.
        """
        window = self.window
        if not window.contains(event.start_minutes) or event.duration_minutes <= 0:
            return None
        start = window.snap(event.start_minutes)
        duration = max(window.snap_duration(event.duration_minutes), window.min_aligned_duration)
        end = min(start + duration, window.day_end_minutes)
        try:
            self._check_invariants(start, end - start)
        except InvalidRange:
            return None
        return event.model_copy(update={"start_minutes": start, "duration_minutes": end - start})

    def get(self, event_id: str) -> PlannerEvent:
        """Return the event with ``event_id`` or raise :class:`NotFound`."""
        try:
            return self._events[event_id]
        except KeyError:
            raise NotFound(event_id) from None

    def find(self, event_id: str) -> Optional[PlannerEvent]:
        return self._events.get(event_id)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    def __len__(self) -> int:
        return len(self._events)

    def create(self, start_minutes: float, duration_minutes: float, title: str = "") -> PlannerEvent:
        """Snap, clamp and add a new event.

        Args:
            start_minutes: Requested start, minutes from midnight
            duration_minutes: Requested length in minutes
            title: Event title (may be empty for a just-created slot)

        Returns:
            The stored event

        Raises:
            InvalidRange: If the clamped duration is below the minimum
        """
        window = self.window
        start = window.snap(start_minutes)
        end = min(start + window.snap_duration(duration_minutes), window.day_end_minutes)
        duration = end - start
        if start >= window.day_end_minutes or duration < window.min_event_duration_minutes:
            raise InvalidRange(
                f"Cannot create event at {format_minutes(start)} lasting {duration}m; "
                f"minimum is {window.min_event_duration_minutes}m"
            )

        with self._mutation():
            event_id = str(uuid4())
            while event_id in self._events:
                event_id = str(uuid4())
            event = PlannerEvent(
                id=event_id,
                title=title,
                start_minutes=start,
                duration_minutes=duration,
                created_at=self._clock(),
            )
            events = dict(self._events)
            events[event.id] = event
            self._commit(events)

        logger.info(f"Created planner event {event.id} at {format_minutes(start)} for {duration}m")
        return event

    def update(
        self,
        event_id: str,
        *,
        title: Optional[str] = _UNSET,
        start_minutes: Optional[int] = _UNSET,
        duration_minutes: Optional[int] = _UNSET,
    ) -> PlannerEvent:
        """Merge the given fields into an existing event and re-validate.

        Only the fields passed are changed. Callers are expected to pass
        snapped values; anything off the grid or out of bounds is rejected,
        not corrected.

        Raises:
            NotFound: If ``event_id`` is not in the store
            InvalidRange: If the merged event violates the window invariants
        """
        current = self.get(event_id)
        changes: Dict[str, Any] = {}
        if title is not _UNSET:
            changes["title"] = title
        if start_minutes is not _UNSET:
            changes["start_minutes"] = start_minutes
        if duration_minutes is not _UNSET:
            changes["duration_minutes"] = duration_minutes

        try:
            merged = PlannerEvent.model_validate({**current.model_dump(), **changes})
        except ValidationError as e:
            raise InvalidRange(f"Rejected update for {event_id}: {e}") from e
        self._check_invariants(merged.start_minutes, merged.duration_minutes)

        if merged == current:
            return current

        with self._mutation():
            events = dict(self._events)
            events[event_id] = merged
            self._commit(events)

        logger.info(
            f"Updated planner event {event_id}: {format_minutes(merged.start_minutes)} "
            f"for {merged.duration_minutes}m"
        )
        return merged

    def delete(self, event_id: str) -> bool:
        """Remove an event. Deleting an absent id is a no-op.

        Returns:
            True if an event was removed
        """
        if event_id not in self._events:
            logger.debug(f"Delete of unknown planner event {event_id} ignored")
            return False

        with self._mutation():
            events = dict(self._events)
            del events[event_id]
            self._commit(events)

        logger.info(f"Deleted planner event {event_id}")
        return True

    def list_in_range(self, start_minutes: int, end_minutes: int) -> List[PlannerEvent]:
        """Events overlapping ``[start_minutes, end_minutes)``, by start then id."""
        matches = [
            event for event in self._events.values()
            if event.overlaps(start_minutes, end_minutes)
        ]
        return sorted(matches, key=lambda e: (e.start_minutes, e.id))

    def list_all(self) -> List[PlannerEvent]:
        return self.list_in_range(self.window.day_start_minutes, self.window.day_end_minutes)

    def sweep_expired(self, now: datetime, retention: timedelta = DEFAULT_RETENTION) -> int:
        """Remove events whose age exceeds ``retention``.

        Args:
            now: Reference time
            retention: Maximum age kept

        Returns:
            Number of events removed
        """
        now = _as_aware(now)
        expired = [
            event_id for event_id, event in self._events.items()
            if now - event.created_at > retention
        ]
        if not expired:
            return 0

        with self._mutation():
            events = {
                event_id: event for event_id, event in self._events.items()
                if event_id not in expired
            }
            self._commit(events)

        logger.info(f"Swept {len(expired)} expired planner event(s)")
        return len(expired)

    def records(self) -> List[Dict[str, Any]]:
        """Current events in the persisted record layout."""
        return [event.to_record() for event in self._events.values()]
