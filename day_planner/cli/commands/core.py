"""Core commands for the day planner CLI."""

from datetime import datetime, UTC
from typing import Tuple

import typer
from rich.console import Console
from rich.table import Table

from day_planner.core.planner_core.config import PlannerConfig, load_config
from day_planner.core.planner_core.events import InvalidRange, NotFound, PlannerEvent
from day_planner.core.planner_core.grid import (
    current_slot_index,
    format_minutes,
    parse_clock,
    slot_count,
    slot_label,
)
from day_planner.core.planner_core.interaction import DragMode, DragOutcome, EditOutcome
from day_planner.core.planner_core.session import DURATION_OPTIONS, DayPlanner, local_date
from day_planner.core.planner_core.storage import PlannerStorage, storage_key

console = Console()


def open_planner() -> Tuple[PlannerConfig, PlannerStorage, DayPlanner]:
    """Load config, storage and today's planner."""
    config = load_config()
    storage = PlannerStorage(config.data_dir)
    return config, storage, DayPlanner.open(config, storage)


def _fail(message: str) -> None:
    console.print(f"✗ {message}", style="red")
    raise typer.Exit(code=1)


def _resolve(planner: DayPlanner, event_id: str) -> PlannerEvent:
    try:
        return planner.find_event(event_id)
    except NotFound:
        _fail(f"No event matching '{event_id}'")
    except ValueError as e:
        _fail(str(e))


def _span(event: PlannerEvent) -> str:
    return f"{format_minutes(event.start_minutes)}–{format_minutes(event.end_minutes)}"


def show(all_day: bool = typer.Option(False, "--all", "-a", help="Show the whole day, not just the visible window")) -> None:
    """Show today's planned events."""
    _, _, planner = open_planner()

    if all_day:
        planner.scroll_to(planner.store.window.day_start_minutes, planner.store.window.day_end_minutes)
    grid = planner.grid
    blocks = planner.layout()

    console.print(
        f"📅 Today's Plan ({format_minutes(grid.visible_start)}–{format_minutes(grid.visible_end)})",
        style="bold blue",
    )
    if not blocks:
        console.print("• No events planned", style="dim")
        console.print("💡 Try: day-planner add 21:00 \"Call\"", style="dim")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Time", style="green")
    table.add_column("Title")
    table.add_column("Length", justify="right")
    table.add_column("Top/Height (px)", justify="right", style="dim")
    table.add_column("ID", style="dim")

    for block in blocks:
        event = block.event
        table.add_row(
            _span(event),
            event.title or "[dim]Untitled[/dim]",
            f"{event.duration_minutes}m",
            f"{block.top:.0f}/{block.height:.0f}",
            event.id[:8],
        )
    console.print(table)


def slots() -> None:
    """List the day's time slots, marking the current one."""
    config = load_config()
    window = config.to_window()
    current = current_slot_index(window, datetime.now(UTC))

    for index in range(slot_count(window)):
        marker = "→" if index == current else " "
        style = "bold green" if index == current else None
        console.print(f"{marker} {slot_label(window, index)}", style=style)


def add(
    start: str,
    title: str = typer.Argument("", help="Event title"),
    duration: int = typer.Option(30, "--duration", "-d", help=f"Length in minutes, one of {DURATION_OPTIONS} that fits the snap grid"),
) -> None:
    """Add an event starting at HH:MM."""
    _, _, planner = open_planner()

    try:
        event = planner.add_event(parse_clock(start), duration, title)
    except (ValueError, InvalidRange) as e:
        _fail(str(e))

    console.print(f"✓ Planned: {event.title} ({_span(event)})", style="green")
    console.print(f"  Event ID: {event.id[:8]}...", style="dim")


def _drag(event_id: str, mode: DragMode, by: int) -> None:
    _, _, planner = open_planner()
    event = _resolve(planner, event_id)

    # Replay the gesture as a pointer-down at 0 and a release at the offset.
    if planner.begin_drag(event.id, mode, 0.0) is None:
        _fail(f"Could not start dragging '{event_id}'")
    result = planner.drag.end_drag(planner.grid.minutes_to_delta(by))

    if result.outcome is DragOutcome.COMMITTED:
        console.print(f"✓ {result.event.title or 'Untitled'} now {_span(result.event)}", style="green")
    elif result.outcome is DragOutcome.UNCHANGED:
        console.print(f"• No change: {_span(event)} already is the closest valid slot", style="yellow")
    else:
        _fail("Change rejected")


def move(
    event_id: str,
    by: int = typer.Option(..., "--by", help="Minutes to shift (negative moves earlier)"),
) -> None:
    """Move an event, keeping its length."""
    _drag(event_id, DragMode.MOVE, by)


def resize(
    event_id: str,
    by: int = typer.Option(..., "--by", help="Minutes to move the edge by"),
    edge: str = typer.Option("end", "--edge", "-e", help="Edge to drag: start or end"),
) -> None:
    """Resize an event by dragging its start or end edge."""
    modes = {"start": DragMode.RESIZE_START, "end": DragMode.RESIZE_END}
    if edge not in modes:
        _fail(f"Edge must be 'start' or 'end', got '{edge}'")
    _drag(event_id, modes[edge], by)


def rename(event_id: str, title: str) -> None:
    """Rename an event; an empty title deletes it."""
    _, _, planner = open_planner()
    event = _resolve(planner, event_id)

    if planner.begin_edit(event.id) is None:
        _fail(f"Could not edit '{event_id}'")
    outcome = planner.confirm_edit(title)

    if outcome is EditOutcome.RENAMED:
        console.print(f"✓ Renamed to: {title.strip()}", style="green")
    elif outcome is EditOutcome.DELETED:
        console.print(f"✓ Deleted {event.id[:8]} (empty title)", style="green")
    else:
        console.print("• Title unchanged", style="yellow")


def delete(event_id: str) -> None:
    """Delete an event."""
    _, _, planner = open_planner()
    event = _resolve(planner, event_id)
    planner.delete_event(event.id)
    console.print(f"✓ Deleted: {event.title or 'Untitled'} ({_span(event)})", style="green")


def sweep() -> None:
    """Drop expired and invalid events from today's storage."""
    config = load_config()
    storage = PlannerStorage(config.data_dir)
    now = datetime.now(UTC)
    before = len(storage.read(storage_key(local_date(now))) or [])

    planner = DayPlanner.open(config, storage, now=now)
    removed = before - len(planner.store)
    console.print(f"✓ Removed {removed} event(s); {len(planner.store)} remaining", style="green")
