"""Planner event schema."""

from datetime import datetime, UTC
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PlannerEvent(BaseModel):
    """A time-boxed event on today's schedule.

    Persisted records use the camelCase layout (``startMinutes``,
    ``durationMinutes``, ``createdAt``); Python code uses the snake_case
    field names. Instances are frozen: the store replaces them on update.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str = ""
    start_minutes: int = Field(alias="startMinutes")
    duration_minutes: int = Field(alias="durationMinutes")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Epoch-millisecond records parse as aware; ISO strings may not.
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes

    def overlaps(self, start_minutes: int, end_minutes: int) -> bool:
        return self.start_minutes < end_minutes and self.end_minutes > start_minutes

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the persisted record layout."""
        return self.model_dump(by_alias=True, mode="json")
