"""Planner configuration loaded from defaults, environment and file."""

import os
import json
import logging
from dataclasses import dataclass, field, fields
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from .grid import ScheduleWindow

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".config" / "day-planner" / "planner.json"

_ENV_INT_KEYS = {
    "DAY_PLANNER_DAY_START": "day_start_minutes",
    "DAY_PLANNER_DAY_END": "day_end_minutes",
    "DAY_PLANNER_SNAP_STEP": "snap_step_minutes",
    "DAY_PLANNER_MIN_DURATION": "min_event_duration_minutes",
    "DAY_PLANNER_RETENTION_HOURS": "retention_hours",
}


@dataclass
class PlannerConfig:
    """Configuration for the day planner."""
    day_start_minutes: int = 20 * 60  # 20:00
    day_end_minutes: int = 24 * 60  # midnight
    snap_step_minutes: int = 30
    min_event_duration_minutes: int = 30
    visible_window_minutes: int = 4 * 60
    track_height_px: float = 232.0  # 58px per hour
    min_block_height_px: float = 30.0
    retention_hours: float = 12
    live_drag_updates: bool = False
    data_dir: str = field(default_factory=lambda: str(Path.cwd() / "data"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlannerConfig":
        """Create config from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @property
    def retention(self) -> timedelta:
        return timedelta(hours=self.retention_hours)

    def to_window(self) -> ScheduleWindow:
        """Build the schedule window; raises pydantic ValidationError if invalid."""
        return ScheduleWindow(
            day_start_minutes=self.day_start_minutes,
            day_end_minutes=self.day_end_minutes,
            snap_step_minutes=self.snap_step_minutes,
            min_event_duration_minutes=self.min_event_duration_minutes,
        )


def load_config(config_path: Optional[Path] = None) -> PlannerConfig:
    """Load configuration from environment and file.

    Args:
        config_path: JSON config file (default: ~/.config/day-planner/planner.json)

    Returns:
        Resolved configuration
    """
    # Start with defaults
    config = PlannerConfig()

    # Load from environment variables
    for env_key, attr in _ENV_INT_KEYS.items():
        value = os.getenv(env_key)
        if value is None:
            continue
        try:
            setattr(config, attr, int(value))
        except ValueError:
            logger.warning(f"Ignoring non-integer {env_key}={value!r}")
    config.data_dir = os.getenv("DAY_PLANNER_DATA_DIR", config.data_dir)

    # Try to load from config file
    config_path = config_path or CONFIG_PATH
    if config_path.exists():
        try:
            with open(config_path, "r") as f:
                file_config = json.load(f)
            for key, value in file_config.items():
                if hasattr(config, key):
                    setattr(config, key, value)
            logger.info(f"Loaded planner config from {config_path}")
        except (OSError, json.JSONDecodeError, AttributeError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")

    return config
