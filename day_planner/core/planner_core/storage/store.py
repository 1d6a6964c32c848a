"""Key-value planner storage with atomic JSON persistence."""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

PLANNER_EVENTS_KEY = "calendar-planner-events"


def storage_key(day: date) -> str:
    """Key for the event records of ``day``."""
    return f"{PLANNER_EVENTS_KEY}:{day.isoformat()}"


class PlannerStorage:
    """JSON file of ``key -> record list`` entries."""

    def __init__(self, data_dir: str = "data"):
        """Initialize planner storage.

        Args:
            data_dir: Directory holding planner.json (default: "data")
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.storage_path = self.data_dir / "planner.json"

    def _read_file(self) -> Dict[str, Any]:
        if not self.storage_path.exists():
            return {}

        try:
            with open(self.storage_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable planner storage {self.storage_path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring planner storage {self.storage_path}: expected an object")
            return {}
        return data

    def read(self, key: str) -> Optional[List[Dict[str, Any]]]:
        """Return the records stored under ``key``, or None if absent."""
        value = self._read_file().get(key)
        if value is None:
            return None
        if not isinstance(value, list):
            logger.warning(f"Ignoring non-list planner value under {key}")
            return None
        return value

    def write(self, key: str, records: List[Dict[str, Any]]) -> None:
        """Replace the records under ``key``.

        Args:
            key: Storage key (see :func:`storage_key`)
            records: Full record sequence to store verbatim
        """
        data = self._read_file()
        data[key] = records
        self._write_file(data)

    def keys(self) -> List[str]:
        """All keys currently stored."""
        return list(self._read_file())

    def remove(self, *keys: str) -> int:
        """Delete ``keys`` in a single write.

        Returns:
            Number of keys that were present
        """
        data = self._read_file()
        present = [key for key in keys if key in data]
        if not present:
            return 0
        for key in present:
            del data[key]
        self._write_file(data)
        return len(present)

    def _write_file(self, data: Dict[str, Any]) -> None:
        # Atomic write using temp file + rename
        temp_path = self.storage_path.with_suffix(".json.tmp")
        with open(temp_path, "w") as temp_file:
            json.dump(data, temp_file, indent=2)
        temp_path.replace(self.storage_path)

