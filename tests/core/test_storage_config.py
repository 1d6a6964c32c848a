"""Tests for planner storage and configuration loading."""

import json
from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from day_planner.core.planner_core import config as config_module
from day_planner.core.planner_core.config import PlannerConfig, load_config
from day_planner.core.planner_core.storage import PLANNER_EVENTS_KEY, PlannerStorage, storage_key


@pytest.fixture
def storage(tmp_path):
    return PlannerStorage(str(tmp_path / "data"))


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No planner env vars and no user config file."""
    for key in (
        "DAY_PLANNER_DAY_START",
        "DAY_PLANNER_DAY_END",
        "DAY_PLANNER_SNAP_STEP",
        "DAY_PLANNER_MIN_DURATION",
        "DAY_PLANNER_RETENTION_HOURS",
        "DAY_PLANNER_DATA_DIR",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config_module, "CONFIG_PATH", tmp_path / "missing.json")


class TestPlannerStorage:
    """Test the JSON key-value file."""

    def test_storage_key_includes_day(self):
        """Test keys are namespaced per calendar day."""
        assert storage_key(date(2026, 10, 19)) == f"{PLANNER_EVENTS_KEY}:2026-10-19"

    def test_creates_data_directory(self, tmp_path):
        """Test the data directory is created on demand."""
        PlannerStorage(str(tmp_path / "nested" / "dir"))

        assert (tmp_path / "nested" / "dir").is_dir()

    def test_missing_key_reads_none(self, storage):
        """Test reading before any write."""
        assert storage.read("calendar-planner-events:2026-10-19") is None

    def test_write_then_read(self, storage):
        """Test records are stored verbatim per key."""
        records = [{"id": "a", "title": "Call", "startMinutes": 1230}]

        storage.write("k1", records)
        storage.write("k2", [])

        assert storage.read("k1") == records
        assert storage.read("k2") == []
        assert not storage.storage_path.with_suffix(".json.tmp").exists()

    def test_keys_and_remove(self, storage):
        """Test listing keys and removing several in one write."""
        storage.write("k1", [])
        storage.write("k2", [{"id": "a"}])
        storage.write("k3", [])

        assert storage.remove("k1", "k3", "missing") == 2
        assert storage.keys() == ["k2"]
        assert storage.remove("missing") == 0
        assert storage.read("k2") == [{"id": "a"}]

    def test_corrupt_file_reads_none(self, storage):
        """Test unreadable storage is treated as empty."""
        storage.storage_path.write_text("{not json")

        assert storage.read("k1") is None

        storage.write("k1", [{"id": "a"}])
        assert storage.read("k1") == [{"id": "a"}]

    def test_non_list_value_reads_none(self, storage):
        """Test a malformed entry is ignored."""
        storage.storage_path.write_text(json.dumps({"k1": {"id": "a"}}))

        assert storage.read("k1") is None


class TestPlannerConfig:
    """Test configuration defaults and overrides."""

    def test_defaults(self, clean_env):
        """Test the evening window is the default."""
        config = load_config()

        assert config.day_start_minutes == 1200
        assert config.day_end_minutes == 1440
        assert config.snap_step_minutes == 30
        assert config.min_event_duration_minutes == 30
        assert config.retention == timedelta(hours=12)
        assert config.live_drag_updates is False

    def test_env_overrides(self, clean_env, monkeypatch, tmp_path):
        """Test environment variables override defaults."""
        monkeypatch.setenv("DAY_PLANNER_DAY_START", "1080")
        monkeypatch.setenv("DAY_PLANNER_SNAP_STEP", "15")
        monkeypatch.setenv("DAY_PLANNER_DATA_DIR", str(tmp_path / "store"))

        config = load_config()

        assert config.day_start_minutes == 1080
        assert config.snap_step_minutes == 15
        assert config.data_dir == str(tmp_path / "store")

    def test_non_integer_env_ignored(self, clean_env, monkeypatch):
        """Test garbage env values fall back to defaults."""
        monkeypatch.setenv("DAY_PLANNER_DAY_END", "midnight")

        assert load_config().day_end_minutes == 1440

    def test_file_overrides_env(self, clean_env, monkeypatch, tmp_path):
        """Test the config file is applied last."""
        monkeypatch.setenv("DAY_PLANNER_RETENTION_HOURS", "6")
        path = tmp_path / "planner.json"
        path.write_text(json.dumps({"retention_hours": 24, "live_drag_updates": True, "unknown": 1}))

        config = load_config(path)

        assert config.retention == timedelta(hours=24)
        assert config.live_drag_updates is True
        assert not hasattr(config, "unknown")

    def test_malformed_file_ignored(self, clean_env, tmp_path):
        """Test a broken config file leaves the defaults."""
        path = tmp_path / "planner.json"
        path.write_text("[1, 2")

        assert load_config(path).snap_step_minutes == 30

    def test_from_dict_ignores_unknown_keys(self):
        """Test round trip through a dictionary."""
        config = PlannerConfig.from_dict({"snap_step_minutes": 15, "colour": "blue"})

        assert config.snap_step_minutes == 15
        assert PlannerConfig.from_dict(config.to_dict()) == config

    def test_to_window(self):
        """Test the schedule window reflects the config."""
        window = PlannerConfig(day_start_minutes=1080, snap_step_minutes=15).to_window()

        assert (window.day_start_minutes, window.day_end_minutes) == (1080, 1440)
        assert window.snap_step_minutes == 15

    def test_invalid_window_rejected(self):
        """Test inconsistent grid settings fail validation."""
        with pytest.raises(ValidationError):
            PlannerConfig(snap_step_minutes=25).to_window()
