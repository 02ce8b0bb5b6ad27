"""Unified configuration loader for sleep times and scheduler settings.

This module provides a single configuration file format (dayplan_config.yaml)
that combines the user's sleep schedule with scheduling engine settings.
"""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from .models import SleepWindow, coerce_time_value, parse_time
from .scheduler import SchedulingConfig

DEFAULT_WAKE_TIME = "06:30"
DEFAULT_SLEEP_TIME = "23:00"


class SleepTimes(BaseModel):
    """Wake and sleep times for one day."""

    wake_time: str = DEFAULT_WAKE_TIME
    sleep_time: str = DEFAULT_SLEEP_TIME

    @field_validator("wake_time", "sleep_time", mode="before")
    @classmethod
    def coerce_time(cls, v: Any) -> Any:
        return coerce_time_value(v)

    @field_validator("wake_time", "sleep_time")
    @classmethod
    def check_time(cls, v: str) -> str:
        parse_time(v)
        return v

    def window(self) -> SleepWindow:
        return SleepWindow.parse(self.wake_time, self.sleep_time)


class SleepConfig(SleepTimes):
    """Default sleep schedule plus per-date exceptions."""

    overrides: dict[datetime.date, SleepTimes] = Field(default_factory=dict)

    def window_for(self, day: datetime.date) -> SleepWindow:
        """Return the sleep window that applies on ``day``."""
        override = self.overrides.get(day)
        if override is not None:
            return override.window()
        return self.window()


class UnifiedConfig(BaseModel):
    """Unified configuration containing sleep and scheduler settings."""

    sleep: SleepConfig = Field(default_factory=SleepConfig)
    scheduler: SchedulingConfig = Field(default_factory=SchedulingConfig)


def load_unified_config(config_path: Path | str) -> UnifiedConfig:
    """Load unified configuration from YAML file.

    Args:
        config_path: Path to dayplan_config.yaml file

    Returns:
        UnifiedConfig with defaults for any missing section

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open(encoding="utf-8") as f:
        data: Any = yaml.safe_load(f)

    if not data:
        raise ValueError("Empty configuration file")
    if not isinstance(data, dict):
        raise ValueError("Config must contain a dictionary at the root level")

    # Build SleepConfig if sleep section exists
    sleep_config = SleepConfig()
    if "sleep" in data:
        sleep_config = SleepConfig.model_validate(data["sleep"])

    # Build SchedulingConfig if scheduler section exists
    scheduler_config = SchedulingConfig()
    if "scheduler" in data:
        scheduler_config = SchedulingConfig.model_validate(data["scheduler"])

    return UnifiedConfig(sleep=sleep_config, scheduler=scheduler_config)
