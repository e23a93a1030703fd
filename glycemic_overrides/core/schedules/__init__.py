"""Baseline daily schedules for insulin delivery settings."""

from glycemic_overrides.core.schedules.models import (
    BasalRateSchedule,
    CarbRatioSchedule,
    DailyValueSchedule,
    InsulinSensitivitySchedule,
    RepeatingScheduleValue,
)

__all__ = [
    "BasalRateSchedule",
    "CarbRatioSchedule",
    "DailyValueSchedule",
    "InsulinSensitivitySchedule",
    "RepeatingScheduleValue",
]
