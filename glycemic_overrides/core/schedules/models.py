"""Daily value schedule models.

A schedule is a list of values that repeat every day, each taking
effect at an offset from local midnight and lasting until the next
item (or the end of the day).
"""

import math
from datetime import datetime, time, timedelta
from typing import Self
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, model_validator

ONE_DAY = timedelta(hours=24)


class RepeatingScheduleValue(BaseModel):
    """A value taking effect ``start_time`` after local midnight."""

    model_config = ConfigDict(frozen=True)

    start_time: timedelta = Field(ge=timedelta(0), lt=ONE_DAY)
    value: float


class DailyValueSchedule(BaseModel):
    """Values repeating daily in the schedule's timezone."""

    model_config = ConfigDict(frozen=True)

    items: tuple[RepeatingScheduleValue, ...] = Field(min_length=1)
    timezone: str = "UTC"

    @model_validator(mode="after")
    def check_items(self) -> Self:
        if self.items[0].start_time != timedelta(0):
            msg = "first schedule item must start at midnight"
            raise ValueError(msg)
        for item, following in zip(self.items, self.items[1:]):
            if following.start_time <= item.start_time:
                msg = "schedule item start times must be strictly increasing"
                raise ValueError(msg)
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            msg = f"unknown timezone {self.timezone!r}"
            raise ValueError(msg) from e
        return self

    @classmethod
    def from_hours(cls, items: list[tuple[float, float]], timezone: str = "UTC") -> Self:
        """Build a schedule from ``(start_hour, value)`` pairs."""
        return cls(
            items=tuple(
                RepeatingScheduleValue(start_time=timedelta(hours=hour), value=value)
                for hour, value in items
            ),
            timezone=timezone,
        )

    def start_of_day(self, date: datetime) -> datetime:
        """Local midnight of the day containing ``date``."""
        local = date.astimezone(ZoneInfo(self.timezone))
        return datetime.combine(local.date(), time(), tzinfo=ZoneInfo(self.timezone))

    def end_of_day(self, date: datetime) -> datetime:
        """Local midnight that ends the day containing ``date``.

        Not always 24 hours after ``start_of_day``: DST transition days
        last 23 or 25 hours.
        """
        local = date.astimezone(ZoneInfo(self.timezone))
        following = local.date() + timedelta(days=1)
        return datetime.combine(following, time(), tzinfo=ZoneInfo(self.timezone))

    def time_of_day(self, date: datetime) -> timedelta:
        """Local wall-clock time of ``date``, as an offset from midnight."""
        local = date.astimezone(ZoneInfo(self.timezone))
        return timedelta(
            hours=local.hour,
            minutes=local.minute,
            seconds=local.second,
            microseconds=local.microsecond,
        )

    def value_at(self, offset: timedelta) -> float:
        """Value in effect ``offset`` after midnight."""
        value = self.items[0].value
        for item in self.items:
            if item.start_time > offset:
                break
            value = item.value
        return value

    def with_items(self, items: list[RepeatingScheduleValue]) -> Self:
        return type(self)(items=tuple(items), timezone=self.timezone)

    def is_close_to(self, other: "DailyValueSchedule", abs_tol: float = 1e-6) -> bool:
        """Compare start times exactly and values within ``abs_tol``."""
        if self.timezone != other.timezone or len(self.items) != len(other.items):
            return False
        return all(
            a.start_time == b.start_time
            and math.isclose(a.value, b.value, rel_tol=0.0, abs_tol=abs_tol)
            for a, b in zip(self.items, other.items)
        )


class BasalRateSchedule(DailyValueSchedule):
    """Basal insulin rates (U/hr)."""


class InsulinSensitivitySchedule(DailyValueSchedule):
    """Insulin sensitivity factors (mg/dL per U)."""


class CarbRatioSchedule(DailyValueSchedule):
    """Carbohydrate ratios (g per U)."""
