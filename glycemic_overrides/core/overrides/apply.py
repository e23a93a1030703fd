"""Splice a temporary override into a daily schedule.

Each transform is pure: ``(schedule, override, relative_to) -> schedule``.
Only the part of the override that falls inside the day containing
``relative_to`` (in the schedule's timezone) is applied. Values inside
that span are multiplied; the baseline resumes at the end of the span.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TypeVar

from glycemic_overrides.core.overrides.models import (
    TemporaryScheduleOverride,
    TemporaryScheduleOverrideSettings,
)
from glycemic_overrides.core.schedules.models import (
    ONE_DAY,
    BasalRateSchedule,
    CarbRatioSchedule,
    DailyValueSchedule,
    InsulinSensitivitySchedule,
    RepeatingScheduleValue,
)

ScheduleT = TypeVar("ScheduleT", bound=DailyValueSchedule)


def _schedule_relative_span(
    schedule: DailyValueSchedule,
    override: TemporaryScheduleOverride,
    relative_to: datetime,
) -> tuple[timedelta, timedelta] | None:
    """Wall-clock offsets of the override's span within the local day.

    Clipping happens in absolute time; offsets are local times of day, so
    an override at 14:00 local starts at 14h even on a 23-hour day.
    """
    day_start = schedule.start_of_day(relative_to)
    day_end = schedule.end_of_day(relative_to)
    start = max(override.start_date, day_start)
    end = min(override.end_date, day_end)
    if end <= start:
        return None
    start_offset = schedule.time_of_day(start)
    end_offset = ONE_DAY if end == day_end else schedule.time_of_day(end)
    # Both ends inside the repeated fall-back hour can invert.
    if end_offset <= start_offset:
        return None
    return start_offset, end_offset


def _apply_multiplier(
    schedule: ScheduleT,
    override: TemporaryScheduleOverride,
    relative_to: datetime,
    multiplier: Callable[[TemporaryScheduleOverrideSettings], float | None],
) -> ScheduleT:
    factor = multiplier(override.settings)
    if factor is None:
        return schedule
    span = _schedule_relative_span(schedule, override, relative_to)
    if span is None:
        return schedule
    start, end = span

    items: list[RepeatingScheduleValue] = [
        item for item in schedule.items if item.start_time < start
    ]
    items.append(
        RepeatingScheduleValue(start_time=start, value=schedule.value_at(start) * factor)
    )
    items.extend(
        RepeatingScheduleValue(start_time=item.start_time, value=item.value * factor)
        for item in schedule.items
        if start < item.start_time < end
    )
    if end < ONE_DAY:
        if not any(item.start_time == end for item in schedule.items):
            items.append(
                RepeatingScheduleValue(start_time=end, value=schedule.value_at(end))
            )
        items.extend(item for item in schedule.items if item.start_time >= end)

    return schedule.with_items(items)


def apply_basal_rate_multiplier(
    schedule: BasalRateSchedule,
    override: TemporaryScheduleOverride,
    relative_to: datetime,
) -> BasalRateSchedule:
    return _apply_multiplier(
        schedule, override, relative_to, lambda s: s.basal_rate_multiplier
    )


def apply_insulin_sensitivity_multiplier(
    schedule: InsulinSensitivitySchedule,
    override: TemporaryScheduleOverride,
    relative_to: datetime,
) -> InsulinSensitivitySchedule:
    return _apply_multiplier(
        schedule, override, relative_to, lambda s: s.insulin_sensitivity_multiplier
    )


def apply_carb_ratio_multiplier(
    schedule: CarbRatioSchedule,
    override: TemporaryScheduleOverride,
    relative_to: datetime,
) -> CarbRatioSchedule:
    return _apply_multiplier(
        schedule, override, relative_to, lambda s: s.carb_ratio_multiplier
    )
