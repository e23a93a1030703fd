"""Temporary override Pydantic models.

Pure value types: no persistence, no clock access. Glucose values are in
mg/dL matching the project-wide convention. Raw forms use camelCase keys
so persisted histories stay readable by other tooling.
"""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Self

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from glycemic_overrides.core.overrides.constants import (
    DISTANT_FUTURE,
    INDEFINITE,
    IndefiniteDuration,
)
from glycemic_overrides.core.overrides.enums import OverrideContext

_RAW_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


@dataclass(frozen=True)
class DateInterval:
    """Half-open interval ``[start, end)``. Empty when ``end <= start``."""

    start: datetime
    end: datetime

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    def contains(self, date: datetime) -> bool:
        return self.start <= date < self.end

    def intersects(self, other: "DateInterval") -> bool:
        if self.is_empty or other.is_empty:
            return False
        return self.start < other.end and other.start < self.end


class GlucoseRange(BaseModel):
    """Target glucose range (mg/dL)."""

    model_config = _RAW_CONFIG

    min_value: float
    max_value: float

    @model_validator(mode="after")
    def check_ordering(self) -> Self:
        if self.min_value > self.max_value:
            msg = "min_value must not exceed max_value"
            raise ValueError(msg)
        return self


class TemporaryScheduleOverrideSettings(BaseModel):
    """Adjustments an override applies on top of the baseline schedules.

    ``insulin_needs_scale_factor`` scales basal rates directly and divides
    insulin sensitivity and carb ratio, so 1.5 means 50% more insulin.
    """

    model_config = _RAW_CONFIG

    target_range: GlucoseRange | None = None
    insulin_needs_scale_factor: float | None = Field(
        default=None,
        gt=0,
        description="Multiplier on overall insulin needs. Must be positive.",
    )

    @property
    def effective_insulin_needs_scale_factor(self) -> float:
        return self.insulin_needs_scale_factor or 1.0

    @property
    def basal_rate_multiplier(self) -> float | None:
        return self.insulin_needs_scale_factor

    @property
    def insulin_sensitivity_multiplier(self) -> float | None:
        if self.insulin_needs_scale_factor is None:
            return None
        return 1.0 / self.insulin_needs_scale_factor

    @property
    def carb_ratio_multiplier(self) -> float | None:
        if self.insulin_needs_scale_factor is None:
            return None
        return 1.0 / self.insulin_needs_scale_factor


def _check_duration(duration: timedelta | IndefiniteDuration) -> None:
    if duration != INDEFINITE and duration < timedelta(0):
        msg = "duration must not be negative"
        raise ValueError(msg)


class TemporaryScheduleOverridePreset(BaseModel):
    """A saved override configuration the user can enact by name."""

    model_config = _RAW_CONFIG

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    symbol: str = Field(min_length=1)
    name: str = Field(min_length=1)
    settings: TemporaryScheduleOverrideSettings
    duration: timedelta | IndefiniteDuration

    @model_validator(mode="after")
    def check_duration(self) -> Self:
        _check_duration(self.duration)
        return self

    def create_override(self, enact_date: datetime) -> "TemporaryScheduleOverride":
        """Build an override from this preset starting at ``enact_date``."""
        return TemporaryScheduleOverride(
            context=OverrideContext.preset,
            settings=self.settings,
            start_date=enact_date,
            duration=self.duration,
            preset=self,
        )


class TemporaryScheduleOverride(BaseModel):
    """A time-bounded (or open-ended) adjustment to insulin delivery settings.

    Overrides compare equal by value across every field, which is what
    lets the history ignore a repeated recording of the same override.
    """

    model_config = _RAW_CONFIG

    context: OverrideContext
    settings: TemporaryScheduleOverrideSettings
    start_date: AwareDatetime
    duration: timedelta | IndefiniteDuration
    preset: TemporaryScheduleOverridePreset | None = None

    @field_validator("start_date")
    @classmethod
    def normalize_start_date(cls, value: datetime) -> datetime:
        # Kept in UTC so end_date is elapsed time across DST changes.
        return value.astimezone(UTC)

    @model_validator(mode="after")
    def check_consistency(self) -> Self:
        _check_duration(self.duration)
        if (self.context == OverrideContext.preset) != (self.preset is not None):
            msg = "preset must be given exactly when context is 'preset'"
            raise ValueError(msg)
        return self

    @property
    def is_indefinite(self) -> bool:
        return self.duration == INDEFINITE

    @property
    def end_date(self) -> datetime:
        if self.duration == INDEFINITE:
            return DISTANT_FUTURE
        try:
            return self.start_date + self.duration
        except OverflowError:
            return DISTANT_FUTURE

    @property
    def active_interval(self) -> DateInterval:
        return DateInterval(start=self.start_date, end=self.end_date)

    def has_finished(self, relative_to: datetime) -> bool:
        return self.end_date <= relative_to

    def is_active(self, at: datetime) -> bool:
        return self.active_interval.contains(at)

    def with_end_date(self, end_date: datetime) -> Self:
        """Return a copy ending at ``end_date``.

        An end date before the start yields a zero-length override, whose
        active interval is empty.
        """
        duration = max(end_date - self.start_date, timedelta(0))
        return self.model_copy(update={"duration": duration})

    @property
    def raw_value(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_raw_value(cls, raw_value: Any) -> Self:
        """Decode a raw override.

        Raises:
            pydantic.ValidationError: If ``raw_value`` is not a valid override.
        """
        return cls.model_validate(raw_value)


class OverrideEventRecord(BaseModel):
    """Persisted form of one history event.

    A persisted history is a JSON array of these, oldest first::

        [{"override": {...}, "endDate": "2025-06-15T03:00:00+00:00"}, ...]

    ``endDate`` is present only for events that were ended early.
    """

    model_config = _RAW_CONFIG

    override: TemporaryScheduleOverride
    end_date: AwareDatetime | None = None
