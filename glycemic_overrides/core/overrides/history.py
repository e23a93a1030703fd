"""Temporary schedule override history.

Records overrides as they are enabled, edited and disabled, keeps the
recorded events free of overlap, and folds the recent ones onto
baseline schedules.

Recording rules, applied against the most recent event:

- Recording an override equal to the last one is a no-op.
- If the last event still ends naturally and has not finished as of the
  enable date, it is either dropped (it has not started yet, or the new
  override has the same start date, i.e. an edit) or ended early: one
  timestamp step before the new override starts, or at the enable date
  when disabling, whichever is earlier.
- A new override is appended with a natural end.

The history is not thread-safe. The delegate is called synchronously
after each change and must not record or resolve from inside the
callback.
"""

import weakref
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol, Self, TypeVar

from pydantic import ValidationError

from glycemic_overrides.config import settings
from glycemic_overrides.core.overrides.apply import (
    apply_basal_rate_multiplier,
    apply_carb_ratio_multiplier,
    apply_insulin_sensitivity_multiplier,
)
from glycemic_overrides.core.overrides.constants import TIMESTAMP_RESOLUTION
from glycemic_overrides.core.overrides.models import (
    OverrideEventRecord,
    TemporaryScheduleOverride,
)
from glycemic_overrides.core.schedules.models import (
    BasalRateSchedule,
    CarbRatioSchedule,
    DailyValueSchedule,
    InsulinSensitivitySchedule,
)
from glycemic_overrides.logging_config import get_logger, operation_ctx

logger = get_logger(__name__)

ScheduleT = TypeVar("ScheduleT", bound=DailyValueSchedule)


class OverrideOverlapError(AssertionError):
    """Two recorded overrides are active at the same time.

    Recording never produces overlapping events, so this signals a bug in
    the history itself (or a hand-edited persisted history), not bad input.
    """


@dataclass(frozen=True)
class NaturalEnd:
    """The override ends when its own duration runs out."""


@dataclass(frozen=True)
class EarlyEnd:
    """The override was cut short at ``date``."""

    date: datetime


OverrideEnd = NaturalEnd | EarlyEnd


@dataclass(frozen=True)
class OverrideEvent:
    override: TemporaryScheduleOverride
    end: OverrideEnd = NaturalEnd()

    @property
    def actual_end_date(self) -> datetime:
        if isinstance(self.end, EarlyEnd):
            return self.end.date
        return self.override.end_date

    def override_reflecting_enabled_duration(self) -> TemporaryScheduleOverride:
        if isinstance(self.end, EarlyEnd):
            return self.override.with_end_date(self.end.date)
        return self.override

    @property
    def raw_value(self) -> dict[str, Any]:
        raw: dict[str, Any] = {"override": self.override.raw_value}
        if isinstance(self.end, EarlyEnd):
            raw["endDate"] = self.end.date.isoformat()
        return raw

    @classmethod
    def from_raw_value(cls, raw_value: Any) -> Self:
        """Decode a persisted event.

        Raises:
            pydantic.ValidationError: If the record or its override is malformed.
        """
        record = OverrideEventRecord.model_validate(raw_value)
        if record.end_date is None:
            return cls(override=record.override)
        return cls(override=record.override, end=EarlyEnd(record.end_date))


class OverrideHistoryDelegate(Protocol):
    def override_history_did_update(
        self, history: "TemporaryScheduleOverrideHistory"
    ) -> None: ...


def _require_aware(date: datetime, name: str) -> datetime:
    if date.tzinfo is None or date.utcoffset() is None:
        msg = f"{name} must be timezone-aware"
        raise ValueError(msg)
    return date


@contextmanager
def _operation(name: str) -> Iterator[None]:
    token = operation_ctx.set(name)
    try:
        yield
    finally:
        operation_ctx.reset(token)


class TemporaryScheduleOverrideHistory:
    """Chronological record of temporary schedule overrides.

    Args:
        retention_window: How long after its actual end an event is kept.
            Defaults to ``settings.override_retention_window``.
    """

    def __init__(self, retention_window: timedelta | None = None):
        if retention_window is None:
            retention_window = settings.override_retention_window
        self.retention_window = retention_window
        self._recent_events: list[OverrideEvent] = []
        self._delegate_ref: weakref.ReferenceType[OverrideHistoryDelegate] | None = None

    @property
    def delegate(self) -> OverrideHistoryDelegate | None:
        """Observer notified after every change. Held weakly."""
        if self._delegate_ref is None:
            return None
        return self._delegate_ref()

    @delegate.setter
    def delegate(self, delegate: OverrideHistoryDelegate | None) -> None:
        self._delegate_ref = weakref.ref(delegate) if delegate is not None else None

    @property
    def recent_events(self) -> tuple[OverrideEvent, ...]:
        return tuple(self._recent_events)

    def _set_recent_events(self, events: list[OverrideEvent]) -> None:
        self._recent_events = events
        delegate = self.delegate
        if delegate is not None:
            delegate.override_history_did_update(self)

    def record_override(
        self,
        override: TemporaryScheduleOverride | None,
        at: datetime | None = None,
    ) -> None:
        """Record that ``override`` was enabled at ``at``.

        Pass ``None`` to record that the active override was disabled.

        Args:
            override: The override now in effect, or None.
            at: When the change was made. Must be timezone-aware. Defaults
                to now.

        Raises:
            ValueError: If ``at`` is a naive datetime.
        """
        enable_date = datetime.now(UTC) if at is None else _require_aware(at, "at")
        with _operation("record"):
            self._record(override, enable_date)

    def _record(
        self, override: TemporaryScheduleOverride | None, enable_date: datetime
    ) -> None:
        last = self._recent_events[-1] if self._recent_events else None
        if override == (last.override if last is not None else None):
            return

        events = list(self._recent_events)
        if (
            last is not None
            and isinstance(last.end, NaturalEnd)
            and not last.override.has_finished(relative_to=enable_date)
        ):
            has_not_begun = last.override.start_date > enable_date
            was_edited = (
                override is not None
                and override.start_date == last.override.start_date
            )
            if has_not_begun or was_edited:
                events.pop()
                logger.debug(
                    "Replaced override",
                    start_date=last.override.start_date,
                    reason="not_begun" if has_not_begun else "edited",
                )
            else:
                if override is not None:
                    end_date = min(
                        override.start_date - TIMESTAMP_RESOLUTION, enable_date
                    )
                else:
                    end_date = enable_date
                events[-1] = replace(last, end=EarlyEnd(end_date))
                logger.debug(
                    "Ended override early",
                    start_date=last.override.start_date,
                    end_date=end_date,
                )

        if override is not None:
            events.append(OverrideEvent(override=override))

        if events != self._recent_events:
            self._set_recent_events(events)

    def resolving_recent_basal_schedule(
        self, base: BasalRateSchedule, relative_to: datetime | None = None
    ) -> BasalRateSchedule:
        """Apply recent overrides to ``base`` as of ``relative_to`` (default now).

        Raises:
            ValueError: If ``relative_to`` is a naive datetime.
        """
        return self._resolve(
            base, relative_to, apply_basal_rate_multiplier, "resolve_basal"
        )

    def resolving_recent_insulin_sensitivity_schedule(
        self, base: InsulinSensitivitySchedule, relative_to: datetime | None = None
    ) -> InsulinSensitivitySchedule:
        """Apply recent overrides to ``base`` as of ``relative_to`` (default now)."""
        return self._resolve(
            base,
            relative_to,
            apply_insulin_sensitivity_multiplier,
            "resolve_insulin_sensitivity",
        )

    def resolving_recent_carb_ratio_schedule(
        self, base: CarbRatioSchedule, relative_to: datetime | None = None
    ) -> CarbRatioSchedule:
        """Apply recent overrides to ``base`` as of ``relative_to`` (default now)."""
        return self._resolve(
            base, relative_to, apply_carb_ratio_multiplier, "resolve_carb_ratio"
        )

    def _resolve(
        self,
        base: ScheduleT,
        relative_to: datetime | None,
        apply: Callable[[ScheduleT, TemporaryScheduleOverride, datetime], ScheduleT],
        operation: str,
    ) -> ScheduleT:
        if relative_to is None:
            reference_date = datetime.now(UTC)
        else:
            reference_date = _require_aware(relative_to, "relative_to")
        with _operation(operation):
            self._filter_recent_events(relative_to=reference_date)
            schedule = base
            for override in self.overrides_reflecting_enabled_duration():
                schedule = apply(schedule, override, reference_date)
            return schedule

    def _filter_recent_events(self, relative_to: datetime) -> None:
        oldest_end_date_to_keep = relative_to - self.retention_window
        events = [
            event
            for event in self._recent_events
            if event.actual_end_date >= oldest_end_date_to_keep
        ]
        if events != self._recent_events:
            logger.info(
                "Pruned stale override events",
                pruned=len(self._recent_events) - len(events),
                oldest_end_date_to_keep=oldest_end_date_to_keep,
            )
            self._set_recent_events(events)

    def overrides_reflecting_enabled_duration(self) -> list[TemporaryScheduleOverride]:
        """Recorded overrides, each ending when it actually ended.

        Raises:
            OverrideOverlapError: If two consecutive overrides overlap.
        """
        overrides = [
            event.override_reflecting_enabled_duration()
            for event in self._recent_events
        ]
        for override, following in zip(overrides, overrides[1:]):
            if override.active_interval.intersects(following.active_interval):
                logger.error(
                    "Recorded overrides overlap",
                    first_start=override.start_date,
                    first_end=override.end_date,
                    second_start=following.start_date,
                )
                msg = (
                    f"Override starting {override.start_date.isoformat()} overlaps "
                    f"override starting {following.start_date.isoformat()}"
                )
                raise OverrideOverlapError(msg)
        return overrides

    def wipe_history(self) -> None:
        """Remove every event."""
        with _operation("wipe"):
            self._set_recent_events([])

    @property
    def raw_value(self) -> list[dict[str, Any]]:
        return [event.raw_value for event in self._recent_events]

    @classmethod
    def from_raw_value(
        cls,
        raw_value: list[Any],
        retention_window: timedelta | None = None,
    ) -> Self:
        """Restore a history, dropping any event that fails to decode."""
        history = cls(retention_window=retention_window)
        events: list[OverrideEvent] = []
        for index, raw_event in enumerate(raw_value):
            try:
                events.append(OverrideEvent.from_raw_value(raw_event))
            except ValidationError as e:
                logger.warning(
                    "Dropped unreadable override event",
                    index=index,
                    error_count=e.error_count(),
                )
        history._recent_events = events
        return history

    def __repr__(self) -> str:
        return f"TemporaryScheduleOverrideHistory(recent_events={self._recent_events!r})"
