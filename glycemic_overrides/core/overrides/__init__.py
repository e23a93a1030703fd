"""Temporary schedule overrides.

An override temporarily scales insulin delivery settings (basal rates,
insulin sensitivity, carb ratios) for a bounded or open-ended interval.
The history keeps the recently enabled overrides free of overlap and
folds them onto the baseline schedules.
"""

from glycemic_overrides.core.overrides.apply import (
    apply_basal_rate_multiplier,
    apply_carb_ratio_multiplier,
    apply_insulin_sensitivity_multiplier,
)
from glycemic_overrides.core.overrides.constants import DISTANT_FUTURE, INDEFINITE
from glycemic_overrides.core.overrides.enums import OverrideContext
from glycemic_overrides.core.overrides.history import (
    EarlyEnd,
    NaturalEnd,
    OverrideEnd,
    OverrideEvent,
    OverrideHistoryDelegate,
    OverrideOverlapError,
    TemporaryScheduleOverrideHistory,
)
from glycemic_overrides.core.overrides.models import (
    DateInterval,
    GlucoseRange,
    OverrideEventRecord,
    TemporaryScheduleOverride,
    TemporaryScheduleOverridePreset,
    TemporaryScheduleOverrideSettings,
)

__all__ = [
    "DISTANT_FUTURE",
    "INDEFINITE",
    "DateInterval",
    "EarlyEnd",
    "GlucoseRange",
    "NaturalEnd",
    "OverrideContext",
    "OverrideEnd",
    "OverrideEvent",
    "OverrideEventRecord",
    "OverrideHistoryDelegate",
    "OverrideOverlapError",
    "TemporaryScheduleOverride",
    "TemporaryScheduleOverrideHistory",
    "TemporaryScheduleOverridePreset",
    "TemporaryScheduleOverrideSettings",
    "apply_basal_rate_multiplier",
    "apply_carb_ratio_multiplier",
    "apply_insulin_sensitivity_multiplier",
]
