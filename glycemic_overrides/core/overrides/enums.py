"""Temporary override enums."""

from enum import StrEnum, auto


class OverrideContext(StrEnum):
    """Why a temporary schedule override was enabled.

    ``pre_meal``: short-lived target adjustment ahead of a meal.
    ``legacy_workout``: workout target carried over from older settings.
    ``preset``: enacted from a saved ``TemporaryScheduleOverridePreset``;
    the override carries the preset it came from.
    ``custom``: one-off override configured by the user.
    """

    pre_meal = auto()
    legacy_workout = auto()
    preset = auto()
    custom = auto()
