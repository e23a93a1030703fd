"""Pytest configuration and shared fixtures."""

from datetime import timedelta

import pytest

from glycemic_overrides.core.overrides.history import (
    OverrideEvent,
    TemporaryScheduleOverrideHistory,
)


class RecordingDelegate:
    """Delegate that snapshots the history on every update."""

    def __init__(self):
        self.snapshots: list[tuple[OverrideEvent, ...]] = []

    def override_history_did_update(self, history):
        self.snapshots.append(history.recent_events)

    @property
    def update_count(self) -> int:
        return len(self.snapshots)


@pytest.fixture
def history() -> TemporaryScheduleOverrideHistory:
    """Empty history with a 10-hour retention window."""
    return TemporaryScheduleOverrideHistory(retention_window=timedelta(hours=10))


@pytest.fixture
def delegate(history) -> RecordingDelegate:
    """Recording delegate attached to ``history``.

    The fixture keeps the only strong reference, so it lives as long as
    the test does.
    """
    recording = RecordingDelegate()
    history.delegate = recording
    return recording
