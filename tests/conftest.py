"""Shared fixtures for the test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from work_item_intel.models import ClassificationResult, Priority, WorkItem, WorkItemType


class FakeClock:
    """Clock that advances one minute per call."""

    def __init__(self, start: datetime = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)):
        self.now = start
        self.calls = 0

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(minutes=1)
        self.calls += 1
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_item():
    """Build a WorkItem with sensible defaults."""
    def _make(
        item_id=1,
        title="Update onboarding copy",
        item_type=WorkItemType.TASK,
        state="Active",
        **kwargs
    ):
        return WorkItem(id=item_id, title=title, type=item_type, state=state, **kwargs)
    return _make


@pytest.fixture
def make_result():
    """Build a ClassificationResult with sensible defaults."""
    def _make(work_item_id=1, priority=Priority.MEDIUM, tags=None, confidence=0.6,
              reasoning="Standard classification applied."):
        return ClassificationResult(
            work_item_id=work_item_id,
            suggested_tags=list(tags or []),
            suggested_priority=priority,
            confidence=confidence,
            reasoning=reasoning
        )
    return _make
