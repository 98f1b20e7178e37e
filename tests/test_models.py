"""
Unit tests for the data models and their JSON shapes.
"""

from datetime import datetime, timezone

import pytest

from work_item_intel.errors import DeserializationError
from work_item_intel.models import (
    ClassificationResult,
    Priority,
    SprintStats,
    WorkItem,
    WorkItemType,
    parse_timestamp
)


class TestWorkItem:
    """Test WorkItem serialization."""

    def test_to_dict_uses_wire_names(self, make_item):
        """Test camelCase keys, type display name and numeric priority."""
        item = make_item(item_id=3, item_type=WorkItemType.USER_STORY,
                         assigned_to="Dana", priority=Priority.LOW, tags=["a"])

        data = item.to_dict()

        assert data['type'] == "User Story"
        assert data['assignedTo'] == "Dana"
        assert data['priority'] == 4
        assert data['tags'] == ["a"]
        assert data['description'] is None

    def test_from_dict_minimal(self):
        """Test optional fields may be absent."""
        item = WorkItem.from_dict({'id': 1, 'title': 't', 'type': 'Epic', 'state': 'New'})

        assert item.type == WorkItemType.EPIC
        assert item.priority is None
        assert item.tags is None

    def test_from_dict_full(self, make_item):
        """Test a full item survives to_dict/from_dict."""
        item = make_item(item_id=9, description="d", tags=["x", "y"], priority=Priority.HIGH,
                         sprint="P\\S", url="https://example.com/9", assigned_to="Sam")

        assert WorkItem.from_dict(item.to_dict()) == item

    @pytest.mark.parametrize("data,fragment", [
        ({'title': 't', 'type': 'Bug', 'state': 'New'}, "Missing field 'id'"),
        ({'id': '1', 'title': 't', 'type': 'Bug', 'state': 'New'}, "workItem.id"),
        ({'id': True, 'title': 't', 'type': 'Bug', 'state': 'New'}, "got bool"),
        ({'id': 1, 'title': 't', 'type': 'Issue', 'state': 'New'}, "Unknown work item type"),
        ({'id': 1, 'title': 't', 'type': 'Bug', 'state': 'New', 'priority': 0}, "Unknown priority"),
        ({'id': 1, 'title': 't', 'type': 'Bug', 'state': 'New', 'tags': "a;b"}, "workItem.tags"),
        ({'id': 1, 'title': 't', 'type': 'Bug', 'state': 'New', 'assignedTo': 5},
         "workItem.assignedTo"),
    ])
    def test_from_dict_errors(self, data, fragment):
        """Test shape errors name what went wrong."""
        with pytest.raises(DeserializationError) as exc_info:
            WorkItem.from_dict(data)

        assert fragment in str(exc_info.value)

    def test_from_dict_not_an_object(self):
        """Test a non-object is rejected."""
        with pytest.raises(DeserializationError, match="Expected an object"):
            WorkItem.from_dict([1, 2])


class TestClassificationResult:
    """Test ClassificationResult serialization."""

    def test_to_dict(self, make_result):
        """Test wire names and numeric priority."""
        data = make_result(4, priority=Priority.CRITICAL, tags=["Critical"], confidence=0.7).to_dict()

        assert data == {
            'workItemId': 4,
            'suggestedTags': ["Critical"],
            'suggestedPriority': 1,
            'confidence': 0.7,
            'reasoning': "Standard classification applied."
        }

    def test_integer_confidence_accepted(self):
        """Test whole-number confidence is read as float."""
        result = ClassificationResult.from_dict({
            'workItemId': 1, 'suggestedTags': [], 'suggestedPriority': 3,
            'confidence': 1, 'reasoning': ''
        })

        assert result.confidence == 1.0
        assert isinstance(result.confidence, float)

    @pytest.mark.parametrize("override,fragment", [
        ({'confidence': "high"}, "classification.confidence"),
        ({'suggestedTags': [1]}, "classification.suggestedTags[0]"),
        ({'suggestedPriority': 5}, "Unknown priority"),
        ({'reasoning': None}, "classification.reasoning"),
        ({'confidence': float("nan")}, "classification.confidence"),
        ({'confidence': float("inf")}, "classification.confidence"),
        ({'confidence': 1.5}, "between 0 and 1"),
        ({'confidence': -0.1}, "between 0 and 1"),
    ])
    def test_from_dict_errors(self, override, fragment):
        """Test shape errors name the offending field."""
        data = {
            'workItemId': 1, 'suggestedTags': [], 'suggestedPriority': 3,
            'confidence': 0.6, 'reasoning': ''
        }
        data.update(override)

        with pytest.raises(DeserializationError) as exc_info:
            ClassificationResult.from_dict(data)

        assert fragment in str(exc_info.value)


class TestTimestampsAndStats:
    """Test timestamp parsing and stats output."""

    def test_parse_timestamp(self):
        """Test ISO-8601 timestamps with offsets parse."""
        assert parse_timestamp("2026-03-02T09:00:00+00:00", "$") == datetime(
            2026, 3, 2, 9, 0, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize("value", ["2026-03-02T09:00:00Z", "2026-03-02T09:00:00.000Z"])
    def test_parse_timestamp_z_suffix(self, value):
        """Test a trailing Z is read as UTC."""
        assert parse_timestamp(value, "$") == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["yesterday", 1700000000, None])
    def test_parse_timestamp_errors(self, value):
        """Test non-ISO values are rejected."""
        with pytest.raises(DeserializationError):
            parse_timestamp(value, "$.lastSyncTime")

    def test_stats_to_dict(self):
        """Test stats serialize with an ISO timestamp."""
        stats = SprintStats(
            sprint_name="S1",
            total_work_items=2,
            total_classifications=1,
            last_sync_time=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc),
            priority_breakdown={'critical': 1, 'high': 0, 'medium': 0, 'low': 0}
        )

        assert stats.to_dict()['last_sync_time'] == "2026-03-02T09:00:00+00:00"
        assert stats.to_dict()['priority_breakdown']['critical'] == 1
