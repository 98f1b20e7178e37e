"""
Data models for the Work Item Intelligence agent
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Optional, List, Dict, Any

from .errors import DeserializationError


class WorkItemType(str, Enum):
    """Work item types the classifier understands"""
    BUG = "Bug"
    FEATURE = "Feature"
    TASK = "Task"
    USER_STORY = "User Story"
    EPIC = "Epic"


class Priority(IntEnum):
    """Work item priority (1 is most urgent)"""
    CRITICAL = 1
    HIGH = 2
    MEDIUM = 3
    LOW = 4


def _require(data: Dict[str, Any], key: str, path: str) -> Any:
    if not isinstance(data, dict):
        raise DeserializationError(
            f"Expected an object, got {type(data).__name__}", path=path
        )
    if key not in data:
        raise DeserializationError(f"Missing field '{key}'", path=path)
    return data[key]


def _expect(value: Any, expected: type, path: str) -> Any:
    # bool is an int subclass; an id of True is still a shape error
    if isinstance(value, bool) and expected is not bool:
        raise DeserializationError(
            f"Expected {expected.__name__}, got bool", path=path
        )
    if not isinstance(value, expected):
        raise DeserializationError(
            f"Expected {expected.__name__}, got {type(value).__name__}", path=path
        )
    return value


def _optional_str(data: Dict[str, Any], key: str, path: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    return _expect(value, str, f"{path}.{key}")


def _parse_priority(value: Any, path: str) -> Priority:
    _expect(value, int, path)
    try:
        return Priority(value)
    except ValueError as e:
        raise DeserializationError(
            f"Unknown priority {value}", path=path, original_error=e
        )


def parse_timestamp(value: Any, path: str) -> datetime:
    """Parse an ISO-8601 timestamp written by ``to_dict``."""
    _expect(value, str, path)
    # fromisoformat before 3.11 rejects a "Z" suffix
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise DeserializationError(
            f"Invalid ISO-8601 timestamp '{value}'", path=path, original_error=e
        )


@dataclass
class WorkItem:
    """Represents a work item synced from Azure DevOps"""
    id: int
    title: str
    type: WorkItemType
    state: str
    assigned_to: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    priority: Optional[Priority] = None
    sprint: Optional[str] = None
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'type': self.type.value,
            'state': self.state,
            'assignedTo': self.assigned_to,
            'description': self.description,
            'tags': list(self.tags) if self.tags is not None else None,
            'priority': int(self.priority) if self.priority is not None else None,
            'sprint': self.sprint,
            'url': self.url
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "workItem") -> "WorkItem":
        item_id = _expect(_require(data, 'id', path), int, f"{path}.id")
        title = _expect(_require(data, 'title', path), str, f"{path}.title")
        raw_type = _expect(_require(data, 'type', path), str, f"{path}.type")
        state = _expect(_require(data, 'state', path), str, f"{path}.state")

        try:
            item_type = WorkItemType(raw_type)
        except ValueError as e:
            raise DeserializationError(
                f"Unknown work item type '{raw_type}'", path=f"{path}.type", original_error=e
            )

        tags = data.get('tags')
        if tags is not None:
            _expect(tags, list, f"{path}.tags")
            tags = [_expect(tag, str, f"{path}.tags[{i}]") for i, tag in enumerate(tags)]

        priority = data.get('priority')
        if priority is not None:
            priority = _parse_priority(priority, f"{path}.priority")

        return cls(
            id=item_id,
            title=title,
            type=item_type,
            state=state,
            assigned_to=_optional_str(data, 'assignedTo', path),
            description=_optional_str(data, 'description', path),
            tags=tags,
            priority=priority,
            sprint=_optional_str(data, 'sprint', path),
            url=_optional_str(data, 'url', path)
        )


@dataclass
class ClassificationResult:
    """Suggested tags and priority for one work item"""
    work_item_id: int
    suggested_tags: List[str]
    suggested_priority: Priority
    confidence: float
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'workItemId': self.work_item_id,
            'suggestedTags': list(self.suggested_tags),
            'suggestedPriority': int(self.suggested_priority),
            'confidence': self.confidence,
            'reasoning': self.reasoning
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        path: str = "classification"
    ) -> "ClassificationResult":
        work_item_id = _expect(_require(data, 'workItemId', path), int, f"{path}.workItemId")
        tags = _expect(_require(data, 'suggestedTags', path), list, f"{path}.suggestedTags")
        confidence = _require(data, 'confidence', path)
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise DeserializationError(
                f"Expected number, got {type(confidence).__name__}",
                path=f"{path}.confidence"
            )
        if not (math.isfinite(confidence) and 0 <= confidence <= 1):
            raise DeserializationError(
                f"Confidence must be between 0 and 1, got {confidence}",
                path=f"{path}.confidence"
            )

        return cls(
            work_item_id=work_item_id,
            suggested_tags=[
                _expect(tag, str, f"{path}.suggestedTags[{i}]") for i, tag in enumerate(tags)
            ],
            suggested_priority=_parse_priority(
                _require(data, 'suggestedPriority', path), f"{path}.suggestedPriority"
            ),
            confidence=float(confidence),
            reasoning=_expect(_require(data, 'reasoning', path), str, f"{path}.reasoning")
        )


@dataclass
class SprintState:
    """Everything tracked for one sprint name"""
    sprint_name: str
    last_sync_time: datetime
    work_items: Dict[int, WorkItem] = field(default_factory=dict)
    classifications: Dict[int, ClassificationResult] = field(default_factory=dict)


@dataclass
class SprintStats:
    """Counts and priority breakdown for a sprint"""
    sprint_name: str
    total_work_items: int
    total_classifications: int
    last_sync_time: datetime
    priority_breakdown: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sprint_name': self.sprint_name,
            'total_work_items': self.total_work_items,
            'total_classifications': self.total_classifications,
            'last_sync_time': self.last_sync_time.isoformat(),
            'priority_breakdown': dict(self.priority_breakdown)
        }
