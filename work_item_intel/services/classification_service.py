"""
Work item classification service
Suggests tags, priority and confidence using rule-based keyword matching
"""
from typing import Iterable, List, Optional, Tuple

from ..constants import (
    ClassificationKeywords,
    ClassificationReasons,
    ClassificationTags,
    ConfidenceLimits,
    TECHNICAL_AREA_RULES,
)
from ..models import ClassificationResult, Priority, WorkItem, WorkItemType


# Type tags; User Story and Task carry none
TYPE_TAGS = {
    WorkItemType.BUG: "Bug",
    WorkItemType.FEATURE: "Feature",
    WorkItemType.EPIC: "Epic",
}


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


class ClassificationService:
    """
    Classifies work items with a fixed, ordered rule list.

    Priority tiers are mutually exclusive (first match wins, Medium by
    default). Technical-area, type and state tags are additive. Keywords
    are case-insensitive substrings, so "data loss" also fires the
    Database rule through "data".

    Example:
        service = ClassificationService()
        result = service.classify_work_item(item)
        results = service.classify_work_items(items)
    """

    def classify_work_item(self, work_item: WorkItem) -> ClassificationResult:
        """
        Classify a work item and suggest tags and priority

        Args:
            work_item: Work item to classify

        Returns:
            Classification result for the item
        """
        text = self._haystack(work_item)
        suggested_tags: List[str] = []
        reasons: List[str] = []

        suggested_priority, priority_tag, priority_reason = self._priority_tier(
            text, work_item.type
        )
        if priority_tag:
            suggested_tags.append(priority_tag)
        if priority_reason:
            reasons.append(priority_reason)

        for tag, keywords, reason in TECHNICAL_AREA_RULES:
            if _contains_any(text, keywords):
                suggested_tags.append(tag)
                reasons.append(reason)

        type_tag = TYPE_TAGS.get(work_item.type)
        if type_tag:
            suggested_tags.append(type_tag)

        if work_item.state.lower() == "new":
            suggested_tags.append(ClassificationTags.NEEDS_REVIEW)
            reasons.append(ClassificationReasons.NEEDS_REVIEW)

        reasoning = " ".join(reasons).strip()

        return ClassificationResult(
            work_item_id=work_item.id,
            suggested_tags=suggested_tags,
            suggested_priority=suggested_priority,
            confidence=self.confidence_for(len(suggested_tags)),
            reasoning=reasoning or ClassificationReasons.FALLBACK
        )

    def classify_work_items(self, work_items: Iterable[WorkItem]) -> List[ClassificationResult]:
        """
        Batch classify multiple work items

        Args:
            work_items: Work items to classify

        Returns:
            One result per item, in input order
        """
        return [self.classify_work_item(work_item) for work_item in work_items]

    @staticmethod
    def confidence_for(tag_count: int) -> float:
        """Confidence for a result carrying ``tag_count`` tags."""
        return min(
            ConfidenceLimits.MAX,
            ConfidenceLimits.BASE + ConfidenceLimits.PER_TAG * tag_count
        )

    @staticmethod
    def _haystack(work_item: WorkItem) -> str:
        title = work_item.title.lower()
        description = (work_item.description or "").lower()
        return f"{title} {description}"

    @staticmethod
    def _priority_tier(
        text: str,
        work_item_type: WorkItemType
    ) -> Tuple[Priority, Optional[str], Optional[str]]:
        """Return (priority, tag, reason) for the first matching tier."""
        if _contains_any(text, ClassificationKeywords.CRITICAL) or (
            work_item_type == WorkItemType.BUG
            and _contains_any(text, ClassificationKeywords.CRITICAL_BUG)
        ):
            return Priority.CRITICAL, ClassificationTags.CRITICAL, ClassificationReasons.CRITICAL

        if _contains_any(text, ClassificationKeywords.HIGH):
            return Priority.HIGH, ClassificationTags.HIGH_PRIORITY, ClassificationReasons.HIGH

        if _contains_any(text, ClassificationKeywords.LOW):
            return Priority.LOW, None, ClassificationReasons.LOW

        return Priority.MEDIUM, None, None


_default_service = ClassificationService()


def classify(work_item: WorkItem) -> ClassificationResult:
    """Classify a single work item with the default service."""
    return _default_service.classify_work_item(work_item)


def classify_all(work_items: Iterable[WorkItem]) -> List[ClassificationResult]:
    """Classify work items with the default service, preserving order."""
    return _default_service.classify_work_items(work_items)
