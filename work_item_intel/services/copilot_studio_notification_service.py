"""
Copilot Studio notification service
Posts classification events to a Copilot Studio agent endpoint
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..models import ClassificationResult, Priority, WorkItem
from .notification_service import NotificationService


class CopilotStudioNotificationService(NotificationService):
    """Notifies a Copilot Studio agent about classified work items"""

    target_name = "Copilot Studio"

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_seconds: float = 30.0,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Args:
            endpoint: Copilot Studio HTTP endpoint
            api_key: Bearer key; the sender is disabled without one
            timeout_seconds: Per-request timeout
            clock: Returns the event timestamp; defaults to UTC now
        """
        super().__init__(endpoint, timeout_seconds=timeout_seconds)
        self.api_key = api_key
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.api_key)

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers['Authorization'] = f"Bearer {self.api_key}"
        return headers

    def build_classification_payload(
        self,
        work_item: WorkItem,
        classification: ClassificationResult
    ) -> Dict[str, Any]:
        """Event payload for one classified work item"""
        return {
            'type': 'work_item_classified',
            'timestamp': self._clock().isoformat(),
            'data': {
                'workItem': {
                    'id': work_item.id,
                    'title': work_item.title,
                    'type': work_item.type.value,
                    'state': work_item.state,
                    'assignedTo': work_item.assigned_to,
                    'sprint': work_item.sprint,
                    'url': work_item.url
                },
                'classification': {
                    'suggestedTags': list(classification.suggested_tags),
                    'suggestedPriority': int(classification.suggested_priority),
                    'confidence': classification.confidence,
                    'reasoning': classification.reasoning
                }
            }
        }

    def build_batch_payload(
        self,
        work_items: Sequence[WorkItem],
        classifications: Sequence[ClassificationResult]
    ) -> Dict[str, Any]:
        """
        Event payload for a classified batch

        Work items and classifications are parallel sequences; an item with
        no result at its index is sent with a null classification.
        """
        summary = {priority.name.lower(): 0 for priority in Priority}
        for classification in classifications:
            summary[classification.suggested_priority.name.lower()] += 1

        entries = []
        for index, work_item in enumerate(work_items):
            classification = classifications[index] if index < len(classifications) else None
            entries.append({
                'id': work_item.id,
                'title': work_item.title,
                'classification': classification.to_dict() if classification else None
            })

        return {
            'type': 'batch_classification_complete',
            'timestamp': self._clock().isoformat(),
            'data': {
                'totalProcessed': len(work_items),
                'summary': summary,
                'workItems': entries
            }
        }

    async def notify_work_item_classification(
        self,
        work_item: WorkItem,
        classification: ClassificationResult
    ) -> bool:
        """Notify Copilot Studio about one classified work item"""
        payload = self.build_classification_payload(work_item, classification)
        return await self._deliver(
            payload, f"Copilot Studio notification for work item {work_item.id}"
        )

    async def notify_batch_processing(
        self,
        work_items: List[WorkItem],
        classifications: List[ClassificationResult]
    ) -> bool:
        """Notify Copilot Studio about batch processing results"""
        payload = self.build_batch_payload(work_items, classifications)
        return await self._deliver(
            payload, f"Copilot Studio batch of {len(work_items)} work items"
        )
