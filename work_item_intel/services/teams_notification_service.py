"""
Teams notification service
Posts MessageCards to a Microsoft Teams incoming webhook
"""
from typing import Any, Dict, List, Optional, Sequence

from ..constants import PRIORITY_COLORS, UNKNOWN_PRIORITY_COLOR
from ..models import ClassificationResult, Priority, WorkItem
from .notification_service import NotificationService


def priority_name(priority: int) -> str:
    """Display name for a priority numeral"""
    try:
        return Priority(priority).name.title()
    except ValueError:
        return "Unknown"


def priority_color(priority: int) -> str:
    """MessageCard theme colour for a priority numeral"""
    return PRIORITY_COLORS.get(int(priority), UNKNOWN_PRIORITY_COLOR)


class TeamsNotificationService(NotificationService):
    """Sends classification updates and batch summaries to Teams"""

    target_name = "Teams webhook"

    def __init__(self, webhook_url: Optional[str] = None, timeout_seconds: float = 30.0):
        super().__init__(webhook_url, timeout_seconds=timeout_seconds)

    def build_classification_card(
        self,
        work_item: WorkItem,
        classification: ClassificationResult
    ) -> Dict[str, Any]:
        """MessageCard describing one classified work item"""
        return {
            '@type': 'MessageCard',
            '@context': 'https://schema.org/extensions',
            'summary': f"Work Item {work_item.id} Classified",
            'themeColor': priority_color(classification.suggested_priority),
            'title': "Work Item Intelligence Update",
            'sections': [
                {
                    'activityTitle': f"Work Item #{work_item.id}: {work_item.title}",
                    'activitySubtitle': f"Type: {work_item.type.value} | State: {work_item.state}",
                    'facts': [
                        {
                            'name': 'Suggested Priority',
                            'value': priority_name(classification.suggested_priority)
                        },
                        {
                            'name': 'Suggested Tags',
                            'value': ', '.join(classification.suggested_tags) or 'None'
                        },
                        {
                            'name': 'Confidence',
                            'value': f"{classification.confidence * 100:.0f}%"
                        },
                        {
                            'name': 'Reasoning',
                            'value': classification.reasoning
                        }
                    ]
                }
            ],
            'potentialAction': [
                {
                    '@type': 'OpenUri',
                    'name': 'View Work Item',
                    'targets': [{'os': 'default', 'uri': work_item.url or '#'}]
                }
            ]
        }

    def build_batch_summary_card(
        self,
        work_items: Sequence[WorkItem],
        classifications: Sequence[ClassificationResult]
    ) -> Dict[str, Any]:
        """MessageCard summarising a classified batch"""
        critical_count = sum(
            1 for c in classifications if c.suggested_priority == Priority.CRITICAL
        )
        high_count = sum(
            1 for c in classifications if c.suggested_priority == Priority.HIGH
        )

        return {
            '@type': 'MessageCard',
            '@context': 'https://schema.org/extensions',
            'summary': f"Processed {len(work_items)} Work Items",
            'themeColor': '0078D4' if critical_count > 0 else '28A745',
            'title': "Work Item Intelligence Summary",
            'sections': [
                {
                    'text': f"Analyzed and classified {len(work_items)} work items",
                    'facts': [
                        {'name': 'Critical Priority', 'value': str(critical_count)},
                        {'name': 'High Priority', 'value': str(high_count)},
                        {'name': 'Total Processed', 'value': str(len(work_items))}
                    ]
                }
            ]
        }

    async def send_classification_update(
        self,
        work_item: WorkItem,
        classification: ClassificationResult
    ) -> bool:
        """
        Send a notification about one classified work item

        Returns:
            True if Teams accepted the card
        """
        card = self.build_classification_card(work_item, classification)
        return await self._deliver(card, f"Teams notification for work item {work_item.id}")

    async def send_batch_summary(
        self,
        work_items: List[WorkItem],
        classifications: List[ClassificationResult]
    ) -> bool:
        """
        Send a summary of a classified batch

        Returns:
            True if Teams accepted the card
        """
        card = self.build_batch_summary_card(work_items, classifications)
        return await self._deliver(card, f"Teams batch summary for {len(work_items)} work items")
