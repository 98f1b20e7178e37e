"""
Azure DevOps service for reading and tagging work items
Runs the WIQL sync query and maps results onto the agent's WorkItem model
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from azure.devops.v7_1.work.models import TeamContext
from azure.devops.v7_1.work_item_tracking.models import JsonPatchOperation, Wiql

from ..constants import (
    FieldNames,
    QueryLimits,
    SYNC_FIELDS,
    TAG_SEPARATOR,
    WIQL_SELECT_FIELDS,
    format_wiql_fields,
)
from ..decorators import azure_devops_operation
from ..models import Priority, WorkItem, WorkItemType
from ..validation import (
    sanitize_wiql_string,
    validate_priority,
    validate_sprint_filter,
    validate_tags,
    validate_wiql,
)

logger = logging.getLogger(__name__)


# Backend type names that map onto the agent's closed WorkItemType set
WORK_ITEM_TYPE_ALIASES: Dict[str, WorkItemType] = {
    "bug": WorkItemType.BUG,
    "feature": WorkItemType.FEATURE,
    "task": WorkItemType.TASK,
    "user story": WorkItemType.USER_STORY,
    "product backlog item": WorkItemType.USER_STORY,
    "requirement": WorkItemType.USER_STORY,
    "epic": WorkItemType.EPIC,
}


class AzureDevOpsService:
    """Work item source backed by the Azure DevOps work item tracking API"""

    def __init__(self, auth, project: str, timeout_seconds: float = 30.0):
        """
        Initialize the service

        Args:
            auth: Initialized AzureDevOpsAuth instance
            project: Azure DevOps project name
            timeout_seconds: Upper bound for each backend operation
        """
        self.auth = auth
        self.project = project
        self.timeout_seconds = timeout_seconds
        self._wit_client = None

    @property
    def wit_client(self):
        """Lazy load work item tracking client"""
        if not self._wit_client:
            self._wit_client = self.auth.get_client('work_item_tracking')
        return self._wit_client

    def build_sync_query(self, sprint: Optional[str] = None) -> str:
        """
        Build the WIQL query for a sync

        Args:
            sprint: Iteration path to filter on, or None for the whole project

        Returns:
            Validated WIQL query text
        """
        project_safe = sanitize_wiql_string(self.project)

        # Note: FROM WorkItems is case-sensitive in Azure DevOps WIQL
        wiql_query = f"""SELECT {format_wiql_fields(WIQL_SELECT_FIELDS)}
FROM WorkItems
WHERE [System.TeamProject] = '{project_safe}'"""

        if sprint:
            sprint_safe = sanitize_wiql_string(validate_sprint_filter(sprint))
            wiql_query += f"\nAND [System.IterationPath] = '{sprint_safe}'"

        wiql_query += "\nORDER BY [System.ChangedDate] DESC"

        return validate_wiql(wiql_query)

    @azure_devops_operation()
    async def get_work_items(self, sprint: Optional[str] = None) -> List[WorkItem]:
        """
        Get work items, optionally filtered to one iteration

        Args:
            sprint: Iteration path (e.g. "Project\\Sprint 5"), or None

        Returns:
            Work items, most recently changed first

        Raises:
            ValidationError: If the sprint filter is invalid
            AzureDevOpsError: If the query or fetch fails
        """
        wiql = Wiql(query=self.build_sync_query(sprint))
        team_context = TeamContext(project=self.project)

        query_result = await asyncio.to_thread(
            self.wit_client.query_by_wiql,
            wiql,
            team_context=team_context,
            top=QueryLimits.MAX_LIMIT
        )

        if not query_result.work_items:
            logger.info(f"No work items found for sprint filter: {sprint or '<none>'}")
            return []

        ids = [item.id for item in query_result.work_items]
        work_items = await self._batch_get_work_items(ids)

        logger.info(f"Fetched {len(work_items)} work items from project: {self.project}")
        return [self._to_work_item(wi) for wi in work_items]

    async def _batch_get_work_items(self, ids: List[int]) -> List[Any]:
        """
        Fetch work items in batches respecting the Azure DevOps batch size limit.

        Args:
            ids: Work item IDs in query order

        Returns:
            SDK work item objects
        """
        all_items = []

        for i in range(0, len(ids), QueryLimits.BATCH_SIZE):
            batch_ids = ids[i:i + QueryLimits.BATCH_SIZE]

            batch_items = await asyncio.to_thread(
                self.wit_client.get_work_items,
                ids=batch_ids,
                fields=SYNC_FIELDS
            )

            all_items.extend(batch_items or [])

        return all_items

    @azure_devops_operation()
    async def update_work_item(
        self,
        work_item_id: int,
        tags: Optional[List[str]] = None,
        priority: Optional[int] = None
    ) -> bool:
        """
        Write suggested tags and priority back to a work item

        Args:
            work_item_id: ID of the work item
            tags: Tags to set (replaces System.Tags)
            priority: Priority 1-4

        Returns:
            True if an update was sent, False if there was nothing to write

        Raises:
            ValidationError: If tags or priority are invalid
            AzureDevOpsError: If the update fails
        """
        tags = validate_tags(tags)
        priority = validate_priority(priority)

        updates = []
        if tags:
            updates.append(JsonPatchOperation(
                op='add',
                path=f'/fields/{FieldNames.TAGS}',
                value=f'{TAG_SEPARATOR} '.join(tags)
            ))
        if priority is not None:
            updates.append(JsonPatchOperation(
                op='add',
                path=f'/fields/{FieldNames.PRIORITY}',
                value=priority
            ))

        if not updates:
            return False

        await asyncio.to_thread(
            self.wit_client.update_work_item,
            document=updates,
            id=work_item_id,
            project=self.project
        )
        logger.info(f"Updated work item {work_item_id} successfully")
        return True

    def work_item_url(self, work_item_id: int) -> str:
        """Browser URL for a work item"""
        base_url = self.auth.organization_url.rstrip('/')
        return f"{base_url}/{quote(self.project)}/_workitems/edit/{work_item_id}"

    def _to_work_item(self, wi) -> WorkItem:
        """Map an SDK work item onto the agent's model"""
        fields = wi.fields or {}

        return WorkItem(
            id=wi.id,
            title=fields.get(FieldNames.TITLE) or "",
            type=self._map_type(fields.get(FieldNames.WORK_ITEM_TYPE)),
            state=fields.get(FieldNames.STATE) or "",
            assigned_to=self._format_identity(fields.get(FieldNames.ASSIGNED_TO)),
            description=fields.get(FieldNames.DESCRIPTION),
            tags=self._split_tags(fields.get(FieldNames.TAGS)),
            priority=self._map_priority(fields.get(FieldNames.PRIORITY)),
            sprint=fields.get(FieldNames.ITERATION_PATH),
            url=self.work_item_url(wi.id)
        )

    @staticmethod
    def _map_type(raw_type: Optional[str]) -> WorkItemType:
        """Map a backend type name; anything unrecognised becomes Task"""
        if not raw_type:
            return WorkItemType.TASK
        return WORK_ITEM_TYPE_ALIASES.get(raw_type.strip().lower(), WorkItemType.TASK)

    @staticmethod
    def _map_priority(raw_priority: Any) -> Optional[Priority]:
        try:
            return Priority(int(raw_priority))
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _split_tags(raw_tags: Optional[str]) -> List[str]:
        if not raw_tags:
            return []
        return [tag.strip() for tag in raw_tags.split(TAG_SEPARATOR) if tag.strip()]

    @staticmethod
    def _format_identity(identity) -> Optional[str]:
        """Format identity field"""
        if not identity:
            return None
        if isinstance(identity, dict):
            return identity.get('displayName') or identity.get('uniqueName')
        return getattr(identity, 'display_name', None) or str(identity)
