"""
Sprint state store.

Keeps synced work items and their classification results in memory, keyed
by sprint name, and exports/imports the whole collection as JSON.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..errors import DeserializationError
from ..models import (
    ClassificationResult,
    Priority,
    SprintState,
    SprintStats,
    WorkItem,
    parse_timestamp,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SprintStore:
    """
    In-memory state for every tracked sprint.

    Features:
    - Lazy creation: a sprint's state is created on first write
    - Last-write-wins upserts for work items and classifications
    - Lookups on unknown sprints return empty results without creating them
    - JSON export/import of the full collection

    Sprint names are free-text tracking keys and are not validated.
    Classifications for items dropped by a later sync are kept.

    The store is not thread-safe; hosts running concurrent writers must
    serialize access themselves.

    Example:
        store = SprintStore()
        store.record_work_items("Sprint 1", items)
        store.record_classifications("Sprint 1", results)
        stats = store.get_stats("Sprint 1")
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the store

        Args:
            clock: Returns the current time; defaults to UTC now
        """
        self._clock = clock or _utc_now
        self._sprints: Dict[str, SprintState] = {}

    def get_or_create(self, sprint_name: str) -> SprintState:
        """
        Get the state for a sprint, creating an empty one if needed

        Args:
            sprint_name: Tracking key for the sprint

        Returns:
            The sprint's state
        """
        state = self._sprints.get(sprint_name)
        if state is None:
            state = SprintState(sprint_name=sprint_name, last_sync_time=self._clock())
            self._sprints[sprint_name] = state
            logger.info(f"Created new sprint state: {sprint_name}")
        return state

    def record_work_items(self, sprint_name: str, work_items: Iterable[WorkItem]) -> None:
        """
        Upsert work items for a sprint and stamp the sync time

        Args:
            sprint_name: Tracking key for the sprint
            work_items: Items to store; an existing id is overwritten
        """
        state = self.get_or_create(sprint_name)

        count = 0
        for work_item in work_items:
            state.work_items[work_item.id] = work_item
            count += 1

        state.last_sync_time = self._clock()
        logger.info(f"Updated {count} work items for sprint: {sprint_name}")

    def record_classifications(
        self,
        sprint_name: str,
        classifications: Iterable[ClassificationResult]
    ) -> None:
        """
        Upsert classification results for a sprint

        The sync time is left untouched. Results may be recorded for a
        sprint that has never been synced.

        Args:
            sprint_name: Tracking key for the sprint
            classifications: Results to store, keyed by work item id
        """
        state = self.get_or_create(sprint_name)

        count = 0
        for classification in classifications:
            state.classifications[classification.work_item_id] = classification
            count += 1

        logger.info(f"Stored {count} classifications for sprint: {sprint_name}")

    def get_work_items(self, sprint_name: str) -> List[WorkItem]:
        """Work items for a sprint, or an empty list if it is unknown."""
        state = self._sprints.get(sprint_name)
        if state is None:
            return []
        return list(state.work_items.values())

    def get_classifications(self, sprint_name: str) -> List[ClassificationResult]:
        """Classifications for a sprint, or an empty list if it is unknown."""
        state = self._sprints.get(sprint_name)
        if state is None:
            return []
        return list(state.classifications.values())

    def list_sprints(self) -> List[str]:
        """All tracked sprint names, in first-creation order."""
        return list(self._sprints.keys())

    def get_stats(self, sprint_name: str) -> Optional[SprintStats]:
        """
        Get statistics for a sprint

        The priority breakdown counts classification results only; work
        items that have not been classified are not counted.

        Args:
            sprint_name: Tracking key for the sprint

        Returns:
            SprintStats, or None if the sprint is unknown
        """
        state = self._sprints.get(sprint_name)
        if state is None:
            return None

        breakdown = {priority.name.lower(): 0 for priority in Priority}
        for classification in state.classifications.values():
            breakdown[classification.suggested_priority.name.lower()] += 1

        return SprintStats(
            sprint_name=sprint_name,
            total_work_items=len(state.work_items),
            total_classifications=len(state.classifications),
            last_sync_time=state.last_sync_time,
            priority_breakdown=breakdown
        )

    def export_state(self) -> str:
        """
        Export every sprint as a JSON document

        Returns:
            JSON text accepted by import_state()
        """
        data = {
            'sprints': [
                {
                    'name': name,
                    'workItems': [
                        [item_id, item.to_dict()]
                        for item_id, item in state.work_items.items()
                    ],
                    'classifications': [
                        [item_id, result.to_dict()]
                        for item_id, result in state.classifications.items()
                    ],
                    'lastSyncTime': state.last_sync_time.isoformat()
                }
                for name, state in self._sprints.items()
            ]
        }
        return json.dumps(data)

    def import_state(self, snapshot: str) -> None:
        """
        Replace the store contents with an exported snapshot

        The snapshot is decoded completely before anything is replaced, so
        a malformed snapshot leaves the current contents untouched.

        Args:
            snapshot: JSON text produced by export_state()

        Raises:
            DeserializationError: If the snapshot is malformed
        """
        try:
            data = json.loads(snapshot)
        except (TypeError, ValueError, RecursionError) as e:
            logger.error(f"Error importing state: {e}")
            raise DeserializationError("Snapshot is not valid JSON", original_error=e)

        try:
            sprints = self._decode_sprints(data)
        except DeserializationError as e:
            logger.error(f"Error importing state: {e}")
            raise

        self._sprints = sprints
        logger.info(f"Imported state for {len(self._sprints)} sprints")

    @classmethod
    def _decode_sprints(cls, data: Any) -> Dict[str, SprintState]:
        if not isinstance(data, dict) or 'sprints' not in data:
            raise DeserializationError("Missing field 'sprints'", path="$")
        if not isinstance(data['sprints'], list):
            raise DeserializationError("Expected a list", path="$.sprints")

        sprints: Dict[str, SprintState] = {}
        for index, raw in enumerate(data['sprints']):
            path = f"$.sprints[{index}]"
            if not isinstance(raw, dict):
                raise DeserializationError("Expected an object", path=path)
            for key in ('name', 'workItems', 'classifications', 'lastSyncTime'):
                if key not in raw:
                    raise DeserializationError(f"Missing field '{key}'", path=path)

            name = raw['name']
            if not isinstance(name, str):
                raise DeserializationError("Expected a string", path=f"{path}.name")

            state = SprintState(
                sprint_name=name,
                last_sync_time=parse_timestamp(raw['lastSyncTime'], f"{path}.lastSyncTime")
            )
            for item_id, value in cls._decode_entries(raw['workItems'], f"{path}.workItems"):
                state.work_items[item_id] = WorkItem.from_dict(
                    value, path=f"{path}.workItems[{item_id}]"
                )
            for item_id, value in cls._decode_entries(
                raw['classifications'], f"{path}.classifications"
            ):
                state.classifications[item_id] = ClassificationResult.from_dict(
                    value, path=f"{path}.classifications[{item_id}]"
                )
            sprints[name] = state

        return sprints

    @staticmethod
    def _decode_entries(entries: Any, path: str) -> List[tuple]:
        """Validate a list of [id, value] pairs."""
        if not isinstance(entries, list):
            raise DeserializationError("Expected a list of [id, value] entries", path=path)

        decoded = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, list) or len(entry) != 2:
                raise DeserializationError(
                    "Expected an [id, value] pair", path=f"{path}[{index}]"
                )
            item_id, value = entry
            if isinstance(item_id, bool) or not isinstance(item_id, int):
                raise DeserializationError(
                    "Entry id must be an integer", path=f"{path}[{index}][0]"
                )
            decoded.append((item_id, value))
        return decoded
