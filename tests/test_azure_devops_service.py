"""
Unit tests for the Azure DevOps service.

Tests the sync query, batching, field mapping and tag/priority write-back
against a mocked work item tracking client.
"""

import pytest
from unittest.mock import Mock

from work_item_intel.errors import AuthenticationError, SprintNotFoundError
from work_item_intel.models import Priority, WorkItemType
from work_item_intel.services.azure_devops_service import AzureDevOpsService
from work_item_intel.validation import ValidationError


def sdk_work_item(item_id, **fields):
    """Build an SDK-shaped work item"""
    return Mock(id=item_id, fields=fields)


class StatusError(Exception):
    def __init__(self, status_code):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


@pytest.fixture
def wit_client():
    client = Mock()
    client.query_by_wiql.return_value = Mock(work_items=[])
    client.get_work_items.return_value = []
    return client


@pytest.fixture
def service(wit_client):
    auth = Mock(organization_url='https://dev.azure.com/contoso/')
    auth.get_client.return_value = wit_client
    return AzureDevOpsService(auth, 'Fabrikam', timeout_seconds=5)


class TestSyncQuery:
    """Test WIQL construction."""

    def test_query_without_sprint(self, service):
        """Test the project-wide query."""
        query = service.build_sync_query()

        assert query.startswith("SELECT [System.Id], [System.Title]")
        assert "FROM WorkItems" in query
        assert "WHERE [System.TeamProject] = 'Fabrikam'" in query
        assert "IterationPath" not in query
        assert query.endswith("ORDER BY [System.ChangedDate] DESC")

    def test_query_with_sprint(self, service):
        """Test the iteration filter is added."""
        query = service.build_sync_query("Fabrikam\\Sprint 5")

        assert "AND [System.IterationPath] = 'Fabrikam\\Sprint 5'" in query

    def test_quotes_are_escaped(self, service):
        """Test quotes in the project and sprint cannot break the literal."""
        service.project = "O'Neil"

        query = service.build_sync_query("Sprint ' OR '1'='1")

        assert "[System.TeamProject] = 'O''Neil'" in query
        assert "[System.IterationPath] = 'Sprint '' OR ''1''=''1'" in query

    def test_invalid_sprint_rejected(self, service):
        """Test control characters in the sprint filter are rejected."""
        with pytest.raises(ValidationError):
            service.build_sync_query("Sprint\n5")


class TestGetWorkItems:
    """Test fetching and mapping work items."""

    @pytest.mark.asyncio
    async def test_no_results(self, service, wit_client):
        """Test an empty query result skips the fetch."""
        assert await service.get_work_items() == []
        wit_client.get_work_items.assert_not_called()

    @pytest.mark.asyncio
    async def test_query_arguments(self, service, wit_client):
        """Test the query is scoped to the project with the maximum limit."""
        await service.get_work_items(sprint="Fabrikam\\Sprint 5")

        args, kwargs = wit_client.query_by_wiql.call_args
        assert "Fabrikam\\Sprint 5" in args[0].query
        assert kwargs['team_context'].project == 'Fabrikam'
        assert kwargs['top'] == 20000

    @pytest.mark.asyncio
    async def test_maps_fields(self, service, wit_client):
        """Test SDK fields are mapped onto WorkItem."""
        wit_client.query_by_wiql.return_value = Mock(work_items=[Mock(id=42)])
        wit_client.get_work_items.return_value = [
            sdk_work_item(
                42,
                **{
                    'System.Title': 'Fix production down issue',
                    'System.WorkItemType': 'Bug',
                    'System.State': 'New',
                    'System.AssignedTo': {'displayName': 'Dana Smith', 'uniqueName': 'dana@x'},
                    'System.Description': '<p>Checkout fails</p>',
                    'System.Tags': 'customer; checkout ;',
                    'System.IterationPath': 'Fabrikam\\Sprint 5',
                    'Microsoft.VSTS.Common.Priority': 2,
                }
            )
        ]

        items = await service.get_work_items()

        assert len(items) == 1
        item = items[0]
        assert item.id == 42
        assert item.title == 'Fix production down issue'
        assert item.type == WorkItemType.BUG
        assert item.state == 'New'
        assert item.assigned_to == 'Dana Smith'
        assert item.description == '<p>Checkout fails</p>'
        assert item.tags == ['customer', 'checkout']
        assert item.priority == Priority.HIGH
        assert item.sprint == 'Fabrikam\\Sprint 5'
        assert item.url == 'https://dev.azure.com/contoso/Fabrikam/_workitems/edit/42'

    @pytest.mark.asyncio
    async def test_sparse_fields(self, service, wit_client):
        """Test missing fields map to defaults."""
        wit_client.query_by_wiql.return_value = Mock(work_items=[Mock(id=7)])
        wit_client.get_work_items.return_value = [sdk_work_item(7)]

        item = (await service.get_work_items())[0]

        assert item.title == ''
        assert item.type == WorkItemType.TASK
        assert item.state == ''
        assert item.assigned_to is None
        assert item.tags == []
        assert item.priority is None

    @pytest.mark.parametrize("raw_type,expected", [
        ("Bug", WorkItemType.BUG),
        ("feature", WorkItemType.FEATURE),
        ("User Story", WorkItemType.USER_STORY),
        ("Product Backlog Item", WorkItemType.USER_STORY),
        ("Requirement", WorkItemType.USER_STORY),
        ("Epic", WorkItemType.EPIC),
        ("Issue", WorkItemType.TASK),
        (None, WorkItemType.TASK),
    ])
    def test_type_mapping(self, raw_type, expected):
        """Test backend type names map onto the closed type set."""
        assert AzureDevOpsService._map_type(raw_type) == expected

    @pytest.mark.parametrize("raw,expected", [
        (1, Priority.CRITICAL),
        ("4", Priority.LOW),
        (9, None),
        (None, None),
        ("high", None),
    ])
    def test_priority_mapping(self, raw, expected):
        """Test backend priorities outside 1-4 are dropped."""
        assert AzureDevOpsService._map_priority(raw) == expected

    @pytest.mark.asyncio
    async def test_fetches_in_batches(self, service, wit_client):
        """Test ids are fetched in batches of 200, preserving order."""
        ids = list(range(1, 451))
        wit_client.query_by_wiql.return_value = Mock(work_items=[Mock(id=i) for i in ids])
        wit_client.get_work_items.side_effect = lambda ids, fields: [
            sdk_work_item(i) for i in ids
        ]

        items = await service.get_work_items()

        assert [item.id for item in items] == ids
        batch_sizes = [len(c.kwargs['ids']) for c in wit_client.get_work_items.call_args_list]
        assert batch_sizes == [200, 200, 50]

    @pytest.mark.asyncio
    async def test_sdk_errors_are_mapped(self, service, wit_client):
        """Test SDK status codes surface as agent errors."""
        wit_client.query_by_wiql.side_effect = StatusError(401)

        with pytest.raises(AuthenticationError):
            await service.get_work_items()

    @pytest.mark.asyncio
    async def test_not_found_names_sprint(self, service, wit_client):
        """Test a 404 names the requested iteration."""
        wit_client.query_by_wiql.side_effect = StatusError(404)

        with pytest.raises(SprintNotFoundError, match="Sprint 9"):
            await service.get_work_items(sprint="Fabrikam\\Sprint 9")


class TestUpdateWorkItem:
    """Test writing suggestions back."""

    @pytest.mark.asyncio
    async def test_updates_tags_and_priority(self, service, wit_client):
        """Test tags are joined and priority is sent as a number."""
        assert await service.update_work_item(42, tags=["Critical", "Bug"], priority=1) is True

        kwargs = wit_client.update_work_item.call_args.kwargs
        assert kwargs['id'] == 42
        assert kwargs['project'] == 'Fabrikam'
        operations = [(op.op, op.path, op.value) for op in kwargs['document']]
        assert operations == [
            ('add', '/fields/System.Tags', 'Critical; Bug'),
            ('add', '/fields/Microsoft.VSTS.Common.Priority', 1),
        ]

    @pytest.mark.asyncio
    async def test_nothing_to_update(self, service, wit_client):
        """Test no call is made without tags or priority."""
        assert await service.update_work_item(42) is False
        wit_client.update_work_item.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_priority(self, service, wit_client):
        """Test invalid priorities are rejected before the call."""
        with pytest.raises(ValidationError):
            await service.update_work_item(42, priority=7)

        wit_client.update_work_item.assert_not_called()
