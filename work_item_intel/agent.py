"""
Work Item Intelligence agent
Orchestrates sync, classification, notification and sprint state per chat command
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .constants import DEFAULT_SPRINT_NAME
from .errors import ConfigurationError, WorkItemIntelError
from .log_sanitizer import sanitize_log_message
from .models import SprintStats
from .services.classification_service import ClassificationService
from .services.copilot_studio_notification_service import CopilotStudioNotificationService
from .services.state_service import SprintStore
from .services.teams_notification_service import TeamsNotificationService
from .validation import ValidationError

logger = logging.getLogger(__name__)


HELP_TEXT = """**Available Commands:**
- `sync [sprint-name]` - Sync work items from Azure DevOps for a specific sprint
- `classify` - Classify all synced work items in the current sprint
- `stats [sprint-name]` - View statistics for a sprint
- `sprints` - List all tracked sprints
- `export` - Export sprint state data
- `help` - Show this help message"""

WELCOME_TEXT = f"""👋 **Welcome to the Work Item Intelligence Agent!**

I can fetch work items from Azure DevOps, classify and prioritize them,
send updates to Teams and Copilot Studio, and keep state across sprints.

{HELP_TEXT}"""

UNKNOWN_COMMAND_TEXT = "I didn't understand that command. Type `help` to see available commands."


@dataclass
class ConversationState:
    """Per-conversation state kept between turns"""
    count: int = 0
    current_sprint: Optional[str] = None


@dataclass
class SyncReport:
    """Outcome of one sync pass"""
    sprint_name: str
    work_item_count: int
    classification_count: int
    teams_notified: Optional[bool] = None
    copilot_studio_notified: Optional[bool] = None
    stats: Optional[SprintStats] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sprint_name': self.sprint_name,
            'work_item_count': self.work_item_count,
            'classification_count': self.classification_count,
            'teams_notified': self.teams_notified,
            'copilot_studio_notified': self.copilot_studio_notified,
            'stats': self.stats.to_dict() if self.stats else None
        }


class WorkItemAgent:
    """
    Runs the sync → classify → record → notify pipeline.

    The agent owns its SprintStore for the application lifetime. The Azure
    DevOps service and both notifiers are optional collaborators; a missing
    notifier is skipped, a missing backend makes `sync` fail with
    ConfigurationError.

    Example:
        agent = WorkItemAgent(SprintStore(), devops=AzureDevOpsService(auth, "Proj"))
        report = await agent.sync("Proj\\Sprint 5")
        reply = await agent.handle_message("stats", ConversationState())
    """

    def __init__(
        self,
        store: Optional[SprintStore] = None,
        classifier: Optional[ClassificationService] = None,
        devops=None,
        teams: Optional[TeamsNotificationService] = None,
        copilot_studio: Optional[CopilotStudioNotificationService] = None
    ):
        self.store = store if store is not None else SprintStore()
        self.classifier = classifier or ClassificationService()
        self.devops = devops
        self.teams = teams
        self.copilot_studio = copilot_studio

    async def sync(self, sprint_name: Optional[str] = None) -> SyncReport:
        """
        Sync, classify, store and announce work items for a sprint

        Args:
            sprint_name: Tracking key, also used as the iteration filter.
                None or "Current Sprint" syncs without an iteration filter.

        Returns:
            SyncReport with counts, notification outcomes and stats

        Raises:
            ConfigurationError: If no Azure DevOps service is configured
            ValidationError: If the sprint filter is invalid
            AzureDevOpsError: If fetching work items fails
        """
        if self.devops is None:
            raise ConfigurationError(
                "AZURE_DEVOPS_PAT",
                "Azure DevOps is not configured. Please set AZURE_DEVOPS_PAT in your environment."
            )

        sprint_name = sprint_name or DEFAULT_SPRINT_NAME
        sprint_filter = sprint_name if sprint_name != DEFAULT_SPRINT_NAME else None

        work_items = await self.devops.get_work_items(sprint=sprint_filter)
        self.store.record_work_items(sprint_name, work_items)

        classifications = self.classifier.classify_work_items(work_items)
        self.store.record_classifications(sprint_name, classifications)

        report = SyncReport(
            sprint_name=sprint_name,
            work_item_count=len(work_items),
            classification_count=len(classifications)
        )

        if self.teams is not None and self.teams.is_configured:
            report.teams_notified = await self.teams.send_batch_summary(
                work_items, classifications
            )

        if self.copilot_studio is not None and self.copilot_studio.is_configured:
            report.copilot_studio_notified = await self.copilot_studio.notify_batch_processing(
                work_items, classifications
            )

        report.stats = self.store.get_stats(sprint_name)
        logger.info(
            f"Sync complete for sprint {sprint_name}: "
            f"{report.work_item_count} work items, {report.classification_count} classified"
        )
        return report

    def classify(self, sprint_name: str) -> int:
        """
        Re-classify the stored work items of a sprint

        Returns:
            Number of work items classified (0 if none are stored)
        """
        work_items = self.store.get_work_items(sprint_name)
        if not work_items:
            return 0

        classifications = self.classifier.classify_work_items(work_items)
        self.store.record_classifications(sprint_name, classifications)
        return len(classifications)

    def connection_status(self) -> Dict[str, Any]:
        """Azure DevOps authentication details and which notifiers are configured"""
        auth = getattr(self.devops, 'auth', None)
        return {
            'azure_devops': auth.get_auth_info() if auth is not None else None,
            'teams_configured': bool(self.teams and self.teams.is_configured),
            'copilot_studio_configured': bool(
                self.copilot_studio and self.copilot_studio.is_configured
            )
        }

    async def handle_message(self, text: Optional[str], conversation: ConversationState) -> str:
        """
        Dispatch one chat message

        The command word is case-insensitive; sprint names keep their case.
        An empty message gets the welcome text.

        Args:
            text: Raw message text
            conversation: State for this conversation, updated in place

        Returns:
            Markdown reply
        """
        conversation.count += 1
        command, argument = self._parse_command(text)

        if not command:
            return WELCOME_TEXT
        if command == 'help':
            return HELP_TEXT
        if command == 'sync':
            return await self._handle_sync(argument, conversation)
        if command == 'classify':
            return self._handle_classify(conversation)
        if command == 'stats':
            sprint_name = argument or conversation.current_sprint or DEFAULT_SPRINT_NAME
            return self._handle_stats(sprint_name)
        if command == 'sprints':
            return self._handle_sprints()
        if command == 'export':
            exported = self.store.export_state()
            return (
                f"💾 **State Export**\n\nState data size: {len(exported)} characters\n\n"
                "Use the `export_state` tool to retrieve the snapshot."
            )

        return UNKNOWN_COMMAND_TEXT

    @staticmethod
    def _parse_command(text: Optional[str]):
        parts = (text or '').strip().split(None, 1)
        if not parts:
            return '', None
        command = parts[0].lower()
        argument = parts[1].strip() if len(parts) > 1 else None
        return command, argument or None

    async def _handle_sync(self, sprint_name: Optional[str], conversation: ConversationState) -> str:
        sprint_name = sprint_name or DEFAULT_SPRINT_NAME

        try:
            report = await self.sync(sprint_name)
        except ConfigurationError as e:
            return f"❌ {e.message}"
        except (WorkItemIntelError, ValidationError) as e:
            logger.error(sanitize_log_message(f"Error syncing sprint {sprint_name}: {e}"))
            return f"❌ Error syncing work items: {sanitize_log_message(str(e))}"

        conversation.current_sprint = sprint_name

        lines = [
            f"✅ Successfully synced {report.work_item_count} work items for sprint: {sprint_name}",
            f"✅ Classified {report.classification_count} work items!",
        ]
        if report.teams_notified is not None:
            lines.append("📢 Sent summary to Teams" if report.teams_notified
                         else "⚠️ Could not send summary to Teams")
        if report.copilot_studio_notified is not None:
            lines.append("🤖 Notified Copilot Studio" if report.copilot_studio_notified
                         else "⚠️ Could not notify Copilot Studio")
        if report.stats:
            breakdown = report.stats.priority_breakdown
            lines.append(
                "📊 **Sprint Stats:**\n"
                f"- Critical: {breakdown['critical']}\n"
                f"- High: {breakdown['high']}\n"
                f"- Medium: {breakdown['medium']}\n"
                f"- Low: {breakdown['low']}"
            )
        return "\n\n".join(lines)

    def _handle_classify(self, conversation: ConversationState) -> str:
        sprint_name = conversation.current_sprint or DEFAULT_SPRINT_NAME
        count = self.classify(sprint_name)
        if count == 0:
            return "❌ No work items to classify. Use `sync` first."
        return f"✅ Classification complete! {count} work items classified."

    def _handle_stats(self, sprint_name: str) -> str:
        stats = self.store.get_stats(sprint_name)
        if stats is None:
            return f"❌ No data found for sprint: {sprint_name}"

        breakdown = stats.priority_breakdown
        return (
            f"📊 **Sprint Statistics for: {stats.sprint_name}**\n\n"
            f"**Work Items:** {stats.total_work_items}\n"
            f"**Classifications:** {stats.total_classifications}\n"
            f"**Last Sync:** {stats.last_sync_time.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}\n\n"
            "**Priority Breakdown:**\n"
            f"- 🔴 Critical: {breakdown['critical']}\n"
            f"- 🟠 High: {breakdown['high']}\n"
            f"- 🔵 Medium: {breakdown['medium']}\n"
            f"- 🟢 Low: {breakdown['low']}"
        )

    def _handle_sprints(self) -> str:
        sprints = self.store.list_sprints()
        if not sprints:
            return "No sprints tracked yet. Use `sync` to start tracking."
        return "📋 **Tracked Sprints:**\n" + "\n".join(f"- {name}" for name in sprints)
