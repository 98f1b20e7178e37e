"""
Work Item Intelligence MCP Server
Exposes sprint sync, classification and sprint state as MCP tools
"""
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastmcp import FastMCP, Context

from .agent import ConversationState, WorkItemAgent
from .auth import AzureDevOpsAuth
from .config import Settings
from .errors import DeserializationError, WorkItemIntelError
from .services.azure_devops_service import AzureDevOpsService
from .services.copilot_studio_notification_service import CopilotStudioNotificationService
from .services.state_service import SprintStore
from .services.teams_notification_service import TeamsNotificationService
from .validation import ValidationError

logger = logging.getLogger(__name__)


# Initialized during lifespan startup
_auth: Optional[AzureDevOpsAuth] = None
_agent: Optional[WorkItemAgent] = None
_conversation = ConversationState()


def configure_logging(level: str) -> None:
    """Log to stderr; stdout carries the stdio transport"""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr
    )


async def build_agent(settings: Settings, auth: Optional[AzureDevOpsAuth] = None) -> WorkItemAgent:
    """
    Build the agent and its collaborators from settings

    Args:
        settings: Loaded settings
        auth: Already-initialized auth to reuse; created from settings if None

    Returns:
        WorkItemAgent with a fresh SprintStore
    """
    devops = None
    if settings.azure_devops_configured:
        if auth is None:
            auth = AzureDevOpsAuth(settings.organization_url, settings.personal_access_token)
            await auth.initialize()
        devops = AzureDevOpsService(
            auth,
            settings.project,
            timeout_seconds=settings.request_timeout_seconds
        )
    else:
        logger.warning("Azure DevOps is not configured; sync is disabled")

    return WorkItemAgent(
        store=SprintStore(),
        devops=devops,
        teams=TeamsNotificationService(
            settings.teams_webhook_url,
            timeout_seconds=settings.request_timeout_seconds
        ),
        copilot_studio=CopilotStudioNotificationService(
            settings.copilot_studio_endpoint,
            settings.copilot_studio_api_key,
            timeout_seconds=settings.request_timeout_seconds
        )
    )


@asynccontextmanager
async def lifespan(app):
    """Initialize services on startup"""
    global _auth, _agent

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    logger.info(f"Starting with {settings!r}")

    _agent = await build_agent(settings)
    if _agent.devops is not None:
        _auth = _agent.devops.auth

    yield  # Server runs

    if _auth is not None:
        await _auth.close()


mcp = FastMCP(
    name="Work Item Intelligence Agent",
    lifespan=lifespan
)


# ============================================================================
# TOOLS
# ============================================================================

@mcp.tool()
async def sync_sprint(sprint_name: Optional[str] = None, ctx: Context = None) -> Dict[str, Any]:
    """
    Sync work items from Azure DevOps, classify them and notify Teams/Copilot Studio.

    Args:
        sprint_name: Iteration path to sync (e.g. "MyProject\\Sprint 5").
                     If None, syncs without an iteration filter under "Current Sprint".

    Returns:
        Sync report with counts, notification outcomes and sprint stats
    """
    await ctx.info(f"Syncing work items for sprint: {sprint_name or 'Current Sprint'}...")

    try:
        report = await _agent.sync(sprint_name)
    except (WorkItemIntelError, ValidationError) as e:
        await ctx.error(f"Sync failed: {e}")
        if isinstance(e, WorkItemIntelError):
            return e.to_dict()
        return {'error': 'ValidationError', 'message': str(e)}

    _conversation.current_sprint = report.sprint_name
    await ctx.info(f"Synced and classified {report.work_item_count} work items")
    return report.to_dict()


@mcp.tool()
async def classify_sprint(sprint_name: str, ctx: Context = None) -> Dict[str, Any]:
    """
    Re-classify the stored work items of a sprint.

    Args:
        sprint_name: Tracked sprint name

    Returns:
        Number of classified items and the sprint's classifications
    """
    count = _agent.classify(sprint_name)
    await ctx.info(f"Classified {count} work items for sprint: {sprint_name}")
    return {
        'sprint_name': sprint_name,
        'classified': count,
        'classifications': [c.to_dict() for c in _agent.store.get_classifications(sprint_name)]
    }


@mcp.tool()
async def get_sprint_stats(sprint_name: str, ctx: Context = None) -> Optional[Dict[str, Any]]:
    """
    Get statistics for a tracked sprint.

    Args:
        sprint_name: Tracked sprint name

    Returns:
        Work item/classification counts, last sync time and priority breakdown,
        or None if the sprint is not tracked
    """
    stats = _agent.store.get_stats(sprint_name)
    return stats.to_dict() if stats else None


@mcp.tool()
async def get_connection_status(ctx: Context = None) -> Dict[str, Any]:
    """
    Get Azure DevOps authentication details and notifier configuration.

    Returns:
        Auth method, organization URL and last successful login (null when
        Azure DevOps is not configured), plus whether Teams and Copilot
        Studio are configured
    """
    return _agent.connection_status()


@mcp.tool()
async def list_sprints(ctx: Context = None) -> List[str]:
    """List all tracked sprint names in the order they were first seen."""
    return _agent.store.list_sprints()


@mcp.tool()
async def get_sprint_work_items(sprint_name: str, ctx: Context = None) -> List[Dict[str, Any]]:
    """
    Get stored work items of a sprint together with their classification.

    Args:
        sprint_name: Tracked sprint name

    Returns:
        List of {work_item, classification} entries (classification may be null)
    """
    classifications = {
        c.work_item_id: c for c in _agent.store.get_classifications(sprint_name)
    }
    return [
        {
            'work_item': item.to_dict(),
            'classification': classifications[item.id].to_dict() if item.id in classifications else None
        }
        for item in _agent.store.get_work_items(sprint_name)
    ]


@mcp.tool()
async def export_state(ctx: Context = None) -> str:
    """Export every tracked sprint as a JSON snapshot."""
    return _agent.store.export_state()


@mcp.tool()
async def import_state(snapshot: str, ctx: Context = None) -> Dict[str, Any]:
    """
    Replace all sprint state with a snapshot produced by export_state.

    Args:
        snapshot: JSON snapshot text

    Returns:
        Imported sprint names, or an error description
    """
    try:
        _agent.store.import_state(snapshot)
    except DeserializationError as e:
        await ctx.error(f"Import failed: {e}")
        return e.to_dict()

    sprints = _agent.store.list_sprints()
    await ctx.info(f"Imported state for {len(sprints)} sprints")
    return {'imported_sprints': sprints}


@mcp.tool()
async def send_message(text: str, ctx: Context = None) -> str:
    """
    Send a chat command (help, sync [sprint], classify, stats [sprint], sprints, export).

    Args:
        text: Command text

    Returns:
        Markdown reply
    """
    return await _agent.handle_message(text, _conversation)


# Entry point for running the server
if __name__ == "__main__":
    transport_mode = os.getenv("MCP_TRANSPORT", "stdio").lower()

    if transport_mode == "stdio":
        print("Starting MCP server in STDIO mode", file=sys.stderr)
        mcp.run()
    else:
        port = int(os.getenv("PORT", 8000))
        print(f"Starting MCP server with HTTP streaming on port {port}", file=sys.stderr)
        mcp.run(transport="streamable-http", port=port, host="0.0.0.0")
