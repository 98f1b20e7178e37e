"""
Constants for Azure DevOps access and rule-based classification.

Defines the field set used when syncing work items, query limits, and the
keyword tables the classifier evaluates.
"""

from typing import Dict, List, Tuple


# ============================================================================
# Field Reference Names
# ============================================================================

class FieldNames:
    """Azure DevOps field reference names."""

    ID = "System.Id"
    TITLE = "System.Title"
    WORK_ITEM_TYPE = "System.WorkItemType"
    STATE = "System.State"
    ASSIGNED_TO = "System.AssignedTo"
    DESCRIPTION = "System.Description"
    TAGS = "System.Tags"
    ITERATION_PATH = "System.IterationPath"
    CHANGED_DATE = "System.ChangedDate"
    PRIORITY = "Microsoft.VSTS.Common.Priority"


# Fields fetched for every synced work item
SYNC_FIELDS: List[str] = [
    FieldNames.ID,
    FieldNames.TITLE,
    FieldNames.WORK_ITEM_TYPE,
    FieldNames.STATE,
    FieldNames.ASSIGNED_TO,
    FieldNames.DESCRIPTION,
    FieldNames.TAGS,
    FieldNames.ITERATION_PATH,
    FieldNames.PRIORITY,
]

# Fields named in the WIQL SELECT clause
WIQL_SELECT_FIELDS: List[str] = [
    FieldNames.ID,
    FieldNames.TITLE,
    FieldNames.WORK_ITEM_TYPE,
    FieldNames.STATE,
    FieldNames.ASSIGNED_TO,
    FieldNames.DESCRIPTION,
    FieldNames.TAGS,
]


# ============================================================================
# Query Limits
# ============================================================================

class QueryLimits:
    """Limits for work item retrieval."""

    # Maximum allowed by Azure DevOps API
    MAX_LIMIT = 20000

    # Batch size for work item retrieval
    BATCH_SIZE = 200


# ============================================================================
# Sprint tracking
# ============================================================================

# Tracking key used when a sync names no sprint; no iteration filter is applied
DEFAULT_SPRINT_NAME = "Current Sprint"

# Tag separator used by System.Tags
TAG_SEPARATOR = ";"


# ============================================================================
# Classification rules
# ============================================================================

class ClassificationKeywords:
    """Keyword tables for the rule-based classifier (matched as substrings)."""

    CRITICAL = ("critical", "production down", "security", "data loss")
    CRITICAL_BUG = ("blocker",)
    HIGH = ("urgent", "important", "customer impact", "high priority")
    LOW = ("nice to have", "low priority", "enhancement", "cosmetic")


class ClassificationTags:
    """Tags the classifier can emit."""

    CRITICAL = "Critical"
    HIGH_PRIORITY = "HighPriority"
    NEEDS_REVIEW = "NeedsReview"


class ClassificationReasons:
    """Reasoning fragments, one per rule."""

    CRITICAL = "Critical priority due to severity keywords."
    HIGH = "High priority due to urgency indicators."
    LOW = "Low priority - non-critical enhancement."
    NEEDS_REVIEW = "New work item needs review."
    FALLBACK = "Standard classification applied."


# (tag, keywords, reasoning) evaluated in this order
TECHNICAL_AREA_RULES: List[Tuple[str, Tuple[str, ...], str]] = [
    ("UI", ("ui", "frontend", "interface"), "UI component identified."),
    ("Backend", ("backend", "api", "server"), "Backend component identified."),
    ("Database", ("database", "sql", "data"), "Database component identified."),
    ("Performance", ("performance", "slow", "optimization"), "Performance concern identified."),
    ("Security", ("security", "authentication", "authorization"), "Security aspect identified."),
    ("Testing", ("test", "testing", "qa"), "Testing related."),
    ("Documentation", ("documentation", "docs", "readme"), "Documentation work."),
]


class ConfidenceLimits:
    """Confidence formula: min(MAX, BASE + PER_TAG * tag_count)."""

    BASE = 0.6
    PER_TAG = 0.1
    MAX = 0.95


# ============================================================================
# Notification presentation
# ============================================================================

# MessageCard theme colours keyed by priority numeral
PRIORITY_COLORS: Dict[int, str] = {
    1: "FF0000",
    2: "FFA500",
    3: "0078D4",
    4: "28A745",
}
UNKNOWN_PRIORITY_COLOR = "808080"


# ============================================================================
# Helper Functions
# ============================================================================

def format_wiql_fields(fields: List[str]) -> str:
    """
    Format field list for WIQL SELECT clause.

    Args:
        fields: List of field names

    Returns:
        Formatted field list for WIQL (e.g., "[System.Id], [System.Title]")
    """
    return ', '.join(f'[{field}]' for field in fields)
