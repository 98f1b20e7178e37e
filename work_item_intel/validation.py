"""
Input validation and WIQL query sanitization.

Guards the values the agent sends to Azure DevOps: the sprint filter that
ends up in a WIQL literal and the tags/priority written back to a work item.
"""

from typing import List, Optional

from .constants import TAG_SEPARATOR


class ValidationError(Exception):
    """Raised when input validation fails."""
    pass


class WiqlValidator:
    """Validator for WIQL (Work Item Query Language) queries."""

    MAX_QUERY_LENGTH = 32000  # 32KB limit per Azure DevOps documentation

    @staticmethod
    def validate(query: str) -> str:
        """
        Validate WIQL query structure.

        Args:
            query: The WIQL query to validate

        Returns:
            The validated query (unchanged)

        Raises:
            ValidationError: If query is invalid
        """
        if not query:
            raise ValidationError("WIQL query cannot be empty")

        if len(query) > WiqlValidator.MAX_QUERY_LENGTH:
            raise ValidationError(
                f"WIQL query exceeds maximum length of {WiqlValidator.MAX_QUERY_LENGTH} characters "
                f"(current length: {len(query)})"
            )

        query_upper = query.upper()

        if 'SELECT' not in query_upper:
            raise ValidationError("WIQL query must contain SELECT clause")

        if 'FROM WORKITEMS' not in query_upper:
            raise ValidationError("WIQL query must select FROM WorkItems")

        if not WiqlValidator._check_balanced_brackets(query):
            raise ValidationError("WIQL query has unbalanced square brackets")

        return query

    @staticmethod
    def _check_balanced_brackets(query: str) -> bool:
        count = 0
        for char in query:
            if char == '[':
                count += 1
            elif char == ']':
                count -= 1
            if count < 0:
                return False
        return count == 0

    @staticmethod
    def sanitize_string_literal(value: str) -> str:
        """
        Escape single quotes so a value can sit inside a WIQL string literal.

        Args:
            value: The string value to sanitize

        Returns:
            The sanitized string value
        """
        return value.replace("'", "''")


class SprintFilterValidator:
    """Validator for the iteration path used to filter a sync."""

    MAX_LENGTH = 4000

    @staticmethod
    def validate(sprint: str) -> str:
        """
        Validate a sprint/iteration filter.

        Args:
            sprint: Iteration path as typed by the user (e.g. "Project\\Sprint 5")

        Returns:
            The trimmed sprint filter

        Raises:
            ValidationError: If the filter is empty, too long or contains control characters
        """
        if sprint is None or not sprint.strip():
            raise ValidationError("Sprint filter cannot be empty")

        sprint = sprint.strip()

        if len(sprint) > SprintFilterValidator.MAX_LENGTH:
            raise ValidationError(
                f"Sprint filter too long: {len(sprint)} characters "
                f"(max: {SprintFilterValidator.MAX_LENGTH})"
            )

        if any(ord(char) < 32 for char in sprint):
            raise ValidationError("Sprint filter cannot contain control characters")

        return sprint


class PriorityValidator:
    """Validator for work item priority."""

    ALLOWED_PRIORITIES = {1, 2, 3, 4}

    @staticmethod
    def validate(priority: int) -> int:
        """
        Validate work item priority.

        Args:
            priority: The priority to validate (1-4)

        Returns:
            The validated priority as a plain int

        Raises:
            ValidationError: If priority is not 1-4
        """
        if isinstance(priority, bool) or priority not in PriorityValidator.ALLOWED_PRIORITIES:
            raise ValidationError(
                f"Invalid priority: {priority}. "
                f"Priority must be 1-4 (where 1 is highest)"
            )

        return int(priority)


class TagValidator:
    """Validator for tags written back to System.Tags."""

    @staticmethod
    def validate(tags: List[str]) -> List[str]:
        """
        Validate tags before they are joined into System.Tags.

        Args:
            tags: Tag names

        Returns:
            Trimmed tags with duplicates removed, first occurrence kept

        Raises:
            ValidationError: If a tag is empty or contains the tag separator
        """
        cleaned: List[str] = []
        for tag in tags:
            if not isinstance(tag, str) or not tag.strip():
                raise ValidationError("Tags cannot be empty")
            if TAG_SEPARATOR in tag:
                raise ValidationError(
                    f"Invalid tag: '{tag}'. Tags cannot contain '{TAG_SEPARATOR}'"
                )
            tag = tag.strip()
            if tag not in cleaned:
                cleaned.append(tag)
        return cleaned


# Convenience functions for common validations

def validate_wiql(query: str) -> str:
    """Validate WIQL query."""
    return WiqlValidator.validate(query)


def sanitize_wiql_string(value: str) -> str:
    """Sanitize a string value for use in WIQL queries."""
    return WiqlValidator.sanitize_string_literal(value)


def validate_sprint_filter(sprint: str) -> str:
    """Validate a sprint/iteration filter."""
    return SprintFilterValidator.validate(sprint)


def validate_priority(priority: Optional[int]) -> Optional[int]:
    """Validate priority if provided."""
    return PriorityValidator.validate(priority) if priority is not None else None


def validate_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Validate tags if provided."""
    return TagValidator.validate(tags) if tags else None
