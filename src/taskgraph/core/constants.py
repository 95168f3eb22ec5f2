"""Status and priority vocabularies shared across the engine."""

from typing import Any, Optional

VALID_STATUSES = ("pending", "in-progress", "done", "deferred", "blocked")

# Accepted wherever a status is compared; never written by the engine itself.
STATUS_SYNONYMS = {"completed": "done"}

DONE_STATUSES = frozenset({"done", "completed"})
ACTIONABLE_STATUSES = frozenset({"pending", "in-progress"})

DEFAULT_STATUS = "pending"

VALID_PRIORITIES = ("high", "medium", "low")
DEFAULT_PRIORITY = "medium"
PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}

PLACEHOLDER_TITLE = "Untitled task"


def normalize_status(value: Any) -> Optional[str]:
    """Return the canonical status for ``value``, or None if it is not one."""
    if not isinstance(value, str):
        return None
    status = value.strip().lower()
    status = STATUS_SYNONYMS.get(status, status)
    if status not in VALID_STATUSES:
        return None
    return status


def is_done(node: Any) -> bool:
    """True when the node's status compares equal to done."""
    if not isinstance(node, dict):
        return False
    status = node.get("status")
    return isinstance(status, str) and status.strip().lower() in DONE_STATUSES


def normalize_priority(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    priority = value.strip().lower()
    return priority if priority in VALID_PRIORITIES else None
