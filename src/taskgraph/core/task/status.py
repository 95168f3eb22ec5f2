"""
Status changes with downward cascade and advisory upward signal.

Marking a task done forces every unfinished subtask to done. Marking the
last open subtask done only reports that the parent could be completed; the
parent itself is never touched.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from taskgraph.core.address import Address
from taskgraph.core.constants import DEFAULT_STATUS, is_done, normalize_status
from taskgraph.core.errors import InvalidStatus
from taskgraph.core.store.graph import TaskGraph, subtasks_of

logger = logging.getLogger(__name__)


@dataclass
class StatusUpdate:
    """Result of a single status change."""

    address: str
    previous_status: str
    status: str
    cascaded: List[str] = field(default_factory=list)
    parent_eligible: bool = False
    parent_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "address": self.address,
            "previous_status": self.previous_status,
            "status": self.status,
            "cascaded": list(self.cascaded),
            "parent_eligible": self.parent_eligible,
        }
        if self.parent_id is not None:
            data["parent_id"] = self.parent_id
        return data


def require_status(value: Any) -> str:
    """Normalize ``value`` to a canonical status or raise ``InvalidStatus``."""
    status = normalize_status(value)
    if status is None:
        raise InvalidStatus(value)
    return status


def set_status(
    graph: TaskGraph,
    address: Union[Address, str, int],
    new_status: str,
) -> StatusUpdate:
    """
    Set the status of one task or subtask.

    Args:
        graph: Graph to mutate in place
        address: ``"7"`` or ``"7.2"`` (or a parsed address)
        new_status: Target status; ``"completed"`` is accepted for done

    Returns:
        StatusUpdate describing the change and any cascade

    Raises:
        InvalidAddress: If ``address`` is malformed
        InvalidStatus: If ``new_status`` is not a known status
        NotFound: If the address does not match a node
    """
    status = require_status(new_status)
    ref = graph.require_node(address)

    previous = ref.node.get("status", DEFAULT_STATUS)
    ref.node["status"] = status
    update = StatusUpdate(address=str(ref.address), previous_status=previous, status=status)
    logger.info("Updated %s status from '%s' to '%s'", ref.address, previous, status)

    if status != "done":
        return update

    if ref.parent is None:
        for subtask in subtasks_of(ref.node):
            if not is_done(subtask):
                subtask["status"] = "done"
                update.cascaded.append(f"{ref.node['id']}.{subtask['id']}")
        if update.cascaded:
            logger.info("Also marked %d subtask(s) of task %s as done", len(update.cascaded), ref.address)
        return update

    parent = ref.parent
    update.parent_id = parent["id"]
    if not is_done(parent) and all(is_done(sibling) for sibling in subtasks_of(parent)):
        update.parent_eligible = True
        logger.info("All subtasks of task %s are done; it is eligible for completion", parent["id"])
    return update
