"""Task operations package.

Re-exports the public API::

    from taskgraph.core.task import set_status, add_subtask, select_next, ...

Sub-modules:
- ``_helpers``: Shared result types and utilities
- ``status``: Status changes with cascade
- ``batch``: Batch status updates
- ``mutations``: Structural edits (add, remove, convert)
- ``queries``: Read-only selection and views
"""

from taskgraph.core.address import parse_task_id
from taskgraph.core.task._helpers import ItemResult, NodeEdit
from taskgraph.core.task.batch import (
    BatchItemResult,
    BatchStatusResult,
    set_status_batch,
)
from taskgraph.core.task.mutations import (
    add_subtask,
    add_task,
    clear_subtasks,
    convert_task_to_subtask,
    remove_subtask,
)
from taskgraph.core.task.queries import (
    dependencies_satisfied,
    effective_priority,
    is_eligible,
    list_nodes,
    node_view,
    progress_summary,
    select_next,
)
from taskgraph.core.task.status import StatusUpdate, require_status, set_status

__all__ = [
    # Result types
    "BatchItemResult",
    "BatchStatusResult",
    "ItemResult",
    "NodeEdit",
    "StatusUpdate",
    # Status functions
    "require_status",
    "set_status",
    "set_status_batch",
    # Mutation functions
    "add_subtask",
    "add_task",
    "clear_subtasks",
    "convert_task_to_subtask",
    "remove_subtask",
    # Query functions
    "dependencies_satisfied",
    "effective_priority",
    "is_eligible",
    "list_nodes",
    "node_view",
    "parse_task_id",
    "progress_summary",
    "select_next",
]
