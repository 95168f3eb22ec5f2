"""
In-memory task graph.

Wraps the persisted document dict without copying it, so every mutation is
in place and ``save_graph`` writes exactly what callers changed. Tasks are
indexed by id for O(1) lookup; the index is rebuilt by the helpers that add
or remove top-level tasks.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from taskgraph.core.address import (
    Address,
    SubtaskAddress,
    TaskAddress,
    parse_address,
)
from taskgraph.core.errors import NotFound


@dataclass
class NodeRef:
    """A task or subtask together with its resolved address.

    ``parent`` is the owning task dict for subtasks and None for tasks.
    """

    address: Address
    node: Dict[str, Any]
    parent: Optional[Dict[str, Any]] = None

    @property
    def is_subtask(self) -> bool:
        return isinstance(self.address, SubtaskAddress)


def subtasks_of(task: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return the task's subtask list, or an empty list when absent."""
    subtasks = task.get("subtasks")
    return subtasks if isinstance(subtasks, list) else []


class TaskGraph:
    """Mutable view over a tasks document."""

    def __init__(self, document: Dict[str, Any], path: Optional[Path] = None):
        self.document = document
        self.path = path
        self._index: Dict[int, Dict[str, Any]] = {}
        self.reindex()

    @property
    def tasks(self) -> List[Dict[str, Any]]:
        return self.document["tasks"]

    @property
    def meta(self) -> Optional[Dict[str, Any]]:
        meta = self.document.get("meta")
        return meta if isinstance(meta, dict) else None

    def reindex(self) -> None:
        """Rebuild the id index after the top-level task list changed."""
        self._index = {task["id"]: task for task in self.tasks}

    def __len__(self) -> int:
        return len(self.tasks)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_task(self, task_id: int) -> Optional[Dict[str, Any]]:
        return self._index.get(task_id)

    def get_subtask(self, task: Dict[str, Any], subtask_id: int) -> Optional[Dict[str, Any]]:
        for subtask in subtasks_of(task):
            if subtask.get("id") == subtask_id:
                return subtask
        return None

    def get_node(self, address: Union[Address, str, int]) -> Optional[NodeRef]:
        """
        Resolve an address to its node.

        Args:
            address: Parsed address, ``"7"``/``"7.2"`` string or task id

        Returns:
            NodeRef, or None when the address is well-formed but unknown

        Raises:
            InvalidAddress: If ``address`` is malformed
        """
        parsed = parse_address(address)
        task = self._index.get(parsed.task_id)
        if task is None:
            return None
        if isinstance(parsed, TaskAddress):
            return NodeRef(parsed, task)
        subtask = self.get_subtask(task, parsed.subtask_id)
        if subtask is None:
            return None
        return NodeRef(parsed, subtask, task)

    def require_task(self, task_id: int) -> Dict[str, Any]:
        task = self.get_task(task_id)
        if task is None:
            raise NotFound(f"Task {task_id} not found", address=str(task_id))
        return task

    def require_node(self, address: Union[Address, str, int]) -> NodeRef:
        """Like :meth:`get_node` but raises ``NotFound`` for unknown nodes."""
        ref = self.get_node(address)
        if ref is None:
            parsed = parse_address(address)
            if isinstance(parsed, SubtaskAddress) and parsed.task_id not in self._index:
                raise NotFound(
                    f"Parent task {parsed.task_id} of subtask {parsed} not found",
                    address=str(parsed),
                )
            kind = "Subtask" if isinstance(parsed, SubtaskAddress) else "Task"
            raise NotFound(f"{kind} {parsed} not found", address=str(parsed))
        return ref

    def iter_nodes(self) -> Iterator[NodeRef]:
        """Yield every task followed by its subtasks, in document order."""
        for task in self.tasks:
            yield NodeRef(TaskAddress(task["id"]), task)
            for subtask in subtasks_of(task):
                yield NodeRef(SubtaskAddress(task["id"], subtask["id"]), subtask, task)

    # ------------------------------------------------------------------
    # Id allocation
    # ------------------------------------------------------------------

    def next_task_id(self) -> int:
        return max(self._index, default=0) + 1

    def next_subtask_id(self, task: Dict[str, Any]) -> int:
        return max((subtask["id"] for subtask in subtasks_of(task)), default=0) + 1

    # ------------------------------------------------------------------
    # Top-level list edits
    # ------------------------------------------------------------------

    def append_task(self, task: Dict[str, Any]) -> None:
        self.tasks.append(task)
        self._index[task["id"]] = task

    def insert_task(self, position: int, task: Dict[str, Any]) -> None:
        self.tasks.insert(position, task)
        self._index[task["id"]] = task

    def remove_task(self, task_id: int) -> Dict[str, Any]:
        task = self.require_task(task_id)
        self.tasks.remove(task)
        del self._index[task_id]
        return task


def new_graph(project_name: str, path: Optional[Path] = None) -> TaskGraph:
    """Build an empty graph with a ``meta`` header."""
    document = {
        "tasks": [],
        "meta": {
            "projectName": project_name,
            "version": "1.0.0",
            "createdAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        },
    }
    return TaskGraph(document, path)
