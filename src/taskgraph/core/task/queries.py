"""
Read-only queries over a task graph.

Next-work selection plus the flattened views a presentation layer renders.
Nothing here mutates the graph or formats text for display.
"""

from typing import Any, Dict, List, Optional, Tuple

from taskgraph.core.address import SubtaskAddress
from taskgraph.core.constants import (
    ACTIONABLE_STATUSES,
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    PRIORITY_RANK,
    VALID_STATUSES,
    is_done,
    normalize_priority,
    normalize_status,
)
from taskgraph.core.store.graph import NodeRef, TaskGraph, subtasks_of
from taskgraph.core.validation.rules import dependency_values, resolve_dependency


def effective_priority(ref: NodeRef) -> str:
    """Own priority, else the parent's for subtasks, else medium."""
    priority = normalize_priority(ref.node.get("priority"))
    if priority is None and ref.parent is not None:
        priority = normalize_priority(ref.parent.get("priority"))
    return priority or DEFAULT_PRIORITY


def effective_status(node: Dict[str, Any]) -> Optional[str]:
    return normalize_status(node.get("status", DEFAULT_STATUS))


def dependencies_satisfied(graph: TaskGraph, ref: NodeRef) -> bool:
    """True when every dependency resolves to a done node.

    A dependency that resolves to nothing counts as unsatisfied.
    """
    for value in dependency_values(ref.node):
        target = resolve_dependency(graph, ref, value)
        if target is None:
            return False
        target_ref = graph.get_node(target)
        if target_ref is None or not is_done(target_ref.node):
            return False
    return True


def is_eligible(graph: TaskGraph, ref: NodeRef) -> bool:
    """Actionable status with every dependency done.

    A subtask also waits on its parent task's own dependencies.
    """
    if effective_status(ref.node) not in ACTIONABLE_STATUSES:
        return False
    if not dependencies_satisfied(graph, ref):
        return False
    if isinstance(ref.address, SubtaskAddress) and ref.parent is not None:
        return dependencies_satisfied(graph, NodeRef(ref.address.parent, ref.parent))
    return True


def _rank(ref: NodeRef) -> Tuple[int, int, Tuple[int, int]]:
    return (
        -PRIORITY_RANK[effective_priority(ref)],
        len(dependency_values(ref.node)),
        ref.address.sort_key,
    )


def select_next(graph: TaskGraph) -> Optional[NodeRef]:
    """
    Pick the best node to work on next.

    Candidates are tasks and subtasks that are pending or in-progress with
    every dependency done; a subtask also needs its parent's dependencies
    done. Ranking: higher priority, then fewer
    dependencies, then lower (task id, subtask id).

    Returns:
        The winning NodeRef, or None when nothing is eligible
    """
    candidates = [ref for ref in graph.iter_nodes() if is_eligible(graph, ref)]
    if not candidates:
        return None
    return min(candidates, key=_rank)


def _dependency_view(graph: TaskGraph, ref: NodeRef) -> List[Dict[str, Any]]:
    views = []
    for value in dependency_values(ref.node):
        target = resolve_dependency(graph, ref, value)
        target_ref = graph.get_node(target) if target is not None else None
        views.append(
            {
                "value": value,
                "address": str(target) if target is not None else None,
                "status": target_ref.node.get("status") if target_ref is not None else None,
            }
        )
    return views


def node_view(graph: TaskGraph, ref: NodeRef, detailed: bool = False) -> Dict[str, Any]:
    """
    Flatten one node for display.

    Args:
        graph: Graph the node belongs to
        ref: Node to describe
        detailed: Include long text fields and, for tasks, subtask views

    Returns:
        Dict with id, address, title, status, effective priority and each
        dependency's resolved address and status (None when dangling)
    """
    node = ref.node
    view: Dict[str, Any] = {
        "id": node.get("id"),
        "address": str(ref.address),
        "title": node.get("title", ""),
        "status": node.get("status", DEFAULT_STATUS),
        "priority": effective_priority(ref),
        "dependencies": _dependency_view(graph, ref),
    }
    if isinstance(ref.address, SubtaskAddress):
        view["parent_id"] = ref.address.task_id
    else:
        view["subtask_count"] = len(subtasks_of(node))

    if detailed:
        view["description"] = node.get("description", "")
        view["details"] = node.get("details", "")
        if "testStrategy" in node:
            view["testStrategy"] = node["testStrategy"]
        if ref.parent is None:
            view["subtasks"] = [
                node_view(graph, child)
                for child in graph.iter_nodes()
                if child.parent is node
            ]
    return view


def list_nodes(
    graph: TaskGraph,
    status: Optional[str] = None,
    with_subtasks: bool = False,
) -> List[Dict[str, Any]]:
    """
    List task views, optionally filtered by status.

    Args:
        graph: Graph to list
        status: Only tasks whose status matches (``completed`` matches done)
        with_subtasks: Nest each listed task's subtask views under ``subtasks``

    Returns:
        Task views in document order
    """
    wanted = normalize_status(status) if status is not None else None
    views: List[Dict[str, Any]] = []
    current: Optional[Dict[str, Any]] = None

    for ref in graph.iter_nodes():
        if ref.parent is None:
            current = None
            if status is not None and effective_status(ref.node) != wanted:
                continue
            current = node_view(graph, ref)
            if with_subtasks:
                current["subtasks"] = []
            views.append(current)
        elif with_subtasks and current is not None:
            current["subtasks"].append(node_view(graph, ref))

    return views


def _percentage(part: int, total: int) -> float:
    return round(part * 100.0 / total, 1) if total else 0.0


def progress_summary(graph: TaskGraph) -> Dict[str, Any]:
    """
    Project-level statistics.

    Returns:
        Dict with task status counts and completion percentage, subtask
        completion, counts of ready and dependency-blocked tasks, the most
        depended-on task and the next node to work on
    """
    tasks = graph.tasks
    by_status: Dict[str, int] = {status: 0 for status in VALID_STATUSES}
    other = 0
    for task in tasks:
        status = effective_status(task)
        if status is None:
            other += 1
        else:
            by_status[status] += 1
    if other:
        by_status["other"] = other

    done_tasks = by_status["done"]
    subtasks = [sub for task in tasks for sub in subtasks_of(task)]
    done_subtasks = sum(1 for sub in subtasks if is_done(sub))

    ready = 0
    blocked = 0
    dependents: Dict[int, int] = {}
    total_deps = 0
    for ref in graph.iter_nodes():
        if ref.parent is not None:
            continue
        values = dependency_values(ref.node)
        total_deps += len(values)
        for value in values:
            target = resolve_dependency(graph, ref, value)
            if target is not None and not isinstance(target, SubtaskAddress):
                dependents[target.task_id] = dependents.get(target.task_id, 0) + 1
        if is_done(ref.node):
            continue
        if dependencies_satisfied(graph, ref):
            ready += 1
        else:
            blocked += 1

    most_depended_on = None
    if dependents:
        top_id = min(dependents, key=lambda task_id: (-dependents[task_id], task_id))
        top_task = graph.get_task(top_id)
        most_depended_on = {
            "id": top_id,
            "title": top_task.get("title", "") if top_task else "",
            "dependents": dependents[top_id],
        }

    next_ref = select_next(graph)
    return {
        "tasks": {
            "total": len(tasks),
            "by_status": by_status,
            "completion_percentage": _percentage(done_tasks, len(tasks)),
        },
        "subtasks": {
            "total": len(subtasks),
            "done": done_subtasks,
            "completion_percentage": _percentage(done_subtasks, len(subtasks)),
        },
        "dependencies": {
            "ready": ready,
            "blocked": blocked,
            "most_depended_on": most_depended_on,
            "average_per_task": round(total_deps / len(tasks), 2) if tasks else 0.0,
        },
        "next": str(next_ref.address) if next_ref is not None else None,
    }
