"""
Structural edits: add tasks and subtasks, convert between the two forms.

Every operation checks its preconditions before touching the graph, so a
raised error always leaves the in-memory graph unchanged. Nothing here
persists; callers save when they are done.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from taskgraph.core.address import (
    Address,
    SubtaskAddress,
    TaskAddress,
    parse_address,
    parse_task_id,
    split_address_list,
)
from taskgraph.core.constants import DEFAULT_PRIORITY, normalize_priority
from taskgraph.core.errors import (
    AlreadySubtask,
    CircularConversion,
    CircularSubtask,
    InvalidAddress,
    NestedSubtasks,
    NotFound,
    SelfReference,
    lookup_error,
)
from taskgraph.core.generation.models import GeneratedSubtask, GeneratedTask
from taskgraph.core.store.graph import NodeRef, TaskGraph, subtasks_of
from taskgraph.core.task._helpers import ItemResult, NodeEdit
from taskgraph.core.validation.rules import (
    closes_cycle,
    dependency_values,
    is_reachable,
    resolve_dependency,
    shadowed_references,
)

logger = logging.getLogger(__name__)


def _ensure_subtask_list(task: Dict[str, Any]) -> List[Dict[str, Any]]:
    subtasks = task.get("subtasks")
    if not isinstance(subtasks, list):
        subtasks = []
        task["subtasks"] = subtasks
    return subtasks


def _detach(items: List[Dict[str, Any]], node: Dict[str, Any]) -> None:
    for index, candidate in enumerate(items):
        if candidate is node:
            del items[index]
            return


def _withdraw_subtask(parent: Dict[str, Any], node: Dict[str, Any]) -> None:
    siblings = subtasks_of(parent)
    _detach(siblings, node)
    if not siblings:
        parent.pop("subtasks", None)


def add_subtask(
    graph: TaskGraph,
    parent_id: Union[int, str],
    payload: Optional[Mapping[str, Any]] = None,
) -> NodeEdit:
    """
    Create a new subtask under ``parent_id``.

    The subtask gets id max(sibling ids)+1 and status pending unless the
    payload sets one. Dependencies that do not resolve, that point at the
    new subtask itself, or that would close a cycle once the subtask is in
    place are dropped with a warning.

    Args:
        graph: Graph to mutate in place
        parent_id: Id of the owning task
        payload: Subtask fields (title, description, details, status,
            priority, dependencies)

    Returns:
        NodeEdit for the new subtask

    Raises:
        InvalidAddress: If ``parent_id`` is malformed or a subtask address
        NotFound: If the parent task does not exist
        CircularSubtask: If the subtask would sit on a cycle even without
            its own dependencies
    """
    task_id = parse_task_id(parent_id)
    parent = graph.require_task(task_id)

    record = GeneratedSubtask.model_validate(dict(payload or {}))
    subtask_id = graph.next_subtask_id(parent)
    node = record.to_node(subtask_id)
    node["parentTaskId"] = task_id
    address = SubtaskAddress(task_id, subtask_id)

    warnings: List[str] = []
    ref = NodeRef(address, node, parent)
    kept: List[Any] = []
    for value in node["dependencies"]:
        if value == subtask_id:
            warnings.append(f"Subtask {address} cannot depend on itself; dependency dropped")
            continue
        if resolve_dependency(graph, ref, value) is None:
            warnings.append(f"Dependency {value} does not exist; dependency dropped")
            continue
        kept.append(value)
    node["dependencies"] = kept
    warnings.extend(shadowed_references(graph, parent, subtask_id))

    _ensure_subtask_list(parent).append(node)
    acyclic: List[Any] = []
    for value in kept:
        target = resolve_dependency(graph, ref, value)
        if target is not None and is_reachable(graph, [target], address):
            warnings.append(
                f"Dependency {value} would create a cycle through subtask {address}; dependency dropped"
            )
            continue
        acyclic.append(value)
    node["dependencies"] = acyclic

    if closes_cycle(graph, ref):
        _withdraw_subtask(parent, node)
        raise CircularSubtask(str(address))

    logger.info("Created new subtask %s", address)
    return NodeEdit(str(address), node, warnings)


def convert_task_to_subtask(
    graph: TaskGraph,
    parent_id: Union[int, str],
    existing_task_id: Union[int, str],
) -> NodeEdit:
    """
    Move a top-level task under ``parent_id`` as a new subtask.

    References elsewhere to the old task id are left as they are and will
    surface as dangling dependencies on the next validation.

    Args:
        graph: Graph to mutate in place
        parent_id: Id of the new owning task
        existing_task_id: Id of the task to convert

    Returns:
        NodeEdit for the new subtask

    Raises:
        SelfReference: If both ids are equal
        NotFound: If either task does not exist
        AlreadySubtask: If the task already carries a ``parentTaskId``
        NestedSubtasks: If the task still owns subtasks
        CircularConversion: If the task is reachable from the parent or
            any of the parent's subtasks, or the converted node would sit on
            a cycle once its new id captures sibling references
    """
    parent_task_id = parse_task_id(parent_id)
    task_id = parse_task_id(existing_task_id)

    if task_id == parent_task_id:
        raise SelfReference(task_id)

    parent = graph.require_task(parent_task_id)
    existing = graph.require_task(task_id)

    if existing.get("parentTaskId") is not None:
        raise AlreadySubtask(task_id, existing["parentTaskId"])

    owned = subtasks_of(existing)
    if owned:
        raise NestedSubtasks(task_id, len(owned))

    starts: List[Address] = [TaskAddress(parent_task_id)]
    starts.extend(SubtaskAddress(parent_task_id, sub["id"]) for sub in subtasks_of(parent))
    if is_reachable(graph, starts, TaskAddress(task_id)):
        raise CircularConversion(task_id, parent_task_id)

    subtask_id = graph.next_subtask_id(parent)
    node = {key: value for key, value in existing.items() if key != "subtasks"}
    node["id"] = subtask_id
    node["parentTaskId"] = parent_task_id
    address = SubtaskAddress(parent_task_id, subtask_id)
    warnings = shadowed_references(graph, parent, subtask_id)

    position = next(index for index, task in enumerate(graph.tasks) if task is existing)
    graph.remove_task(task_id)
    _ensure_subtask_list(parent).append(node)

    if closes_cycle(graph, NodeRef(address, node, parent)):
        _withdraw_subtask(parent, node)
        graph.insert_task(position, existing)
        raise CircularConversion(
            task_id,
            parent_task_id,
            reason=f"as subtask {address} its dependencies would form a cycle",
        )

    logger.info("Converted task %s to subtask %s", task_id, address)
    return NodeEdit(str(address), node, warnings)


def remove_subtask(
    graph: TaskGraph,
    address: Union[Address, str],
    convert_to_task: bool = False,
) -> Optional[NodeEdit]:
    """
    Remove a subtask, optionally turning it into a new top-level task.

    When converting, the new task gets id max(task ids)+1, keeps the
    subtask's fields, takes the parent's priority if it had none, and
    gains a dependency on the former parent. Sibling references are
    rewritten as explicit ``"parent.sub"`` addresses so they keep pointing
    at the same subtasks.

    Args:
        graph: Graph to mutate in place
        address: ``"parentId.subtaskId"``
        convert_to_task: Re-materialize the subtask as a task

    Returns:
        NodeEdit for the new task when converting, otherwise None

    Raises:
        InvalidAddress: If ``address`` is malformed or names a task
        NotFound: If the subtask does not exist
    """
    parsed = parse_address(address)
    if not isinstance(parsed, SubtaskAddress):
        raise InvalidAddress(address, "expected a subtask address 'parentId.subtaskId'")
    ref = graph.require_node(parsed)
    parent = ref.parent
    subtask = ref.node

    # Resolve dependencies while the subtask is still in place.
    carried: List[Any] = []
    for value in dependency_values(subtask):
        target = resolve_dependency(graph, ref, value)
        if isinstance(target, SubtaskAddress):
            value = str(target)
        carried.append(value)

    siblings = subtasks_of(parent)
    _detach(siblings, subtask)
    if not siblings:
        parent.pop("subtasks", None)

    if not convert_to_task:
        logger.info("Subtask %s deleted", parsed)
        return None

    new_id = graph.next_task_id()
    task: Dict[str, Any] = {
        key: value for key, value in subtask.items() if key not in ("id", "parentTaskId")
    }
    task["id"] = new_id
    task.setdefault("title", "")
    task.setdefault("description", "")
    task.setdefault("details", "")
    task.setdefault("status", "pending")
    task["priority"] = (
        normalize_priority(subtask.get("priority"))
        or normalize_priority(parent.get("priority"))
        or DEFAULT_PRIORITY
    )
    if not any(isinstance(dep, int) and not isinstance(dep, bool) and dep == parent["id"] for dep in carried):
        carried.append(parent["id"])
    task["dependencies"] = carried

    graph.append_task(task)
    logger.info("Created new task %s from subtask %s", new_id, parsed)
    return NodeEdit(str(new_id), task)


def add_task(
    graph: TaskGraph,
    content: Optional[Mapping[str, Any]] = None,
    dependencies: Iterable[Any] = (),
    priority: str = DEFAULT_PRIORITY,
) -> NodeEdit:
    """
    Append a new top-level task with id max(task ids)+1.

    Task creation is tolerant: dependencies that are malformed or do not
    name an existing task are dropped, and an unknown priority falls back
    to medium. Each adjustment is reported as a warning.

    Args:
        graph: Graph to mutate in place
        content: Text fields (title, description, details, testStrategy)
        dependencies: Task ids the new task depends on
        priority: high, medium or low

    Returns:
        NodeEdit for the new task, carrying any warnings
    """
    warnings: List[str] = []

    effective_priority = normalize_priority(priority)
    if effective_priority is None:
        warnings.append(f"Invalid priority {priority!r}; using '{DEFAULT_PRIORITY}'")
        effective_priority = DEFAULT_PRIORITY

    deps: List[int] = []
    for raw in dependencies:
        try:
            dep = parse_address(raw)
        except InvalidAddress:
            warnings.append(f"Dependency {raw!r} is not a task id and was dropped")
            continue
        if not isinstance(dep, TaskAddress):
            warnings.append(f"Dependency {raw!r} is a subtask; tasks depend on tasks only")
            continue
        if graph.get_task(dep.task_id) is None:
            warnings.append(f"Dependency {dep.task_id} does not exist and was dropped")
            continue
        if dep.task_id not in deps:
            deps.append(dep.task_id)

    fields = {key: value for key, value in dict(content or {}).items() if key not in ("id", "status", "subtasks")}
    record = GeneratedTask.model_validate(fields)

    new_id = graph.next_task_id()
    node = record.to_node(new_id)
    node["status"] = "pending"
    node["priority"] = effective_priority
    node["dependencies"] = deps

    graph.append_task(node)
    for warning in warnings:
        logger.warning(warning)
    logger.info("Added task %s", new_id)
    return NodeEdit(str(new_id), node, warnings)


def clear_subtasks(graph: TaskGraph, task_ids: Union[str, Iterable[Any]]) -> List[ItemResult]:
    """
    Remove every subtask from each listed task.

    Args:
        graph: Graph to mutate in place
        task_ids: Comma-delimited string or sequence of task ids

    Returns:
        One ItemResult per id; a task without subtasks succeeds with
        ``cleared == 0``
    """
    results: List[ItemResult] = []
    for raw in split_address_list(task_ids):
        label = str(raw).strip()
        try:
            task = graph.require_task(parse_task_id(raw))
        except (InvalidAddress, NotFound) as e:
            mapping = lookup_error(e)
            results.append(
                ItemResult(
                    address=label,
                    success=False,
                    error_code=mapping[0].value if mapping else None,
                    error=str(e),
                )
            )
            continue

        count = len(subtasks_of(task))
        task.pop("subtasks", None)
        if count:
            logger.info("Cleared %d subtasks from task %s", count, task["id"])
        else:
            logger.info("Task %s has no subtasks to clear", task["id"])
        results.append(ItemResult(address=str(task["id"]), success=True, data={"cleared": count}))
    return results
