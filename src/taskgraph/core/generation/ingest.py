"""
Admission of generated records into the graph.

Generated ids are local to their batch. Admitted nodes get fresh ids
(max+1 onward), in-batch dependency references are remapped to those ids,
and anything that would break graph invariants is dropped with a warning.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Union

from pydantic import ValidationError

from taskgraph.core.address import SubtaskAddress, parse_address, parse_task_id
from taskgraph.core.constants import PLACEHOLDER_TITLE, is_done
from taskgraph.core.errors import CircularSubtask, TaskAlreadyDone
from taskgraph.core.generation.models import GeneratedSubtask, GeneratedTask
from taskgraph.core.store.graph import NodeRef, TaskGraph, subtasks_of
from taskgraph.core.validation.rules import (
    closes_cycle,
    is_reachable,
    resolve_dependency,
    shadowed_references,
)

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Nodes admitted into the graph plus any adjustments made."""

    addresses: List[str] = field(default_factory=list)
    nodes: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"count": len(self.nodes), "addresses": list(self.addresses), "nodes": list(self.nodes)}


def _validated(model: Any, records: Iterable[Any], warnings: List[str]) -> List[Any]:
    admitted = []
    for position, raw in enumerate(records):
        if not isinstance(raw, dict):
            warnings.append(f"Record {position} is not an object and was skipped")
            continue
        try:
            admitted.append(model.model_validate(raw))
        except ValidationError as e:
            warnings.append(f"Record {position} was skipped: {e.error_count()} invalid field(s)")
    return admitted


def ingest_tasks(graph: TaskGraph, records: Iterable[Any]) -> IngestResult:
    """
    Append generated task records as new top-level tasks.

    Args:
        graph: Graph to mutate in place
        records: Task-like dicts from a content generator

    Returns:
        IngestResult with the admitted tasks in order
    """
    result = IngestResult()
    tasks: List[GeneratedTask] = _validated(GeneratedTask, records, result.warnings)

    existing_ids = {task["id"] for task in graph.tasks}
    first_id = graph.next_task_id()
    remap: Dict[int, int] = {}
    for offset, record in enumerate(tasks):
        if record.id is not None and record.id not in remap:
            remap[record.id] = first_id + offset

    for offset, record in enumerate(tasks):
        new_id = first_id + offset
        deps: List[int] = []
        for dep in record.dependencies:
            if not isinstance(dep, int):
                continue
            if dep in remap:
                target = remap[dep]
            elif dep in existing_ids:
                target = dep
            else:
                result.warnings.append(f"Task {new_id}: dependency {dep} does not exist and was dropped")
                continue
            if target >= new_id:
                result.warnings.append(
                    f"Task {new_id}: dependency {dep} is not an earlier task and was dropped"
                )
                continue
            if target not in deps:
                deps.append(target)

        node = record.to_node(new_id)
        node["dependencies"] = deps
        graph.append_task(node)
        result.addresses.append(str(new_id))
        result.nodes.append(node)

    for warning in result.warnings:
        logger.warning(warning)
    logger.info("Ingested %d generated task(s)", len(result.nodes))
    return result


def _break_new_cycles(
    graph: TaskGraph,
    parent_id: int,
    task: Dict[str, Any],
    new_nodes: List[Dict[str, Any]],
    warnings: List[str],
) -> None:
    """Drop edges of attached nodes that lead back to themselves.

    If a node still sits on a cycle through its parent, every new node is
    detached again and CircularSubtask is raised.
    """
    refs = [NodeRef(SubtaskAddress(parent_id, node["id"]), node, task) for node in new_nodes]
    for ref in refs:
        acyclic: List[Any] = []
        for value in ref.node["dependencies"]:
            target = resolve_dependency(graph, ref, value)
            if target is not None and is_reachable(graph, [target], ref.address):
                warnings.append(f"Subtask {ref.address}: dependency {value} would create a cycle and was dropped")
                continue
            acyclic.append(value)
        ref.node["dependencies"] = acyclic

    looped = next((ref for ref in refs if closes_cycle(graph, ref)), None)
    if looped is not None:
        task["subtasks"] = [sub for sub in subtasks_of(task) if all(sub is not node for node in new_nodes)]
        if not task["subtasks"]:
            del task["subtasks"]
        raise CircularSubtask(str(looped.address))


def ingest_subtasks(
    graph: TaskGraph,
    task_id: Union[int, str],
    records: Iterable[Any],
) -> IngestResult:
    """
    Append generated subtask records to an existing task.

    In-batch references are remapped to the new sibling ids and must point
    at an earlier record. Other numeric references are kept when they name
    an existing sibling or task; dotted references are kept when they
    resolve.

    Args:
        graph: Graph to mutate in place
        task_id: Owning task
        records: Subtask-like dicts from a content generator

    Returns:
        IngestResult with the admitted subtasks in order

    Raises:
        NotFound: If the task does not exist
        TaskAlreadyDone: If the task is already done
        CircularSubtask: If a new subtask would still close a dependency cycle
    """
    parent_id = parse_task_id(task_id)
    task = graph.require_task(parent_id)
    if is_done(task):
        raise TaskAlreadyDone(parent_id, task.get("status", "done"))

    result = IngestResult()
    subtasks: List[GeneratedSubtask] = _validated(GeneratedSubtask, records, result.warnings)

    sibling_ids = {sub["id"] for sub in subtasks_of(task)}
    first_id = graph.next_subtask_id(task)
    remap: Dict[int, int] = {}
    for offset, record in enumerate(subtasks):
        if record.id is not None and record.id not in remap:
            remap[record.id] = first_id + offset

    new_nodes: List[Dict[str, Any]] = []
    for offset, record in enumerate(subtasks):
        new_id = first_id + offset
        label = f"{parent_id}.{new_id}"
        deps: List[Any] = []
        for dep in record.dependencies:
            kept: Any = None
            if isinstance(dep, str):
                if graph.get_node(dep) is not None and parse_address(dep) != SubtaskAddress(parent_id, new_id):
                    kept = dep
            elif dep in remap:
                if remap[dep] < new_id:
                    kept = remap[dep]
                else:
                    result.warnings.append(
                        f"Subtask {label}: dependency {dep} is not an earlier subtask and was dropped"
                    )
                    continue
            elif dep in sibling_ids:
                kept = dep
            elif first_id <= dep < first_id + len(subtasks):
                # A bare id here would resolve to one of the new siblings.
                result.warnings.append(
                    f"Subtask {label}: dependency {dep} is shadowed by a new subtask id and was dropped"
                )
                continue
            elif graph.get_task(dep) is not None:
                kept = dep
            if kept is None:
                result.warnings.append(f"Subtask {label}: dependency {dep} does not exist and was dropped")
                continue
            if kept not in deps:
                deps.append(kept)

        node = record.to_node(new_id)
        node["dependencies"] = deps
        node["parentTaskId"] = parent_id
        new_nodes.append(node)
        result.addresses.append(label)
        result.nodes.append(node)

    if new_nodes:
        for node in new_nodes:
            result.warnings.extend(shadowed_references(graph, task, node["id"]))
        subtask_list = task.get("subtasks")
        if not isinstance(subtask_list, list):
            subtask_list = []
            task["subtasks"] = subtask_list
        subtask_list.extend(new_nodes)
        _break_new_cycles(graph, parent_id, task, new_nodes, result.warnings)

    for warning in result.warnings:
        logger.warning(warning)
    logger.info("Ingested %d generated subtask(s) into task %s", len(new_nodes), parent_id)
    return result


def update_candidates(graph: TaskGraph, from_id: int) -> List[Dict[str, Any]]:
    """Tasks with id >= ``from_id`` that are not done, in document order."""
    return [task for task in graph.tasks if task["id"] >= from_id and not is_done(task)]


def expand_candidates(graph: TaskGraph, force: bool = False) -> List[Dict[str, Any]]:
    """Tasks that are not done and own no subtasks (any subtasks with ``force``), by id."""
    return sorted(
        (task for task in graph.tasks if not is_done(task) and (force or not subtasks_of(task))),
        key=lambda task: task["id"],
    )


# Generated field name -> persisted key
_UPDATABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "details": "details",
    "test_strategy": "testStrategy",
    "priority": "priority",
}


def apply_task_updates(graph: TaskGraph, records: Iterable[Any], allowed_ids: Iterable[int]) -> IngestResult:
    """
    Overwrite the content of existing tasks from regenerated records.

    Only text fields and a valid priority are taken from a record. Id,
    status, dependencies and subtasks always stay as they are. Records
    for tasks outside ``allowed_ids`` are skipped with a warning.

    Args:
        graph: Graph to mutate in place
        records: Task-like dicts carrying the ids of the tasks they replace
        allowed_ids: Ids of the tasks that were sent for regeneration

    Returns:
        IngestResult with the updated tasks in order
    """
    allowed = set(allowed_ids)
    result = IngestResult()
    for record in _validated(GeneratedSubtask, records, result.warnings):
        if record.id is None or record.id not in allowed:
            result.warnings.append(f"Regenerated record for task {record.id} was not requested and was skipped")
            continue
        task = graph.require_task(record.id)
        for name, key in _UPDATABLE_FIELDS.items():
            if name not in record.model_fields_set:
                continue
            value = getattr(record, name)
            if value is None or (name == "title" and value == PLACEHOLDER_TITLE):
                continue
            task[key] = value
        if str(record.id) not in result.addresses:
            result.addresses.append(str(record.id))
            result.nodes.append(task)

    for warning in result.warnings:
        logger.warning(warning)
    logger.info("Updated %d task(s) from regenerated content", len(result.nodes))
    return result
