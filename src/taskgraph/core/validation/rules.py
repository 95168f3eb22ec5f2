"""
Graph integrity rules and checks.

Nodes are every task and subtask address. Edges are the explicit
dependency entries plus one implicit edge from each subtask to its parent
task. :func:`iter_edges` is the only place that adjacency is defined; the
cycle finder, the reachability check used by task conversion, and the
repairer all go through it.
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional

from taskgraph.core.address import Address, SubtaskAddress, TaskAddress, parse_address
from taskgraph.core.constants import is_done, normalize_priority, normalize_status
from taskgraph.core.errors import InvalidAddress
from taskgraph.core.store.graph import NodeRef, TaskGraph, subtasks_of
from taskgraph.core.validation.models import (
    DanglingDependency,
    DependencyCycle,
    Diagnostic,
    Edge,
    ValidationResult,
)

_WHITE, _GRAY, _BLACK = 0, 1, 2


def dependency_values(node: Dict[str, Any]) -> List[Any]:
    """Return the node's raw dependency entries, or [] when absent or malformed."""
    deps = node.get("dependencies")
    return deps if isinstance(deps, list) else []


def same_value(left: Any, right: Any) -> bool:
    """Equality that keeps ``True`` distinct from ``1`` and ``"1"`` from ``1``."""
    return type(left) is type(right) and left == right


def _coerce_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit() and int(text) >= 1:
            return int(text)
    return None


def resolve_dependency(graph: TaskGraph, ref: NodeRef, value: Any) -> Optional[Address]:
    """
    Resolve one dependency entry of ``ref``.

    A bare id on a subtask matches a sibling subtask first and falls back
    to a top-level task. A dotted string such as ``"2.1"`` is an explicit
    subtask address and never goes through sibling matching.

    Args:
        graph: Graph the node belongs to
        ref: Node whose dependency is being resolved
        value: Raw dependency entry

    Returns:
        Address of the dependency target, or None when it does not resolve
    """
    if isinstance(value, str) and "." in value:
        try:
            address = parse_address(value)
        except InvalidAddress:
            return None
        return address if graph.get_node(address) is not None else None

    dep_id = _coerce_id(value)
    if dep_id is None:
        return None

    if ref.parent is not None:
        for sibling in subtasks_of(ref.parent):
            if sibling.get("id") == dep_id:
                return SubtaskAddress(ref.parent["id"], dep_id)

    if graph.get_task(dep_id) is not None:
        return TaskAddress(dep_id)
    return None


def iter_edges(graph: TaskGraph, ref: NodeRef) -> Iterator[Edge]:
    """Yield explicit edges in list order, then the implicit edge to the parent."""
    for value in dependency_values(ref.node):
        target = resolve_dependency(graph, ref, value)
        if target is not None:
            yield Edge(ref.address, target, value)
    if isinstance(ref.address, SubtaskAddress):
        yield Edge(ref.address, ref.address.parent)


def find_dangling_dependencies(graph: TaskGraph) -> List[DanglingDependency]:
    """Return every dependency entry that resolves to no node.

    Repeated entries of the same value on one node are reported once.
    """
    dangling: List[DanglingDependency] = []
    for ref in graph.iter_nodes():
        reported: List[Any] = []
        for value in dependency_values(ref.node):
            if resolve_dependency(graph, ref, value) is not None:
                continue
            if any(same_value(value, seen) for seen in reported):
                continue
            reported.append(value)
            dangling.append(DanglingDependency(ref.address, value))
    return dangling


def find_cycles(graph: TaskGraph) -> List[DependencyCycle]:
    """
    Find dependency cycles with an iterative three-colour depth-first search.

    Roots are visited in document order. Every time the traversal reaches a
    node that is still in progress, the path from that node back to itself
    is captured along with the edges walked, the last of which closes the
    cycle. A self-dependency yields a cycle of length one.

    Returns:
        Cycles in detection order; empty for an acyclic graph
    """
    refs: Dict[Address, NodeRef] = {ref.address: ref for ref in graph.iter_nodes()}
    color: Dict[Address, int] = {}
    cycles: List[DependencyCycle] = []

    for root in refs:
        if color.get(root, _WHITE) != _WHITE:
            continue

        color[root] = _GRAY
        path: List[Address] = [root]
        path_edges: List[Edge] = []
        position: Dict[Address, int] = {root: 0}
        stack = [iter(list(iter_edges(graph, refs[root])))]

        while stack:
            edge = next(stack[-1], None)
            if edge is None:
                stack.pop()
                finished = path.pop()
                del position[finished]
                color[finished] = _BLACK
                if path_edges:
                    path_edges.pop()
                continue

            state = color.get(edge.target, _WHITE)
            if state == _WHITE:
                color[edge.target] = _GRAY
                position[edge.target] = len(path)
                path.append(edge.target)
                path_edges.append(edge)
                stack.append(iter(list(iter_edges(graph, refs[edge.target]))))
            elif state == _GRAY:
                start = position[edge.target]
                cycles.append(
                    DependencyCycle(
                        path=tuple(path[start:]),
                        edges=tuple(path_edges[start:]) + (edge,),
                    )
                )

    return cycles


def is_reachable(graph: TaskGraph, starts: Iterable[Address], target: Address) -> bool:
    """True when ``target`` can be reached from any of ``starts`` along dependency edges."""
    pending = [start for start in starts]
    visited = set()
    while pending:
        address = pending.pop()
        if address == target:
            return True
        if address in visited:
            continue
        visited.add(address)
        ref = graph.get_node(address)
        if ref is None:
            continue
        for edge in iter_edges(graph, ref):
            if edge.target not in visited:
                pending.append(edge.target)
    return False


def closes_cycle(graph: TaskGraph, ref: NodeRef) -> bool:
    """True when ``ref`` can reach itself along dependency edges."""
    return is_reachable(graph, [edge.target for edge in iter_edges(graph, ref)], ref.address)


def shadowed_references(graph: TaskGraph, parent: Dict[str, Any], subtask_id: int) -> List[str]:
    """
    Describe sibling dependencies that a new subtask id would capture.

    A bare id on a subtask resolves to a sibling before a task, so giving a
    new subtask the id N redirects every sibling entry that meant task N.
    Call this before the new subtask is attached.
    """
    notes: List[str] = []
    for sibling in subtasks_of(parent):
        ref = NodeRef(SubtaskAddress(parent["id"], sibling["id"]), sibling, parent)
        for value in dependency_values(sibling):
            if resolve_dependency(graph, ref, value) == TaskAddress(subtask_id):
                notes.append(
                    f"Dependency {value} of subtask {ref.address} now refers to subtask "
                    f"{parent['id']}.{subtask_id} instead of task {subtask_id}"
                )
    return notes


def validate_graph(graph: TaskGraph) -> ValidationResult:
    """
    Validate a task graph and return structured diagnostics.

    Findings are returned as data; nothing is raised for dangling
    references or cycles.

    Args:
        graph: Loaded task graph

    Returns:
        ValidationResult with all diagnostics
    """
    result = ValidationResult(is_valid=True)

    _validate_fields(graph, result)
    _validate_parent_links(graph, result)
    _validate_dangling(graph, result)
    _validate_cycles(graph, result)
    _validate_completion(graph, result)

    # Count diagnostics by severity
    for diag in result.diagnostics:
        if diag.severity == "error":
            result.error_count += 1
        elif diag.severity == "warning":
            result.warning_count += 1
        else:
            result.info_count += 1

    result.is_valid = result.error_count == 0
    return result


def _validate_fields(graph: TaskGraph, result: ValidationResult) -> None:
    for ref in graph.iter_nodes():
        node = ref.node
        location = str(ref.address)

        if "status" in node and normalize_status(node["status"]) is None:
            result.diagnostics.append(
                Diagnostic(
                    code="INVALID_STATUS",
                    message=f"'{location}' has unknown status {node['status']!r}",
                    severity="warning",
                    category="status",
                    location=location,
                    suggested_fix="Run 'taskgraph set-status' with a valid status",
                )
            )

        if "priority" in node and normalize_priority(node["priority"]) is None:
            result.diagnostics.append(
                Diagnostic(
                    code="INVALID_PRIORITY",
                    message=f"'{location}' has unknown priority {node['priority']!r}",
                    severity="warning",
                    category="priority",
                    location=location,
                    suggested_fix="Use high, medium or low",
                )
            )

        if "dependencies" in node and not isinstance(node["dependencies"], list):
            result.diagnostics.append(
                Diagnostic(
                    code="INVALID_DEPENDENCIES",
                    message=f"'{location}' dependencies field is not a list",
                    severity="warning",
                    category="structure",
                    location=location,
                )
            )


def _validate_parent_links(graph: TaskGraph, result: ValidationResult) -> None:
    for task in graph.tasks:
        for subtask in subtasks_of(task):
            if "parentTaskId" not in subtask:
                continue
            if same_value(subtask["parentTaskId"], task["id"]):
                continue
            location = f"{task['id']}.{subtask['id']}"
            result.diagnostics.append(
                Diagnostic(
                    code="PARENT_MISMATCH",
                    message=(
                        f"Subtask '{location}' has parentTaskId {subtask['parentTaskId']!r} "
                        f"but is owned by task {task['id']}"
                    ),
                    severity="error",
                    category="structure",
                    location=location,
                    suggested_fix="Realign parentTaskId with the owning task",
                    auto_fixable=True,
                )
            )


def _validate_dangling(graph: TaskGraph, result: ValidationResult) -> None:
    for finding in find_dangling_dependencies(graph):
        location = str(finding.address)
        result.diagnostics.append(
            Diagnostic(
                code="DANGLING_DEPENDENCY",
                message=f"'{location}' depends on {finding.value!r}, which does not exist",
                severity="error",
                category="dependency",
                location=location,
                suggested_fix="Remove the dependency",
                auto_fixable=True,
            )
        )


def _validate_cycles(graph: TaskGraph, result: ValidationResult) -> None:
    for cycle in find_cycles(graph):
        members = cycle.members()
        closing = cycle.closing_edge
        result.diagnostics.append(
            Diagnostic(
                code="CYCLIC_DEPENDENCY",
                message="Dependency cycle: " + " -> ".join(members + [members[0]]),
                severity="error",
                category="dependency",
                location=str(closing.source),
                suggested_fix=f"Remove the dependency of '{closing.source}' on '{closing.target}'",
                auto_fixable=True,
            )
        )


def _validate_completion(graph: TaskGraph, result: ValidationResult) -> None:
    for task in graph.tasks:
        subtasks = subtasks_of(task)
        if not subtasks or not is_done(task):
            continue
        open_ids = [str(subtask["id"]) for subtask in subtasks if not is_done(subtask)]
        if open_ids:
            result.diagnostics.append(
                Diagnostic(
                    code="INCOMPLETE_SUBTASKS",
                    message=(
                        f"Task {task['id']} is done but subtasks "
                        f"{', '.join(open_ids)} are not"
                    ),
                    severity="warning",
                    category="status",
                    location=str(task["id"]),
                    suggested_fix=f"Run 'taskgraph set-status {task['id']} done' to cascade",
                )
            )
