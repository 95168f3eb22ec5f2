"""Repair of dangling dependencies, dependency cycles and parent links."""

import logging
from typing import Any, Dict, List

from taskgraph.core.store.graph import TaskGraph, subtasks_of
from taskgraph.core.validation.models import (
    DependencyCycle,
    Edge,
    RepairChange,
    RepairReport,
)
from taskgraph.core.validation.rules import (
    dependency_values,
    find_cycles,
    find_dangling_dependencies,
    same_value,
)

logger = logging.getLogger(__name__)


def _remove_value(node: Dict[str, Any], value: Any) -> int:
    """Drop every occurrence of ``value`` from the node's dependencies."""
    deps = dependency_values(node)
    kept = [entry for entry in deps if not same_value(entry, value)]
    removed = len(deps) - len(kept)
    if removed:
        node["dependencies"] = kept
    return removed


def _edge_to_cut(cycle: DependencyCycle) -> Edge:
    """The closing edge, or the last explicit edge when the closing one is implicit."""
    for edge in reversed(cycle.edges):
        if not edge.implicit:
            return edge
    # Unreachable: implicit edges only point from subtask to task.
    return cycle.closing_edge


def _repair_dangling(graph: TaskGraph, changes: List[RepairChange]) -> None:
    for finding in find_dangling_dependencies(graph):
        ref = graph.get_node(finding.address)
        if ref is not None and _remove_value(ref.node, finding.value):
            changes.append(RepairChange(str(finding.address), finding.value, "dangling"))


def _repair_parent_links(graph: TaskGraph, changes: List[RepairChange]) -> None:
    for task in graph.tasks:
        for subtask in subtasks_of(task):
            if "parentTaskId" in subtask and not same_value(subtask["parentTaskId"], task["id"]):
                changes.append(
                    RepairChange(
                        f"{task['id']}.{subtask['id']}",
                        subtask["parentTaskId"],
                        "parent_mismatch",
                    )
                )
                subtask["parentTaskId"] = task["id"]


def _repair_cycles(graph: TaskGraph, changes: List[RepairChange]) -> None:
    cycles = find_cycles(graph)
    while cycles:
        for cycle in cycles:
            edge = _edge_to_cut(cycle)
            ref = graph.get_node(edge.source)
            # An earlier cut in this pass may already have broken the cycle.
            if ref is not None and _remove_value(ref.node, edge.value):
                changes.append(RepairChange(str(edge.source), edge.value, "cyclic"))
        cycles = find_cycles(graph)


def repair_graph(graph: TaskGraph) -> RepairReport:
    """
    Remove invalid edges in place and report what changed.

    Dangling dependency entries are removed first. Then each detected cycle
    loses the edge that closed it during detection, and detection repeats
    until the graph is acyclic. A ``parentTaskId`` that disagrees with the
    owning task is realigned. Nodes are never removed and nothing is
    persisted.

    Args:
        graph: Graph to repair

    Returns:
        RepairReport listing each (address, value, reason) edit; a second
        call on the same graph reports no changes
    """
    report = RepairReport()
    _repair_dangling(graph, report.changes)
    _repair_parent_links(graph, report.changes)
    _repair_cycles(graph, report.changes)

    if report.changed:
        logger.info("Repair applied %d change(s): %s", len(report.changes), report.counts())
    return report
