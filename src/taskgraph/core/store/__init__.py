"""Graph store: in-memory task graph plus load/save of the tasks document."""

from taskgraph.core.store.graph import NodeRef, TaskGraph, new_graph, subtasks_of
from taskgraph.core.store.io import load_graph, save_graph

__all__ = [
    "NodeRef",
    "TaskGraph",
    "load_graph",
    "new_graph",
    "save_graph",
    "subtasks_of",
]
