"""Core graph and task operations for taskgraph."""

from taskgraph.core.store import (
    load_graph,
    new_graph,
    save_graph,
)

from taskgraph.core.task import (
    select_next,
    set_status,
)

from taskgraph.core.validation import (
    repair_graph,
    validate_graph,
)

__all__ = [
    "load_graph",
    "new_graph",
    "save_graph",
    "select_next",
    "set_status",
    "repair_graph",
    "validate_graph",
]
