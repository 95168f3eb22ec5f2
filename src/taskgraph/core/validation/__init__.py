"""
Integrity validation for task graphs.
Provides dangling-reference and cycle detection, structured diagnostics,
and in-place repair.
"""

from taskgraph.core.validation.fixes import repair_graph
from taskgraph.core.validation.models import (
    DanglingDependency,
    DependencyCycle,
    Diagnostic,
    Edge,
    RepairChange,
    RepairReport,
    ValidationResult,
)
from taskgraph.core.validation.rules import (
    closes_cycle,
    dependency_values,
    find_cycles,
    find_dangling_dependencies,
    is_reachable,
    iter_edges,
    resolve_dependency,
    shadowed_references,
    validate_graph,
)

__all__ = [
    # Models
    "DanglingDependency",
    "DependencyCycle",
    "Diagnostic",
    "Edge",
    "RepairChange",
    "RepairReport",
    "ValidationResult",
    # Functions
    "closes_cycle",
    "dependency_values",
    "find_cycles",
    "find_dangling_dependencies",
    "is_reachable",
    "iter_edges",
    "repair_graph",
    "resolve_dependency",
    "shadowed_references",
    "validate_graph",
]
