"""Validation data models for task graphs."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from taskgraph.core.address import Address


@dataclass
class Diagnostic:
    """
    Structured diagnostic for command consumption.

    Provides a machine-readable format for validation findings
    that can be easily processed by callers.
    """

    code: str  # Diagnostic code (e.g., "DANGLING_DEPENDENCY", "INVALID_STATUS")
    message: str  # Human-readable description
    severity: str  # "error", "warning", "info"
    category: str  # Category for grouping (e.g., "dependency", "status", "structure")
    location: Optional[str] = None  # Address where the issue occurred
    suggested_fix: Optional[str] = None  # Suggested fix description
    auto_fixable: bool = False  # Whether repair_graph() handles it


@dataclass
class ValidationResult:
    """
    Complete validation result for a task graph.
    """

    is_valid: bool
    diagnostics: List[Diagnostic] = field(default_factory=list)
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0


@dataclass(frozen=True)
class Edge:
    """A dependency edge ``source -> target``.

    ``value`` is the raw dependency entry for explicit edges and None for
    the implicit subtask-to-parent edge.
    """

    source: Address
    target: Address
    value: Any = None

    @property
    def implicit(self) -> bool:
        return self.value is None


@dataclass
class DanglingDependency:
    """A dependency value on ``address`` that resolves to no node."""

    address: Address
    value: Any


@dataclass
class DependencyCycle:
    """
    A cycle found by depth-first traversal.

    Attributes:
        path: Addresses from the re-entered node around to the node whose
            edge closes the cycle
        edges: Edges traversed along the cycle, in detection order; the last
            one is the closing edge
    """

    path: Tuple[Address, ...]
    edges: Tuple[Edge, ...]

    @property
    def closing_edge(self) -> Edge:
        return self.edges[-1]

    def members(self) -> List[str]:
        return [str(address) for address in self.path]


@dataclass
class RepairChange:
    """One edit applied by the repairer."""

    address: str
    value: Any
    reason: str  # "dangling", "cyclic" or "parent_mismatch"


@dataclass
class RepairReport:
    """
    Outcome of a repair pass.
    """

    changes: List[RepairChange] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes)

    def counts(self) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for change in self.changes:
            totals[change.reason] = totals.get(change.reason, 0) + 1
        return totals
