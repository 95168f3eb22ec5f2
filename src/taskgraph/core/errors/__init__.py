"""Unified error hierarchy for taskgraph.

All custom exception classes are defined in domain-specific modules within
this package. This __init__.py re-exports everything for convenient access.

Usage:
    from taskgraph.core.errors import NotFound, InvalidAddress

    # Registry helper
    from taskgraph.core.errors import error_to_response
"""

# --- Base / Registry ---
from taskgraph.core.errors.base import ERROR_MAPPINGS, error_to_response, lookup_error

# --- Content generator errors ---
from taskgraph.core.errors.generation import (
    GenerationError,
    GenerationTimeoutError,
    InvalidGeneratorOutput,
)

# --- Graph errors ---
from taskgraph.core.errors.graph import (
    AlreadySubtask,
    CircularConversion,
    CircularSubtask,
    CorruptStore,
    InvalidAddress,
    InvalidStatus,
    NestedSubtasks,
    NotFound,
    SelfReference,
    StoreLocked,
    StoreNotFound,
    StructuralEditError,
    TaskAlreadyDone,
    TaskGraphError,
)

__all__ = [
    # Registry
    "ERROR_MAPPINGS",
    "error_to_response",
    "lookup_error",
    # Graph
    "AlreadySubtask",
    "CircularConversion",
    "CircularSubtask",
    "CorruptStore",
    "InvalidAddress",
    "InvalidStatus",
    "NestedSubtasks",
    "NotFound",
    "SelfReference",
    "StoreLocked",
    "StoreNotFound",
    "StructuralEditError",
    "TaskAlreadyDone",
    "TaskGraphError",
    # Generation
    "GenerationError",
    "GenerationTimeoutError",
    "InvalidGeneratorOutput",
]
