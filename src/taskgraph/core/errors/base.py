"""Error-to-ErrorCode mapping registry.

Provides a centralized mapping from exception types to (ErrorCode, ErrorType) tuples,
enabling consistent error response generation across the codebase.

Usage:
    from taskgraph.core.errors.base import error_to_response

    try:
        do_something()
    except Exception as e:
        result = error_to_response(e)
        if result is not None:
            return result
        raise  # Unknown error, re-raise
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Type

from taskgraph.core.errors.generation import (
    GenerationError,
    GenerationTimeoutError,
    InvalidGeneratorOutput,
)
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
    TaskAlreadyDone,
)
from taskgraph.core.responses.types import (
    ErrorCode,
    ErrorType,
)

ERROR_MAPPINGS: Dict[Type[Exception], Tuple[ErrorCode, ErrorType]] = {
    # --- Address / lookup errors ---
    InvalidAddress: (ErrorCode.INVALID_ADDRESS, ErrorType.VALIDATION),
    InvalidStatus: (ErrorCode.INVALID_STATUS, ErrorType.VALIDATION),
    NotFound: (ErrorCode.NOT_FOUND, ErrorType.NOT_FOUND),
    StoreNotFound: (ErrorCode.NOT_FOUND, ErrorType.NOT_FOUND),
    # --- Store errors ---
    CorruptStore: (ErrorCode.CORRUPT_STORE, ErrorType.INTERNAL),
    StoreLocked: (ErrorCode.STORE_LOCKED, ErrorType.UNAVAILABLE),
    # --- Structural-edit preconditions ---
    SelfReference: (ErrorCode.SELF_REFERENCE, ErrorType.VALIDATION),
    AlreadySubtask: (ErrorCode.ALREADY_SUBTASK, ErrorType.CONFLICT),
    CircularConversion: (ErrorCode.CIRCULAR_DEPENDENCY, ErrorType.CONFLICT),
    CircularSubtask: (ErrorCode.CIRCULAR_DEPENDENCY, ErrorType.CONFLICT),
    NestedSubtasks: (ErrorCode.NESTED_SUBTASKS, ErrorType.CONFLICT),
    TaskAlreadyDone: (ErrorCode.TASK_ALREADY_DONE, ErrorType.CONFLICT),
    # --- Content generator errors ---
    GenerationError: (ErrorCode.GENERATOR_ERROR, ErrorType.GENERATOR),
    GenerationTimeoutError: (ErrorCode.GENERATOR_TIMEOUT, ErrorType.UNAVAILABLE),
    InvalidGeneratorOutput: (ErrorCode.GENERATOR_INVALID_OUTPUT, ErrorType.GENERATOR),
}

REMEDIATIONS: Dict[ErrorCode, str] = {
    ErrorCode.INVALID_ADDRESS: "Use 'taskId' or 'taskId.subtaskId' with positive integers",
    ErrorCode.INVALID_STATUS: "Use one of: pending, in-progress, done, deferred, blocked",
    ErrorCode.NOT_FOUND: "Run 'taskgraph list --with-subtasks' to see existing ids",
    ErrorCode.CORRUPT_STORE: "Fix the tasks file by hand or restore it from version control",
    ErrorCode.STORE_LOCKED: "Wait for the other taskgraph command to finish and retry",
    ErrorCode.CIRCULAR_DEPENDENCY: "Remove the dependency chain between the two tasks first",
    ErrorCode.NESTED_SUBTASKS: "Run 'taskgraph clear-subtasks' on the task before converting it",
    ErrorCode.GENERATOR_TIMEOUT: "Retry later or raise generator.timeout in the config file",
}


def lookup_error(exc: BaseException) -> Optional[Tuple[ErrorCode, ErrorType]]:
    """Find the mapping for ``exc``, walking its MRO so subclasses inherit codes."""
    for klass in type(exc).__mro__:
        mapping = ERROR_MAPPINGS.get(klass)
        if mapping is not None:
            return mapping
    return None


def error_to_response(exc: Exception) -> Optional[dict]:
    """Convert a known exception to a standard error_response dict, or None if unknown.

    Args:
        exc: The exception to convert.

    Returns:
        A dict suitable for the CLI envelope, or None if the exception type
        is not registered in ERROR_MAPPINGS.
    """
    mapping = lookup_error(exc)
    if mapping is None:
        return None

    from dataclasses import asdict

    from taskgraph.core.responses.builders import error_response

    code, error_type = mapping
    return asdict(
        error_response(
            str(exc),
            error_code=code,
            error_type=error_type,
            remediation=REMEDIATIONS.get(code),
        )
    )
