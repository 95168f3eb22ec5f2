"""
Core types for command response contracts.

Defines the fundamental building blocks: error codes, error types,
the standard ToolResponse dataclass, and the internal _build_meta() helper.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence


class ErrorCode(str, Enum):
    """Machine-readable error codes for command responses.

    Codes follow SCREAMING_SNAKE_CASE convention.

    Categories:
        - Validation (input errors)
        - Resource (not found, conflict)
        - System (internal, unavailable)
    """

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_STATUS = "INVALID_STATUS"
    MISSING_REQUIRED = "MISSING_REQUIRED"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    SELF_REFERENCE = "SELF_REFERENCE"
    ALREADY_SUBTASK = "ALREADY_SUBTASK"
    CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"
    NESTED_SUBTASKS = "NESTED_SUBTASKS"
    TASK_ALREADY_DONE = "TASK_ALREADY_DONE"

    # System errors
    CORRUPT_STORE = "CORRUPT_STORE"
    STORE_LOCKED = "STORE_LOCKED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    IO_ERROR = "IO_ERROR"

    # Content generator errors
    GENERATOR_ERROR = "GENERATOR_ERROR"
    GENERATOR_TIMEOUT = "GENERATOR_TIMEOUT"
    GENERATOR_INVALID_OUTPUT = "GENERATOR_INVALID_OUTPUT"


class ErrorType(str, Enum):
    """Error categories for routing and client-side handling.

    Each type corresponds to an HTTP status code analog and indicates
    whether the operation should be retried.
    """

    VALIDATION = "validation"  # 400 - No retry, fix input
    NOT_FOUND = "not_found"  # 404 - No retry
    CONFLICT = "conflict"  # 409 - Maybe retry, check state
    INTERNAL = "internal"  # 500 - Yes, with backoff
    UNAVAILABLE = "unavailable"  # 503 - Yes, with backoff
    GENERATOR = "generator"  # Content generator - Retry varies by error


@dataclass
class ToolResponse:
    """
    Standard response structure for engine commands.

    Attributes:
        success: Whether the operation completed successfully
        data: The primary payload (operation-specific structured data)
        error: Error message if success is False, None otherwise
        meta: Response metadata including version identifier
    """

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=lambda: {"version": "response-v2"})


def _build_meta(*, warnings: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """Construct a metadata payload that always includes the response version."""
    meta: Dict[str, Any] = {"version": "response-v2"}
    if warnings:
        meta["warnings"] = list(warnings)
    return meta
