"""
Response builder functions for engine commands.

Provides success_response() and error_response(), the two constructors
for creating standardized ToolResponse objects.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from taskgraph.core.responses.types import (
    ErrorCode,
    ErrorType,
    ToolResponse,
    _build_meta,
)


def success_response(
    data: Optional[Mapping[str, Any]] = None,
    *,
    warnings: Optional[Sequence[str]] = None,
) -> ToolResponse:
    """Create a standardized success response.

    Args:
        data: Optional mapping used as the payload.
        warnings: Non-fatal issues to surface in ``meta.warnings`` (string array).

    Example:
        >>> success_response({"address": "6"}, warnings=["Dependency 99 does not exist"])
    """
    payload: Dict[str, Any] = {}
    if data:
        payload.update(dict(data))

    return ToolResponse(success=True, data=payload, error=None, meta=_build_meta(warnings=warnings))


def error_response(
    message: str,
    *,
    error_code: Optional[Union[ErrorCode, str]] = None,
    error_type: Optional[Union[ErrorType, str]] = None,
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
) -> ToolResponse:
    """Create a standardized error response.

    Args:
        message: Human-readable description of the failure.
        error_code: Canonical error code (use ``ErrorCode`` enum or string,
            e.g., ``ErrorCode.NOT_FOUND`` or ``"NOT_FOUND"``).
        error_type: Error category for routing (use ``ErrorType`` enum or string,
            e.g., ``ErrorType.NOT_FOUND`` or ``"not_found"``).
        remediation: User-facing guidance on how to fix the issue.
        details: Nested structure describing validation failures or metadata.

    Example:
        >>> error_response(
        ...     "Task 42 not found",
        ...     error_code=ErrorCode.NOT_FOUND,
        ...     error_type=ErrorType.NOT_FOUND,
        ...     remediation="Run 'taskgraph list' to see existing task ids",
        ... )
    """
    code: Union[ErrorCode, str] = error_code if error_code is not None else ErrorCode.INTERNAL_ERROR
    kind: Union[ErrorType, str] = error_type if error_type is not None else ErrorType.INTERNAL

    payload: Dict[str, Any] = {
        "error_code": code.value if isinstance(code, Enum) else code,
        "error_type": kind.value if isinstance(kind, Enum) else kind,
    }
    if remediation is not None:
        payload["remediation"] = remediation
    if details:
        payload["details"] = dict(details)

    return ToolResponse(success=False, data=payload, error=message, meta=_build_meta())
