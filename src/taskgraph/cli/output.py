"""JSON envelope output for CLI commands."""

import json
import sys
from dataclasses import asdict
from typing import Any, Dict, Mapping, NoReturn, Optional, Sequence, Union

import click

from taskgraph.core.responses import ErrorCode, ErrorType, error_response, success_response


def _echo(payload: Mapping[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def emit_success(
    data: Optional[Mapping[str, Any]] = None,
    *,
    warnings: Optional[Sequence[str]] = None,
) -> None:
    """Print a success envelope."""
    _echo(asdict(success_response(data, warnings=warnings or None)))


def emit_payload(payload: Dict[str, Any]) -> NoReturn:
    """Print a prebuilt error envelope and exit with status 1."""
    _echo(payload)
    sys.exit(1)


def emit_error(
    message: str,
    *,
    code: Union[ErrorCode, str] = ErrorCode.INTERNAL_ERROR,
    error_type: Union[ErrorType, str] = ErrorType.INTERNAL,
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
) -> NoReturn:
    """Print an error envelope and exit with status 1.

    Args:
        message: Human-readable description of the failure
        code: Machine-readable error code
        error_type: Error category
        remediation: Guidance on how to fix the issue
        details: Extra machine-readable context
    """
    response = error_response(
        message,
        error_code=code,
        error_type=error_type,
        remediation=remediation,
        details=details,
    )
    emit_payload(asdict(response))
