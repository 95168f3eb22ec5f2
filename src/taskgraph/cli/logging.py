"""Logging helpers for CLI commands."""

import functools
import logging
import time
from typing import Any, Callable, TypeVar

import click

from taskgraph.cli.output import emit_error, emit_payload
from taskgraph.core.errors import error_to_response
from taskgraph.core.responses import ErrorCode, ErrorType

T = TypeVar("T")


def get_cli_logger() -> logging.Logger:
    return logging.getLogger("taskgraph.cli")


def cli_command(name: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Wrap a command body with timing logs and engine error translation.

    Known engine errors become an error envelope with the mapped code;
    anything else becomes INTERNAL_ERROR. Click's own exit and usage
    exceptions pass through untouched.
    """
    logger = get_cli_logger()

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            start = time.perf_counter()
            logger.debug("Running command %s", name)
            try:
                result = func(*args, **kwargs)
            except (click.ClickException, click.exceptions.Exit, click.Abort):
                raise
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                payload = error_to_response(e)
                if payload is not None:
                    logger.info("Command %s failed after %.1fms: %s", name, elapsed, e)
                    emit_payload(payload)
                logger.exception("Command %s crashed after %.1fms", name, elapsed)
                emit_error(
                    f"Unexpected error in '{name}': {e}",
                    code=ErrorCode.INTERNAL_ERROR,
                    error_type=ErrorType.INTERNAL,
                    details={"exception": type(e).__name__},
                )
            logger.debug("Command %s finished in %.1fms", name, (time.perf_counter() - start) * 1000)
            return result

        return wrapper

    return decorator
