"""Structural edit commands: add, convert, remove and clear."""

from typing import Any, Dict, Optional

import click

from taskgraph.cli.logging import cli_command, get_cli_logger
from taskgraph.cli.output import emit_error, emit_success
from taskgraph.cli.registry import get_context
from taskgraph.core.address import split_address_list
from taskgraph.core.responses import ErrorCode, ErrorType
from taskgraph.core.task import (
    add_subtask,
    add_task,
    clear_subtasks,
    convert_task_to_subtask,
    remove_subtask,
)

logger = get_cli_logger()


def _text_fields(**fields: Optional[str]) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


@click.command("add-task")
@click.option("--title", required=True, help="Task title.")
@click.option("--description", help="One-line description.")
@click.option("--details", help="Implementation details.")
@click.option("--test-strategy", help="How the task will be verified.")
@click.option("--dependencies", "-d", help="Comma-separated ids of tasks this one depends on.")
@click.option(
    "--priority",
    "-p",
    default="medium",
    show_default=True,
    help="high, medium or low.",
)
@click.pass_context
@cli_command("add-task")
def add_task_cmd(
    ctx: click.Context,
    title: str,
    description: Optional[str],
    details: Optional[str],
    test_strategy: Optional[str],
    dependencies: Optional[str],
    priority: str,
) -> None:
    """Append a new top-level task."""
    cli_ctx = get_context(ctx)
    graph = cli_ctx.load()

    content = _text_fields(
        title=title,
        description=description,
        details=details,
        testStrategy=test_strategy,
    )
    edit = add_task(
        graph,
        content,
        dependencies=split_address_list(dependencies) if dependencies else (),
        priority=priority,
    )
    cli_ctx.save(graph)
    emit_success(edit.to_dict(), warnings=edit.warnings)


@click.command("add-subtask")
@click.argument("parent_id")
@click.option("--from-task", "existing_task_id", help="Convert this existing task into the subtask.")
@click.option("--title", help="Subtask title.")
@click.option("--description", help="One-line description.")
@click.option("--details", help="Implementation details.")
@click.option("--dependencies", "-d", help="Comma-separated ids of sibling subtasks or tasks.")
@click.option("--status", "-s", help="Initial status (default: pending).")
@click.option("--priority", "-p", help="high, medium or low (default: inherit from the parent).")
@click.pass_context
@cli_command("add-subtask")
def add_subtask_cmd(
    ctx: click.Context,
    parent_id: str,
    existing_task_id: Optional[str],
    title: Optional[str],
    description: Optional[str],
    details: Optional[str],
    dependencies: Optional[str],
    status: Optional[str],
    priority: Optional[str],
) -> None:
    """Add a subtask under PARENT_ID, or move an existing task there."""
    cli_ctx = get_context(ctx)

    if existing_task_id is None and not title:
        emit_error(
            "A subtask needs --title, or --from-task to convert an existing task",
            code=ErrorCode.MISSING_REQUIRED,
            error_type=ErrorType.VALIDATION,
            remediation="Pass --title TEXT or --from-task ID",
        )

    graph = cli_ctx.load()
    if existing_task_id is not None:
        edit = convert_task_to_subtask(graph, parent_id, existing_task_id)
    else:
        payload = _text_fields(
            title=title,
            description=description,
            details=details,
            status=status,
            priority=priority,
        )
        if dependencies:
            payload["dependencies"] = split_address_list(dependencies)
        edit = add_subtask(graph, parent_id, payload)

    cli_ctx.save(graph)
    emit_success(edit.to_dict(), warnings=edit.warnings)


@click.command("remove-subtask")
@click.argument("address")
@click.option("--convert", is_flag=True, help="Keep the subtask as a new top-level task.")
@click.pass_context
@cli_command("remove-subtask")
def remove_subtask_cmd(ctx: click.Context, address: str, convert: bool) -> None:
    """Remove the subtask at ADDRESS ('parentId.subtaskId')."""
    cli_ctx = get_context(ctx)
    graph = cli_ctx.load()

    edit = remove_subtask(graph, address, convert_to_task=convert)
    cli_ctx.save(graph)
    emit_success(
        {
            "removed": address.strip(),
            "converted": edit.to_dict() if edit is not None else None,
        }
    )


@click.command("clear-subtasks")
@click.argument("task_ids")
@click.pass_context
@cli_command("clear-subtasks")
def clear_subtasks_cmd(ctx: click.Context, task_ids: str) -> None:
    """Remove every subtask from each comma-separated id in TASK_IDS."""
    cli_ctx = get_context(ctx)
    graph = cli_ctx.load()

    results = clear_subtasks(graph, task_ids)
    succeeded = [item for item in results if item.success]
    failed = [item for item in results if not item.success]
    data = {"results": [item.to_dict() for item in results]}

    if not succeeded:
        code = failed[0].error_code if failed and failed[0].error_code else ErrorCode.VALIDATION_ERROR
        emit_error(
            "No subtasks were cleared",
            code=code,
            error_type=ErrorType.NOT_FOUND if code == ErrorCode.NOT_FOUND else ErrorType.VALIDATION,
            details=data,
        )

    if any(item.data.get("cleared") for item in succeeded):
        cli_ctx.save(graph)
    else:
        logger.info("No subtasks to clear; %s left unchanged", cli_ctx.tasks_file)
    emit_success(data, warnings=[f"{item.address}: {item.error}" for item in failed])
