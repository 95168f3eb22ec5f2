"""Status update command."""

import click

from taskgraph.cli.logging import cli_command, get_cli_logger
from taskgraph.cli.output import emit_error, emit_success
from taskgraph.cli.registry import get_context
from taskgraph.core.responses import ErrorCode, ErrorType
from taskgraph.core.task import set_status_batch

logger = get_cli_logger()


@click.command("set-status")
@click.argument("addresses")
@click.argument("status")
@click.pass_context
@cli_command("set-status")
def set_status_cmd(ctx: click.Context, addresses: str, status: str) -> None:
    """Set STATUS on each comma-separated id in ADDRESSES.

    Marking a task done also marks its subtasks done. Items that fail are
    reported individually and do not stop the rest of the batch.
    """
    cli_ctx = get_context(ctx)
    graph = cli_ctx.load()
    result = set_status_batch(graph, addresses, status)

    if result.changed:
        cli_ctx.save(graph)
        logger.info("Set %d item(s) to %s", len(result.succeeded), result.status)

    if not result.succeeded:
        first = result.failed[0] if result.failed else None
        code = first.error_code if first is not None and first.error_code else ErrorCode.VALIDATION_ERROR
        emit_error(
            f"No status was updated: {first.error if first is not None else 'no ids given'}",
            code=code,
            error_type=ErrorType.NOT_FOUND if code == ErrorCode.NOT_FOUND else ErrorType.VALIDATION,
            remediation="Run 'taskgraph list --with-subtasks' to see existing ids",
            details=result.to_dict(),
        )

    warnings = [f"{item.address}: {item.error}" for item in result.failed]
    for item in result.succeeded:
        if item.update is not None and item.update.parent_eligible:
            warnings.append(
                f"All subtasks of task {item.update.parent_id} are done; "
                f"consider marking task {item.update.parent_id} done"
            )
    emit_success(result.to_dict(), warnings=warnings)
