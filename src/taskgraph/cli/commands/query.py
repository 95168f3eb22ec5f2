"""Read-only commands: next, list and show."""

from typing import Any, Dict, Optional

import click

from taskgraph.cli.logging import cli_command, get_cli_logger
from taskgraph.cli.output import emit_success
from taskgraph.cli.registry import get_context
from taskgraph.core.constants import VALID_STATUSES
from taskgraph.core.task import list_nodes, node_view, progress_summary, select_next

logger = get_cli_logger()


@click.command("next")
@click.pass_context
@cli_command("next")
def next_cmd(ctx: click.Context) -> None:
    """Show the next task or subtask to work on."""
    cli_ctx = get_context(ctx)
    graph = cli_ctx.load()
    ref = select_next(graph)
    if ref is None:
        logger.info("No eligible task in %s", cli_ctx.tasks_file)
        emit_success(
            {"next": None},
            warnings=["No eligible task: everything is done or waiting on dependencies"],
        )
        return
    emit_success({"next": node_view(graph, ref, detailed=True)})


@click.command("list")
@click.option(
    "--status",
    "-s",
    help=f"Only tasks with this status ({', '.join(VALID_STATUSES)}).",
)
@click.option("--with-subtasks", is_flag=True, help="Nest subtasks under their tasks.")
@click.option("--summary", is_flag=True, help="Include progress statistics.")
@click.pass_context
@cli_command("list")
def list_cmd(
    ctx: click.Context,
    status: Optional[str],
    with_subtasks: bool,
    summary: bool,
) -> None:
    """List tasks in document order."""
    graph = get_context(ctx).load()
    tasks = list_nodes(graph, status=status, with_subtasks=with_subtasks)

    data: Dict[str, Any] = {"count": len(tasks), "tasks": tasks}
    if status is not None:
        data["filter"] = {"status": status}
    if summary:
        data["summary"] = progress_summary(graph)
    emit_success(data)


@click.command("show")
@click.argument("address")
@click.pass_context
@cli_command("show")
def show_cmd(ctx: click.Context, address: str) -> None:
    """Show one task ('5') or subtask ('5.2') in detail."""
    graph = get_context(ctx).load()
    ref = graph.require_node(address)
    emit_success({"node": node_view(graph, ref, detailed=True)})
