"""Commands that create, check and repair the tasks document."""

import copy
from dataclasses import asdict
from typing import Optional

import click

from taskgraph.cli.logging import cli_command, get_cli_logger
from taskgraph.cli.output import emit_error, emit_success
from taskgraph.cli.registry import get_context
from taskgraph.core.responses import ErrorCode, ErrorType
from taskgraph.core.store import TaskGraph, new_graph
from taskgraph.core.validation import repair_graph, validate_graph

logger = get_cli_logger()


@click.command("init")
@click.option("--project-name", help="Project name stored in the document meta.")
@click.option("--force", is_flag=True, help="Overwrite an existing tasks file.")
@click.pass_context
@cli_command("init")
def init_cmd(ctx: click.Context, project_name: Optional[str], force: bool) -> None:
    """Create an empty tasks document."""
    cli_ctx = get_context(ctx)
    target = cli_ctx.tasks_file

    if target.exists() and not force:
        emit_error(
            f"Tasks file already exists: {target}",
            code=ErrorCode.CONFLICT,
            error_type=ErrorType.CONFLICT,
            remediation="Pass --force to overwrite it",
            details={"tasks_file": str(target)},
        )

    name = project_name or cli_ctx.config.project_name
    path = cli_ctx.save(new_graph(name))
    emit_success({"tasks_file": str(path), "project_name": name})


@click.command("validate")
@click.pass_context
@cli_command("validate")
def validate_cmd(ctx: click.Context) -> None:
    """Report dangling references, cycles and other integrity findings.

    Findings are reported as data; the command only fails when the tasks
    file cannot be read.
    """
    graph = get_context(ctx).load()
    result = validate_graph(graph)
    emit_success(asdict(result))


@click.command("repair")
@click.option("--dry-run", is_flag=True, help="Report the edits without saving them.")
@click.pass_context
@cli_command("repair")
def repair_cmd(ctx: click.Context, dry_run: bool) -> None:
    """Remove dangling dependencies and break dependency cycles."""
    cli_ctx = get_context(ctx)
    graph = cli_ctx.load()
    if dry_run:
        graph = TaskGraph(copy.deepcopy(graph.document), graph.path)

    report = repair_graph(graph)
    saved = False
    if report.changed and not dry_run:
        cli_ctx.save(graph)
        saved = True
    elif not report.changed:
        logger.info("Tasks file is already consistent")

    emit_success(
        {
            "changes": [asdict(change) for change in report.changes],
            "counts": report.counts(),
            "dry_run": dry_run,
            "saved": saved,
        }
    )
