"""Commands that ingest content from the text-completion service."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from taskgraph.cli.logging import cli_command, get_cli_logger
from taskgraph.cli.output import emit_error, emit_success
from taskgraph.cli.registry import get_context
from taskgraph.core.address import parse_task_id
from taskgraph.core.constants import is_done
from taskgraph.core.errors import (
    GenerationError,
    StoreNotFound,
    TaskAlreadyDone,
    TaskGraphError,
    lookup_error,
)
from taskgraph.core.generation import (
    ContentGenerator,
    apply_task_updates,
    build_generator,
    expand_candidates,
    ingest_subtasks,
    ingest_tasks,
    update_candidates,
)
from taskgraph.core.responses import ErrorCode, ErrorType
from taskgraph.core.store import TaskGraph, new_graph

logger = get_cli_logger()


@click.command("parse-brief")
@click.argument("brief_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--num-tasks",
    "-n",
    type=click.IntRange(min=1),
    default=10,
    show_default=True,
    help="Number of tasks to ask for.",
)
@click.pass_context
@cli_command("parse-brief")
def parse_brief_cmd(ctx: click.Context, brief_file: Path, num_tasks: int) -> None:
    """Generate tasks from the requirements document BRIEF_FILE.

    New tasks are appended after any existing ones. The tasks file is
    created when it does not exist yet.
    """
    cli_ctx = get_context(ctx)

    try:
        brief = brief_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        emit_error(
            f"Could not read {brief_file}: {e}",
            code=ErrorCode.IO_ERROR,
            error_type=ErrorType.INTERNAL,
            details={"brief_file": str(brief_file)},
        )
    if not brief.strip():
        emit_error(
            f"Brief file is empty: {brief_file}",
            code=ErrorCode.VALIDATION_ERROR,
            error_type=ErrorType.VALIDATION,
        )

    try:
        graph = cli_ctx.load()
    except StoreNotFound:
        logger.info("Creating new tasks file at %s", cli_ctx.tasks_file)
        graph = new_graph(cli_ctx.config.project_name)

    generator = build_generator(cli_ctx.config.generator)
    records = generator.generate_tasks(brief, num_tasks, {"source": brief_file.name})
    result = ingest_tasks(graph, records)

    cli_ctx.save(graph)
    emit_success(result.to_dict(), warnings=result.warnings)


@click.command("update")
@click.option(
    "--from",
    "from_id",
    default="1",
    show_default=True,
    help="Lowest task id to regenerate.",
)
@click.option("--prompt", required=True, help="Change in direction the tasks should reflect.")
@click.pass_context
@cli_command("update")
def update_cmd(ctx: click.Context, from_id: str, prompt: str) -> None:
    """Regenerate the content of open tasks from --from onward.

    Ids, statuses, dependencies and subtasks are kept. Only title,
    description, details, test strategy and priority are rewritten.
    """
    cli_ctx = get_context(ctx)
    if not prompt.strip():
        emit_error(
            "Prompt must not be empty",
            code=ErrorCode.MISSING_REQUIRED,
            error_type=ErrorType.VALIDATION,
        )

    start = parse_task_id(from_id)
    graph = cli_ctx.load()
    candidates = update_candidates(graph, start)
    if not candidates:
        logger.info("No tasks to update from id %s", start)
        emit_success(
            {"from": start, "count": 0, "addresses": [], "nodes": []},
            warnings=[f"No tasks to update: every task from id {start} is done or absent"],
        )
        return

    generator = build_generator(cli_ctx.config.generator)
    records = generator.update_tasks(candidates, prompt)
    result = apply_task_updates(graph, records, [task["id"] for task in candidates])

    cli_ctx.save(graph)
    emit_success({"from": start, **result.to_dict()}, warnings=result.warnings)


def _expand_one(
    graph: TaskGraph,
    generator: ContentGenerator,
    task: Dict[str, Any],
    count: int,
    additional_context: str,
    force: bool,
) -> Dict[str, Any]:
    """Generate and attach subtasks for one task, restoring cleared ones on failure."""
    if is_done(task):
        raise TaskAlreadyDone(task["id"], task.get("status", "done"))

    start_id = 1 if force else graph.next_subtask_id(task)
    records = generator.generate_subtasks(
        task,
        count,
        start_id=start_id,
        additional_context=additional_context,
    )

    previous = task.pop("subtasks", None) if force else None
    try:
        result = ingest_subtasks(graph, task["id"], records)
    except TaskGraphError:
        if previous is not None:
            task["subtasks"] = previous
        raise
    if previous:
        result.warnings.insert(0, f"Cleared {len(previous)} existing subtask(s) of task {task['id']}")
    return {"task_id": task["id"], "warnings": result.warnings, **result.to_dict()}


@click.command("expand")
@click.argument("task_id", required=False)
@click.option("--all", "expand_all", is_flag=True, help="Expand every open task without subtasks.")
@click.option("--force", is_flag=True, help="Replace existing subtasks instead of appending.")
@click.option(
    "--num",
    "-n",
    type=click.IntRange(min=1),
    help="Number of subtasks to ask for (default: config default_subtasks).",
)
@click.option("--context", "additional_context", default="", help="Extra guidance for the generator.")
@click.pass_context
@cli_command("expand")
def expand_cmd(
    ctx: click.Context,
    task_id: Optional[str],
    expand_all: bool,
    force: bool,
    num: Optional[int],
    additional_context: str,
) -> None:
    """Generate subtasks for TASK_ID, or for every eligible task with --all.

    With --all, open tasks that already own subtasks are skipped unless
    --force is given. A task that fails is reported and the rest are
    still expanded.
    """
    cli_ctx = get_context(ctx)
    if (task_id is None) == (not expand_all):
        emit_error(
            "Give either TASK_ID or --all",
            code=ErrorCode.MISSING_REQUIRED if task_id is None else ErrorCode.VALIDATION_ERROR,
            error_type=ErrorType.VALIDATION,
        )

    graph = cli_ctx.load()
    count = num or cli_ctx.config.default_subtasks
    generator = build_generator(cli_ctx.config.generator)

    if task_id is not None:
        task = graph.require_task(parse_task_id(task_id))
        outcome = _expand_one(graph, generator, task, count, additional_context, force)
        cli_ctx.save(graph)
        warnings = outcome.pop("warnings")
        emit_success(outcome, warnings=warnings)
        return

    candidates = expand_candidates(graph, force)
    if not candidates:
        logger.info("No tasks to expand in %s", cli_ctx.tasks_file)
        emit_success(
            {"expanded": [], "failed": []},
            warnings=["No open tasks to expand" if force else "No open tasks without subtasks to expand"],
        )
        return

    expanded: List[Dict[str, Any]] = []
    failed: List[Dict[str, Any]] = []
    warnings: List[str] = []
    for task in candidates:
        try:
            outcome = _expand_one(graph, generator, task, count, additional_context, force)
        except (GenerationError, TaskGraphError) as e:
            logger.warning("Expanding task %s failed: %s", task["id"], e)
            mapping = lookup_error(e)
            failed.append(
                {
                    "task_id": task["id"],
                    "error_code": mapping[0].value if mapping else ErrorCode.INTERNAL_ERROR.value,
                    "error": str(e),
                }
            )
            continue
        warnings.extend(outcome.pop("warnings"))
        expanded.append(outcome)

    if not expanded:
        emit_error(
            f"Expansion failed for all {len(failed)} task(s)",
            code=ErrorCode.GENERATOR_ERROR,
            error_type=ErrorType.GENERATOR,
            details={"failed": failed},
        )

    cli_ctx.save(graph)
    emit_success({"expanded": expanded, "failed": failed}, warnings=warnings)
