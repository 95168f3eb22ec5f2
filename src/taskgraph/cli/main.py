"""Root click group for the taskgraph command line."""

from pathlib import Path
from typing import Optional

import click

from taskgraph import __version__
from taskgraph.cli.commands import (
    add_subtask_cmd,
    add_task_cmd,
    clear_subtasks_cmd,
    expand_cmd,
    init_cmd,
    list_cmd,
    next_cmd,
    parse_brief_cmd,
    remove_subtask_cmd,
    repair_cmd,
    set_status_cmd,
    show_cmd,
    update_cmd,
    validate_cmd,
)
from taskgraph.cli.registry import CLIContext, set_context
from taskgraph.config import TaskGraphConfig, set_config


@click.group()
@click.option(
    "--tasks-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Tasks document to operate on (default: tasks/tasks.json).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Log level for messages written to stderr.",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    help="TOML config file (default: taskgraph.toml in the working directory).",
)
@click.version_option(__version__, prog_name="taskgraph")
@click.pass_context
def cli(
    ctx: click.Context,
    tasks_file: Optional[Path],
    log_level: Optional[str],
    config_file: Optional[str],
) -> None:
    """Manage a project's task dependency graph."""
    config = TaskGraphConfig.from_env(config_file)
    if tasks_file is not None:
        config.tasks_file = tasks_file
    if log_level:
        config.log_level = log_level.upper()
    config.setup_logging()
    set_config(config)
    set_context(ctx, CLIContext(config=config))


for _command in (
    init_cmd,
    validate_cmd,
    repair_cmd,
    set_status_cmd,
    add_task_cmd,
    add_subtask_cmd,
    remove_subtask_cmd,
    clear_subtasks_cmd,
    next_cmd,
    list_cmd,
    show_cmd,
    parse_brief_cmd,
    expand_cmd,
    update_cmd,
):
    cli.add_command(_command)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
