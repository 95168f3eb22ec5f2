"""CLI commands.

Commands are grouped by concern: ``store`` (init, validate, repair),
``status``, ``edit`` (structural edits), ``query`` (read-only views) and
``generate`` (content generator ingestion).
"""

from taskgraph.cli.commands.edit import (
    add_subtask_cmd,
    add_task_cmd,
    clear_subtasks_cmd,
    remove_subtask_cmd,
)
from taskgraph.cli.commands.generate import expand_cmd, parse_brief_cmd, update_cmd
from taskgraph.cli.commands.query import list_cmd, next_cmd, show_cmd
from taskgraph.cli.commands.status import set_status_cmd
from taskgraph.cli.commands.store import init_cmd, repair_cmd, validate_cmd

__all__ = [
    "add_subtask_cmd",
    "add_task_cmd",
    "clear_subtasks_cmd",
    "expand_cmd",
    "init_cmd",
    "list_cmd",
    "next_cmd",
    "parse_brief_cmd",
    "remove_subtask_cmd",
    "repair_cmd",
    "set_status_cmd",
    "show_cmd",
    "update_cmd",
    "validate_cmd",
]
