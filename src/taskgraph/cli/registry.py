"""Per-invocation CLI state shared between the group and its commands."""

from dataclasses import dataclass
from pathlib import Path

import click

from taskgraph.config import TaskGraphConfig
from taskgraph.core.store import TaskGraph, load_graph, save_graph


@dataclass
class CLIContext:
    """State resolved once by the root group."""

    config: TaskGraphConfig

    @property
    def tasks_file(self) -> Path:
        return self.config.tasks_file

    def load(self) -> TaskGraph:
        return load_graph(self.tasks_file)

    def save(self, graph: TaskGraph) -> Path:
        return save_graph(graph, self.tasks_file)


def set_context(ctx: click.Context, cli_ctx: CLIContext) -> None:
    ctx.obj = cli_ctx


def get_context(ctx: click.Context) -> CLIContext:
    """Return the CLIContext stored by the root group.

    Falls back to a context built from the environment when a command is
    invoked on its own, as tests sometimes do.
    """
    root = ctx.find_root()
    if not isinstance(root.obj, CLIContext):
        root.obj = CLIContext(config=TaskGraphConfig.from_env())
    return root.obj
