"""Shared fixtures for CLI command tests."""

import json
import logging

import pytest
from click.testing import CliRunner

from taskgraph.cli.main import cli
from taskgraph.config import set_config


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep user config and log output out of command results."""
    for name in ("TASKGRAPH_CONFIG_FILE", "TASKGRAPH_TASKS_FILE", "TASKGRAPH_PROJECT_NAME"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TASKGRAPH_LOG_LEVEL", "CRITICAL")
    monkeypatch.chdir(tmp_path)
    yield
    set_config(None)
    logger = logging.getLogger("taskgraph")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def tasks_file(tmp_path):
    """A tasks document with a finished task, a task with two subtasks and a blocked follow-up."""
    document = {
        "tasks": [
            {
                "id": 1,
                "title": "Set up repository",
                "description": "",
                "details": "",
                "status": "done",
                "priority": "high",
                "dependencies": [],
            },
            {
                "id": 2,
                "title": "Build data model",
                "description": "Tables and migrations",
                "details": "",
                "status": "pending",
                "priority": "high",
                "dependencies": [1],
                "subtasks": [
                    {"id": 1, "title": "Define schema", "status": "done", "dependencies": [], "parentTaskId": 2},
                    {"id": 2, "title": "Write migrations", "status": "pending", "dependencies": [1], "parentTaskId": 2},
                ],
            },
            {
                "id": 3,
                "title": "Add API endpoints",
                "description": "",
                "details": "",
                "status": "pending",
                "priority": "low",
                "dependencies": [2],
            },
        ],
        "meta": {"projectName": "CLI Sample", "version": "1.0.0", "createdAt": "2026-01-05T10:00:00Z"},
    }
    path = tmp_path / "tasks" / "tasks.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(document, indent=2))
    return path


@pytest.fixture
def invoke(cli_runner, tasks_file):
    """Run a command against the sample tasks file and parse its JSON output."""

    def _invoke(*args):
        result = cli_runner.invoke(cli, ["--tasks-file", str(tasks_file), *args])
        return result, json.loads(result.output)

    return _invoke
