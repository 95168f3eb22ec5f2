"""Shared fixtures for core unit tests."""

import copy
import json

import pytest

from taskgraph.core.store import TaskGraph

SAMPLE_DOCUMENT = {
    "tasks": [
        {
            "id": 1,
            "title": "Set up repository",
            "description": "Create the project skeleton",
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
                {
                    "id": 1,
                    "title": "Define schema",
                    "description": "",
                    "details": "",
                    "status": "done",
                    "dependencies": [],
                    "parentTaskId": 2,
                },
                {
                    "id": 2,
                    "title": "Write migrations",
                    "description": "",
                    "details": "",
                    "status": "pending",
                    "dependencies": [1],
                    "parentTaskId": 2,
                },
            ],
        },
        {
            "id": 3,
            "title": "Add API endpoints",
            "description": "",
            "details": "",
            "status": "pending",
            "priority": "low",
            "dependencies": [1],
        },
        {
            "id": 4,
            "title": "Write documentation",
            "description": "",
            "details": "",
            "status": "deferred",
            "priority": "medium",
            "dependencies": [2, 3],
        },
    ],
    "meta": {
        "projectName": "Sample",
        "version": "1.0.0",
        "createdAt": "2026-01-05T10:00:00Z",
    },
}


@pytest.fixture
def make_graph():
    """Factory building a graph from task dicts."""

    def _make(*tasks, **meta):
        document = {"tasks": [copy.deepcopy(task) for task in tasks]}
        if meta:
            document["meta"] = meta
        return TaskGraph(document)

    return _make


@pytest.fixture
def sample_document():
    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture
def graph(sample_document):
    """A four-task graph; task 2 owns subtasks 2.1 (done) and 2.2."""
    return TaskGraph(sample_document)


@pytest.fixture
def tasks_file(tmp_path, sample_document):
    """Write the sample document to tasks/tasks.json and return its path."""
    path = tmp_path / "tasks" / "tasks.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(sample_document, indent=2))
    return path
