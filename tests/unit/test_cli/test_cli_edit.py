"""Tests for the structural edit commands."""

import json

from taskgraph.cli.main import cli


def _document(tasks_file):
    return json.loads(tasks_file.read_text())


class TestAddTask:
    def test_adds_task(self, invoke, tasks_file):
        result, data = invoke("add-task", "--title", "Deploy", "-d", "2,3", "-p", "high")
        assert result.exit_code == 0, f"Unexpected output: {result.output}"
        assert data["data"]["address"] == "4"
        task = _document(tasks_file)["tasks"][-1]
        assert task["title"] == "Deploy"
        assert task["dependencies"] == [2, 3]
        assert task["priority"] == "high"

    def test_dropped_dependencies_become_warnings(self, invoke):
        result, data = invoke("add-task", "--title", "Deploy", "-d", "99")
        assert result.exit_code == 0
        assert data["data"]["node"]["dependencies"] == []
        assert data["meta"]["warnings"] == ["Dependency 99 does not exist and was dropped"]

    def test_title_required(self, cli_runner, tasks_file):
        result = cli_runner.invoke(cli, ["--tasks-file", str(tasks_file), "add-task"])
        assert result.exit_code == 2


class TestAddSubtask:
    def test_adds_subtask(self, invoke, tasks_file):
        result, data = invoke("add-subtask", "3", "--title", "x")
        assert result.exit_code == 0
        assert data["data"]["address"] == "3.1"
        subtask = _document(tasks_file)["tasks"][2]["subtasks"][0]
        assert subtask["parentTaskId"] == 3
        assert subtask["status"] == "pending"

    def test_from_task_converts(self, invoke, tasks_file):
        result, data = invoke("add-subtask", "2", "--from-task", "3")
        assert result.exit_code == 0
        assert data["data"]["address"] == "2.3"
        assert [task["id"] for task in _document(tasks_file)["tasks"]] == [1, 2]

    def test_self_reference(self, invoke):
        result, data = invoke("add-subtask", "1", "--from-task", "1")
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "SELF_REFERENCE"

    def test_circular_conversion(self, invoke, tasks_file):
        before = tasks_file.read_text()
        result, data = invoke("add-subtask", "3", "--from-task", "1")
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "CIRCULAR_DEPENDENCY"
        assert tasks_file.read_text() == before

    def test_needs_title_or_source_task(self, invoke):
        result, data = invoke("add-subtask", "3")
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "MISSING_REQUIRED"

    def test_missing_parent(self, invoke):
        result, data = invoke("add-subtask", "9", "--title", "x")
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "NOT_FOUND"


class TestRemoveSubtask:
    def test_delete(self, invoke, tasks_file):
        result, data = invoke("remove-subtask", "2.1")
        assert result.exit_code == 0
        assert data["data"] == {"removed": "2.1", "converted": None}
        assert [sub["id"] for sub in _document(tasks_file)["tasks"][1]["subtasks"]] == [2]

    def test_convert(self, invoke, tasks_file):
        result, data = invoke("remove-subtask", "2.2", "--convert")
        assert result.exit_code == 0
        converted = data["data"]["converted"]
        assert converted["address"] == "4"
        assert 2 in converted["node"]["dependencies"]
        assert _document(tasks_file)["tasks"][-1]["id"] == 4

    def test_task_address_rejected(self, invoke):
        result, data = invoke("remove-subtask", "2")
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "INVALID_ADDRESS"


class TestClearSubtasks:
    def test_clears(self, invoke, tasks_file):
        result, data = invoke("clear-subtasks", "2,3")
        assert result.exit_code == 0
        assert [item["cleared"] for item in data["data"]["results"]] == [2, 0]
        assert "subtasks" not in _document(tasks_file)["tasks"][1]

    def test_all_missing_fails(self, invoke):
        result, data = invoke("clear-subtasks", "8,9")
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "NOT_FOUND"
