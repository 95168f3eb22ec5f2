"""Tests for parse-brief, expand and update with a stubbed content generator."""

import json
from unittest.mock import MagicMock, patch

from taskgraph.cli.main import cli
from taskgraph.core.errors import GenerationError, GenerationTimeoutError
from taskgraph.core.generation import ContentGenerator


class FakeGenerator(ContentGenerator):
    def __init__(self, tasks=None, subtasks=None, updates=None):
        self.tasks = tasks or []
        self.subtasks = subtasks or []
        self.updates = updates or []
        self.calls = []

    def generate_tasks(self, brief, count, context=None):
        self.calls.append(("tasks", brief, count, context))
        return self.tasks

    def generate_subtasks(self, parent_context, count, start_id=1, additional_context=""):
        self.calls.append(("subtasks", parent_context["id"], count, start_id, additional_context))
        return self.subtasks

    def update_tasks(self, tasks, prompt):
        self.calls.append(("update", [task["id"] for task in tasks], prompt))
        return self.updates


class TestParseBrief:
    def test_creates_tasks_file(self, cli_runner, tmp_path):
        brief = tmp_path / "brief.md"
        brief.write_text("Build a todo app")
        target = tmp_path / "tasks.json"
        generator = FakeGenerator(
            tasks=[
                {"id": 1, "title": "Scaffold"},
                {"id": 2, "title": "CRUD", "dependencies": [1], "priority": "high"},
            ]
        )

        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            result = cli_runner.invoke(
                cli, ["--tasks-file", str(target), "parse-brief", str(brief), "--num-tasks", "2"]
            )

        assert result.exit_code == 0, f"Unexpected output: {result.output}"
        data = json.loads(result.output)
        assert data["data"]["addresses"] == ["1", "2"]
        assert generator.calls == [("tasks", "Build a todo app", 2, {"source": "brief.md"})]
        saved = json.loads(target.read_text())
        assert saved["tasks"][1]["dependencies"] == [1]
        assert saved["meta"]["projectName"] == "Task Graph Project"

    def test_appends_to_existing_tasks(self, invoke, tasks_file, tmp_path):
        brief = tmp_path / "brief.md"
        brief.write_text("More work")
        generator = FakeGenerator(tasks=[{"id": 1, "title": "Extra", "dependencies": [5]}])

        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            result, data = invoke("parse-brief", str(brief), "-n", "1")

        assert result.exit_code == 0
        assert data["data"]["addresses"] == ["4"]
        assert data["meta"]["warnings"] == ["Task 4: dependency 5 does not exist and was dropped"]

    def test_empty_brief(self, invoke, tmp_path):
        brief = tmp_path / "brief.md"
        brief.write_text("   \n")
        result, data = invoke("parse-brief", str(brief))
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "VALIDATION_ERROR"

    def test_generator_timeout(self, invoke, tasks_file, tmp_path):
        brief = tmp_path / "brief.md"
        brief.write_text("Build it")
        before = tasks_file.read_text()
        generator = MagicMock()
        generator.generate_tasks.side_effect = GenerationTimeoutError("slow", timeout=60.0, attempts=3)

        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            result, data = invoke("parse-brief", str(brief))

        assert result.exit_code == 1
        assert data["data"]["error_code"] == "GENERATOR_TIMEOUT"
        assert tasks_file.read_text() == before


class TestExpand:
    def test_appends_generated_subtasks(self, invoke, tasks_file):
        generator = FakeGenerator(
            subtasks=[
                {"id": 3, "title": "Seed data"},
                {"id": 4, "title": "Backfill", "dependencies": [3]},
            ]
        )

        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            result, data = invoke("expand", "2", "--num", "2", "--context", "use fixtures")

        assert result.exit_code == 0, f"Unexpected output: {result.output}"
        assert data["data"]["task_id"] == 2
        assert data["data"]["addresses"] == ["2.3", "2.4"]
        assert generator.calls == [("subtasks", 2, 2, 3, "use fixtures")]
        subtasks = json.loads(tasks_file.read_text())["tasks"][1]["subtasks"]
        assert subtasks[3]["dependencies"] == [3]

    def test_default_count_from_config(self, invoke):
        generator = FakeGenerator(subtasks=[{"title": "Only"}])
        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            invoke("expand", "3")
        assert generator.calls[0][2] == 3

    def test_done_task_refused_before_generation(self, invoke):
        generator = FakeGenerator()
        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            result, data = invoke("expand", "1")
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "TASK_ALREADY_DONE"
        assert generator.calls == []

    def test_unknown_task(self, invoke):
        result, data = invoke("expand", "12")
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "NOT_FOUND"

    def test_requires_task_id_or_all(self, invoke):
        result, data = invoke("expand")
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "MISSING_REQUIRED"

    def test_task_id_and_all_together(self, invoke):
        result, data = invoke("expand", "3", "--all")
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "VALIDATION_ERROR"


class FailingGenerator(FakeGenerator):
    def __init__(self, failing_ids, **kwargs):
        super().__init__(**kwargs)
        self.failing_ids = set(failing_ids)

    def generate_subtasks(self, parent_context, count, start_id=1, additional_context=""):
        records = super().generate_subtasks(parent_context, count, start_id, additional_context)
        if parent_context["id"] in self.failing_ids:
            raise GenerationError("upstream rejected the request", status_code=400)
        return records


class TestExpandAll:
    def test_skips_tasks_with_subtasks(self, invoke, tasks_file):
        generator = FakeGenerator(subtasks=[{"id": 1, "title": "Route table"}])

        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            result, data = invoke("expand", "--all")

        assert result.exit_code == 0, f"Unexpected output: {result.output}"
        assert [entry["task_id"] for entry in data["data"]["expanded"]] == [3]
        assert data["data"]["failed"] == []
        assert generator.calls == [("subtasks", 3, 3, 1, "")]
        tasks = json.loads(tasks_file.read_text())["tasks"]
        assert [sub["title"] for sub in tasks[1]["subtasks"]] == ["Define schema", "Write migrations"]
        assert tasks[2]["subtasks"][0]["parentTaskId"] == 3

    def test_force_replaces_existing_subtasks(self, invoke, tasks_file):
        generator = FakeGenerator(subtasks=[{"id": 1, "title": "Fresh start"}])

        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            result, data = invoke("expand", "--all", "--force", "-n", "1")

        assert result.exit_code == 0, f"Unexpected output: {result.output}"
        assert [entry["task_id"] for entry in data["data"]["expanded"]] == [2, 3]
        assert [call[1] for call in generator.calls] == [2, 3]
        assert all(call[3] == 1 for call in generator.calls)
        assert "Cleared 2 existing subtask(s) of task 2" in data["meta"]["warnings"]
        tasks = json.loads(tasks_file.read_text())["tasks"]
        assert [(sub["id"], sub["title"]) for sub in tasks[1]["subtasks"]] == [(1, "Fresh start")]

    def test_failed_task_is_reported_and_kept(self, invoke, tasks_file):
        generator = FailingGenerator({2}, subtasks=[{"title": "Step"}])

        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            result, data = invoke("expand", "--all", "--force")

        assert result.exit_code == 0
        assert [entry["task_id"] for entry in data["data"]["expanded"]] == [3]
        assert data["data"]["failed"] == [
            {"task_id": 2, "error_code": "GENERATOR_ERROR", "error": "upstream rejected the request"}
        ]
        tasks = json.loads(tasks_file.read_text())["tasks"]
        assert len(tasks[1]["subtasks"]) == 2
        assert tasks[2]["subtasks"][0]["title"] == "Step"

    def test_every_task_failing_leaves_file_untouched(self, invoke, tasks_file):
        before = tasks_file.read_text()
        generator = FailingGenerator({3})

        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            result, data = invoke("expand", "--all")

        assert result.exit_code == 1
        assert data["data"]["error_code"] == "GENERATOR_ERROR"
        assert data["data"]["details"]["failed"][0]["task_id"] == 3
        assert tasks_file.read_text() == before

    def test_nothing_to_expand(self, invoke, tasks_file):
        invoke("set-status", "2,3", "done")
        generator = FakeGenerator()

        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            result, data = invoke("expand", "--all", "--force")

        assert result.exit_code == 0
        assert data["data"] == {"expanded": [], "failed": []}
        assert data["meta"]["warnings"] == ["No open tasks to expand"]
        assert generator.calls == []


class TestUpdate:
    def test_rewrites_content_and_keeps_structure(self, invoke, tasks_file):
        generator = FakeGenerator(
            updates=[
                {"id": 2, "title": "Build Postgres model", "status": "done", "dependencies": []},
                {"id": 3, "description": "REST endpoints on Postgres", "priority": "urgent"},
                {"id": 1, "title": "Rewrite history"},
            ]
        )

        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            result, data = invoke("update", "--from", "2", "--prompt", "Switch to Postgres")

        assert result.exit_code == 0, f"Unexpected output: {result.output}"
        assert generator.calls == [("update", [2, 3], "Switch to Postgres")]
        assert data["data"]["from"] == 2
        assert data["data"]["addresses"] == ["2", "3"]
        assert data["meta"]["warnings"] == ["Regenerated record for task 1 was not requested and was skipped"]

        tasks = json.loads(tasks_file.read_text())["tasks"]
        assert tasks[0]["title"] == "Set up repository"
        assert tasks[1]["title"] == "Build Postgres model"
        assert tasks[1]["status"] == "pending"
        assert tasks[1]["dependencies"] == [1]
        assert len(tasks[1]["subtasks"]) == 2
        assert tasks[2]["title"] == "Add API endpoints"
        assert tasks[2]["description"] == "REST endpoints on Postgres"
        assert tasks[2]["priority"] == "low"

    def test_done_tasks_are_not_sent(self, invoke):
        generator = FakeGenerator()
        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            invoke("update", "--prompt", "Go mobile first")
        assert generator.calls == [("update", [2, 3], "Go mobile first")]

    def test_no_candidates(self, invoke):
        generator = FakeGenerator()
        with patch("taskgraph.cli.commands.generate.build_generator", return_value=generator):
            result, data = invoke("update", "--from", "4", "--prompt", "Anything")

        assert result.exit_code == 0
        assert data["data"]["count"] == 0
        assert data["meta"]["warnings"] == ["No tasks to update: every task from id 4 is done or absent"]
        assert generator.calls == []

    def test_empty_prompt(self, invoke):
        result, data = invoke("update", "--prompt", "  ")
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "MISSING_REQUIRED"

    def test_invalid_from(self, invoke):
        result, data = invoke("update", "--from", "2.1", "--prompt", "x")
        assert result.exit_code == 1
        assert data["data"]["error_code"] == "INVALID_ADDRESS"
