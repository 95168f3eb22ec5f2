"""Tests for structural edits: add, convert, remove and clear."""

import copy

import pytest

from taskgraph.core.errors import (
    AlreadySubtask,
    CircularConversion,
    CircularSubtask,
    InvalidAddress,
    NestedSubtasks,
    NotFound,
    SelfReference,
)
from taskgraph.core.task import (
    add_subtask,
    add_task,
    clear_subtasks,
    convert_task_to_subtask,
    remove_subtask,
)
from taskgraph.core.validation import find_cycles, find_dangling_dependencies


class TestAddSubtask:
    def test_first_subtask_gets_address_n_dot_1(self, graph):
        edit = add_subtask(graph, 3, {"title": "x"})
        assert edit.address == "3.1"
        node = graph.get_node("3.1").node
        assert node["title"] == "x"
        assert node["status"] == "pending"
        assert node["parentTaskId"] == 3

    def test_id_follows_existing_siblings(self, graph):
        edit = add_subtask(graph, "2", {"title": "Seed data", "status": "in-progress"})
        assert edit.address == "2.3"
        assert edit.node["status"] == "in-progress"

    def test_defaults_missing_title(self, graph):
        edit = add_subtask(graph, 3, {})
        assert edit.node["title"] == "Untitled task"

    def test_unresolved_and_self_dependencies_dropped(self, graph):
        edit = add_subtask(graph, 2, {"title": "x", "dependencies": [1, 3, 77, "2.9"]})
        # 1 is sibling 2.1, 3 is new subtask 2.3 itself, 77 and 2.9 do not exist
        assert edit.node["dependencies"] == [1]
        assert len(edit.warnings) == 3

    def test_missing_parent(self, graph):
        with pytest.raises(NotFound):
            add_subtask(graph, 42, {"title": "x"})

    def test_subtask_address_as_parent_rejected(self, graph):
        with pytest.raises(InvalidAddress):
            add_subtask(graph, "2.1", {"title": "x"})

    def test_new_id_capturing_sibling_reference_cannot_close_cycle(self, make_graph):
        # 3.1 means task 2 until a sibling with id 2 exists.
        graph = make_graph(
            {"id": 2, "status": "pending"},
            {"id": 3, "status": "pending", "subtasks": [{"id": 1, "dependencies": [2], "parentTaskId": 3}]},
        )
        edit = add_subtask(graph, 3, {"title": "Wire up", "dependencies": ["3.1"]})
        assert edit.address == "3.2"
        assert edit.node["dependencies"] == []
        assert edit.warnings == [
            "Dependency 2 of subtask 3.1 now refers to subtask 3.2 instead of task 2",
            "Dependency 3.1 would create a cycle through subtask 3.2; dependency dropped",
        ]
        assert find_cycles(graph) == []

    def test_shadowing_without_cycle_is_reported(self, make_graph):
        graph = make_graph(
            {"id": 2, "status": "pending"},
            {"id": 3, "status": "pending", "subtasks": [{"id": 1, "dependencies": [2], "parentTaskId": 3}]},
        )
        edit = add_subtask(graph, 3, {"title": "Wire up"})
        assert edit.warnings == ["Dependency 2 of subtask 3.1 now refers to subtask 3.2 instead of task 2"]
        assert find_cycles(graph) == []

    def test_parent_depending_on_new_address_rejected(self, make_graph):
        graph = make_graph(
            {"id": 3, "status": "pending", "dependencies": ["3.2"], "subtasks": [{"id": 1, "parentTaskId": 3}]},
        )
        before = copy.deepcopy(graph.document)
        with pytest.raises(CircularSubtask):
            add_subtask(graph, 3, {"title": "x"})
        assert graph.document == before

    def test_first_subtask_rejected_leaves_no_subtasks_field(self, make_graph):
        graph = make_graph({"id": 3, "status": "pending", "dependencies": ["3.1"]})
        with pytest.raises(CircularSubtask):
            add_subtask(graph, 3, {})
        assert "subtasks" not in graph.get_task(3)


class TestConvertTaskToSubtask:
    def test_self_reference(self, graph):
        with pytest.raises(SelfReference):
            convert_task_to_subtask(graph, 1, 1)

    def test_moves_task_under_parent(self, graph):
        before = copy.deepcopy(graph.get_task(3))
        edit = convert_task_to_subtask(graph, 2, 3)
        assert edit.address == "2.3"
        assert graph.get_task(3) is None
        node = graph.get_node("2.3").node
        assert node["title"] == before["title"]
        assert node["parentTaskId"] == 2
        assert node["dependencies"] == before["dependencies"]

    def test_references_to_old_id_left_dangling(self, graph):
        convert_task_to_subtask(graph, 2, 3)
        findings = find_dangling_dependencies(graph)
        assert [(str(f.address), f.value) for f in findings] == [("4", 3)]

    def test_missing_tasks(self, graph):
        with pytest.raises(NotFound):
            convert_task_to_subtask(graph, 42, 3)
        with pytest.raises(NotFound):
            convert_task_to_subtask(graph, 2, 42)

    def test_already_subtask(self, make_graph):
        graph = make_graph({"id": 1}, {"id": 2, "parentTaskId": 5})
        with pytest.raises(AlreadySubtask):
            convert_task_to_subtask(graph, 1, 2)

    def test_task_with_subtasks_rejected(self, graph):
        with pytest.raises(NestedSubtasks):
            convert_task_to_subtask(graph, 3, 2)

    def test_circular_conversion(self, graph):
        # Task 4 depends on 3; 3 depends on 1. Moving 1 under 4 would loop.
        with pytest.raises(CircularConversion):
            convert_task_to_subtask(graph, 4, 1)

    def test_circular_through_parent_subtask(self, make_graph):
        graph = make_graph(
            {"id": 1, "subtasks": [{"id": 1, "dependencies": [2]}]},
            {"id": 2, "dependencies": []},
        )
        with pytest.raises(CircularConversion):
            convert_task_to_subtask(graph, 1, 2)

    def test_failure_leaves_graph_unchanged(self, graph):
        before = copy.deepcopy(graph.document)
        with pytest.raises(CircularConversion):
            convert_task_to_subtask(graph, 4, 1)
        assert graph.document == before

    def test_new_id_capturing_sibling_reference_cannot_close_cycle(self, make_graph):
        # Task 5 depends on 3.1, which means task 2 until 5 becomes subtask 3.2.
        graph = make_graph(
            {"id": 2, "status": "pending"},
            {"id": 3, "status": "pending", "subtasks": [{"id": 1, "dependencies": [2], "parentTaskId": 3}]},
            {"id": 5, "status": "pending", "dependencies": ["3.1"]},
            {"id": 6, "status": "pending", "dependencies": [5]},
        )
        before = copy.deepcopy(graph.document)
        with pytest.raises(CircularConversion, match="3.2"):
            convert_task_to_subtask(graph, 3, 5)
        assert graph.document == before
        assert graph.get_task(5) is graph.tasks[2]
        assert find_cycles(graph) == []

    def test_shadowing_conversion_is_reported(self, make_graph):
        graph = make_graph(
            {"id": 2, "status": "pending"},
            {"id": 3, "status": "pending", "subtasks": [{"id": 1, "dependencies": [2], "parentTaskId": 3}]},
            {"id": 4, "status": "pending"},
        )
        edit = convert_task_to_subtask(graph, 3, 4)
        assert edit.address == "3.2"
        assert edit.warnings == ["Dependency 2 of subtask 3.1 now refers to subtask 3.2 instead of task 2"]
        assert find_cycles(graph) == []


class TestRemoveSubtask:
    def test_delete(self, graph):
        assert remove_subtask(graph, "2.1") is None
        assert [sub["id"] for sub in graph.get_task(2)["subtasks"]] == [2]

    def test_last_subtask_drops_field(self, graph):
        remove_subtask(graph, "2.1")
        remove_subtask(graph, "2.2")
        assert "subtasks" not in graph.get_task(2)

    def test_convert_creates_next_task_with_parent_dependency(self, make_graph):
        graph = make_graph(
            {"id": 1},
            {"id": 2, "priority": "high", "subtasks": [{"id": 1, "title": "Sub", "status": "in-progress", "dependencies": []}]},
            {"id": 5},
        )
        edit = remove_subtask(graph, "2.1", convert_to_task=True)
        assert edit.address == "6"
        task = graph.get_task(6)
        assert 2 in task["dependencies"]
        assert task["title"] == "Sub"
        assert task["status"] == "in-progress"
        assert task["priority"] == "high"
        assert "parentTaskId" not in task
        assert "subtasks" not in graph.get_task(2)

    def test_convert_rewrites_sibling_dependencies(self, graph):
        edit = remove_subtask(graph, "2.2", convert_to_task=True)
        assert edit.node["dependencies"] == ["2.1", 2]
        assert find_dangling_dependencies(graph) == []

    def test_convert_without_any_priority_uses_medium(self, make_graph):
        graph = make_graph({"id": 1, "subtasks": [{"id": 1}]})
        edit = remove_subtask(graph, "1.1", convert_to_task=True)
        assert edit.node["priority"] == "medium"

    def test_task_address_rejected(self, graph):
        with pytest.raises(InvalidAddress):
            remove_subtask(graph, "2")

    def test_missing_subtask(self, graph):
        with pytest.raises(NotFound):
            remove_subtask(graph, "2.8")


class TestAddTask:
    def test_appends_with_next_id(self, graph):
        edit = add_task(graph, {"title": "Deploy"}, dependencies=["3", 4], priority="high")
        assert edit.address == "5"
        assert edit.node["dependencies"] == [3, 4]
        assert edit.node["status"] == "pending"
        assert edit.node["priority"] == "high"
        assert edit.warnings == []

    def test_bad_dependencies_dropped_with_warnings(self, graph):
        edit = add_task(graph, {"title": "Deploy"}, dependencies=["99", "2.1", "abc", 1])
        assert edit.node["dependencies"] == [1]
        assert len(edit.warnings) == 3

    def test_invalid_priority_falls_back(self, graph):
        edit = add_task(graph, {"title": "Deploy"}, priority="urgent")
        assert edit.node["priority"] == "medium"
        assert edit.warnings

    def test_ignores_caller_supplied_id_and_status(self, graph):
        edit = add_task(graph, {"title": "Deploy", "id": 1, "status": "done"})
        assert edit.node["id"] == 5
        assert edit.node["status"] == "pending"

    def test_empty_graph_starts_at_one(self, make_graph):
        edit = add_task(make_graph(), {"title": "First"})
        assert edit.address == "1"


class TestClearSubtasks:
    def test_clears_and_reports_per_item(self, graph):
        results = clear_subtasks(graph, "2,3,99")
        assert [item.to_dict() for item in results[:2]] == [
            {"address": "2", "success": True, "cleared": 2},
            {"address": "3", "success": True, "cleared": 0},
        ]
        assert results[2].success is False
        assert results[2].error_code == "NOT_FOUND"
        assert "subtasks" not in graph.get_task(2)
