"""End-to-end tests for document-level operations."""

import json

import pytest

from tasktree import (
    CircularReference,
    MalformedIdentifier,
    NodeNotFound,
    SelfReference,
    TaskManager,
    TaskStatus,
    find_node,
)


def _write_tasks(settings, tasks):
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.write_text(json.dumps({"meta": {"version": "2.0.0"}, "tasks": tasks}))


class TestAddSubtask:
    def test_add_under_nested_subtask(self, manager):
        added = manager.add_subtask("1.1", {
            "title": "Integration Test Subtask",
            "description": "Added via add_subtask",
        })
        assert added.full_id == "1.1.2"
        assert added.is_nested is True
        assert added.depth == 2
        assert added.node.title == "Integration Test Subtask"

        parent = find_node(manager.load().get_task(1), [1])
        assert len(parent.subtasks) == 2

    def test_add_under_root(self, manager):
        added = manager.add_subtask(1, {"title": "Third"})
        assert added.full_id == "1.3"
        assert added.is_nested is False
        assert added.depth == 1
        assert manager.get("1.3").status == TaskStatus.PENDING

    def test_add_migrates_legacy_parent(self, settings):
        _write_tasks(settings, [{
            "id": 1, "title": "Legacy",
            "subtasks": [{"id": 1, "title": "Flat"}, {"id": 2, "title": "Flat too"}],
        }])
        manager = TaskManager(settings=settings)
        added = manager.add_subtask("1.1", {"title": "Nested"})
        assert added.full_id == "1.1.1"

        data = json.loads(settings.tasks_path.read_text())
        assert data["tasks"][0]["subtasks"][1]["subtasks"] == []

    def test_missing_parent(self, manager):
        with pytest.raises(NodeNotFound):
            manager.add_subtask("1.9", {"title": "Orphan"})
        with pytest.raises(NodeNotFound):
            manager.add_subtask(7, {"title": "Orphan"})

    def test_malformed_parent(self, manager):
        with pytest.raises(MalformedIdentifier):
            manager.add_subtask("1.x", {"title": "Bad"})

    def test_requires_data_or_existing(self, manager):
        with pytest.raises(ValueError):
            manager.add_subtask(1)


class TestConvertTaskToSubtask:
    def test_demote(self, settings):
        _write_tasks(settings, [
            {"id": 3, "title": "Three", "subtasks": []},
            {"id": 5, "title": "Five", "priority": "high", "dependencies": [6],
             "subtasks": [{"id": 1, "title": "Five.1", "subtasks": []}]},
            {"id": 6, "title": "Six"},
        ])
        manager = TaskManager(settings=settings)
        added = manager.add_subtask(3, existing_task_id=5)

        assert added.full_id == "3.1"
        document = manager.load()
        assert [task.id for task in document.tasks] == [3, 6]
        demoted = find_node(document.get_task(3), [1])
        assert demoted.title == "Five"
        assert demoted.dependencies == [6]
        assert demoted.priority.value == "high"
        assert demoted.subtasks[0].title == "Five.1"

    def test_demote_under_nested_parent(self, settings):
        _write_tasks(settings, [
            {"id": 1, "title": "One", "subtasks": [{"id": 1, "title": "One.1"}]},
            {"id": 2, "title": "Two"},
        ])
        manager = TaskManager(settings=settings)
        added = manager.convert_task_to_subtask(task_id=2, parent_id="1.1")

        assert added.full_id == "1.1.1"
        assert added.depth == 2
        document = manager.load()
        assert [task.id for task in document.tasks] == [1]
        demoted = find_node(document.get_task(1), [1, 1])
        assert demoted.title == "Two"
        assert demoted.subtasks == []

    def test_nested_parent_depending_on_task(self, settings):
        _write_tasks(settings, [
            {"id": 1, "title": "One", "subtasks": [{"id": 1, "title": "One.1", "dependencies": [2]}]},
            {"id": 2, "title": "Two"},
        ])
        with pytest.raises(CircularReference):
            TaskManager(settings=settings).convert_task_to_subtask(2, "1.1")

    def test_self_reference(self, manager):
        with pytest.raises(SelfReference):
            manager.convert_task_to_subtask(1, "1.1")

    def test_circular_reference(self, settings):
        _write_tasks(settings, [
            {"id": 3, "title": "Three", "dependencies": [5]},
            {"id": 5, "title": "Five"},
        ])
        manager = TaskManager(settings=settings)
        with pytest.raises(CircularReference):
            manager.convert_task_to_subtask(5, 3)
        assert [task.id for task in manager.load().tasks] == [3, 5]

    def test_transitive_circular_reference(self, settings):
        _write_tasks(settings, [
            {"id": 3, "title": "Three", "dependencies": [4]},
            {"id": 4, "title": "Four", "dependencies": [5]},
            {"id": 5, "title": "Five"},
        ])
        with pytest.raises(CircularReference):
            TaskManager(settings=settings).convert_task_to_subtask(5, 3)

    def test_missing_task(self, manager):
        with pytest.raises(NodeNotFound):
            manager.convert_task_to_subtask(9, 1)


class TestRemoveAndUpdate:
    def test_remove(self, manager):
        removed = manager.remove_subtask("1.1.1")
        assert removed.title == "Level 2 Subtask"
        with pytest.raises(NodeNotFound):
            manager.get("1.1.1")
        assert manager.get("1.1").subtasks == []

    def test_remove_root_rejected(self, manager):
        with pytest.raises(NodeNotFound):
            manager.remove_subtask("1")

    def test_update_persists(self, manager):
        manager.update_subtask("1.2", {"status": "review", "id": 50, "subtasks": None})
        node = manager.get("1.2")
        assert node.status == TaskStatus.REVIEW
        assert node.id == 2
        assert node.subtasks == []


class TestValidationAndStats:
    def test_validate_single_root(self, manager):
        manager.update_subtask("1.1.1", {"dependencies": ["1.3.4"]})
        findings = manager.validate_dependencies(1)
        assert [(f.node_id, f.invalid_ref) for f in findings] == [("1.1.1", "1.3.4")]

    def test_validate_document(self, manager):
        manager.update_subtask("1.2", {"dependencies": ["1.1.1", 1]})
        assert manager.validate_dependencies() == []

    def test_list_subtasks(self, manager):
        assert [entry.full_id for entry in manager.list_subtasks(1)] == ["1.1", "1.1.1", "1.2"]

    def test_statistics(self, manager):
        assert manager.statistics("1").total == 3


class TestBackupRestore:
    def test_backup_and_restore(self, manager, tasks_file):
        before = tasks_file.read_bytes()
        handle = manager.backup()
        manager.remove_subtask("1.1")
        manager.restore(handle)
        assert tasks_file.read_bytes() == before
        assert manager.get("1.1").title == "Level 1 Subtask"
