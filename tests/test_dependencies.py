"""Tests for dependency validation and dependency-graph walks."""

from tasktree import (
    TaskDocument,
    TaskNode,
    find_node,
    is_task_dependent_on,
    validate_dependencies,
    validate_document_dependencies,
)
from tasktree.dependencies import resolve_reference


def _document(*tasks):
    return TaskDocument.model_validate({"tasks": list(tasks)})


class TestValidateDependencies:
    def test_valid_full_id(self, sample_task):
        find_node(sample_task, [1, 1]).dependencies = ["1.2"]
        assert validate_dependencies(sample_task) == []

    def test_valid_bare_id(self, sample_task):
        find_node(sample_task, [2]).dependencies = [1]
        assert validate_dependencies(sample_task) == []

    def test_invalid_reference(self, sample_task):
        find_node(sample_task, [1, 1]).dependencies = ["1.3.4"]
        findings = validate_dependencies(sample_task)
        assert len(findings) == 1
        assert findings[0].node_id == "1.1.1"
        assert findings[0].invalid_ref == "1.3.4"
        assert "1.1.1" in findings[0].message

    def test_other_root_is_out_of_scope(self, sample_task):
        find_node(sample_task, [2]).dependencies = ["2.1", 9]
        findings = validate_dependencies(sample_task)
        assert [f.invalid_ref for f in findings] == ["2.1", 9]

    def test_root_dependencies_not_checked(self, sample_task):
        sample_task.dependencies = [42]
        assert validate_dependencies(sample_task) == []


class TestIsTaskDependentOn:
    def test_direct_dependency(self):
        doc = _document(
            {"id": 3, "title": "Three", "dependencies": [5]},
            {"id": 5, "title": "Five"},
        )
        assert is_task_dependent_on(doc.tasks, doc.get_task(3), 5)

    def test_transitive_dependency(self):
        doc = _document(
            {"id": 3, "title": "Three", "dependencies": [4]},
            {"id": 4, "title": "Four", "dependencies": ["6.1"]},
            {"id": 5, "title": "Five"},
            {"id": 6, "title": "Six", "subtasks": [{"id": 1, "title": "Six.1", "dependencies": [5]}]},
        )
        assert is_task_dependent_on(doc.tasks, doc.get_task(3), 5)

    def test_subtask_reference_into_target(self):
        doc = _document(
            {"id": 3, "title": "Three", "dependencies": ["5.1"]},
            {"id": 5, "title": "Five", "subtasks": [{"id": 1, "title": "Five.1"}]},
        )
        assert is_task_dependent_on(doc.tasks, doc.get_task(3), 5)

    def test_not_dependent(self):
        doc = _document(
            {"id": 3, "title": "Three", "dependencies": [4]},
            {"id": 4, "title": "Four"},
            {"id": 5, "title": "Five", "dependencies": [3]},
        )
        assert not is_task_dependent_on(doc.tasks, doc.get_task(3), 5)

    def test_cycle_terminates(self):
        doc = _document(
            {"id": 1, "title": "One", "dependencies": [2]},
            {"id": 2, "title": "Two", "dependencies": [1]},
            {"id": 9, "title": "Nine"},
        )
        assert not is_task_dependent_on(doc.tasks, doc.get_task(1), 9)

    def test_resolve_reference(self, sample_task):
        tasks = [sample_task]
        assert resolve_reference(tasks, 1) is sample_task
        assert resolve_reference(tasks, "1.1.1").title == "Level 2 Subtask"
        assert resolve_reference(tasks, "bogus") is None
        assert resolve_reference(tasks, "2.1") is None


class TestValidateDocumentDependencies:
    def test_cross_root_references_resolve(self):
        doc = _document(
            {"id": 1, "title": "One", "subtasks": [{"id": 1, "title": "One.1", "dependencies": ["2.1", 2]}]},
            {"id": 2, "title": "Two", "dependencies": [1], "subtasks": [{"id": 1, "title": "Two.1"}]},
        )
        assert validate_document_dependencies(doc) == []

    def test_reports_unresolvable(self):
        doc = _document(
            {"id": 1, "title": "One", "dependencies": [7],
             "subtasks": [{"id": 1, "title": "One.1", "dependencies": ["2.5"]}]},
            {"id": 2, "title": "Two"},
        )
        findings = validate_document_dependencies(doc)
        assert [(f.node_id, f.invalid_ref) for f in findings] == [("1", 7), ("1.1", "2.5")]

    def test_accepts_plain_node(self):
        task = TaskNode(id=1, title="Alone")
        assert validate_document_dependencies(_document(task.model_dump(by_alias=True))) == []
