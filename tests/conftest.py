"""Shared fixtures for tasktree tests.

Provides:
- A sample task tree (task 1 with nested subtasks)
- A tasks file on disk under a temporary project root
- A TaskManager wired to that project root
"""

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from tasktree import TaskManager, TaskNode, TaskTreeSettings


def sample_task_data() -> Dict[str, Any]:
    return {
        "id": 1,
        "title": "Main Task",
        "description": "A task for testing nested subtasks",
        "status": "pending",
        "dependencies": [],
        "priority": "medium",
        "details": "Test task details",
        "testStrategy": "Test strategy",
        "subtasks": [
            {
                "id": 1,
                "title": "Level 1 Subtask",
                "description": "First level subtask",
                "status": "pending",
                "dependencies": [],
                "subtasks": [
                    {
                        "id": 1,
                        "title": "Level 2 Subtask",
                        "description": "Second level subtask",
                        "status": "pending",
                        "dependencies": [],
                        "subtasks": [],
                    }
                ],
            },
            {
                "id": 2,
                "title": "Another Level 1 Subtask",
                "description": "Another first level subtask",
                "status": "done",
                "dependencies": [],
                "subtasks": [],
            },
        ],
    }


def legacy_document_data() -> Dict[str, Any]:
    """A pre-nesting document: flat subtasks, no version metadata"""
    return {
        "meta": {"projectName": "Legacy Project"},
        "tasks": [
            {
                "id": 1,
                "title": "Legacy Task",
                "status": "pending",
                "subtasks": [
                    {"id": 1, "title": "Legacy Subtask", "status": "pending"},
                    {"id": 2, "title": "Another Legacy Subtask", "status": "done", "parentTaskId": 1},
                ],
            },
            {"id": 2, "title": "Plain Task", "status": "pending", "dependencies": [1]},
        ],
    }


@pytest.fixture()
def sample_task() -> TaskNode:
    return TaskNode.model_validate(sample_task_data())


@pytest.fixture()
def settings(tmp_path: Path) -> TaskTreeSettings:
    return TaskTreeSettings(project_root=tmp_path)


@pytest.fixture()
def tasks_file(settings: TaskTreeSettings) -> Path:
    path = settings.tasks_path
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "meta": {"projectName": "Test Project", "version": "2.0.0", "nestedSubtasksSupport": True},
        "tasks": [sample_task_data()],
    }
    path.write_text(json.dumps(data, indent=2))
    return path


@pytest.fixture()
def legacy_tasks_file(settings: TaskTreeSettings) -> Path:
    path = settings.tasks_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(legacy_document_data(), indent=2))
    settings.config_path.write_text(json.dumps({"models": {"main": "default"}}))
    return path


@pytest.fixture()
def manager(settings: TaskTreeSettings, tasks_file: Path) -> TaskManager:
    return TaskManager(settings=settings)
