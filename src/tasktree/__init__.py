"""
TASKTREE - Hierarchical Task Management
=======================================

Persistent tasks with nested subtasks to any depth, addressed by
path identifiers like "1.2.3".

Usage:
    from tasktree import TaskManager

    manager = TaskManager()
    added = manager.add_subtask("1.1", {"title": "Write parser tests"})
    print(added.full_id)            # "1.1.2"

    manager.update_subtask("1.1.2", {"status": "done"})
    findings = manager.validate_dependencies()

    # Upgrade a legacy (flat) tasks file, backing it up first
    report = manager.migrations.run_migrations()
    if not report.success:
        manager.restore(report.backup)
"""

from .backup import BackupHandle, BackupManager
from .config import TaskTreeSettings
from .dependencies import is_task_dependent_on, validate_dependencies, validate_document_dependencies
from .errors import (
    BackupFailed,
    CircularReference,
    ContainerNotFound,
    EmptyPath,
    ErrorKind,
    InvalidDocument,
    MalformedIdentifier,
    MigrationStepFailed,
    NodeNotFound,
    RestoreFailed,
    SelfReference,
    TaskTreeError,
)
from .identifiers import SubtaskAddress, generate_subtask_id, parse_subtask_id
from .manager import TaskManager
from .migration import MigrationManager, is_legacy, migrate_legacy_subtasks, migrate_tree
from .mutations import flatten_subtasks, insert_subtask, remove_subtask, update_subtask
from .navigator import find_container, find_node
from .schema import (
    DocumentMeta,
    FlatSubtask,
    NestingState,
    SubtaskDraft,
    TaskDocument,
    TaskNode,
    TaskPatch,
    TaskPriority,
    TaskStatus,
)
from .store import JsonTaskStore

__version__ = "2.0.0"
__all__ = [
    "TaskManager",
    "TaskTreeSettings",
    "JsonTaskStore",
    "BackupManager",
    "BackupHandle",
    "MigrationManager",
    "TaskDocument",
    "DocumentMeta",
    "TaskNode",
    "TaskPatch",
    "SubtaskDraft",
    "FlatSubtask",
    "TaskStatus",
    "TaskPriority",
    "NestingState",
    "SubtaskAddress",
    "parse_subtask_id",
    "generate_subtask_id",
    "find_node",
    "find_container",
    "insert_subtask",
    "remove_subtask",
    "update_subtask",
    "flatten_subtasks",
    "validate_dependencies",
    "validate_document_dependencies",
    "is_task_dependent_on",
    "is_legacy",
    "migrate_legacy_subtasks",
    "migrate_tree",
    "TaskTreeError",
    "ErrorKind",
    "MalformedIdentifier",
    "EmptyPath",
    "ContainerNotFound",
    "NodeNotFound",
    "SelfReference",
    "CircularReference",
    "InvalidDocument",
    "MigrationStepFailed",
    "BackupFailed",
    "RestoreFailed",
]
