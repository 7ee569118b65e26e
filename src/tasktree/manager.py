"""
TASKTREE - Task Manager
=======================
Document-level operations over the task tree.

Each call loads the document, runs the core operations on the in-memory
tree, and saves it back. One writer at a time is assumed.
"""

import logging
from typing import Any, List, Mapping, NamedTuple, Optional, Tuple, Union

from .backup import BackupHandle, BackupManager
from .config import TaskTreeSettings
from .dependencies import is_task_dependent_on, validate_dependencies, validate_document_dependencies
from .errors import CircularReference, NodeNotFound, SelfReference
from .identifiers import generate_subtask_id, split_task_ref
from .migration import MigrationManager, migrate_legacy_subtasks
from .mutations import (
    flatten_subtasks,
    insert_subtask,
    remove_subtask,
    subtask_statistics,
    update_subtask,
)
from .navigator import find_node
from .schema import (
    DependencyFinding,
    FlatSubtask,
    SubtaskDraft,
    SubtaskStatistics,
    TaskDocument,
    TaskNode,
    TaskPatch,
)
from .store import JsonTaskStore

logger = logging.getLogger("tasktree")

TaskRef = Union[int, str]


class AddedSubtask(NamedTuple):
    node: TaskNode
    full_id: str
    is_nested: bool  # parent was itself a subtask
    depth: int


class TaskManager:
    """
    Task tree manager.

    Storage: <project_root>/.taskmaster/tasks/tasks.json (configurable)
    Backups: <project_root>/.taskmaster/backups/backup-<timestamp>/
    """

    def __init__(
        self,
        settings: Optional[TaskTreeSettings] = None,
        store: Optional[JsonTaskStore] = None,
    ):
        self.settings = settings or TaskTreeSettings()
        self.store = store or JsonTaskStore(self.settings.tasks_path)
        self.backups = BackupManager(
            self.store,
            config_path=self.settings.config_path,
            backup_dir=self.settings.backup_path,
        )
        self.migrations = MigrationManager(self.store, self.backups)
        self._document: Optional[TaskDocument] = None

    # ========================================
    # PERSISTENCE
    # ========================================

    def load(self) -> TaskDocument:
        self._document = self.store.load()
        return self._document

    def save(self, document: Optional[TaskDocument] = None) -> None:
        document = document or self._document
        if document is None:
            raise ValueError("No task document loaded")
        self.store.save(document)
        self._document = document

    # ========================================
    # LOOKUP
    # ========================================

    def _root(self, document: TaskDocument, root_id: int) -> TaskNode:
        task = document.get_task(root_id)
        if task is None:
            raise NodeNotFound(f"Task with ID {root_id} not found")
        return task

    def _resolve(self, document: TaskDocument, ref: TaskRef) -> Tuple[TaskNode, TaskNode, Tuple[int, ...]]:
        """Returns (root task, addressed node, path)"""
        root_id, path = split_task_ref(ref)
        root = self._root(document, root_id)
        if not path:
            return root, root, path
        node = find_node(root, path)
        if node is None:
            raise NodeNotFound(f"Subtask {generate_subtask_id(root_id, path)} not found")
        return root, node, path

    def get(self, ref: TaskRef) -> TaskNode:
        """Get a root task ("5") or subtask ("5.1.2")"""
        _, node, _ = self._resolve(self.load(), ref)
        return node

    def list_subtasks(self, task_id: TaskRef) -> List[FlatSubtask]:
        root = self._root(self.load(), split_task_ref(task_id)[0])
        return list(flatten_subtasks(root))

    # ========================================
    # SUBTASK OPERATIONS
    # ========================================

    def add_subtask(
        self,
        parent_id: TaskRef,
        data: Optional[Union[SubtaskDraft, Mapping[str, Any]]] = None,
        existing_task_id: Optional[TaskRef] = None,
    ) -> AddedSubtask:
        """
        Add a subtask under a root task (5) or under a subtask ("5.1").

        With `existing_task_id`, the root task is demoted into the new slot
        instead of creating a fresh node.
        """
        if existing_task_id is not None:
            return self.convert_task_to_subtask(existing_task_id, parent_id)
        if data is None:
            raise ValueError("Either existing_task_id or data must be provided")

        logger.info(f"Adding subtask to parent {parent_id}...")
        document = self.load()
        root, parent, path = self._resolve(document, parent_id)
        migrate_legacy_subtasks(root)
        migrate_legacy_subtasks(parent)

        result = insert_subtask(root, (*path, 0), data)
        self.save(document)

        logger.info(f"➕ Created new subtask {result.full_id}")
        return AddedSubtask(result.node, result.full_id, is_nested=bool(path), depth=len(path) + 1)

    def convert_task_to_subtask(self, task_id: TaskRef, parent_id: TaskRef) -> AddedSubtask:
        """Demote root task `task_id` into a subtask of `parent_id`"""
        document = self.load()
        moving_id, moving_path = split_task_ref(task_id)
        if moving_path:
            raise NodeNotFound(f"Task {task_id} is already a subtask")

        parent_root_id, _ = split_task_ref(parent_id)
        if moving_id == parent_root_id:
            raise SelfReference(f"Cannot make task {moving_id} a subtask of itself")

        moving = self._root(document, moving_id)
        root, parent, path = self._resolve(document, parent_id)

        starts = [root] if parent is root else [root, parent]
        for start in starts:
            if is_task_dependent_on(document.tasks, start, moving_id):
                raise CircularReference(
                    f"Cannot create circular dependency: task {parent_id} already depends on task {moving_id}"
                )

        migrate_legacy_subtasks(root)
        migrate_legacy_subtasks(parent)

        draft = SubtaskDraft(
            title=moving.title,
            description=moving.description,
            status=moving.status,
            priority=moving.priority,
            dependencies=list(moving.dependencies),
            details=moving.details,
            test_strategy=moving.test_strategy,
        )
        result = insert_subtask(root, (*path, 0), draft)
        result.node.subtasks = moving.subtasks if moving.subtasks is not None else []
        document.tasks = [task for task in document.tasks if task is not moving]
        self.save(document)

        logger.info(f"🔀 Converted task {moving_id} to subtask {result.full_id}")
        return AddedSubtask(result.node, result.full_id, is_nested=bool(path), depth=len(path) + 1)

    def remove_subtask(self, subtask_id: str) -> TaskNode:
        document = self.load()
        root_id, path = split_task_ref(subtask_id)
        if not path:
            raise NodeNotFound(f"{subtask_id} is a root task, not a subtask")
        removed = remove_subtask(self._root(document, root_id), path)
        self.save(document)
        logger.info(f"🗑️ Removed subtask {subtask_id} ({removed.title})")
        return removed

    def update_subtask(self, subtask_id: str, patch: Union[TaskPatch, Mapping[str, Any]]) -> TaskNode:
        document = self.load()
        root_id, path = split_task_ref(subtask_id)
        if not path:
            raise NodeNotFound(f"{subtask_id} is a root task, not a subtask")
        node = update_subtask(self._root(document, root_id), path, patch)
        self.save(document)
        logger.info(f"✏️ Updated subtask {subtask_id}")
        return node

    # ========================================
    # VALIDATION & REPORTING
    # ========================================

    def validate_dependencies(self, task_id: Optional[TaskRef] = None) -> List[DependencyFinding]:
        """Subtree-scoped check for one root, or document-wide when omitted"""
        document = self.load()
        if task_id is None:
            return validate_document_dependencies(document)
        return validate_dependencies(self._root(document, split_task_ref(task_id)[0]))

    def statistics(self, task_id: TaskRef) -> SubtaskStatistics:
        return subtask_statistics(self._root(self.load(), split_task_ref(task_id)[0]))

    # ========================================
    # BACKUP & MIGRATION
    # ========================================

    def backup(self) -> BackupHandle:
        return self.backups.create_backup()

    def restore(self, backup: Union[BackupHandle, str]) -> None:
        self.backups.restore_backup(backup)
        self._document = None
