"""
TASKTREE - Legacy Migrator
==========================
Upgrades pre-nesting documents in place.

A node is "legacy" when it has children but at least one child carries no
child collection at all; that is how documents written before nested subtasks
look. `migrate_legacy_subtasks` normalizes one level; `migrate_tree` sweeps a
whole subtree. `MigrationManager` drives the document-wide upgrade: backup
first, then each step independently, collecting per-step results.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from .backup import BackupHandle, BackupManager
from .errors import MigrationStepFailed, TaskTreeError
from .schema import NestingState, TaskDocument, TaskNode
from .store import JsonTaskStore

logger = logging.getLogger("tasktree.migration")

CURRENT_VERSION = "2.0.0"
CURRENT_SCHEMA_VERSION = "2.0"
CURRENT_FEATURES = ["nested-subtasks"]


# ============================================================
# SINGLE-NODE MIGRATION
# ============================================================

def is_legacy(task: TaskNode) -> bool:
    """Has children, and at least one child has never been given a collection"""
    return bool(task.subtasks) and any(
        child.nesting_state is NestingState.UNMIGRATED for child in task.subtasks
    )


def migrate_legacy_subtasks(task: TaskNode) -> TaskNode:
    """
    Give every direct child an explicit (empty) child collection.

    Shallow and idempotent: an already-nested task comes back untouched.
    """
    if not is_legacy(task):
        return task
    for child in task.subtasks:
        if child.subtasks is None:
            child.subtasks = []
    return task


def needs_migration(task: TaskNode) -> bool:
    """True if any node in the subtree, `task` included, is legacy"""
    pending = [task]
    while pending:
        node = pending.pop()
        if is_legacy(node):
            return True
        pending.extend(node.children)
    return False


def migrate_tree(task: TaskNode) -> int:
    """Normalize every level under `task`; returns how many nodes changed"""
    migrated = 0
    pending = [task]
    while pending:
        node = pending.pop()
        if is_legacy(node):
            migrate_legacy_subtasks(node)
            migrated += 1
        pending.extend(node.children)
    return migrated


# ============================================================
# DOCUMENT MIGRATION DRIVER
# ============================================================

class MigrationStep(str, Enum):
    NESTED_SUBTASKS = "nested-subtasks"
    VERSION_METADATA = "version-metadata"


class MigrationCheck(BaseModel):
    needed: bool
    migrations: List[str] = Field(default_factory=list)
    reason: str
    error: Optional[str] = None


class StepResult(BaseModel):
    step: str
    success: bool
    details: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[Dict[str, Any]] = None


class MigrationReport(BaseModel):
    success: bool
    message: str
    results: Dict[str, StepResult] = Field(default_factory=dict)
    successful_migrations: List[str] = Field(default_factory=list)
    failed_migrations: List[str] = Field(default_factory=list)
    backup: Optional[BackupHandle] = None


class MigrationStatus(BaseModel):
    migration_needed: bool
    available_migrations: List[str] = Field(default_factory=list)
    current_version: str = "unknown"
    schema_version: str = "unknown"
    features: List[str] = Field(default_factory=list)
    last_migration: Optional[datetime] = None
    nested_subtasks_support: bool = False
    error: Optional[str] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def migrate_to_nested_subtasks(document: TaskDocument) -> Dict[str, Any]:
    migrated = sum(migrate_tree(task) for task in document.tasks)
    document.meta.nested_subtasks_support = True
    document.meta.last_migration = _now()
    return {"migratedTasks": migrated}


def add_version_metadata(document: TaskDocument) -> Dict[str, Any]:
    now = _now()
    meta = document.meta
    meta.version = CURRENT_VERSION
    meta.schema_version = CURRENT_SCHEMA_VERSION
    meta.features = list(CURRENT_FEATURES)
    if meta.created_at is None:
        meta.created_at = now
    meta.updated_at = now
    return {"version": CURRENT_VERSION, "schemaVersion": CURRENT_SCHEMA_VERSION}


class MigrationManager:
    """
    Document-wide migration driver.

    Contract:
    - always back up before touching anything (a failed backup aborts)
    - run each step against a fresh load and save it on its own
    - a failed step is recorded, not raised; later steps still run
    """

    STEPS: Dict[str, Callable[[TaskDocument], Dict[str, Any]]] = {
        MigrationStep.NESTED_SUBTASKS.value: migrate_to_nested_subtasks,
        MigrationStep.VERSION_METADATA.value: add_version_metadata,
    }

    def __init__(self, store: JsonTaskStore, backups: BackupManager):
        self.store = store
        self.backups = backups

    def check_migration_needed(self) -> MigrationCheck:
        """Inspect the document and list the steps it still needs"""
        if not self.store.exists():
            return MigrationCheck(needed=False, reason="No tasks file found")

        try:
            document = self.store.load()
        except TaskTreeError as e:
            return MigrationCheck(needed=False, reason=f"Invalid tasks file: {e.message}", error=e.message)
        except (OSError, ValueError) as e:
            return MigrationCheck(needed=False, reason=f"Unreadable tasks file: {e}", error=str(e))

        migrations = []
        if any(needs_migration(task) for task in document.tasks):
            migrations.append(MigrationStep.NESTED_SUBTASKS.value)
        if not document.meta.version:
            migrations.append(MigrationStep.VERSION_METADATA.value)

        if migrations:
            reason = f"Migrations needed: {', '.join(migrations)}"
        else:
            reason = "Project is up to date"
        return MigrationCheck(needed=bool(migrations), migrations=migrations, reason=reason)

    def run_migrations(self, migrations: Optional[Sequence[str]] = None) -> MigrationReport:
        """Back up, then apply each requested (or needed) step"""
        check = self.check_migration_needed()
        if migrations is None:
            if not check.needed:
                logger.info(check.reason)
                return MigrationReport(success=check.error is None, message=check.reason)
            migrations = check.migrations

        logger.info(f"🔧 Running migrations: {', '.join(migrations)}")
        backup = self.backups.create_backup()

        results: Dict[str, StepResult] = {}
        for name in migrations:
            results[name] = self._run_step(name)

        successful = [name for name, result in results.items() if result.success]
        failed = [name for name, result in results.items() if not result.success]

        if failed:
            logger.warning(f"⚠️ Some migrations failed: {', '.join(failed)}")
            logger.info(f"Backup available at: {backup.path}")
        message = f"Migration completed. Successful: {len(successful)}, Failed: {len(failed)}"
        logger.info(message)

        return MigrationReport(
            success=not failed,
            message=message,
            results=results,
            successful_migrations=successful,
            failed_migrations=failed,
            backup=backup,
        )

    def _run_step(self, name: str) -> StepResult:
        step = self.STEPS.get(name)
        if step is None:
            logger.warning(f"Unknown migration: {name}")
            failure = MigrationStepFailed(name, message=f"Unknown migration: {name}")
            return StepResult(step=name, success=False, error=failure.to_dict())

        try:
            document = self.store.load()
            details = step(document)
            self.store.save(document)
        except Exception as e:
            failure = MigrationStepFailed(name, cause=e)
            logger.error(f"❌ {failure.message}")
            return StepResult(step=name, success=False, error=failure.to_dict())

        logger.info(f"✅ Migration {name} applied: {details}")
        return StepResult(step=name, success=True, details=details)

    def get_status(self) -> MigrationStatus:
        check = self.check_migration_needed()
        if check.error is not None or not self.store.exists():
            return MigrationStatus(migration_needed=False, error=check.error or check.reason)

        meta = self.store.load().meta
        return MigrationStatus(
            migration_needed=check.needed,
            available_migrations=check.migrations,
            current_version=meta.version or "unknown",
            schema_version=meta.schema_version or "unknown",
            features=meta.features,
            last_migration=meta.last_migration,
            nested_subtasks_support=meta.nested_subtasks_support,
        )
