"""
TASKTREE - Backup/Restore Manager
=================================
Timestamped, append-only snapshots of the tasks document and project config,
taken before any migration touches them.

A snapshot is assembled in a hidden staging directory and renamed into place
only once every file copied, so a failed backup leaves nothing behind that
could later be mistaken for a usable one.
"""

import logging
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from .errors import BackupFailed, RestoreFailed
from .store import JsonTaskStore

logger = logging.getLogger("tasktree.backup")

TASKS_ARTIFACT = "tasks.json"
CONFIG_ARTIFACT = "config.json"
BACKUP_PREFIX = "backup-"


class BackupHandle(BaseModel):
    """A completed snapshot on disk"""
    path: Path
    created_at: datetime
    files: List[str] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.name


class BackupManager:
    """
    Snapshot and roll back the persisted document.

    Storage layout:
        <backup_dir>/backup-<UTC timestamp>/tasks.json
        <backup_dir>/backup-<UTC timestamp>/config.json   (if present)
    """

    def __init__(
        self,
        store: JsonTaskStore,
        config_path: Optional[Union[str, Path]],
        backup_dir: Union[str, Path],
    ):
        self.store = store
        self.config_path = Path(config_path) if config_path else None
        self.backup_dir = Path(backup_dir)

    # ========================================
    # BACKUP
    # ========================================

    def create_backup(self) -> BackupHandle:
        """Copy the live document (and config) into a new timestamped backup"""
        if not self.store.exists():
            raise BackupFailed(f"Nothing to back up: {self.store.tasks_path} does not exist")

        created_at = datetime.now(timezone.utc)
        staging: Optional[Path] = None
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(prefix=".partial-", dir=self.backup_dir))

            files = [TASKS_ARTIFACT]
            self.store.copy(self.store.tasks_path, staging / TASKS_ARTIFACT)
            if self.config_path and self.config_path.exists():
                self.store.copy(self.config_path, staging / CONFIG_ARTIFACT)
                files.append(CONFIG_ARTIFACT)

            target = self._unused_backup_path(created_at)
            staging.rename(target)
            staging = None
        except OSError as e:
            logger.error(f"❌ Failed to create backup: {e}")
            raise BackupFailed(f"Failed to create backup in {self.backup_dir}: {e}") from e
        finally:
            if staging is not None:
                shutil.rmtree(staging, ignore_errors=True)

        logger.info(f"🗄️ Backup created at: {target}")
        return BackupHandle(path=target, created_at=created_at, files=files)

    def _unused_backup_path(self, created_at: datetime) -> Path:
        stamp = created_at.strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        candidate = self.backup_dir / f"{BACKUP_PREFIX}{stamp}"
        suffix = 1
        while candidate.exists():
            candidate = self.backup_dir / f"{BACKUP_PREFIX}{stamp}-{suffix}"
            suffix += 1
        return candidate

    def list_backups(self) -> List[BackupHandle]:
        """Completed backups, oldest first"""
        if not self.backup_dir.exists():
            return []

        handles = []
        for path in sorted(self.backup_dir.iterdir()):
            if not path.is_dir() or not path.name.startswith(BACKUP_PREFIX):
                continue
            handles.append(BackupHandle(
                path=path,
                created_at=datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc),
                files=sorted(child.name for child in path.iterdir() if child.is_file()),
            ))
        return handles

    # ========================================
    # RESTORE
    # ========================================

    def restore_backup(self, backup: Union[BackupHandle, str, Path]) -> List[Path]:
        """
        Copy a backup over the live document and config.

        Unconditional: confirming intent is the caller's job. Each file is
        staged next to its destination and then moved over it.
        """
        backup_path = backup.path if isinstance(backup, BackupHandle) else Path(backup)
        logger.info(f"♻️ Restoring from backup: {backup_path}")

        if not backup_path.is_dir():
            raise RestoreFailed(f"Backup path does not exist: {backup_path}")
        if not (backup_path / TASKS_ARTIFACT).exists():
            raise RestoreFailed(f"Backup {backup_path} has no {TASKS_ARTIFACT}")

        targets = [(backup_path / TASKS_ARTIFACT, self.store.tasks_path)]
        if self.config_path and (backup_path / CONFIG_ARTIFACT).exists():
            targets.append((backup_path / CONFIG_ARTIFACT, self.config_path))

        restored = []
        for source, destination in targets:
            tmp_path = destination.with_name(destination.name + ".restore-tmp")
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                self.store.copy(source, tmp_path)
                tmp_path.replace(destination)
            except OSError as e:
                tmp_path.unlink(missing_ok=True)
                logger.error(f"❌ Failed to restore {destination.name}: {e}")
                raise RestoreFailed(f"Failed to restore {destination} from {backup_path}: {e}") from e
            restored.append(destination)
            logger.info(f"Restored {destination.name}")

        logger.info("✅ Restore completed successfully")
        return restored
