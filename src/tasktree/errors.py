"""
TASKTREE - Error Kinds
======================
Every failure surfaced by the core is a TaskTreeError carrying a kind and a
human-readable message. Callers render `to_dict()`; the core never prints.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    MALFORMED_IDENTIFIER = "MalformedIdentifier"
    EMPTY_PATH = "EmptyPath"
    CONTAINER_NOT_FOUND = "ContainerNotFound"
    NODE_NOT_FOUND = "NodeNotFound"
    SELF_REFERENCE = "SelfReference"
    CIRCULAR_REFERENCE = "CircularReference"
    INVALID_DOCUMENT = "InvalidDocument"
    MIGRATION_STEP_FAILED = "MigrationStepFailed"
    BACKUP_FAILED = "BackupFailed"
    RESTORE_FAILED = "RestoreFailed"


class TaskTreeError(Exception):
    """Base class for all structured task-tree failures"""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.kind.value, "message": self.message}


class MalformedIdentifier(TaskTreeError):
    kind = ErrorKind.MALFORMED_IDENTIFIER


class EmptyPath(TaskTreeError):
    kind = ErrorKind.EMPTY_PATH


class ContainerNotFound(TaskTreeError):
    kind = ErrorKind.CONTAINER_NOT_FOUND


class NodeNotFound(TaskTreeError):
    kind = ErrorKind.NODE_NOT_FOUND


class SelfReference(TaskTreeError):
    kind = ErrorKind.SELF_REFERENCE


class CircularReference(TaskTreeError):
    kind = ErrorKind.CIRCULAR_REFERENCE


class InvalidDocument(TaskTreeError):
    kind = ErrorKind.INVALID_DOCUMENT


class MigrationStepFailed(TaskTreeError):
    kind = ErrorKind.MIGRATION_STEP_FAILED

    def __init__(self, step: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.step = step
        self.cause = cause
        super().__init__(message or f"Migration step '{step}' failed: {cause}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["step"] = self.step
        return data


class BackupFailed(TaskTreeError):
    kind = ErrorKind.BACKUP_FAILED


class RestoreFailed(TaskTreeError):
    kind = ErrorKind.RESTORE_FAILED
