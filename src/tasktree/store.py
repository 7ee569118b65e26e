"""
TASKTREE - Persistent Store
===========================
File-based storage for the tasks document. Writes go to a temp file that is
then moved over the target, so a crash never leaves half a document.
"""

import json
import logging
import shutil
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from .errors import InvalidDocument
from .schema import TaskDocument

logger = logging.getLogger("tasktree.store")


class JsonTaskStore:
    """Load/save a TaskDocument as JSON at `tasks_path`"""

    def __init__(self, tasks_path: Union[str, Path]):
        self.tasks_path = Path(tasks_path)

    def exists(self) -> bool:
        return self.tasks_path.exists()

    def load(self) -> TaskDocument:
        """Read and validate the document"""
        if not self.tasks_path.exists():
            raise InvalidDocument(f"Invalid or missing tasks file at {self.tasks_path}")

        try:
            with open(self.tasks_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidDocument(f"Tasks file {self.tasks_path} is not valid JSON: {e}") from e
        except OSError as e:
            raise InvalidDocument(f"Tasks file {self.tasks_path} could not be read: {e}") from e

        if not isinstance(data, dict) or "tasks" not in data:
            raise InvalidDocument(f"Tasks file {self.tasks_path} has no 'tasks' collection")

        try:
            document = TaskDocument.model_validate(data)
        except ValidationError as e:
            raise InvalidDocument(f"Tasks file {self.tasks_path} failed validation: {e}") from e

        logger.debug(f"📂 Loaded {len(document.tasks)} tasks from {self.tasks_path}")
        return document

    def save(self, document: TaskDocument) -> None:
        """Write the document atomically"""
        self.tasks_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.tasks_path.with_suffix(self.tasks_path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document.to_json_dict(), f, indent=2, ensure_ascii=False)
                f.write("\n")
            tmp_path.replace(self.tasks_path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug(f"💾 Saved {len(document.tasks)} tasks to {self.tasks_path}")

    @staticmethod
    def copy(src: Union[str, Path], dst: Union[str, Path]) -> None:
        """File-level copy primitive used by backup/restore"""
        shutil.copy2(src, dst)
