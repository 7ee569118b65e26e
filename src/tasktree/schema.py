"""
TASKTREE - Task Schema Definition
=================================
Hierarchical task documents: root tasks own nested subtasks to any depth.
One node type serves both levels; addressing is purely path-based.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator
from pydantic.alias_generators import to_camel


DependencyRef = Union[int, str]  # root task id, sibling id, or "1.2.3"


class TaskStatus(str, Enum):
    """Task lifecycle states (any state may move to any other)"""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DONE = "done"
    DEFERRED = "deferred"
    CANCELLED = "cancelled"
    REVIEW = "review"


class TaskPriority(str, Enum):
    """Task priority levels"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NestingState(str, Enum):
    """Whether a node's child collection has been written in nested shape"""
    UNMIGRATED = "unmigrated"                # no subtasks field at all
    MIGRATED_EMPTY = "migrated-empty"        # subtasks: []
    MIGRATED_NONEMPTY = "migrated-nonempty"  # subtasks: [...]


_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskNode(BaseModel):
    """A root task or a subtask at any depth"""
    model_config = ConfigDict(**_CAMEL, extra="allow")

    id: int = Field(ge=1)
    title: str = Field(min_length=1)
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    dependencies: List[DependencyRef] = Field(default_factory=list)
    details: str = ""           # implementation notes
    test_strategy: str = ""

    # None means the field is absent on disk (legacy, pre-nesting shape)
    subtasks: Optional[List["TaskNode"]] = None

    @model_validator(mode="after")
    def _unique_sibling_ids(self) -> "TaskNode":
        if self.subtasks:
            ids = [child.id for child in self.subtasks]
            if len(ids) != len(set(ids)):
                raise ValueError(f"duplicate subtask ids under task {self.id}: {ids}")
        return self

    @model_serializer(mode="wrap")
    def _omit_absent_subtasks(self, handler):
        data = handler(self)
        if self.subtasks is None:
            data.pop("subtasks", None)
        return data

    @property
    def nesting_state(self) -> NestingState:
        if self.subtasks is None:
            return NestingState.UNMIGRATED
        if not self.subtasks:
            return NestingState.MIGRATED_EMPTY
        return NestingState.MIGRATED_NONEMPTY

    @property
    def children(self) -> List["TaskNode"]:
        """Child collection, empty when absent (does not create one)"""
        return self.subtasks or []


class SubtaskDraft(BaseModel):
    """Payload for a new subtask; id and subtasks are assigned on insert"""
    model_config = ConfigDict(**_CAMEL, extra="ignore")

    title: str = Field(min_length=1)
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    dependencies: List[DependencyRef] = Field(default_factory=list)
    details: str = ""
    test_strategy: str = ""


class TaskPatch(BaseModel):
    """
    Partial update of a node's mutable fields.

    Only the fields declared here can ever be written by an update; `id` and
    `subtasks` are not fields, so a patch carrying them drops them on parse.
    """
    model_config = ConfigDict(**_CAMEL, extra="ignore")

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    dependencies: Optional[List[DependencyRef]] = None
    details: Optional[str] = None
    test_strategy: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly provided with a non-null value"""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class DocumentMeta(BaseModel):
    """Document metadata block"""
    model_config = ConfigDict(**_CAMEL, extra="allow")

    project_name: Optional[str] = None
    version: Optional[str] = None
    schema_version: Optional[str] = None
    nested_subtasks_support: bool = False
    last_migration: Optional[datetime] = None
    features: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_serializer(mode="wrap")
    def _drop_nulls(self, handler):
        return {key: value for key, value in handler(self).items() if value is not None}


class TaskDocument(BaseModel):
    """The persisted container: metadata plus ordered root tasks"""
    model_config = ConfigDict(**_CAMEL, extra="allow")

    meta: DocumentMeta = Field(default_factory=DocumentMeta)
    tasks: List[TaskNode]

    @model_validator(mode="after")
    def _unique_root_ids(self) -> "TaskDocument":
        ids = [task.id for task in self.tasks]
        if len(ids) != len(set(ids)):
            raise ValueError(f"duplicate root task ids: {ids}")
        return self

    def get_task(self, task_id: int) -> Optional[TaskNode]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True)
class FlatSubtask:
    """One entry of a flattened subtree"""
    node: TaskNode
    full_id: str
    path: Tuple[int, ...]

    @property
    def depth(self) -> int:
        return len(self.path)

    @property
    def id(self) -> int:
        return self.node.id

    def to_dict(self) -> Dict[str, Any]:
        data = self.node.model_dump(mode="json", by_alias=True)
        data.update(fullId=self.full_id, path=list(self.path), depth=self.depth)
        return data


class DependencyFinding(BaseModel):
    """A dependency reference that does not resolve"""
    node_id: str
    invalid_ref: DependencyRef

    @property
    def message(self) -> str:
        return f"Task {self.node_id} has invalid dependency: {self.invalid_ref}"


class SubtaskStatistics(BaseModel):
    """Counts over a flattened subtree"""
    total: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_depth: Dict[int, int] = Field(default_factory=dict)
    max_depth: int = 0
    has_nested: bool = False
